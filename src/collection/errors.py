# ========================
# src/collection/errors.py
# ========================

"""
Collection Errors

Exceptions raised by the collection engine and the chain runner.
"""


class CollectionError(Exception):
    """Base class for every error raised while querying or transforming a collection."""


class InvalidShapeError(CollectionError, ValueError):
    """An entry does not have the shape the operation needs (e.g. a scalar where a nested collection is required)."""


class MissingKeyError(InvalidShapeError):
    """A nested entry lacks the key an operation groups, extracts or deduplicates by."""

    def __init__(self, key, entry_key):
        self.key = key
        self.entry_key = entry_key
        super().__init__(f"Entry {entry_key!r} has no key {key!r}")


class EmptyAggregateError(CollectionError, ZeroDivisionError):
    """An average was requested over zero values."""


class NonNumericValueError(CollectionError, TypeError):
    """A value taking part in a numeric aggregation cannot be read as a number."""


class ChainError(CollectionError):
    """An operation chain is malformed."""
