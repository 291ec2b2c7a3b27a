# ========================
# src/collection/engine.py
# ========================

"""
Collection Engine

A fluent wrapper around a single in-memory working collection. Chainable operations transform the
working collection and return the engine; terminal operations return a plain result and flush.
"""

import copy
import logging
from collections.abc import Iterable, Mapping
from typing import Any, Callable, Dict, List, Optional

from .errors import EmptyAggregateError, InvalidShapeError, MissingKeyError
from .support import (
    MISSING,
    export,
    is_integer,
    is_nested,
    lookup,
    normalize,
    sort_key,
    strict_equals,
    strict_in,
    to_number,
    walk,
)

logger = logging.getLogger(__name__)


class Ray:
    """
    Holds one working collection at a time and exposes query, reshape and aggregation operations over it.

    The working collection is an ordered mapping of keys (str or int) to values, where values may themselves
    be nested collections. It is replaced wholesale by ``with_()`` and cleared by ``flush()``.

    Operations that need nested entries (``where*``, ``column``, ``group_by`` and keyed ``unique``) raise
    InvalidShapeError on scalar entries when ``strict`` is True, and skip them with a warning otherwise.
    """

    def __init__(self, strict: bool = True):
        """
        Initialize an empty engine.

        Args:
            strict (bool): Raise on entries with the wrong shape instead of skipping them
        """
        self.strict = strict
        self._working: Dict[Any, Any] = {}
        self._sequence = False

    def __repr__(self) -> str:
        return f"Ray(entries={len(self._working)}, strict={self.strict})"

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _set_working(self, working: Dict[Any, Any], sequence: Optional[bool] = None) -> 'Ray':
        """Replace the working collection. ``sequence`` marks it list-shaped; None keeps the current shape."""
        self._working = working
        if sequence is not None:
            self._sequence = sequence
        return self

    def with_(self, collection) -> 'Ray':
        """
        Flush the existing working collection and load a new one.

        Args:
            collection (dict or list): Collection to load; it is deep-copied

        Returns:
            Ray: self
        """
        working, sequence = normalize(collection)
        self.flush()
        self._set_working(working, sequence)
        logger.debug(f"Loaded collection with {len(working)} entries")
        return self

    def flush(self) -> 'Ray':
        """Reset the working collection to empty."""
        self._working = {}
        self._sequence = False
        return self

    def to_array(self):
        """
        Return a copy of the working collection and flush.

        Returns:
            list or dict: A list when the collection is list-shaped and densely indexed, otherwise a dict
        """
        result = export(self._working, self._sequence)
        self.flush()
        return result

    # ------------------------------------------------------------------
    # Shape handling
    # ------------------------------------------------------------------

    def _nested_entries(self, operation: str):
        """Yield (key, value) for top-level entries whose value is a nested collection."""
        for key, value in self._working.items():
            if is_nested(value):
                yield key, value
            elif self.strict:
                raise InvalidShapeError(
                    f"{operation}() requires nested entries, entry {key!r} holds {type(value).__name__}"
                )
            else:
                logger.warning(f"{operation}(): skipping entry {key!r}, value is not a nested collection")

    def _required(self, operation: str, nested: Any, key: Any, entry_key: Any) -> Any:
        """Read ``key`` from a nested entry. Returns MISSING when a lenient engine should skip the entry."""
        value = lookup(nested, key)
        if value is MISSING:
            if self.strict:
                raise MissingKeyError(key, entry_key)
            logger.warning(f"{operation}(): skipping entry {entry_key!r}, key {key!r} is missing")
        return value

    def _hashable(self, value: Any, entry_key: Any) -> Any:
        try:
            hash(value)
        except TypeError:
            raise InvalidShapeError(f"Entry {entry_key!r} holds an unhashable value {value!r} where a key is needed")
        return value

    # ------------------------------------------------------------------
    # Sorting
    # ------------------------------------------------------------------

    def sort_by_values(self) -> 'Ray':
        """Stable ascending sort by value, keeping key/value association."""
        ordered = sorted(self._working.items(), key=lambda item: sort_key(item[1]))
        return self._set_working(dict(ordered))

    def sort_by_keys(self) -> 'Ray':
        """Stable ascending sort by key, keeping key/value association."""
        ordered = sorted(self._working.items(), key=lambda item: sort_key(item[0]))
        return self._set_working(dict(ordered))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def contains(self, key_or_value: Any, value: Any = MISSING) -> bool:
        """
        Determine if any entry at any depth holds a value. Terminal.

        ``contains(value)`` matches on value alone; ``contains(key, value)`` requires both the key and
        the value of the same entry to match. Comparison is strict.
        """
        if value is MISSING:
            found = any(strict_equals(item, key_or_value) for _, item in walk(self._working))
        else:
            found = any(
                strict_equals(key, key_or_value) and strict_equals(item, value)
                for key, item in walk(self._working)
            )
        self.flush()
        return found

    def has(self, key: Any) -> bool:
        """Determine if any entry at any depth uses ``key``. Terminal."""
        found = any(strict_equals(entry_key, key) for entry_key, _ in walk(self._working))
        self.flush()
        return found

    def _where(self, operation: str, key: Any, keep: Callable[[Any], bool]) -> 'Ray':
        matched = {}
        for entry_key, nested in self._nested_entries(operation):
            candidate = lookup(nested, key)
            if candidate is not MISSING and keep(candidate):
                matched[entry_key] = nested
        return self._set_working(matched)

    def where(self, key: Any, value: Any) -> 'Ray':
        """Keep nested entries whose value under ``key`` equals ``value``."""
        return self._where('where', key, lambda candidate: strict_equals(candidate, value))

    def where_not(self, key: Any, value: Any) -> 'Ray':
        """Keep nested entries that hold ``key`` with a value other than ``value``."""
        return self._where('where_not', key, lambda candidate: not strict_equals(candidate, value))

    @staticmethod
    def _candidates(operation: str, values: Any) -> List[Any]:
        if isinstance(values, (str, bytes, Mapping)) or not isinstance(values, Iterable):
            raise InvalidShapeError(f"{operation}() expects a list of candidate values, got {type(values).__name__}")
        return list(values)

    def where_in(self, key: Any, values: Iterable[Any]) -> 'Ray':
        """Keep nested entries whose value under ``key`` is one of ``values``."""
        values = self._candidates('where_in', values)
        return self._where('where_in', key, lambda candidate: strict_in(candidate, values))

    def where_not_in(self, key: Any, values: Iterable[Any]) -> 'Ray':
        """Keep nested entries that hold ``key`` with a value outside ``values``."""
        values = self._candidates('where_not_in', values)
        return self._where('where_not_in', key, lambda candidate: not strict_in(candidate, values))

    def filter(self, predicate: Callable[[Any, Any], bool]) -> 'Ray':
        """Keep entries for which ``predicate(value, key)`` is truthy."""
        kept = {key: value for key, value in self._working.items() if predicate(value, key)}
        return self._set_working(kept)

    # ------------------------------------------------------------------
    # Reshaping and grouping
    # ------------------------------------------------------------------

    def values(self) -> 'Ray':
        """Drop the keys and re-index the collection from zero."""
        return self._set_working(dict(enumerate(self._working.values())), sequence=True)

    @staticmethod
    def _key_set(keys) -> List[Any]:
        if isinstance(keys, (str, int)):
            return [keys]
        return list(keys)

    def except_(self, keys) -> 'Ray':
        """Remove the given top-level keys. Remaining keys are not re-indexed."""
        excluded = self._key_set(keys)
        return self._set_working({key: value for key, value in self._working.items() if key not in excluded})

    def only(self, keys) -> 'Ray':
        """Keep only the given top-level keys."""
        included = self._key_set(keys)
        return self._set_working({key: value for key, value in self._working.items() if key in included})

    def unique(self, key: Any = None) -> 'Ray':
        """
        Remove duplicates, keeping the first occurrence and its key.

        Without ``key`` (or when no entry is nested) entries are compared by value. With ``key``,
        nested entries are compared by their value under ``key``.
        """
        seen: List[Any] = []
        unique_entries = {}

        if key is None or not any(is_nested(value) for value in self._working.values()):
            for entry_key, value in self._working.items():
                if not strict_in(value, seen):
                    seen.append(value)
                    unique_entries[entry_key] = value
        else:
            for entry_key, nested in self._nested_entries('unique'):
                marker = self._required('unique', nested, key, entry_key)
                if marker is MISSING:
                    continue
                if not strict_in(marker, seen):
                    seen.append(marker)
                    unique_entries[entry_key] = nested

        return self._set_working(unique_entries)

    def group_by(self, key: Any) -> 'Ray':
        """Key the collection by the distinct values under ``key``, each mapping to a list of its entries."""
        groups: Dict[Any, List[Any]] = {}
        for entry_key, nested in self._nested_entries('group_by'):
            group = self._required('group_by', nested, key, entry_key)
            if group is MISSING:
                continue
            groups.setdefault(self._hashable(group, entry_key), []).append(nested)

        logger.debug(f"group_by({key!r}) produced {len(groups)} groups")
        return self._set_working(groups, sequence=False)

    def column(self, key: Any, key_by: Any = None) -> 'Ray':
        """
        Extract the value under ``key`` from every nested entry.

        Args:
            key: Key to extract
            key_by: Optional key whose value becomes the key of each extracted value; without it the
                result is indexed from zero
        """
        extracted = {}
        for entry_key, nested in self._nested_entries('column'):
            value = self._required('column', nested, key, entry_key)
            if value is MISSING:
                continue
            if key_by is None:
                extracted[len(extracted)] = value
                continue
            new_key = self._required('column', nested, key_by, entry_key)
            if new_key is MISSING:
                continue
            extracted[self._hashable(new_key, entry_key)] = value

        return self._set_working(extracted, sequence=key_by is None)

    # ------------------------------------------------------------------
    # Aggregation
    # ------------------------------------------------------------------

    def count(self) -> int:
        """Number of top-level entries. Does not flush, so it can be used mid-chain."""
        return len(self._working)

    def first(self):
        """
        Remove and return the first value. Remaining integer keys are renumbered from zero.

        Returns None on an empty collection. Does not flush.
        """
        if not self._working:
            return None

        first_key = next(iter(self._working))
        value = self._working.pop(first_key)

        renumbered = {}
        position = 0
        for key, item in self._working.items():
            if is_integer(key):
                renumbered[position] = item
                position += 1
            else:
                renumbered[key] = item
        self._set_working(renumbered)

        return value

    def last(self):
        """Return a copy of the last value, or None on an empty collection. Does not flush."""
        if not self._working:
            return None
        return copy.deepcopy(next(reversed(self._working.values())))

    def _matches(self, key: Any) -> List[Any]:
        return [
            (entry_key, value) for entry_key, value in walk(self._working)
            if strict_equals(entry_key, key) and not is_nested(value)
        ]

    def sum(self, key: Any = None):
        """
        Sum top-level scalar values, or with ``key`` the scalar values stored under ``key`` at any depth. Terminal.
        """
        if key is None:
            total = sum(
                to_number(value, entry_key)
                for entry_key, value in self._working.items() if not is_nested(value)
            )
        else:
            total = sum(to_number(value, entry_key) for entry_key, value in self._matches(key))

        self.flush()
        return total

    def avg(self, key: Any = None):
        """
        Average of the top-level values, or with ``key`` of the values stored under ``key`` at any depth. Terminal.

        Raises:
            EmptyAggregateError: When there is nothing to average over
        """
        if key is None:
            if not self._working:
                raise EmptyAggregateError("Cannot average an empty collection")
            total = sum(
                to_number(value, entry_key)
                for entry_key, value in self._working.items() if not is_nested(value)
            )
            average = total / len(self._working)
        else:
            matches = self._matches(key)
            if not matches:
                raise EmptyAggregateError(f"No values found under key {key!r} to average")
            average = sum(to_number(value, entry_key) for entry_key, value in matches) / len(matches)

        self.flush()
        return average

    def reduce(self, combiner: Callable[[Any, Any], Any], initial: Any = None):
        """Fold the top-level values with ``combiner(carry, value)``, starting from ``initial``. Terminal."""
        carry = initial
        for value in self._working.values():
            carry = combiner(carry, value)

        self.flush()
        return carry
