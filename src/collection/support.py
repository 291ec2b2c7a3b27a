# ========================
# src/collection/support.py
# ========================

"""
Collection Support Helpers

Shape checks, recursive walking, strict comparison and natural ordering shared by the engine operations.
"""

import copy
import re
from collections.abc import Mapping
from typing import Any, Dict, Iterator, Tuple

from .errors import InvalidShapeError, NonNumericValueError

MISSING = object()

NUMERIC_STRING = re.compile(r'^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$')


def is_nested(value: Any) -> bool:
    """Return True when the value is itself a collection (mapping, list or tuple)."""
    return isinstance(value, (Mapping, list, tuple))


def entries(node: Any) -> Iterator[Tuple[Any, Any]]:
    """Yield the (key, value) pairs of one level of a nested collection. List keys are their indices."""
    if isinstance(node, Mapping):
        yield from node.items()
    else:
        yield from enumerate(node)


def walk(node: Any) -> Iterator[Tuple[Any, Any]]:
    """Yield every (key, value) pair at every depth, parents before their children."""
    for key, value in entries(node):
        yield key, value
        if is_nested(value):
            yield from walk(value)


def lookup(node: Any, key: Any, default: Any = MISSING) -> Any:
    """Read ``key`` from a nested collection, returning ``default`` when it is absent."""
    if isinstance(node, Mapping):
        try:
            return node[key] if key in node else default
        except TypeError:
            # unhashable keys can never be present
            return default
    if is_integer(key) and 0 <= key < len(node):
        return node[key]
    return default


def is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def strict_equals(left: Any, right: Any) -> bool:
    """
    Compare two values without type coercion.

    Scalars must share a type and compare equal. Nested collections must hold strictly equal
    keys and values in the same order.
    """
    if is_nested(left) or is_nested(right):
        if not (is_nested(left) and is_nested(right)) or len(left) != len(right):
            return False
        return all(
            strict_equals(left_key, right_key) and strict_equals(left_value, right_value)
            for (left_key, left_value), (right_key, right_value) in zip(entries(left), entries(right))
        )
    return type(left) is type(right) and left == right


def strict_in(value: Any, candidates) -> bool:
    return any(strict_equals(value, candidate) for candidate in candidates)


def is_numeric_string(value: Any) -> bool:
    return isinstance(value, str) and NUMERIC_STRING.match(value) is not None


def to_number(value: Any, key: Any = None):
    """
    Convert a scalar to a number for aggregation.

    None counts as 0, booleans as 0/1 and numeric strings are parsed. Anything else raises NonNumericValueError.
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return value
    if is_numeric_string(value):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            return float(text)
    raise NonNumericValueError(f"Value {value!r} under key {key!r} is not numeric")


def sort_key(value: Any) -> Tuple[int, Any, str]:
    """
    Natural ordering key: None, then numbers and numeric strings (numerically), then other strings,
    then nested collections by size.
    """
    if value is None:
        return (0, 0, '')
    if isinstance(value, (int, float)):
        return (1, value, '')
    if isinstance(value, str):
        if is_numeric_string(value):
            return (1, float(value), '')
        return (2, 0, value)
    if is_nested(value):
        return (3, len(value), '')
    return (4, 0, repr(value))


def normalize(collection: Any) -> Tuple[Dict[Any, Any], bool]:
    """
    Deep-copy an input collection into the engine's ordered mapping.

    Returns:
        tuple: (working mapping, True when the input was list-shaped)
    """
    if isinstance(collection, Mapping):
        return {key: copy.deepcopy(value) for key, value in collection.items()}, False
    if isinstance(collection, (list, tuple)):
        return {index: copy.deepcopy(value) for index, value in enumerate(collection)}, True
    raise InvalidShapeError(f"Expected a mapping or a list, got {type(collection).__name__}")


def export(working: Dict[Any, Any], sequence: bool):
    """Deep-copy the working mapping out, as a list when it is list-shaped and densely indexed."""
    data = copy.deepcopy(working)
    if sequence and list(data) == list(range(len(data))):
        return list(data.values())
    return data
