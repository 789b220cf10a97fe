"""Tree utility functions for objtools."""

from __future__ import annotations

import re
import copy
from typing import Any, Union


PATH_SEPARATOR = "."

_INDEX_PATTERN = re.compile(r'^[0-9]+$')


def is_scalar(value: Any) -> bool:
    """
    Check whether a value is a scalar rather than a collection.

    Everything except dicts, lists and tuples is a scalar, including None,
    dates and callables.
    """
    return not isinstance(value, (dict, list, tuple))


def is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def deep_copy(obj: Any) -> Any:
    """Create a deep copy of an object."""
    return copy.deepcopy(obj)


def is_numeric(value: Any) -> bool:
    """Check if a value is numeric (int or float)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def scalar_equals(a: Any, b: Any) -> bool:
    """
    Check if two scalar values are equal.

    Booleans only equal booleans, so ``1`` and ``True`` differ. Ints and
    floats compare numerically.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return a is b
    if is_numeric(a) and is_numeric(b):
        return float(a) == float(b)
    if type(a) != type(b):
        return False
    return a == b


def deep_equals(a: Any, b: Any) -> bool:
    """Check for deep equality between two values."""
    if is_scalar(a) and is_scalar(b):
        return scalar_equals(a, b)
    if is_sequence(a) and is_sequence(b):
        if len(a) != len(b):
            return False
        return all(deep_equals(x, y) for x, y in zip(a, b))
    if isinstance(a, dict) and isinstance(b, dict):
        if a.keys() != b.keys():
            return False
        return all(deep_equals(value, b[key]) for key, value in a.items())
    return False


def split_path(path: Union[str, list, tuple]) -> list[str]:
    """Split a dotted path into its segments."""
    if isinstance(path, (list, tuple)):
        return [str(part) for part in path]
    return str(path).split(PATH_SEPARATOR)


def join_path(parent_path: str, key: Any) -> str:
    """Build a dotted path from a parent path and a key."""
    if parent_path:
        return f"{parent_path}{PATH_SEPARATOR}{key}"
    return str(key)


def _child_key(container: Any, part: str):
    """Resolve a path segment to a key usable on the given container."""
    if is_sequence(container):
        if _INDEX_PATTERN.match(part):
            return int(part)
        return None
    return part


def get_path(obj: Any, path: Union[str, list, None], allow_skip_arrays: bool = False) -> Any:
    """
    Get the value at a dotted path.

    Args:
        obj: The object to read from
        path: Dotted path (None returns the object itself)
        allow_skip_arrays: If a path segment is non-numeric and the current
            value is a list with exactly one element, step into that element
            instead of failing

    Returns:
        The value at the path, or None if the path does not exist
    """
    if path is None:
        return obj

    parts = split_path(path)
    cur = obj
    i = 0
    while i < len(parts):
        part = parts[i]
        if is_scalar(cur):
            return None
        if (
            allow_skip_arrays
            and is_sequence(cur)
            and not _INDEX_PATTERN.match(part)
            and len(cur) == 1
        ):
            cur = cur[0]
            continue
        key = _child_key(cur, part)
        if key is None:
            return None
        if is_sequence(cur):
            if key >= len(cur):
                return None
            cur = cur[key]
        else:
            cur = cur.get(key)
        i += 1
    return cur


def set_path(obj: Any, path: Union[str, list], value: Any) -> Any:
    """
    Set the value at a dotted path, creating intermediate dicts as needed.

    Scalar intermediates are replaced by new dicts. List positions are
    addressed by numeric segments; lists are padded with None when the index
    is past the end.

    Returns:
        The same object
    """
    parts = split_path(path)
    cur = obj
    for i, part in enumerate(parts):
        key = _child_key(cur, part)
        if key is None:
            raise ValueError(f"Cannot address list with non-numeric segment '{part}' in '{path}'")
        if is_sequence(cur):
            while len(cur) <= key:
                cur.append(None)

        if i == len(parts) - 1:
            cur[key] = value
        else:
            existing = cur[key] if is_sequence(cur) else cur.get(key)
            if is_scalar(existing):
                existing = {}
                cur[key] = existing
            cur = existing
    return obj


def delete_path(obj: Any, path: Union[str, list]) -> Any:
    """
    Delete the value at a dotted path. Missing paths are ignored.

    Returns:
        The same object
    """
    parts = split_path(path)
    cur = obj
    for i, part in enumerate(parts):
        if is_scalar(cur):
            return obj
        key = _child_key(cur, part)
        if key is None:
            return obj
        if is_sequence(cur):
            if key >= len(cur):
                return obj
            if i == len(parts) - 1:
                del cur[key]
            else:
                cur = cur[key]
        else:
            if key not in cur:
                return obj
            if i == len(parts) - 1:
                del cur[key]
            else:
                cur = cur[key]
    return obj


def collapse_to_dotted(
    obj: Any,
    include_redundant_levels: bool = False,
    stop_at_arrays: bool = False
) -> dict:
    """
    Flatten an object into a one-level dict keyed by dotted paths.

    Args:
        obj: The object to flatten
        include_redundant_levels: Also emit entries for intermediate
            collections, so {"a": {"b": 1}} gives {"a": {...}, "a.b": 1}
        stop_at_arrays: Do not descend into lists; emit them as values

    Returns:
        Mapping of dotted path to value
    """
    result = {}
    if is_scalar(obj):
        return result

    def add(value: Any, path: str):
        if is_scalar(value) or (stop_at_arrays and is_sequence(value)):
            result[path] = value
            return
        if include_redundant_levels and path:
            result[path] = value
        items = enumerate(value) if is_sequence(value) else value.items()
        for key, child in items:
            add(child, join_path(path, key))

    add(obj, "")
    result.pop("", None)
    return result
