"""
Set algebra over normalized mask trees.

Every function here works on plain mask trees (``True``, ``False`` or dicts
with an optional ``"_"`` wildcard key) that have already been normalized, and
returns a new tree. Inputs are never modified.

Explicit keys always take precedence over the wildcard; the wildcard only
applies to keys a node does not list.
"""

from __future__ import annotations

from typing import Any

from .exceptions import InvalidArgumentError
from .models import WILDCARD, MaskKind, mask_kind
from .utils import deep_copy, deep_equals


def condense(node: Any) -> Any:
    """
    Reduce a mask node to canonical form, in place.

    Keys that repeat what the wildcard already says are dropped (with no
    wildcard, that is every denying key), and a node left with nothing
    becomes ``False``.
    """
    if mask_kind(node) != MaskKind.NODE:
        return node

    if mask_kind(node.get(WILDCARD)) == MaskKind.DENY:
        node.pop(WILDCARD, None)
        for key in [k for k, v in node.items() if mask_kind(v) == MaskKind.DENY]:
            del node[key]
    else:
        wildcard = node[WILDCARD]
        for key in [k for k, v in node.items() if k != WILDCARD and deep_equals(v, wildcard)]:
            del node[key]

    return node if node else False


def canonical(tree: Any) -> Any:
    """Return a canonical copy of a mask tree, condensed bottom-up."""
    kind = mask_kind(tree)
    if kind != MaskKind.NODE:
        return kind == MaskKind.ALLOW
    return condense({key: canonical(value) for key, value in tree.items()})


def union_trees(a: Any, b: Any) -> Any:
    """Mask allowing every path allowed by either ``a`` or ``b``."""
    return condense(_union(canonical(a), canonical(b)))


def _union(result: Any, new: Any) -> Any:
    # result is owned and may be modified; new is only read
    result_kind = mask_kind(result)
    new_kind = mask_kind(new)

    if result_kind == MaskKind.ALLOW or new_kind == MaskKind.ALLOW:
        return True
    if new_kind == MaskKind.DENY:
        return result
    if result_kind == MaskKind.DENY:
        return deep_copy(new)

    # Keys listed only in result also gain what new grants through its wildcard.
    if WILDCARD in new:
        for key in list(result):
            if key != WILDCARD and key not in new:
                result[key] = _union(result[key], new[WILDCARD])

    for key, value in new.items():
        if key == WILDCARD:
            continue
        if key in result:
            result[key] = _union(result[key], value)
        elif WILDCARD in result:
            result[key] = _union(deep_copy(value), result[WILDCARD])
        else:
            result[key] = deep_copy(value)

    if WILDCARD in new:
        if WILDCARD in result:
            result[WILDCARD] = _union(result[WILDCARD], new[WILDCARD])
        else:
            result[WILDCARD] = deep_copy(new[WILDCARD])

    return condense(result)


def intersect_trees(a: Any, b: Any) -> Any:
    """Mask allowing only the paths allowed by both ``a`` and ``b``."""
    return condense(_intersect(canonical(a), canonical(b)))


def _intersect(result: Any, new: Any) -> Any:
    # result is owned and may be modified; new is only read
    result_kind = mask_kind(result)
    new_kind = mask_kind(new)

    if result_kind == MaskKind.DENY or new_kind == MaskKind.DENY:
        return False
    if result_kind == MaskKind.ALLOW:
        return deep_copy(new)
    if new_kind == MaskKind.ALLOW:
        return result

    result_keys = [key for key in result if key != WILDCARD]

    for key in result_keys:
        if key in new:
            result[key] = _intersect(result[key], new[key])
        elif WILDCARD in new:
            result[key] = _intersect(result[key], new[WILDCARD])
        else:
            result[key] = False

    for key, value in new.items():
        if key == WILDCARD or key in result_keys:
            continue
        if WILDCARD in result:
            result[key] = _intersect(deep_copy(value), result[WILDCARD])
        else:
            result[key] = False

    # A side without a wildcard denies every unlisted key.
    if WILDCARD in result and WILDCARD in new:
        result[WILDCARD] = _intersect(result[WILDCARD], new[WILDCARD])
    else:
        result.pop(WILDCARD, None)

    return condense(result)


def subtract_trees(a: Any, b: Any) -> Any:
    """
    Mask allowing the paths ``a`` allows and ``b`` does not.

    A fully absent ``a`` yields the inverse of ``b``: everything ``b`` does
    not allow. Absent positions further down stay absent.

    Raises:
        InvalidArgumentError: If a fully allowed position in ``a`` meets a
            partial (node) restriction in ``b``; a scalar allowance has no
            sub-fields to take away.
    """
    minuend = canonical(a)
    if mask_kind(minuend) == MaskKind.DENY:
        return invert_tree(b)
    return condense(_subtract(minuend, canonical(b), ""))


def _subtract(minuend: Any, subtrahend: Any, path: str) -> Any:
    minuend_kind = mask_kind(minuend)
    subtrahend_kind = mask_kind(subtrahend)

    if minuend_kind == MaskKind.DENY:
        return False
    if subtrahend_kind == MaskKind.DENY:
        return deep_copy(minuend)
    if subtrahend_kind == MaskKind.ALLOW:
        return False
    if minuend_kind == MaskKind.ALLOW:
        raise InvalidArgumentError(
            "Cannot subtract a collection mask from a scalar mask",
            {"path": path or "<root>", "subtrahend": deep_copy(subtrahend)}
        )

    result = {}
    fallback = subtrahend.get(WILDCARD, False)

    for key, value in minuend.items():
        if key == WILDCARD:
            continue
        removed = subtrahend[key] if key in subtrahend else fallback
        result[key] = _subtract(value, removed, _child_path(path, key))

    if WILDCARD in minuend:
        for key, value in subtrahend.items():
            if key == WILDCARD or key in minuend:
                continue
            result[key] = _subtract(minuend[WILDCARD], value, _child_path(path, key))
        result[WILDCARD] = _subtract(minuend[WILDCARD], fallback, _child_path(path, WILDCARD))

    return condense(result)


def invert_tree(a: Any) -> Any:
    """Mask allowing exactly the paths ``a`` denies."""
    return _invert(canonical(a))


def _invert(mask: Any) -> Any:
    kind = mask_kind(mask)
    if kind == MaskKind.ALLOW:
        return False
    if kind == MaskKind.DENY:
        return True

    result = {key: _invert(value) for key, value in mask.items() if key != WILDCARD}
    if WILDCARD in mask:
        wildcard = _invert(mask[WILDCARD])
        if mask_kind(wildcard) != MaskKind.DENY:
            result[WILDCARD] = wildcard
    else:
        # Unlisted keys were denied; now they are allowed.
        result[WILDCARD] = True
    return condense(result)


def _child_path(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key
