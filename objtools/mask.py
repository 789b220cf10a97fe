"""
Object masks: whitelists of fields on JSON-like documents.

A mask is stored as a plain tree that looks like this::

    {"foo": True, "bar": {"baz": True}}

This mask allows the fields ``foo`` and ``bar.baz`` of a document. The
reserved key ``"_"`` is a wildcard that applies to every key a node does not
list explicitly::

    {"foo": False, "bar": False, "_": True}

allows every field except ``foo`` and ``bar``. Lists in a document are
treated as mappings keyed by their stringified indexes, so a wildcard also
covers every element of a list. A single-element list inside a mask is
shorthand for a wildcard; these two masks are equivalent::

    {"foo": [{"bar": True, "baz": True}]}
    {"foo": {"_": {"bar": True, "baz": True}}}

The shorthand is rewritten into the wildcard form when a mask is built, so
mask trees never contain lists afterwards.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Optional

from .algebra import intersect_trees, invert_tree, subtract_trees, union_trees
from .exceptions import InvalidArgumentError
from .jsonpath_utils import JSONPathConverter
from .models import WILDCARD, ArrayWildcardPolicy, MaskConfig, MaskKind, mask_kind
from .utils import (
    deep_copy,
    deep_equals,
    is_scalar,
    is_sequence,
    join_path,
    set_path,
    split_path,
)

logger = logging.getLogger(__name__)

# Marks a document position that was filtered out entirely.
_MISSING = object()


def normalize_tree(tree: Any, config: Optional[MaskConfig] = None, path: str = "") -> Any:
    """
    Return a normalized deep copy of a raw mask tree.

    Single-element lists become ``{"_": element}`` and an empty list becomes
    ``{"_": False}``. Lists with more than one element are rejected, or
    truncated to their first element under ``ArrayWildcardPolicy.FIRST``.
    Dict keys are coerced to strings.

    Raises:
        InvalidArgumentError: For a multi-element list under the default
            ``REJECT`` policy
    """
    config = config or MaskConfig()

    if is_sequence(tree):
        if not tree:
            return {WILDCARD: False}
        if len(tree) > 1:
            if config.array_policy == ArrayWildcardPolicy.REJECT:
                raise InvalidArgumentError(
                    "Array wildcards in a mask must have exactly one element",
                    {"path": path or "<root>", "length": len(tree)}
                )
            logger.warning(
                "Array wildcard at %s has %d elements; using the first",
                path or "<root>", len(tree)
            )
        return {WILDCARD: normalize_tree(tree[0], config, join_path(path, WILDCARD))}

    if isinstance(tree, dict):
        return {
            str(key): normalize_tree(value, config, join_path(path, key))
            for key, value in tree.items()
        }

    return deep_copy(tree)


def _validate_tree(tree: Any) -> bool:
    if tree is True or tree is False:
        return True
    if isinstance(tree, dict):
        return all(_validate_tree(value) for value in tree.values())
    return False


class ObjectMask:
    """
    A whitelist of fields on an object.

    Args:
        mask: Raw mask tree, or another ObjectMask to copy
        config: Construction options (array shorthand policy, strict mode)

    Raises:
        InvalidArgumentError: If the tree has a multi-element array wildcard
            under the ``REJECT`` policy, or if ``config.strict`` is set and
            the tree contains leaves other than booleans
    """

    def __init__(self, mask: Any = False, config: Optional[MaskConfig] = None):
        self.config = config or MaskConfig()
        if isinstance(mask, ObjectMask):
            mask = mask.mask
        self.mask = normalize_tree(mask, self.config)

        if self.config.strict and not self.validate():
            raise InvalidArgumentError(
                "Mask contains leaves other than true and false",
                {"mask": deep_copy(self.mask)}
            )

    @classmethod
    def from_field_list(
        cls,
        fields: Iterable[str],
        config: Optional[MaskConfig] = None
    ) -> "ObjectMask":
        """
        Create a mask that allows each of the given dotted fields.

        Args:
            fields: Dotted paths to allow

        Returns:
            The created mask
        """
        tree = {}
        # Longest first, so a shorter field is never replaced by a node
        # built for a more specific one.
        for field in sorted(fields, key=len, reverse=True):
            set_path(tree, field, True)
        return cls(tree, config)

    @classmethod
    def from_jsonpaths(
        cls,
        expressions: Iterable[str],
        config: Optional[MaskConfig] = None
    ) -> "ObjectMask":
        """
        Create a mask from simple JSONPath expressions.

        ``$.items[*].id`` allows the ``id`` of every element of ``items``.

        Raises:
            InvalidArgumentError: For expressions that do not map onto a
                single mask path
        """
        tree = False
        for expression in expressions:
            segments = JSONPathConverter.to_segments(expression)
            tree = union_trees(tree, set_path({}, segments, True))
        return cls(tree, config)

    def to_tree(self) -> Any:
        """Return the internal tree that represents this mask."""
        return self.mask

    def copy(self) -> "ObjectMask":
        """Return an independent copy of this mask."""
        return ObjectMask(self.mask, self.config)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ObjectMask):
            return NotImplemented
        return deep_equals(self.mask, other.mask)

    __hash__ = None

    def __repr__(self) -> str:
        return f"ObjectMask({self.mask!r})"

    def validate(self) -> bool:
        """Check that the mask only contains dicts and booleans."""
        return _validate_tree(self.mask)

    # Query / application

    def get_sub_mask(self, path: str) -> "ObjectMask":
        """
        Return the part of this mask that applies below a dotted path.

        Walking stops early at a fully allowing or denying position.
        """
        return ObjectMask(self._resolve(path), self.config)

    def _resolve(self, path: str) -> Any:
        """Return the raw tree that applies below a dotted path, uncopied."""
        cur = self.mask
        for part in split_path(path):
            kind = mask_kind(cur)
            if kind == MaskKind.ALLOW:
                return True
            if kind == MaskKind.DENY:
                return False
            cur = cur[part] if part in cur else cur.get(WILDCARD, False)
        return cur if cur is not None else False

    def check_path(self, path: str) -> bool:
        """Return True if the path and everything beneath it is allowed."""
        return self._resolve(path) is True

    def filter_object(
        self,
        obj: Any,
        masked_out_hook: Optional[Callable[[str], Any]] = None
    ) -> Any:
        """
        Return a copy of an object including only the fields the mask allows.

        Allowed values are copied by reference, so the result may share
        structure with the input.

        Args:
            obj: Object to filter
            masked_out_hook: Called with the dotted path of each field that
                is removed, at the highest level where it is removed

        Returns:
            The filtered object, or None if the whole object is masked out
        """
        result = self._filter(obj, self.mask, "", masked_out_hook)
        return None if result is _MISSING else result

    def _filter(
        self,
        obj: Any,
        mask: Any,
        path: str,
        masked_out_hook: Optional[Callable[[str], Any]]
    ) -> Any:
        kind = mask_kind(mask)
        if kind == MaskKind.ALLOW:
            return obj
        if kind == MaskKind.DENY or is_scalar(obj):
            if masked_out_hook:
                masked_out_hook(path)
            return _MISSING

        if is_sequence(obj):
            result = []
            for index, value in enumerate(obj):
                filtered = self._filter_child(value, mask, str(index), path, masked_out_hook)
                if filtered is not _MISSING:
                    result.append(filtered)
            return tuple(result) if isinstance(obj, tuple) else result

        result = {}
        for key, value in obj.items():
            filtered = self._filter_child(value, mask, str(key), path, masked_out_hook)
            if filtered is not _MISSING:
                result[key] = filtered
        return result

    def _filter_child(self, value, mask, key, path, masked_out_hook):
        child_mask = mask[key] if key in mask else mask.get(WILDCARD, False)
        return self._filter(value, child_mask, join_path(path, key), masked_out_hook)

    def filter_dotted_object(
        self,
        dotted_obj: dict,
        masked_out_hook: Optional[Callable[[str], Any]] = None
    ) -> dict:
        """
        Remove disallowed fields from a one-level mapping of dotted paths.

        Args:
            dotted_obj: Mapping such as ``{"foo.bar": "baz"}``
            masked_out_hook: Called with each removed path

        Returns:
            A new mapping with only the allowed paths
        """
        result = {}
        for path, value in dotted_obj.items():
            if self.check_path(path):
                result[path] = value
            elif masked_out_hook:
                masked_out_hook(path)
        return result

    def get_masked_out_fields(self, obj: Any) -> list[str]:
        """Return the paths of fields in the object that the mask removes."""
        masked_out = []
        self.filter_object(obj, masked_out.append)
        return masked_out

    def get_dotted_masked_out_fields(self, dotted_obj: dict) -> list[str]:
        """Same as get_masked_out_fields() for a dotted mapping."""
        masked_out = []
        self.filter_dotted_object(dotted_obj, masked_out.append)
        return masked_out

    def check_fields(self, obj: Any) -> bool:
        """Return True if every field of the object is allowed."""
        return not self.get_masked_out_fields(obj)

    def check_dotted_fields(self, dotted_obj: dict) -> bool:
        """Return True if every path in a dotted mapping is allowed."""
        return all(self.check_path(path) for path in dotted_obj)

    def create_filter_func(self) -> Callable[[Any], Any]:
        """Return a function equivalent to calling filter_object() on its argument."""
        def filter_func(obj):
            return self.filter_object(obj)
        return filter_func

    # Mutators

    def add_field(self, path: str) -> "ObjectMask":
        """
        Allow a dotted field, modifying this mask in place.

        Fields that are already allowed leave the mask untouched. Wildcards
        on the way to the field are copied into explicit keys first, so
        siblings keep what they were allowed.

        Returns:
            This mask
        """
        if self.check_path(path):
            return self

        parts = split_path(path)
        node = self._branch_to(parts)
        node[parts[-1]] = True
        logger.debug("Added field %s to mask", path)
        return self

    def remove_field(self, path: str) -> "ObjectMask":
        """
        Disallow a dotted field, modifying this mask in place.

        A wildcard on the way to the field is branched: the field's key gets
        its own copy of the wildcard mask, and other keys keep using the
        wildcard unchanged.

        Returns:
            This mask

        Raises:
            InvalidArgumentError: If the path ends in the wildcard segment
        """
        parts = split_path(path)
        if parts[-1] == WILDCARD:
            raise InvalidArgumentError(
                "Cannot remove the wildcard field from a mask",
                {"path": path}
            )

        if mask_kind(self._resolve(path)) == MaskKind.DENY:
            return self

        node = self._branch_to(parts)
        node[parts[-1]] = False
        logger.debug("Removed field %s from mask", path)
        return self

    def _branch_to(self, parts: list[str]) -> dict:
        """
        Make every node along the path explicit and return the parent node
        of the last segment.
        """
        self.mask = self._as_node(self.mask)
        node = self.mask
        for part in parts[:-1]:
            if part in node:
                child = node[part]
            else:
                child = deep_copy(node.get(WILDCARD, False))
                if WILDCARD in node:
                    logger.debug("Branching wildcard into key %s", part)
            child = self._as_node(child)
            node[part] = child
            node = child
        return node

    @staticmethod
    def _as_node(mask: Any) -> dict:
        kind = mask_kind(mask)
        if kind == MaskKind.ALLOW:
            return {WILDCARD: True}
        if kind == MaskKind.DENY:
            return {}
        return mask

    def subtract_mask(self, other: Any) -> "ObjectMask":
        """
        Remove everything another mask allows from this mask, in place.

        Returns:
            This mask
        """
        self.mask = subtract_trees(self.mask, _as_tree(other, self.config))
        return self


def _as_tree(mask: Any, config: Optional[MaskConfig] = None) -> Any:
    if isinstance(mask, ObjectMask):
        return mask.mask
    return normalize_tree(mask, config)


def new_mask(tree: Any = False, config: Optional[MaskConfig] = None) -> ObjectMask:
    """Create an ObjectMask from a raw tree."""
    return ObjectMask(tree, config)


def mask_from_field_list(fields: Iterable[str], config: Optional[MaskConfig] = None) -> ObjectMask:
    """Create a mask allowing each of the given dotted fields."""
    return ObjectMask.from_field_list(fields, config)


def mask_from_jsonpaths(expressions: Iterable[str], config: Optional[MaskConfig] = None) -> ObjectMask:
    """Create a mask from simple JSONPath expressions."""
    return ObjectMask.from_jsonpaths(expressions, config)


def union(*masks: Any, config: Optional[MaskConfig] = None) -> ObjectMask:
    """
    Combine masks so the result allows any field that any of them allows.

    Args:
        masks: ObjectMasks or raw mask trees

    Returns:
        The combined mask (denies everything when called without masks)
    """
    logger.debug("Computing union of %d masks", len(masks))
    result = False
    for mask in masks:
        result = union_trees(result, _as_tree(mask, config))
        if result is True:
            break
    return ObjectMask(result, config)


def intersect(*masks: Any, config: Optional[MaskConfig] = None) -> ObjectMask:
    """
    Combine masks so the result only allows fields that all of them allow.

    Args:
        masks: ObjectMasks or raw mask trees

    Returns:
        The combined mask (allows everything when called without masks)
    """
    logger.debug("Computing intersection of %d masks", len(masks))
    result = True
    for mask in masks:
        result = intersect_trees(result, _as_tree(mask, config))
        if result is False:
            break
    return ObjectMask(result, config)


def subtract(minuend: Any, subtrahend: Any, config: Optional[MaskConfig] = None) -> ObjectMask:
    """
    Return a mask allowing what ``minuend`` allows and ``subtrahend`` does not.

    Raises:
        InvalidArgumentError: When a fully allowed position in the minuend
            would have to lose only some of its sub-fields
    """
    logger.debug("Subtracting mask")
    return ObjectMask(
        subtract_trees(_as_tree(minuend, config), _as_tree(subtrahend, config)),
        config
    )


def invert(mask: Any, config: Optional[MaskConfig] = None) -> ObjectMask:
    """Return a mask allowing exactly the fields the given mask denies."""
    return ObjectMask(invert_tree(_as_tree(mask, config)), config)
