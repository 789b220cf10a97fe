"""
objtools - Utilities for tree-shaped data and field masks

Deep comparison, copying and dotted-path access for nested mappings and
lists, plus an object mask engine: field whitelists that can be combined,
inverted, subtracted, queried and applied to filter documents.
"""

import logging

from .mask import (
    ObjectMask,
    new_mask,
    mask_from_field_list,
    mask_from_jsonpaths,
    union,
    intersect,
    subtract,
    invert,
)
from .models import (
    WILDCARD,
    MaskConfig,
    MaskKind,
    ArrayWildcardPolicy,
    LogLevel,
    mask_kind,
)
from .exceptions import (
    ObjtoolsError,
    InvalidArgumentError,
    MaskParseError,
)
from .utils import (
    is_scalar,
    deep_copy,
    deep_equals,
    scalar_equals,
    get_path,
    set_path,
    delete_path,
    collapse_to_dotted,
)
from .loader import (
    MaskLoader,
    load_masks,
)

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "1.0.0"
__all__ = [
    # Masks
    "ObjectMask",
    "new_mask",
    "mask_from_field_list",
    "mask_from_jsonpaths",
    "union",
    "intersect",
    "subtract",
    "invert",
    # Models
    "WILDCARD",
    "MaskConfig",
    "MaskKind",
    "ArrayWildcardPolicy",
    "LogLevel",
    "mask_kind",
    # Errors
    "ObjtoolsError",
    "InvalidArgumentError",
    "MaskParseError",
    # Tree utilities
    "is_scalar",
    "deep_copy",
    "deep_equals",
    "scalar_equals",
    "get_path",
    "set_path",
    "delete_path",
    "collapse_to_dotted",
    # Loading
    "MaskLoader",
    "load_masks",
]
