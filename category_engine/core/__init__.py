"""Core module - pure tree operations, validation, paths and errors."""

from category_engine.core.errors import (
    CategoryError,
    CategoryNotFoundError,
    CategoryStoreError,
    CategoryValidationError,
    CycleDetectedError,
    DepthExceededError,
    DuplicateNameError,
    DuplicateSlugError,
    HasAttachedContentError,
    InvalidReassignTargetError,
)
from category_engine.core.path_codec import (
    CategoryPath,
    format_path_for_display,
    parse_path,
    serialize_path,
)
from category_engine.core.tree_ops import (
    CategoryNode,
    build_tree,
    flatten_tree,
    get_ancestors,
    get_descendants,
)
from category_engine.core.validation import (
    MAX_CATEGORY_DEPTH,
    calculate_depth,
    validate_depth,
    validate_no_cycle,
)

__all__ = [
    "MAX_CATEGORY_DEPTH",
    "CategoryError",
    "CategoryNode",
    "CategoryNotFoundError",
    "CategoryPath",
    "CategoryStoreError",
    "CategoryValidationError",
    "CycleDetectedError",
    "DepthExceededError",
    "DuplicateNameError",
    "DuplicateSlugError",
    "HasAttachedContentError",
    "InvalidReassignTargetError",
    "build_tree",
    "calculate_depth",
    "flatten_tree",
    "format_path_for_display",
    "get_ancestors",
    "get_descendants",
    "parse_path",
    "serialize_path",
    "validate_depth",
    "validate_no_cycle",
]
