"""Error taxonomy for category operations.

Validation failures are recoverable and caller-facing: each carries a stable
`code` plus structured `details` so the caller can render a specific message.
Store failures are a separate branch so callers can decide whether to retry.
"""

from typing import Any


class CategoryError(Exception):
    """Base class for every error raised by the category engine."""

    code = "CATEGORY_ERROR"

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API error payloads."""
        return {"code": self.code, "message": self.message, "details": self.details}


class CategoryValidationError(CategoryError):
    """A requested mutation would break a tree invariant."""

    code = "VALIDATION_ERROR"


class DuplicateSlugError(CategoryValidationError):
    """Slug already used by another category."""

    code = "DUPLICATE_SLUG"

    def __init__(self, slug: str) -> None:
        super().__init__("A category with this slug already exists", slug=slug)


class DuplicateNameError(CategoryValidationError):
    """Name already used by a sibling (case-insensitive)."""

    code = "DUPLICATE_NAME_UNDER_PARENT"

    def __init__(self, name: str, parent_id: str | None) -> None:
        super().__init__(
            "A category with this name already exists under the selected parent",
            name=name,
            parent_id=parent_id,
        )


class DepthExceededError(CategoryValidationError):
    """Placement would put a node deeper than MAX_CATEGORY_DEPTH."""

    code = "DEPTH_EXCEEDED"

    def __init__(self, depth: int, max_depth: int, category_id: str | None = None) -> None:
        super().__init__(
            f"Maximum nesting depth ({max_depth + 1} levels) would be exceeded",
            depth=depth,
            max_depth=max_depth,
            category_id=category_id,
        )


class CycleDetectedError(CategoryValidationError):
    """Move would make a node its own ancestor."""

    code = "CYCLE_DETECTED"

    def __init__(self, category_id: str, new_parent_id: str) -> None:
        super().__init__(
            "Cannot move category: would create circular reference",
            category_id=category_id,
            new_parent_id=new_parent_id,
        )


class CategoryNotFoundError(CategoryValidationError):
    """Referenced category (self, parent or reassignment target) does not exist."""

    code = "CATEGORY_NOT_FOUND"

    def __init__(self, category_id: str | None = None, *, role: str = "category", slug: str | None = None) -> None:
        label = role.replace("_", " ")
        super().__init__(
            f"{label.capitalize()} not found",
            category_id=category_id,
            role=role,
            slug=slug,
        )


class HasAttachedContentError(CategoryValidationError):
    """Delete attempted without a reassignment target while posts exist."""

    code = "HAS_ATTACHED_CONTENT"

    def __init__(self, category_id: str, post_count: int) -> None:
        super().__init__(
            "Cannot delete category with posts. Please reassign posts first",
            category_id=category_id,
            post_count=post_count,
        )


class InvalidReassignTargetError(CategoryValidationError):
    """Reassignment target is the category being deleted."""

    code = "INVALID_REASSIGN_TARGET"

    def __init__(self, category_id: str) -> None:
        super().__init__(
            "Posts cannot be reassigned to the category being deleted",
            category_id=category_id,
        )


class CategoryStoreError(CategoryError):
    """Persistent store failed (connectivity, constraint, transaction conflict)."""

    code = "STORE_ERROR"
