"""Structural validation for category placement."""

from category_engine.core.tree_ops import CategoryNode, get_descendants

# 0-indexed: root (0), child (1), grandchild (2)
MAX_CATEGORY_DEPTH = 2


def calculate_depth(parent_id: str | None, categories: list[CategoryNode]) -> int:
    """Depth a node would have under `parent_id`.

    Returns 0 for roots and, as a fallback, when the parent is not in
    `categories`. Callers that need a strict answer check the parent exists.
    """
    if parent_id is None:
        return 0

    for category in categories:
        if category.id == parent_id:
            return category.depth + 1

    return 0


def validate_depth(parent_id: str | None, categories: list[CategoryNode]) -> bool:
    """True if a child of `parent_id` stays within MAX_CATEGORY_DEPTH."""
    return calculate_depth(parent_id, categories) <= MAX_CATEGORY_DEPTH


def validate_no_cycle(
    category_id: str,
    new_parent_id: str,
    categories: list[CategoryNode],
) -> bool:
    """True if re-parenting `category_id` under `new_parent_id` keeps the tree acyclic.

    Self-parenting and parenting under one of its own descendants are
    rejected. Moving under an ancestor or an unrelated node is fine.
    """
    if category_id == new_parent_id:
        return False

    return all(
        descendant.id != new_parent_id
        for descendant in get_descendants(category_id, categories)
    )
