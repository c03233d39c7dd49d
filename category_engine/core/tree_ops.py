"""Pure tree operations over a flat list of category nodes.

The flat list (one node per persisted row) is the source of truth. Nested
trees are read-only projections rebuilt on demand; none of these functions
mutate their input.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, replace


@dataclass
class CategoryNode:
    """Category as seen by the tree algorithms.

    Attributes:
        id: Opaque unique identifier
        name: Display name, unique among siblings (case-insensitive)
        slug: URL-safe identifier, globally unique
        description: Optional free text
        parent_id: Parent identifier, None for roots
        depth: 0 for roots, parent depth + 1 otherwise
        children: Only populated in tree-shaped views
        post_count: Only populated by count-annotated queries
    """

    id: str
    name: str
    slug: str
    description: str | None = None
    parent_id: str | None = None
    depth: int = 0
    children: list[CategoryNode] | None = None
    post_count: int | None = None


def build_tree(categories: list[CategoryNode]) -> list[CategoryNode]:
    """Nest a flat list of nodes under their parents.

    Nodes whose parent is missing from the input are returned as roots.
    Sibling order follows input order.

    Args:
        categories: Flat list of nodes

    Returns:
        Root nodes (copies), each with a fully populated `children` list
    """
    if not categories:
        return []

    by_id: dict[str, CategoryNode] = {
        category.id: replace(category, children=[]) for category in categories
    }

    roots: list[CategoryNode] = []
    for category in categories:
        node = by_id[category.id]
        parent = by_id.get(category.parent_id) if category.parent_id is not None else None
        if parent is None:
            roots.append(node)
        else:
            parent.children.append(node)  # type: ignore[union-attr]

    return roots


def flatten_tree(tree: list[CategoryNode]) -> list[CategoryNode]:
    """Flatten a nested tree in pre-order, dropping `children` from each node."""
    result: list[CategoryNode] = []

    def traverse(nodes: list[CategoryNode]) -> None:
        for node in nodes:
            result.append(replace(node, children=None))
            if node.children:
                traverse(node.children)

    traverse(tree or [])
    return result


def get_ancestors(category_id: str, categories: list[CategoryNode]) -> list[CategoryNode]:
    """Return the ancestors of a node ordered root first.

    The node itself is excluded. Unknown ids and roots yield an empty list.
    The walk stops at a dangling parent reference or a repeated id.
    """
    by_id = {category.id: category for category in categories}
    current = by_id.get(category_id)
    if current is None:
        return []

    ancestors: list[CategoryNode] = []
    seen = {category_id}
    parent_id = current.parent_id
    while parent_id is not None and parent_id not in seen:
        parent = by_id.get(parent_id)
        if parent is None:
            break
        ancestors.append(parent)
        seen.add(parent_id)
        parent_id = parent.parent_id

    ancestors.reverse()
    return ancestors


def get_descendants(category_id: str, categories: list[CategoryNode]) -> list[CategoryNode]:
    """Return every descendant of a node, breadth first.

    The node itself is excluded. Each level keeps input order.
    """
    children_of: dict[str | None, list[CategoryNode]] = {}
    for category in categories:
        children_of.setdefault(category.parent_id, []).append(category)

    descendants: list[CategoryNode] = []
    visited = {category_id}
    queue: deque[str] = deque([category_id])

    while queue:
        current_id = queue.popleft()
        for child in children_of.get(current_id, []):
            if child.id in visited:
                continue
            visited.add(child.id)
            descendants.append(child)
            queue.append(child.id)

    return descendants
