"""Root-to-leaf category paths for breadcrumbs.

The string form keeps names only, so `parse_path` cannot recover ids.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from category_engine.core.tree_ops import CategoryNode

PATH_DELIMITER = "/"
DISPLAY_DELIMITER = " > "


@dataclass(frozen=True)
class CategoryPath:
    """Category names (and ids, when known) from root to leaf."""

    segments: list[str] = field(default_factory=list)
    ids: list[str] = field(default_factory=list)


def path_from_nodes(nodes: Iterable[CategoryNode]) -> CategoryPath:
    """Build a path from an ordered root-to-leaf node chain."""
    chain = list(nodes)
    return CategoryPath(
        segments=[node.name for node in chain],
        ids=[node.id for node in chain],
    )


def serialize_path(path: CategoryPath) -> str:
    """Join segments with "/" ("" for an empty path)."""
    if not path.segments:
        return ""
    return PATH_DELIMITER.join(path.segments)


def parse_path(path_string: str) -> CategoryPath:
    """Split a serialized path back into segments; ids are always empty."""
    if not path_string or not path_string.strip():
        return CategoryPath()
    return CategoryPath(segments=path_string.split(PATH_DELIMITER), ids=[])


def format_path_for_display(path: CategoryPath) -> str:
    """Join segments with " > " for display."""
    if not path.segments:
        return ""
    return DISPLAY_DELIMITER.join(path.segments)
