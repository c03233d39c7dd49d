#!/usr/bin/env python
"""Seed a local database with a demo category tree.

This script:
1. Creates the category, post and activity tables if missing
2. Creates a small three-level category tree through CategoryService

Usage:
    # Seed the default demo tree
    DB_URL=sqlite+aiosqlite:///./local.db python scripts/seed_categories.py

    # Print the current tree
    python scripts/seed_categories.py --show
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from category_engine.core.errors import CategoryError
from category_engine.core.path_codec import format_path_for_display, path_from_nodes
from category_engine.core.tree_ops import CategoryNode, flatten_tree, get_ancestors
from category_engine.infra.database import close_db_engine, create_tables
from category_engine.infra.logging import get_logger, setup_logging
from category_engine.services.category_service import CategoryService

setup_logging()
logger = get_logger(__name__)


# (name, parent name) in creation order
DEMO_TREE = [
    ("Tech", None),
    ("Web", "Tech"),
    ("React", "Web"),
    ("Python", "Tech"),
    ("Life", None),
    ("Travel", "Life"),
]


async def seed(service: CategoryService, tree: list[tuple[str, str | None]]) -> int:
    """Create every category of `tree`, skipping ones that already exist.

    Returns:
        Number of categories created
    """
    created: dict[str, str] = {
        node.name: node.id for node in await service.get_all_categories()
    }
    count = 0

    for name, parent_name in tree:
        if name in created:
            logger.info("Category already present", name=name)
            continue

        parent_id = created.get(parent_name) if parent_name else None
        try:
            node = await service.create_category(
                name=name,
                slug=service.generate_slug(name),
                parent_id=parent_id,
            )
        except CategoryError as e:
            logger.error("Failed to seed category", name=name, error_code=e.code, error=e.message)
            continue

        created[name] = node.id
        count += 1

    return count


def render(tree: list[CategoryNode]) -> list[str]:
    """Render a nested tree as indented display paths."""
    flat = flatten_tree(tree)
    lines = []
    for node in flat:
        chain = [*get_ancestors(node.id, flat), node]
        path = format_path_for_display(path_from_nodes(chain))
        lines.append(f"{'  ' * node.depth}{path}  ({node.post_count or 0} posts)")
    return lines


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Seed a local database with demo categories",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--show",
        action="store_true",
        help="Only print the current category tree",
    )
    return parser.parse_args()


async def main() -> int:
    """Main entry point."""
    args = parse_args()
    service = CategoryService()

    try:
        await create_tables()

        if not args.show:
            count = await seed(service, DEMO_TREE)
            print(f"Created {count} categories")

        print("\nCategory tree:")
        print("-" * 40)
        for line in render(await service.get_category_tree()):
            print(line)
        return 0

    except CategoryError as e:
        print(f"Error: {e.message}")
        return 1

    finally:
        await close_db_engine()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
