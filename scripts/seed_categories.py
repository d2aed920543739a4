#!/usr/bin/env python
"""Seed a local database with a demo category hierarchy.

This script:
1. Creates the categories/products tables if missing
2. Inserts a small three-level category tree through the category service
3. Prints the built tree with its rollup counters

Usage:
    # Create tables and seed the demo tree
    python scripts/seed_categories.py

    # Only print the current tree
    python scripts/seed_categories.py --show

    # Print a search result
    python scripts/seed_categories.py --show --query glass
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.config import settings
from app.core.filter_engine import iter_tree
from app.infra.database import close_db_engine, create_tables
from app.infra.logging import get_logger, setup_logging
from app.schemas.category import CategoryCreate, TreeNode
from app.services.category_service import CategoryMutationError, CategoryService
from app.services.category_store import SqlCategoryStore

setup_logging()
logger = get_logger(__name__)


# name -> children, three levels deep
DEMO_TREE: dict[str, dict[str, list[str]]] = {
    "Vehicles": {
        "Armor": ["Ballistic Glass", "Door Panels"],
        "Tires": ["Run-Flat"],
    },
    "Body Armor": {
        "Plates": ["Ceramic", "Steel"],
        "Helmets": [],
    },
    "Accessories": {},
}


async def seed(service: CategoryService) -> int:
    """Create the demo tree, skipping names that already exist at the same level.

    Returns:
        Number of categories created
    """
    hierarchy = await service.get_hierarchy()
    existing = {(node.parent_id, node.name): node.id for node in hierarchy.nodes}
    created = 0

    async def ensure(name: str, parent_id: int | None) -> int:
        nonlocal created
        if (parent_id, name) in existing:
            return existing[(parent_id, name)]
        node = await service.create_category(CategoryCreate(name=name, parent_id=parent_id))
        existing[(parent_id, name)] = node.id
        created += 1
        return node.id

    for main_name, categories in DEMO_TREE.items():
        main_id = await ensure(main_name, None)
        for category_name, subcategories in categories.items():
            category_id = await ensure(category_name, main_id)
            for subcategory_name in subcategories:
                await ensure(subcategory_name, category_id)

    return created


def print_tree(forest: list[TreeNode]) -> None:
    """Print the forest with counters."""
    if not forest:
        print("  (no categories)")
        return
    for node in iter_tree(forest):
        status = "" if node.is_active else " [inactive]"
        print(
            f"  {'    ' * node.depth}- {node.name} (id={node.id}){status}  "
            f"products {node.total_published_product_count}/{node.total_product_count}  "
            f"subcategories {node.direct_subcategory_count}/{node.total_subcategory_count}"
        )


async def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Seed and inspect the category hierarchy"
    )
    parser.add_argument(
        "--show",
        action="store_true",
        help="Only print the current tree, do not seed",
    )
    parser.add_argument(
        "--query",
        default=None,
        help="Name search applied to the printed tree",
    )

    args = parser.parse_args()
    service = CategoryService(SqlCategoryStore(), max_depth=settings.category_max_depth)

    try:
        if not args.show:
            await create_tables()
            try:
                created = await seed(service)
            except CategoryMutationError as e:
                logger.error("Seeding rejected", kind=e.kind.value, reason=e.message)
                return 1
            print(f"Created {created} categories")

        result, hierarchy = await service.get_tree(query=args.query)
        for warning in hierarchy.warnings:
            print(f"  ! {warning.kind.value}: {warning.message}")
        print_tree(result.forest)
        return 0
    finally:
        await close_db_engine()


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
