#!/usr/bin/env python3

import sys
import json
from pathlib import Path
from logger import get_logger
from tree import build_forest, walk

logger = get_logger()


def _log_tree(categories):
    """Log categories as an indented tree."""
    for depth, node in walk(build_forest(categories)):
        logger.info(f"{'  ' * depth}- {node.category.label} (ID: {node.category.id})")


def cmd_create(args, services):
    """Create a category under an event."""
    category = services.categories.create(args.label, args.event_id, args.parent)

    logger.info(f"✓ Category created successfully with ID: {category.id}")
    logger.info(f"  Label: {category.label}")
    logger.info(f"  Event ID: {category.event_id}")
    if category.parent_id:
        logger.info(f"  Parent ID: {category.parent_id}")


def cmd_roots(args, services):
    """List the root categories of an event."""
    roots = services.categories.fetch_roots(args.event_id)

    if not roots:
        logger.info(f"No categories found for event {args.event_id}.")
        return

    for category in roots:
        logger.info(f"ID: {category.id}  Label: {category.label}")
    logger.info(f"\nTotal root categories: {len(roots)}")


def cmd_tree(args, services):
    """Show every category of an event as a tree."""
    categories = services.categories.fetch_full_tree(args.event_id)

    if not categories:
        logger.info(f"No categories found for event {args.event_id}.")
        return

    if args.json:
        print(json.dumps([c.to_dict() for c in categories], indent=2))
        return

    _log_tree(categories)
    logger.info(f"\nTotal categories: {len(categories)}")


def cmd_subtree(args, services):
    """Show a category and its descendants."""
    categories = services.categories.fetch_subtree(args.category_id)

    if not categories:
        logger.info(f"Category with ID {args.category_id} not found.")
        return

    if args.json:
        print(json.dumps([node.to_dict() for node in build_forest(categories)], indent=2))
        return

    _log_tree(categories)


def cmd_move(args, services):
    """Move a category (and its subtree) under a new parent."""
    category = services.categories.move_subtree(args.category_id, args.parent)

    if category.parent_id is None:
        logger.info(f"✓ Category '{category.label}' is now a root category.")
    else:
        logger.info(
            f"✓ Category '{category.label}' moved under category {category.parent_id}."
        )


def cmd_delete(args, services):
    """Delete a category and its entire subtree."""
    subtree = services.categories.fetch_subtree(args.category_id)
    if subtree:
        logger.info("\nCategories to delete:")
        _log_tree(subtree)

        if not args.yes:
            confirm = (
                input(f"\nDelete these {len(subtree)} categories? (yes/no): ")
                .strip()
                .lower()
            )
            if confirm != "yes":
                logger.info("Deletion cancelled.")
                return

    # A missing category surfaces as NotFoundError here
    services.categories.delete(args.category_id)
    logger.info(f"✓ Category {args.category_id} and its subtree deleted successfully.")


def cmd_seed(args, services):
    """Create a nested category tree from a JSON file."""
    seed_file = Path(args.file)

    if not seed_file.exists():
        logger.error(f"Seed file not found: {seed_file}")
        sys.exit(1)

    try:
        with open(seed_file, "r") as f:
            nodes = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Error parsing JSON file: {e}")
        sys.exit(1)

    created = services.categories.create_tree(args.event_id, nodes, parent_id=args.parent)

    logger.info(f"\nSeeded {len(created)} categories into event {args.event_id}")
    _log_tree(created)


def setup_parser(subparsers):
    """Setup categories subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "categories",
        help="Manage categories",
        description="Create, browse, move, and delete event category trees",
    )

    categories_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available category commands",
        dest="subcommand",
        required=True,
    )

    # categories create
    create_parser = categories_subparsers.add_parser(
        "create", help="Create a category under an event"
    )
    create_parser.add_argument("event_id", type=int, help="ID of the owning event")
    create_parser.add_argument("label", help="Category label")
    create_parser.add_argument(
        "--parent", type=int, default=None, help="ID of the parent category"
    )
    create_parser.set_defaults(func=cmd_create)

    # categories roots
    roots_parser = categories_subparsers.add_parser(
        "roots", help="List root categories of an event"
    )
    roots_parser.add_argument("event_id", type=int, help="ID of the event")
    roots_parser.set_defaults(func=cmd_roots)

    # categories tree
    tree_parser = categories_subparsers.add_parser(
        "tree", help="Show the full category tree of an event"
    )
    tree_parser.add_argument("event_id", type=int, help="ID of the event")
    tree_parser.add_argument(
        "--json", action="store_true", help="Print the flat depth-annotated list as JSON"
    )
    tree_parser.set_defaults(func=cmd_tree)

    # categories subtree
    subtree_parser = categories_subparsers.add_parser(
        "subtree", help="Show a category and its descendants"
    )
    subtree_parser.add_argument("category_id", type=int, help="ID of the category")
    subtree_parser.add_argument(
        "--json", action="store_true", help="Print the nested subtree as JSON"
    )
    subtree_parser.set_defaults(func=cmd_subtree)

    # categories move
    move_parser = categories_subparsers.add_parser(
        "move", help="Move a category and its subtree"
    )
    move_parser.add_argument("category_id", type=int, help="ID of the category to move")
    move_parser.add_argument(
        "--parent",
        type=int,
        default=None,
        help="ID of the new parent (omit to make it a root category)",
    )
    move_parser.set_defaults(func=cmd_move)

    # categories delete
    delete_parser = categories_subparsers.add_parser(
        "delete", help="Delete a category and its subtree"
    )
    delete_parser.add_argument(
        "category_id",
        type=int,
        help="ID of the category to delete",
    )
    delete_parser.add_argument(
        "--yes", action="store_true", help="Skip the confirmation prompt"
    )
    delete_parser.set_defaults(func=cmd_delete)

    # categories seed
    seed_parser = categories_subparsers.add_parser(
        "seed", help="Create a nested category tree from a JSON file"
    )
    seed_parser.add_argument("event_id", type=int, help="ID of the owning event")
    seed_parser.add_argument(
        "file", help='JSON list of {"label": ..., "children": [...]} nodes'
    )
    seed_parser.add_argument(
        "--parent", type=int, default=None, help="Attach the tree under this category"
    )
    seed_parser.set_defaults(func=cmd_seed)
