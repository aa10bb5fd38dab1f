#!/usr/bin/env python3

from logger import get_logger

logger = get_logger()


def cmd_create(args, services):
    """Create a new event."""
    event = services.events.create(args.name)
    logger.info(f"✓ Event created successfully with ID: {event.id}")
    logger.info(f"  Name: {event.name}")


def cmd_list(args, services):
    """List all events in the database."""
    events = services.events.find_all()

    if not events:
        logger.info("No events found.")
        return

    logger.info("\nEvents:")
    logger.info("=" * 80)
    for event in events:
        logger.info(f"ID: {event.id}")
        logger.info(f"Name: {event.name}")
        logger.info(f"Created: {event.created_at}")
        logger.info("-" * 80)

    logger.info(f"\nTotal events: {len(events)}")


def cmd_show(args, services):
    """Show one event and a summary of its categories."""
    event = services.events.get(args.event_id)
    tree = services.categories.fetch_full_tree(event.id)
    roots = [c for c in tree if c.depth == 0]

    logger.info(f"ID: {event.id}")
    logger.info(f"Name: {event.name}")
    logger.info(f"Created: {event.created_at}")
    logger.info(f"Root categories: {len(roots)}")
    logger.info(f"Total categories: {len(tree)}")


def setup_parser(subparsers):
    """Setup events subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "events",
        help="Manage events",
        description="Create, list, and inspect events",
    )

    events_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available event commands",
        dest="subcommand",
        required=True,
    )

    create_parser = events_subparsers.add_parser("create", help="Create a new event")
    create_parser.add_argument("name", help="Name of the event")
    create_parser.set_defaults(func=cmd_create)

    list_parser = events_subparsers.add_parser("list", help="List all events")
    list_parser.set_defaults(func=cmd_list)

    show_parser = events_subparsers.add_parser("show", help="Show an event by ID")
    show_parser.add_argument("event_id", type=int, help="ID of the event")
    show_parser.set_defaults(func=cmd_show)
