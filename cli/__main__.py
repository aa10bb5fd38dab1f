#!/usr/bin/env python3
"""
Canopy CLI - Command-line interface for events and their category trees.

Usage:
    python -m cli <command> <subcommand> [options]

Commands:
    events       Create and inspect events
    categories   Build, browse, move and delete category trees
    migrate      Database migrations

Examples:
    python -m cli migrate apply
    python -m cli events create "PyCon 2026"
    python -m cli categories create 1 Talks
    python -m cli categories create 1 Keynotes --parent 1
    python -m cli categories tree 1
    python -m cli categories move 2 --parent 5
"""

import sys
import argparse
from cli import events, categories, migrate
from config import load_config
from errors import StoreError
from services.base import Services
from db.manager import DatabaseManager
from logger import setup_logging, get_logger

# Exit status per error code; unknown failures exit with 1
EXIT_CODES = {
    "VALIDATION_ERROR": 2,
    "INVALID_REFERENCE": 2,
    "NOT_FOUND": 3,
    "INVARIANT_VIOLATION": 4,
    "BACKEND_ERROR": 5,
    "TIMEOUT": 6,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cli",
        description="Canopy - Hierarchical categories for events",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    events.setup_parser(subparsers)
    categories.setup_parser(subparsers)
    migrate.setup_parser(subparsers)

    return parser


def run(args, config) -> int:
    """Dispatch parsed arguments to their handler.

    Returns:
        Process exit status.
    """
    try:
        if args.command == "migrate":
            # Migrate commands need db_manager for raw database operations
            args.func(args, DatabaseManager(config))
        else:
            args.func(args, Services(config))
    except StoreError as e:
        get_logger().error(f"Error: {e.message}")
        return EXIT_CODES.get(e.code, 1)
    return 0


def main():
    """Main CLI entry point with subcommands."""
    parser = build_parser()
    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        config = load_config()
        setup_logging(config)
        status = run(args, config)
    except Exception as e:
        print(f"Error: {e}")
        sys.exit(1)

    sys.exit(status)


if __name__ == "__main__":
    main()
