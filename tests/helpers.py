"""Helper utilities for tests."""

from pathlib import Path
import sqlite3

from db.migrator import apply_pending


def run_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> None:
    """Run all SQL migrations in order.

    Args:
        conn: SQLite connection (autocommit mode) to run migrations against.
        migrations_dir: Path to directory containing .sql migration files.
    """
    apply_pending(conn, migrations_dir)


def build_chain(services, event_id, labels):
    """Create a parent-to-child chain of categories, one per label.

    Returns:
        The created categories, shallowest first.
    """
    chain = []
    parent_id = None
    for label in labels:
        category = services.categories.create(label, event_id, parent_id)
        chain.append(category)
        parent_id = category.id
    return chain


def corrupt_parent(services, category_id, parent_id):
    """Write a parent edge directly, bypassing every service check."""
    with services.db_manager.connect() as conn:
        conn.execute(
            "UPDATE categories SET parent_id = ? WHERE id = ?", (parent_id, category_id)
        )
