"""Applies the SQL schema migrations in db/migrations.

Migration files are applied in lexical order and recorded in the
schema_migrations table so each one runs exactly once per database.
"""

import sqlite3
from pathlib import Path
from typing import List, Set

from logger import get_logger

logger = get_logger()


def init_schema_migrations_table(conn) -> None:
    conn.execute("""
        CREATE TABLE IF NOT EXISTS schema_migrations (
            migration_file TEXT PRIMARY KEY,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)


def get_applied_migrations(conn) -> Set[str]:
    cursor = conn.execute(
        "SELECT migration_file FROM schema_migrations ORDER BY migration_file"
    )
    return {row[0] for row in cursor.fetchall()}


def get_available_migrations(migrations_dir: Path) -> List[str]:
    if not migrations_dir.exists():
        return []
    return sorted(path.name for path in migrations_dir.glob("*.sql"))


def get_pending_migrations(conn, migrations_dir: Path) -> List[str]:
    """Return migration files not yet recorded as applied, in apply order."""
    init_schema_migrations_table(conn)
    applied = get_applied_migrations(conn)
    return [m for m in get_available_migrations(migrations_dir) if m not in applied]


def apply_migration(conn, migrations_dir: Path, migration_file: str) -> None:
    """Run one migration script and record it.

    The script and its bookkeeping row commit together; on failure neither
    is kept.

    Raises:
        sqlite3.Error: If the script fails.
    """
    sql = (migrations_dir / migration_file).read_text()

    conn.execute("BEGIN")
    try:
        # executescript would commit our BEGIN, so run statements one at a time
        for statement in _split_statements(sql):
            conn.execute(statement)
        conn.execute(
            "INSERT INTO schema_migrations (migration_file) VALUES (?)",
            (migration_file,),
        )
        conn.commit()
    except Exception as e:
        conn.rollback()
        logger.error(f"Error applying migration {migration_file}: {e}")
        raise

    logger.info(f"Applied migration: {migration_file}")


def apply_pending(conn, migrations_dir: Path) -> List[str]:
    """Apply every pending migration.

    Returns:
        Names of the migrations that were applied, in order.
    """
    # Persistent per database file; lets readers see a snapshot while a writer
    # holds the lock. In-memory databases keep their own journal mode.
    conn.execute("PRAGMA journal_mode = WAL")

    pending = get_pending_migrations(conn, migrations_dir)
    for migration in pending:
        apply_migration(conn, migrations_dir, migration)
    return pending


def _split_statements(sql: str) -> List[str]:
    """Split a script into complete statements, keeping trigger bodies intact."""
    statements = []
    buffer = ""
    for line in sql.splitlines(keepends=True):
        if not buffer and (not line.strip() or line.strip().startswith("--")):
            continue
        buffer += line
        if sqlite3.complete_statement(buffer):
            statements.append(buffer.strip())
            buffer = ""
    if buffer.strip():
        statements.append(buffer.strip())
    return statements
