import sqlite3

import pytest

from config import get_migrations_dir
from db import migrator


@pytest.fixture
def conn():
    conn = sqlite3.connect(":memory:", isolation_level=None)
    conn.execute("PRAGMA foreign_keys = ON")
    yield conn
    conn.close()


class TestMigrator:
    """Tests for the schema migration runner."""

    def test_apply_pending_applies_all_in_order(self, conn):
        applied = migrator.apply_pending(conn, get_migrations_dir())

        assert applied == sorted(applied)
        assert applied == migrator.get_available_migrations(get_migrations_dir())
        assert migrator.get_applied_migrations(conn) == set(applied)

    def test_apply_pending_is_idempotent(self, conn):
        migrator.apply_pending(conn, get_migrations_dir())

        assert migrator.apply_pending(conn, get_migrations_dir()) == []

    def test_failed_migration_is_not_recorded(self, conn, tmp_path):
        (tmp_path / "001_ok.sql").write_text("CREATE TABLE ok (id INTEGER);\n")
        (tmp_path / "002_broken.sql").write_text(
            "CREATE TABLE half (id INTEGER);\nTHIS IS NOT SQL;\n"
        )

        with pytest.raises(sqlite3.Error):
            migrator.apply_pending(conn, tmp_path)

        assert migrator.get_applied_migrations(conn) == {"001_ok.sql"}
        tables = {
            row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        }
        assert "ok" in tables
        assert "half" not in tables

    def test_missing_directory_has_no_migrations(self, tmp_path):
        assert migrator.get_available_migrations(tmp_path / "nope") == []


class TestSchema:
    """Tests for the constraints the schema enforces on its own."""

    @pytest.fixture
    def schema(self, conn):
        migrator.apply_pending(conn, get_migrations_dir())
        conn.execute("INSERT INTO events (id, name) VALUES (1, 'One'), (2, 'Two')")
        conn.execute("INSERT INTO categories (id, label, event_id) VALUES (10, 'Root', 1)")
        return conn

    def test_event_id_is_immutable(self, schema):
        with pytest.raises(sqlite3.IntegrityError, match="immutable"):
            schema.execute("UPDATE categories SET event_id = 2 WHERE id = 10")

    def test_parent_must_share_event_on_insert(self, schema):
        with pytest.raises(sqlite3.IntegrityError, match="different event"):
            schema.execute(
                "INSERT INTO categories (label, event_id, parent_id) VALUES ('X', 2, 10)"
            )

    def test_parent_must_share_event_on_update(self, schema):
        schema.execute("INSERT INTO categories (id, label, event_id) VALUES (20, 'Other', 2)")

        with pytest.raises(sqlite3.IntegrityError, match="different event"):
            schema.execute("UPDATE categories SET parent_id = 10 WHERE id = 20")

    def test_self_parent_rejected(self, schema):
        with pytest.raises(sqlite3.IntegrityError):
            schema.execute("UPDATE categories SET parent_id = 10 WHERE id = 10")

    def test_blank_label_rejected(self, schema):
        with pytest.raises(sqlite3.IntegrityError):
            schema.execute("INSERT INTO categories (label, event_id) VALUES ('  ', 1)")

    def test_deleting_parent_cascades(self, schema):
        schema.execute("INSERT INTO categories (id, label, event_id, parent_id) VALUES (11, 'C', 1, 10)")
        schema.execute("INSERT INTO categories (id, label, event_id, parent_id) VALUES (12, 'G', 1, 11)")

        schema.execute("DELETE FROM categories WHERE id = 10")

        assert schema.execute("SELECT COUNT(*) FROM categories").fetchone()[0] == 0
