"""Tests for src/ash_aether/storage/database.py."""
from __future__ import annotations

import sqlite3

import pytest

from ash_aether.storage.database import IN_MEMORY, Database, discover_migrations


class TestDiscoverMigrations:
    def test_finds_shipped_migrations_in_order(self):
        migrations = discover_migrations()
        assert migrations[0] == (1, "001_initial")
        assert [v for v, _ in migrations] == sorted(v for v, _ in migrations)

    def test_ignores_files_without_number_prefix(self, tmp_path):
        (tmp_path / "002_second.py").write_text("")
        (tmp_path / "001_first.py").write_text("")
        (tmp_path / "helpers.py").write_text("")
        (tmp_path / "003_notes.txt").write_text("")
        assert discover_migrations(tmp_path) == [(1, "001_first"), (2, "002_second")]


class TestDatabaseInitialize:
    def test_schema_version_table_exists(self, in_memory_db):
        with in_memory_db.get_connection() as conn:
            rows = conn.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name='schema_version'"
            ).fetchall()
            assert len(rows) == 1

    def test_all_migrations_applied(self, in_memory_db):
        assert in_memory_db.schema_version() == discover_migrations()[-1][0]

    def test_records_when_each_version_applied(self, in_memory_db):
        with in_memory_db.get_connection() as conn:
            rows = conn.execute("SELECT version, applied_at FROM schema_version").fetchall()
        assert len(rows) == len(discover_migrations())
        assert all(row["applied_at"] for row in rows)

    def test_rerun_applies_nothing(self, in_memory_db):
        assert in_memory_db.initialize() == []
        with in_memory_db.get_connection() as conn:
            versions = conn.execute("SELECT count(*) FROM schema_version").fetchone()[0]
        assert versions == len(discover_migrations())

    def test_first_run_reports_applied_versions(self, tmp_path):
        db = Database(str(tmp_path / "fresh.db"))
        assert db.initialize() == [v for v, _ in discover_migrations()]
        db.close()

    def test_kv_table_exists(self, in_memory_db):
        with in_memory_db.get_connection() as conn:
            tables = {
                r[0] for r in conn.execute(
                    "SELECT name FROM sqlite_master WHERE type='table'"
                ).fetchall()
            }
        assert "kv_store" in tables

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "saves.db"
        db = Database(str(path))
        db.initialize()
        db.close()
        assert path.exists()

    def test_in_memory(self):
        db = Database(IN_MEMORY)
        assert db.in_memory
        db.initialize()
        assert db.schema_version() == discover_migrations()[-1][0]
        db.close()


class TestGetConnection:
    def test_commits_on_success(self, in_memory_db):
        with in_memory_db.get_connection() as conn:
            conn.execute("INSERT INTO kv_store (key, value) VALUES ('k', 'v')")
        with in_memory_db.get_connection() as conn:
            row = conn.execute("SELECT value FROM kv_store WHERE key='k'").fetchone()
        assert row["value"] == "v"

    def test_rollback_on_error(self, in_memory_db):
        with pytest.raises(sqlite3.IntegrityError):
            with in_memory_db.get_connection() as conn:
                conn.execute("INSERT INTO kv_store (key, value) VALUES ('dup', 'a')")
                conn.execute("INSERT INTO kv_store (key, value) VALUES ('dup', 'b')")
        with in_memory_db.get_connection() as conn:
            row = conn.execute("SELECT value FROM kv_store WHERE key='dup'").fetchone()
        assert row is None

    def test_persists_across_reopen(self, tmp_path):
        path = str(tmp_path / "reopen.db")
        db = Database(path)
        db.initialize()
        with db.get_connection() as conn:
            conn.execute("INSERT INTO kv_store (key, value) VALUES ('k', 'v')")
        db.close()

        reopened = Database(path)
        reopened.initialize()
        with reopened.get_connection() as conn:
            assert conn.execute("SELECT value FROM kv_store").fetchone()["value"] == "v"
        reopened.close()

    def test_close_is_idempotent(self, in_memory_db):
        in_memory_db.close()
        in_memory_db.close()
