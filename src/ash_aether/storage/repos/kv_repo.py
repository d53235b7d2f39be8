from __future__ import annotations

from ash_aether.storage.database import Database
from ash_aether.utils import utc_now_iso


class KeyValueRepo:
    """String-keyed store. Every write replaces one row, so each value is atomic."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def get(self, key: str) -> str | None:
        with self.db.get_connection() as conn:
            row = conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        with self.db.get_connection() as conn:
            conn.execute(
                "INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
                "updated_at = excluded.updated_at",
                (key, value, utc_now_iso()),
            )

    def delete(self, key: str) -> bool:
        with self.db.get_connection() as conn:
            cursor = conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        return cursor.rowcount > 0

    def keys(self, prefix: str = "") -> list[str]:
        with self.db.get_connection() as conn:
            rows = conn.execute(
                "SELECT key FROM kv_store WHERE key LIKE ? ESCAPE '\\' ORDER BY key",
                (prefix.replace("%", r"\%").replace("_", r"\_") + "%",),
            ).fetchall()
        return [r["key"] for r in rows]
