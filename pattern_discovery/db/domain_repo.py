"""Repository for the ``domains`` table."""

from __future__ import annotations

from typing import Any, Optional

from pattern_discovery.db.database import Database


class DomainRepository:
    """Single-Responsibility repository for domain persistence."""

    _UPDATABLE = {"name", "description"}

    def __init__(self, db: Database):
        self._db = db

    # -- Create ----------------------------------------------------------------

    def create(self, slug: str, name: str, description: str) -> int:
        """Insert a domain. Raises ``sqlite3.IntegrityError`` on duplicate slug."""
        with self._db.transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO domains (slug, name, description) VALUES (?, ?, ?)",
                (slug, name, description),
            )
        return cursor.lastrowid

    # -- Read ------------------------------------------------------------------

    def get_row(self, slug: str) -> Optional[dict[str, Any]]:
        return self._db.fetchone(
            "SELECT id, slug, name, description FROM domains WHERE slug = ?", (slug,)
        )

    def get_id(self, slug: str) -> Optional[int]:
        row = self._db.fetchone("SELECT id FROM domains WHERE slug = ?", (slug,))
        return row["id"] if row else None

    def list_rows(self) -> list[dict[str, Any]]:
        return self._db.fetchall(
            "SELECT id, slug, name, description FROM domains ORDER BY slug"
        )

    # -- Update ----------------------------------------------------------------

    def update(self, slug: str, **fields: Any) -> bool:
        """Change only the supplied (non-None) fields. Returns False if missing."""
        filtered = {k: v for k, v in fields.items() if k in self._UPDATABLE and v is not None}
        if not filtered:
            return self.get_id(slug) is not None

        set_parts = [f"{k} = ?" for k in filtered]
        values = list(filtered.values())
        values.append(slug)
        with self._db.transaction() as conn:
            cursor = conn.execute(
                f"UPDATE domains SET {', '.join(set_parts)} WHERE slug = ?",
                tuple(values),
            )
        return cursor.rowcount > 0

    # -- Delete ----------------------------------------------------------------

    def delete(self, slug: str) -> bool:
        """Delete a domain; categories and patterns go with it (FK cascade)."""
        with self._db.transaction() as conn:
            cursor = conn.execute("DELETE FROM domains WHERE slug = ?", (slug,))
        return cursor.rowcount > 0
