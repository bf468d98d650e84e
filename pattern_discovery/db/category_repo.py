"""Repository for the ``categories`` table."""

from __future__ import annotations

from typing import Any, Optional

from pattern_discovery.db.database import Database


class CategoryRepository:
    """Categories are addressed by (domain, slug); slugs repeat across domains."""

    _UPDATABLE = {"name", "description"}

    def __init__(self, db: Database):
        self._db = db

    # -- Create ----------------------------------------------------------------

    def create(self, domain_id: int, slug: str, name: str, description: str) -> int:
        """Insert a category. Raises ``sqlite3.IntegrityError`` on (domain, slug) clash."""
        with self._db.transaction() as conn:
            cursor = conn.execute(
                """INSERT INTO categories (domain_id, slug, name, description)
                   VALUES (?, ?, ?, ?)""",
                (domain_id, slug, name, description),
            )
        return cursor.lastrowid

    # -- Read ------------------------------------------------------------------

    def get_row(self, domain_slug: str, slug: str) -> Optional[dict[str, Any]]:
        return self._db.fetchone(
            """SELECT c.id, c.domain_id, c.slug, c.name, c.description
               FROM categories c
               JOIN domains d ON c.domain_id = d.id
               WHERE d.slug = ? AND c.slug = ?""",
            (domain_slug, slug),
        )

    def get_id(self, domain_slug: str, slug: str) -> Optional[int]:
        row = self.get_row(domain_slug, slug)
        return row["id"] if row else None

    def list_rows(self, domain_id: int) -> list[dict[str, Any]]:
        return self._db.fetchall(
            """SELECT id, domain_id, slug, name, description
               FROM categories WHERE domain_id = ? ORDER BY slug""",
            (domain_id,),
        )

    # -- Update ----------------------------------------------------------------

    def update(self, domain_id: int, slug: str, **fields: Any) -> bool:
        filtered = {k: v for k, v in fields.items() if k in self._UPDATABLE and v is not None}
        if not filtered:
            return self._db.fetchone(
                "SELECT id FROM categories WHERE domain_id = ? AND slug = ?",
                (domain_id, slug),
            ) is not None

        set_parts = [f"{k} = ?" for k in filtered]
        values = list(filtered.values())
        values.extend([domain_id, slug])
        with self._db.transaction() as conn:
            cursor = conn.execute(
                f"UPDATE categories SET {', '.join(set_parts)} WHERE domain_id = ? AND slug = ?",
                tuple(values),
            )
        return cursor.rowcount > 0

    # -- Delete ----------------------------------------------------------------

    def delete(self, domain_id: int, slug: str) -> bool:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM categories WHERE domain_id = ? AND slug = ?",
                (domain_id, slug),
            )
        return cursor.rowcount > 0
