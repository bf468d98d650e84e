"""Repository for the ``patterns`` table."""

from __future__ import annotations

from typing import Any, Iterable, Optional

from pattern_discovery.db.database import Database
from pattern_discovery.models.catalog import Pattern

_COLUMNS = "p.id, p.label, p.description, p.intention, p.template"


class PatternRepository:
    """Patterns are addressed by their integer id."""

    _UPDATABLE = {"label", "description", "intention", "template"}

    def __init__(self, db: Database):
        self._db = db

    # -- Create ----------------------------------------------------------------

    def create(self, category_id: int, pattern: Pattern) -> int:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                """INSERT INTO patterns
                   (category_id, label, description, intention, template)
                   VALUES (?, ?, ?, ?, ?)""",
                (
                    category_id, pattern.label, pattern.description,
                    pattern.intention, pattern.template,
                ),
            )
        return cursor.lastrowid

    # -- Read ------------------------------------------------------------------

    def get_by_id(self, pattern_id: int) -> Optional[Pattern]:
        row = self._db.fetchone(
            f"SELECT {_COLUMNS} FROM patterns p WHERE p.id = ?", (pattern_id,)
        )
        return Pattern.from_row(row) if row else None

    def list_for_category(self, category_id: int) -> list[Pattern]:
        rows = self._db.fetchall(
            f"SELECT {_COLUMNS} FROM patterns p WHERE p.category_id = ? ORDER BY p.id",
            (category_id,),
        )
        return [Pattern.from_row(r) for r in rows]

    def list_for_categories(self, domain_id: int, category_slugs: Iterable[str]) -> list[Pattern]:
        """Union of patterns across the named categories of one domain."""
        slugs = sorted(set(category_slugs))
        if not slugs:
            return []
        placeholders = ", ".join("?" for _ in slugs)
        rows = self._db.fetchall(
            f"""SELECT {_COLUMNS}
                FROM patterns p
                JOIN categories c ON p.category_id = c.id
                WHERE c.domain_id = ? AND c.slug IN ({placeholders})
                ORDER BY c.slug, p.id""",
            (domain_id, *slugs),
        )
        return [Pattern.from_row(r) for r in rows]

    # -- Update ----------------------------------------------------------------

    def update(self, pattern_id: int, **fields: Any) -> bool:
        filtered = {k: v for k, v in fields.items() if k in self._UPDATABLE and v is not None}
        if not filtered:
            return self.get_by_id(pattern_id) is not None

        set_parts = [f"{k} = ?" for k in filtered]
        values = list(filtered.values())
        values.append(pattern_id)
        with self._db.transaction() as conn:
            cursor = conn.execute(
                f"UPDATE patterns SET {', '.join(set_parts)} WHERE id = ?",
                tuple(values),
            )
        return cursor.rowcount > 0

    # -- Delete ----------------------------------------------------------------

    def delete(self, pattern_id: int) -> bool:
        with self._db.transaction() as conn:
            cursor = conn.execute("DELETE FROM patterns WHERE id = ?", (pattern_id,))
        return cursor.rowcount > 0
