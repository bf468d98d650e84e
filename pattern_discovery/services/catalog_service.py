"""Catalog service — CRUD over the Domain > Category > Pattern tree.

This is the "Facade" for hierarchy operations.  Point operations are strict
(``NotFoundError`` on a missing target); enumerations are forgiving and
return empty results for unknown parents, since discovery callers query
names they are not sure exist.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Iterable, Optional

from pattern_discovery.db.category_repo import CategoryRepository
from pattern_discovery.db.database import Database
from pattern_discovery.db.domain_repo import DomainRepository
from pattern_discovery.db.pattern_repo import PatternRepository
from pattern_discovery.errors import ConflictError, NotFoundError
from pattern_discovery.models.catalog import Category, Domain, Pattern
from pattern_discovery.utils.ids import is_row_id

logger = logging.getLogger(__name__)


def _is_unique_violation(err: sqlite3.IntegrityError) -> bool:
    return "UNIQUE constraint" in str(err)


class CatalogService:
    """Hierarchy store with uniqueness and cascade-delete invariants."""

    def __init__(self, db: Database):
        self._db = db
        self._domains = DomainRepository(db)
        self._categories = CategoryRepository(db)
        self._patterns = PatternRepository(db)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def add_domain(self, slug: str, name: str, description: str) -> None:
        try:
            self._domains.create(slug, name, description)
        except sqlite3.IntegrityError as e:
            if _is_unique_violation(e):
                raise ConflictError(f'Domain with slug "{slug}" already exists') from e
            raise
        logger.info(f"Created domain {slug}: {name}")

    def add_category(self, domain_slug: str, slug: str, name: str, description: str) -> None:
        with self._db.transaction():
            domain_id = self._require_domain_id(domain_slug)
            try:
                self._categories.create(domain_id, slug, name, description)
            except sqlite3.IntegrityError as e:
                if _is_unique_violation(e):
                    raise ConflictError(
                        f'Category "{slug}" already exists in domain "{domain_slug}"'
                    ) from e
                raise
        logger.info(f"Created category {domain_slug}/{slug}: {name}")

    def add_pattern(self, domain_slug: str, category_slug: str, pattern: Pattern) -> int:
        """Insert a pattern under an existing category and return its new id."""
        with self._db.transaction():
            category_id = self._require_category_id(domain_slug, category_slug)
            pattern_id = self._patterns.create(category_id, pattern)
        pattern.id = pattern_id
        logger.info(f"Created pattern #{pattern_id} ({pattern.label}) in {domain_slug}/{category_slug}")
        return pattern_id

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_domains(self) -> list[Domain]:
        with self._db.snapshot():
            return [
                Domain.from_row(row, self._categories_for(row["id"]))
                for row in self._domains.list_rows()
            ]

    def get_domain(self, slug: str) -> Optional[Domain]:
        with self._db.snapshot():
            row = self._domains.get_row(slug)
            if not row:
                return None
            return Domain.from_row(row, self._categories_for(row["id"]))

    def get_categories(self, domain_slug: str) -> list[Category]:
        with self._db.snapshot():
            domain_id = self._domains.get_id(domain_slug)
            if domain_id is None:
                return []
            return self._categories_for(domain_id)

    def get_patterns(self, domain_slug: str, category_slugs: Iterable[str]) -> list[Pattern]:
        """Patterns across the named categories; unknown names are skipped."""
        slugs = set(category_slugs)
        if not slugs:
            return []
        with self._db.snapshot():
            domain_id = self._domains.get_id(domain_slug)
            if domain_id is None:
                return []
            return self._patterns.list_for_categories(domain_id, slugs)

    def get_pattern(self, pattern_id: int) -> Optional[Pattern]:
        if not is_row_id(pattern_id):
            return None
        return self._patterns.get_by_id(pattern_id)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_domain(
        self, slug: str, name: Optional[str] = None, description: Optional[str] = None
    ) -> None:
        if not self._domains.update(slug, name=name, description=description):
            raise NotFoundError(f'Domain not found: "{slug}"')
        logger.info(f"Updated domain {slug}")

    def update_category(
        self,
        domain_slug: str,
        slug: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> None:
        with self._db.transaction():
            domain_id = self._require_domain_id(domain_slug)
            if not self._categories.update(domain_id, slug, name=name, description=description):
                raise NotFoundError(f'Category not found: "{slug}" in domain "{domain_slug}"')
        logger.info(f"Updated category {domain_slug}/{slug}")

    def update_pattern(
        self,
        pattern_id: int,
        label: Optional[str] = None,
        description: Optional[str] = None,
        intention: Optional[str] = None,
        template: Optional[str] = None,
    ) -> None:
        updated = is_row_id(pattern_id) and self._patterns.update(
            pattern_id,
            label=label, description=description,
            intention=intention, template=template,
        )
        if not updated:
            raise NotFoundError(f"Pattern not found: {pattern_id}")
        logger.info(f"Updated pattern #{pattern_id}")

    # ------------------------------------------------------------------
    # Delete (cascades through foreign keys)
    # ------------------------------------------------------------------

    def delete_domain(self, slug: str) -> None:
        if not self._domains.delete(slug):
            raise NotFoundError(f'Domain not found: "{slug}"')
        logger.info(f"Deleted domain {slug} with all categories and patterns")

    def delete_category(self, domain_slug: str, slug: str) -> None:
        with self._db.transaction():
            domain_id = self._require_domain_id(domain_slug)
            if not self._categories.delete(domain_id, slug):
                raise NotFoundError(f'Category not found: "{slug}" in domain "{domain_slug}"')
        logger.info(f"Deleted category {domain_slug}/{slug} with all patterns")

    def delete_pattern(self, pattern_id: int) -> None:
        if not is_row_id(pattern_id) or not self._patterns.delete(pattern_id):
            raise NotFoundError(f"Pattern not found: {pattern_id}")
        logger.info(f"Deleted pattern #{pattern_id}")

    # ------------------------------------------------------------------
    # Existence helpers (used by the submission ledger)
    # ------------------------------------------------------------------

    def domain_exists(self, slug: str) -> bool:
        return self._domains.get_id(slug) is not None

    def category_exists(self, domain_slug: str, slug: str) -> bool:
        return self._categories.get_id(domain_slug, slug) is not None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _require_domain_id(self, slug: str) -> int:
        domain_id = self._domains.get_id(slug)
        if domain_id is None:
            raise NotFoundError(f'Domain not found: "{slug}"')
        return domain_id

    def _require_category_id(self, domain_slug: str, slug: str) -> int:
        category_id = self._categories.get_id(domain_slug, slug)
        if category_id is None:
            raise NotFoundError(f'Category not found: "{slug}" in domain "{domain_slug}"')
        return category_id

    def _categories_for(self, domain_id: int) -> list[Category]:
        return [
            Category.from_row(row, self._patterns.list_for_category(row["id"]))
            for row in self._categories.list_rows(domain_id)
        ]
