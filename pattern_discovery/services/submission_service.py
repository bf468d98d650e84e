"""Submission service — proposal ledger and the accept/reject transition.

Existence of a proposal's targets is checked at review time, not at
submission time: contributors may propose patterns for domains and
categories that do not exist yet.  Accepting such a proposal creates the
missing nodes, with names derived from their slugs.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from pattern_discovery.db.database import Database
from pattern_discovery.db.submission_repo import SubmissionRepository
from pattern_discovery.errors import ConflictError, NotFoundError
from pattern_discovery.models.catalog import Pattern
from pattern_discovery.models.submission import (
    NodePreview,
    Submission,
    SubmissionImpact,
    SubmissionInput,
    SubmissionStatus,
    SubmissionType,
    parse_decision,
    parse_status,
)
from pattern_discovery.services.catalog_service import CatalogService
from pattern_discovery.utils.ids import is_row_id
from pattern_discovery.utils.slugs import slug_to_name

logger = logging.getLogger(__name__)


class SubmissionService:
    """Owns the submission lifecycle; applies accepted ones to the catalog."""

    def __init__(self, db: Database, catalog: Optional[CatalogService] = None):
        self._db = db
        self._repo = SubmissionRepository(db)
        self._catalog = catalog or CatalogService(db)

    # ------------------------------------------------------------------
    # Create / Read
    # ------------------------------------------------------------------

    def add_submission(self, sub: Union[SubmissionInput, Mapping[str, Any]]) -> int:
        """Store a pending proposal and return its id."""
        if not isinstance(sub, SubmissionInput):
            sub = SubmissionInput.from_payload(sub)
        submission_id = self._repo.create(sub)
        target = (
            f"{sub.domain_slug}/{sub.category_slug}"
            if sub.type is SubmissionType.NEW
            else f"pattern #{sub.target_pattern_id}"
        )
        logger.info(
            f"Stored {sub.type.value} submission #{submission_id} for {target} "
            f"(source: {sub.source or 'anonymous'})"
        )
        return submission_id

    def get_submission(self, submission_id: int) -> Optional[Submission]:
        if not is_row_id(submission_id):
            return None
        return self._repo.get_by_id(submission_id)

    def get_submissions(
        self, status: Optional[Union[SubmissionStatus, str]] = None
    ) -> list[Submission]:
        """All submissions newest first, optionally only those with ``status``."""
        if status is not None and not isinstance(status, SubmissionStatus):
            status = parse_status(status)
        return self._repo.list_all(status)

    # ------------------------------------------------------------------
    # Impact preview
    # ------------------------------------------------------------------

    def get_submission_impact(self, submission_id: int) -> SubmissionImpact:
        """Which hierarchy nodes accepting this submission would create."""
        with self._db.snapshot():
            sub = self._require(submission_id)
            return self._impact_of(sub)

    def _impact_of(self, sub: Submission) -> SubmissionImpact:
        if not sub.is_pending or sub.type is not SubmissionType.NEW:
            return SubmissionImpact()
        domain_slug, category_slug = sub.domain_slug, sub.category_slug
        new_domain = None
        new_category = None
        if not self._catalog.domain_exists(domain_slug):
            new_domain = NodePreview(domain_slug, slug_to_name(domain_slug))
            new_category = NodePreview(category_slug, slug_to_name(category_slug))
        elif not self._catalog.category_exists(domain_slug, category_slug):
            new_category = NodePreview(category_slug, slug_to_name(category_slug))
        return SubmissionImpact(new_domain=new_domain, new_category=new_category)

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    def review_submission(
        self, submission_id: int, decision: Union[SubmissionStatus, str]
    ) -> Submission:
        """
        Accept or reject a pending submission, exactly once.

        Acceptance and all of its catalog side effects run in one
        transaction: if any step fails, nothing changes and the submission
        stays pending.
        """
        decision = parse_decision(
            decision.value if isinstance(decision, SubmissionStatus) else decision
        )
        with self._db.transaction():
            sub = self._require(submission_id)
            if not sub.is_pending:
                raise ConflictError(
                    f"Submission {submission_id} has already been reviewed ({sub.status.value})"
                )
            if decision is SubmissionStatus.ACCEPTED:
                self._apply(sub)
            self._repo.mark_reviewed(submission_id, decision)

        logger.info(f"Submission #{submission_id} {decision.value}")
        return self._require(submission_id)

    def _apply(self, sub: Submission) -> None:
        if sub.type is SubmissionType.NEW:
            self._apply_new(sub)
        else:
            self._apply_modify(sub)

    def _apply_new(self, sub: Submission) -> None:
        domain_slug, category_slug = sub.domain_slug, sub.category_slug
        if not self._catalog.domain_exists(domain_slug):
            self._catalog.add_domain(domain_slug, slug_to_name(domain_slug), "")
            logger.info(f"Auto-created domain {domain_slug} for submission #{sub.id}")
        if not self._catalog.category_exists(domain_slug, category_slug):
            self._catalog.add_category(domain_slug, category_slug, slug_to_name(category_slug), "")
            logger.info(f"Auto-created category {domain_slug}/{category_slug} for submission #{sub.id}")
        self._catalog.add_pattern(
            domain_slug,
            category_slug,
            Pattern(
                label=sub.label,
                description=sub.description,
                intention=sub.intention,
                template=sub.template,
            ),
        )

    def _apply_modify(self, sub: Submission) -> None:
        # raises NotFoundError when the target pattern was deleted after submission
        self._catalog.update_pattern(
            sub.target_pattern_id,
            label=sub.label,
            description=sub.description,
            intention=sub.intention,
            template=sub.template,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _require(self, submission_id: int) -> Submission:
        sub = self.get_submission(submission_id)
        if sub is None:
            raise NotFoundError(f"Submission not found: {submission_id}")
        return sub
