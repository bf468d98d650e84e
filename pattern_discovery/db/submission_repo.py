"""Repository for the ``submissions`` table: append-only proposal ledger."""

from __future__ import annotations

from typing import Optional

from pattern_discovery.db.database import Database
from pattern_discovery.models.submission import (
    Submission,
    SubmissionInput,
    SubmissionStatus,
    utc_now,
)


class SubmissionRepository:
    """Submissions are inserted once and updated once (by review); never deleted."""

    def __init__(self, db: Database):
        self._db = db

    # -- Create ----------------------------------------------------------------

    def create(self, sub: SubmissionInput, submitted_at: Optional[str] = None) -> int:
        with self._db.transaction() as conn:
            cursor = conn.execute(
                """INSERT INTO submissions
                   (type, status, target_pattern_id, domain_slug, category_slug,
                    label, description, intention, template, source, submitted_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    sub.type.value, SubmissionStatus.PENDING.value,
                    sub.target_pattern_id, sub.domain_slug, sub.category_slug,
                    sub.label, sub.description, sub.intention, sub.template,
                    sub.source, submitted_at or utc_now(),
                ),
            )
        return cursor.lastrowid

    # -- Read ------------------------------------------------------------------

    def get_by_id(self, submission_id: int) -> Optional[Submission]:
        row = self._db.fetchone("SELECT * FROM submissions WHERE id = ?", (submission_id,))
        return Submission.from_row(row) if row else None

    # -- List / Filter ---------------------------------------------------------

    def list_all(self, status: Optional[SubmissionStatus] = None) -> list[Submission]:
        """Newest first."""
        if status:
            rows = self._db.fetchall(
                """SELECT * FROM submissions WHERE status = ?
                   ORDER BY submitted_at DESC, id DESC""",
                (status.value,),
            )
        else:
            rows = self._db.fetchall(
                "SELECT * FROM submissions ORDER BY submitted_at DESC, id DESC"
            )
        return [Submission.from_row(r) for r in rows]

    # -- Update ----------------------------------------------------------------

    def mark_reviewed(self, submission_id: int, status: SubmissionStatus) -> bool:
        """Move a pending submission to a terminal status. False if not pending."""
        with self._db.transaction() as conn:
            cursor = conn.execute(
                """UPDATE submissions SET status = ?, reviewed_at = ?
                   WHERE id = ? AND status = 'pending'""",
                (status.value, utc_now(), submission_id),
            )
        return cursor.rowcount > 0
