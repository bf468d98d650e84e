"""Domain models for the pattern catalog and its submission workflow."""

from pattern_discovery.models.catalog import Category, Domain, Pattern
from pattern_discovery.models.submission import (
    NodePreview,
    Submission,
    SubmissionImpact,
    SubmissionInput,
    SubmissionStatus,
    SubmissionType,
)

__all__ = [
    "Domain", "Category", "Pattern",
    "Submission", "SubmissionInput", "SubmissionStatus", "SubmissionType",
    "SubmissionImpact", "NodePreview",
]
