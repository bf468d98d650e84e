"""Service layer: facades over the repositories."""

from pattern_discovery.services.catalog_service import CatalogService
from pattern_discovery.services.submission_service import SubmissionService

__all__ = ["CatalogService", "SubmissionService"]
