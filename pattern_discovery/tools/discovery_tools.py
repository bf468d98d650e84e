"""Tool functions for pattern discovery and suggestion.

Each method is a plain callable returning an MCP-style tool result
(``{"content": [{"type": "text", "text": ...}], "isError": ...}``).
They wrap CatalogService / SubmissionService and are bound to an MCP
server in ``server/mcp_server.py`` or used directly.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any, Optional

from pattern_discovery.db.database import Database
from pattern_discovery.errors import CatalogError
from pattern_discovery.models.submission import SubmissionInput
from pattern_discovery.services.catalog_service import CatalogService
from pattern_discovery.services.submission_service import SubmissionService

logger = logging.getLogger(__name__)

ToolResult = dict[str, Any]


def _text(payload: Any) -> ToolResult:
    return {"content": [{"type": "text", "text": json.dumps(payload, indent=2)}]}


def _error(message: str) -> ToolResult:
    return {"content": [{"type": "text", "text": message}], "isError": True}


class DiscoveryTools:
    """Stateful tool collection holding the DB and its services."""

    def __init__(self, db: Database):
        self._db = db
        self._catalog = CatalogService(db)
        self._submissions = SubmissionService(db, catalog=self._catalog)

    def discover(self, domain: Optional[str] = None) -> ToolResult:
        """List all domains, or the categories of one domain."""
        if not domain:
            return _text([d.summary() for d in self._catalog.get_domains()])

        found = self._catalog.get_domain(domain)
        if not found:
            return _error(f'Domain not found: "{domain}". Use a valid domain slug.')
        return _text([c.summary() for c in found.categories])

    def match(self, domain: str, categories: list[str]) -> ToolResult:
        """Return the patterns of the given categories within a domain."""
        if not self._catalog.domain_exists(domain):
            return _error(f'Domain not found: "{domain}". Use a valid domain slug.')
        patterns = self._catalog.get_patterns(domain, categories)
        return _text([p.to_dict() for p in patterns])

    def suggest(
        self,
        type: str,
        label: str,
        description: str,
        intention: str,
        template: str,
        source: str,
        domain_slug: Optional[str] = None,
        category_slug: Optional[str] = None,
        target_pattern_id: Optional[int] = None,
    ) -> ToolResult:
        """Queue a new-pattern or edit suggestion for admin review."""
        if not source:
            return _error(
                "A source identifier is required to attribute the origin of the suggestion."
            )
        try:
            sub = SubmissionInput.from_payload({
                "type": type,
                "label": label,
                "description": description,
                "intention": intention,
                "template": template,
                "source": source,
                "domain_slug": domain_slug,
                "category_slug": category_slug,
                "target_pattern_id": target_pattern_id,
            })
            submission_id = self._submissions.add_submission(sub)
        except CatalogError as e:
            logger.warning(f"Rejected suggestion from {source}: {e}")
            return _error(f"Failed to create suggestion: {e}")
        except (sqlite3.Error, OverflowError) as e:
            logger.error(f"Could not store suggestion from {source}: {e}")
            return _error(f"Failed to create suggestion: {e}")

        stored = self._submissions.get_submission(submission_id)
        return _text(stored.to_dict())
