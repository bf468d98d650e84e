"""Submission domain model: proposed pattern changes awaiting review."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional

from pattern_discovery.errors import ValidationError
from pattern_discovery.utils.ids import MAX_ROW_ID, is_row_id


def utc_now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class SubmissionType(str, Enum):
    NEW = "new"
    MODIFY = "modify"


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


REVIEW_DECISIONS = (SubmissionStatus.ACCEPTED, SubmissionStatus.REJECTED)

_CONTENT_FIELDS = ("label", "description", "intention", "template")


def _parse_enum(enum_cls: type[Enum], raw: Any, what: str) -> Any:
    try:
        return enum_cls(raw)
    except ValueError:
        allowed = ", ".join(f"'{m.value}'" for m in enum_cls)
        raise ValidationError(f"{what} must be one of {allowed}, got {raw!r}") from None


def parse_status(raw: Any) -> SubmissionStatus:
    return _parse_enum(SubmissionStatus, raw, "status")


def parse_decision(raw: Any) -> SubmissionStatus:
    decision = _parse_enum(SubmissionStatus, raw, "decision")
    if decision not in REVIEW_DECISIONS:
        raise ValidationError("decision must be 'accepted' or 'rejected'")
    return decision


@dataclass(frozen=True)
class SubmissionInput:
    """
    Validated contributor proposal.

    ``type = new`` targets a (domain_slug, category_slug) pair that need not
    exist yet; ``type = modify`` targets an existing pattern id.
    """

    type: SubmissionType
    label: str
    description: str
    intention: str
    template: str
    domain_slug: Optional[str] = None
    category_slug: Optional[str] = None
    target_pattern_id: Optional[int] = None
    source: Optional[str] = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if not isinstance(self.type, SubmissionType):
            raise ValidationError(f"type must be 'new' or 'modify', got {self.type!r}")
        missing = [
            name for name in _CONTENT_FIELDS
            if not isinstance(getattr(self, name), str) or not getattr(self, name).strip()
        ]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        if self.type is SubmissionType.NEW:
            if not self.domain_slug or not self.category_slug:
                raise ValidationError(
                    "domain_slug and category_slug are required for 'new' submissions"
                )
        else:
            tid = self.target_pattern_id
            if tid is None:
                raise ValidationError(
                    "target_pattern_id is required for 'modify' submissions"
                )
            if not is_row_id(tid):
                raise ValidationError(
                    f"target_pattern_id must be an integer between 1 and {MAX_ROW_ID}, got {tid!r}"
                )

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "SubmissionInput":
        """Build from an untyped request body, raising ``ValidationError``."""
        return cls(
            type=_parse_enum(SubmissionType, payload.get("type"), "type"),
            label=payload.get("label") or "",
            description=payload.get("description") or "",
            intention=payload.get("intention") or "",
            template=payload.get("template") or "",
            domain_slug=payload.get("domain_slug"),
            category_slug=payload.get("category_slug"),
            target_pattern_id=payload.get("target_pattern_id"),
            source=payload.get("source"),
        )


@dataclass
class Submission:
    """A stored proposal.  Reviewed exactly once; never deleted."""

    id: int
    type: SubmissionType
    status: SubmissionStatus
    label: str
    description: str
    intention: str
    template: str
    submitted_at: str
    target_pattern_id: Optional[int] = None
    domain_slug: Optional[str] = None
    category_slug: Optional[str] = None
    source: Optional[str] = None
    reviewed_at: Optional[str] = None

    @property
    def is_pending(self) -> bool:
        return self.status is SubmissionStatus.PENDING

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "status": self.status.value,
            "target_pattern_id": self.target_pattern_id,
            "domain_slug": self.domain_slug,
            "category_slug": self.category_slug,
            "label": self.label,
            "description": self.description,
            "intention": self.intention,
            "template": self.template,
            "source": self.source,
            "submitted_at": self.submitted_at,
            "reviewed_at": self.reviewed_at,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Submission":
        return cls(
            id=row["id"],
            type=SubmissionType(row["type"]),
            status=SubmissionStatus(row.get("status", "pending")),
            target_pattern_id=row.get("target_pattern_id"),
            domain_slug=row.get("domain_slug"),
            category_slug=row.get("category_slug"),
            label=row["label"],
            description=row["description"],
            intention=row["intention"],
            template=row["template"],
            source=row.get("source"),
            submitted_at=row.get("submitted_at", ""),
            reviewed_at=row.get("reviewed_at"),
        )


@dataclass(frozen=True)
class NodePreview:
    """A hierarchy node that accepting a submission would create."""
    slug: str
    name: str

    def to_dict(self) -> dict[str, str]:
        return {"slug": self.slug, "name": self.name}


@dataclass(frozen=True)
class SubmissionImpact:
    new_domain: Optional[NodePreview] = None
    new_category: Optional[NodePreview] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "new_domain": self.new_domain.to_dict() if self.new_domain else None,
            "new_category": self.new_category.to_dict() if self.new_category else None,
        }
