"""Catalog domain models: Domain > Category > Pattern hierarchy."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class Pattern:
    """A pattern maps an intention to a structured prompt template."""

    label: str
    description: str
    intention: str
    template: str
    id: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "description": self.description,
            "intention": self.intention,
            "template": self.template,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Pattern":
        return cls(
            id=row.get("id"),
            label=row["label"],
            description=row["description"],
            intention=row["intention"],
            template=row["template"],
        )


@dataclass
class Category:
    """A category groups related patterns within a domain."""

    slug: str
    name: str
    description: str
    patterns: list[Pattern] = field(default_factory=list)

    def summary(self) -> dict[str, Any]:
        return {"name": self.name, "slug": self.slug, "description": self.description}

    def to_dict(self) -> dict[str, Any]:
        return {**self.summary(), "patterns": [p.to_dict() for p in self.patterns]}

    @classmethod
    def from_row(cls, row: dict[str, Any], patterns: Optional[list[Pattern]] = None) -> "Category":
        return cls(
            slug=row["slug"],
            name=row["name"],
            description=row["description"],
            patterns=patterns or [],
        )


@dataclass
class Domain:
    """A domain is a top-level knowledge area containing categories of patterns."""

    slug: str
    name: str
    description: str
    categories: list[Category] = field(default_factory=list)

    def summary(self) -> dict[str, Any]:
        return {"name": self.name, "slug": self.slug, "description": self.description}

    def to_dict(self) -> dict[str, Any]:
        return {**self.summary(), "categories": [c.to_dict() for c in self.categories]}

    @classmethod
    def from_row(cls, row: dict[str, Any], categories: Optional[list[Category]] = None) -> "Domain":
        return cls(
            slug=row["slug"],
            name=row["name"],
            description=row["description"],
            categories=categories or [],
        )
