"""Slug helpers."""

from __future__ import annotations

import re

_SEPARATORS = re.compile(r"[-_]+")


def slug_to_name(slug: str) -> str:
    """Derive a display name: ``software-engineering`` -> ``Software Engineering``."""
    words = [w for w in _SEPARATORS.split(slug.strip()) if w]
    return " ".join(w[:1].upper() + w[1:] for w in words)
