"""Integer row-id helpers."""

from __future__ import annotations

from typing import Any

# SQLite INTEGER is a signed 64-bit value; AUTOINCREMENT ids start at 1
MAX_ROW_ID = 2**63 - 1


def is_row_id(value: Any) -> bool:
    """True if ``value`` could name a stored row (bools excluded)."""
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= MAX_ROW_ID
