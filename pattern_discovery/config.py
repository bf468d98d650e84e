"""
Central configuration loader.
Reads from environment variables (via .env).
NEVER prints secret values.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


# ---------------------------------------------------------------------------
# Load .env from repo root (if present)
# ---------------------------------------------------------------------------
_REPO_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(_REPO_ROOT / ".env")


def _get(key: str, default: Optional[str] = None, required: bool = False) -> Optional[str]:
    val = os.getenv(key, default)
    if required and not val:
        raise EnvironmentError(f"Missing required environment variable: {key}")
    return val


# ---------------------------------------------------------------------------
# Admin access
# ---------------------------------------------------------------------------
def get_admin_secret() -> Optional[str]:
    """Shared secret for admin login; ``None`` disables admin access."""
    return _get("ADMIN_SECRET") or None


# ---------------------------------------------------------------------------
# Web server
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ServerConfig:
    host: str
    port: int
    reload: bool


def get_server_config() -> ServerConfig:
    return ServerConfig(
        host=_get("SERVER_HOST", default="127.0.0.1"),  # type: ignore[arg-type]
        port=int(_get("SERVER_PORT", default="8000")),  # type: ignore[arg-type]
        reload=_get("SERVER_RELOAD", default="false").lower() in ("1", "true", "yes"),  # type: ignore[union-attr]
    )


# ---------------------------------------------------------------------------
# MCP server
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class McpConfig:
    transport: str  # "stdio" or "http"
    host: str
    port: int


def get_mcp_config() -> McpConfig:
    return McpConfig(
        transport=(_get("MCP_TRANSPORT", default="stdio") or "stdio").lower(),
        host=_get("MCP_HOST", default="127.0.0.1"),  # type: ignore[arg-type]
        port=int(_get("MCP_PORT", default="3001")),  # type: ignore[arg-type]
    )


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
def get_log_level() -> str:
    return (_get("LOG_LEVEL", default="INFO") or "INFO").upper()


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
def get_db_path() -> Path:
    override = _get("PATTERNS_DB_PATH")
    if override:
        return Path(override)
    return _REPO_ROOT / "data" / "patterns.db"
