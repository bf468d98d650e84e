"""In-memory admin sessions, handed explicitly to whatever serves requests.

Sessions are lost on restart.
"""

from __future__ import annotations

import hmac
import threading
import uuid
from typing import Optional


class AdminSessions:
    """Shared-secret login that issues opaque session tokens."""

    def __init__(self, secret: Optional[str] = None):
        self._secret = secret or None
        self._tokens: set[str] = set()
        self._lock = threading.Lock()

    @property
    def configured(self) -> bool:
        return self._secret is not None

    def login(self, secret: str) -> Optional[str]:
        """Return a new session token, or ``None`` if the secret is wrong."""
        if self._secret is None or not hmac.compare_digest(secret.encode(), self._secret.encode()):
            return None
        token = str(uuid.uuid4())
        with self._lock:
            self._tokens.add(token)
        return token

    def logout(self, token: str) -> None:
        with self._lock:
            self._tokens.discard(token)

    def is_valid(self, token: Optional[str]) -> bool:
        if not token:
            return False
        with self._lock:
            return token in self._tokens
