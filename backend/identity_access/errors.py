"""
Errors shared between identity_access and its web/backend adapters.
"""
from __future__ import annotations

from typing import Any, Optional, Sequence


MESSAGE_KEYS = ("error", "Message", "message", "detail")


def extract_message(body: Any, fallback: str, keys: Sequence[str] = MESSAGE_KEYS) -> str:
    """Pick the first non-empty message field from a backend error body."""
    if isinstance(body, dict):
        for key in keys:
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value
    return fallback


class BackendError(Exception):
    """The RADAR backend rejected a call or could not be reached.

    `status_code` is None for transport failures (timeouts, DNS, refused).
    `body` holds the decoded JSON error body when there was one.
    """

    def __init__(self, code: str, *, status_code: Optional[int] = None, body: Any = None):
        super().__init__(code)
        self.code = code
        self.status_code = status_code
        self.body = body

    def user_message(self, fallback: str, keys: Sequence[str] = MESSAGE_KEYS) -> str:
        return extract_message(self.body, fallback, keys)
