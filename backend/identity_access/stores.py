"""
In-memory stores: SessionStore and VisitPassStore.

Why: Keep backend tokens and identity opaque to the browser. The cookie only
carries a random session id; access/refresh tokens stay server-side. For
multi-instance deployments, replace these with Redis/DB-backed stores that keep
the same method signatures.

Security: Cookies carry only an opaque session id. Session data stays server-side.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set, Tuple
import secrets
import time


def _now() -> int:
    return int(time.time())


@dataclass
class SessionRecord:
    session_id: str
    token: str
    role: Optional[str]
    user: Dict[str, Any] = field(default_factory=dict)
    user_type: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None


class SessionStore:
    def __init__(self):
        self._data: Dict[str, SessionRecord] = {}

    def create(
        self,
        *,
        token: str,
        role: Optional[str],
        user: Optional[Dict[str, Any]] = None,
        user_type: Optional[str] = None,
        refresh_token: Optional[str] = None,
        ttl_seconds: int = 86400,
    ) -> SessionRecord:
        self.purge_expired()
        sid = secrets.token_urlsafe(24)
        rec = SessionRecord(
            session_id=sid,
            token=token,
            role=role,
            user=dict(user or {}),
            user_type=user_type,
            refresh_token=refresh_token,
            expires_at=_now() + ttl_seconds,
        )
        self._data[sid] = rec
        return rec

    def get(self, session_id: str) -> Optional[SessionRecord]:
        rec = self._data.get(session_id)
        if not rec:
            return None
        if rec.expires_at and rec.expires_at < _now():
            self._data.pop(session_id, None)
            return None
        return rec

    def update_token(self, session_id: str, token: str) -> None:
        rec = self._data.get(session_id)
        if rec:
            rec.token = token

    def delete(self, session_id: str) -> None:
        self._data.pop(session_id, None)

    def purge_expired(self) -> None:
        now = _now()
        stale = [sid for sid, rec in self._data.items() if rec.expires_at and rec.expires_at < now]
        for sid in stale:
            self._data.pop(sid, None)


@dataclass
class VisitPass:
    session_id: str
    path: str
    expires_at: int


class VisitPassStore:
    """One-shot passes that let a single page load through the PIN gate.

    A pass is bound to one (session, path) pair and is removed on first use, so
    the gate engages again on the next navigation to a protected path.
    """

    def __init__(self):
        self._data: Dict[Tuple[str, str], VisitPass] = {}

    def grant(self, *, session_id: str, path: str, ttl_seconds: int = 60) -> VisitPass:
        self.purge_expired()
        rec = VisitPass(session_id=session_id, path=path, expires_at=_now() + ttl_seconds)
        self._data[(session_id, path)] = rec
        return rec

    def consume(self, *, session_id: str, path: str) -> bool:
        rec = self._data.pop((session_id, path), None)
        if not rec:
            return False
        return rec.expires_at >= _now()

    def purge_expired(self) -> None:
        now = _now()
        stale = [key for key, rec in self._data.items() if rec.expires_at < now]
        for key in stale:
            self._data.pop(key, None)

    def revoke_session(self, session_id: str) -> None:
        stale: Set[Tuple[str, str]] = {key for key in self._data if key[0] == session_id}
        for key in stale:
            self._data.pop(key, None)
