"""
Auth session: the read/write surface the gates consume.

Why: Pages and gates need the same five facts (token, role, user, user type,
hydrated) plus a way to log out. Passing an explicit `AuthSession` around keeps
the gates pure and testable without a running web app.

Hydration: A fresh `AuthSession` starts un-hydrated. Gates must not act on
`token`/`role` until `hydrate()` has run, otherwise a slow or failing session
lookup would look like "logged out" and trigger a false redirect.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .stores import SessionRecord, SessionStore


@dataclass
class AuthSession:
    token: Optional[str] = None
    role: Optional[str] = None
    user: Optional[Dict[str, Any]] = None
    user_type: Optional[str] = None
    hydrated: bool = False
    session_id: Optional[str] = None
    refresh_token: Optional[str] = field(default=None, repr=False)
    _store: Optional[SessionStore] = field(default=None, repr=False, compare=False)

    @classmethod
    def bound_to(cls, store: SessionStore) -> "AuthSession":
        return cls(_store=store)

    @property
    def email(self) -> Optional[str]:
        value = (self.user or {}).get("email")
        return value if isinstance(value, str) and value else None

    @property
    def authenticated(self) -> bool:
        return self.hydrated and bool(self.token)

    def hydrate(self, record: Optional[SessionRecord]) -> None:
        """Load persisted state once; later calls are ignored.

        `record=None` still completes hydration: the visitor is known to be
        anonymous from here on.
        """
        if self.hydrated:
            return
        if record is not None:
            self.session_id = record.session_id
            self.token = record.token
            self.refresh_token = record.refresh_token
            self.role = record.role
            self.user = dict(record.user or {})
            self.user_type = record.user_type
        self.hydrated = True

    def logout(self) -> None:
        """Forget identity locally and drop the server-side record."""
        if self._store is not None and self.session_id:
            self._store.delete(self.session_id)
        self.token = None
        self.refresh_token = None
        self.role = None
        self.user = None
        self.user_type = None
