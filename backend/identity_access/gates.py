"""
Route authorization gates: Auth Gate and Role Gate.

Why: Keep the redirect rules framework independent. The pure `evaluate_*`
functions compute a decision from plain inputs; the small `AuthGate` /
`RoleGate` wrappers add the "navigate once per input change" behavior and hand
the actual navigation to an injected `Navigator`.

Behavior summary:
    - Nothing is decided before the session is hydrated (`loading=True`).
    - Missing token: Auth Gate redirects to `/login`; Role Gate redirects to
      `/login?callbackUrl=<path>` so the deep link survives the login.
    - Role mismatch: the user's actual role picks the target dashboard; unknown
      roles fail closed to `/login`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Tuple
from urllib.parse import quote
import logging

from .domain import LOGIN_PATH, dashboard_for_role, normalize_role

logger = logging.getLogger("radar.identity_access.gates")


class Navigator(Protocol):
    def replace(self, url: str) -> None:
        """Navigate to `url` without adding a history entry."""


@dataclass(frozen=True)
class AuthDecision:
    loading: bool
    authenticated: bool
    redirect: Optional[str] = None


@dataclass(frozen=True)
class RoleDecision:
    loading: bool
    authorized: bool
    role: Optional[str] = None
    redirect: Optional[str] = None


def login_with_callback(current_path: str) -> str:
    return f"{LOGIN_PATH}?callbackUrl={quote(current_path or '/', safe='')}"


def evaluate_auth(*, hydrated: bool, token: Optional[str], current_path: str) -> AuthDecision:
    if not hydrated:
        return AuthDecision(loading=True, authenticated=False)
    if not token:
        redirect = None if current_path == LOGIN_PATH else LOGIN_PATH
        return AuthDecision(loading=False, authenticated=False, redirect=redirect)
    return AuthDecision(loading=False, authenticated=True)


def evaluate_role(
    *,
    hydrated: bool,
    token: Optional[str],
    role: Optional[str],
    required_role: Optional[str],
    current_path: str,
) -> RoleDecision:
    if not hydrated:
        return RoleDecision(loading=True, authorized=False, role=role)
    if not token:
        return RoleDecision(loading=False, authorized=False, role=role, redirect=login_with_callback(current_path))
    if normalize_role(role) != normalize_role(required_role):
        return RoleDecision(loading=False, authorized=False, role=role, redirect=dashboard_for_role(role))
    return RoleDecision(loading=False, authorized=True, role=role)


class AuthGate:
    """Stateful Auth Gate; navigates at most once per distinct input set."""

    def __init__(self, navigator: Navigator):
        self._navigator = navigator
        self._last_inputs: Optional[Tuple[bool, Optional[str], str]] = None
        self.state = AuthDecision(loading=True, authenticated=False)

    def update(self, *, hydrated: bool, token: Optional[str], current_path: str) -> AuthDecision:
        inputs = (hydrated, token, current_path)
        if inputs == self._last_inputs:
            return self.state
        self._last_inputs = inputs
        decision = evaluate_auth(hydrated=hydrated, token=token, current_path=current_path)
        self.state = decision
        if decision.redirect:
            logger.debug("Auth gate redirect: %s -> %s", current_path, decision.redirect)
            self._navigator.replace(decision.redirect)
        return self.state


class RoleGate:
    """Stateful Role Gate bound to one required role."""

    def __init__(self, navigator: Navigator, required_role: str):
        self._navigator = navigator
        self.required_role = required_role
        self._last_inputs: Optional[Tuple[bool, Optional[str], Optional[str], str]] = None
        self.state = RoleDecision(loading=True, authorized=False)

    def update(
        self,
        *,
        hydrated: bool,
        token: Optional[str],
        role: Optional[str],
        current_path: str,
    ) -> RoleDecision:
        inputs = (hydrated, token, role, current_path)
        if inputs == self._last_inputs:
            return self.state
        self._last_inputs = inputs
        decision = evaluate_role(
            hydrated=hydrated,
            token=token,
            role=role,
            required_role=self.required_role,
            current_path=current_path,
        )
        self.state = decision
        if decision.redirect:
            logger.debug("Role gate redirect: %s -> %s", current_path, decision.redirect)
            self._navigator.replace(decision.redirect)
        return self.state
