"""
Identity domain constants and simple helpers.

Why:
- Centralize allowed roles and role-to-dashboard routing so the gates, the
  login adapter and the navigation never drift apart.
- Keep role comparison rules (lower-case, trimmed) in one place.
"""

from __future__ import annotations

from typing import Optional

from .tokens import TokenClaimsError, read_unverified_claims

# Keep roles minimal and explicit. Immutable to prevent accidental mutation.
ALLOWED_ROLES = frozenset({"student", "organizer"})
# "org" is accepted as an organizer alias only for top-level dashboard routing.
ORGANIZER_ALIASES = frozenset({"organizer", "org"})

LOGIN_PATH = "/login"
DASHBOARD_PATH = "/dashboard"
ORG_DASHBOARD_PATH = "/dashboard/org"
STUDENT_DASHBOARD_PATH = "/dashboard/student"

STUDENT_EMAIL_DOMAIN = "@student.oauife.edu.ng"


def normalize_role(value: Optional[str]) -> Optional[str]:
    """Return the lower-cased, trimmed role or None for missing/blank values."""
    if not isinstance(value, str):
        return None
    role = value.strip().lower()
    return role or None


def dashboard_for_role(role: Optional[str]) -> str:
    """Redirect target after a role mismatch.

    Only the user's actual role decides: organizers go to their dashboard,
    students to theirs, everything else (unknown or missing) to the login page.
    """
    normalized = normalize_role(role)
    if normalized == "organizer":
        return ORG_DASHBOARD_PATH
    if normalized == "student":
        return STUDENT_DASHBOARD_PATH
    return LOGIN_PATH


def dashboard_root_for_role(role: Optional[str]) -> str:
    """Resolve the landing dashboard for `/dashboard`.

    Unlike `dashboard_for_role`, this accepts the `org` alias and sends every
    other known-or-unknown role to the student dashboard.
    """
    normalized = normalize_role(role)
    if not normalized:
        return LOGIN_PATH
    if normalized in ORGANIZER_ALIASES:
        return ORG_DASHBOARD_PATH
    return STUDENT_DASHBOARD_PATH


def resolve_login_role(role: Optional[str], access_token: Optional[str], email: Optional[str]) -> str:
    """Determine the session role after a successful backend login.

    Order:
        1. The role the backend returned.
        2. Claims in the access token (`role`, `user_type`, `is_organizer`).
           The token is not verified here; the backend verifies it on every call.
        3. The e-mail domain: student addresses are students, all others organizers.
    """
    if isinstance(role, str) and role.strip():
        return role
    if access_token:
        try:
            claims = read_unverified_claims(access_token)
        except TokenClaimsError:
            claims = {}
        claim_role = claims.get("role") or claims.get("user_type")
        if isinstance(claim_role, str) and claim_role.strip():
            return claim_role
        if claims.get("is_organizer"):
            return "organizer"
    if (email or "").strip().lower().endswith(STUDENT_EMAIL_DOMAIN):
        return "student"
    return "organizer"


__all__ = [
    "ALLOWED_ROLES",
    "ORGANIZER_ALIASES",
    "LOGIN_PATH",
    "DASHBOARD_PATH",
    "ORG_DASHBOARD_PATH",
    "STUDENT_DASHBOARD_PATH",
    "normalize_role",
    "dashboard_for_role",
    "dashboard_root_for_role",
    "resolve_login_role",
]
