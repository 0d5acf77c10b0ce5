"""
Configuration and startup security checks for RADAR Web.

Why: A ticketing frontend handles payment callbacks and payout screens. This
module provides a single guard that enforces minimal production safety
constraints without burdening local development, plus small readers for the
environment-driven settings the app needs.

Permissions: The caller needs no special privileges. The functions simply read
environment variables; the guard raises `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

from dataclasses import dataclass
import os

DEFAULT_API_URL = "https://radar-ufvb.onrender.com/"
DEFAULT_SESSION_TTL_SECONDS = 24 * 60 * 60


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


@dataclass(frozen=True)
class APIConfig:
    base_url: str
    timeout_seconds: float = 10.0


def load_api_config() -> APIConfig:
    base_url = (os.getenv("RADAR_API_URL") or DEFAULT_API_URL).strip()
    try:
        timeout = float(os.getenv("RADAR_API_TIMEOUT", "10") or "10")
    except ValueError:
        timeout = 10.0
    return APIConfig(base_url=base_url, timeout_seconds=max(1.0, timeout))


def session_ttl_seconds() -> int:
    raw = (os.getenv("SESSION_TTL_SECONDS") or "").strip()
    try:
        value = int(raw) if raw else DEFAULT_SESSION_TTL_SECONDS
    except ValueError:
        value = DEFAULT_SESSION_TTL_SECONDS
    return max(60, value)


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Checks (prod/stage only):
    - RADAR_API_URL must be set explicitly and use https; tokens travel to it.
    - SESSION_TTL_SECONDS must not exceed 7 days.
    """

    env = os.getenv("RADAR_ENV", "dev")
    if not _is_prod_like(env):
        return  # dev/test remain permissive

    api_url = (os.getenv("RADAR_API_URL") or "").strip()
    if not api_url:
        raise SystemExit("Refusing to start: RADAR_API_URL is unset in production.")
    if not api_url.lower().startswith("https://"):
        raise SystemExit("Refusing to start: RADAR_API_URL must use https in production (got http).")

    ttl_raw = (os.getenv("SESSION_TTL_SECONDS") or "").strip()
    if ttl_raw and ttl_raw.isdigit() and int(ttl_raw) > 7 * DEFAULT_SESSION_TTL_SECONDS:
        raise SystemExit("Refusing to start: SESSION_TTL_SECONDS exceeds 7 days in production.")
