"""
Security config guard and environment readers.

Validates that production/staging environments fail fast when the backend URL
is unset or not https, or the session lifetime is excessive, while development
stays permissive.
"""
from __future__ import annotations

import pytest

import config as cfg  # type: ignore


def test_guard_allows_dev_defaults(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("RADAR_ENV", "dev")
    monkeypatch.delenv("RADAR_API_URL", raising=False)
    cfg.ensure_secure_config_on_startup()


@pytest.mark.parametrize("env", ["prod", "production", "stage", "STAGING"])
def test_guard_requires_api_url_in_prod_like_envs(monkeypatch: pytest.MonkeyPatch, env):
    monkeypatch.setenv("RADAR_ENV", env)
    monkeypatch.delenv("RADAR_API_URL", raising=False)
    with pytest.raises(SystemExit):
        cfg.ensure_secure_config_on_startup()


def test_guard_rejects_plain_http_backend_in_prod(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("RADAR_ENV", "prod")
    monkeypatch.setenv("RADAR_API_URL", "http://radar-backend.internal/")
    with pytest.raises(SystemExit):
        cfg.ensure_secure_config_on_startup()


def test_guard_rejects_week_long_sessions_in_prod(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("RADAR_ENV", "prod")
    monkeypatch.setenv("RADAR_API_URL", "https://api.radar.example/")
    monkeypatch.setenv("SESSION_TTL_SECONDS", str(8 * 24 * 60 * 60))
    with pytest.raises(SystemExit):
        cfg.ensure_secure_config_on_startup()


def test_guard_accepts_sane_prod_config(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("RADAR_ENV", "prod")
    monkeypatch.setenv("RADAR_API_URL", "https://api.radar.example/")
    monkeypatch.setenv("SESSION_TTL_SECONDS", "3600")
    cfg.ensure_secure_config_on_startup()


def test_load_api_config_defaults_and_overrides(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("RADAR_API_URL", raising=False)
    monkeypatch.delenv("RADAR_API_TIMEOUT", raising=False)
    default = cfg.load_api_config()
    assert default.base_url == cfg.DEFAULT_API_URL
    assert default.timeout_seconds == 10.0

    monkeypatch.setenv("RADAR_API_URL", " https://api.radar.example/ ")
    monkeypatch.setenv("RADAR_API_TIMEOUT", "not-a-number")
    custom = cfg.load_api_config()
    assert custom.base_url == "https://api.radar.example/"
    assert custom.timeout_seconds == 10.0


@pytest.mark.parametrize("raw, expected", [("", 86400), ("abc", 86400), ("5", 60), ("7200", 7200)])
def test_session_ttl_seconds(monkeypatch: pytest.MonkeyPatch, raw, expected):
    monkeypatch.setenv("SESSION_TTL_SECONDS", raw)
    assert cfg.session_ttl_seconds() == expected
