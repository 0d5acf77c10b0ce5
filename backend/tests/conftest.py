"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend and give every test a clean set of
the module-level singletons in `main` (session store, visit passes, notices,
backend client). Without the reset, sessions and one-shot passes leak across
tests and hide ordering bugs.
"""
import os
import sys
from pathlib import Path

import httpx
import pytest

# Ensure modules in backend/ and backend/web are importable across tests
REPO_ROOT = Path(__file__).resolve().parents[2]
BACKEND_DIR = REPO_ROOT / "backend"
WEB_DIR = BACKEND_DIR / "web"
TESTS_DIR = BACKEND_DIR / "tests"
for p in (str(BACKEND_DIR), str(WEB_DIR), str(TESTS_DIR)):
    if p not in sys.path:
        sys.path.insert(0, p)

# Import-time guard must see a dev environment.
os.environ.pop("RADAR_ENV", None)


@pytest.fixture
def anyio_backend():
    return "asyncio"


def _unrouted_backend(request: httpx.Request) -> httpx.Response:
    return httpx.Response(599, json={"error": f"unexpected backend call {request.method} {request.url.path}"})


@pytest.fixture(autouse=True)
def _clear_env_toggles(monkeypatch: pytest.MonkeyPatch):
    """Keep env-driven toggles from leaking between tests."""
    for var in ("RADAR_ENV", "RADAR_TRUST_PROXY", "SESSION_TTL_SECONDS"):
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture(autouse=True)
def _reset_main_singletons(monkeypatch: pytest.MonkeyPatch):
    """Fresh stores and an offline backend client for each test.

    Behavior:
        - `SESSION_STORE` / `VISIT_PASSES` / notices start empty.
        - `API_CLIENT` talks to a MockTransport that fails loudly; tests that
          need the backend install their own handler via
          `utils.radar_fixtures.install_backend`.
        - The settings environment override is cleared.
    """
    import main  # type: ignore
    from identity_access.stores import SessionStore, VisitPassStore  # type: ignore
    from api_client import RadarAPIClient  # type: ignore
    from config import APIConfig  # type: ignore

    monkeypatch.setattr(main, "SESSION_STORE", SessionStore())
    monkeypatch.setattr(main, "VISIT_PASSES", VisitPassStore())
    monkeypatch.setattr(main, "_NOTICES_BY_SESSION", {})
    monkeypatch.setattr(
        main,
        "API_CLIENT",
        RadarAPIClient(APIConfig(base_url="https://backend.test/"), transport=httpx.MockTransport(_unrouted_backend)),
    )
    main.SETTINGS.override_environment(None)
    yield
    main.SETTINGS.override_environment(None)
