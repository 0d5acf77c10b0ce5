"RADAR web"
from __future__ import annotations

from pathlib import Path
import os
import logging
from typing import Dict, List, Optional, Sequence, Tuple

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse, JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from dotenv import load_dotenv

# Component Imports
from components import Layout, PinModal, DashboardSkeleton, LoadingScreen

# Identity Imports
from identity_access.domain import (
    DASHBOARD_PATH,
    ORG_DASHBOARD_PATH,
    STUDENT_DASHBOARD_PATH,
    dashboard_root_for_role,
)
from identity_access.gates import AuthGate, RoleGate
from identity_access.pin_gate import Notice, PinGate, is_protected_path
from identity_access.pin_store import LocalPinStore, STORAGE_KEYS
from identity_access.session import AuthSession
from identity_access.stores import SessionStore, VisitPassStore

try:
    from .auth_utils import CookieStorage, cookie_opts
    from .api_client import RadarAPIClient
except ImportError:
    from auth_utils import CookieStorage, cookie_opts
    from api_client import RadarAPIClient


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out/opt-in via RADAR_ENABLE_DOTENV (default true
      outside pytest).
    """
    import sys
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("RADAR_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    load_dotenv()

# Minimal production safety checks (fail-fast on insecure config)
try:
    from . import config as _cfg
except ImportError:
    import config as _cfg  # type: ignore
_cfg.ensure_secure_config_on_startup()

# --- App & Settings Setup -------------------------------------------------------

class AuthSettings:
    def __init__(self) -> None:
        self._env_override: str | None = None

    @property
    def environment(self) -> str:
        if self._env_override is not None:
            return self._env_override
        return os.getenv("RADAR_ENV", "dev").lower()

    def override_environment(self, env: str | None) -> None:
        """Override environment for tests (e.g., "prod"), or reset with None."""
        self._env_override = env


logger = logging.getLogger("radar.identity_access")
SETTINGS = AuthSettings()
SESSION_COOKIE_NAME = "radar_session"

SESSION_STORE = SessionStore()
VISIT_PASSES = VisitPassStore()
API_CLIENT = RadarAPIClient(_cfg.load_api_config())

# Notices survive exactly one redirect (PRG); keyed by session id.
_NOTICES_BY_SESSION: Dict[str, List[Notice]] = {}

app = FastAPI(title="RADAR web", description="Campus event ticketing", version="0.1.0")

# --- Static Files & Routers -----------------------------------------------------

static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

from routes.auth import auth_router
from routes.pin import pin_router

# --- Session Helpers & Middleware -----------------------------------------------

NO_STORE = {"Cache-Control": "private, no-store"}


def _session_cookie_options() -> dict:
    return cookie_opts(SETTINGS.environment)


def _set_session_cookie(response: Response, value: str, *, max_age: int | None = None) -> None:
    opts = _session_cookie_options()
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=value,
        httponly=True,
        secure=opts["secure"],
        samesite=opts["samesite"],
        path="/",
        max_age=max_age,
    )


def _clear_session_cookie(response: Response) -> None:
    opts = _session_cookie_options()
    response.delete_cookie(
        SESSION_COOKIE_NAME,
        path="/",
        secure=opts["secure"],
        httponly=True,
        samesite=opts["samesite"],
    )


def _is_public_path(path: str) -> bool:
    return path.startswith("/static/") or path in ("/health", "/favicon.ico")


def _under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


class _CapturedRedirect:
    """Navigator that records the gate's target instead of navigating."""

    def __init__(self) -> None:
        self.url: Optional[str] = None

    def replace(self, url: str) -> None:
        self.url = url


def redirect_response(request: Request, url: str, *, status_code: int = 302) -> Response:
    if "HX-Request" in request.headers:
        # Security: prevent intermediaries from caching redirect decisions for HTMX calls
        return Response(status_code=204, headers={"HX-Redirect": url, "Vary": "HX-Request", **NO_STORE})
    resp = RedirectResponse(url=url, status_code=status_code)
    resp.headers.update(NO_STORE)
    return resp


def loading_response(request: Request) -> HTMLResponse:
    """Session state is not known yet; ask the browser to retry shortly."""
    layout = Layout(
        title="Loading",
        content=LoadingScreen().render(),
        show_nav=False,
        current_path=request.url.path,
        refresh_seconds=1,
    )
    return HTMLResponse(layout.render(), status_code=503, headers={"Retry-After": "1", **NO_STORE})


def current_session(request: Request) -> AuthSession:
    session = getattr(request.state, "session", None)
    if session is None:
        session = AuthSession.bound_to(SESSION_STORE)
        request.state.session = session
    return session


@app.middleware("http")
async def route_gate(request: Request, call_next):
    """Apply the Role Gate to role-scoped dashboards and the Auth Gate elsewhere."""
    path = request.url.path
    if not _under(path, DASHBOARD_PATH):
        return await call_next(request)

    session = current_session(request)
    navigator = _CapturedRedirect()
    if _under(path, ORG_DASHBOARD_PATH):
        decision = RoleGate(navigator, "organizer").update(
            hydrated=session.hydrated, token=session.token, role=session.role, current_path=path
        )
    elif _under(path, STUDENT_DASHBOARD_PATH):
        decision = RoleGate(navigator, "student").update(
            hydrated=session.hydrated, token=session.token, role=session.role, current_path=path
        )
    else:
        decision = AuthGate(navigator).update(hydrated=session.hydrated, token=session.token, current_path=path)

    if decision.loading:
        return loading_response(request)
    if navigator.url:
        return redirect_response(request, navigator.url)
    return await call_next(request)


@app.middleware("http")
async def session_hydration(request: Request, call_next):
    path = request.url.path
    if _is_public_path(path):
        return await call_next(request)

    session = AuthSession.bound_to(SESSION_STORE)
    sid = request.cookies.get(SESSION_COOKIE_NAME)
    try:
        rec = SESSION_STORE.get(sid) if sid else None
    except Exception as exc:
        # Unhydrated session: gates render the loading state instead of redirecting.
        logger.warning("Session store get failed: %s", exc.__class__.__name__)
    else:
        session.hydrate(rec)
    request.state.session = session
    return await call_next(request)

# --- Security Headers Middleware ----------------------------------------------

@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    if SETTINGS.environment == "prod":
        # Harden CSP in production: avoid 'unsafe-inline' to reduce XSS surface.
        csp = (
            "default-src 'self'; script-src 'self'; style-src 'self'; "
            "img-src 'self' data:; font-src 'self' data:; connect-src 'self'; form-action 'self';"
        )
    else:
        csp = (
            "default-src 'self'; script-src 'self' 'unsafe-inline'; style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:; font-src 'self' data:; connect-src 'self'; form-action 'self';"
        )
    response.headers.setdefault("Content-Security-Policy", csp)
    # Payout and settings pages must never render inside a foreign frame.
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    if SETTINGS.environment == "prod":
        response.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")
    response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=()")
    # HSTS: always on (dev = prod)
    response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    return response

# --- Notices & PIN gate wiring ---------------------------------------------------

def push_notices(session: AuthSession, notices: Sequence[Notice]) -> None:
    """Queue notices for the next page of this session; drops those of dead sessions."""
    for sid in [sid for sid in _NOTICES_BY_SESSION if SESSION_STORE.get(sid) is None]:
        _NOTICES_BY_SESSION.pop(sid, None)
    if session.session_id and notices:
        _NOTICES_BY_SESSION.setdefault(session.session_id, []).extend(notices)


def pop_notices(session: AuthSession) -> List[Notice]:
    if not session.session_id:
        return []
    return _NOTICES_BY_SESSION.pop(session.session_id, [])


def pin_storage(request: Request) -> CookieStorage:
    return CookieStorage(request.cookies, STORAGE_KEYS.values())


def build_pin_gate(request: Request, path: str) -> Tuple[PinGate, CookieStorage]:
    """Create a hydrated PIN gate for `path` backed by this browser's cookies."""
    session = current_session(request)
    storage = pin_storage(request)

    def _remember_token(token: str) -> None:
        if session.session_id:
            SESSION_STORE.update_token(session.session_id, token)

    api = API_CLIENT.for_session(session, on_token_refreshed=_remember_token)
    gate = PinGate(LocalPinStore(storage), api, session.email)
    gate.navigate(path)
    gate.hydrate()
    return gate, storage


def _user_context(session: AuthSession) -> Optional[dict]:
    if not session.authenticated:
        return None
    return {"email": session.email or "", "role": session.role or ""}


def render_page(
    request: Request,
    *,
    title: str,
    content: str,
    status_code: int = 200,
    overlay: str = "",
    notices: Sequence[Notice] = (),
) -> HTMLResponse:
    """Render a full page for the current session.

    Behavior:
        - Collects pending notices from a previous redirect and appends the
          notices produced by this request.
        - Personalized pages are never cached.
    """
    session = current_session(request)
    all_notices = pop_notices(session) + list(notices)
    layout = Layout(
        title=title,
        content=content,
        user=_user_context(session),
        current_path=request.url.path,
        overlay=overlay,
        notices=all_notices,
    )
    response = HTMLResponse(content=layout.render(), status_code=status_code)
    if session.authenticated:
        response.headers.update(NO_STORE)
    return response


def render_gated_page(
    request: Request,
    gate: PinGate,
    storage: CookieStorage,
    *,
    title: str,
    status_code: int = 200,
) -> HTMLResponse:
    """Render the PIN modal above a skeleton; gated content is never sent."""
    overlay = ""
    if gate.show_modal:
        overlay = PinModal(
            mode=gate.mode,
            next_path=gate.path or ORG_DASHBOARD_PATH,
            error=gate.error or None,
            loading=gate.blocking_until_ready,
            submitting=gate.submitting,
        ).render()
    response = render_page(
        request,
        title=title,
        content=DashboardSkeleton().render(),
        status_code=status_code,
        overlay=overlay,
        notices=gate.notices,
    )
    storage.flush(response, SETTINGS.environment)
    return response


def _org_page(request: Request, *, title: str, content: str) -> HTMLResponse:
    """Organizer page; sensitive paths show content only with a fresh visit pass."""
    path = request.url.path
    if not is_protected_path(path):
        return render_page(request, title=title, content=content)
    session = current_session(request)
    if session.session_id and VISIT_PASSES.consume(session_id=session.session_id, path=path):
        return render_page(request, title=title, content=content)
    gate, storage = build_pin_gate(request, path)
    if gate.content_visible:
        return render_page(request, title=title, content=content)
    return render_gated_page(request, gate, storage, title=title)


def _section(heading: str, text: str) -> str:
    return f"""
    <div class="container">
        <h1>{heading}</h1>
        <p>{text}</p>
    </div>
    """

# --- Pages ------------------------------------------------------------------------

@app.get("/", response_class=HTMLResponse)
async def home(request: Request):
    session = current_session(request)
    if session.authenticated:
        cta = f'<a class="btn btn-primary" href="{DASHBOARD_PATH}">Go to dashboard</a>'
    else:
        cta = '<a class="btn btn-primary" href="/login">Log in</a>'
    content = f"""
    <div class="container">
        <h1>Welcome to RADAR</h1>
        <p>Discover campus events, buy tickets and manage your own events in one place.</p>
        {cta}
    </div>
    """
    return render_page(request, title="Home", content=content)


@app.get("/dashboard")
async def dashboard_router(request: Request):
    session = current_session(request)
    return redirect_response(request, dashboard_root_for_role(session.role))


@app.get("/dashboard/org", response_class=HTMLResponse)
async def org_overview(request: Request):
    return _org_page(request, title="Overview", content=_section("Overview", "Ticket sales and revenue for your events."))


@app.get("/dashboard/org/profile", response_class=HTMLResponse)
async def org_profile(request: Request):
    return _org_page(request, title="Profile", content=_section("Profile", "Your organization details."))


@app.get("/dashboard/org/settings", response_class=HTMLResponse)
async def org_settings(request: Request):
    content = _section("Settings", "Account and security settings.") + (
        '<div class="container"><a class="btn btn-secondary" href="/reset-pin">Reset PIN</a></div>'
    )
    return _org_page(request, title="Settings", content=content)


@app.get("/dashboard/org/payout", response_class=HTMLResponse)
async def org_payout(request: Request):
    return _org_page(request, title="Wallet / Payout", content=_section("Wallet / Payout", "Balance, bank account and withdrawals."))


@app.get("/dashboard/org/my-event", response_class=HTMLResponse)
async def org_my_events(request: Request):
    return _org_page(request, title="My Events", content=_section("My Events", "Events you have created."))


@app.get("/dashboard/org/create-event", response_class=HTMLResponse)
async def org_create_event(request: Request):
    return _org_page(request, title="Create Event", content=_section("Create Event", "Publish a new event."))


@app.get("/dashboard/org/qr-scanner", response_class=HTMLResponse)
async def org_qr_scanner(request: Request):
    return _org_page(request, title="QR Scanner", content=_section("QR Scanner", "Check in attendees at the door."))


@app.get("/dashboard/student", response_class=HTMLResponse)
async def student_overview(request: Request):
    return render_page(request, title="Overview", content=_section("Overview", "Your upcoming events and tickets."))


@app.get("/dashboard/student/events", response_class=HTMLResponse)
async def student_events(request: Request):
    return render_page(request, title="Events", content=_section("Events", "Browse events on campus."))


@app.get("/dashboard/student/my-tickets", response_class=HTMLResponse)
async def student_tickets(request: Request):
    return render_page(request, title="My Tickets", content=_section("My Tickets", "Tickets you have bought."))


@app.get("/dashboard/student/profile", response_class=HTMLResponse)
async def student_profile(request: Request):
    return render_page(request, title="Profile", content=_section("Profile", "Your student profile."))


@app.get("/dashboard/student/settings", response_class=HTMLResponse)
async def student_settings(request: Request):
    return render_page(request, title="Settings", content=_section("Settings", "Account settings."))

# --- Other Routes & App Includes -----------------------------------------------

app.include_router(auth_router)
app.include_router(pin_router)


@app.get("/health")
async def health_check():
    # Security: include no-store to avoid caching any runtime status.
    return JSONResponse({"status": "healthy"}, headers=NO_STORE)
