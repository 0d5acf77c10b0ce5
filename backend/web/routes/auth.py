"""
Authentication-related FastAPI routes (router-only module).

Why:
    Keep login/logout in a dedicated router so `main.py` only wires the app,
    its middleware and the dashboard pages.

Notes:
    - This module imports `main` inside functions to reuse the shared session
      store, API client and cookie helpers without a circular import.
    - Backend tokens never reach the browser; the cookie only carries the
      opaque session id.
"""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse
import re
import logging

from identity_access.domain import LOGIN_PATH, dashboard_root_for_role, resolve_login_role
from identity_access.errors import BackendError

from components import Layout, LoginForm
from routes.security import _is_same_origin


auth_router = APIRouter(tags=["Auth"])  # explicit paths, no prefix
logger = logging.getLogger("radar.web.auth")

# Single source of truth for allowed in-app redirect paths
# Disallow double slashes and path traversal (".."), allow dots in names
INAPP_PATH_PATTERN = re.compile(r"^(?!.*//)(?!.*\.\.)/[A-Za-z0-9._\-/]*$")
MAX_INAPP_REDIRECT_LEN = 256

MSG_MISSING_CREDENTIALS = "Email and password are required."
MSG_INVALID_CREDENTIALS = "Invalid email or password"
MSG_UNREACHABLE = "Unable to reach authentication server. Please try again."


def _is_inapp_path(value: str | None) -> bool:
    """Return True for absolute in-app paths like "/dashboard/org/payout".

    External URLs, protocol-relative URLs and traversal sequences are rejected.
    """
    if not isinstance(value, str) or not value:
        return False
    if len(value) > MAX_INAPP_REDIRECT_LEN:
        return False
    return bool(INAPP_PATH_PATTERN.match(value))


def _main():
    import main as mod  # type: ignore

    return mod


def _render_login(request: Request, *, email: str = "", callback_url: str | None = None, error: str | None = None, status_code: int = 200) -> HTMLResponse:
    form = LoginForm(email=email, callback_url=callback_url, error=error)
    content = f"""
    <div class="container auth-container">
        <h1>Log in to RADAR</h1>
        {form.render()}
    </div>
    """
    layout = Layout(title="Login", content=content, user=None, show_nav=False, current_path=request.url.path)
    return HTMLResponse(layout.render(), status_code=status_code, headers={"Cache-Control": "private, no-store"})


@auth_router.get("/login")
async def login_page(request: Request, callbackUrl: str | None = None):
    """
    Render the login form.

    Behavior:
        - An already authenticated visitor is sent on to the validated
          `callbackUrl` or to their dashboard.
        - The `callbackUrl` is carried in a hidden field only when it is an
          absolute in-app path.
    Permissions:
        Public.
    """
    mod = _main()
    callback = callbackUrl if _is_inapp_path(callbackUrl) else None
    session = mod.current_session(request)
    if session.authenticated:
        return mod.redirect_response(request, callback or dashboard_root_for_role(session.role))
    return _render_login(request, callback_url=callback)


@auth_router.post("/login")
async def login_submit(request: Request):
    """
    Authenticate against the backend and start a server-side session.

    Behavior:
        - Calls `POST /login/` on the backend.
        - Resolves the session role (backend role, token claims, email domain).
        - Sets the opaque `radar_session` cookie and redirects (303) to the
          validated `callbackUrl` or to the role's dashboard.
        - Failures re-render the form with the backend's `error` message.
    Permissions:
        Public; same-origin form posts only.
    """
    mod = _main()
    if not _is_same_origin(request):
        return JSONResponse({"error": "csrf_violation"}, status_code=403, headers={"Cache-Control": "private, no-store"})

    form = await request.form()
    email = str(form.get("email") or "").strip()
    password = str(form.get("password") or "")
    raw_callback = str(form.get("callbackUrl") or "")
    callback = raw_callback if _is_inapp_path(raw_callback) else None

    if not email or not password:
        return _render_login(request, email=email, callback_url=callback, error=MSG_MISSING_CREDENTIALS, status_code=400)

    try:
        result = await mod.API_CLIENT.login(email=email, password=password)
    except BackendError as exc:
        if exc.status_code is None:
            return _render_login(request, email=email, callback_url=callback, error=MSG_UNREACHABLE, status_code=502)
        logger.info("Login rejected by backend: %s (status=%s)", exc.code, exc.status_code)
        message = exc.user_message(MSG_INVALID_CREDENTIALS, ("error",))
        return _render_login(request, email=email, callback_url=callback, error=message, status_code=401)

    user_email = result.email or email
    role = resolve_login_role(result.role, result.access, user_email)
    ttl = mod._cfg.session_ttl_seconds()
    rec = mod.SESSION_STORE.create(
        token=result.access,
        role=role,
        user={"email": user_email, "user_id": result.user_id},
        user_type=result.user_type or role,
        refresh_token=result.refresh,
        ttl_seconds=ttl,
    )
    logger.info("Login succeeded (role=%s)", role)

    dest = callback or dashboard_root_for_role(role)
    resp = mod.redirect_response(request, dest, status_code=303)
    max_age = ttl if mod.SETTINGS.environment == "prod" else None
    mod._set_session_cookie(resp, rec.session_id, max_age=max_age)
    return resp


@auth_router.get("/logout")
async def logout(request: Request):
    """
    End the session locally and server-side, then return to the login page.

    Behavior:
        - Deletes the session record and any outstanding PIN visit passes.
        - Expires the session cookie. The device PIN artifact is kept.
    Permissions:
        Public; without a session this is a plain redirect.
    """
    mod = _main()
    session = mod.current_session(request)
    sid = session.session_id
    session.logout()
    if sid:
        mod.VISIT_PASSES.revoke_session(sid)
        mod._NOTICES_BY_SESSION.pop(sid, None)
    resp = mod.redirect_response(request, LOGIN_PATH)
    mod._clear_session_cookie(resp)
    return resp
