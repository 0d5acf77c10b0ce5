"""
PIN gate form actions and the reset-PIN page (router-only module).

Why:
    The PIN modal is a plain HTML form. Each button posts here with the
    protected path in `next`; the handler rebuilds the gate for that path,
    runs one action and either unlocks the page for one visit (303 to `next`)
    or renders the modal again with the outcome.

Security:
    - All writes require a same-origin request.
    - `next` must be one of the protected organizer paths; anything else is
      rejected so the endpoints cannot be used as open redirects.
    - PINs are never logged or echoed back into the page.
"""

from __future__ import annotations

from typing import Optional, Tuple
import logging
import re

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response

from identity_access.domain import DASHBOARD_PATH
from identity_access.errors import BackendError
from identity_access.gates import evaluate_role, login_with_callback
from identity_access.pin_gate import Notice, PinGate, is_protected_path
from identity_access.pin_store import LocalPinStore

from components import ResetPinForm
from routes.security import _is_same_origin

try:
    from ..auth_utils import CookieStorage
except ImportError:
    from auth_utils import CookieStorage  # type: ignore


pin_router = APIRouter(tags=["PIN"])
logger = logging.getLogger("radar.web.pin")

PAGE_TITLES = {
    "/dashboard/org": "Overview",
    "/dashboard/org/profile": "Profile",
    "/dashboard/org/settings": "Settings",
    "/dashboard/org/payout": "Wallet / Payout",
}

RESET_PIN_PATTERN = re.compile(r"^[0-9]{4}$")
MSG_EMAIL_REQUIRED = "Email is required"
MSG_RESET_FORMAT = "PIN must be exactly 4 digits"
MSG_RESET_MISMATCH = "PINs do not match"
MSG_RESET_FAILED = "Failed to reset PIN. Please try again."
MSG_RESET_OK = "PIN reset successfully!"

NO_STORE = {"Cache-Control": "private, no-store"}


def _main():
    import main as mod  # type: ignore

    return mod


async def _open_gate(request: Request) -> Tuple[Optional[PinGate], Optional[CookieStorage], dict, Optional[Response]]:
    """Validate a PIN form post and rebuild the gate for its `next` path.

    Returns `(gate, storage, form, None)` on success, otherwise
    `(None, None, form, response)` with the response to send instead.
    """
    mod = _main()
    if not _is_same_origin(request):
        return None, None, {}, JSONResponse({"error": "csrf_violation"}, status_code=403, headers=NO_STORE)

    form = {key: str(value) for key, value in (await request.form()).items()}
    next_path = form.get("next") or ""
    if not is_protected_path(next_path):
        return None, None, form, JSONResponse({"error": "invalid_next"}, status_code=400, headers=NO_STORE)

    session = mod.current_session(request)
    decision = evaluate_role(
        hydrated=session.hydrated,
        token=session.token,
        role=session.role,
        required_role="organizer",
        current_path=next_path,
    )
    if decision.loading:
        return None, None, form, mod.loading_response(request)
    if decision.redirect:
        return None, None, form, mod.redirect_response(request, decision.redirect, status_code=303)

    gate, storage = mod.build_pin_gate(request, next_path)
    return gate, storage, form, None


def _unlock(request: Request, gate: PinGate, storage: CookieStorage) -> Response:
    """Let exactly one load of `gate.path` through and go there."""
    mod = _main()
    session = mod.current_session(request)
    path = gate.path or DASHBOARD_PATH
    if session.session_id:
        mod.VISIT_PASSES.grant(session_id=session.session_id, path=path)
    mod.push_notices(session, gate.notices)
    resp = mod.redirect_response(request, path, status_code=303)
    storage.flush(resp, mod.SETTINGS.environment)
    return resp


def _respond(request: Request, gate: PinGate, storage: CookieStorage, *, unlocked: bool, status_code: int) -> Response:
    mod = _main()
    session = mod.current_session(request)
    if not session.token:
        # Refresh token was rejected during the action; start over at login.
        resp = mod.redirect_response(request, login_with_callback(gate.path or DASHBOARD_PATH), status_code=303)
        mod._clear_session_cookie(resp)
        return resp
    if unlocked:
        return _unlock(request, gate, storage)
    title = PAGE_TITLES.get(gate.path or "", "Dashboard")
    return mod.render_gated_page(request, gate, storage, title=title, status_code=status_code)


@pin_router.post("/pin/set")
async def pin_set(request: Request):
    """
    Register a new PIN with the backend, then store the local artifact.

    Behavior:
        - Success: local artifact written (cookies), success notice, page
          unlocked for this visit.
        - Failure: modal re-rendered in "set" mode with the inline error (400).
        - A PIN already exists on this device: refused without a backend
          call; the "enter" dialog is shown again (400).
    Permissions:
        Organizer session; same-origin.
    """
    gate, storage, form, early = await _open_gate(request)
    if early is not None:
        return early
    ok = await gate.set_pin(form.get("pin", ""))
    return _respond(request, gate, storage, unlocked=ok, status_code=400)


@pin_router.post("/pin/cancel")
async def pin_cancel(request: Request):
    """Skip PIN creation for this visit. Has no effect once a PIN exists."""
    gate, storage, _form, early = await _open_gate(request)
    if early is not None:
        return early
    gate.cancel_later()
    return _respond(request, gate, storage, unlocked=not gate.show_modal, status_code=400)


@pin_router.post("/pin/verify")
async def pin_verify(request: Request):
    """
    Check the typed PIN against the device artifact.

    Behavior:
        - Correct PIN: page unlocked for this visit.
        - Short or wrong PIN: modal stays in "enter" mode with the error (400).
          There is no lockout.
    Permissions:
        Organizer session; same-origin.
    """
    gate, storage, form, early = await _open_gate(request)
    if early is not None:
        return early
    ok = await gate.verify_pin(form.get("pin", ""))
    return _respond(request, gate, storage, unlocked=ok, status_code=400)


@pin_router.post("/pin/forgot")
async def pin_forgot(request: Request):
    """Ask the backend to e-mail a PIN reset link. Never unlocks the page."""
    gate, storage, _form, early = await _open_gate(request)
    if early is not None:
        return early
    await gate.forgot_pin()
    return _respond(request, gate, storage, unlocked=False, status_code=400 if gate.error else 200)


def _render_reset(request: Request, *, email: str = "", otp: str = "", error: Optional[str] = None, status_code: int = 200) -> HTMLResponse:
    mod = _main()
    form = ResetPinForm(email=email, otp=otp, error=error)
    content = f"""
    <div class="container auth-container">
        <h1>Reset your PIN</h1>
        <p>Choose a new 4-digit PIN for your account.</p>
        {form.render()}
    </div>
    """
    notices = [Notice("error", error)] if error else []
    resp = mod.render_page(request, title="Reset PIN", content=content, status_code=status_code, notices=notices)
    resp.headers.update(NO_STORE)
    return resp


@pin_router.get("/reset-pin")
async def reset_pin_page(request: Request, email: str | None = None, otp: str | None = None):
    """
    Render the reset-PIN form, prefilled from the e-mailed link.

    Permissions:
        Public; the backend validates the one-time code.
    """
    mod = _main()
    prefill = (email or mod.current_session(request).email or "").strip()
    return _render_reset(request, email=prefill, otp=(otp or "").strip())


@pin_router.post("/reset-pin")
async def reset_pin_submit(request: Request):
    """
    Change the PIN via the backend and refresh this device's artifact.

    Behavior:
        - Validates email presence, 4 digits and matching confirmation before
          any backend call.
        - On success the local artifact is replaced and the
          browser is sent to `/dashboard`.
    """
    mod = _main()
    if not _is_same_origin(request):
        return JSONResponse({"error": "csrf_violation"}, status_code=403, headers=NO_STORE)

    form = {key: str(value) for key, value in (await request.form()).items()}
    email = form.get("email", "").strip()
    otp = form.get("otp", "").strip()
    new_pin = form.get("new_pin", "").strip()
    confirm_pin = form.get("confirm_pin", "").strip()

    error = None
    if not email:
        error = MSG_EMAIL_REQUIRED
    elif not RESET_PIN_PATTERN.fullmatch(new_pin):
        error = MSG_RESET_FORMAT
    elif new_pin != confirm_pin:
        error = MSG_RESET_MISMATCH
    if error:
        return _render_reset(request, email=email, otp=otp, error=error, status_code=400)

    try:
        body = await mod.API_CLIENT.change_pin(email=email, pin=new_pin, confirm_pin=confirm_pin, otp=otp or None)
    except BackendError as exc:
        logger.warning("PIN reset rejected: %s (status=%s)", exc.code, exc.status_code)
        return _render_reset(request, email=email, otp=otp, error=exc.user_message(MSG_RESET_FAILED), status_code=400)

    storage = mod.pin_storage(request)
    LocalPinStore(storage).update_local_pin(new_pin)
    session = mod.current_session(request)
    message = body.get("Message") or body.get("message") or MSG_RESET_OK
    mod.push_notices(session, [Notice("success", str(message))])
    resp = mod.redirect_response(request, DASHBOARD_PATH, status_code=303)
    storage.flush(resp, mod.SETTINGS.environment)
    return resp
