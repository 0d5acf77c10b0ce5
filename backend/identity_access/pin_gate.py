"""
PIN gate for sensitive organizer routes.

Why: Overview, profile, settings and payout pages show money and identity
details. A short local PIN adds a second look before they are revealed, even
when a logged-in browser is left unattended.

Design:
    - `compute_gate_state` is the pure transition function (path + hydration +
      PIN existence -> state). `PinGate` keeps the per-visit UI state (open,
      mode, typed pin, error, submitting, notices) and runs the actions.
    - Verification is local against `LocalPinStore`; only "set" and "forgot"
      talk to the backend.
    - Passing the gate is valid for one route visit. The gate does not grant a
      standing session.

Security:
    The gate is client-side defense only. It does not replace server-side
    authorization for the operations behind the gated pages.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Protocol
import logging
import re

from .errors import BackendError
from .pin_store import LocalPinStore

logger = logging.getLogger("radar.identity_access.pin_gate")

PROTECTED_PATHS = frozenset(
    {
        "/dashboard/org",
        "/dashboard/org/profile",
        "/dashboard/org/settings",
        "/dashboard/org/payout",
    }
)

PIN_PATTERN = re.compile(r"^[0-9]{4}$")
PIN_MESSAGE_KEYS = ("Message", "error")

MSG_NO_EMAIL = "Unable to detect your email. Please re-login."
MSG_PIN_FORMAT = "PIN must be exactly 4 digits."
MSG_ENTER_PIN = "Enter your PIN to continue."
MSG_INCORRECT_PIN = "Incorrect PIN. Access denied."
MSG_SET_FAILED = "Failed to set PIN"
MSG_FORGOT_FAILED = "Failed to send PIN reset link"
MSG_SET_OK = "PIN set successfully"
MSG_FORGOT_OK = "PIN reset link sent to your email"


class GateState(str, Enum):
    UNINITIALIZED = "uninitialized"
    NONE = "none"
    SET = "set"
    ENTER = "enter"


@dataclass(frozen=True)
class Notice:
    level: str  # "success" | "error"
    text: str


class PinService(Protocol):
    async def set_pin(self, *, email: str, pin: str) -> None: ...

    async def forgot_pin(self, *, email: str) -> None: ...


def is_protected_path(path: Optional[str]) -> bool:
    if not path:
        return False
    return path in PROTECTED_PATHS


def compute_gate_state(path: Optional[str], *, ready: bool, pin_exists: bool) -> GateState:
    """Derive the gate state; never persisted, recomputed on every input change."""
    if not ready:
        return GateState.UNINITIALIZED
    if not is_protected_path(path):
        return GateState.NONE
    return GateState.ENTER if pin_exists else GateState.SET


class PinGate:
    def __init__(self, pin_store: LocalPinStore, api: PinService, email: Optional[str]):
        self.pin_store = pin_store
        self.api = api
        self.email = email
        self.path: Optional[str] = None
        self.ready = False
        self.has_pin = False
        self.open = False
        self.mode = GateState.NONE
        self.pin = ""
        self.error = ""
        self.submitting = False
        self.notices: List[Notice] = []

    # --- State -------------------------------------------------------------

    def hydrate(self) -> None:
        self.has_pin = self.pin_store.has_pin_set()
        self.ready = True
        self._evaluate()

    def navigate(self, path: str) -> GateState:
        self.path = path
        self._evaluate()
        return self.state

    @property
    def state(self) -> GateState:
        return compute_gate_state(self.path, ready=self.ready, pin_exists=self.has_pin)

    @property
    def blocking_until_ready(self) -> bool:
        return is_protected_path(self.path) and not self.ready

    @property
    def show_modal(self) -> bool:
        if self.blocking_until_ready:
            return True
        return self.ready and self.open and self.mode in (GateState.SET, GateState.ENTER)

    @property
    def content_visible(self) -> bool:
        return not self.show_modal

    def close(self) -> None:
        self.open = False
        self.mode = GateState.NONE
        self.pin = ""
        self.error = ""

    def _evaluate(self) -> None:
        if not self.ready:
            return
        self.pin = ""
        self.error = ""
        state = self.state
        if state is GateState.NONE:
            self.open = False
            self.mode = GateState.NONE
            return
        self.open = True
        self.mode = state

    # --- Actions -----------------------------------------------------------

    async def set_pin(self, pin: str) -> bool:
        """Register a new PIN; only offered while the device has none."""
        self.error = ""
        if self.submitting:
            return False
        if self.mode is not GateState.SET:
            if self.mode is GateState.ENTER:
                self.error = MSG_ENTER_PIN
            return False
        if not self.email:
            self.error = MSG_NO_EMAIL
            return False
        pin = pin or ""
        self.pin = pin
        if not PIN_PATTERN.fullmatch(pin):
            self.error = MSG_PIN_FORMAT
            return False

        self.submitting = True
        try:
            await self.api.set_pin(email=self.email, pin=pin)
            self.pin_store.store_pin_locally(pin)
            self.has_pin = True
            self.notices.append(Notice("success", MSG_SET_OK))
            self.close()
            return True
        except BackendError as exc:
            logger.warning("PIN set rejected: %s (status=%s)", exc.code, exc.status_code)
            msg = exc.user_message(MSG_SET_FAILED, PIN_MESSAGE_KEYS)
            self.error = msg
            self.notices.append(Notice("error", msg))
            return False
        finally:
            self.submitting = False

    def cancel_later(self) -> None:
        """Skip PIN creation for this visit; nothing is persisted."""
        if self.mode is GateState.SET:
            self.close()

    async def verify_pin(self, pin: str) -> bool:
        self.error = ""
        if self.submitting:
            return False
        pin = pin or ""
        self.pin = pin
        if len(pin) < 4:
            self.error = MSG_ENTER_PIN
            return False

        self.submitting = True
        try:
            if not self.pin_store.verify_pin_locally(pin):
                self.error = MSG_INCORRECT_PIN
                return False
            self.close()
            return True
        finally:
            self.submitting = False

    async def forgot_pin(self) -> bool:
        self.error = ""
        if self.submitting:
            return False
        if not self.email:
            self.error = MSG_NO_EMAIL
            return False

        self.submitting = True
        try:
            await self.api.forgot_pin(email=self.email)
            self.notices.append(Notice("success", MSG_FORGOT_OK))
            return True
        except BackendError as exc:
            logger.warning("PIN reset request rejected: %s (status=%s)", exc.code, exc.status_code)
            self.notices.append(Notice("error", exc.user_message(MSG_FORGOT_FAILED, PIN_MESSAGE_KEYS)))
            return False
        finally:
            self.submitting = False
