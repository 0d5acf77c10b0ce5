"""
RADAR backend REST client (web adapter side).

Why: Every business operation (login, PIN registration, PIN reset) lives in the
external backend. This module is the only place that knows its URLs and JSON
shapes, so routes and the PIN gate stay free of HTTP details.

Behavior:
    - JSON in/out over `httpx.AsyncClient`; one short-lived client per call.
    - Authenticated calls send `Authorization: Bearer <access>`. On a 401 they
      refresh the access token once with the session's refresh token and retry.
      If the refresh token itself is rejected, the session is logged out.
    - Failures raise `BackendError` carrying the status and decoded error body;
      callers choose the user-facing message.

Security: Never log request bodies; they contain passwords and PINs.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Union
import logging

import httpx
from pydantic import BaseModel, ValidationError

from identity_access.errors import BackendError
from identity_access.session import AuthSession

try:
    from .config import APIConfig
except ImportError:
    from config import APIConfig  # type: ignore

logger = logging.getLogger("radar.web.api")


class LoginResult(BaseModel):
    """Subset of the backend's `/login/` response the web app relies on."""

    access: str
    refresh: Optional[str] = None
    user_id: Optional[Union[int, str]] = None
    email: Optional[str] = None
    role: Optional[str] = None
    user_type: Optional[str] = None


class RadarAPIClient:
    def __init__(self, config: APIConfig, *, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout_seconds,
            transport=self._transport,
            headers={"Content-Type": "application/json"},
        )

    async def post(
        self,
        path: str,
        payload: Dict[str, Any],
        *,
        token: Optional[str] = None,
    ) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        try:
            async with self._client() as client:
                resp = await client.post(path, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Backend call %s failed: %s", path, exc.__class__.__name__)
            raise BackendError("backend_unreachable") from exc

        try:
            body = resp.json()
        except ValueError:
            body = None
        if resp.status_code >= 400:
            logger.info("Backend call %s rejected with status %s", path, resp.status_code)
            raise BackendError("backend_rejected", status_code=resp.status_code, body=body)
        return body if isinstance(body, dict) else {}

    async def login(self, *, email: str, password: str) -> LoginResult:
        body = await self.post("/login/", {"email": email, "password": password})
        try:
            return LoginResult.model_validate(body)
        except ValidationError as exc:
            raise BackendError("invalid_login_response", body=body) from exc

    async def refresh_access_token(self, refresh_token: str) -> str:
        body = await self.post("/token/refresh/", {"refresh": refresh_token})
        access = body.get("access")
        if not isinstance(access, str) or not access:
            raise BackendError("refresh_without_access", body=body)
        return access

    async def forgot_pin(self, *, email: str) -> None:
        await self.post("/forgot-pin/", {"Email": email})

    async def change_pin(self, *, email: str, pin: str, confirm_pin: str, otp: Optional[str] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"Email": email, "Pin": pin, "ConfirmPin": confirm_pin}
        if otp:
            payload["otp"] = otp
        return await self.post("/change-pin/", payload)

    def for_session(
        self,
        session: AuthSession,
        *,
        on_token_refreshed: Optional[Callable[[str], None]] = None,
    ) -> "SessionAPI":
        return SessionAPI(self, session, on_token_refreshed=on_token_refreshed)


def _is_token_not_valid(exc: BackendError) -> bool:
    body = exc.body if isinstance(exc.body, dict) else {}
    return exc.status_code == 401 and (
        body.get("code") == "token_not_valid"
        or body.get("detail") == "Given token not valid for any token type"
    )


class SessionAPI:
    """Backend calls on behalf of one logged-in session."""

    def __init__(
        self,
        client: RadarAPIClient,
        session: AuthSession,
        *,
        on_token_refreshed: Optional[Callable[[str], None]] = None,
    ):
        self.client = client
        self.session = session
        self._on_token_refreshed = on_token_refreshed

    async def post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return await self.client.post(path, payload, token=self.session.token)
        except BackendError as exc:
            if exc.status_code != 401 or not self.session.refresh_token:
                raise
        try:
            access = await self.client.refresh_access_token(self.session.refresh_token)
        except BackendError as exc:
            if _is_token_not_valid(exc):
                logger.info("Refresh token rejected; logging out session")
                self.session.logout()
            raise
        self.session.token = access
        if self._on_token_refreshed is not None:
            self._on_token_refreshed(access)
        return await self.client.post(path, payload, token=access)

    async def set_pin(self, *, email: str, pin: str) -> None:
        await self.post("/pin/", {"Email": email, "pin": pin})

    async def forgot_pin(self, *, email: str) -> None:
        await self.client.forgot_pin(email=email)
