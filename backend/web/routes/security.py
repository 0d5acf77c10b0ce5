"""
Shared web security helpers (FastAPI-agnostic utilities for routes).

Contains the same-origin check used by the login and PIN form posts. Keeping a
single implementation avoids security drift between routers.
"""
from __future__ import annotations

from typing import Tuple
from urllib.parse import urlparse
import os

from fastapi import Request

Origin = Tuple[str, str, int]


def _default_port(scheme: str) -> int:
    return 443 if scheme == "https" else 80


def _parse_origin(url: str) -> Origin:
    p = urlparse(url)
    if not p.scheme or not p.hostname:
        raise ValueError("invalid_origin")
    scheme = p.scheme.lower()
    return scheme, p.hostname.lower(), int(p.port or _default_port(scheme))


def _server_origin(request: Request) -> Origin:
    """Origin the browser sees; X-Forwarded-* only with RADAR_TRUST_PROXY=true."""
    scheme = (request.url.scheme or "http").lower()
    host = (request.url.hostname or "").lower()
    port = int(request.url.port or _default_port(scheme))

    trust_proxy = (os.getenv("RADAR_TRUST_PROXY", "false") or "").lower() == "true"
    if not trust_proxy:
        return scheme, host, port

    xf_proto = (request.headers.get("x-forwarded-proto") or "").split(",")[0].strip().lower()
    xf_host = (request.headers.get("x-forwarded-host") or "").split(",")[0].strip().lower()
    xf_port = (request.headers.get("x-forwarded-port") or "").split(",")[0].strip()
    if xf_proto:
        scheme = xf_proto
        port = _default_port(scheme)
    if xf_host:
        if ":" in xf_host:
            host, port_str = xf_host.rsplit(":", 1)
            port = int(port_str)
        else:
            host = xf_host
    if xf_port:
        port = int(xf_port)
    return scheme, host, port


def _is_same_origin(request: Request) -> bool:
    """Verify same-origin using Origin or Referer headers.

    Behavior:
    - If Origin is present, require exact scheme/host/port match with server.
    - Else if Referer is present, validate its origin similarly.
    - Else (no headers): allow to not break non-browser clients.
    Malformed headers fail closed.
    """
    try:
        server = _server_origin(request)
        origin_val = request.headers.get("origin")
        if origin_val:
            return _parse_origin(origin_val) == server
        referer_val = request.headers.get("referer")
        if referer_val:
            return _parse_origin(referer_val) == server
        return True
    except ValueError:
        return False
