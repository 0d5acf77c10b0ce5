"""
Shared authentication utilities.

Why:
    Avoid duplicating cookie policy logic across modules (main app, auth
    router, PIN router). The device-local PIN artifact also lives in cookies,
    so the cookie-backed storage mapping sits here too.

Design:
    `cookie_opts` is pure. `CookieStorage` is a dict over the request cookies
    that remembers writes; callers flush them onto the outgoing response.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Set

from fastapi.responses import Response

# One year; the PIN artifact outlives sessions like browser local storage does.
LOCAL_STORAGE_MAX_AGE = 365 * 24 * 60 * 60


def cookie_opts(environment: str) -> dict:
    """Return hardened cookie flags (dev = prod).

    Returns a mapping with keys:
      - secure: True
      - samesite: "lax"  # sent on top-level navigations, e.g. payment callbacks
    """
    return {"secure": True, "samesite": "lax"}


class CookieStorage(dict):
    """Dict view over selected request cookies that tracks modified keys."""

    def __init__(self, cookies: Mapping[str, str], keys: Iterable[str]):
        super().__init__({k: cookies[k] for k in keys if cookies.get(k)})
        self._dirty: Set[str] = set()

    def __setitem__(self, key: str, value: str) -> None:
        super().__setitem__(key, value)
        self._dirty.add(key)

    def __delitem__(self, key: str) -> None:
        super().__delitem__(key)
        self._dirty.add(key)

    def flush(self, response: Response, environment: str) -> None:
        opts = cookie_opts(environment)
        for key in sorted(self._dirty):
            if key in self:
                response.set_cookie(
                    key=key,
                    value=self[key],
                    httponly=True,
                    secure=opts["secure"],
                    samesite=opts["samesite"],
                    path="/",
                    max_age=LOCAL_STORAGE_MAX_AGE,
                )
            else:
                response.delete_cookie(key, path="/")
        self._dirty.clear()
