"""
JWT helpers for the identity_access bounded context.

Why: The RADAR backend issues the access tokens and validates them on every
API call. The web layer only needs to peek at the claims (e.g., to recover a
role the login response did not include), so no signature check happens here.

Security: Claims read through this module are hints for routing only. Never use
them for an authorization decision that the backend does not re-check.
"""
from __future__ import annotations

from typing import Dict

from jose import jwt
from jose.exceptions import JOSEError


class TokenClaimsError(Exception):
    """Raised when a token cannot be parsed."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


def read_unverified_claims(token: str) -> Dict[str, object]:
    """Return the payload of a JWT without verifying its signature.

    Raises
    ------
    TokenClaimsError:
        When the value is not a structurally valid JWT or the payload is not
        a JSON object.
    """
    if not isinstance(token, str) or token.count(".") != 2:
        raise TokenClaimsError("malformed_token")
    try:
        claims = jwt.get_unverified_claims(token)
    except JOSEError as exc:
        raise TokenClaimsError("malformed_token") from exc
    if not isinstance(claims, dict):
        raise TokenClaimsError("malformed_token")
    return claims
