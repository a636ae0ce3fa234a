"""Shared-secret gate for the admin surface.

The admin password doubles as the bearer token the browser sends on every
admin request.  There is a single secret and no user identity.
"""

from __future__ import annotations

import hmac
import logging

from adjacent.errors import UnauthorizedError

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


def extract_bearer(header: str | None) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    if not header:
        return None
    scheme, _, token = header.strip().partition(" ")
    if scheme.lower() != BEARER_SCHEME or not token.strip():
        return None
    return token.strip()


class AuthGate:
    """Allow or deny a request by comparing its bearer token to the secret."""

    def __init__(self, secret: str) -> None:
        self._secret = secret.encode("utf-8")

    @property
    def is_configured(self) -> bool:
        return bool(self._secret)

    def allows(self, header: str | None) -> bool:
        token = extract_bearer(header)
        if token is None or not self._secret:
            return False
        return hmac.compare_digest(token.encode("utf-8"), self._secret)

    def require(self, header: str | None) -> None:
        """Raise UnauthorizedError unless the header carries the secret."""
        if not self.allows(header):
            logger.warning("Rejected admin request with missing or invalid credential")
            raise UnauthorizedError()
