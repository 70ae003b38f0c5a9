"""Operations-role bearer tokens.

A session token is `<issued_at>.<nonce>.<signature>`, where the signature is
an HMAC-SHA256 of `<issued_at>.<nonce>` keyed with OPERATIONS_TOKEN. Any
process holding the same OPERATIONS_TOKEN can verify it, and nothing is kept
in memory between requests. Rotating OPERATIONS_TOKEN revokes every session.
"""

from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Optional

from resource_booking.domain.models import Clock, utc_now
from resource_booking.utils.config import Settings, get_settings
from resource_booking.utils.logger import get_logger


logger = get_logger(__name__)


class AuthenticationError(Exception):
    """Base authentication failure."""


class OperationsTokenNotConfiguredError(AuthenticationError):
    """Raised when OPERATIONS_TOKEN is missing."""


class InvalidOperationsTokenError(AuthenticationError):
    """Raised when a login secret or bearer token does not verify."""


class AuthService:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._clock = clock or utc_now

    @property
    def auth_enabled(self) -> bool:
        return bool(self._settings.operations_token)

    def _signing_key(self) -> bytes:
        if not self._settings.operations_token:
            raise OperationsTokenNotConfiguredError(
                "OPERATIONS_TOKEN is not configured. Set OPERATIONS_TOKEN in environment variables."
            )
        return self._settings.operations_token.encode("utf-8")

    def _sign(self, payload: str) -> str:
        return hmac.new(self._signing_key(), payload.encode("utf-8"), hashlib.sha256).hexdigest()

    def _now_seconds(self) -> int:
        return int(self._clock().timestamp())

    def login(self, provided_token: str) -> str:
        """Exchange the shared operations secret for a signed session token."""
        if not secrets.compare_digest(provided_token.encode("utf-8"), self._signing_key()):
            logger.warning("Operations login rejected")
            raise InvalidOperationsTokenError("Invalid operations token")
        payload = f"{self._now_seconds()}.{secrets.token_urlsafe(16)}"
        return f"{payload}.{self._sign(payload)}"

    def validate_bearer_token(self, bearer_token: str) -> None:
        if not self.auth_enabled:
            return
        issued_raw, _, rest = bearer_token.partition(".")
        nonce, _, signature = rest.partition(".")
        if not (issued_raw.isascii() and issued_raw.isdigit()) or not nonce or not signature:
            raise InvalidOperationsTokenError("Malformed bearer token")
        expected = self._sign(f"{issued_raw}.{nonce}")
        if not secrets.compare_digest(signature.encode("utf-8"), expected.encode("utf-8")):
            raise InvalidOperationsTokenError("Invalid bearer token")
        age = self._now_seconds() - int(issued_raw)
        if age > self._settings.operations_session_ttl_seconds:
            raise InvalidOperationsTokenError("Bearer token expired. Login again.")
