"""Stateless session tokens.

Tokens are HS256 JWTs carrying ``sub`` (user id), ``iss``, ``iat`` and ``exp``.
There is no server-side session table and no revocation list: a token stays
valid until it expires, even across a password change.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional

import pytz
from jose import JWTError, jwt

from config import JWT_ALGORITHM, JWT_EXPIRES_HOURS, JWT_ISSUER, JWT_SECRET_KEY
from core.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ("sub", "iss", "iat", "exp")


def _utc_now() -> datetime:
    return datetime.now(pytz.utc)


class SessionTokenService:
    """Issues and verifies signed, time-limited session tokens."""

    def __init__(
        self,
        secret_key: str = JWT_SECRET_KEY,
        ttl: timedelta = timedelta(hours=JWT_EXPIRES_HOURS),
        issuer: str = JWT_ISSUER,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize SessionTokenService.

        Args:
            secret_key: HMAC signing secret.
            ttl: Lifetime of issued tokens.
            issuer: Value of the ``iss`` claim, also required on verification.
            clock: Returns the current aware UTC datetime; injectable for tests.
        """
        self.secret_key = secret_key
        self.ttl = ttl
        self.issuer = issuer
        self.algorithm = JWT_ALGORITHM
        self.clock = clock or _utc_now

    def issue(self, user_id: str) -> str:
        """Create a token for a user.

        Args:
            user_id: Identity placed in the ``sub`` claim.

        Returns:
            Encoded JWT string.
        """
        issued_at = int(self.clock().timestamp())
        payload = {
            "sub": user_id,
            "iss": self.issuer,
            "iat": issued_at,
            "exp": issued_at + int(self.ttl.total_seconds()),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """Verify a token and return its subject.

        Only ``self.algorithm`` is accepted, so tokens declaring ``none`` or an
        asymmetric algorithm are rejected before any key is used.

        Args:
            token: Encoded JWT string.

        Returns:
            The user id from the ``sub`` claim.

        Raises:
            InvalidTokenError: If the token is malformed, tampered, signed with
                another key or algorithm, from another issuer, or expired.
        """
        if not token or not isinstance(token, str):
            raise InvalidTokenError("Token is missing")

        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                # Expiry is checked below against the injected clock.
                options={"verify_exp": False, "verify_aud": False},
            )
        except JWTError as e:
            raise InvalidTokenError(f"Token rejected: {e}") from e

        for claim in REQUIRED_CLAIMS:
            if payload.get(claim) is None:
                raise InvalidTokenError(f"Token is missing the '{claim}' claim")

        exp = payload["exp"]
        if not isinstance(exp, (int, float)) or isinstance(exp, bool):
            raise InvalidTokenError("Token has a malformed 'exp' claim")
        if self.clock().timestamp() >= exp:
            raise InvalidTokenError("Token has expired")

        subject = payload["sub"]
        if not isinstance(subject, str) or not subject:
            raise InvalidTokenError("Token has a malformed 'sub' claim")
        return subject

    @staticmethod
    def decode_unverified(token: str) -> Dict[str, Any]:
        """Read token claims without checking the signature.

        Raises:
            InvalidTokenError: If the token cannot be decoded at all.
        """
        try:
            return jwt.get_unverified_claims(token)
        except JWTError as e:
            raise InvalidTokenError(f"Token is malformed: {e}") from e
