"""JWT token generation and validation for accountkeeper."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from accountkeeper.errors import ConfigurationError, TokenExpiredError, TokenInvalidError

REQUIRED_CLAIMS = ["sub", "email", "iat", "exp"]


@dataclass(frozen=True)
class TokenClaims:
    """Identity decoded from a verified token."""

    user_id: str
    email: str
    issued_at: datetime
    expires_at: datetime


class TokenService:
    """Issues and verifies signed, time-bound bearer tokens.

    Stateless: nothing is stored server-side, so there is no revocation list.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", expiration: timedelta = timedelta(days=7)):
        if not secret_key:
            raise ConfigurationError("A signing secret is required to issue tokens")
        if expiration <= timedelta(0):
            raise ConfigurationError("Token expiration must be positive")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.expiration = expiration

    def issue(self, user_id: str, email: str, now: Optional[datetime] = None) -> str:
        """Create an access token for a user.

        Args:
            user_id: User ID to encode as the token subject
            email: User email to encode alongside the ID
            now: Issue time; defaults to the current UTC time

        Returns:
            Encoded JWT token string
        """
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "email": email,
            "iat": issued_at,
            "exp": issued_at + self.expiration,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Decode and validate an access token.

        Raises:
            TokenExpiredError: If the token is past its expiry.
            TokenInvalidError: If the token is malformed, badly signed or missing claims.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError()
        except jwt.InvalidTokenError:
            raise TokenInvalidError()

        user_id = payload.get("sub")
        email = payload.get("email")
        if not isinstance(user_id, str) or not user_id or not isinstance(email, str):
            raise TokenInvalidError()

        return TokenClaims(
            user_id=user_id,
            email=email,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
