"""Exception hierarchy for accountkeeper.

Each service error knows the HTTP status and the short ``error`` kind it is
reported under, so the API layer can translate it without a lookup table.
"""

from typing import List, Optional


class ConfigurationError(RuntimeError):
    """Raised at startup when required configuration is missing or invalid."""


class AccountServiceError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500
    error = "InternalServerError"
    default_message = "Something went wrong!"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.error, "message": self.message}


class ValidationError(AccountServiceError):
    """Input failed one or more field rules. ``errors`` lists every violation."""

    status_code = 400
    error = "ValidationError"
    default_message = "Validation failed"

    def __init__(self, errors: List[str], message: Optional[str] = None):
        super().__init__(message)
        self.errors = list(errors)

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["errors"] = self.errors
        return payload


class MalformedIdentifierError(AccountServiceError):
    status_code = 400
    error = "MalformedIdentifier"
    default_message = "Invalid ID format. Expected a valid UUID."


class AuthenticationError(AccountServiceError):
    """Caller identity could not be established. Clients should re-login."""

    status_code = 401
    error = "Unauthorized"
    default_message = "Authentication required"


class InvalidCredentialsError(AuthenticationError):
    error = "InvalidCredentials"
    default_message = "Invalid credentials"


class AccessTokenRequiredError(AuthenticationError):
    error = "AccessTokenRequired"
    default_message = "Access token required"


class TokenInvalidError(AuthenticationError):
    error = "TokenInvalid"
    default_message = "Invalid token"


class TokenExpiredError(AuthenticationError):
    error = "TokenExpired"
    default_message = "Token expired"


class StaleTokenError(AuthenticationError):
    error = "StaleToken"
    default_message = "Invalid token - user not found"


class AccessDeniedError(AccountServiceError):
    status_code = 403
    error = "AccessDenied"
    default_message = "Access denied - you can only access your own data"


class NotFoundError(AccountServiceError):
    status_code = 404
    error = "NotFound"
    default_message = "User not found"


class DuplicateEmailError(AccountServiceError):
    status_code = 409
    error = "DuplicateEmail"
    default_message = "User with this email already exists"
