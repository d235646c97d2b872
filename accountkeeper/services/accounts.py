"""Account operations: registration, login, and owner-scoped CRUD."""

import logging
from dataclasses import dataclass
from typing import Any, List

from accountkeeper.auth.jwt import TokenService
from accountkeeper.auth.passwords import PasswordHasher
from accountkeeper.database.user_repository import UserRepository, normalize_email
from accountkeeper.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    NotFoundError,
    StaleTokenError,
)
from accountkeeper.models.inputs import LoginInput, RegistrationInput, UpdateInput, parse_input
from accountkeeper.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    user: User
    token: str


class AccountService:
    """Validates input and orchestrates the repository, hasher and token service.

    Every method that returns a user returns the public :class:`User`; the
    password hash never crosses this boundary.
    """

    def __init__(self, repository: UserRepository, hasher: PasswordHasher, tokens: TokenService):
        self.repository = repository
        self.hasher = hasher
        self.tokens = tokens

    def register(self, data: Any) -> User:
        """Create an account.

        Raises:
            ValidationError: If any field rule is violated.
            DuplicateEmailError: If the email is already registered.
        """
        payload = parse_input(RegistrationInput, data)

        # Fast path; the repository repeats the check atomically on insert
        if self.repository.get_by_email(payload.email) is not None:
            raise DuplicateEmailError()

        password_hash = self.hasher.hash(payload.password)
        record = self.repository.create(payload.name, payload.email, password_hash)
        logger.info(f"Registered user {record.id}")
        return record.to_public()

    def login(self, data: Any) -> LoginResult:
        """Exchange email and password for a token.

        Unknown email and wrong password raise the same error.
        """
        payload = parse_input(LoginInput, data)

        record = self.repository.get_by_email(payload.email)
        if record is None:
            self.hasher.verify_dummy(payload.password)
            logger.info("Login failed: invalid credentials")
            raise InvalidCredentialsError()
        if not self.hasher.verify(payload.password, record.password_hash):
            logger.info(f"Login failed for user {record.id}: invalid credentials")
            raise InvalidCredentialsError()

        token = self.tokens.issue(record.id, record.email)
        logger.info(f"User {record.id} logged in")
        return LoginResult(user=record.to_public(), token=token)

    def authenticate(self, token: str) -> User:
        """Resolve the caller behind a bearer token.

        Raises:
            TokenInvalidError: Malformed or badly signed token.
            TokenExpiredError: Token past its expiry.
            StaleTokenError: Token is valid but the user no longer exists.
        """
        claims = self.tokens.verify(token)
        record = self.repository.get(claims.user_id)
        if record is None:
            logger.info(f"Rejected token for missing user {claims.user_id}")
            raise StaleTokenError()
        return record.to_public()

    def get(self, user_id: str) -> User:
        record = self.repository.get(user_id)
        if record is None:
            raise NotFoundError()
        return record.to_public()

    def list(self) -> List[User]:
        return [record.to_public() for record in self.repository.list_all()]

    def update(self, user_id: str, data: Any) -> User:
        """Apply a partial update. Missing fields are left untouched.

        Raises:
            ValidationError: If a supplied field is invalid.
            NotFoundError: If the user does not exist.
            DuplicateEmailError: If a new email belongs to another user.
        """
        payload = parse_input(UpdateInput, data)
        supplied = payload.supplied()

        current = self.repository.get(user_id)
        if current is None:
            raise NotFoundError()

        changes = {}
        if "name" in supplied:
            changes["name"] = supplied["name"]
        if "email" in supplied:
            email = normalize_email(supplied["email"])
            if email != current.email:
                existing = self.repository.get_by_email(email)
                if existing is not None and existing.id != user_id:
                    raise DuplicateEmailError("Email already in use")
            changes["email"] = email
        if "password" in supplied:
            changes["password_hash"] = self.hasher.hash(supplied["password"])

        record = self.repository.update(user_id, changes)
        if record is None:
            raise NotFoundError()
        logger.info(f"Updated user {user_id}")
        return record.to_public()

    def delete(self, user_id: str) -> None:
        """Permanently remove a user. Outstanding tokens stop working."""
        if not self.repository.delete(user_id):
            raise NotFoundError()
        logger.info(f"Deleted user {user_id}")
