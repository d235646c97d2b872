"""Password hashing for accountkeeper (bcrypt via passlib)."""

import logging

from passlib.context import CryptContext

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 12
MIN_ROUNDS = 10


class PasswordHasher:
    """One-way salted password hashing.

    Hashing is deliberately slow; the cost grows as ``2 ** rounds``.
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        if rounds < MIN_ROUNDS:
            raise ValueError(f"bcrypt rounds must be at least {MIN_ROUNDS}, got {rounds}")
        self.rounds = rounds
        self._context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)
        # Verified against when no user matches, so unknown emails cost the same as wrong passwords
        self._dummy_hash = self._context.hash("accountkeeper-timing-equalizer")

    def hash(self, password: str) -> str:
        """Hash a plaintext password."""
        return self._context.hash(password)

    def verify(self, password: str, hashed: str) -> bool:
        """Check a plaintext password against a stored digest."""
        try:
            return self._context.verify(password, hashed)
        except (ValueError, TypeError):
            logger.warning("Stored password hash could not be parsed")
            return False

    def verify_dummy(self, password: str) -> bool:
        """Burn one verification's worth of time. Always False."""
        try:
            self._context.verify(password, self._dummy_hash)
        except (ValueError, TypeError):
            pass
        return False
