"""In-memory repository for user records.

The repository owns both indexes (by id and by case-folded email) and a single
lock. Every check-then-act sequence runs under that lock, so the email
uniqueness invariant holds when requests run in parallel threads.
"""

import logging
import threading
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Dict, List, Optional

from accountkeeper.errors import DuplicateEmailError
from accountkeeper.models.user import UserRecord

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"name", "email", "password_hash"})


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRepository:
    """Repository for user records."""

    def __init__(self):
        self._lock = threading.RLock()
        self._by_id: "OrderedDict[str, UserRecord]" = OrderedDict()
        self._id_by_email: Dict[str, str] = {}

    def _generate_id(self) -> str:
        user_id = str(uuid.uuid4())
        while user_id in self._by_id:
            user_id = str(uuid.uuid4())
        return user_id

    def create(self, name: str, email: str, password_hash: str) -> UserRecord:
        """Create a new user.

        Raises:
            DuplicateEmailError: If the case-folded email is already taken.
        """
        key = normalize_email(email)
        with self._lock:
            if key in self._id_by_email:
                raise DuplicateEmailError()
            now = _utcnow()
            record = UserRecord(
                id=self._generate_id(),
                name=name,
                email=key,
                password_hash=password_hash,
                created_at=now,
                updated_at=now,
            )
            self._by_id[record.id] = record
            self._id_by_email[key] = record.id
            logger.debug(f"Created user {record.id}")
            return record.model_copy()

    def get(self, user_id: str) -> Optional[UserRecord]:
        """Get user by ID."""
        with self._lock:
            record = self._by_id.get(user_id)
            return record.model_copy() if record else None

    def get_by_email(self, email: str) -> Optional[UserRecord]:
        """Get user by email (case-insensitive)."""
        with self._lock:
            user_id = self._id_by_email.get(normalize_email(email))
            return self._by_id[user_id].model_copy() if user_id else None

    def list_all(self) -> List[UserRecord]:
        """All users in insertion order."""
        with self._lock:
            return [record.model_copy() for record in self._by_id.values()]

    def count(self) -> int:
        with self._lock:
            return len(self._by_id)

    def update(self, user_id: str, fields: Dict[str, str]) -> Optional[UserRecord]:
        """Apply a partial update.

        Only ``name``, ``email`` and ``password_hash`` can change. ``updated_at``
        is refreshed even when ``fields`` is empty.

        Returns:
            The updated record, or None if ``user_id`` does not exist.

        Raises:
            DuplicateEmailError: If the new email belongs to another user.
            ValueError: If ``fields`` names something other than the updatable fields.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

        changes = dict(fields)
        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])

        with self._lock:
            current = self._by_id.get(user_id)
            if current is None:
                return None

            new_email = changes.get("email")
            if new_email is not None and new_email != current.email:
                owner = self._id_by_email.get(new_email)
                if owner is not None and owner != user_id:
                    raise DuplicateEmailError("Email already in use")

            updated = current.model_copy(update={**changes, "updated_at": _utcnow()})
            self._by_id[user_id] = updated
            if new_email is not None and new_email != current.email:
                del self._id_by_email[current.email]
                self._id_by_email[new_email] = user_id
            logger.debug(f"Updated user {user_id}: {', '.join(sorted(changes)) or 'timestamps only'}")
            return updated.model_copy()

    def delete(self, user_id: str) -> bool:
        """Delete a user. Returns whether a record existed."""
        with self._lock:
            record = self._by_id.pop(user_id, None)
            if record is None:
                return False
            self._id_by_email.pop(record.email, None)
            logger.debug(f"Deleted user {user_id}")
            return True

    def clear(self) -> None:
        """Remove every record. Used for full resets only."""
        with self._lock:
            self._by_id.clear()
            self._id_by_email.clear()
