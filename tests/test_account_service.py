"""Tests for AccountService operations."""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from accountkeeper.errors import (
    DuplicateEmailError,
    InvalidCredentialsError,
    NotFoundError,
    StaleTokenError,
    TokenExpiredError,
    TokenInvalidError,
    ValidationError,
)
from accountkeeper.models.user import User


class TestRegistration:

    def test_register_returns_public_user(self, account_service, registration_data):
        user = account_service.register(registration_data)

        assert isinstance(user, User)
        assert "password_hash" not in user.model_dump()
        assert "password" not in user.model_dump()
        assert user.email == "john@x.com"
        assert user.name == "John Doe"

    def test_password_is_stored_hashed(self, account_service, user_repository, registration_data):
        user = account_service.register(registration_data)
        record = user_repository.get(user.id)
        assert record.password_hash != "secret1"
        assert account_service.hasher.verify("secret1", record.password_hash)

    def test_register_then_login(self, account_service, registration_data):
        user = account_service.register(registration_data)
        result = account_service.login({"email": "john@x.com", "password": "secret1"})

        assert result.token
        assert result.user == user

    def test_duplicate_email_case_insensitive(self, account_service, registration_data):
        account_service.register(registration_data)
        with pytest.raises(DuplicateEmailError):
            account_service.register({**registration_data, "email": "john@X.COM"})

    def test_duplicate_check_skips_hashing(self, account_service, registration_data):
        account_service.register(registration_data)
        with patch.object(account_service.hasher, "hash") as hash_mock:
            with pytest.raises(DuplicateEmailError):
                account_service.register(registration_data)
        hash_mock.assert_not_called()

    def test_invalid_input_lists_all_errors(self, account_service, user_repository):
        with pytest.raises(ValidationError) as exc_info:
            account_service.register({"name": "", "email": "nope", "password": "1"})
        assert len(exc_info.value.errors) == 3
        assert user_repository.count() == 0

    def test_concurrent_registrations_same_email(self, account_service, user_repository):
        """Parallel signups for one address: exactly one succeeds."""
        def attempt(i):
            try:
                email = ["Race@Mail.com", "race@mail.com"][i % 2]
                account_service.register({"name": f"User {i}", "email": email, "password": "secret1"})
                return "created"
            except DuplicateEmailError:
                return "duplicate"

        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = list(pool.map(attempt, range(8)))

        assert outcomes.count("created") == 1
        assert outcomes.count("duplicate") == 7
        assert user_repository.count() == 1


class TestLogin:

    def test_unknown_email_and_wrong_password_look_the_same(self, account_service, registration_data):
        account_service.register(registration_data)

        with pytest.raises(InvalidCredentialsError) as unknown:
            account_service.login({"email": "nobody@x.com", "password": "secret1"})
        with pytest.raises(InvalidCredentialsError) as wrong:
            account_service.login({"email": "john@x.com", "password": "wrong-password"})

        assert unknown.value.to_dict() == wrong.value.to_dict()

    def test_unknown_email_still_runs_a_verification(self, account_service):
        with patch.object(account_service.hasher, "verify_dummy", wraps=account_service.hasher.verify_dummy) as dummy:
            with pytest.raises(InvalidCredentialsError):
                account_service.login({"email": "nobody@x.com", "password": "secret1"})
        dummy.assert_called_once_with("secret1")

    def test_login_email_is_case_insensitive(self, account_service, registration_data):
        account_service.register(registration_data)
        assert account_service.login({"email": "John@X.com", "password": "secret1"}).token

    def test_login_requires_fields(self, account_service):
        with pytest.raises(ValidationError):
            account_service.login({"email": "john@x.com"})

    def test_token_encodes_identity(self, account_service, token_service, registration_data):
        user = account_service.register(registration_data)
        token = account_service.login({"email": "john@x.com", "password": "secret1"}).token
        claims = token_service.verify(token)
        assert claims.user_id == user.id
        assert claims.email == "john@x.com"


class TestAuthenticate:

    def test_resolves_current_user(self, account_service, registration_data):
        user = account_service.register(registration_data)
        token = account_service.login({"email": "john@x.com", "password": "secret1"}).token
        assert account_service.authenticate(token) == user

    def test_deleted_user_token_is_stale(self, account_service, registration_data):
        user = account_service.register(registration_data)
        token = account_service.login({"email": "john@x.com", "password": "secret1"}).token
        account_service.delete(user.id)
        with pytest.raises(StaleTokenError):
            account_service.authenticate(token)

    def test_invalid_and_expired_tokens(self, account_service, token_service, registration_data):
        user = account_service.register(registration_data)
        expired = token_service.issue(user.id, user.email, now=datetime.now(timezone.utc) - timedelta(days=30))

        with pytest.raises(TokenExpiredError):
            account_service.authenticate(expired)
        with pytest.raises(TokenInvalidError):
            account_service.authenticate("not.a.token")


class TestReadUpdateDelete:

    def test_get_and_list(self, account_service, registration_data):
        first = account_service.register(registration_data)
        second = account_service.register({"name": "Jane Roe", "email": "jane@x.com", "password": "secret2"})

        assert account_service.get(first.id) == first
        assert account_service.list() == [first, second]

    def test_get_missing(self, account_service):
        with pytest.raises(NotFoundError):
            account_service.get("3f1c2a9e-6b7d-4e8f-9a0b-1c2d3e4f5a6b")

    def test_update_without_email_keeps_email(self, account_service, registration_data):
        user = account_service.register(registration_data)
        updated = account_service.update(user.id, {"name": "Johnny Doe"})

        assert updated.name == "Johnny Doe"
        assert updated.email == "john@x.com"
        assert updated.created_at == user.created_at
        assert updated.updated_at >= user.updated_at

    def test_update_with_own_email_any_case(self, account_service, registration_data):
        user = account_service.register(registration_data)
        updated = account_service.update(user.id, {"email": "JOHN@X.COM"})
        assert updated.email == "john@x.com"

    def test_update_to_other_users_email(self, account_service, registration_data):
        account_service.register(registration_data)
        jane = account_service.register({"name": "Jane Roe", "email": "jane@x.com", "password": "secret2"})
        with pytest.raises(DuplicateEmailError):
            account_service.update(jane.id, {"email": "John@x.com"})

    def test_update_password_rehashes(self, account_service, registration_data):
        user = account_service.register(registration_data)
        account_service.update(user.id, {"password": "newsecret"})

        with pytest.raises(InvalidCredentialsError):
            account_service.login({"email": "john@x.com", "password": "secret1"})
        assert account_service.login({"email": "john@x.com", "password": "newsecret"}).token

    def test_update_validates_supplied_fields_only(self, account_service, registration_data):
        user = account_service.register(registration_data)
        with pytest.raises(ValidationError) as exc_info:
            account_service.update(user.id, {"name": "J"})
        assert exc_info.value.errors == ["Name must be at least 2 characters long"]
        assert account_service.get(user.id).name == "John Doe"

    def test_update_ignores_protected_fields(self, account_service, registration_data):
        user = account_service.register(registration_data)
        updated = account_service.update(user.id, {"id": "other", "created_at": "2000-01-01T00:00:00Z"})
        assert updated.id == user.id
        assert updated.created_at == user.created_at

    def test_update_missing(self, account_service):
        with pytest.raises(NotFoundError):
            account_service.update("3f1c2a9e-6b7d-4e8f-9a0b-1c2d3e4f5a6b", {"name": "Ghost"})

    def test_delete_is_permanent(self, account_service, registration_data):
        user = account_service.register(registration_data)
        account_service.delete(user.id)

        with pytest.raises(NotFoundError):
            account_service.get(user.id)
        with pytest.raises(NotFoundError):
            account_service.delete(user.id)
        # The address can be registered again
        assert account_service.register(registration_data).id != user.id

    def test_concurrent_updates_to_same_email(self, account_service, user_repository):
        """Parallel moves onto one free address: exactly one succeeds."""
        users = [
            account_service.register({"name": f"User {i}", "email": f"user{i}@x.com", "password": "secret1"})
            for i in range(8)
        ]

        def attempt(i):
            try:
                email = ["Taken@X.com", "taken@x.com"][i % 2]
                account_service.update(users[i].id, {"email": email})
                return "updated"
            except DuplicateEmailError:
                return "duplicate"

        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = list(pool.map(attempt, range(8)))

        assert outcomes.count("updated") == 1
        assert outcomes.count("duplicate") == 7
        assert [u.email for u in account_service.list()].count("taken@x.com") == 1
