"""Unit tests for auth/service.py -- signup / login orchestration.

Covers:
- Signup returns a 24h token and a user view without the hash
- Signup with an existing email raises DuplicateUser with no store write
- Signup that loses the uniqueness race (IntegrityError) raises DuplicateUser
- Login success, wrong password, unknown email (indistinguishable)
- Login performs zero writes
- authenticate() round-trips the issued token and rejects bad ones
- Store failures propagate unchanged
"""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from auth.errors import DuplicateUser, InvalidCredentials, InvalidSignature, StoreUnavailable, TokenExpired
from auth.models import Role, User
from auth.passwords import verify_password
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import issue_token


class TestSignup:
    def test_signup_returns_token_and_view(self, service: AuthService) -> None:
        result = service.signup("a@x.com", "secret123", "Alice", Role.producer)
        assert result.expires_in == 86_400
        assert result.access_token.count(".") == 2
        assert result.user.email == "a@x.com"
        assert result.user.name == "Alice"
        assert result.user.role is Role.producer
        assert result.user.profile_completed is False
        assert "password_hash" not in asdict(result.user)

    def test_signup_stores_hash_not_plaintext(self, service: AuthService, store: UserStore) -> None:
        service.signup("a@x.com", "secret123", "Alice", Role.producer)
        record = store.find_by_email("a@x.com")
        assert record.password_hash != "secret123"
        assert verify_password("secret123", record.password_hash)

    def test_signup_accepts_role_string(self, service: AuthService) -> None:
        assert service.signup("b@x.com", "secret123", "Bob", "buyer").user.role is Role.buyer

    def test_signup_rejects_unknown_role_without_writing(self, service: AuthService, store: UserStore) -> None:
        with pytest.raises(ValueError):
            service.signup("c@x.com", "secret123", "Carol", "admin")
        assert store.find_by_email("c@x.com") is None

    def test_duplicate_email_no_mutation(self, service: AuthService, store: UserStore, monkeypatch) -> None:
        service.signup("a@x.com", "secret123", "Alice", Role.producer)
        insert_spy = MagicMock(wraps=store.insert)
        monkeypatch.setattr(store, "insert", insert_spy)

        with pytest.raises(DuplicateUser):
            service.signup("A@X.com", "other-pass", "Impostor", Role.buyer)

        insert_spy.assert_not_called()
        assert store.find_by_email("a@x.com").name == "Alice"

    def test_lost_race_maps_to_duplicate_user(self, service: AuthService, store: UserStore, monkeypatch) -> None:
        """Both signups pass the pre-check; the second insert hits UNIQUE(email)."""
        service.signup("a@x.com", "secret123", "Alice", Role.producer)
        monkeypatch.setattr(store, "find_by_email", lambda email: None)

        with pytest.raises(DuplicateUser):
            service.signup("a@x.com", "secret123", "Alice again", Role.producer)

    def test_custom_ttl(self, store: UserStore, secret: str) -> None:
        service = AuthService(store, secret=secret, ttl_seconds=600)
        result = service.signup("a@x.com", "secret123", "Alice", Role.producer)
        assert result.expires_in == 600
        claims = service.authenticate(result.access_token)
        assert claims.expires_at - claims.issued_at == 600


class TestLogin:
    def test_login_success(self, service: AuthService) -> None:
        signup = service.signup("a@x.com", "secret123", "Alice", Role.producer)
        result = service.login("a@x.com", "secret123")
        assert result.user == signup.user
        assert service.authenticate(result.access_token).email == "a@x.com"

    def test_login_email_case_insensitive(self, service: AuthService) -> None:
        service.signup("a@x.com", "secret123", "Alice", Role.producer)
        assert service.login("A@x.COM", "secret123").user.email == "a@x.com"

    def test_unknown_email_and_wrong_password_are_identical(self, service: AuthService) -> None:
        service.signup("a@x.com", "secret123", "Alice", Role.producer)

        with pytest.raises(InvalidCredentials) as wrong_password:
            service.login("a@x.com", "wrongpass")
        with pytest.raises(InvalidCredentials) as unknown_email:
            service.login("nobody@x.com", "secret123")

        assert type(wrong_password.value) is type(unknown_email.value)
        assert str(wrong_password.value) == str(unknown_email.value)
        assert wrong_password.value.code == unknown_email.value.code

    def test_login_performs_no_writes(self, service: AuthService, store: UserStore, monkeypatch) -> None:
        service.signup("a@x.com", "secret123", "Alice", Role.producer)
        insert_spy = MagicMock(wraps=store.insert)
        mark_spy = MagicMock(wraps=store.mark_profile_completed)
        monkeypatch.setattr(store, "insert", insert_spy)
        monkeypatch.setattr(store, "mark_profile_completed", mark_spy)

        service.login("a@x.com", "secret123")
        with pytest.raises(InvalidCredentials):
            service.login("a@x.com", "wrongpass")

        insert_spy.assert_not_called()
        mark_spy.assert_not_called()

    def test_corrupt_stored_hash_is_invalid_credentials(self, service: AuthService, store: UserStore) -> None:
        store.insert(User(email="z@x.com", password_hash="%%corrupt%%", role=Role.buyer, name="Z"))
        with pytest.raises(InvalidCredentials):
            service.login("z@x.com", "anything")

    def test_login_reflects_profile_completed(self, service: AuthService, store: UserStore) -> None:
        signup = service.signup("a@x.com", "secret123", "Alice", Role.producer)
        store.mark_profile_completed(signup.user.id)
        assert service.login("a@x.com", "secret123").user.profile_completed is True

    def test_store_failure_propagates(self, service: AuthService, store: UserStore, monkeypatch) -> None:
        def _down(email):
            raise StoreUnavailable()

        monkeypatch.setattr(store, "find_by_email", _down)
        with pytest.raises(StoreUnavailable):
            service.login("a@x.com", "secret123")


class TestAuthenticate:
    def test_rejects_token_from_other_secret(self, service: AuthService) -> None:
        token = issue_token(1, "a@x.com", "Alice", Role.producer, secret="x" * 40)
        with pytest.raises(InvalidSignature):
            service.authenticate(token)

    def test_rejects_expired_token(self, service: AuthService, secret: str) -> None:
        token = issue_token(
            1,
            "a@x.com",
            "Alice",
            Role.producer,
            secret=secret,
            now=datetime.now(timezone.utc) - timedelta(days=2),
        )
        with pytest.raises(TokenExpired):
            service.authenticate(token)


def test_end_to_end_scenario(service: AuthService) -> None:
    """Signup, login, wrong password, duplicate signup -- in that order."""
    signup = service.signup("a@x.com", "secret123", "Alice", Role.producer)
    assert signup.expires_in == 86_400
    assert signup.user.profile_completed is False

    login = service.login("a@x.com", "secret123")
    assert service.authenticate(login.access_token).email == "a@x.com"

    with pytest.raises(InvalidCredentials):
        service.login("a@x.com", "wrongpass")

    with pytest.raises(DuplicateUser):
        service.signup("a@x.com", "secret123", "Alice", Role.producer)
