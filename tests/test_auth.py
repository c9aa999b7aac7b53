import pytest

import auth
import clerk
from auth import AuthenticationError, resolve_identity
from clerk import IdentityError
from conftest import FakeClerk


@pytest.fixture
def verified(monkeypatch):
    monkeypatch.setattr(auth, "verify_token", lambda token: {"sub": "user_1", "azp": "http://localhost:3000"})


def test_missing_token_is_rejected():
    with pytest.raises(AuthenticationError, match="No token provided"):
        resolve_identity(None, FakeClerk())


def test_invalid_token_is_rejected(monkeypatch):
    def reject(token):
        raise IdentityError("bad signature")

    monkeypatch.setattr(auth, "verify_token", reject)
    clerk = FakeClerk({"user_1": {"public_metadata": {"role": "superadmin"}}})
    with pytest.raises(AuthenticationError, match="Token verification failed"):
        resolve_identity("token", clerk)


def test_existing_role_and_company_are_used(verified):
    clerk = FakeClerk({"user_1": {"public_metadata": {"role": "admin", "companyId": "acme"}}})
    identity = resolve_identity("token", clerk)
    assert identity.role == "admin"
    assert identity.company_id == "acme"
    assert clerk.metadata_updates == []


def test_missing_role_defaults_to_public_and_is_persisted(verified):
    clerk = FakeClerk({"user_1": {"public_metadata": {"companyId": "acme"}}})
    identity = resolve_identity("token", clerk)
    assert identity.role == "public"
    assert clerk.metadata_updates == [("user_1", {"companyId": "acme", "role": "public"})]


def test_profile_fetch_failure_is_rejected(verified):
    with pytest.raises(AuthenticationError, match="Failed to fetch user data"):
        resolve_identity("token", FakeClerk(fail_get=True))


@pytest.mark.parametrize("token", [123, ["a.b.c"], {"x": 1}, "not-a-jwt"])
def test_malformed_token_is_an_authentication_error(monkeypatch, token):
    monkeypatch.setattr(clerk, "CLERK_JWT_KEY", "-----BEGIN PUBLIC KEY-----\nnot-a-key\n-----END PUBLIC KEY-----")
    with pytest.raises(AuthenticationError, match="Token verification failed"):
        resolve_identity(token, FakeClerk())
