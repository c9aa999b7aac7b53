import time

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwt

from clerk import ClerkClient, IdentityError, verify_token

PARTIES = ["http://localhost:3000"]


def _keypair():
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_pem = key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode()
    public_pem = key.public_key().public_bytes(
        serialization.Encoding.PEM,
        serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode()
    return private_pem, public_pem


@pytest.fixture(scope="module")
def keys():
    return _keypair()


def _token(private_pem, **claims):
    body = {"sub": "user_123", "azp": "http://localhost:3000", "exp": int(time.time()) + 60}
    body.update(claims)
    return jwt.encode(body, private_pem, algorithm="RS256")


def test_valid_token_returns_claims(keys):
    private_pem, public_pem = keys
    claims = verify_token(_token(private_pem), jwt_key=public_pem, authorized_parties=PARTIES)
    assert claims["sub"] == "user_123"


def test_authorized_party_with_trailing_slash(keys):
    private_pem, public_pem = keys
    token = _token(private_pem, azp="http://localhost:3000/")
    assert verify_token(token, jwt_key=public_pem, authorized_parties=PARTIES)["sub"] == "user_123"


def test_unknown_party_is_rejected(keys):
    private_pem, public_pem = keys
    with pytest.raises(IdentityError):
        verify_token(_token(private_pem, azp="https://evil.example"), jwt_key=public_pem, authorized_parties=PARTIES)


def test_expired_token_is_rejected(keys):
    private_pem, public_pem = keys
    with pytest.raises(IdentityError, match="expired"):
        verify_token(_token(private_pem, exp=int(time.time()) - 60), jwt_key=public_pem, authorized_parties=PARTIES)


def test_token_signed_by_another_key_is_rejected(keys):
    _, public_pem = keys
    other_private, _ = _keypair()
    with pytest.raises(IdentityError):
        verify_token(_token(other_private), jwt_key=public_pem, authorized_parties=PARTIES)


def test_missing_key_configuration():
    with pytest.raises(IdentityError):
        verify_token("anything", jwt_key="", authorized_parties=PARTIES)


@pytest.mark.parametrize("token", [123, ["a.b.c"], {"x": 1}, ""])
def test_non_string_token_is_rejected(keys, token):
    _, public_pem = keys
    with pytest.raises(IdentityError):
        verify_token(token, jwt_key=public_pem, authorized_parties=PARTIES)


def _client(handler):
    return ClerkClient(api_url="https://clerk.test/v1", secret_key="sk_test", transport=httpx.MockTransport(handler))


def test_provider_user_is_returned():
    def handler(request):
        assert request.headers["Authorization"] == "Bearer sk_test"
        return httpx.Response(200, json={"id": "user_1", "public_metadata": {"role": "admin"}})

    assert _client(handler).get_user("user_1")["public_metadata"] == {"role": "admin"}


def test_provider_non_json_body_is_an_identity_error():
    client = _client(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
    with pytest.raises(IdentityError, match="non-JSON"):
        client.get_user("user_1")


def test_provider_error_status_is_an_identity_error():
    client = _client(lambda request: httpx.Response(404, json={"errors": []}))
    with pytest.raises(IdentityError, match="404"):
        client.update_user_metadata("user_1", {"role": "admin"})
