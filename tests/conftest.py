"""Shared test fixtures for child booklet backend tests."""

import time
from urllib.parse import parse_qs

import httpx
import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk, jwt
from unittest.mock import AsyncMock, MagicMock

from booklet.config import Settings
from booklet.services.oidc import OIDCRelay


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def real_clock_offset():
    """Clock set one hour in the past, for tokens that must already be expired."""
    return lambda: time.time() - 3600


@pytest.fixture
def mock_collection():
    collection = AsyncMock()
    # Motor's find() returns a cursor synchronously (not a coroutine),
    # so use MagicMock for it. Async methods like find_one, update_one,
    # count_documents etc. stay as AsyncMock.
    collection.find = MagicMock()
    return collection


@pytest.fixture
def mock_db(mock_collection):
    db = MagicMock()
    db.__getitem__ = MagicMock(return_value=mock_collection)
    return db


@pytest.fixture
def make_cursor():
    """Build a Motor-style cursor whose chained calls end in to_list()."""

    def _make(docs):
        cursor = MagicMock()
        cursor.sort = MagicMock(return_value=cursor)
        cursor.limit = MagicMock(return_value=cursor)
        cursor.to_list = AsyncMock(return_value=docs)
        return cursor

    return _make


@pytest.fixture
def settings():
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        MONGO_URI=None,
        ADMIN_JWT_SECRET="test-secret",
        ADMIN_USERNAME="Admin",
        ADMIN_DEFAULT_PASSWORD="Admin@123",
        OIDC_ISSUER="https://idp.test",
        OIDC_CLIENT_ID="booklet-client",
        OIDC_CLIENT_SECRET="client-secret",
        REDIRECT_URI="http://localhost:5000/callback",
        OIDC_AUTHORIZE_URI="https://idp.test/authorize",
        FRONTEND_URL="http://localhost:3001",
        ENVIRONMENT="test",
    )


@pytest.fixture
def sample_identity():
    return {
        "individualId": "8267411571",
        "fullName": [
            {"language": "fra", "value": "Siddharth K"},
            {"language": "eng", "value": "Siddharth K Mansour"},
        ],
        "email": "siddharth@example.org",
        "phone": "+919876543210",
        "dateOfBirth": "1987/11/25",
        "gender": [{"language": "eng", "value": "Male"}],
        "region": [{"language": "eng", "value": "Rabat"}],
        "country": [{"language": "eng", "value": "Morocco"}],
        "password": "s3cret",
        "pin": "545411",
        "encodedPhoto": "iVBORw0KGgoAAA",
        "createdAt": "2024-05-01T10:00:00Z",
    }


# ─────────────────────────────────────────────────────────────────
# Fake eSignet identity provider
# ─────────────────────────────────────────────────────────────────

IDP_ISSUER = "https://idp.test"
IDP_CLIENT_ID = "booklet-client"
IDP_KEY_ID = "idp-key-1"


def _generate_rsa_jwks(kid):
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

    public_jwk = jwk.construct(public_pem, "RS256").to_dict()
    public_jwk.update(kid=kid, use="sig")
    private_jwk = jwk.construct(private_pem, "RS256").to_dict()
    private_jwk["kid"] = kid
    return private_pem, public_jwk, private_jwk


@pytest.fixture(scope="session")
def idp_keys():
    """(private PEM, public JWK) the fake provider signs ID tokens with."""
    private_pem, public_jwk, _ = _generate_rsa_jwks(IDP_KEY_ID)
    return private_pem, public_jwk


@pytest.fixture(scope="session")
def client_keys():
    """(public JWK, private JWK) registered for private_key_jwt."""
    _, public_jwk, private_jwk = _generate_rsa_jwks("client-key-1")
    return public_jwk, private_jwk


@pytest.fixture(scope="session")
def other_keys():
    """A key pair the provider does not publish."""
    private_pem, public_jwk, _ = _generate_rsa_jwks(IDP_KEY_ID)
    return private_pem, public_jwk


@pytest.fixture
def make_id_token(idp_keys):
    private_pem, _ = idp_keys

    def _make(signing_key=None, kid=IDP_KEY_ID, **overrides):
        now = int(time.time())
        claims = {
            "iss": IDP_ISSUER,
            "aud": IDP_CLIENT_ID,
            "sub": "8267411571",
            "name": "Siddharth K Mansour",
            "email": "siddharth@example.org",
            "iat": now,
            "exp": now + 300,
        }
        claims.update(overrides)
        return jwt.encode(claims, signing_key or private_pem, algorithm="RS256", headers={"kid": kid})

    return _make


class FakeIdP:
    """httpx.MockTransport handler that plays an OIDC provider."""

    def __init__(self, public_jwk, id_token):
        self.discovery = {
            "issuer": IDP_ISSUER,
            "token_endpoint": f"{IDP_ISSUER}/token",
            "userinfo_endpoint": f"{IDP_ISSUER}/userinfo",
            "jwks_uri": f"{IDP_ISSUER}/jwks",
        }
        self.discovery_status = 200
        # Response factories; tests swap them to script the provider
        self.token_response = lambda: httpx.Response(
            200,
            json={
                "access_token": "at-123",
                "id_token": id_token,
                "token_type": "Bearer",
                "expires_in": 3600,
            },
        )
        self.userinfo_response = lambda: httpx.Response(
            200, json={"sub": "8267411571", "name": "Siddharth"}
        )
        self.jwks_responses = [{"keys": [public_jwk]}]
        self.requests = []

    def paths(self):
        return [r.url.path for r in self.requests]

    def token_form(self):
        token_request = next(r for r in self.requests if r.url.path == "/token")
        return {k: v[0] for k, v in parse_qs(token_request.content.decode()).items()}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/.well-known/openid-configuration":
            return httpx.Response(self.discovery_status, json=self.discovery)
        if path == "/token":
            return self.token_response()
        if path == "/userinfo":
            return self.userinfo_response()
        if path == "/jwks":
            body = self.jwks_responses.pop(0) if len(self.jwks_responses) > 1 else self.jwks_responses[0]
            return httpx.Response(200, json=body)
        return httpx.Response(404)


@pytest.fixture
def idp(idp_keys, make_id_token):
    _, public_jwk = idp_keys
    return FakeIdP(public_jwk, make_id_token())


@pytest.fixture
def make_relay(idp):
    def _make(**kwargs):
        options = {
            "issuer": IDP_ISSUER,
            "client_id": IDP_CLIENT_ID,
            "redirect_uri": "http://localhost:5000/callback",
            "client_secret": "client-secret",
            "transport": httpx.MockTransport(idp),
        }
        options.update(kwargs)
        return OIDCRelay(**options)

    return _make
