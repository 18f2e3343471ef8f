# tests/test_identity_extractor.py

"""Tests for the bearer JWT identity extractor."""

# Third-Party
import pytest
from starlette.requests import Request

# First-Party
from client_broker.adapters.outbound.security.identity_extractor import JWTIdentityExtractor
from client_broker.domain.exceptions import UnauthenticatedException
from tests.conftest import make_identity_token

SECRET = "extractor-secret"


def request_with(authorization=None) -> Request:
    headers = []
    if authorization is not None:
        headers.append((b"authorization", authorization.encode()))
    return Request({
        "type": "http",
        "method": "GET",
        "path": "/api/v1/clients",
        "query_string": b"",
        "server": ("testserver", 80),
        "headers": headers,
    })


@pytest.fixture
def extractor():
    return JWTIdentityExtractor(secret_key=SECRET)


class TestIdentify:
    async def test_returns_subject_of_valid_token(self, extractor):
        token = make_identity_token(sub="u1", secret=SECRET)

        assert await extractor.identify(request_with(f"Bearer {token}")) == "u1"

    async def test_custom_actor_claim(self):
        extractor = JWTIdentityExtractor(secret_key=SECRET, actor_claim="preferred_username")
        token = make_identity_token(sub="uuid-1", secret=SECRET, preferred_username="alice")

        assert await extractor.identify(request_with(f"Bearer {token}")) == "alice"

    async def test_audience_is_checked_when_configured(self):
        extractor = JWTIdentityExtractor(secret_key=SECRET, audience="client-broker")
        good = make_identity_token(secret=SECRET, aud="client-broker")
        bad = make_identity_token(secret=SECRET, aud="someone-else")

        assert await extractor.identify(request_with(f"Bearer {good}")) == "u1"
        with pytest.raises(UnauthenticatedException):
            await extractor.identify(request_with(f"Bearer {bad}"))

    @pytest.mark.parametrize("authorization", [None, "", "Bearer", "Bearer   ", "Basic dXNlcjpwdw=="])
    async def test_missing_bearer_token(self, extractor, authorization):
        with pytest.raises(UnauthenticatedException) as exc_info:
            await extractor.identify(request_with(authorization))

        assert exc_info.value.status_code == 401
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}

    async def test_wrong_signature(self, extractor):
        token = make_identity_token(secret="another-secret")

        with pytest.raises(UnauthenticatedException):
            await extractor.identify(request_with(f"Bearer {token}"))

    async def test_expired_token(self, extractor):
        token = make_identity_token(secret=SECRET, expires_in=-60)

        with pytest.raises(UnauthenticatedException) as exc_info:
            await extractor.identify(request_with(f"Bearer {token}"))

        assert "expirado" in exc_info.value.detail

    async def test_token_without_actor_claim(self, extractor):
        token = make_identity_token(sub=None, secret=SECRET)

        with pytest.raises(UnauthenticatedException):
            await extractor.identify(request_with(f"Bearer {token}"))

    async def test_garbage_token(self, extractor):
        with pytest.raises(UnauthenticatedException):
            await extractor.identify(request_with("Bearer not-a-jwt"))
