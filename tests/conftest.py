# tests/conftest.py

"""
Shared fixtures for the broker test suite.

Settings are read at import time, so the environment is prepared before any
client_broker module is imported.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("IDENTITY_SECRET_KEY", "test-identity-secret")
os.environ.setdefault("ENVIRONMENT", "testing")

# Standard
import json
import time
from typing import Any, Dict, Optional
from urllib.parse import urlencode

# Third-Party
import httpx
import pytest
import pytest_asyncio
from jose import jwt
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# First-Party
from client_broker.adapters.configuration.config import settings
from client_broker.adapters.outbound.idp.client_registry import ClientRegistryProxy
from client_broker.adapters.outbound.persistence.models import Base
from client_broker.application.ports.outbound import ITokenProvider
from client_broker.domain.models.admin_token_domain_model import AdminToken

IDP_BASE_URL = "http://idp.test"
REALM = "test-realm"


class StaticTokenProvider(ITokenProvider):
    """Token provider that never talks to the network."""

    def __init__(self):
        self.invalidations = 0

    async def get_token(self) -> AdminToken:
        return AdminToken(value="static-admin-token", expires_at=time.time() + 3600)

    def invalidate(self) -> None:
        self.invalidations += 1


class FakeIdentityProvider:
    """
    In-memory stand-in for the IdP admin API, served through httpx.MockTransport.

    Secrets are generated as ``generated-secret-NNNN`` so their last 4
    characters are the generation counter.
    """

    def __init__(self):
        self.clients: Dict[tuple, Dict[str, Any]] = {}
        self.secrets: Dict[tuple, str] = {}
        self.requests = []
        self.fail_with: Optional[int] = None
        self.omit_location = False
        self._ids = 0
        self._secrets = 0

    def _next_secret(self) -> str:
        self._secrets += 1
        return f"generated-secret-{self._secrets:04d}"

    def add(self, realm: str, client_id: str, name: Optional[str] = None,
            attributes: Optional[Dict[str, str]] = None, **extra) -> str:
        """Seed a registration created outside the broker."""
        self._ids += 1
        id = f"uuid-{self._ids}"
        self.clients[(realm, id)] = {
            "id": id,
            "clientId": client_id,
            "name": name if name is not None else client_id,
            "enabled": True,
            "protocol": "openid-connect",
            "publicClient": False,
            "redirectUris": [],
            "webOrigins": [],
            "attributes": dict(attributes or {}),
            **extra,
        }
        self.secrets[(realm, id)] = self._next_secret()
        return id

    def find(self, realm: str, client_id: str) -> Optional[Dict[str, Any]]:
        for (r, _), rep in self.clients.items():
            if r == realm and rep["clientId"] == client_id:
                return rep
        return None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"error": "forced failure"})

        parts = request.url.path.strip("/").split("/")
        # admin / realms / {realm} / clients [/ {id} [/ client-secret]]
        realm, rest = parts[2], parts[3:]
        method = request.method

        if rest == ["clients"] and method == "GET":
            reps = [rep for (r, _), rep in self.clients.items() if r == realm]
            client_id = request.url.params.get("clientId")
            if client_id is not None:
                reps = [rep for rep in reps if rep["clientId"] == client_id]
            q = request.url.params.get("q")
            if q:
                key, _, value = q.partition(":")
                # Loose match, like an upstream "contains" search
                reps = [rep for rep in reps if value in rep["attributes"].get(key, "")]
            return httpx.Response(200, json=reps)

        if rest == ["clients"] and method == "POST":
            body = json.loads(request.content)
            if self.find(realm, body["clientId"]):
                return httpx.Response(409, json={"errorMessage": "Client already exists"})
            self._ids += 1
            id = f"uuid-{self._ids}"
            self.clients[(realm, id)] = {"id": id, **body}
            if not body.get("publicClient") and not body.get("bearerOnly"):
                self.secrets[(realm, id)] = self._next_secret()
            headers = {} if self.omit_location else {"Location": f"{request.url}/{id}"}
            return httpx.Response(201, headers=headers)

        key = (realm, rest[1]) if len(rest) > 1 else None
        if key not in self.clients:
            return httpx.Response(404, json={"error": "Could not find client"})

        if len(rest) == 2:
            if method == "GET":
                return httpx.Response(200, json=self.clients[key])
            if method == "PUT":
                self.clients[key].update(json.loads(request.content))
                return httpx.Response(204)
            if method == "DELETE":
                del self.clients[key]
                self.secrets.pop(key, None)
                return httpx.Response(204)

        if rest[2:] == ["client-secret"]:
            if method == "GET":
                return httpx.Response(200, json={"type": "secret", "value": self.secrets.get(key)})
            if method == "POST":
                self.secrets[key] = self._next_secret()
                return httpx.Response(200, json={"type": "secret", "value": self.secrets[key]})
            if method == "DELETE":
                self.secrets.pop(key, None)
                return httpx.Response(204)

        return httpx.Response(405)


@pytest.fixture
def fake_idp():
    """Fake IdP admin API."""
    return FakeIdentityProvider()


@pytest.fixture
def token_provider():
    """Token provider returning a fixed admin token."""
    return StaticTokenProvider()


@pytest_asyncio.fixture
async def http_client(fake_idp):
    """HTTP client routed to the fake IdP."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_idp.handler)) as client:
        yield client


@pytest.fixture
def registry(http_client, token_provider):
    """Registry proxy bound to the fake IdP."""
    return ClientRegistryProxy(http_client, IDP_BASE_URL, token_provider)


@pytest_asyncio.fixture
async def db_session():
    """Async session on a fresh in-memory ledger database."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await engine.dispose()


def make_identity_token(sub: Optional[str] = "u1", secret: Optional[str] = None,
                        expires_in: int = 300, **claims) -> str:
    """Sign a platform identity token the way the identity service would."""
    payload = {"exp": int(time.time()) + expires_in, **claims}
    if sub is not None:
        payload["sub"] = sub
    return jwt.encode(payload, secret or settings.IDENTITY_SECRET_KEY, algorithm=settings.IDENTITY_ALGORITHM)


def auth_headers(actor: str = "u1") -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_identity_token(sub=actor)}"}


def realm_query(realm: str = REALM, **extra) -> str:
    return urlencode({"realm": realm, **extra})
