# tests/test_api.py

"""HTTP-level tests for the /api/v1 surface."""

# Standard
import asyncio
from unittest.mock import AsyncMock

# Third-Party
import httpx
import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# First-Party
from client_broker.adapters.inbound.api.deps import (
    get_client_registry,
    get_client_service,
    get_db_session,
)
from client_broker.adapters.outbound.idp.client_registry import ClientRegistryProxy
from client_broker.adapters.outbound.persistence.models import Base
from client_broker.adapters.outbound.persistence.repositories import AsyncSecretLedger
from client_broker.application.use_cases.client_use_cases import AsyncClientService
from client_broker.domain.exceptions import LedgerWriteFailureException
from client_broker.main import app
from tests.conftest import IDP_BASE_URL, REALM, StaticTokenProvider, auth_headers, realm_query

API = "/api/v1"


@pytest.fixture
def session_factory(tmp_path):
    """File-backed ledger database shared by every request of a test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}", poolclass=NullPool)

    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(create_tables())
    yield async_sessionmaker(bind=engine, expire_on_commit=False)
    asyncio.run(engine.dispose())


@pytest.fixture
def api_registry(fake_idp):
    client = httpx.AsyncClient(transport=httpx.MockTransport(fake_idp.handler))
    yield ClientRegistryProxy(client, IDP_BASE_URL, StaticTokenProvider())
    asyncio.run(client.aclose())


@pytest.fixture
def client(session_factory, api_registry):
    async def override_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_db
    app.dependency_overrides[get_client_registry] = lambda: api_registry
    yield TestClient(app)
    app.dependency_overrides.clear()


# ===================================
# Health and identity
# ===================================


class TestHealthAndIdentity:
    def test_health_needs_no_identity(self, client):
        response = client.get(f"{API}/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_missing_identity_is_401(self, client):
        response = client.get(f"{API}/clients?{realm_query()}")

        assert response.status_code == 401
        assert response.json()["code"] == "UNAUTHENTICATED"
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_realm_is_required(self, client):
        response = client.get(f"{API}/clients", headers=auth_headers())

        assert response.status_code == 422


# ===================================
# Client CRUD
# ===================================


class TestClientRoutes:
    def test_create_returns_secret_once(self, client, fake_idp):
        response = client.post(
            f"{API}/clients", json={"realm": REALM, "clientId": "billing"}, headers=auth_headers("u1")
        )

        assert response.status_code == 201
        body = response.json()
        assert body["clientId"] == "billing"
        assert body["secret"] == fake_idp.secrets[(REALM, body["id"])]
        assert body["auditRecorded"] is True
        assert "X-Audit-Warning" not in response.headers

    def test_duplicate_create_is_409(self, client):
        payload = {"realm": REALM, "clientId": "billing"}
        client.post(f"{API}/clients", json=payload, headers=auth_headers("u1"))

        response = client.post(f"{API}/clients", json=payload, headers=auth_headers("u2"))

        assert response.status_code == 409
        assert response.json()["code"] == "RESOURCE_ALREADY_EXISTS"

    def test_get_client_uses_camel_case(self, client, fake_idp):
        fake_idp.add(REALM, "billing", attributes={"createdBy": "u1"})

        response = client.get(f"{API}/clients/billing?{realm_query()}", headers=auth_headers())

        assert response.status_code == 200
        body = response.json()
        assert body["clientId"] == "billing"
        assert body["attributes"] == {"createdBy": "u1"}
        assert "publicClient" in body

    def test_unknown_client_is_404(self, client):
        response = client.get(f"{API}/clients/ghost?{realm_query()}", headers=auth_headers())

        assert response.status_code == 404
        assert response.json()["code"] == "RESOURCE_NOT_FOUND"

    def test_my_clients_only_lists_callers_clients(self, client, fake_idp):
        fake_idp.add(REALM, "mine", attributes={"createdBy": "u1"})
        fake_idp.add(REALM, "theirs", attributes={"createdBy": "u2"})

        response = client.get(f"{API}/my-clients?{realm_query()}", headers=auth_headers("u1"))

        assert [c["clientId"] for c in response.json()] == ["mine"]

    def test_update_and_delete(self, client, fake_idp):
        id = fake_idp.add(REALM, "billing")

        updated = client.put(
            f"{API}/clients/{id}", json={"realm": REALM, "description": "new"}, headers=auth_headers()
        )
        deleted = client.delete(f"{API}/clients/{id}?{realm_query()}", headers=auth_headers())

        assert updated.status_code == 200
        assert deleted.status_code == 204
        assert fake_idp.find(REALM, "billing") is None

    def test_update_cannot_hand_a_client_to_another_actor(self, client):
        created = client.post(
            f"{API}/clients", json={"realm": REALM, "clientId": "svc-a"}, headers=auth_headers("u1")
        ).json()

        updated = client.put(
            f"{API}/clients/{created['id']}",
            json={"realm": REALM, "attributes": {"createdBy": "u2", "inheritedBy": "u2"}},
            headers=auth_headers("u2"),
        )
        theirs = client.get(f"{API}/my-clients?{realm_query()}", headers=auth_headers("u2"))
        mine = client.get(f"{API}/my-clients?{realm_query()}", headers=auth_headers("u1"))

        assert updated.status_code == 200
        assert theirs.json() == []
        assert [c["clientId"] for c in mine.json()] == ["svc-a"]

    def test_update_without_fields_is_400(self, client, fake_idp):
        id = fake_idp.add(REALM, "billing")

        response = client.put(f"{API}/clients/{id}", json={"realm": REALM}, headers=auth_headers())

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_INPUT"

    def test_upstream_outage_is_503(self, client, fake_idp):
        fake_idp.fail_with = 500

        response = client.get(f"{API}/clients?{realm_query()}", headers=auth_headers())

        assert response.status_code == 503
        assert response.json()["code"] == "UPSTREAM_UNAVAILABLE"

    def test_upstream_auth_failure_is_502(self, client, fake_idp):
        fake_idp.fail_with = 401

        response = client.get(f"{API}/clients?{realm_query()}", headers=auth_headers())

        assert response.status_code == 502
        assert response.json()["code"] == "UPSTREAM_AUTH_FAILURE"


# ===================================
# Secrets and history
# ===================================


class TestSecretRoutes:
    def test_history_shows_recent_events_unless_full(self, client, fake_idp):
        id = fake_idp.add(REALM, "billing")
        for _ in range(5):
            client.post(f"{API}/clients/{id}/secret?{realm_query()}", headers=auth_headers("u1"))

        recent = client.get(f"{API}/clients/{id}/secret-history?{realm_query()}", headers=auth_headers("u1"))
        full = client.get(
            f"{API}/clients/{id}/secret-history?{realm_query(full='true')}", headers=auth_headers("u1")
        )

        assert len(recent.json()) == 4
        assert len(full.json()) == 5
        row = recent.json()[0]
        assert row["action"] == "regenerated"
        assert row["client_id"] == id
        assert row["created_by"] == "u1"
        assert row["secret_last4"] == fake_idp.secrets[(REALM, id)][-4:]

    def test_history_is_per_actor(self, client, fake_idp):
        id = fake_idp.add(REALM, "billing")
        client.post(f"{API}/clients/{id}/secret?{realm_query()}", headers=auth_headers("u1"))

        response = client.get(f"{API}/clients/{id}/secret-history?{realm_query()}", headers=auth_headers("u2"))

        assert response.json() == []

    def test_get_and_delete_secret(self, client, fake_idp):
        id = fake_idp.add(REALM, "billing")

        read = client.get(f"{API}/clients/{id}/secret?{realm_query()}", headers=auth_headers())
        deleted = client.delete(f"{API}/clients/{id}/secret?{realm_query()}", headers=auth_headers())

        assert read.json()["secret"] == "generated-secret-0001"
        assert deleted.status_code == 200
        assert deleted.json()["auditRecorded"] is True

    def test_lost_audit_entry_is_partial_success(self, client, session_factory, api_registry, fake_idp):
        failing_ledger = AsyncSecretLedger()
        failing_ledger.record = AsyncMock(side_effect=LedgerWriteFailureException())

        def failing_service(db=Depends(get_db_session)):
            return AsyncClientService(db, api_registry, failing_ledger)

        app.dependency_overrides[get_client_service] = failing_service
        id = fake_idp.add(REALM, "billing")

        response = client.post(f"{API}/clients/{id}/secret?{realm_query()}", headers=auth_headers())

        assert response.status_code == 200
        assert response.headers["X-Audit-Warning"] == "audit-entry-lost"
        body = response.json()
        assert body["auditRecorded"] is False
        assert body["secret"] == fake_idp.secrets[(REALM, id)]


# ===================================
# Take ownership
# ===================================


class TestTakeOwnership:
    def test_claim_by_client_id(self, client, fake_idp):
        fake_idp.add(REALM, "legacy")

        response = client.post(
            f"{API}/take-ownership", json={"realm": REALM, "clientId": "legacy"}, headers=auth_headers("u2")
        )

        assert response.status_code == 200
        body = response.json()
        assert body["clientId"] == "legacy"
        assert body["attributes"]["inheritedBy"] == "u2"
        assert fake_idp.find(REALM, "legacy")["attributes"]["inheritedBy"] == "u2"

    def test_ambiguous_name_returns_candidates(self, client, fake_idp):
        fake_idp.add(REALM, "a", name="Shared")
        fake_idp.add(REALM, "b", name="Shared")

        response = client.post(
            f"{API}/take-ownership", json={"realm": REALM, "name": "Shared"}, headers=auth_headers("u2")
        )

        assert response.status_code == 409
        body = response.json()
        assert body["code"] == "AMBIGUOUS_MATCH"
        assert sorted(c["clientId"] for c in body["candidates"]) == ["a", "b"]
        assert all("inheritedBy" not in rep["attributes"] for rep in fake_idp.clients.values())

    def test_unknown_client_is_404(self, client):
        response = client.post(
            f"{API}/take-ownership", json={"realm": REALM, "clientId": "ghost"}, headers=auth_headers()
        )

        assert response.status_code == 404

    def test_selector_is_required(self, client):
        response = client.post(f"{API}/take-ownership", json={"realm": REALM}, headers=auth_headers())

        assert response.status_code == 422


class TestRequestLogging:
    def test_request_id_is_echoed(self, client):
        response = client.get(f"{API}/health", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"

    def test_request_id_is_generated(self, client):
        response = client.get(f"{API}/health")

        assert len(response.headers["X-Request-ID"]) == 32
