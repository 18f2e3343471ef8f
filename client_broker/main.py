# client_broker/main.py (async version)

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from client_broker.adapters.configuration.config import settings
from client_broker.adapters.inbound.api.v1.router import api_router as api_v1_router
from client_broker.adapters.outbound.idp.client_registry import ClientRegistryProxy
from client_broker.adapters.outbound.idp.token_cache import TokenCache
from client_broker.adapters.outbound.persistence.database import Base, engine
from client_broker.domain.exceptions import BrokerException
from client_broker.shared.middleware import (
    AsyncExceptionMiddleware,
    AsyncRequestLoggingMiddleware,
    broker_exception_handler,
)

# ─── Logging: configurado uma única vez, aqui ─────────────────────────────────────
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
# httpx loga cada requisição em INFO; as chamadas ao IdP já são logadas pelo proxy
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def build_client_registry(http_client: httpx.AsyncClient) -> ClientRegistryProxy:
    """Wire the token cache and the registry proxy from settings."""
    token_cache = TokenCache(
        http_client=http_client,
        base_url=settings.IDP_BASE_URL,
        token_realm=settings.IDP_TOKEN_REALM,
        client_id=settings.IDP_ADMIN_CLIENT_ID,
        client_secret=settings.IDP_ADMIN_CLIENT_SECRET,
        username=settings.IDP_ADMIN_USERNAME,
        password=settings.IDP_ADMIN_PASSWORD,
        safety_margin_seconds=settings.IDP_TOKEN_SAFETY_MARGIN_SECONDS,
    )
    return ClientRegistryProxy(http_client, settings.IDP_BASE_URL, token_cache)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Prepara o ledger e o cliente HTTP do IdP; libera ambos no encerramento.

    O token administrativo não é obtido aqui: a primeira chamada ao IdP o busca.
    """
    logger.info(f"Client broker starting (IdP: {settings.IDP_BASE_URL}, env: {settings.ENVIRONMENT})")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Um único AsyncClient para todas as chamadas ao IdP; o timeout vem das settings
    app.state.http_client = httpx.AsyncClient(timeout=settings.IDP_HTTP_TIMEOUT_SECONDS)
    app.state.client_registry = build_client_registry(app.state.http_client)

    yield

    logger.info("Client broker shutting down")
    await app.state.http_client.aclose()
    await engine.dispose()


app = FastAPI(
    title="Client Broker",
    description="Broker de client registrations do IdP com atribuição de autoria e auditoria de segredos",
    version="1.0.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.add_middleware(AsyncRequestLoggingMiddleware)
app.add_middleware(AsyncExceptionMiddleware)
app.add_exception_handler(BrokerException, broker_exception_handler)

app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/", include_in_schema=False)
async def redirect_to_docs():
    return RedirectResponse(url="/docs")
