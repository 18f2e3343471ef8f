# client_broker/adapters/inbound/api/deps.py (async version)

"""
Dependencies for injection into API endpoints.

This module defines functions that provide dependencies via
FastAPI Depends() for caller identity, the IdP adapters, and
database access.
"""

import logging
from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from client_broker.adapters.configuration.config import settings
from client_broker.adapters.outbound.persistence.database import get_db
from client_broker.adapters.outbound.persistence.repositories import secret_ledger
from client_broker.adapters.outbound.security.identity_extractor import JWTIdentityExtractor
from client_broker.application.ports.outbound import IClientRegistry, IIdentityExtractor
from client_broker.application.use_cases.client_use_cases import AsyncClientService
from client_broker.application.use_cases.ownership_use_cases import OwnershipResolver

# Configure logger
logger = logging.getLogger(__name__)

########################################################################
# Database Session Management
########################################################################

get_db_session = get_db


########################################################################
# Caller Identity
########################################################################

@lru_cache
def get_identity_extractor() -> IIdentityExtractor:
    return JWTIdentityExtractor(
        secret_key=settings.IDENTITY_SECRET_KEY,
        algorithm=settings.IDENTITY_ALGORITHM,
        audience=settings.IDENTITY_AUDIENCE,
        actor_claim=settings.IDENTITY_ACTOR_CLAIM,
    )


async def get_current_actor(
        request: Request,
        extractor: IIdentityExtractor = Depends(get_identity_extractor),
) -> str:
    """
    Resolve the calling actor.

    Raises:
        UnauthenticatedException: If no valid identity can be established
    """
    return await extractor.identify(request)


########################################################################
# IdP adapters and use cases
########################################################################

def get_client_registry(request: Request) -> IClientRegistry:
    """The registry proxy is built once in the application lifespan."""
    return request.app.state.client_registry


def get_client_service(
        db: AsyncSession = Depends(get_db_session),
        registry: IClientRegistry = Depends(get_client_registry),
) -> AsyncClientService:
    return AsyncClientService(db, registry, secret_ledger)


def get_ownership_resolver(
        registry: IClientRegistry = Depends(get_client_registry),
) -> OwnershipResolver:
    return OwnershipResolver(registry)
