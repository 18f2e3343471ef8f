# client_broker/adapters/inbound/api/v1/endpoints/client_endpoint.py

"""
Endpoints para gerenciamento de clients do IdP.

Este módulo contém as rotas de criação, consulta, atualização e exclusão de
clients, as operações sobre o segredo do client com seu histórico de
auditoria e o claim de clients criados fora do broker.

O realm é sempre informado pelo chamador (query string ou corpo).
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from client_broker.adapters.configuration.config import settings
from client_broker.adapters.inbound.api.deps import (
    get_client_service,
    get_current_actor,
    get_ownership_resolver,
)
from client_broker.application.dtos.client_dto import (
    ClaimOutput,
    ClaimRequest,
    ClientCreate,
    ClientCreated,
    ClientOutput,
    ClientUpdate,
    SecretEventOutput,
    SecretOperationResult,
    SecretOutput,
)
from client_broker.application.use_cases.client_use_cases import AsyncClientService
from client_broker.application.use_cases.ownership_use_cases import OwnershipResolver
from client_broker.domain.models.claim_domain_model import ClaimSelector

# Configurar logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["Clients"])

AUDIT_WARNING_HEADER = "X-Audit-Warning"


def _flag_partial_success(response: Response, warning: Optional[str]) -> None:
    """Sinaliza que a operação no IdP ocorreu, mas a auditoria foi perdida."""
    if warning:
        response.headers[AUDIT_WARNING_HEADER] = "audit-entry-lost"


@router.get("/health", include_in_schema=False)
async def health():
    """Verificação simples de disponibilidade (sem autenticação)."""
    return {"status": "ok"}


@router.post("/clients", response_model=ClientCreated, status_code=status.HTTP_201_CREATED)
async def create_client(
        data: ClientCreate,
        response: Response,
        actor: str = Depends(get_current_actor),
        service: AsyncClientService = Depends(get_client_service),
):
    """
    Cria um client no IdP atribuído ao chamador.

    Para clients confidenciais o segredo gerado é retornado uma única vez.
    """
    created = await service.create_client(data.realm, data, actor)
    _flag_partial_success(response, created.warning)
    return created


@router.get("/clients", response_model=List[ClientOutput])
async def list_clients(
        realm: str = Query(..., min_length=1),
        actor: str = Depends(get_current_actor),
        service: AsyncClientService = Depends(get_client_service),
):
    return [ClientOutput.model_validate(c) for c in await service.list_clients(realm)]


@router.get("/my-clients", response_model=List[ClientOutput])
async def list_my_clients(
        realm: str = Query(..., min_length=1),
        actor: str = Depends(get_current_actor),
        service: AsyncClientService = Depends(get_client_service),
):
    """
    Lista os clients cujo atributo createdBy é o chamador.

    Filtro baseado em atributo do IdP, não em ACL.
    """
    return [ClientOutput.model_validate(c) for c in await service.list_my_clients(realm, actor)]


@router.get("/clients/{client_id}", response_model=ClientOutput)
async def get_client(
        client_id: str,
        realm: str = Query(..., min_length=1),
        actor: str = Depends(get_current_actor),
        service: AsyncClientService = Depends(get_client_service),
):
    return ClientOutput.model_validate(await service.get_client(realm, client_id))


@router.put("/clients/{id}")
async def update_client(
        id: str,
        data: ClientUpdate,
        actor: str = Depends(get_current_actor),
        service: AsyncClientService = Depends(get_client_service),
):
    await service.update_client(data.realm, id, data)
    logger.info(f"Client {id} updated in realm {data.realm} by {actor}")
    return {"message": f"Client {id} updated successfully in realm {data.realm}"}


@router.delete("/clients/{id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(
        id: str,
        realm: str = Query(..., min_length=1),
        actor: str = Depends(get_current_actor),
        service: AsyncClientService = Depends(get_client_service),
):
    await service.delete_client(realm, id)
    logger.info(f"Client {id} deleted from realm {realm} by {actor}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/clients/{id}/secret", response_model=SecretOutput)
async def get_client_secret(
        id: str,
        realm: str = Query(..., min_length=1),
        actor: str = Depends(get_current_actor),
        service: AsyncClientService = Depends(get_client_service),
):
    return SecretOutput(secret=await service.get_secret(realm, id))


@router.post("/clients/{id}/secret", response_model=SecretOperationResult)
async def regenerate_client_secret(
        id: str,
        response: Response,
        realm: str = Query(..., min_length=1),
        actor: str = Depends(get_current_actor),
        service: AsyncClientService = Depends(get_client_service),
):
    result = await service.regenerate_secret(realm, id, actor)
    _flag_partial_success(response, result.warning)
    return result


@router.delete("/clients/{id}/secret", response_model=SecretOperationResult)
async def delete_client_secret(
        id: str,
        response: Response,
        realm: str = Query(..., min_length=1),
        actor: str = Depends(get_current_actor),
        service: AsyncClientService = Depends(get_client_service),
):
    result = await service.delete_secret(realm, id, actor)
    _flag_partial_success(response, result.warning)
    return result


@router.get("/clients/{id}/secret-history", response_model=List[SecretEventOutput])
async def list_secret_history(
        id: str,
        realm: str = Query(..., min_length=1),
        full: bool = Query(False, description="Retorna a trilha completa em vez dos eventos mais recentes"),
        actor: str = Depends(get_current_actor),
        service: AsyncClientService = Depends(get_client_service),
):
    """
    Histórico de segredos do client, apenas com eventos do próprio chamador.
    """
    limit = None if full else settings.SECRET_HISTORY_DISPLAY_LIMIT
    events = await service.secret_history(realm, id, actor, limit=limit)
    return [
        SecretEventOutput(
            id=e.id,
            realm=e.realm,
            client_id=e.client_id,
            created_by=e.created_by,
            action=e.action.value,
            secret_last4=e.secret_last4,
            created_at=e.created_at,
        )
        for e in events
    ]


@router.post("/take-ownership", response_model=ClaimOutput)
async def take_ownership(
        data: ClaimRequest,
        actor: str = Depends(get_current_actor),
        resolver: OwnershipResolver = Depends(get_ownership_resolver),
):
    """
    Assume a autoria de um client criado fora do broker.

    Informe clientId (busca exata) ou name (pode ser ambíguo: nesse caso a
    resposta 409 traz a lista de candidatos).
    """
    selector = ClaimSelector(client_id=data.client_id, name=data.name)
    result = await resolver.claim(data.realm, actor, selector)
    return ClaimOutput.model_validate(result)
