# client_broker/application/use_cases/client_use_cases.py (async version)

"""
Service for client registration management.

This module implements the use cases for IdP client registrations,
combining the upstream registry with the secret ledger so that every
secret-affecting operation leaves an audit row.
"""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from client_broker.application.dtos.client_dto import (
    ClientCreate,
    ClientCreated,
    ClientUpdate,
    SecretOperationResult,
)
from client_broker.application.ports.inbound import IClientUseCase
from client_broker.application.ports.outbound import IClientRegistry, ISecretLedger
from client_broker.domain.exceptions import (
    AuthFailureException,
    InvalidInputException,
    LedgerWriteFailureException,
    ResourceNotFoundException,
    UpstreamUnavailableException,
)
from client_broker.domain.models.client_registration_domain_model import ATTRIBUTION_KEYS, ClientRegistration
from client_broker.domain.models.secret_event_domain_model import SecretAction, SecretEvent, last4

logger = logging.getLogger(__name__)

AUDIT_LOST_WARNING = "Segredo alterado no IdP, mas o evento de auditoria não foi gravado"


class AsyncClientService(IClientUseCase):
    """
    Service for client registration management.

    Upstream changes are never rolled back when the ledger write fails: the
    secret has already changed and the old value is gone. Those cases return
    a partial-success result (audit_recorded=False) instead of an error.
    """

    def __init__(self, db_session: AsyncSession, registry: IClientRegistry, ledger: ISecretLedger):
        self.db_session = db_session
        self.registry = registry
        self.ledger = ledger

    async def _record(self, realm: str, id: str, actor: str, action: SecretAction,
                      secret: Optional[str]) -> Optional[str]:
        """Record a ledger row; return a warning instead of raising when it is lost."""
        try:
            await self.ledger.record(self.db_session, realm, id, actor, action, last4(secret))
            return None
        except LedgerWriteFailureException as e:
            logger.warning(
                f"Audit entry lost: '{action.value}' for client {id} in realm {realm} by {actor}: {e}"
            )
            return AUDIT_LOST_WARNING

    async def create_client(self, realm: str, data: ClientCreate, actor: str) -> ClientCreated:
        """
        Creates a client attributed to actor. For confidential clients the
        generated secret is returned once and its last 4 characters recorded.
        """
        registration = data.to_registration()
        new_id = await self.registry.create(realm, registration, actor)

        secret = None
        warning = None
        if registration.is_confidential:
            try:
                secret = await self.registry.get_secret(realm, new_id)
            except (ResourceNotFoundException, UpstreamUnavailableException, AuthFailureException) as e:
                # The client exists; an unreadable secret only leaves last4 empty
                logger.warning(f"Could not read secret of new client {registration.client_id}: {e}")
            warning = await self._record(realm, new_id, actor, SecretAction.CREATED, secret)

        return ClientCreated(
            message=f"Client {registration.client_id} created successfully in realm {realm}",
            id=new_id,
            client_id=registration.client_id,
            secret=secret,
            audit_recorded=warning is None,
            warning=warning,
        )

    async def get_client(self, realm: str, client_id: str) -> ClientRegistration:
        return await self.registry.get(realm, client_id)

    async def list_clients(self, realm: str) -> List[ClientRegistration]:
        return await self.registry.list(realm)

    async def list_my_clients(self, realm: str, actor: str) -> List[ClientRegistration]:
        return await self.registry.list_by_creator(realm, actor)

    async def update_client(self, realm: str, id: str, data: ClientUpdate) -> None:
        """
        Updates only the supplied fields.

        Supplied attributes are merged over the stored ones; the attribution
        keys always keep their stored values (or stay absent), so an update
        can never move a client into another actor's list.
        """
        changes = data.to_changes()
        if not changes:
            raise InvalidInputException(detail="Nenhum campo informado para atualização")

        if "attributes" in changes:
            current = await self.registry.get_by_id(realm, id)
            attributes = {**current.attributes, **changes["attributes"]}
            for key in ATTRIBUTION_KEYS:
                if key in current.attributes:
                    attributes[key] = current.attributes[key]
                else:
                    attributes.pop(key, None)
            changes["attributes"] = attributes

        await self.registry.update(realm, id, changes)

    async def delete_client(self, realm: str, id: str) -> None:
        """Deletes the client upstream. Its ledger rows remain as history."""
        await self.registry.delete(realm, id)

    async def get_secret(self, realm: str, id: str) -> Optional[str]:
        return await self.registry.get_secret(realm, id)

    async def regenerate_secret(self, realm: str, id: str, actor: str) -> SecretOperationResult:
        secret = await self.registry.regenerate_secret(realm, id)
        warning = await self._record(realm, id, actor, SecretAction.REGENERATED, secret)
        return SecretOperationResult(secret=secret, audit_recorded=warning is None, warning=warning)

    async def delete_secret(self, realm: str, id: str, actor: str) -> SecretOperationResult:
        await self.registry.delete_secret(realm, id)
        warning = await self._record(realm, id, actor, SecretAction.DELETED, None)
        return SecretOperationResult(secret=None, audit_recorded=warning is None, warning=warning)

    async def secret_history(self, realm: str, id: str, actor: str,
                             limit: Optional[int] = None) -> List[SecretEvent]:
        return await self.ledger.history(self.db_session, realm, id, actor, limit=limit)
