# client_broker/adapters/outbound/persistence/repositories/secret_event_repository.py (async version)

"""
Repository for the secret ledger.

The ledger is append-only: this repository only inserts and reads rows.
It refuses anything longer than the last 4 characters of a secret, so a
full secret value can never reach the database through it.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from client_broker.adapters.outbound.persistence.models.secret_event_model import SecretEvent
from client_broker.application.ports.outbound import ISecretLedger
from client_broker.domain.exceptions import (
    DatabaseOperationException,
    InvalidInputException,
    LedgerWriteFailureException,
)
from client_broker.domain.models.secret_event_domain_model import (
    SECRET_LAST4_LENGTH,
    SecretAction,
    SecretEvent as DomainSecretEvent,
)


class AsyncSecretLedger(ISecretLedger):
    """Async implementation of the secret ledger over SQLAlchemy."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    async def record(
            self,
            db: AsyncSession,
            realm: str,
            client_id: str,
            actor: str,
            action: SecretAction,
            secret_last4: Optional[str],
    ) -> DomainSecretEvent:
        """
        Append a secret lifecycle event.

        Args:
            db: Async database session
            realm: IdP realm
            client_id: Upstream id of the client registration
            actor: Actor that performed the operation
            action: created, regenerated or deleted
            secret_last4: Last 4 characters of the secret, or None if unknown

        Returns:
            The recorded event

        Raises:
            InvalidInputException: If more than the last 4 characters are given
                or the action is unknown
            LedgerWriteFailureException: If the row could not be persisted
        """
        if secret_last4 is not None and len(secret_last4) > SECRET_LAST4_LENGTH:
            raise InvalidInputException(
                detail="O ledger aceita apenas os 4 últimos caracteres do segredo"
            )
        try:
            action = SecretAction(action)
        except ValueError:
            raise InvalidInputException(detail=f"Ação de segredo inválida: {action!r}")

        try:
            event = SecretEvent(
                realm=realm,
                client_id=client_id,
                created_by=actor,
                action=action.value,
                secret_last4=secret_last4,
                created_at=datetime.now(timezone.utc),
            )
            db.add(event)
            await db.commit()
            await db.refresh(event)
        except SQLAlchemyError as e:
            await db.rollback()
            self.logger.error(
                f"Error recording secret event '{action.value}' for client {client_id} "
                f"in realm {realm}: {str(e)}"
            )
            raise LedgerWriteFailureException(original_error=e)

        self.logger.info(f"Secret event recorded: {action.value} for client {client_id} by {actor}")
        return self.to_domain(event)

    async def history(
            self,
            db: AsyncSession,
            realm: str,
            client_id: str,
            actor: str,
            limit: Optional[int] = None,
    ) -> List[DomainSecretEvent]:
        """
        Events of a client authored by actor, newest first.

        Other actors' events for the same client are never returned: each
        actor sees only their own audit trail.

        Args:
            db: Async database session
            realm: IdP realm
            client_id: Upstream id of the client registration
            actor: Actor whose events are returned
            limit: Maximum number of rows, or None for the full trail

        Returns:
            List of events ordered by ledger sequence, descending
        """
        try:
            query = (
                select(SecretEvent)
                .where(
                    SecretEvent.realm == realm,
                    SecretEvent.client_id == client_id,
                    SecretEvent.created_by == actor,
                )
                .order_by(SecretEvent.id.desc())
            )
            if limit is not None:
                query = query.limit(limit)
            result = await db.execute(query)
            return [self.to_domain(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            self.logger.error(f"Error reading secret history for client {client_id}: {str(e)}")
            raise DatabaseOperationException(detail="Erro ao consultar o histórico de segredos", original_error=e)

    def to_domain(self, db_model: SecretEvent) -> DomainSecretEvent:
        """
        Convert database model to domain model.

        Args:
            db_model: SecretEvent ORM model

        Returns:
            Domain model of the secret event
        """
        return DomainSecretEvent(
            id=db_model.id,
            realm=db_model.realm,
            client_id=db_model.client_id,
            created_by=db_model.created_by,
            action=SecretAction(db_model.action),
            secret_last4=db_model.secret_last4,
            created_at=db_model.created_at,
        )


# Public instance to be used by use cases
secret_ledger = AsyncSecretLedger()
