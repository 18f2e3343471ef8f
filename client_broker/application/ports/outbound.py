# client_broker/application/ports/outbound.py

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from starlette.requests import Request

from client_broker.domain.models.admin_token_domain_model import AdminToken
from client_broker.domain.models.client_registration_domain_model import ClientRegistration
from client_broker.domain.models.secret_event_domain_model import SecretAction, SecretEvent


class ITokenProvider(ABC):
    """Administrative token provider interface."""

    @abstractmethod
    async def get_token(self) -> AdminToken:
        """Return a valid admin token, refreshing it when needed."""
        pass

    @abstractmethod
    def invalidate(self) -> None:
        """Drop the cached token so the next call re-authenticates."""
        pass


class IClientRegistry(ABC):
    """Upstream client registration interface."""

    @abstractmethod
    async def create(self, realm: str, registration: ClientRegistration, actor: str) -> str:
        """Create a registration attributed to actor and return its upstream id."""
        pass

    @abstractmethod
    async def get(self, realm: str, client_id: str) -> ClientRegistration:
        """Get registration by clientId."""
        pass

    @abstractmethod
    async def get_by_id(self, realm: str, id: str) -> ClientRegistration:
        """Get registration by upstream id."""
        pass

    @abstractmethod
    async def list(self, realm: str) -> List[ClientRegistration]:
        """List all registrations of a realm."""
        pass

    @abstractmethod
    async def list_by_creator(self, realm: str, actor: str) -> List[ClientRegistration]:
        """List registrations whose createdBy attribute equals actor."""
        pass

    @abstractmethod
    async def update(self, realm: str, id: str, changes: Dict[str, Any]) -> None:
        """Update a registration with a partial representation."""
        pass

    @abstractmethod
    async def delete(self, realm: str, id: str) -> None:
        """Delete a registration."""
        pass

    @abstractmethod
    async def get_secret(self, realm: str, id: str) -> Optional[str]:
        """Read the current client secret."""
        pass

    @abstractmethod
    async def regenerate_secret(self, realm: str, id: str) -> Optional[str]:
        """Rotate the client secret and return the new value."""
        pass

    @abstractmethod
    async def delete_secret(self, realm: str, id: str) -> None:
        """Delete the client secret."""
        pass


class ISecretLedger(ABC):
    """Secret ledger interface."""

    @abstractmethod
    async def record(self, db: AsyncSession, realm: str, client_id: str, actor: str,
                     action: SecretAction, secret_last4: Optional[str]) -> SecretEvent:
        """Append a secret lifecycle event."""
        pass

    @abstractmethod
    async def history(self, db: AsyncSession, realm: str, client_id: str, actor: str,
                      limit: Optional[int] = None) -> List[SecretEvent]:
        """Events authored by actor for a client, newest first."""
        pass


class IIdentityExtractor(ABC):
    """Caller identity interface."""

    @abstractmethod
    async def identify(self, request: Request) -> str:
        """Return the stable identifier of the calling actor."""
        pass
