# client_broker/application/ports/inbound.py

from abc import ABC, abstractmethod
from typing import List, Optional

from client_broker.application.dtos.client_dto import (
    ClientCreate,
    ClientCreated,
    ClientUpdate,
    SecretOperationResult,
)
from client_broker.domain.models.claim_domain_model import ClaimResult, ClaimSelector
from client_broker.domain.models.client_registration_domain_model import ClientRegistration
from client_broker.domain.models.secret_event_domain_model import SecretEvent


class IClientUseCase(ABC):
    """Interface for client-registration use cases."""

    @abstractmethod
    def create_client(self, realm: str, data: ClientCreate, actor: str) -> ClientCreated:
        """Create a registration attributed to actor."""
        pass

    @abstractmethod
    def get_client(self, realm: str, client_id: str) -> ClientRegistration:
        """Get a registration by clientId."""
        pass

    @abstractmethod
    def list_clients(self, realm: str) -> List[ClientRegistration]:
        """List all registrations of a realm."""
        pass

    @abstractmethod
    def list_my_clients(self, realm: str, actor: str) -> List[ClientRegistration]:
        """List registrations created by actor."""
        pass

    @abstractmethod
    def update_client(self, realm: str, id: str, data: ClientUpdate) -> None:
        """Update a registration."""
        pass

    @abstractmethod
    def delete_client(self, realm: str, id: str) -> None:
        """Delete a registration, keeping its secret history."""
        pass

    @abstractmethod
    def get_secret(self, realm: str, id: str) -> Optional[str]:
        """Reveal the current secret."""
        pass

    @abstractmethod
    def regenerate_secret(self, realm: str, id: str, actor: str) -> SecretOperationResult:
        """Rotate the secret and record it in the ledger."""
        pass

    @abstractmethod
    def delete_secret(self, realm: str, id: str, actor: str) -> SecretOperationResult:
        """Delete the secret and record it in the ledger."""
        pass

    @abstractmethod
    def secret_history(self, realm: str, id: str, actor: str, limit: Optional[int] = None) -> List[SecretEvent]:
        """Secret events authored by actor."""
        pass


class IOwnershipUseCase(ABC):
    """Interface for the claim/adopt protocol."""

    @abstractmethod
    def claim(self, realm: str, actor: str, selector: ClaimSelector) -> ClaimResult:
        """Attribute an existing registration to actor."""
        pass
