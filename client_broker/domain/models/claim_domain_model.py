# client_broker/domain/models/claim_domain_model.py

"""
Resultados da resolução de um seletor de claim.

A resolução é modelada como uma variante com três formas: o seletor
encontrou exatamente um client, encontrou vários (ambíguo) ou nenhum.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Union

from client_broker.domain.models.client_registration_domain_model import ClientRegistration

INHERITED_TAG = "inherited"


@dataclass(frozen=True)
class ClaimSelector:
    """Selects a registration either by exact clientId or by display name."""
    client_id: Optional[str] = None
    name: Optional[str] = None

    def describe(self) -> str:
        if self.client_id:
            return f"clientId '{self.client_id}'"
        return f"name '{self.name}'"


@dataclass(frozen=True)
class ClaimCandidate:
    id: Optional[str]
    client_id: str
    name: Optional[str]

    def as_dict(self) -> Dict[str, Optional[str]]:
        return {"id": self.id, "clientId": self.client_id, "name": self.name}


@dataclass(frozen=True)
class ClaimResolved:
    registration: ClientRegistration


@dataclass(frozen=True)
class ClaimAmbiguous:
    candidates: List[ClaimCandidate] = field(default_factory=list)


@dataclass(frozen=True)
class ClaimNotFound:
    selector: ClaimSelector


ClaimResolution = Union[ClaimResolved, ClaimAmbiguous, ClaimNotFound]


@dataclass(frozen=True)
class ClaimResult:
    message: str
    id: Optional[str]
    client_id: str
    name: Optional[str]
    attributes: Dict[str, str]
