# client_broker/domain/models/secret_event_domain_model.py

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

SECRET_LAST4_LENGTH = 4


class SecretAction(str, Enum):
    """Lifecycle events recorded in the secret ledger."""
    CREATED = "created"
    REGENERATED = "regenerated"
    DELETED = "deleted"


@dataclass(frozen=True)
class SecretEvent:
    """Domain model for one append-only secret ledger row."""
    id: int
    realm: str
    client_id: str  # Upstream id of the client registration
    created_by: str
    action: SecretAction
    secret_last4: Optional[str]
    created_at: datetime


def last4(secret: Optional[str]) -> Optional[str]:
    """Return the fragment of a secret that may be persisted, or None."""
    if not secret:
        return None
    return secret[-SECRET_LAST4_LENGTH:]
