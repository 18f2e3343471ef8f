# client_broker/domain/models/admin_token_domain_model.py

from dataclasses import dataclass


@dataclass(frozen=True)
class AdminToken:
    """Administrative bearer token for the upstream IdP admin API."""
    value: str
    expires_at: float  # Epoch seconds, safety margin already subtracted

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at
