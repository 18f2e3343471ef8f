# client_broker/domain/models/client_registration_domain_model.py

from dataclasses import dataclass, field
from typing import Dict, List, Optional

# Attribution keys kept in the upstream attributes bag
CREATED_BY = "createdBy"
CREATED_BY_TAG = "createdByTag"
INHERITED_BY = "inheritedBy"
INHERITED_AT = "inheritedAt"

# Only creation (createdBy) and a claim may write these; caller-supplied values are dropped
ATTRIBUTION_KEYS = (CREATED_BY, CREATED_BY_TAG, INHERITED_BY, INHERITED_AT)


@dataclass
class ClientRegistration:
    """Domain model for an OAuth2/OIDC client registration held by the IdP."""
    client_id: str  # Human-chosen, unique per realm
    id: Optional[str] = None  # Assigned by the IdP
    realm: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    enabled: bool = True
    protocol: str = "openid-connect"
    public_client: bool = False
    redirect_uris: List[str] = field(default_factory=lambda: ["*"])
    web_origins: List[str] = field(default_factory=lambda: ["*"])
    bearer_only: bool = False
    service_accounts_enabled: bool = False
    authorization_services_enabled: bool = False
    direct_access_grants_enabled: bool = True
    implicit_flow_enabled: bool = False
    standard_flow_enabled: bool = True
    attributes: Dict[str, str] = field(default_factory=dict)

    @property
    def created_by(self) -> Optional[str]:
        return self.attributes.get(CREATED_BY)

    @property
    def is_confidential(self) -> bool:
        """Only confidential clients carry a client secret."""
        return not self.public_client and not self.bearer_only
