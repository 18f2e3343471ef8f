# client_broker/application/dtos/client_dto.py

"""
Schemas para dados de client registrations.

Este módulo define os dtos Pydantic para validação e serialização
dos dados de clients mantidos no IdP, das operações de segredo
e do protocolo de claim.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from client_broker.application.dtos.base_dto import CustomBaseModel
from client_broker.domain.models.client_registration_domain_model import ClientRegistration


class ClientFields(CustomBaseModel):
    """
    Campos configuráveis de um client.

    Todos opcionais: na criação, os ausentes recebem os valores padrão;
    na atualização, apenas os informados são enviados ao IdP.
    """
    name: Optional[str] = None
    description: Optional[str] = None
    enabled: Optional[bool] = None
    protocol: Optional[str] = None
    public_client: Optional[bool] = None
    redirect_uris: Optional[List[str]] = None
    web_origins: Optional[List[str]] = None
    bearer_only: Optional[bool] = None
    service_accounts_enabled: Optional[bool] = None
    authorization_services_enabled: Optional[bool] = None
    direct_access_grants_enabled: Optional[bool] = None
    implicit_flow_enabled: Optional[bool] = None
    standard_flow_enabled: Optional[bool] = None
    attributes: Optional[Dict[str, str]] = None


class ClientCreate(ClientFields):
    """Schema para criação de client."""
    realm: str = Field(..., min_length=1, description="Realm do IdP onde o client será criado")
    client_id: str = Field(..., min_length=1, description="Identificador do client, único no realm")

    def to_registration(self) -> ClientRegistration:
        fields = self.dump_present()
        fields.pop("realm", None)
        return ClientRegistration(realm=self.realm, **fields)


class ClientUpdate(ClientFields):
    """Schema para atualização parcial de client."""
    realm: str = Field(..., min_length=1, description="Realm do IdP")
    client_id: Optional[str] = None

    def to_changes(self) -> Dict[str, object]:
        changes = self.dump_present()
        changes.pop("realm", None)
        return changes


class ClientOutput(CustomBaseModel):
    """
    Schema para retorno de dados de client.

    Espelha a representação do IdP, incluindo os atributos de atribuição.
    """
    id: Optional[str] = None
    client_id: str
    realm: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    enabled: bool
    protocol: str
    public_client: bool
    redirect_uris: List[str]
    web_origins: List[str]
    bearer_only: bool
    service_accounts_enabled: bool
    authorization_services_enabled: bool
    direct_access_grants_enabled: bool
    implicit_flow_enabled: bool
    standard_flow_enabled: bool
    attributes: Dict[str, str]

    model_config = ConfigDict(from_attributes=True)


class ClientCreated(CustomBaseModel):
    """Resultado da criação de um client."""
    message: str
    id: str
    client_id: str
    secret: Optional[str] = None
    audit_recorded: bool = True
    warning: Optional[str] = None


class SecretOperationResult(CustomBaseModel):
    """
    Resultado de uma operação que altera o segredo no IdP.

    audit_recorded=False indica sucesso parcial: o segredo foi alterado,
    mas o evento de auditoria não pôde ser gravado.
    """
    secret: Optional[str] = None
    audit_recorded: bool = True
    warning: Optional[str] = None


class SecretOutput(CustomBaseModel):
    secret: Optional[str] = None


class SecretEventOutput(BaseModel):
    """Linha do histórico de segredos, em snake_case."""
    id: int
    realm: str
    client_id: str
    created_by: str
    action: str
    secret_last4: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClaimRequest(CustomBaseModel):
    """Pedido de claim: informe clientId (preferencial) ou name."""
    realm: str = Field(..., min_length=1)
    client_id: Optional[str] = None
    name: Optional[str] = None

    @model_validator(mode="after")
    def require_selector(self):
        if not self.client_id and not self.name:
            raise ValueError("clientId ou name deve ser informado")
        return self


class ClaimOutput(CustomBaseModel):
    message: str
    id: Optional[str] = None
    client_id: str
    name: Optional[str] = None
    attributes: Dict[str, str]

    model_config = ConfigDict(from_attributes=True)
