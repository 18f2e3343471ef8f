# client_broker/adapters/outbound/idp/client_registry.py

"""
Proxy for client registrations held by the IdP admin API.

This module implements IClientRegistry over HTTP. Every call obtains the admin
token from the TokenCache first, and every upstream failure is translated into
one of the typed domain exceptions: raw httpx errors never leave this module.

Ownership attribution lives in the registration's free-form ``attributes``
bag (``createdBy``). ``list_by_creator`` filters on that attribute and is the
only "my clients" authorization filter of the service: it is attribute-based,
not an ACL, and anyone able to edit attributes upstream can change it.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from client_broker.application.ports.outbound import IClientRegistry, ITokenProvider
from client_broker.domain.exceptions import (
    AuthFailureException,
    ResourceAlreadyExistsException,
    ResourceNotFoundException,
    UpstreamUnavailableException,
)
from client_broker.domain.models.client_registration_domain_model import (
    ATTRIBUTION_KEYS,
    CREATED_BY,
    ClientRegistration,
)

logger = logging.getLogger(__name__)

# Domain field -> IdP representation key
FIELD_MAP = {
    "id": "id",
    "client_id": "clientId",
    "name": "name",
    "description": "description",
    "enabled": "enabled",
    "protocol": "protocol",
    "public_client": "publicClient",
    "redirect_uris": "redirectUris",
    "web_origins": "webOrigins",
    "bearer_only": "bearerOnly",
    "service_accounts_enabled": "serviceAccountsEnabled",
    "authorization_services_enabled": "authorizationServicesEnabled",
    "direct_access_grants_enabled": "directAccessGrantsEnabled",
    "implicit_flow_enabled": "implicitFlowEnabled",
    "standard_flow_enabled": "standardFlowEnabled",
    "attributes": "attributes",
}


def to_representation(fields: Dict[str, Any]) -> Dict[str, Any]:
    """Convert domain field names into the IdP JSON representation."""
    return {FIELD_MAP[key]: value for key, value in fields.items() if key in FIELD_MAP}


def to_domain(realm: str, representation: Dict[str, Any]) -> ClientRegistration:
    """
    Convert an IdP JSON representation into the domain model.

    Args:
        realm: Realm the representation was read from
        representation: JSON object returned by the admin API

    Returns:
        Domain model of the client registration
    """
    defaults = ClientRegistration(client_id=representation.get("clientId", ""))
    values: Dict[str, Any] = {}
    for field_name, key in FIELD_MAP.items():
        if key in representation and representation[key] is not None:
            values[field_name] = representation[key]
        else:
            values[field_name] = getattr(defaults, field_name)

    values["attributes"] = {str(k): str(v) for k, v in (values["attributes"] or {}).items()}
    return ClientRegistration(realm=realm, **values)


class ClientRegistryProxy(IClientRegistry):
    """
    Async implementation of IClientRegistry over the IdP admin REST API.
    """

    def __init__(self, http_client: httpx.AsyncClient, base_url: str, token_provider: ITokenProvider):
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider
        self.logger = logger

    def _url(self, realm: str, path: str) -> str:
        return f"{self.base_url}/admin/realms/{realm}{path}"

    async def _request(
            self,
            method: str,
            realm: str,
            path: str,
            *,
            resource: str,
            json: Any = None,
            params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """
        Perform an authenticated admin API call and translate failures.

        Args:
            method: HTTP method
            realm: Realm the call is scoped to
            path: Path below /admin/realms/{realm}
            resource: Human readable description used in error messages
            json: Optional JSON body
            params: Optional query parameters

        Returns:
            The successful (2xx) response

        Raises:
            AuthFailureException: On 401/403 or when no admin token can be obtained
            ResourceNotFoundException: On 404
            ResourceAlreadyExistsException: On 409
            UpstreamUnavailableException: On any other failure
        """
        token = await self.token_provider.get_token()
        url = self._url(realm, path)

        try:
            response = await self.http_client.request(
                method,
                url,
                json=json,
                params=params,
                headers={"Authorization": f"Bearer {token.value}"},
            )
        except httpx.HTTPError as e:
            self.logger.error(f"IdP request {method} {url} failed: {type(e).__name__}: {e}")
            raise UpstreamUnavailableException(detail=f"Falha ao acessar {resource} no IdP", original_error=e)

        if response.is_success:
            return response

        code = response.status_code
        if code == 401:
            # Token revoked or expired early: the next call must re-authenticate
            self.token_provider.invalidate()
        if code in (401, 403):
            self.logger.error(f"IdP rejected admin token for {method} {url} (status {code})")
            raise AuthFailureException(detail=f"IdP recusou o token administrativo (status {code})")
        if code == 404:
            self.logger.warning(f"IdP reported {resource} not found in realm '{realm}'")
            raise ResourceNotFoundException(detail=f"{resource} não encontrado no realm '{realm}'")
        if code == 409:
            self.logger.warning(f"IdP reported conflict for {resource} in realm '{realm}'")
            raise ResourceAlreadyExistsException(detail=f"{resource} já existe no realm '{realm}'")

        self.logger.error(f"IdP request {method} {url} failed with status {code}")
        raise UpstreamUnavailableException(detail=f"Falha ao acessar {resource} no IdP", status_code=code)

    @staticmethod
    def _json(response: httpx.Response, resource: str) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise UpstreamUnavailableException(detail=f"Resposta inválida do IdP para {resource}", original_error=e)

    async def create(self, realm: str, registration: ClientRegistration, actor: str) -> str:
        """
        Create a client registration attributed to actor.

        Args:
            realm: Target realm
            registration: Registration to create
            actor: Identifier of the creating actor, stored as attributes.createdBy;
                any attribution keys in registration.attributes are discarded

        Returns:
            The upstream id of the new registration

        Raises:
            ResourceAlreadyExistsException: If the clientId is already taken in the realm
        """
        attributes = {k: v for k, v in registration.attributes.items() if k not in ATTRIBUTION_KEYS}
        attributes[CREATED_BY] = actor

        body = to_representation({
            "client_id": registration.client_id,
            "name": registration.name or registration.client_id,
            "description": registration.description,
            "enabled": registration.enabled,
            "protocol": registration.protocol,
            "public_client": registration.public_client,
            "redirect_uris": list(registration.redirect_uris),
            "web_origins": list(registration.web_origins),
            "bearer_only": registration.bearer_only,
            "service_accounts_enabled": registration.service_accounts_enabled,
            "authorization_services_enabled": registration.authorization_services_enabled,
            "direct_access_grants_enabled": registration.direct_access_grants_enabled,
            "implicit_flow_enabled": registration.implicit_flow_enabled,
            "standard_flow_enabled": registration.standard_flow_enabled,
            "attributes": attributes,
        })
        if body.get("description") is None:
            body.pop("description", None)

        resource = f"Client '{registration.client_id}'"
        response = await self._request("POST", realm, "/clients", resource=resource, json=body)

        location = response.headers.get("Location", "")
        new_id = location.rstrip("/").rsplit("/", 1)[-1] if location else ""
        if not new_id:
            new_id = (await self.get(realm, registration.client_id)).id

        self.logger.info(f"Client created: {registration.client_id} (id: {new_id}) in realm {realm} by {actor}")
        return new_id

    async def get(self, realm: str, client_id: str) -> ClientRegistration:
        """
        Find a registration by its clientId.

        Raises:
            ResourceNotFoundException: If no registration has that clientId
        """
        response = await self._request(
            "GET", realm, "/clients", resource=f"Client '{client_id}'", params={"clientId": client_id}
        )
        for representation in self._json(response, "clients") or []:
            if representation.get("clientId") == client_id:
                return to_domain(realm, representation)

        self.logger.warning(f"Client not found: {client_id} in realm {realm}")
        raise ResourceNotFoundException(detail=f"Client '{client_id}' não encontrado no realm '{realm}'")

    async def get_by_id(self, realm: str, id: str) -> ClientRegistration:
        response = await self._request("GET", realm, f"/clients/{id}", resource=f"Client com id '{id}'")
        return to_domain(realm, self._json(response, "client"))

    async def list(self, realm: str) -> List[ClientRegistration]:
        response = await self._request("GET", realm, "/clients", resource="Lista de clients")
        return [to_domain(realm, item) for item in self._json(response, "clients") or []]

    async def list_by_creator(self, realm: str, actor: str) -> List[ClientRegistration]:
        """
        List registrations whose attributes.createdBy equals actor.

        The IdP attribute search narrows the result server-side; the exact
        comparison below guarantees no partial matches slip through.
        """
        response = await self._request(
            "GET", realm, "/clients", resource="Lista de clients", params={"q": f"{CREATED_BY}:{actor}"}
        )
        registrations = [to_domain(realm, item) for item in self._json(response, "clients") or []]
        return [r for r in registrations if r.created_by == actor]

    async def update(self, realm: str, id: str, changes: Dict[str, Any]) -> None:
        body = to_representation(changes)
        await self._request("PUT", realm, f"/clients/{id}", resource=f"Client com id '{id}'", json=body)
        self.logger.info(f"Client updated: {id} in realm {realm} (fields: {', '.join(sorted(body))})")

    async def delete(self, realm: str, id: str) -> None:
        await self._request("DELETE", realm, f"/clients/{id}", resource=f"Client com id '{id}'")
        self.logger.info(f"Client deleted: {id} from realm {realm}")

    async def get_secret(self, realm: str, id: str) -> Optional[str]:
        response = await self._request(
            "GET", realm, f"/clients/{id}/client-secret", resource=f"Segredo do client '{id}'"
        )
        return (self._json(response, "client secret") or {}).get("value")

    async def regenerate_secret(self, realm: str, id: str) -> Optional[str]:
        response = await self._request(
            "POST", realm, f"/clients/{id}/client-secret", resource=f"Segredo do client '{id}'"
        )
        self.logger.info(f"Client secret regenerated for {id} in realm {realm}")
        return (self._json(response, "client secret") or {}).get("value")

    async def delete_secret(self, realm: str, id: str) -> None:
        await self._request(
            "DELETE", realm, f"/clients/{id}/client-secret", resource=f"Segredo do client '{id}'"
        )
        self.logger.info(f"Client secret deleted for {id} in realm {realm}")
