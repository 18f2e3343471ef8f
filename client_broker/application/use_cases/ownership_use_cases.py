# client_broker/application/use_cases/ownership_use_cases.py (async version)

"""
Claim/adopt protocol for client registrations.

Lets an actor become the attributed owner of a registration that exists in
the IdP but was created outside this service (manually, or before the
service existed).

Known limitation: claiming is last-writer-wins. Nothing prevents a second
actor from re-claiming an already claimed client, and the lookup and the
update are separate upstream calls with no lock between them, so two
concurrent claims on the same client end in an undefined order.
"""

import logging
from datetime import datetime, timezone

from client_broker.application.ports.inbound import IOwnershipUseCase
from client_broker.application.ports.outbound import IClientRegistry
from client_broker.domain.exceptions import (
    AmbiguousMatchException,
    InvalidInputException,
    ResourceNotFoundException,
)
from client_broker.domain.models.claim_domain_model import (
    INHERITED_TAG,
    ClaimAmbiguous,
    ClaimCandidate,
    ClaimNotFound,
    ClaimResolution,
    ClaimResolved,
    ClaimResult,
    ClaimSelector,
)
from client_broker.domain.models.client_registration_domain_model import (
    CREATED_BY_TAG,
    INHERITED_AT,
    INHERITED_BY,
)

logger = logging.getLogger(__name__)


class OwnershipResolver(IOwnershipUseCase):
    """Resolves claim selectors and attributes the matched registration."""

    def __init__(self, registry: IClientRegistry):
        self.registry = registry

    async def resolve(self, realm: str, selector: ClaimSelector) -> ClaimResolution:
        """
        Resolve a selector against the registrations of a realm.

        A clientId selector is an exact lookup. A name selector matches the
        display name exactly (case-sensitive) across the whole realm.

        Returns:
            ClaimResolved, ClaimAmbiguous with every candidate, or ClaimNotFound
        """
        if selector.client_id:
            try:
                return ClaimResolved(await self.registry.get(realm, selector.client_id))
            except ResourceNotFoundException:
                return ClaimNotFound(selector)

        if not selector.name:
            raise InvalidInputException(detail="Informe clientId ou name para o claim")

        matches = [r for r in await self.registry.list(realm) if r.name == selector.name]
        if not matches:
            return ClaimNotFound(selector)
        if len(matches) > 1:
            return ClaimAmbiguous([ClaimCandidate(r.id, r.client_id, r.name) for r in matches])
        return ClaimResolved(matches[0])

    async def claim(self, realm: str, actor: str, selector: ClaimSelector) -> ClaimResult:
        """
        Attribute an existing registration to actor.

        Sets createdByTag, inheritedBy and inheritedAt while keeping any
        previous createdBy for provenance.

        Raises:
            ResourceNotFoundException: If the selector matches nothing
            AmbiguousMatchException: If a name selector matches more than one
                registration; nothing is modified in that case
        """
        resolution = await self.resolve(realm, selector)

        if isinstance(resolution, ClaimNotFound):
            logger.warning(f"Claim by {actor}: no client matches {selector.describe()} in realm {realm}")
            raise ResourceNotFoundException(
                detail=f"Nenhum client corresponde a {selector.describe()} no realm '{realm}'"
            )

        if isinstance(resolution, ClaimAmbiguous):
            logger.warning(
                f"Claim by {actor}: {len(resolution.candidates)} clients match "
                f"{selector.describe()} in realm {realm}"
            )
            raise AmbiguousMatchException(
                detail=f"Mais de um client corresponde a {selector.describe()}; informe o clientId",
                candidates=[c.as_dict() for c in resolution.candidates],
            )

        registration = resolution.registration
        attributes = dict(registration.attributes)
        attributes[CREATED_BY_TAG] = INHERITED_TAG
        attributes[INHERITED_BY] = actor
        attributes[INHERITED_AT] = datetime.now(timezone.utc).isoformat()

        await self.registry.update(realm, registration.id, {"attributes": attributes})
        logger.info(f"Client {registration.client_id} (id: {registration.id}) claimed by {actor} in realm {realm}")

        return ClaimResult(
            message=f"Ownership of client {registration.client_id} taken by {actor}",
            id=registration.id,
            client_id=registration.client_id,
            name=registration.name,
            attributes=attributes,
        )
