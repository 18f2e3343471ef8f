# client_broker/adapters/outbound/security/identity_extractor.py (async version)

import logging
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from starlette.requests import Request

from client_broker.application.ports.outbound import IIdentityExtractor
from client_broker.domain.exceptions import UnauthenticatedException

logger = logging.getLogger(__name__)


class JWTIdentityExtractor(IIdentityExtractor):
    """
    Resolves the calling actor from the platform-issued bearer JWT.

    The broker never checks user credentials itself: it trusts tokens signed
    by the platform's identity service and reads the actor from one claim.
    """

    def __init__(
            self,
            secret_key: str,
            algorithm: str = "HS256",
            audience: Optional[str] = None,
            actor_claim: str = "sub",
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.audience = audience
        self.actor_claim = actor_claim

    async def identify(self, request: Request) -> str:
        """
        Return the stable identifier of the calling actor.

        Raises:
            UnauthenticatedException: If no valid identity can be established
        """
        authorization = request.headers.get("Authorization", "")
        scheme, _, token = authorization.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise UnauthenticatedException(detail="Token de identidade ausente")

        try:
            payload = jwt.decode(
                token.strip(),
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
                options={"verify_aud": self.audience is not None},
            )
        except ExpiredSignatureError:
            logger.warning(f"Expired identity token | Path: {request.url.path}")
            raise UnauthenticatedException(detail="Token de identidade expirado")
        except JWTError as e:
            logger.warning(f"Invalid identity token: {type(e).__name__} | Path: {request.url.path}")
            raise UnauthenticatedException(detail="Token de identidade inválido")

        actor = payload.get(self.actor_claim)
        if not actor or not isinstance(actor, str):
            logger.warning(f"Identity token without '{self.actor_claim}' claim")
            raise UnauthenticatedException(
                detail=f"Token de identidade sem o claim '{self.actor_claim}'"
            )
        return actor
