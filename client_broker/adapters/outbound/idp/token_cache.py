# client_broker/adapters/outbound/idp/token_cache.py

"""
Cache of the administrative access token used to call the IdP admin API.

The IdP issues short-lived admin tokens; requesting one per admin call would
hammer the token endpoint, so a single token is kept in memory and replaced
only when it is missing or past its (margin-adjusted) expiry.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

import httpx

from client_broker.application.ports.outbound import ITokenProvider
from client_broker.domain.exceptions import AuthFailureException
from client_broker.domain.models.admin_token_domain_model import AdminToken

logger = logging.getLogger(__name__)

DEFAULT_EXPIRES_IN = 60


class TokenCache(ITokenProvider):
    """
    Single-flight cache for the IdP admin token.

    Concurrent callers arriving while the token is being refreshed wait on the
    same lock and reuse the refreshed token instead of each requesting one.
    Refresh failures are not retried here: the cache is left empty and the
    next call tries again.
    """

    def __init__(
            self,
            http_client: httpx.AsyncClient,
            base_url: str,
            token_realm: str,
            client_id: str,
            client_secret: Optional[str] = None,
            username: Optional[str] = None,
            password: Optional[str] = None,
            safety_margin_seconds: int = 60,
            clock: Callable[[], float] = time.time,
    ):
        self.http_client = http_client
        self.token_url = f"{base_url.rstrip('/')}/realms/{token_realm}/protocol/openid-connect/token"
        self.client_id = client_id
        self.client_secret = client_secret
        self.username = username
        self.password = password
        self.safety_margin_seconds = safety_margin_seconds
        self.clock = clock

        self._token: Optional[AdminToken] = None
        self._lock = asyncio.Lock()

    async def get_token(self) -> AdminToken:
        """
        Return a valid admin token.

        Returns:
            AdminToken whose expires_at is still in the future

        Raises:
            AuthFailureException: If the token endpoint is unreachable or
                rejects the configured credentials
        """
        token = self._token
        if token is not None and token.is_valid(self.clock()):
            return token

        async with self._lock:
            # Another caller may have refreshed while we waited for the lock
            token = self._token
            if token is not None and token.is_valid(self.clock()):
                return token

            self._token = None
            self._token = await self._fetch_token()
            return self._token

    def invalidate(self) -> None:
        if self._token is not None:
            logger.info("Discarding cached IdP admin token")
        self._token = None

    def _grant_payload(self) -> dict:
        if self.username and self.password:
            data = {
                "grant_type": "password",
                "client_id": self.client_id,
                "username": self.username,
                "password": self.password,
            }
            if self.client_secret:
                data["client_secret"] = self.client_secret
            return data

        return {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret or "",
        }

    async def _fetch_token(self) -> AdminToken:
        data = self._grant_payload()
        try:
            response = await self.http_client.post(
                self.token_url,
                data=data,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Token endpoint unreachable at {self.token_url}: {type(e).__name__}")
            raise AuthFailureException(detail="Token endpoint do IdP inacessível", original_error=e)

        if not response.is_success:
            logger.error(
                f"Token endpoint rejected {data['grant_type']} grant for client "
                f"'{self.client_id}' (status {response.status_code})"
            )
            raise AuthFailureException(
                detail=f"IdP recusou as credenciais administrativas (status {response.status_code})"
            )

        try:
            payload = response.json()
            value = payload["access_token"]
        except (ValueError, KeyError, TypeError):
            logger.error("Token endpoint answered without an access_token")
            raise AuthFailureException(detail="Resposta do token endpoint sem access_token")

        expires_in = payload.get("expires_in") or DEFAULT_EXPIRES_IN
        expires_at = self.clock() + float(expires_in) - self.safety_margin_seconds
        if float(expires_in) <= self.safety_margin_seconds:
            # Never cached: every admin call will fetch a new token
            logger.warning(
                f"IdP admin token lifespan ({expires_in}s) is not longer than the safety margin "
                f"({self.safety_margin_seconds}s); lower IDP_TOKEN_SAFETY_MARGIN_SECONDS or raise "
                f"the token lifespan in the IdP"
            )

        logger.info(f"Obtained IdP admin token via {data['grant_type']} grant (expires in {expires_in}s)")
        return AdminToken(value=value, expires_at=expires_at)
