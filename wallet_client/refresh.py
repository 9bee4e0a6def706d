"""
Single-flight renewal of expired access tokens.

The renewal credential is an HTTP-only cookie held in the HTTP client's
cookie jar; this module never reads it. A renewal POSTs to the refresh
endpoint with that jar attached and, on success, writes the new access token
to the credential store.

Only one renewal runs at a time. Callers that hit an expired token while a
renewal is in flight await the same task and see the same outcome.
"""

import asyncio
import logging
from typing import Optional

import httpx

from wallet_client.models import TokenResponse
from wallet_client.storage import CredentialStore

logger = logging.getLogger(__name__)

DEFAULT_REFRESH_ENDPOINT = "/users/refresh"


class RefreshCoordinator:
    """
    Renews the access token without issuing duplicate renewal calls.

    The event loop is single-threaded, so checking for and creating the
    pending task in renew() cannot interleave with another caller.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        store: CredentialStore,
        refresh_endpoint: str = DEFAULT_REFRESH_ENDPOINT,
    ):
        self._client = http_client
        self._store = store
        self.refresh_endpoint = refresh_endpoint
        self._pending: Optional["asyncio.Task[Optional[str]]"] = None
        self.renewal_count = 0

    @property
    def in_flight(self) -> bool:
        return self._pending is not None

    async def renew(self) -> Optional[str]:
        """
        Renew the access token, joining an in-flight renewal if one exists.

        Returns:
            The new access token, or None if renewal failed
        """
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._renew())
        else:
            logger.debug("Joining in-flight token renewal")

        # shield: a cancelled waiter must not cancel the shared renewal
        return await asyncio.shield(self._pending)

    async def _renew(self) -> Optional[str]:
        self.renewal_count += 1
        try:
            try:
                response = await self._client.post(self.refresh_endpoint)
            except httpx.HTTPError as e:
                logger.warning(
                    "Token renewal request failed",
                    extra={"endpoint": self.refresh_endpoint, "error": str(e)},
                )
                return None

            if not response.is_success:
                logger.warning(
                    "Token renewal rejected",
                    extra={
                        "endpoint": self.refresh_endpoint,
                        "status_code": response.status_code,
                    },
                )
                return None

            try:
                data = response.json()
                token = TokenResponse.from_dict(data).access_token
            except (ValueError, AttributeError) as e:
                logger.warning(
                    "Token renewal returned an unusable body",
                    extra={"endpoint": self.refresh_endpoint, "error": str(e)},
                )
                return None

            self._store.set_token(token)
            logger.info(
                "Access token renewed",
                extra={"endpoint": self.refresh_endpoint},
            )
            return token
        finally:
            self._pending = None
