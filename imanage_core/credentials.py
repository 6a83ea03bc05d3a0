"""Process-wide cache for the iManage bearer token.

The token endpoint is slow and rate limited, so every request shares one
cached credential and only the first caller after expiry pays for the
renewal.  Renewal is single-flight: callers that arrive while a renewal is
in progress wait for it instead of issuing their own.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from imanage_core.config import (
    DEFAULT_TOKEN_LIFETIME,
    TOKEN_SAFETY_MARGIN,
    UpstreamConfig,
)
from imanage_core.errors import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credential:
    token: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


class CredentialCache:
    """Single-slot token cache with transparent renewal.

    Usage::

        cache = CredentialCache(config, client)
        credential = await cache.get_valid_credential()
        headers = {"X-Auth-Token": credential.token}
    """

    def __init__(
        self,
        config: UpstreamConfig,
        client: httpx.AsyncClient,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._client = client
        self._clock = clock
        self._credential: Optional[Credential] = None
        self._renew_lock = asyncio.Lock()

    @property
    def credential(self) -> Optional[Credential]:
        """The cached credential, expired or not (``None`` before first login)."""
        return self._credential

    def invalidate(self) -> None:
        self._credential = None

    async def get_valid_credential(self) -> Credential:
        """Return a usable credential, authenticating only when needed.

        Raises :class:`AuthenticationError` if renewal fails; the previous
        (expired) credential is left in place untouched.
        """
        cached = self._credential
        if cached is not None and cached.is_valid(self._clock()):
            logger.debug("Using cached access token")
            return cached

        async with self._renew_lock:
            # Another waiter may have renewed while we were queued.
            cached = self._credential
            if cached is not None and cached.is_valid(self._clock()):
                return cached
            self._credential = await self._authenticate()
            return self._credential

    async def get_access_token(self) -> str:
        credential = await self.get_valid_credential()
        return credential.token

    async def _authenticate(self) -> Credential:
        config = self._config
        logger.info("Authenticating to iManage at %s", config.auth_url_prefix)
        form = {
            "username": config.username,
            "password": config.password,
            "grant_type": "password",
            "client_id": config.client_id,
            "client_secret": config.client_secret,
        }
        try:
            response = await self._client.post(
                config.token_url,
                data=form,
                headers={"Accept": "*/*"},
            )
        except httpx.HTTPError as exc:
            logger.error("Authentication failed: %s", exc)
            raise AuthenticationError(f"Token request failed: {exc}") from exc

        if not response.is_success:
            logger.error(
                "Authentication failed: HTTP %d from token endpoint",
                response.status_code,
            )
            raise AuthenticationError(
                f"Token endpoint returned HTTP {response.status_code}",
                status=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise AuthenticationError("Token endpoint returned invalid JSON") from exc

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise AuthenticationError("Token endpoint response has no access_token")

        expires_in = payload.get("expires_in") or DEFAULT_TOKEN_LIFETIME
        try:
            lifetime = float(expires_in)
        except (TypeError, ValueError) as exc:
            raise AuthenticationError(
                f"Token endpoint returned invalid expires_in: {expires_in!r}"
            ) from exc

        logger.info("Authentication successful (expires_in=%ss)", expires_in)
        return Credential(
            token=token,
            expires_at=self._clock() + lifetime - TOKEN_SAFETY_MARGIN,
        )
