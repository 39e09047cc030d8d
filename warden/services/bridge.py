"""
Warden - Federation Bridge Gateway
==================================

Bans virtual identities in their external rooms through the bridge's
homeserver.

DESIGN:
    Room handles come from the local bridged_rooms mapping. The ban is a
    single client-server API call made with the bridge's application
    service token; 429 and 5xx responses are retried with backoff, any
    other error status fails immediately. Banning an already banned user
    succeeds on the homeserver, so repeats are harmless.
"""

import asyncio
from typing import TYPE_CHECKING, Optional
from urllib.parse import quote

import aiohttp

from warden.core.constants import (
    BRIDGE_MAX_RETRIES,
    BRIDGE_REQUEST_TIMEOUT,
    BRIDGE_RETRY_BASE_DELAY,
)
from warden.core.errors import UpstreamError
from warden.core.logger import logger
from warden.utils.retry import RETRYABLE_EXCEPTIONS, RetryableStatusError, retry_async

if TYPE_CHECKING:
    from warden.core.database.manager import DatabaseManager


class MatrixBridgeGateway:
    """
    BridgeGateway speaking the Matrix client-server API.

    Attributes:
        homeserver_url: Base URL without trailing slash.
    """

    def __init__(
        self,
        homeserver_url: str,
        as_token: str,
        db: Optional["DatabaseManager"] = None,
        timeout: float = BRIDGE_REQUEST_TIMEOUT,
        max_retries: int = BRIDGE_MAX_RETRIES,
    ) -> None:
        if db is None:
            from warden.core.database import get_db
            db = get_db()
        self.db = db
        self.homeserver_url = homeserver_url.rstrip("/")
        self._as_token = as_token
        self._timeout = timeout
        self._max_retries = max_retries
        self._session: Optional[aiohttp.ClientSession] = None

    # =========================================================================
    # Session
    # =========================================================================

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create persistent HTTP session."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(limit=10, ttl_dns_cache=300)
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            )
        return self._session

    async def close(self) -> None:
        """Close HTTP session on shutdown."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    # =========================================================================
    # Gateway Operations
    # =========================================================================

    async def resolve_external_room_handle(self, room_id: str) -> Optional[str]:
        return self.db.get_bridged_room(room_id)

    async def ban_identity(self, room_handle: str, external_id: str, reason: str) -> None:
        """
        Ban an external user from an external room.

        Raises:
            UpstreamError: If the homeserver rejects the ban or stays
                unreachable after retries.
        """
        try:
            await retry_async(
                self._post_ban,
                room_handle,
                external_id,
                reason,
                max_retries=self._max_retries,
                base_delay=BRIDGE_RETRY_BASE_DELAY,
                exceptions=RETRYABLE_EXCEPTIONS + (RetryableStatusError,),
            )
        except (RetryableStatusError, aiohttp.ClientError, asyncio.TimeoutError, ConnectionError) as e:
            raise UpstreamError(f"Bridge ban failed: {e}", resource="bridge") from e

        logger.tree("Bridge Ban Issued", [
            ("Room", room_handle),
            ("Identity", external_id),
            ("Reason", reason[:50]),
        ], emoji="🔨")

    async def _post_ban(self, room_handle: str, external_id: str, reason: str) -> None:
        session = await self._get_session()
        url = f"{self.homeserver_url}/_matrix/client/v3/rooms/{quote(room_handle, safe='')}/ban"

        async with session.post(
            url,
            headers={"Authorization": f"Bearer {self._as_token}"},
            json={"user_id": external_id, "reason": reason},
        ) as resp:
            if resp.status < 300:
                return
            body = await resp.text()
            if resp.status == 429 or resp.status >= 500:
                raise RetryableStatusError(resp.status, body)
            raise UpstreamError(
                f"Bridge rejected ban with HTTP {resp.status}: {body[:100]}",
                resource="bridge",
            )


__all__ = ["MatrixBridgeGateway"]
