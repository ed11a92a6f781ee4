"""Horizon REST client for account lookups."""
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..config import NetworkConfig
from ..errors import NotFoundError, SerializationError, map_error

logger = logging.getLogger(__name__)


class HorizonClient:
    """Read account context from a Horizon server."""

    def __init__(self, config: NetworkConfig) -> None:
        self.base_url = config.horizon_url.rstrip("/")
        self.timeout = config.rpc_timeout

    async def _get(self, path: str) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    url, timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status == 404:
                        raise NotFoundError(f"{path} not found on Horizon")
                    response.raise_for_status()
                    return await response.json()
        except NotFoundError:
            raise
        except Exception as e:
            logger.error("Horizon request %s failed: %s", url, e)
            raise map_error(e) from e

    async def get_account(self, account_id: str) -> dict[str, Any]:
        return await self._get(f"/accounts/{account_id}")

    async def account_exists(self, account_id: str) -> bool:
        try:
            await self.get_account(account_id)
        except NotFoundError:
            return False
        return True

    async def get_sequence_number(self, account_id: str) -> int:
        account = await self.get_account(account_id)
        try:
            return int(account["sequence"])
        except (KeyError, TypeError, ValueError) as e:
            raise SerializationError(
                f"Account {account_id} has no usable sequence number"
            ) from e
