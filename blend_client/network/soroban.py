"""Soroban JSON-RPC client with endpoint fallback."""
import logging
import ssl
from typing import Any

import aiohttp
import certifi

from ..config import NetworkConfig
from ..errors import ContractError, NetworkError, RpcError, SerializationError
from ..models import InvocationResult

logger = logging.getLogger(__name__)


class SorobanClient:
    """Contract RPC client with automatic endpoint fallback.

    Transport failures move on to the next endpoint; a JSON-RPC error
    object is raised immediately since another endpoint would reject the
    same call.
    """

    def __init__(self, config: NetworkConfig) -> None:
        self.endpoints = list(config.rpc_endpoints)
        self.timeout = config.rpc_timeout
        self.current_rpc_index = 0
        self._request_id = 0

    async def rpc_call(self, method: str, params: Any) -> Any:
        """Make RPC call with fallback to alternative endpoints."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "id": self._request_id,
            "method": method,
            "params": params,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())

        last_error: Exception | None = None
        for attempt in range(len(self.endpoints)):
            rpc_index = (self.current_rpc_index + attempt) % len(self.endpoints)
            rpc_url = self.endpoints[rpc_index]

            try:
                connector = aiohttp.TCPConnector(ssl=ssl_context)
                async with aiohttp.ClientSession(connector=connector) as session:
                    async with session.post(
                        rpc_url,
                        json=payload,
                        timeout=aiohttp.ClientTimeout(total=self.timeout),
                    ) as response:
                        result = await response.json()
            except (aiohttp.ClientError, OSError, ValueError) as e:
                # TimeoutError is an OSError; ValueError covers bad JSON bodies
                last_error = e
                logger.warning("RPC endpoint %s failed: %s", rpc_url, e)
                if attempt < len(self.endpoints) - 1:
                    logger.info("Trying next endpoint...")
                continue

            if not isinstance(result, dict):
                raise SerializationError(f"Unexpected RPC response: {result!r}")

            if "error" in result:
                error = result["error"] or {}
                raise RpcError(error.get("code"), str(error.get("message", error)))

            if rpc_index != self.current_rpc_index:
                logger.info("Switched to RPC endpoint: %s", rpc_url)
                self.current_rpc_index = rpc_index

            return result.get("result")

        raise NetworkError(f"All RPC endpoints failed. Last error: {last_error}")

    async def get_contract_data(self, contract_id: str, key: str) -> Any:
        """Read one contract data entry; ``None`` when the entry is absent."""
        result = await self.rpc_call(
            "getContractData", {"contractId": contract_id, "key": key}
        )
        if result is None:
            return None
        if not isinstance(result, dict):
            raise SerializationError(f"Unexpected contract data: {result!r}")
        return result.get("value")

    async def invoke_contract(
        self, contract_id: str, method: str, args: list[Any]
    ) -> InvocationResult:
        """Invoke a contract method as a single transaction."""
        result = await self.rpc_call(
            "invokeContract",
            {"contractId": contract_id, "method": method, "args": args},
        )
        if not isinstance(result, dict):
            raise SerializationError(f"Unexpected invocation result: {result!r}")

        if result.get("status") == "FAILED":
            raise ContractError(result.get("error") or f"{method} failed")

        try:
            return InvocationResult(
                return_value=result.get("returnValue"),
                transaction_hash=str(result["hash"]),
                ledger=int(result["ledger"]),
                raw_result=str(result.get("resultXdr", "")),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise SerializationError(f"Malformed invocation result: {e}") from e
