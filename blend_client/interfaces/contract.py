"""Contract client protocol for smart-contract reads and invocations."""
from typing import Any, Protocol

from ..models import InvocationResult


class ContractClient(Protocol):
    """Abstract interface for reading and invoking pool contracts."""

    async def get_contract_data(self, contract_id: str, key: str) -> Any: ...

    async def invoke_contract(
        self, contract_id: str, method: str, args: list[Any]
    ) -> InvocationResult: ...
