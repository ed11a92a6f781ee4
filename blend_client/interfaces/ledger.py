"""Ledger client protocol: account context for submissions."""
from typing import Protocol


class LedgerClient(Protocol):
    """Abstract interface for ledger account lookups."""

    async def account_exists(self, account_id: str) -> bool: ...

    async def get_sequence_number(self, account_id: str) -> int: ...
