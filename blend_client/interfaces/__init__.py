"""Protocol interfaces for the external collaborators."""
from .contract import ContractClient
from .ledger import LedgerClient

__all__ = ["ContractClient", "LedgerClient"]
