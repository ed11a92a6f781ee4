"""Network clients for the ledger and its contract RPC."""
from .horizon import HorizonClient
from .soroban import SorobanClient

__all__ = ["HorizonClient", "SorobanClient"]
