"""Read-path caching."""
from .policy import CachePolicy, CachePolicyExecutor, NoCache, RefreshCache, UseCache
from .store import CacheEntry, CacheStore

__all__ = [
    "CacheEntry",
    "CachePolicy",
    "CachePolicyExecutor",
    "CacheStore",
    "NoCache",
    "RefreshCache",
    "UseCache",
]
