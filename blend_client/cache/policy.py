"""Cache policies and the executor that applies them to async reads."""
from __future__ import annotations

import asyncio
import logging
import weakref
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar, Union

from .store import CacheStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISS = object()


@dataclass(frozen=True)
class NoCache:
    """Always fetch; never touch the store."""


@dataclass(frozen=True)
class UseCache:
    """Serve a valid entry if present, otherwise fetch and store.

    ``ttl`` falls back to the executor's default when ``None``.
    """

    ttl: float | None = None


@dataclass(frozen=True)
class RefreshCache:
    """Always fetch and overwrite the entry on success."""

    ttl: float | None = None


CachePolicy = Union[NoCache, UseCache, RefreshCache]


class CachePolicyExecutor:
    """Run a fetch coroutine under a cache policy.

    Misses and refreshes for the same key are serialised by a per-key
    lock, so at most one fetch per key is in flight. A refresh replaces
    the entry only after the fetch succeeds: concurrent readers see the
    old value or the new one, and a failed or cancelled fetch leaves the
    store untouched.

    Locks are held weakly: a key's lock lives only while some caller is
    using or waiting on it.
    """

    def __init__(self, store: CacheStore, default_ttl: float) -> None:
        self._store = store
        self._default_ttl = default_ttl
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    @property
    def store(self) -> CacheStore:
        return self._store

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    async def execute(
        self,
        key: str,
        fetch: Callable[[], Awaitable[T]],
        policy: CachePolicy,
    ) -> T:
        if isinstance(policy, NoCache):
            return await fetch()

        if isinstance(policy, UseCache):
            ttl = self._default_ttl if policy.ttl is None else policy.ttl
            cached = self._store.get(key, _MISS)
            if cached is not _MISS:
                logger.debug("Cache hit for %s", key)
                return cached

            async with self._lock_for(key):
                # another caller may have filled the entry while we waited
                cached = self._store.get(key, _MISS)
                if cached is not _MISS:
                    logger.debug("Cache hit for %s after wait", key)
                    return cached
                logger.debug("Cache miss for %s", key)
                value = await fetch()
                self._store.set(key, value, ttl)
                return value

        if isinstance(policy, RefreshCache):
            ttl = self._default_ttl if policy.ttl is None else policy.ttl
            async with self._lock_for(key):
                logger.debug("Refreshing cache entry %s", key)
                value = await fetch()
                self._store.set(key, value, ttl)
                return value

        raise TypeError(f"Unsupported cache policy: {policy!r}")

    def invalidate(self, key: str) -> None:
        self._store.remove(key)

    def invalidate_all(self) -> None:
        self._store.clear()
