"""
Cache — read-through lookups over one or more tiers.

    product_cache = (
        cache(lambda slug: f"product:{slug}", fetch_product)
        .tier(LocalTier[Product](max_size=500))
        .build()
    )

    match await product_cache.get("blue-mug"):
        case Ok(found):
            found.value, found.hit

    await product_cache.invalidate_pattern("product:*")

A hit in a later tier is copied into the earlier ones. Only ``Ok`` fetches
are stored, and only when no invalidation happened while they ran.
"""

from __future__ import annotations

import fnmatch
import logging
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from kungfu import Error, LazyCoroResult, Ok, Result

logger = logging.getLogger(__name__)

type Key[K] = Callable[[K], str]
type Fetch[K, T, E] = Callable[[K], LazyCoroResult[T, E]]


class Tier[T](Protocol):
    """Storage behind a cache. ``get`` returns None on a miss."""

    @property
    def name(self) -> str: ...

    async def get(self, key: str) -> T | None: ...

    async def set(self, key: str, value: T) -> None: ...

    async def delete(self, key: str) -> bool: ...

    async def delete_pattern(self, pattern: str) -> int: ...


class LocalTier[T]:
    """
    In-process LRU. Patterns use shell-style wildcards (``product:*``).

    Example:
        tier = LocalTier[Product](max_size=500)
    """

    def __init__(self, max_size: int = 1000, name: str = "local") -> None:
        self._entries: OrderedDict[str, T] = OrderedDict()
        self._capacity = max_size
        self._name = name
        self.hits = 0
        self.misses = 0

    @property
    def name(self) -> str:
        return self._name

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> T | None:
        value = self._entries.get(key)
        if value is None:
            self.misses += 1
            return None
        self.hits += 1
        self._entries.move_to_end(key)
        return value

    async def set(self, key: str, value: T) -> None:
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self._capacity:
            self._entries.popitem(last=False)

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def delete_pattern(self, pattern: str) -> int:
        matched = fnmatch.filter(self._entries, pattern)
        for key in matched:
            del self._entries[key]
        return len(matched)


@dataclass(frozen=True, slots=True)
class CacheResult[T]:
    value: T
    hit: bool
    tier: str | None  # None when the value was fetched


# ═══════════════════════════════════════════════════════════════════════════════
# Read-through
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(slots=True)
class ReadThrough[K, T, E]:
    """
    Tiered lookup with fetch on miss.

    Every invalidation bumps ``generation``. A fetch that started before an
    invalidation returns its value but does not store it.
    """

    key: Key[K]
    fetch: Fetch[K, T, E]
    tiers: tuple[Tier[T], ...]
    generation: int = field(default=0, init=False)

    def get(self, arg: K) -> LazyCoroResult[CacheResult[T], E]:
        cache_key = self.key(arg)

        async def lookup() -> Result[CacheResult[T], E]:
            for depth, tier in enumerate(self.tiers):
                value = await tier.get(cache_key)
                if value is None:
                    continue
                for upper in self.tiers[:depth]:
                    await upper.set(cache_key, value)
                return Ok(CacheResult(value, hit=True, tier=tier.name))

            started = self.generation
            match await self.fetch(arg):
                case Ok(value):
                    if self.generation == started:
                        for tier in self.tiers:
                            await tier.set(cache_key, value)
                    else:
                        logger.debug("Not caching %s: invalidated during fetch", cache_key)
                    return Ok(CacheResult(value, hit=False, tier=None))
                case Error(e):
                    return Error(e)

        return LazyCoroResult(lookup)

    async def invalidate(self, arg: K) -> bool:
        self.generation += 1
        cache_key = self.key(arg)
        removed = [await tier.delete(cache_key) for tier in self.tiers]
        return any(removed)

    async def invalidate_pattern(self, pattern: str) -> int:
        self.generation += 1
        removed = sum([await tier.delete_pattern(pattern) for tier in self.tiers])
        if removed:
            logger.debug("Dropped %d cache entries matching %s", removed, pattern)
        return removed


@dataclass(frozen=True, slots=True)
class CacheSpec[K, T, E]:
    key: Key[K]
    fetch: Fetch[K, T, E]
    tiers: tuple[Tier[T], ...] = ()

    def tier(self, tier: Tier[T]) -> CacheSpec[K, T, E]:
        """Add a tier after the existing ones; earlier tiers are checked first."""
        return CacheSpec(self.key, self.fetch, (*self.tiers, tier))

    def build(self) -> ReadThrough[K, T, E]:
        if not self.tiers:
            raise ValueError("a cache needs at least one tier")
        return ReadThrough(self.key, self.fetch, self.tiers)


def cache[K, T, E](key: Key[K], fetch: Fetch[K, T, E]) -> CacheSpec[K, T, E]:
    return CacheSpec(key, fetch)


__all__ = ("Tier", "LocalTier", "CacheResult", "ReadThrough", "CacheSpec", "cache")
