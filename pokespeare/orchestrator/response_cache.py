"""
pokespeare/orchestrator/response_cache.py

WHAT THIS FILE IS FOR
---------------------
Process-lifetime, in-memory cache for the two upstream stages:

- descriptions: creature key  -> selected description
- phrases:      description   -> rewritten text

CACHE RULES
-----------
- Cache-aside: a lookup that misses computes the value and stores it.
- Only successes are stored. A failed computation is re-attempted by the
  next request for the same key.
- No eviction, TTL or size bound; the number of distinct creatures is small
  and the cache is dropped with the process.
- Lookups and inserts go through one lock per namespace; values are
  immutable strings and are shared without further locking.

CONCURRENT MISSES
-----------------
By default two concurrent cold requests for the same key both compute it
and the last insert wins. With `coalesce_inflight_requests=True` the first
miss owns the computation and later misses await its outcome (value or
error) instead of calling the upstream again. If the owning request is
cancelled (client disconnect), its waiters are not: they retry the lookup
and one of them becomes the new owner.

THREADS AND EVENT LOOPS
-----------------------
The lock makes plain lookups and inserts safe from any thread. The
single-flight path is not: an in-flight future belongs to the event loop
of the request that created it, so coalescing only works for requests
served by that same loop (one uvicorn worker process).

ResponseCache is built once per application and passed to the pipeline;
it is never a module-level global.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Awaitable, Callable, Dict, Optional

import structlog

logger = structlog.get_logger(__name__)

Compute = Callable[[], Awaitable[str]]

_MISSING = object()


class _OwnerCancelled(Exception):
    """The request computing an in-flight key was cancelled before it settled."""


class CacheNamespace:
    """One independent key -> value map with cache-aside `get_or_compute`."""

    def __init__(self, name: str, *, coalesce: bool = False) -> None:
        self.name = name
        self.coalesce = coalesce
        self.hits = 0
        self.misses = 0
        self._entries: Dict[str, str] = {}
        self._inflight: Dict[str, "asyncio.Future[str]"] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._entries[key] = value

    async def get_or_compute(self, key: str, compute: Compute) -> str:
        owned: Optional["asyncio.Future[str]"] = None
        inflight: Optional["asyncio.Future[str]"] = None

        with self._lock:
            cached = self._entries.get(key, _MISSING)
            if cached is not _MISSING:
                self.hits += 1
            else:
                self.misses += 1
                if self.coalesce:
                    inflight = self._inflight.get(key)
                    if inflight is None:
                        owned = asyncio.get_running_loop().create_future()
                        self._inflight[key] = owned

        if cached is not _MISSING:
            logger.info("cache_hit", namespace=self.name, key=_preview(key))
            return cached  # type: ignore[return-value]

        if inflight is not None:
            logger.info("cache_inflight_join", namespace=self.name, key=_preview(key))
            try:
                # shield: a cancelled waiter must not cancel the owner's computation
                return await asyncio.shield(inflight)
            except _OwnerCancelled:
                logger.info("cache_inflight_owner_cancelled", namespace=self.name, key=_preview(key))
                return await self.get_or_compute(key, compute)

        logger.info("cache_miss", namespace=self.name, key=_preview(key))
        if owned is None:
            value = await compute()
            self.put(key, value)
            return value

        try:
            value = await compute()
        except asyncio.CancelledError:
            # only the owner was cancelled; waiters start their own computation
            self._release(key)
            owned.set_exception(_OwnerCancelled(key))
            owned.exception()
            raise
        except Exception as exc:
            self._release(key)
            owned.set_exception(exc)
            owned.exception()  # waiters re-raise it; the owner raises it below
            raise

        with self._lock:
            self._entries[key] = value
            self._inflight.pop(key, None)
        owned.set_result(value)
        return value

    def _release(self, key: str) -> None:
        with self._lock:
            self._inflight.pop(key, None)


class ResponseCache:
    """The description and phrase namespaces shared by all requests."""

    def __init__(self, *, coalesce_inflight_requests: bool = False) -> None:
        self.descriptions = CacheNamespace("descriptions", coalesce=coalesce_inflight_requests)
        self.phrases = CacheNamespace("phrases", coalesce=coalesce_inflight_requests)

    async def describe(self, key: str, fetch: Callable[[str], Awaitable[str]]) -> str:
        return await self.descriptions.get_or_compute(key, lambda: fetch(key))

    async def rewrite(self, text: str, rewrite: Callable[[str], Awaitable[str]]) -> str:
        return await self.phrases.get_or_compute(text, lambda: rewrite(text))

    def stats(self) -> Dict[str, Dict[str, int]]:
        return {
            ns.name: {"entries": len(ns), "hits": ns.hits, "misses": ns.misses}
            for ns in (self.descriptions, self.phrases)
        }


def _preview(key: str, limit: int = 40) -> str:
    # phrase keys are whole descriptions
    return key if len(key) <= limit else key[:limit] + "..."
