"""
pokespeare/utils/http_client.py

WHAT THIS FILE IS FOR
---------------------
This module provides a minimal, asynchronous HTTP client abstraction
used by the orchestrator layer to make outbound GET calls to the
lookup and rewriting services.

It exists to:
- Centralize basic HTTP call behavior (GET with optional query params)
- Standardize timeout handling
- Avoid scattering raw `httpx.AsyncClient(...)` blocks across the codebase

This client is intentionally kept *very thin*.

WHAT THIS FILE IS NOT FOR
-------------------------
This module is NOT responsible for:
- Retry logic (the trailing-slash retry lives in DescriptionFetcher)
- Logging or structured tracing
- Response parsing or schema validation
- Error translation into PipelineError

Those responsibilities belong to DescriptionFetcher and PhraseRewriter.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx


class HttpClient:
    """
    Minimal async HTTP client wrapper over `httpx.AsyncClient`.

    One pooled `httpx.AsyncClient` is kept for the lifetime of the wrapper, so
    the lookup and rewriting calls of a request reuse connections. The owner
    calls `aclose()` on shutdown (api.py does it in the app lifespan).
    """

    def __init__(self, timeout_seconds: float = 30.0):
        self.timeout_seconds = timeout_seconds
        self._client = httpx.AsyncClient(timeout=timeout_seconds)

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """
        Send a GET request and return the raw response.

        Raises:
            httpx.RequestError:
                Any network-level error (timeout, DNS, connection error).
                Caller is responsible for translating it.
        """
        return await self._client.get(url, params=params)
