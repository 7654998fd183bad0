"""
pokespeare/orchestrator/pipeline.py

WHAT THIS FILE IS FOR
---------------------
This module composes the request pipeline:

    normalize(raw)
      → description  (descriptions cache, else DescriptionFetcher)
      → final text   (phrases cache, else PhraseRewriter)
      → CreatureDescription(name, description)

FALLBACK RULE
-------------
If the rewriting service is rate-limited, the untranslated description is
returned instead. That fallback is NOT stored in the phrases cache, so a
later request retries the rewrite.

Every other failure is a PipelineError that propagates unchanged to the
API boundary. Unexpected exceptions from collaborators are wrapped into an
INTERNAL PipelineError here so callers only handle one error type.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional, Protocol

import structlog

from pokespeare.orchestrator.description_fetcher import DescriptionFetcher
from pokespeare.orchestrator.errors import ErrorKind, PipelineError
from pokespeare.orchestrator.key_normalizer import normalize
from pokespeare.orchestrator.phrase_rewriter import PhraseRewriter
from pokespeare.orchestrator.response_cache import ResponseCache
from pokespeare.utils.http_client import HttpClient
from pokespeare.utils.settings import Settings
from schemas.output_schema import CreatureDescription

logger = structlog.get_logger(__name__)


class Fetcher(Protocol):
    async def fetch(self, key: str) -> str: ...


class Rewriter(Protocol):
    async def rewrite(self, text: str) -> str: ...


class CreaturePipeline:
    """Describe a creature, rewritten in the Shakespeare register when possible."""

    def __init__(self, cache: ResponseCache, fetcher: Fetcher, rewriter: Rewriter) -> None:
        self.cache = cache
        self.fetcher = fetcher
        self.rewriter = rewriter

    async def handle(self, raw_name: str) -> CreatureDescription:
        key = normalize(raw_name)

        description = await self.cache.describe(key, _guarded(self.fetcher.fetch, "describe"))

        try:
            final = await self.cache.rewrite(description, _guarded(self.rewriter.rewrite, "rewrite"))
        except PipelineError as exc:
            if exc.kind is not ErrorKind.RATE_LIMITED:
                raise
            logger.info("rewrite_rate_limited", key=key, status_code=exc.status)
            final = description

        return CreatureDescription(name=key, description=final)


def build_pipeline(settings: Settings, http: Optional[HttpClient] = None) -> CreaturePipeline:
    """Wire the production collaborators; both upstream clients share one HttpClient."""
    http = http or HttpClient(timeout_seconds=settings.http_timeout_seconds)
    return CreaturePipeline(
        cache=ResponseCache(coalesce_inflight_requests=settings.coalesce_inflight_requests),
        fetcher=DescriptionFetcher(settings, http=http),
        rewriter=PhraseRewriter(settings, http=http),
    )


def _guarded(call: Callable[[str], Awaitable[str]], stage: str) -> Callable[[str], Awaitable[str]]:
    async def wrapper(arg: str) -> str:
        try:
            return await call(arg)
        except PipelineError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error("pipeline_stage_unexpected_error", stage=stage, error=repr(exc))
            raise PipelineError.internal(f"{stage} failed: {exc!r}") from exc

    return wrapper
