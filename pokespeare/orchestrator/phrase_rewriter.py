"""
pokespeare/orchestrator/phrase_rewriter.py

WHAT THIS FILE IS FOR
---------------------
This module defines a *thin, asynchronous client* for the rewriting
service (FunTranslations, Shakespeare register).

It is responsible for:
- Sending the text to rewrite as the `text` query parameter
- Validating HTTP and JSON responses
- Extracting `contents.translated` from the response payload
- Reporting rate limiting (429) as its own error kind

CALL FLOW CONTEXT
-----------------
PipelineOrchestrator.handle()
  → PhraseRewriter.rewrite(description)
      → GET /translate/shakespeare.json?text=<description>

ERROR HANDLING RULES
--------------------
- 429 Too Many Requests          → PipelineError(RATE_LIMITED, 429)
- Any other HTTP status >= 400   → PipelineError(<kind for status>, status)
- Non-JSON / wrong-shape body    → PipelineError(PARSE, 500)
- Missing contents.translated    → PipelineError(INTERNAL, 500)
- Network failure                → PipelineError(INTERNAL, 500)
- No retries are performed here

The free tier of the rewriting service allows only a handful of calls per
hour, so RATE_LIMITED is expected in normal operation; the orchestrator
recovers from it by returning the untranslated text.
"""

from __future__ import annotations

from typing import Optional

import httpx
import structlog

from pokespeare.orchestrator.errors import PipelineError
from pokespeare.orchestrator.status_normalizer import classify_upstream_status
from pokespeare.utils.http_client import HttpClient
from pokespeare.utils.settings import Settings
from pokespeare.utils.upstream import endpoint_url, parse_payload
from schemas.upstream_schema import TranslationResponse

logger = structlog.get_logger(__name__)


class PhraseRewriter:
    """Thin client for the rewriting service."""

    def __init__(self, settings: Settings, http: Optional[HttpClient] = None):
        if not settings.rewrite_api_base_url:
            raise ValueError("rewrite_api_base_url is required")

        self.settings = settings
        self._url = endpoint_url(settings.rewrite_api_base_url, "rewrite_api", "shakespeare")
        self.http = http or HttpClient(timeout_seconds=settings.http_timeout_seconds)

    async def rewrite(self, text: str) -> str:
        try:
            resp = await self.http.get(self._url, params={"text": text})
        except httpx.RequestError as exc:
            logger.error("rewrite_request_failed", url=self._url, error=str(exc))
            raise PipelineError.internal(f"request to {self._url} failed: {exc}") from exc

        if not resp.is_success:
            kind = classify_upstream_status(resp.status_code, rate_limit_aware=True)
            logger.warning(
                "rewrite_http_error",
                url=self._url,
                status_code=resp.status_code,
                kind=kind.value,
            )
            raise PipelineError(kind, resp.status_code, "failed to query rewriting service")

        payload = parse_payload(resp, TranslationResponse, what="translation")
        if payload.translated is None:
            logger.warning("rewrite_missing_translation", url=self._url)
            raise PipelineError.internal("failed to rewrite text")

        logger.info("rewrite_success", length=len(payload.translated))
        return payload.translated
