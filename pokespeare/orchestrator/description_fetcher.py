"""
pokespeare/orchestrator/description_fetcher.py

WHAT THIS FILE IS FOR
---------------------
This module provides a domain-aware, asynchronous data access layer
for retrieving creature descriptions from the lookup service (PokeAPI).

It exists to:
- Centralize all lookup-service access logic in one place
- Read endpoint templates from parameters/config.yaml
- Resolve a creature name to its species record, retrying once with a
  trailing slash (the upstream answers some names only with, and some
  only without, the slash)
- Select one English description from the localized entries
- Translate HTTP, transport and payload failures into PipelineError

CALL FLOW CONTEXT
-----------------
PipelineOrchestrator.handle()
  → DescriptionFetcher.fetch(key)
      → GET /pokemon/<key>            (and /pokemon/<key>/ on failure)
      → GET <species url>
      → select_description(...)

SELECTION RULE
--------------
Among entries whose language matches `description_language`:
1) the entry from `preferred_version` ("ruby") wins, whatever its length
2) otherwise the longest text wins (first one on ties)
3) no matching entry -> 422 Unprocessable Entity

WHAT THIS FILE IS NOT FOR
-------------------------
This module is NOT responsible for:
- Caching (see response_cache.py)
- Rewriting text (see phrase_rewriter.py)
- Rendering errors for clients
"""

from __future__ import annotations

from http import HTTPStatus
from typing import Optional, Sequence
from urllib.parse import quote

import httpx
import structlog

from pokespeare.orchestrator.errors import ErrorKind, PipelineError
from pokespeare.orchestrator.status_normalizer import classify_upstream_status
from pokespeare.utils.http_client import HttpClient
from pokespeare.utils.settings import Settings
from pokespeare.utils.upstream import endpoint_url, parse_payload
from schemas.upstream_schema import FlavorTextEntry, PokemonRecord, SpeciesRecord

logger = structlog.get_logger(__name__)

_LANGUAGE_LABELS = {"en": "English"}


def select_description(
    entries: Sequence[FlavorTextEntry],
    *,
    language: str = "en",
    preferred_version: str = "ruby",
) -> Optional[FlavorTextEntry]:
    """Pick one entry in `language`: `preferred_version` first, else the longest text."""
    candidates = [entry for entry in entries if entry.language.name == language]
    if not candidates:
        return None

    for entry in candidates:
        if entry.version.name == preferred_version:
            return entry

    # max() keeps the first of equally long entries
    return max(candidates, key=lambda entry: len(entry.flavor_text))


class DescriptionFetcher:
    """
    Async client around the lookup service.

    - Reads the creature endpoint template from parameters/config.yaml
    - Retries the creature lookup once with a trailing slash
    - Picks the description to rewrite
    """

    def __init__(self, settings: Settings, http: Optional[HttpClient] = None) -> None:
        if not settings.lookup_api_base_url:
            raise ValueError("lookup_api_base_url is required")

        self.settings = settings
        self._pokemon_url = endpoint_url(settings.lookup_api_base_url, "lookup_api", "pokemon")
        self._language = settings.description_language
        self._preferred_version = settings.preferred_version
        self.http = http or HttpClient(timeout_seconds=settings.http_timeout_seconds)

    async def fetch(self, key: str) -> str:
        """
        Return the selected description for `key` with newlines flattened to spaces.

        Raises:
            PipelineError: on any upstream, payload or selection failure.
        """
        record = await self._fetch_pokemon_record(key)
        species_url = record.species.url

        resp = await self._get(species_url, key=key)
        if not resp.is_success:
            logger.warning(
                "species_fetch_http_error",
                key=key,
                url=species_url,
                status_code=resp.status_code,
            )
            raise PipelineError(
                classify_upstream_status(resp.status_code),
                resp.status_code,
                f"failed to get description for {key} at {species_url}",
            )

        species = parse_payload(resp, SpeciesRecord, what="species")
        entry = select_description(
            species.flavor_text_entries,
            language=self._language,
            preferred_version=self._preferred_version,
        )
        if entry is None:
            label = _LANGUAGE_LABELS.get(self._language, self._language)
            logger.info(
                "description_selection_empty",
                key=key,
                language=self._language,
                entries=len(species.flavor_text_entries),
            )
            raise PipelineError(
                ErrorKind.SELECTION_EMPTY,
                int(HTTPStatus.UNPROCESSABLE_ENTITY),
                f"no {label} description for {key}",
            )

        logger.info("description_fetch_success", key=key, version=entry.version.name)
        return entry.flavor_text.replace("\n", " ")

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #
    async def _fetch_pokemon_record(self, key: str) -> PokemonRecord:
        url = self._pokemon_url.format(name=quote(key, safe=""))

        resp = await self._get(url, key=key)
        if not resp.is_success:
            first_status = resp.status_code
            logger.info("pokemon_fetch_retry_trailing_slash", key=key, url=url, status_code=first_status)
            resp = await self._get(url + "/", key=key)
            if not resp.is_success:
                logger.warning(
                    "pokemon_fetch_http_error",
                    key=key,
                    url=url,
                    status_code=first_status,
                    retry_status_code=resp.status_code,
                )
                raise PipelineError(
                    classify_upstream_status(first_status),
                    first_status,
                    f"failed to get an id for {key} at {url}",
                )

        return parse_payload(resp, PokemonRecord, what="pokemon")

    async def _get(self, url: str, *, key: str) -> httpx.Response:
        try:
            return await self.http.get(url)
        except httpx.RequestError as exc:
            logger.error("lookup_request_failed", key=key, url=url, error=str(exc))
            raise PipelineError.internal(f"request to {url} failed: {exc}") from exc
