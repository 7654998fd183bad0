# tests/conftest.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import httpx
import pytest

LOOKUP_BASE = "https://pokeapi.test/api/v2"
REWRITE_BASE = "https://rewrite.test"
REWRITE_URL = REWRITE_BASE + "/translate/shakespeare.json"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@dataclass
class FakeSettings:
    lookup_api_base_url: str = LOOKUP_BASE
    rewrite_api_base_url: str = REWRITE_BASE
    http_timeout_seconds: float = 5.0
    description_language: str = "en"
    preferred_version: str = "ruby"
    coalesce_inflight_requests: bool = False
    service_name: str = "pokespeare"
    environment: str = "test"


def make_response(
    url: str,
    status_code: int,
    payload: Any = None,
    params: Optional[Dict[str, Any]] = None,
) -> httpx.Response:
    request = httpx.Request("GET", url, params=params)
    if isinstance(payload, str):
        return httpx.Response(status_code, text=payload, request=request)
    return httpx.Response(status_code, json=payload, request=request)


class FakeHttp:
    """
    Stands in for HttpClient.

    routes maps a URL to the (status, payload) answers it gives, in order;
    the last answer repeats. Unknown URLs answer 404.
    """

    def __init__(self, routes: Optional[Dict[str, List[Tuple[int, Any]]]] = None):
        self.routes = {url: list(answers) for url, answers in (routes or {}).items()}
        self.calls: list[tuple[str, Optional[Dict[str, Any]]]] = []

    async def get(self, url: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        self.calls.append((url, params))
        answers = self.routes.get(url)
        if not answers:
            return make_response(url, 404, "Not Found")
        status, payload = answers.pop(0) if len(answers) > 1 else answers[0]
        return make_response(url, status, payload, params)

    @property
    def urls(self) -> list[str]:
        return [url for url, _ in self.calls]


def pokemon_url(name: str) -> str:
    return f"{LOOKUP_BASE}/pokemon/{name}"


def species_url(species_id: int) -> str:
    return f"{LOOKUP_BASE}/pokemon-species/{species_id}/"


def pokemon_payload(species_id: int) -> dict:
    return {"id": species_id, "species": {"name": "whatever", "url": species_url(species_id)}}


def flavor(text: str, version: str, language: str = "en") -> dict:
    return {
        "flavor_text": text,
        "language": {"name": language, "url": f"{LOOKUP_BASE}/language/9/"},
        "version": {"name": version, "url": f"{LOOKUP_BASE}/version/7/"},
    }


CHARIZARD_RUBY = "Charizard flies around the sky\nin search of powerful opponents."

CHARIZARD_SPECIES = {
    "name": "charizard",
    "flavor_text_entries": [
        flavor("Spits fire that is hot enough to melt boulders.", "red"),
        flavor("Crache du feu si chaud qu'il fait fondre les rochers.", "x", language="fr"),
        flavor(CHARIZARD_RUBY, "ruby"),
        flavor("It is said that Charizard's fire burns hotter if it has experienced harsh battles.", "x"),
    ],
}


@pytest.fixture
def charizard_http() -> FakeHttp:
    return FakeHttp(
        {
            pokemon_url("charizard"): [(200, pokemon_payload(6))],
            species_url(6): [(200, CHARIZARD_SPECIES)],
        }
    )
