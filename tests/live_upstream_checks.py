# tests/live_upstream_checks.py
"""
Live checks against the real upstream services (PokeAPI + FunTranslations).

⚠️ REQUIREMENTS
- Outbound internet access.
- The rewriting service allows only a few calls per hour on its free tier;
  rate-limited rewrites are expected and tolerated (the API then returns the
  untranslated description).

These checks make REAL HTTP calls. They are intentionally NOT mocked and
NOT meant for CI; the file name keeps pytest from collecting it by default.

RECOMMENDED USAGE
- Run as a script (best):
    python tests/live_upstream_checks.py

- Or run via pytest explicitly:
    pytest -q tests/live_upstream_checks.py -s
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import api  # noqa: E402
from pokespeare.orchestrator.description_fetcher import DescriptionFetcher  # noqa: E402
from pokespeare.orchestrator.errors import PipelineError  # noqa: E402
from pokespeare.utils.http_client import HttpClient  # noqa: E402
from pokespeare.utils.settings import get_settings  # noqa: E402


async def _describe(name: str) -> str:
    settings = get_settings()
    http = HttpClient(timeout_seconds=settings.http_timeout_seconds)
    try:
        return await DescriptionFetcher(settings, http=http).fetch(name)
    finally:
        await http.aclose()


def test_live_descriptions() -> None:
    charizard = asyncio.run(_describe("charizard"))
    assert len(charizard) > 20
    assert "flies" in charizard

    # lookup by national dex number resolves to the same creature
    assert asyncio.run(_describe("6")) == charizard

    for name in ("banana", ""):
        with pytest.raises(PipelineError):
            asyncio.run(_describe(name))


@pytest.mark.parametrize("name", ["electrode", "klink"])
def test_live_trailing_slash_quirk(name: str) -> None:
    # these names answer only with (or only without) a trailing slash upstream
    assert asyncio.run(_describe(name))


def test_live_endpoint() -> None:
    # the context manager runs the lifespan that wires the pipeline
    with TestClient(api.app) as client:
        r = client.get("/CharIZard")
        assert r.status_code == 200
        body = r.json()
        assert body["name"] == "charizard"
        # may be rewritten or, when rate-limited, the original text
        assert "charizard" in body["description"].lower()

        assert client.get("/banana").status_code == 404
        assert client.post("/ditto").status_code == 405
        assert client.get("/charizard/whatever").status_code == 404


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-q", "-s"]))
