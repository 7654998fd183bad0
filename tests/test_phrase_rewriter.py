# tests/test_phrase_rewriter.py
from __future__ import annotations

import httpx
import pytest

from conftest import REWRITE_URL, FakeHttp, FakeSettings
from pokespeare.orchestrator.errors import ErrorKind, PipelineError
from pokespeare.orchestrator.phrase_rewriter import PhraseRewriter


def _translation(text: str) -> dict:
    return {
        "success": {"total": 1},
        "contents": {"translated": text, "text": "ignored", "translation": "shakespeare"},
    }


@pytest.mark.anyio
async def test_rewrite_sends_text_as_query_param_and_returns_translation() -> None:
    http = FakeHttp({REWRITE_URL: [(200, _translation("Curiosity did kill the gib"))]})
    rewriter = PhraseRewriter(FakeSettings(), http=http)  # type: ignore[arg-type]

    out = await rewriter.rewrite("Curiosity killed the cat")

    assert out == "Curiosity did kill the gib"
    assert http.calls == [(REWRITE_URL, {"text": "Curiosity killed the cat"})]


@pytest.mark.anyio
async def test_rewrite_forwards_empty_text() -> None:
    http = FakeHttp({REWRITE_URL: [(200, _translation(""))]})
    rewriter = PhraseRewriter(FakeSettings(), http=http)  # type: ignore[arg-type]

    assert await rewriter.rewrite("") == ""


@pytest.mark.anyio
async def test_rewrite_rate_limit_is_its_own_kind() -> None:
    http = FakeHttp({REWRITE_URL: [(429, {"error": {"code": 429, "message": "Too Many Requests"}})]})
    rewriter = PhraseRewriter(FakeSettings(), http=http)  # type: ignore[arg-type]

    with pytest.raises(PipelineError) as excinfo:
        await rewriter.rewrite("text")

    assert excinfo.value.kind is ErrorKind.RATE_LIMITED
    assert excinfo.value.status == 429


@pytest.mark.anyio
async def test_rewrite_other_http_errors_keep_status() -> None:
    http = FakeHttp({REWRITE_URL: [(503, "down")]})
    rewriter = PhraseRewriter(FakeSettings(), http=http)  # type: ignore[arg-type]

    with pytest.raises(PipelineError) as excinfo:
        await rewriter.rewrite("text")

    assert excinfo.value.kind is ErrorKind.UPSTREAM
    assert excinfo.value.status == 503
    assert excinfo.value.message == "failed to query rewriting service"


@pytest.mark.anyio
async def test_rewrite_without_translated_field_is_internal_error() -> None:
    http = FakeHttp({REWRITE_URL: [(200, {"contents": {"text": "no translation here"}})]})
    rewriter = PhraseRewriter(FakeSettings(), http=http)  # type: ignore[arg-type]

    with pytest.raises(PipelineError) as excinfo:
        await rewriter.rewrite("text")

    assert excinfo.value.kind is ErrorKind.INTERNAL
    assert excinfo.value.status == 500
    assert excinfo.value.message == "failed to rewrite text"


@pytest.mark.anyio
async def test_rewrite_non_json_body_is_parse_error() -> None:
    http = FakeHttp({REWRITE_URL: [(200, "not json at all")]})
    rewriter = PhraseRewriter(FakeSettings(), http=http)  # type: ignore[arg-type]

    with pytest.raises(PipelineError) as excinfo:
        await rewriter.rewrite("text")

    assert excinfo.value.kind is ErrorKind.PARSE


@pytest.mark.anyio
async def test_rewrite_transport_error_is_internal() -> None:
    class _Broken:
        async def get(self, url, params=None):
            raise httpx.ReadTimeout("timed out")

    rewriter = PhraseRewriter(FakeSettings(), http=_Broken())  # type: ignore[arg-type]

    with pytest.raises(PipelineError) as excinfo:
        await rewriter.rewrite("text")

    assert excinfo.value.kind is ErrorKind.INTERNAL
