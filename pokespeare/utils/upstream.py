"""
pokespeare/utils/upstream.py

Helpers shared by the two upstream clients (DescriptionFetcher and
PhraseRewriter):

- endpoint_url(): base URL + path template from parameters/config.yaml
- parse_payload(): JSON body -> pydantic model, or a PARSE PipelineError
"""

from __future__ import annotations

from pathlib import Path
from typing import Type, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from pokespeare.orchestrator.errors import PipelineError
from pokespeare.utils.settings import load_yaml

logger = structlog.get_logger(__name__)

CONFIG_PATH = Path(__file__).resolve().parents[2] / "parameters" / "config.yaml"

ModelT = TypeVar("ModelT", bound=BaseModel)


def endpoint_url(base_url: object, api: str, endpoint: str) -> str:
    """
    Join `base_url` with the `<api>.endpoints.<endpoint>` path template.

    The template keeps its placeholders, e.g.
        endpoint_url("https://pokeapi.co/api/v2", "lookup_api", "pokemon")
        -> "https://pokeapi.co/api/v2/pokemon/{name}"

    Raises:
        RuntimeError: the template is absent or does not start with "/".
    """
    endpoints = (load_yaml(CONFIG_PATH).get(api) or {}).get("endpoints") or {}
    template = endpoints.get(endpoint)
    if not isinstance(template, str) or not template.startswith("/"):
        logger.error("endpoint_template_invalid", api=api, endpoint=endpoint, template=template)
        raise RuntimeError(f"{CONFIG_PATH} needs {api}.endpoints.{endpoint} as a path starting with '/'")
    return str(base_url).rstrip("/") + template


def parse_payload(resp: httpx.Response, model: Type[ModelT], *, what: str) -> ModelT:
    """Decode a JSON response into `model`, raising a PARSE PipelineError on any mismatch."""
    try:
        return model.model_validate(resp.json())
    except ValueError as exc:
        # ValidationError and JSONDecodeError are both ValueErrors
        detail = exc.error_count() if isinstance(exc, ValidationError) else "invalid JSON"
        logger.warning("upstream_payload_invalid", what=what, url=str(resp.request.url), detail=detail)
        raise PipelineError.parse(f"unexpected {what} payload from {resp.request.url}") from exc
