"""
api.py

WHAT THIS FILE IS FOR
---------------------
This module defines the FastAPI application entrypoint for the
Pokespeare API: creature descriptions rewritten in Shakespearean English.

It is responsible for:
- Creating the FastAPI app instance (title/version/description)
- Building the CreaturePipeline and its shared HttpClient at startup,
  storing them on app.state and closing the client on shutdown
- Exposing HTTP endpoints:
    - GET /health and /healthz
    - GET /{name} (primary public contract)
- Rendering every failure as a plain-text body "Error <code>: <reason>"

REQUEST/RESPONSE CONTRACT RULES
-------------------------------
- Exactly one path segment is accepted as the creature name; deeper paths
  are 404 and non-GET methods are 405.
- Success: 200, "application/json; charset=UTF-8", pretty-printed
  {"name": ..., "description": ...}
- Failure: status taken from the PipelineError (500 for anything else),
  "text/plain; charset=UTF-8". Internal messages never reach the client.

DESIGN INTENT
-------------
This file contains ONLY the HTTP layer:
- routing
- exception handling
- response formatting

Pipeline, caching and upstream logic live in:
- pokespeare/orchestrator/*
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import Depends, FastAPI, Request
from fastapi.responses import PlainTextResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from pokespeare.orchestrator.errors import PipelineError
from pokespeare.orchestrator.pipeline import CreaturePipeline, build_pipeline
from pokespeare.orchestrator.status_normalizer import render_error_body
from pokespeare.utils.http_client import HttpClient
from pokespeare.utils.logging_config import configure_logging
from pokespeare.utils.settings import Settings, get_settings

logger = structlog.get_logger(__name__)

JSON_CONTENT_TYPE = "application/json; charset=UTF-8"
TEXT_CONTENT_TYPE = "text/plain; charset=UTF-8"


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------
def _error_response(status_code: int, headers: Optional[dict[str, str]] = None) -> PlainTextResponse:
    return PlainTextResponse(
        content=render_error_body(status_code),
        status_code=status_code,
        media_type=TEXT_CONTENT_TYPE,
        headers=headers,
    )


def get_pipeline(request: Request) -> CreaturePipeline:
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise RuntimeError("CreaturePipeline not initialized. Check the app lifespan.")
    return pipeline


# -------------------------------------------------------------------
# App factory
# -------------------------------------------------------------------
def create_app(settings: Settings, pipeline: Optional[CreaturePipeline] = None) -> FastAPI:
    """
    Build the app. A `pipeline` passed in is used as is and never closed;
    otherwise the production pipeline is wired in the lifespan.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.pipeline is not None:
            yield
            return

        http = HttpClient(timeout_seconds=settings.http_timeout_seconds)
        started = build_pipeline(settings, http=http)
        app.state.http = http
        app.state.pipeline = started
        logger.info("pipeline_started", environment=settings.environment)
        try:
            yield
        finally:
            await http.aclose()
            app.state.pipeline = None
            logger.info("pipeline_stopped", cache=started.cache.stats())

    app = FastAPI(
        title="Pokespeare API",
        version="1.0.0",
        description="Creature descriptions, rewritten in Shakespearean English.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.http = None
    app.state.pipeline = pipeline

    # ---------------------------------------------------------------
    # Exception handlers
    # ---------------------------------------------------------------
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.info(
            "request_rejected",
            method=request.method,
            path=request.url.path,
            status_code=exc.status_code,
        )
        return _error_response(exc.status_code, headers=getattr(exc, "headers", None))

    # ---------------------------------------------------------------
    # Endpoints
    # ---------------------------------------------------------------
    @app.get("/healthz")
    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "service": settings.service_name,
            "environment": settings.environment,
        }

    @app.get("/{name}")
    async def describe_creature(
        name: str,
        pipeline: CreaturePipeline = Depends(get_pipeline),
    ) -> Response:
        started = time.perf_counter()

        try:
            result = await pipeline.handle(name)
            response: Response = Response(
                content=result.to_pretty_json(),
                status_code=200,
                media_type=JSON_CONTENT_TYPE,
            )
        except PipelineError as exc:
            logger.warning(
                "request_failed",
                name=name,
                kind=exc.kind.value,
                status_code=exc.status,
                message=exc.message,
            )
            response = _error_response(exc.status)
        except Exception as exc:  # noqa: BLE001
            logger.exception("request_unhandled_error", name=name, error=repr(exc))
            response = _error_response(500)

        logger.info(
            "request_completed",
            name=name,
            status_code=response.status_code,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return response

    return app


settings = get_settings()
configure_logging(settings.service_name, settings.log_level)
app = create_app(settings)


if __name__ == "__main__":
    import uvicorn

    logger.info(
        "pokespeare_starting",
        host=settings.api_host,
        port=settings.api_port,
        usage=f"curl http://{settings.api_host}:{settings.api_port}/charizard",
    )
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
