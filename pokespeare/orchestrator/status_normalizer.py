"""
pokespeare/orchestrator/status_normalizer.py

WHAT THIS FILE IS FOR
---------------------
This module defines the *single canonical rule* for mapping HTTP status
codes to pipeline error kinds (on the way in) and to the public plain-text
error body (on the way out).

It is responsible for:
- Classifying upstream non-success statuses into an ErrorKind
- Resolving a status code to its registered reason phrase
- Rendering the public error body: "Error <code>: <reason phrase>"

PUBLIC CONTRACT RULE
--------------------
Clients only ever see the status code and its reason phrase. Upstream
response bodies and internal error messages are never exposed.

WHAT THIS FILE IS NOT FOR
-------------------------
This module MUST NOT:
- Perform HTTP calls
- Log, raise, or handle exceptions

It performs **pure, deterministic mapping only**.
"""

from __future__ import annotations

from http import HTTPStatus

from pokespeare.orchestrator.errors import ErrorKind

UNKNOWN_REASON = "Unknown reason"


def classify_upstream_status(status_code: int, *, rate_limit_aware: bool = False) -> ErrorKind:
    """
    Map a non-success upstream status to an ErrorKind.

    429 is only reported as RATE_LIMITED when `rate_limit_aware` is set;
    the orchestrator recovers from that kind, so only the rewriting
    service opts in.
    """
    if rate_limit_aware and status_code == HTTPStatus.TOO_MANY_REQUESTS:
        return ErrorKind.RATE_LIMITED
    if status_code == HTTPStatus.NOT_FOUND:
        return ErrorKind.NOT_FOUND
    if 400 <= status_code < 500:
        return ErrorKind.CLIENT_ERROR
    return ErrorKind.UPSTREAM


def reason_phrase(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return UNKNOWN_REASON


def render_error_body(status_code: int) -> str:
    return f"Error {status_code}: {reason_phrase(status_code)}"
