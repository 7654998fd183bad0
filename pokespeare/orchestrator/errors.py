"""Pipeline error type shared by the fetcher, rewriter, cache and orchestrator."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Closed set of failure categories a pipeline request can end in."""

    NOT_FOUND = "not_found"
    CLIENT_ERROR = "client_error"
    UPSTREAM = "upstream"
    PARSE = "parse"
    SELECTION_EMPTY = "selection_empty"
    RATE_LIMITED = "rate_limited"
    INTERNAL = "internal"


class PipelineError(RuntimeError):
    """
    Failure raised anywhere in the describe → rewrite pipeline.

    Carries the HTTP status the boundary should answer with and a
    human-readable message for logs. The message is never sent to clients.
    """

    def __init__(self, kind: ErrorKind, status: int, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.status = status
        self.message = message

    @classmethod
    def internal(cls, message: str) -> "PipelineError":
        return cls(ErrorKind.INTERNAL, 500, message)

    @classmethod
    def parse(cls, message: str) -> "PipelineError":
        return cls(ErrorKind.PARSE, 500, message)

    def __repr__(self) -> str:
        return f"PipelineError(kind={self.kind.value!r}, status={self.status}, message={self.message!r})"
