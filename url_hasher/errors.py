"""Exception hierarchy shared by the hashing engine and the CLI."""

from __future__ import annotations

from typing import ClassVar


class UrlHasherError(Exception):
    """Root of every error raised by url_hasher."""


class ScopeError(UrlHasherError):
    """A scope stopped before its work finished."""

    message: ClassVar[str] = "scope stopped"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class Cancelled(ScopeError):
    message = "scope cancelled"


class DeadlineExceeded(ScopeError):
    message = "deadline exceeded"


class FetchError(UrlHasherError):
    """Failure of a single URL, delivered through the ``on_done`` callback."""

    kind: ClassVar[str] = "fetch"

    def __init__(self, url: str, reason: object) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"{self.kind}: {reason}")


class RequestConstructionError(FetchError):
    kind = "request-construction"


class TransportError(FetchError):
    kind = "transport"


class BodyStreamError(FetchError):
    kind = "body-stream"


class FetchDeadlineError(FetchError):
    kind = "deadline"


class FetchCancelledError(FetchError):
    kind = "cancelled"


__all__ = [
    "BodyStreamError",
    "Cancelled",
    "DeadlineExceeded",
    "FetchCancelledError",
    "FetchDeadlineError",
    "FetchError",
    "RequestConstructionError",
    "ScopeError",
    "TransportError",
    "UrlHasherError",
]
