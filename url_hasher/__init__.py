"""Concurrently fetch URLs and report a digest of every response body."""

from .config import DEFAULT_FETCH_TIMEOUT, HasherSettings
from .engine import HashResult, Hasher, Scope, Status, hash_urls, hash_urls_async
from .errors import (
    BodyStreamError,
    Cancelled,
    DeadlineExceeded,
    FetchCancelledError,
    FetchDeadlineError,
    FetchError,
    RequestConstructionError,
    TransportError,
    UrlHasherError,
)

__version__ = "0.1.0"

__all__ = [
    "BodyStreamError",
    "Cancelled",
    "DEFAULT_FETCH_TIMEOUT",
    "DeadlineExceeded",
    "FetchCancelledError",
    "FetchDeadlineError",
    "FetchError",
    "HashResult",
    "Hasher",
    "HasherSettings",
    "RequestConstructionError",
    "Scope",
    "Status",
    "TransportError",
    "UrlHasherError",
    "hash_urls",
    "hash_urls_async",
]
