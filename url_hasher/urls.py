"""Turn command-line arguments into fetchable URLs."""

from __future__ import annotations

import re
from typing import Iterable

import httpx
import structlog

DEFAULT_SCHEME = "http"

logger = structlog.get_logger("url_hasher.urls")

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


def normalize_url(value: str) -> str:
    """Return ``value`` as an absolute URL, prepending ``http://`` when no scheme is given.

    Raises ``ValueError`` when the result cannot be parsed or has no host.
    """

    text = value.strip()
    if not text:
        raise ValueError("empty url")
    if not _SCHEME_RE.match(text):
        text = f"{DEFAULT_SCHEME}://{text}"
    try:
        url = httpx.URL(text)
    except httpx.InvalidURL as exc:
        raise ValueError(str(exc)) from exc
    if not url.host:
        raise ValueError("missing host")
    return str(url)


def normalize_urls(values: Iterable[str]) -> list[str]:
    """Normalise every argument, skipping invalid ones with a warning."""

    output: list[str] = []
    for value in values:
        try:
            output.append(normalize_url(value))
        except ValueError as exc:
            logger.warning("skipping_invalid_url", url=value, error=str(exc))
    return output


__all__ = ["DEFAULT_SCHEME", "normalize_url", "normalize_urls"]
