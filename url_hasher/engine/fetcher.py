"""HTTP fetching with the response body streamed straight into a digest."""

from __future__ import annotations

from dataclasses import dataclass

import httpx
import structlog

from ..config import HasherSettings
from ..errors import (
    BodyStreamError,
    DeadlineExceeded,
    FetchCancelledError,
    FetchDeadlineError,
    FetchError,
    RequestConstructionError,
    ScopeError,
    TransportError,
)
from .scope import Scope, run_in_scope


@dataclass(slots=True)
class HashResult:
    """Outcome for one URL: exactly one of ``digest`` and ``error`` is set."""

    url: str
    digest: bytes | None = None
    error: FetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def hexdigest(self) -> str | None:
        return self.digest.hex() if self.digest is not None else None


def build_client(
    settings: HasherSettings, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    """Create the keep-alive client shared by the workers of one run."""

    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(None),
        limits=httpx.Limits(
            max_connections=settings.parallel,
            max_keepalive_connections=settings.parallel,
        ),
        trust_env=False,
        transport=transport,
    )


class Fetcher:
    """Execute GET requests and hash the bodies without buffering them."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: HasherSettings,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.client = client
        self.settings = settings
        self.logger = logger or structlog.get_logger("url_hasher.fetcher")

    async def fetch(self, scope: Scope, url: str) -> HashResult:
        try:
            digest = await run_in_scope(scope, self._download(url))
        except ScopeError as exc:
            error: FetchError
            if isinstance(exc, DeadlineExceeded):
                error = FetchDeadlineError(url, exc)
            else:
                error = FetchCancelledError(url, exc)
            return self._failed(url, error)
        except FetchError as exc:
            return self._failed(url, exc)
        except Exception as exc:  # noqa: BLE001
            # anything else escaping the transport is still a per-URL failure
            return self._failed(
                url, TransportError(url, f"could not perform HTTP request: {exc!r}")
            )
        return HashResult(url=url, digest=digest)

    # ------------------------------------------------------------------
    async def _download(self, url: str) -> bytes:
        try:
            request = self.client.build_request("GET", url)
        except (httpx.InvalidURL, ValueError, TypeError) as exc:
            raise RequestConstructionError(url, f"could not create http request: {exc}") from exc

        try:
            response = await self.client.send(request, stream=True)
        except httpx.RequestError as exc:
            raise TransportError(url, f"could not perform HTTP request: {exc!r}") from exc

        # Status codes are not inspected: error pages are hashed like any body.
        try:
            digest = self.settings.new_digest()
            async for chunk in response.aiter_bytes():
                digest.update(chunk)
        except (httpx.RequestError, httpx.StreamError) as exc:
            raise BodyStreamError(url, f"could not hash HTTP response: {exc!r}") from exc
        finally:
            await response.aclose()
        return digest.digest()

    def _failed(self, url: str, error: FetchError) -> HashResult:
        self.logger.debug("fetch_failed", url=url, kind=error.kind, error=str(error))
        return HashResult(url=url, error=error)


__all__ = ["Fetcher", "HashResult", "build_client"]
