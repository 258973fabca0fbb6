"""Bounded-concurrency fetch-and-hash engine.

``Hasher.run`` feeds URLs one by one through a rendezvous channel to a fixed
number of worker tasks. Each worker fetches one URL at a time under its own
deadline and reports through ``on_done``. A drainer task absorbs whatever the
dispatcher is still trying to send once the run is cancelled.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Iterable, Optional

import httpx
import structlog

from ..config import DEFAULT_ALGORITHM, DEFAULT_PARALLEL, HasherSettings
from ..errors import DeadlineExceeded, FetchError
from .channel import RendezvousChannel
from .fetcher import Fetcher, HashResult, build_client
from .scope import Scope, watch

OnDone = Callable[[Scope, str, Optional[bytes], Optional[FetchError]], Optional[Awaitable[None]]]


class Status(str, Enum):
    """Termination status of a run."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    DEADLINE_EXCEEDED = "deadline_exceeded"

    @classmethod
    def from_scope(cls, scope: Scope) -> "Status":
        error = scope.error
        if error is None:
            return cls.COMPLETED
        if isinstance(error, DeadlineExceeded):
            return cls.DEADLINE_EXCEEDED
        return cls.CANCELLED


@dataclass
class Hasher:
    """Fetch URLs concurrently and report the digest of every response body."""

    on_done: OnDone
    # Maximum number of concurrent fetches
    parallel: int = DEFAULT_PARALLEL
    # Per-URL timeout in seconds; 0 selects DEFAULT_FETCH_TIMEOUT
    fetch_timeout: float = 0
    algorithm: str = DEFAULT_ALGORITHM
    transport: httpx.AsyncBaseTransport | None = None
    logger: Any = None

    def settings(self) -> HasherSettings:
        """Validate and freeze the effective settings for one call."""

        return HasherSettings(
            parallel=self.parallel,
            fetch_timeout=self.fetch_timeout,
            algorithm=self.algorithm,
        )

    def start(self, scope: Scope | None, urls: Iterable[str]) -> Status:
        """Blocking wrapper around :meth:`run`."""

        return asyncio.run(self.run(scope, urls))

    async def run(self, scope: Scope | None, urls: Iterable[str]) -> Status:
        settings = self.settings()
        logger = (self.logger or structlog.get_logger("url_hasher.hasher")).bind(
            parallel=settings.parallel
        )
        internal = (scope or Scope()).child()
        channel: RendezvousChannel[str] = RendezvousChannel()
        sent = 0
        logger.debug("hasher_started", fetch_timeout=settings.fetch_timeout)

        async with build_client(settings, self.transport) as client, watch(internal) as stopped:
            fetcher = Fetcher(client, settings, logger=logger)
            drainer = asyncio.create_task(self._drain(channel, stopped))
            workers = [
                asyncio.create_task(self._worker(internal, channel, fetcher, stopped, logger))
                for _ in range(settings.parallel)
            ]
            for worker in workers:
                worker.add_done_callback(
                    lambda task: self._on_worker_done(task, internal, logger)
                )
            try:
                for url in urls:
                    if internal.cancelled:
                        break
                    await channel.send(url)
                    sent += 1
                channel.close()
                await asyncio.gather(*workers, return_exceptions=True)
                status = Status.from_scope(internal)
            finally:
                internal.release()
                channel.close()
                await asyncio.gather(drainer, *workers, return_exceptions=True)

        logger.debug("hasher_finished", status=status.value, dispatched=sent)
        return status

    # ------------------------------------------------------------------
    async def _worker(
        self,
        scope: Scope,
        channel: RendezvousChannel[str],
        fetcher: Fetcher,
        stopped: asyncio.Future[None],
        logger: Any,
    ) -> None:
        while not scope.cancelled:
            received = channel.receive()
            try:
                await asyncio.wait((received, stopped), return_when=asyncio.FIRST_COMPLETED)
            finally:
                if not received.done():
                    received.cancel()
            if received.cancelled():
                return
            url, ok = received.result()
            if not ok or url is None:
                return
            await self._process(scope, url, fetcher, logger)

    async def _process(self, scope: Scope, url: str, fetcher: Fetcher, logger: Any) -> None:
        inner = scope.child(timeout=fetcher.settings.fetch_timeout)
        try:
            result = await fetcher.fetch(inner, url)
            await self._deliver(inner, result, logger)
        finally:
            inner.release()

    async def _deliver(self, scope: Scope, result: HashResult, logger: Any) -> None:
        args = (scope, result.url, result.digest, result.error)
        try:
            if inspect.iscoroutinefunction(self.on_done):
                await self.on_done(*args)
                return
            # sync callbacks may block; keep them off the event loop
            outcome = await asyncio.to_thread(self.on_done, *args)
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:  # noqa: BLE001
            logger.exception("on_done_failed", url=result.url)

    @staticmethod
    def _on_worker_done(task: asyncio.Task[None], scope: Scope, logger: Any) -> None:
        if task.cancelled() or task.exception() is None:
            return
        # a dead worker stops the whole run so the drainer can release the dispatcher
        logger.error("worker_failed", exc_info=task.exception())
        scope.cancel()

    @staticmethod
    async def _drain(channel: RendezvousChannel[str], stopped: asyncio.Future[None]) -> None:
        await asyncio.wait((stopped,))
        while True:
            _, ok = await channel.receive()
            if not ok:
                return


async def hash_urls_async(
    urls: Iterable[str],
    *,
    parallel: int = DEFAULT_PARALLEL,
    fetch_timeout: float = 0,
    algorithm: str = DEFAULT_ALGORITHM,
    scope: Scope | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> tuple[Status, list[HashResult]]:
    """Collect every outcome into a list instead of streaming it."""

    results: list[HashResult] = []

    def _collect(_scope: Scope, url: str, digest: bytes | None, error: FetchError | None) -> None:
        results.append(HashResult(url=url, digest=digest, error=error))

    hasher = Hasher(
        on_done=_collect,
        parallel=parallel,
        fetch_timeout=fetch_timeout,
        algorithm=algorithm,
        transport=transport,
    )
    status = await hasher.run(scope, urls)
    return status, results


def hash_urls(urls: Iterable[str], **kwargs: Any) -> tuple[Status, list[HashResult]]:
    return asyncio.run(hash_urls_async(urls, **kwargs))


__all__ = ["Hasher", "OnDone", "Status", "hash_urls", "hash_urls_async"]
