"""Zero-capacity channel connecting the dispatcher to its workers."""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Deque, Generic, Tuple, TypeVar

from ..errors import UrlHasherError

T = TypeVar("T")


class ChannelClosed(UrlHasherError):
    """Raised when sending on a closed channel."""


class RendezvousChannel(Generic[T]):
    """Unbuffered single-loop channel: a send completes only when a receiver takes it.

    ``receive`` hands back a future instead of being a coroutine so that a
    caller racing it against another event can withdraw by cancelling the
    future. A cancelled receiver is skipped by senders, so an item is never
    handed to a receiver that has gone away.
    """

    def __init__(self) -> None:
        self._receivers: Deque[asyncio.Future[Tuple[T | None, bool]]] = deque()
        self._senders: Deque[Tuple[T, asyncio.Future[None]]] = deque()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def send(self, item: T) -> None:
        if self._closed:
            raise ChannelClosed("send on closed channel")
        while self._receivers:
            receiver = self._receivers.popleft()
            if not receiver.done():
                receiver.set_result((item, True))
                return
        accepted: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        entry = (item, accepted)
        self._senders.append(entry)
        try:
            await accepted
        except asyncio.CancelledError:
            # still queued means nobody took the item
            if entry in self._senders:
                self._senders.remove(entry)
            raise

    def receive(self) -> asyncio.Future[Tuple[T | None, bool]]:
        """Return a future resolving to ``(item, True)`` or ``(None, False)`` once closed."""

        future: asyncio.Future[Tuple[T | None, bool]] = asyncio.get_running_loop().create_future()
        while self._senders:
            item, accepted = self._senders.popleft()
            if not accepted.done():
                accepted.set_result(None)
                future.set_result((item, True))
                return future
        if self._closed:
            future.set_result((None, False))
        else:
            self._receivers.append(future)
        return future

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        while self._receivers:
            receiver = self._receivers.popleft()
            if not receiver.done():
                receiver.set_result((None, False))


__all__ = ["ChannelClosed", "RendezvousChannel"]
