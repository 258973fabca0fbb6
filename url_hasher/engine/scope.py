"""Hierarchical cancellation scopes bridged onto asyncio.

A :class:`Scope` is a thread-safe cancellation handle with an optional
deadline. Cancelling a scope cancels every scope derived from it. Scopes are
plain objects so they can be created before an event loop exists and cancelled
from another thread or a signal handler; :func:`watch` and
:func:`run_in_scope` adapt them to the running loop.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from threading import Lock
from typing import AsyncIterator, Awaitable, Callable, TypeVar

from ..errors import Cancelled, DeadlineExceeded, ScopeError

T = TypeVar("T")


class Scope:
    """Cancellation handle with an optional monotonic deadline."""

    def __init__(self, parent: "Scope | None" = None, timeout: float | None = None) -> None:
        self._lock = Lock()
        self._reason: type[ScopeError] | None = None
        self._listeners: dict[int, Callable[[], None]] = {}
        self._next_token = 0
        self._parent = parent
        self._parent_token: int | None = None

        deadline = time.monotonic() + timeout if timeout is not None else None
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self._deadline = deadline

        if parent is not None:
            self._parent_token = parent._add_listener(self._on_parent_cancelled)

    # ------------------------------------------------------------------
    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def cancelled(self) -> bool:
        if self._reason is None and self._deadline is not None:
            if time.monotonic() >= self._deadline:
                self.expire()
        return self._reason is not None

    @property
    def error(self) -> ScopeError | None:
        """A fresh instance of the cancellation reason, or ``None``."""

        if not self.cancelled:
            return None
        return self._reason()  # type: ignore[misc]

    def remaining(self) -> float | None:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    # ------------------------------------------------------------------
    def child(self, timeout: float | None = None) -> "Scope":
        return Scope(self, timeout=timeout)

    def cancel(self) -> None:
        self._finish(Cancelled)

    def expire(self) -> None:
        self._finish(DeadlineExceeded)

    def release(self) -> None:
        """Cancel this scope and detach it from its parent."""

        self.cancel()
        if self._parent is not None and self._parent_token is not None:
            self._parent._remove_listener(self._parent_token)
            self._parent_token = None

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run ``callback`` once on cancellation and return an unsubscribe hook."""

        token = self._add_listener(callback)
        if token is None:
            return lambda: None
        return lambda: self._remove_listener(token)

    # ------------------------------------------------------------------
    def _add_listener(self, callback: Callable[[], None]) -> int | None:
        with self._lock:
            if self._reason is None:
                token = self._next_token
                self._next_token += 1
                self._listeners[token] = callback
                return token
        callback()
        return None

    def _remove_listener(self, token: int) -> None:
        with self._lock:
            self._listeners.pop(token, None)

    def _on_parent_cancelled(self) -> None:
        assert self._parent is not None
        self._finish(self._parent._reason or Cancelled)

    def _finish(self, reason: type[ScopeError]) -> None:
        with self._lock:
            if self._reason is not None:
                return
            self._reason = reason
            listeners = list(self._listeners.values())
            self._listeners.clear()
        for callback in listeners:
            callback()

    def __repr__(self) -> str:
        state = self._reason.__name__ if self._reason else "active"
        return f"<Scope {state} deadline={self._deadline}>"


def _resolve(future: asyncio.Future[None]) -> None:
    if not future.done():
        future.set_result(None)


@asynccontextmanager
async def watch(scope: Scope) -> AsyncIterator[asyncio.Future[None]]:
    """Yield a future resolved once ``scope`` is cancelled or its deadline passes."""

    loop = asyncio.get_running_loop()
    fired: asyncio.Future[None] = loop.create_future()
    unsubscribe = scope.subscribe(lambda: loop.call_soon_threadsafe(_resolve, fired))
    remaining = scope.remaining()
    timer = loop.call_later(remaining, scope.expire) if remaining is not None else None
    try:
        yield fired
    finally:
        unsubscribe()
        if timer is not None:
            timer.cancel()
        if not fired.done():
            fired.cancel()


async def run_in_scope(scope: Scope, work: Awaitable[T]) -> T:
    """Await ``work`` unless ``scope`` fires first, then raise the scope error."""

    async with watch(scope) as fired:
        if scope.cancelled:
            if asyncio.iscoroutine(work):
                work.close()
            raise scope.error or Cancelled()
        task = asyncio.ensure_future(work)
        try:
            done, _ = await asyncio.wait((task, fired), return_when=asyncio.FIRST_COMPLETED)
        finally:
            if not task.done():
                task.cancel()
                await asyncio.wait((task,))
        if task not in done or scope.cancelled:
            if not task.cancelled():
                # results that raced the cancellation are dropped
                task.exception()
            raise scope.error or Cancelled()
        return task.result()


__all__ = ["Scope", "run_in_scope", "watch"]
