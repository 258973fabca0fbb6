"""Bridge SIGINT/SIGTERM onto scope cancellation."""

from __future__ import annotations

import asyncio
import signal
from contextlib import contextmanager
from typing import Iterator

import structlog

from .engine import Scope

CANCEL_SIGNALS = (signal.SIGINT, signal.SIGTERM)

logger = structlog.get_logger("url_hasher.signals")


@contextmanager
def cancel_on_signals(scope: Scope, signals: tuple[signal.Signals, ...] = CANCEL_SIGNALS) -> Iterator[None]:
    """Cancel ``scope`` when one of ``signals`` arrives; must run inside the event loop."""

    loop = asyncio.get_running_loop()

    def _on_signal(signum: int) -> None:
        logger.info("signal_received", signal=signal.Signals(signum).name)
        scope.cancel()

    installed: list[signal.Signals] = []
    previous = {sig: signal.getsignal(sig) for sig in signals}
    for sig in signals:
        try:
            loop.add_signal_handler(sig, _on_signal, int(sig))
            installed.append(sig)
        except NotImplementedError:
            # Loops without add_signal_handler (Windows): hop onto the loop thread
            signal.signal(sig, lambda signum, _frame: loop.call_soon_threadsafe(_on_signal, signum))
    try:
        yield
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
        for sig, handler in previous.items():
            if handler is not None:
                signal.signal(sig, handler)


__all__ = ["CANCEL_SIGNALS", "cancel_on_signals"]
