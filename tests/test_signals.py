from __future__ import annotations

import asyncio
import os
import signal
import sys

import pytest

from url_hasher.engine import Scope, watch
from url_hasher.signals import cancel_on_signals


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals only")
def test_sigterm_cancels_scope() -> None:
    scope = Scope()

    async def _run() -> None:
        with cancel_on_signals(scope):
            async with watch(scope) as fired:
                os.kill(os.getpid(), signal.SIGTERM)
                await asyncio.wait_for(fired, timeout=5)

    asyncio.run(_run())
    assert scope.cancelled


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals only")
def test_handlers_removed_on_exit() -> None:
    before = signal.getsignal(signal.SIGINT)

    async def _run() -> None:
        with cancel_on_signals(Scope()):
            pass

    asyncio.run(_run())
    assert signal.getsignal(signal.SIGINT) == before
