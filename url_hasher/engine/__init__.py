"""Engine components: scopes → channel → fetcher → hasher."""

from .channel import ChannelClosed, RendezvousChannel
from .fetcher import Fetcher, HashResult, build_client
from .hasher import Hasher, OnDone, Status, hash_urls, hash_urls_async
from .scope import Scope, run_in_scope, watch

__all__ = [
    "ChannelClosed",
    "Fetcher",
    "HashResult",
    "Hasher",
    "OnDone",
    "RendezvousChannel",
    "Scope",
    "Status",
    "build_client",
    "hash_urls",
    "hash_urls_async",
    "run_in_scope",
    "watch",
]
