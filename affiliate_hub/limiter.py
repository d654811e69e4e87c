"""Fixed-window request throttling keyed by client address."""
from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

DEFAULT_RATE_LIMIT = "100/15minutes"


def build_limiter(rate_limit: str = DEFAULT_RATE_LIMIT) -> Limiter:
    """Create a limiter applying ``rate_limit`` to every route.

    Counters live in memory inside the returned instance; each application
    gets its own.
    """

    return Limiter(
        key_func=get_remote_address,
        default_limits=[rate_limit],
        strategy="fixed-window",
        headers_enabled=False,
    )


__all__ = ["DEFAULT_RATE_LIMIT", "build_limiter"]
