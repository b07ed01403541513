import logging
import math
import time

from fastapi import Request
from limits import RateLimitItem, parse
from limits.storage import MemoryStorage, Storage
from limits.strategies import FixedWindowRateLimiter
from slowapi import Limiter

from exceptions import RateLimitError

logger = logging.getLogger(__name__)


def get_real_ip(request: Request) -> str:
    """
    Extract the real client IP from the request headers, particularly useful
    when deployed behind a reverse proxy.
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    if request.client and request.client.host:
        return request.client.host

    return "127.0.0.1"


def make_global_limiter(default_limit: str) -> Limiter:
    """Broad per-IP limit for every route; generation has its own tighter window."""
    return Limiter(key_func=get_real_ip, default_limits=[default_limit])


class GenerationRateLimiter:
    """
    Fixed-window request counter per client for the generation route.

    Owned by the app (``app.state.rate_limiter``) rather than bound to a route
    decorator, so each app instance counts on its own storage. The memory
    storage expires finished windows itself.
    """

    def __init__(self, limit: str, storage: Storage | None = None):
        self.item: RateLimitItem = parse(limit)
        self.storage = storage or MemoryStorage()
        self.strategy = FixedWindowRateLimiter(self.storage)

    def hit(self, key: str) -> int:
        """Counts one request for `key` and returns how many remain in the window."""
        # test() first: a rejected request must not count against the window
        if not self.strategy.test(self.item, key):
            reset_time, _ = self.strategy.get_window_stats(self.item, key)
            retry_after = max(1, math.ceil(reset_time - time.time()))
            logger.info("Rate limit hit for %s (retry in %ss)", key, retry_after)
            raise RateLimitError(retry_after=retry_after)
        self.strategy.hit(self.item, key)
        return self.strategy.get_window_stats(self.item, key).remaining

    def reset(self) -> None:
        self.storage.reset()
