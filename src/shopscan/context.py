"""
Shared state for one resolver instance.

ResolverContext replaces module-level singletons: the per-domain rate-limit
table, the cache of previously resolved products, the metrics store and the
HTTP client all hang off a context that is created once and passed to the
components that need it.
"""

import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Dict, Optional, Tuple

import httpx

from .config import DEFAULT_CONFIG, ResolverConfig
from .errors import RateLimited
from .fetch import HEADERS
from .models import ProductRecord
from .storage import MetricsStore

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def monotonic_ms() -> float:
    return time.monotonic() * 1000


class RateLimitTable:
    """
    Last request time per domain. A second request to a domain inside the
    window is refused outright. The whole table is dropped every purge_ms,
    checked when the next request comes in.
    """

    def __init__(self, window_ms: int, purge_ms: int, clock: Clock = monotonic_ms):
        self.window_ms = window_ms
        self.purge_ms = purge_ms
        self.clock = clock
        self._last: Dict[str, float] = {}
        self._purged_at = clock()
        self._lock = threading.Lock()

    def acquire(self, domain: str) -> None:
        with self._lock:
            now = self.clock()
            if now - self._purged_at >= self.purge_ms:
                if self._last:
                    logger.debug(f"Purging rate-limit table ({len(self._last)} domains)")
                self._last.clear()
                self._purged_at = now

            last = self._last.get(domain)
            if last is not None and now - last < self.window_ms:
                wait_ms = int(self.window_ms - (now - last))
                raise RateLimited(f"Rate limited - wait {wait_ms} ms before requesting {domain} again")
            self._last[domain] = now

    def __len__(self):
        return len(self._last)


class ProductCache:
    """Products from earlier valid resolutions, keyed by product ID."""

    def __init__(self, ttl_ms: int, max_entries: int, clock: Clock = monotonic_ms):
        self.ttl_ms = ttl_ms
        self.max_entries = max_entries
        self.clock = clock
        self._entries: "OrderedDict[str, Tuple[float, ProductRecord]]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[ProductRecord]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, record = entry
            if self.clock() - stored_at > self.ttl_ms:
                del self._entries[key]
                return None
            return record

    def put(self, key: str, record: ProductRecord) -> None:
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = (self.clock(), record)
            if len(self._entries) > self.max_entries:
                # drop the oldest half in one go
                for _ in range(min(self.max_entries // 2, len(self._entries))):
                    self._entries.popitem(last=False)

    def __len__(self):
        return len(self._entries)

    def __contains__(self, key):
        return self.get(key) is not None


class ResolverContext:
    """Owns everything the pipeline shares between resolve calls."""

    def __init__(
        self,
        config: Optional[ResolverConfig] = None,
        clock: Clock = monotonic_ms,
        sleep: Callable[[float], None] = time.sleep,
        transport: Optional[httpx.BaseTransport] = None,
        store: Optional[MetricsStore] = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self.clock = clock
        self.sleep = sleep
        self.rate_limits = RateLimitTable(self.config.rate_limit_window_ms, self.config.rate_limit_purge_ms, clock)
        self.cache = ProductCache(self.config.cache_ttl_ms, self.config.cache_max_entries, clock)
        self.store = store or MetricsStore(self.config.metrics_path, self.config.feedback_log_size)
        self.client = httpx.Client(
            follow_redirects=True,
            headers=HEADERS,
            timeout=self.config.request_timeout_ms / 1000,
            transport=transport,
        )

    def close(self) -> None:
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
