import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ResolverConfig:
    # RequestGateway
    rate_limit_window_ms: int = 2000      # min gap between two requests to one domain
    rate_limit_purge_ms: int = 300000     # whole domain map is dropped on this interval
    max_attempts: int = 3
    backoff_base_s: float = 1.0           # wait before retry n = base * 2^n
    backoff_max_s: float = 30.0
    request_timeout_ms: int = 15000

    # Cached store used as an alternative source
    cache_ttl_ms: int = 300000
    cache_max_entries: int = 1000

    # AccuracyMonitor
    feedback_log_size: int = 1000
    metrics_path: Optional[str] = None

    # Pluggable product-data lookup services (disabled unless configured)
    product_api_url: Optional[str] = None
    product_api_key: Optional[str] = None
    product_db_url: Optional[str] = None

    @classmethod
    def from_env(cls) -> "ResolverConfig":
        """Build a config from SHOPSCAN_* environment variables, falling back to defaults."""
        defaults = cls()

        def _int(name, default):
            raw = os.environ.get(name)
            return int(raw) if raw else default

        def _float(name, default):
            raw = os.environ.get(name)
            return float(raw) if raw else default

        return cls(
            rate_limit_window_ms=_int("SHOPSCAN_RATE_LIMIT_WINDOW_MS", defaults.rate_limit_window_ms),
            rate_limit_purge_ms=_int("SHOPSCAN_RATE_LIMIT_PURGE_MS", defaults.rate_limit_purge_ms),
            max_attempts=_int("SHOPSCAN_MAX_ATTEMPTS", defaults.max_attempts),
            backoff_base_s=_float("SHOPSCAN_BACKOFF_BASE_S", defaults.backoff_base_s),
            backoff_max_s=_float("SHOPSCAN_BACKOFF_MAX_S", defaults.backoff_max_s),
            request_timeout_ms=_int("SHOPSCAN_REQUEST_TIMEOUT_MS", defaults.request_timeout_ms),
            cache_ttl_ms=_int("SHOPSCAN_CACHE_TTL_MS", defaults.cache_ttl_ms),
            cache_max_entries=_int("SHOPSCAN_CACHE_MAX_ENTRIES", defaults.cache_max_entries),
            feedback_log_size=_int("SHOPSCAN_FEEDBACK_LOG_SIZE", defaults.feedback_log_size),
            metrics_path=os.environ.get("SHOPSCAN_METRICS_PATH") or None,
            product_api_url=os.environ.get("SHOPSCAN_PRODUCT_API_URL") or None,
            product_api_key=os.environ.get("SHOPSCAN_PRODUCT_API_KEY") or None,
            product_db_url=os.environ.get("SHOPSCAN_PRODUCT_DB_URL") or None,
        )


DEFAULT_CONFIG = ResolverConfig()

# Validator confidence penalties, subtracted from 100 per issue
SEVERITY_WEIGHTS = {
    "high": 25,
    "medium": 15,
    "low": 5,
}

# A result at or above this confidence counts as valid / successful
VALID_CONFIDENCE_THRESHOLD = 70

# Below this (after corrections) the cross-reference step runs
CROSS_REFERENCE_THRESHOLD = 80

# Report recommendation triggers
REPORT_SUCCESS_RATE_FLOOR = 80
REPORT_CONFIDENCE_FLOOR = 75
REPORT_CORRECTION_RATE_CEILING = 20

# Titles that scrapers and fallbacks emit when nothing real was found.
# Matched case-insensitively as substrings.
GENERIC_TITLES = [
    "product item",
    "unknown product",
    "handcrafted item",
    "etsy product",
    "amazon product",
    "ebay product",
]

MIN_TITLE_LENGTH = 5

# Fixed confidence per alternative source (0..1 scale)
SOURCE_CONFIDENCE = {
    "curated-database": 0.85,
    "product-api": 0.8,
    "product-database": 0.75,
    "cached-data": 0.7,
    "heuristic-analysis": 0.4,
    "url-analysis": 0.2,
    "url-analysis-unmatched": 0.1,
}
