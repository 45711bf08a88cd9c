"""
Error taxonomy for the resolution pipeline.

Only AllSourcesExhausted is meant to reach callers of AccuracyEnhancer.resolve.
Transport errors are retried inside the RequestGateway; extraction and
correction failures are logged and absorbed where they happen.
"""

from typing import Optional


class ShopscanError(Exception):
    """Base class for all shopscan errors."""


class TransportError(ShopscanError):
    kind = "httpError"

    def __init__(self, message: str, status: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status = status
        self.url = url


class RateLimited(TransportError):
    kind = "rateLimited"


class Blocked(TransportError):
    kind = "blocked"


class Timeout(TransportError):
    kind = "timeout"


class HttpError(TransportError):
    kind = "httpError"


def error_for_status(status: int, url: Optional[str] = None, reason: str = "") -> TransportError:
    """Map a non-2xx HTTP status to the matching TransportError."""
    if status == 429:
        return RateLimited("Rate limited by server", status=status, url=url)
    if status == 403:
        return Blocked("Access blocked by website", status=status, url=url)
    return HttpError(f"HTTP {status}: {reason or 'Error'}", status=status, url=url)


class ExtractionFailure(ShopscanError):
    """A single extraction rule found something it could not use."""


class CorrectionFailure(ShopscanError):
    def __init__(self, field: str, message: str = ""):
        super().__init__(message or f"Could not correct {field}")
        self.field = field


class AllSourcesExhausted(ShopscanError):
    def __init__(self, url: str, message: str = "All data sources failed"):
        super().__init__(f"{message}: {url}")
        self.url = url
