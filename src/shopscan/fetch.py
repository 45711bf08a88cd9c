import logging
import random
from typing import Callable, Dict, Optional

import httpx
from tenacity import Retrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_exponential

from .errors import Blocked, HttpError, Timeout, TransportError, error_for_status
from .platforms import domain_of

logger = logging.getLogger(__name__)

HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.8",
    "Upgrade-Insecure-Requests": "1",
    "Referer": "https://www.google.com/",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}

USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:109.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.2 Safari/605.1.15",
]

# Sites with stricter bot checks get Chrome client hints
CLIENT_HINT_DOMAINS = ("amazon", "ebay", "etsy")
CLIENT_HINTS = {
    "Accept-Language": "en-US,en;q=0.9",
    "sec-ch-ua": '"Not_A Brand";v="8", "Chromium";v="120", "Google Chrome";v="120"',
    "sec-ch-ua-mobile": "?0",
    "sec-ch-ua-platform": '"Windows"',
}

BOT_MARKERS = (
    "captcha",
    "verify you are human",
    "access denied",
    "request blocked",
    "pardon the interruption",
    "cloudflare",
    "attention required",
)

MIN_HTML_LENGTH = 100

# (url, user_agent, timeout_s) -> html
Fetcher = Callable[[str, str, float], str]


def build_headers(url: str, user_agent: str) -> Dict[str, str]:
    headers = {"User-Agent": user_agent}
    domain = domain_of(url)
    if any(d in domain for d in CLIENT_HINT_DOMAINS):
        headers.update(CLIENT_HINTS)
    return headers


def check_html(html: str, url: str) -> str:
    """Reject empty pages and anti-bot interstitials."""
    if not html or len(html) < MIN_HTML_LENGTH:
        raise HttpError("Invalid or empty response from website", url=url)
    lowered = html.lower()
    marker = next((m for m in BOT_MARKERS if m in lowered), None)
    if marker:
        raise Blocked(f"Request blocked by anti-bot protection ({marker!r})", url=url)
    return html


def fetch_html(url: str, user_agent: str, timeout: float, client: Optional[httpx.Client] = None) -> str:
    """GET a page with httpx, mapping failures onto TransportError subclasses."""
    owns_client = client is None
    if owns_client:
        client = httpx.Client(follow_redirects=True, headers=HEADERS, timeout=timeout)
    try:
        r = client.get(url, headers=build_headers(url, user_agent), timeout=timeout)
    except httpx.TimeoutException as e:
        raise Timeout(f"Request timeout: {e}", url=url) from e
    except httpx.HTTPError as e:
        raise HttpError(f"Network error: {e}", url=url) from e
    finally:
        if owns_client:
            client.close()
    if not r.is_success:
        raise error_for_status(r.status_code, url=url, reason=r.reason_phrase)
    return r.text


class RequestGateway:
    """
    Rate-limited, retrying page fetches.

    The per-domain rate limit is checked once per fetch and is never retried.
    Transport errors from the fetcher are retried with exponential backoff,
    a fresh random user agent each attempt.
    """

    def __init__(self, context, fetcher: Optional[Fetcher] = None):
        self.context = context
        self.fetcher = fetcher or self._default_fetcher

    def _default_fetcher(self, url: str, user_agent: str, timeout: float) -> str:
        return fetch_html(url, user_agent, timeout, client=self.context.client)

    def fetch(self, url: str) -> str:
        config = self.context.config
        domain = domain_of(url)
        self.context.rate_limits.acquire(domain)

        timeout = config.request_timeout_ms / 1000
        retrying = Retrying(
            stop=stop_after_attempt(config.max_attempts),
            # waits base*2, base*4, ... seconds between attempts
            wait=wait_exponential(multiplier=config.backoff_base_s * 2, max=config.backoff_max_s),
            retry=retry_if_exception_type(TransportError),
            sleep=self.context.sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                n = attempt.retry_state.attempt_number
                user_agent = random.choice(USER_AGENTS)
                logger.debug(f"Fetching {url} (attempt {n}/{config.max_attempts})")
                html = self.fetcher(url, user_agent, timeout)
                html = check_html(html, url)
        logger.info(f"Fetched {url}: {len(html)} characters")
        return html
