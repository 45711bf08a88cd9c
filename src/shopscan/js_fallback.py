import logging

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from .errors import HttpError, Timeout, error_for_status
from .fetch import build_headers

logger = logging.getLogger(__name__)

# Page renderer for storefronts that build the product block client-side.
# Same signature as the default fetcher, so it plugs into RequestGateway:
# 1) Render page with Playwright (Chromium), wait for network idle
# 2) Map navigation failures and non-2xx responses onto TransportError
# 3) Return the rendered DOM for the normal extractor ladder


def render_html(url: str, user_agent: str, timeout: float) -> str:
    timeout_ms = int(timeout * 1000)
    headers = build_headers(url, user_agent)
    headers.pop("User-Agent", None)
    try:
        with sync_playwright() as p:
            browser = p.chromium.launch(headless=True)
            try:
                context = browser.new_context(user_agent=user_agent, extra_http_headers=headers)
                page = context.new_page()
                response = page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
                if response is not None and not response.ok:
                    raise error_for_status(response.status, url=url, reason=response.status_text)
                try:
                    page.wait_for_load_state("networkidle", timeout=timeout_ms)
                except PlaywrightTimeoutError:
                    # If networkidle never comes, proceed with current DOM
                    logger.debug(f"networkidle not reached for {url}, using current DOM")
                html = page.content()
            finally:
                browser.close()
    except PlaywrightTimeoutError as e:
        raise Timeout(f"Render timeout: {e}", url=url) from e
    except PlaywrightError as e:
        raise HttpError(f"Render failed: {e}", url=url) from e
    logger.debug(f"Rendered {url}: {len(html)} characters")
    return html
