"""
Platform detection from listing URLs.

Platform tags are the values stored in ScrapedProduct.source and used as
keys for per-platform metrics and validation rules.
"""
import re
from urllib.parse import urlparse

# tag -> host substrings that identify it
PLATFORM_HOSTS = {
    "amazon": ("amazon.",),
    "ebay": ("ebay.",),
    "etsy": ("etsy.com",),
    "walmart": ("walmart.com",),
    "target": ("target.com",),
    "bestbuy": ("bestbuy.com",),
    "shopify": ("myshopify.com",),
}

# How each platform tends to be written in free text (seller names etc.)
PLATFORM_TEXT_PATTERNS = {
    "amazon": re.compile(r"\bamazon\b", re.I),
    "ebay": re.compile(r"\bebay\b", re.I),
    "etsy": re.compile(r"\betsy\b", re.I),
    "walmart": re.compile(r"\bwalmart\b", re.I),
    "target": re.compile(r"\btarget\.com\b", re.I),
    "bestbuy": re.compile(r"\bbest\s?buy\b", re.I),
}


def domain_of(url: str) -> str:
    """Lower-cased host without a leading www., or 'unknown' when unparseable."""
    try:
        host = urlparse(url).hostname
    except ValueError:
        return "unknown"
    if not host:
        return "unknown"
    host = host.lower()
    if host.startswith("www."):
        host = host[4:]
    return host


def platform_from_url(url: str) -> str:
    host = domain_of(url)
    if host == "unknown":
        return "unknown"
    for platform, needles in PLATFORM_HOSTS.items():
        if any(n in host for n in needles):
            return platform
    return "other"


def platforms_mentioned(text: str):
    """Known platform tags named in a piece of free text."""
    if not text:
        return []
    return [tag for tag, pat in PLATFORM_TEXT_PATTERNS.items() if pat.search(text)]
