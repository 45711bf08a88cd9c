import extruct
from bs4 import BeautifulSoup
import html as htmllib
import json
import logging
import math
import re
from typing import Optional, Tuple
from w3lib.html import get_base_url

from .config import GENERIC_TITLES

logger = logging.getLogger(__name__)

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CNY": "¥",
    "INR": "₹",
    "KRW": "₩",
}

# Characters the validator accepts as a currency prefix
CURRENCY_SYMBOL_CHARS = "$€£¥₹₩"

DEFAULT_PRICE = "$0.00"


def extract_jsonld(html: str, url: str = ""):
    """Return every JSON-LD item on the page, with @graph containers flattened."""
    if not html or not html.strip():
        return []
    try:
        base_url = get_base_url(html, url)
        data = extruct.extract(html, base_url=base_url, syntaxes=["json-ld"], errors="ignore")
    except Exception as e:
        logger.debug(f"JSON-LD extraction failed for {url or '<html>'}: {e}")
        return []

    items = []
    for it in data.get("json-ld", []) or []:
        if not isinstance(it, dict):
            continue
        graph = it.get("@graph")
        if isinstance(graph, list):
            items.extend(g for g in graph if isinstance(g, dict))
        else:
            items.append(it)
    return items


def classify_schema(items):
    buckets = {"Product": [], "Offer": [], "ProductGroup": [], "AggregateRating": [], "BreadcrumbList": []}
    for it in items:
        t = it.get("@type")
        if isinstance(t, list):
            t = next((x for x in t if isinstance(x, str)), None)
        if not isinstance(t, str):
            continue
        if t in buckets:
            buckets[t].append(it)
    return buckets


def brand_name(p) -> Optional[str]:
    brand = p.get("brand")
    if isinstance(brand, list):
        brand = brand[0] if brand else None
    if isinstance(brand, dict):
        brand = brand.get("name")
    return brand if isinstance(brand, str) and brand.strip() else None


def first_offer(p) -> dict:
    """First Offer (or AggregateOffer) dict attached to a Product, or {}."""
    offers = p.get("offers")
    if isinstance(offers, list):
        offers = next((o for o in offers if isinstance(o, dict)), None)
    if isinstance(offers, dict):
        # AggregateOffer may nest concrete offers
        nested = offers.get("offers")
        if "price" not in offers and "lowPrice" not in offers and isinstance(nested, list) and nested:
            return nested[0] if isinstance(nested[0], dict) else offers
        return offers
    return {}


def clean_text(text: str) -> str:
    if text is None:
        return ""
    text = htmllib.unescape(str(text))
    return re.sub(r"\s+", " ", text).strip()


def parse_price(raw) -> Optional[float]:
    """
    Parse a price-like value ("$1,299.00", "19.95", 42, "USD 7") into a float.
    Returns None for anything without a finite number in it.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
        return value if math.isfinite(value) else None
    match = re.search(r"\d[\d,]*(?:\.\d+)?|\.\d+", str(raw))
    if not match:
        return None
    try:
        value = float(match.group(0).replace(",", ""))
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def currency_symbol(code: Optional[str]) -> str:
    if not code:
        return "$"
    code = code.strip()
    if code and code[0] in CURRENCY_SYMBOL_CHARS:
        return code[0]
    return CURRENCY_SYMBOLS.get(code.upper(), f"{code.upper()} ")


def detect_currency(raw: str) -> Optional[str]:
    """Currency symbol written inside a raw price string, if any."""
    if not raw:
        return None
    for ch in str(raw):
        if ch in CURRENCY_SYMBOL_CHARS:
            return ch
    match = re.match(r"\s*([A-Z]{3})\s", str(raw))
    if match:
        return CURRENCY_SYMBOLS.get(match.group(1), f"{match.group(1)} ")
    match = re.search(r"\b([A-Z]{3})\b", str(raw))
    if match and match.group(1) in CURRENCY_SYMBOLS:
        return CURRENCY_SYMBOLS[match.group(1)]
    return None


def format_price(value: float, symbol: str = "$") -> str:
    return f"{symbol}{value:,.2f}"


def is_generic_title(title: str) -> bool:
    lowered = (title or "").lower()
    return any(generic in lowered for generic in GENERIC_TITLES)


def availability_from_schema(value) -> Optional[str]:
    """Map a schema.org availability URL/token (or boolean) to an availability value."""
    if isinstance(value, bool):
        return "in_stock" if value else "out_of_stock"
    if not isinstance(value, str) or not value.strip():
        return None
    token = value.rsplit("/", 1)[-1].lower().replace("_", "").replace(" ", "")
    if token in ("outofstock", "soldout", "discontinued", "oos"):
        return "out_of_stock"
    if token in ("limitedavailability", "limited"):
        return "limited"
    if token in ("instock", "onlineonly", "instoreonly", "preorder", "presale", "backorder"):
        return "in_stock"
    return None


def availability_from_text(text: str) -> Optional[str]:
    """Best-effort availability from visible page text."""
    if not text:
        return None
    lowered = text.lower()
    if re.search(r"out of stock|sold out|currently unavailable|no longer available", lowered):
        return "out_of_stock"
    if re.search(r"only \d+ left|few left|limited (?:stock|quantity|availability)", lowered):
        return "limited"
    if re.search(r"\bin stock\b|add to cart|available now", lowered):
        return "in_stock"
    return None


def extract_meta(soup: BeautifulSoup, key: str) -> Optional[str]:
    """Content of <meta property=key> or <meta name=key>."""
    tag = soup.find("meta", attrs={"property": key}) or soup.find("meta", attrs={"name": key})
    if tag and tag.get("content"):
        return clean_text(tag["content"])
    return None


def extract_ratings_fallback(html: str) -> Optional[Tuple[float, Optional[int], str]]:
    """
    Attempt to extract rating value and count from embedded, non-JSON-LD sources
    available in the initial HTML (no JS execution):
      - script[type="application/json"] blobs (e.g., Next/SPA payloads)
      - Inline JS assignments (limited patterns), e.g., window.__INITIAL_STATE__

    Returns a tuple (rating_value, rating_count, source) or None if not found.
    """
    soup = BeautifulSoup(html, "lxml")

    def scan_obj(obj):
        rating = None
        count = None

        rating_keys = {"ratingValue", "averageScore", "averageRating", "rating", "score"}
        count_keys = {"ratingCount", "reviewCount", "numberOfReviews", "numberOfRatings", "num_reviews"}

        def _recurse(o):
            nonlocal rating, count
            if isinstance(o, dict):
                for rk in rating_keys:
                    if rk in o and isinstance(o[rk], (int, float, str)) and rating is None:
                        try:
                            rating = float(str(o[rk]).replace(",", "."))
                        except ValueError:
                            pass
                for ck in count_keys:
                    if ck in o and isinstance(o[ck], (int, float, str)) and count is None:
                        try:
                            count = int(str(o[ck]).split(".")[0].replace(" ", "").replace(",", ""))
                        except ValueError:
                            pass
                if rating is not None and count is not None:
                    return
                for v in o.values():
                    _recurse(v)
            elif isinstance(o, list):
                for it in o:
                    _recurse(it)

        _recurse(obj)
        return rating, count

    # 1) Embedded JSON blobs
    for sc in soup.find_all("script", attrs={"type": "application/json"}):
        txt = sc.string or sc.get_text() or ""
        if not txt.strip():
            continue
        try:
            data = json.loads(txt)
        except ValueError:
            continue
        r, c = scan_obj(data)
        if r is not None:
            return r, c, "application/json"

    # 2) JSON literals from well-known JS variable assignments
    js_var_patterns = [
        r'window\.__NEXT_DATA__\s*=\s*({.+?});',
        r'window\.__INITIAL_STATE__\s*=\s*({.+?});',
        r'window\.__PRELOADED_STATE__\s*=\s*({.+?});',
    ]
    for pattern in js_var_patterns:
        match = re.search(pattern, html, re.DOTALL)
        if match:
            try:
                data = json.loads(match.group(1))
            except ValueError:
                continue
            r, c = scan_obj(data)
            if r is not None:
                return r, c, "inline_js"

    # 3) Quick-win regexes for numeric values (less reliable)
    js_rating_patterns = [
        r'"averageRating"\s*:\s*"?([0-9]+(?:\.[0-9]+)?)',
        r'"ratingValue"\s*:\s*"?([0-9]+(?:\.[0-9]+)?)',
    ]
    js_count_patterns = [
        r'"reviewCount"\s*:\s*"?([0-9]+)',
        r'"ratingCount"\s*:\s*"?([0-9]+)',
        r'"numberOfReviews"\s*:\s*"?([0-9]+)',
    ]
    rating_match = next((m.group(1) for m in (re.search(p, html) for p in js_rating_patterns) if m), None)
    count_match = next((m.group(1) for m in (re.search(p, html) for p in js_count_patterns) if m), None)
    if rating_match:
        return float(rating_match), (int(count_match) if count_match else None), "inline_js"

    return None
