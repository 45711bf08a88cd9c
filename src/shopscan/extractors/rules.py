"""
Platform-independent extraction rules.

Every rule is a pure function ``PageContext -> Optional[value]``. A rule
returns None when it has nothing to say and raises ExtractionFailure when it
found something it cannot use; the extractor then moves on to the next rule.
Platform modules combine these with their own DOM rules, ordered from the
most structured source to the least.
"""
import json
import re
from typing import Dict, List, Optional

from ..errors import ExtractionFailure
from ..parse import (
    availability_from_schema,
    availability_from_text,
    brand_name,
    clean_text,
    currency_symbol,
    parse_price,
)
from .page import PageContext


# --- structured data (JSON-LD) ---------------------------------------------

def jsonld_name(page: PageContext) -> Optional[str]:
    return page.product.get("name") if page.product else None


def jsonld_brand(page: PageContext) -> Optional[str]:
    return brand_name(page.product) if page.product else None


def jsonld_price(page: PageContext) -> Optional[str]:
    offer = page.offer
    if not offer:
        return None
    price = offer.get("price")
    if price in (None, ""):
        price = offer.get("lowPrice")
    if price in (None, ""):
        spec = offer.get("priceSpecification")
        if isinstance(spec, list):
            spec = spec[0] if spec else None
        if isinstance(spec, dict):
            price = spec.get("price")
    if price in (None, ""):
        return None
    if parse_price(price) is None:
        raise ExtractionFailure(f"unparseable JSON-LD price {price!r}")
    symbol = currency_symbol(offer.get("priceCurrency"))
    return f"{symbol}{price}"


def jsonld_availability(page: PageContext) -> Optional[str]:
    return availability_from_schema(page.offer.get("availability")) if page.offer else None


def jsonld_rating(page: PageContext) -> Optional[float]:
    value = page.aggregate_rating.get("ratingValue")
    if value in (None, ""):
        return None
    return float(str(value).replace(",", "."))


def jsonld_review_count(page: PageContext) -> Optional[int]:
    agg = page.aggregate_rating
    value = agg.get("reviewCount") or agg.get("ratingCount")
    if value in (None, ""):
        return None
    return int(str(value).replace(",", "").split(".")[0])


def jsonld_images(page: PageContext) -> Optional[List[str]]:
    image = page.product.get("image") if page.product else None
    if not image:
        return None
    if not isinstance(image, list):
        image = [image]
    out = []
    for img in image:
        if isinstance(img, dict):
            img = img.get("url") or img.get("contentUrl")
        if isinstance(img, str) and img.strip():
            out.append(img.strip())
    return out or None


def jsonld_description(page: PageContext) -> Optional[str]:
    return page.product.get("description") if page.product else None


def jsonld_seller(page: PageContext) -> Optional[str]:
    seller = page.offer.get("seller") if page.offer else None
    if isinstance(seller, dict):
        seller = seller.get("name")
    return seller if isinstance(seller, str) else None


def jsonld_category(page: PageContext) -> Optional[str]:
    category = page.product.get("category") if page.product else None
    if isinstance(category, dict):
        category = category.get("name")
    if isinstance(category, str) and category.strip():
        # "Home & Garden > Kitchen > Cookware" -> most specific part
        return re.split(r"\s*[>/|]\s*", category.strip())[-1]
    return None


def breadcrumb_category(page: PageContext) -> Optional[str]:
    crumbs = page.buckets["BreadcrumbList"]
    if not crumbs:
        return None
    elements = crumbs[0].get("itemListElement") or []
    named = []
    for el in sorted((e for e in elements if isinstance(e, dict)), key=lambda e: int(e.get("position") or 0)):
        name = el.get("name")
        if not name and isinstance(el.get("item"), dict):
            name = el["item"].get("name")
        if name:
            named.append(clean_text(name))
    if not named:
        return None
    # Breadcrumbs often end with the product itself
    if len(named) > 1 and page.product and named[-1] == clean_text(page.product.get("name", "")):
        return named[-2]
    return named[-1]


def jsonld_specifications(page: PageContext) -> Optional[Dict[str, str]]:
    props = page.product.get("additionalProperty") if page.product else None
    if not isinstance(props, list):
        return None
    specs = {}
    for ap in props:
        if not isinstance(ap, dict):
            continue
        name, value = ap.get("name"), ap.get("value")
        if name and value not in (None, "") and not isinstance(value, (dict, list)):
            specs[clean_text(name)] = clean_text(str(value))
    return specs or None


# --- microdata / generic DOM ------------------------------------------------

def itemprop_name(page: PageContext) -> Optional[str]:
    return page.attr('[itemprop="name"]', "content") or page.text('[itemprop="name"]')


def itemprop_price(page: PageContext) -> Optional[str]:
    price = page.attr('[itemprop="price"]', "content") or page.text('[itemprop="price"]')
    if not price:
        return None
    if any(ch.isdigit() for ch in price) and not re.search(r"[^\d.,\s]", price):
        currency = page.attr('[itemprop="priceCurrency"]', "content")
        return f"{currency_symbol(currency)}{price}"
    return price


def itemprop_availability(page: PageContext) -> Optional[str]:
    value = page.attr('[itemprop="availability"]', "href") or page.attr('[itemprop="availability"]', "content")
    return availability_from_schema(value)


def itemprop_rating(page: PageContext) -> Optional[float]:
    value = page.attr('[itemprop="ratingValue"]', "content") or page.text('[itemprop="ratingValue"]')
    return float(value) if value else None


def itemprop_review_count(page: PageContext) -> Optional[int]:
    value = page.attr('[itemprop="reviewCount"]', "content") or page.text('[itemprop="reviewCount"]')
    return int(re.sub(r"[^\d]", "", value)) if value and re.search(r"\d", value) else None


def h1_text(page: PageContext) -> Optional[str]:
    return page.text("h1")


def feature_list(page: PageContext) -> Optional[List[str]]:
    return page.texts('[id*="feature"] li, [class*="feature"] li, [class*="highlights"] li') or None


def spec_table(page: PageContext) -> Optional[Dict[str, str]]:
    specs = {}
    for row in page.soup.select('[id*="spec"] tr, [class*="spec"] tr, [id*="detail"] tr, [class*="detail"] tr'):
        cells = row.find_all(["th", "td"])
        if len(cells) >= 2:
            key = clean_text(cells[0].get_text(" "))
            value = clean_text(cells[1].get_text(" "))
            if key and value:
                specs[key] = value
        if len(specs) >= 30:
            break
    if not specs:
        for dl in page.soup.select('[id*="spec"] dl, [class*="spec"] dl'):
            for dt, dd in zip(dl.find_all("dt"), dl.find_all("dd")):
                key, value = clean_text(dt.get_text(" ")), clean_text(dd.get_text(" "))
                if key and value:
                    specs[key] = value
    return specs or None


# --- meta tags ----------------------------------------------------------------

def og_title(page: PageContext) -> Optional[str]:
    return page.meta("og:title") or page.meta("twitter:title")


def page_title(page: PageContext) -> Optional[str]:
    return page.text("title")


def meta_brand(page: PageContext) -> Optional[str]:
    return page.meta("product:brand") or page.meta("og:brand")


def meta_price(page: PageContext) -> Optional[str]:
    amount = page.meta("product:price:amount") or page.meta("og:price:amount")
    if not amount:
        return None
    currency = page.meta("product:price:currency") or page.meta("og:price:currency")
    return f"{currency_symbol(currency)}{amount}"


def meta_availability(page: PageContext) -> Optional[str]:
    value = page.meta("product:availability") or page.meta("og:availability")
    return availability_from_schema(value) or availability_from_text(value or "")


def og_images(page: PageContext) -> Optional[List[str]]:
    return page.meta_all("og:image") or None


def meta_description(page: PageContext) -> Optional[str]:
    return page.meta("og:description") or page.meta("description")


def site_name(page: PageContext) -> Optional[str]:
    return page.meta("og:site_name")


# --- raw markup regex scans ---------------------------------------------------

def _search(pattern: str, html: str, flags=re.I) -> Optional[str]:
    match = re.search(pattern, html, flags)
    return clean_text(match.group(1)) if match else None


def regex_json_name(page: PageContext) -> Optional[str]:
    return _search(r'"name"\s*:\s*"([^"]+)"', page.html)


def regex_json_brand(page: PageContext) -> Optional[str]:
    return _search(r'"brand"\s*:\s*"([^"]+)"', page.html)


def regex_json_price(page: PageContext) -> Optional[str]:
    raw = _search(r'"price"\s*:\s*"?(\$?[\d,]+(?:\.\d+)?)"?', page.html)
    if not raw:
        return None
    return raw if raw.startswith("$") else f"${raw}"


def regex_list_price(page: PageContext) -> Optional[str]:
    raw = _search(r'"(?:listPrice|wasPrice|original_price|compare_at_price|compareAtPrice)"\s*:\s*"?(\$?[\d,]+(?:\.\d+)?)"?', page.html)
    if not raw:
        return None
    return raw if raw.startswith("$") else f"${raw}"


def regex_price_scan(page: PageContext) -> Optional[str]:
    """Smallest plausible dollar amount anywhere in the markup."""
    patterns = [
        r"\$[\d,]+\.?\d{0,2}",
        r"[\d,]+\.?\d{0,2}\s*USD",
        r"Price:\s*\$?[\d,]+\.?\d{0,2}",
    ]
    for pattern in patterns:
        prices = re.findall(pattern, page.html, re.I)
        values = sorted(
            v for v in (parse_price(p) for p in prices)
            if v is not None and 1 < v < 10000
        )
        if values:
            return f"${values[0]:.2f}"
    return None


def regex_stars_rating(page: PageContext) -> Optional[float]:
    value = _search(r"(\d+(?:\.\d+)?)\s*out of 5 stars", page.html)
    return float(value) if value else None


def embedded_rating(page: PageContext) -> Optional[float]:
    found = page.embedded_ratings
    return found[0] if found else None


def embedded_review_count(page: PageContext) -> Optional[int]:
    found = page.embedded_ratings
    return found[1] if found else None


def regex_review_count(page: PageContext) -> Optional[int]:
    value = _search(r"(\d[\d,]*)\s+(?:customer\s+)?(?:reviews?|ratings?)\b", page.html)
    return int(value.replace(",", "")) if value else None


def regex_json_seller(page: PageContext) -> Optional[str]:
    return _search(r'"(?:seller|sellerName|seller_name)"\s*:\s*"([^"]+)"', page.html)


def regex_positive_feedback(page: PageContext) -> Optional[float]:
    value = _search(r"(\d+(?:\.\d+)?)%\s*positive", page.html)
    return float(value) if value else None


def regex_json_category(page: PageContext) -> Optional[str]:
    return _search(r'"category"\s*:\s*"([^"]+)"', page.html)


def regex_availability(page: PageContext) -> Optional[str]:
    return availability_from_text(page.lower)


def image_scan(*hosts: str):
    """Build a rule collecting image URLs served from the given CDN hosts."""
    def rule(page: PageContext) -> Optional[List[str]]:
        urls = re.findall(r"https://[^\"'\s)]*\.(?:jpg|jpeg|png|webp)[^\"'\s)]*", page.html, re.I)
        out = []
        for u in urls:
            if any(h in u for h in hosts) and "logo" not in u and "icon" not in u and u not in out:
                out.append(u)
        return out or None
    rule.__name__ = f"image_scan({', '.join(hosts)})"
    return rule


def json_script(page: PageContext, selector: str) -> Optional[dict]:
    """Parse the JSON body of the first <script> matching a selector."""
    el = page.soup.select_one(selector)
    if el is None:
        return None
    try:
        data = json.loads(el.string or el.get_text() or "")
    except ValueError as e:
        raise ExtractionFailure(f"invalid JSON in {selector}: {e}")
    return data if isinstance(data, dict) else None
