from typing import Dict, Optional

from . import rules
from .base import PlatformExtractor
from .page import PageContext


def sku_title(page: PageContext) -> Optional[str]:
    return page.text(".sku-title h1") or page.text("h1.heading-5")


def customer_price(page: PageContext) -> Optional[str]:
    return page.text('.priceView-customer-price span[aria-hidden="true"]') or page.text(".priceView-customer-price span")


def was_price(page: PageContext) -> Optional[str]:
    return page.text(".pricing-price__regular-price")


def spec_rows(page: PageContext) -> Optional[Dict[str, str]]:
    specs = {}
    for row in page.soup.select(".row-title"):
        value = row.find_next(class_="row-value")
        if value is None:
            continue
        key, val = row.get_text(" ", strip=True), value.get_text(" ", strip=True)
        if key and val:
            specs[key] = val
    return specs or None


def fulfillment(page: PageContext) -> Optional[str]:
    button = page.text(".fulfillment-add-to-cart-button button")
    if not button:
        return None
    if "sold out" in button.lower() or "unavailable" in button.lower():
        return "out_of_stock"
    if "add to cart" in button.lower():
        return "in_stock"
    return None


class BestBuyExtractor(PlatformExtractor):
    platform = "bestbuy"
    default_seller = "Best Buy"
    title_suffixes = (r"\s*[-|]\s*Best Buy.*$",)
    confidence_markers = (
        (0.2, ("application/ld+json",)),
        (0.2, ("priceview-customer-price",)),
        (0.1, ("reviews",)),
        (0.1, ("add to cart", "sold out")),
    )

    name_rules = (rules.jsonld_name, sku_title, rules.og_title, rules.page_title, rules.regex_json_name)
    price_rules = (rules.jsonld_price, customer_price, rules.meta_price, rules.regex_json_price,
                   rules.regex_price_scan)
    original_price_rules = (was_price, rules.regex_list_price)
    availability_rules = (rules.jsonld_availability, fulfillment, rules.meta_availability, rules.regex_availability)
    image_rules = (rules.jsonld_images, rules.og_images, rules.image_scan("pisces.bbystatic.com", "bbystatic.com"))
    specification_rules = (rules.jsonld_specifications, spec_rows, rules.spec_table)
