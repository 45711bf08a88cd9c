"""
Shopify storefronts. Most themes embed the product as JSON in a
``ProductJson-*`` script (prices in cents) in addition to JSON-LD.
"""
from typing import Optional

from bs4 import BeautifulSoup

from ..parse import clean_text
from . import rules
from .base import PlatformExtractor
from .page import PageContext

PRODUCT_JSON_SELECTORS = (
    'script[id^="ProductJson"]',
    "script[data-product-json]",
    'script[type="application/json"][data-product]',
)


def product_json(page: PageContext) -> dict:
    for selector in PRODUCT_JSON_SELECTORS:
        data = rules.json_script(page, selector)
        if data:
            return data
    return {}


def json_title(page: PageContext) -> Optional[str]:
    return product_json(page).get("title")


def json_vendor(page: PageContext) -> Optional[str]:
    return product_json(page).get("vendor")


def json_price(page: PageContext) -> Optional[float]:
    cents = product_json(page).get("price")
    if cents is None:
        variants = product_json(page).get("variants") or []
        cents = variants[0].get("price") if variants and isinstance(variants[0], dict) else None
    if isinstance(cents, (int, float)):
        return cents / 100
    return None


def json_compare_at(page: PageContext) -> Optional[float]:
    cents = product_json(page).get("compare_at_price")
    return cents / 100 if isinstance(cents, (int, float)) and cents else None


def json_available(page: PageContext) -> Optional[str]:
    available = product_json(page).get("available")
    if available is None:
        return None
    return "in_stock" if available else "out_of_stock"


def json_images(page: PageContext):
    return [img for img in product_json(page).get("images") or [] if isinstance(img, str)] or None


def json_description(page: PageContext) -> Optional[str]:
    description = product_json(page).get("description")
    if not description:
        return None
    return clean_text(BeautifulSoup(description, "lxml").get_text(" "))


def json_category(page: PageContext) -> Optional[str]:
    return product_json(page).get("type") or None


class ShopifyExtractor(PlatformExtractor):
    platform = "shopify"
    default_seller = "Shopify Store"
    confidence_markers = (
        (0.2, ("application/ld+json", "productjson")),
        (0.15, ("product:price:amount", '"price"')),
        (0.1, ("review",)),
        (0.1, ('"available"', "add to cart")),
    )

    name_rules = (rules.jsonld_name, json_title, rules.og_title, rules.h1_text, rules.page_title)
    brand_rules = (rules.jsonld_brand, json_vendor, rules.meta_brand)
    price_rules = (rules.jsonld_price, json_price, rules.meta_price, rules.regex_price_scan)
    original_price_rules = (json_compare_at, rules.regex_list_price)
    availability_rules = (rules.jsonld_availability, json_available, rules.meta_availability,
                          rules.regex_availability)
    image_rules = (rules.jsonld_images, json_images, rules.og_images, rules.image_scan("cdn.shopify.com"))
    description_rules = (rules.jsonld_description, json_description, rules.meta_description)
    seller_rules = (rules.jsonld_seller, json_vendor, rules.site_name)
    category_rules = (rules.jsonld_category, json_category, rules.breadcrumb_category)
