import re
from typing import Optional

from . import rules
from .base import PlatformExtractor
from .page import PageContext


def buy_box_title(page: PageContext) -> Optional[str]:
    return page.text("h1[data-buy-box-listing-title]") or page.text("h1.wt-text-body-01")


def buy_box_price(page: PageContext) -> Optional[str]:
    for selector in (
        '[data-buy-box-region="price"] p.wt-text-title-larger',
        '[data-buy-box-region="price"] p',
        '[data-selector="price-only"]',
        '[data-test-id="listing-price"]',
        ".price-display",
    ):
        text = page.text(selector)
        if text and re.search(r"\d", text):
            # "Price: $19.95" / "Sale Price $19.95"
            match = re.search(r"(?:[A-Z]{2,3})?\s*[$€£¥₹₩]?\s*[\d,]+(?:\.\d+)?\+?", text)
            return match.group(0).rstrip("+").strip() if match else text
    return None


def formatted_price(page: PageContext) -> Optional[str]:
    match = re.search(r'"(?:formatted_price|currency_formatted_short)"\s*:\s*"([^"]+)"', page.html)
    if not match:
        return None
    # Etsy sometimes writes US$19.95
    return match.group(1).replace("US$", "$")


def original_price(page: PageContext) -> Optional[str]:
    return page.text('[data-buy-box-region="price"] .wt-text-strikethrough')


def shop_name(page: PageContext) -> Optional[str]:
    name = page.attr("[data-shop-name]", "data-shop-name")
    if name:
        return name
    name = page.text('[data-buy-box-region="shop-name"] a') or page.text('a[href*="/shop/"]')
    if name:
        return name
    match = re.search(r'"shop_name"\s*:\s*"([^"]+)"', page.html)
    return match.group(1) if match else None


def listing_images(page: PageContext):
    return page.attrs("[data-carousel-image] img, img.carousel-image", "data-src-zoom-image", "src", "data-src") or None


def listing_description(page: PageContext) -> Optional[str]:
    return page.text("[data-product-details-description-text-content]") or page.text("#wt-content-toggle-product-details-read-more")


class EtsyExtractor(PlatformExtractor):
    platform = "etsy"
    default_seller = "Etsy Seller"
    max_price = 50000.0
    title_suffixes = (r"\s*[-|]\s*Etsy.*$",)
    confidence_markers = (
        (0.2, ("application/ld+json",)),
        (0.15, ("data-buy-box-region", "listing-price", "formatted_price")),
        (0.1, ("reviews",)),
        (0.1, ("in stock", "only", "availability")),
    )

    name_rules = (rules.jsonld_name, buy_box_title, rules.og_title, rules.page_title, rules.regex_json_name)
    price_rules = (rules.jsonld_price, buy_box_price, rules.meta_price, formatted_price,
                   rules.regex_json_price, rules.regex_price_scan)
    original_price_rules = (original_price, rules.regex_list_price)
    image_rules = (rules.jsonld_images, listing_images, rules.og_images, rules.image_scan("etsystatic.com"))
    description_rules = (rules.jsonld_description, listing_description, rules.meta_description)
    # Etsy's JSON-LD carries the shop as the product brand
    seller_rules = (rules.jsonld_seller, shop_name, rules.jsonld_brand, rules.regex_json_seller)
