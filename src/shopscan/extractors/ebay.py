import re
from typing import Dict, Optional

from ..parse import availability_from_text, clean_text
from . import rules
from .base import PlatformExtractor
from .page import PageContext


def item_title(page: PageContext) -> Optional[str]:
    text = page.text("h1.x-item-title__mainTitle") or page.text("#itemTitle")
    if text:
        text = re.sub(r"^Details about\s*", "", text, flags=re.I)
    return text


def primary_price(page: PageContext) -> Optional[str]:
    return (page.text(".x-price-primary .ux-textspans")
            or page.text(".x-price-primary")
            or page.text("#prcIsum")
            or page.text("#mm-saleDscPrc"))


def strikethrough_price(page: PageContext) -> Optional[str]:
    return page.text(".ux-textspans--STRIKETHROUGH") or page.text("#orgPrc")


def quantity_availability(page: PageContext) -> Optional[str]:
    text = page.text(".d-quantity__availability") or page.text("#qtySubTxt")
    return availability_from_text(text or "")


def carousel_images(page: PageContext):
    return page.attrs(".ux-image-carousel-item img", "data-zoom-src", "src", "data-src") or None


def seller_card(page: PageContext) -> Optional[str]:
    return (page.text(".x-sellercard-atf__info__about-seller a span")
            or page.text(".ux-seller-section__item--seller a span")
            or page.text(".mbg-nw"))


def breadcrumbs(page: PageContext) -> Optional[str]:
    crumbs = page.texts("nav.breadcrumbs li a, .seo-breadcrumb-text span", limit=10)
    return crumbs[-1] if crumbs else None


def item_specifics(page: PageContext) -> Optional[Dict[str, str]]:
    specs = {}
    for block in page.soup.select(".ux-labels-values"):
        label = block.select_one(".ux-labels-values__labels")
        value = block.select_one(".ux-labels-values__values")
        if label and value:
            key = clean_text(label.get_text(" ")).rstrip(":")
            val = clean_text(value.get_text(" "))
            if key and val:
                specs[key] = val
    return specs or None


class EbayExtractor(PlatformExtractor):
    platform = "ebay"
    default_seller = "eBay Seller"
    title_suffixes = (r"\s*\|\s*eBay.*$",)
    confidence_markers = (
        (0.2, ("application/ld+json",)),
        (0.2, ("x-price-primary", "prcisum")),
        (0.1, ("feedback", "reviews")),
        (0.1, ("d-quantity__availability", "available")),
    )

    name_rules = (rules.jsonld_name, item_title, rules.og_title, rules.page_title, rules.regex_json_name)
    price_rules = (rules.jsonld_price, primary_price, rules.itemprop_price, rules.meta_price,
                   rules.regex_json_price, rules.regex_price_scan)
    original_price_rules = (strikethrough_price, rules.regex_list_price)
    availability_rules = (rules.jsonld_availability, quantity_availability, rules.itemprop_availability,
                          rules.regex_availability)
    image_rules = (rules.jsonld_images, carousel_images, rules.og_images, rules.image_scan("ebayimg.com"))
    seller_rules = (rules.jsonld_seller, seller_card, rules.regex_json_seller)
    category_rules = (rules.jsonld_category, rules.breadcrumb_category, breadcrumbs, rules.regex_json_category)
    specification_rules = (rules.jsonld_specifications, item_specifics, rules.spec_table)
