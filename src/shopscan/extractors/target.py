from typing import Optional

from . import rules
from .base import PlatformExtractor
from .page import PageContext


def product_title(page: PageContext) -> Optional[str]:
    return page.text('h1[data-test="product-title"]')


def product_price(page: PageContext) -> Optional[str]:
    return page.text('[data-test="product-price"]')


def highlights(page: PageContext):
    return page.texts('[data-test="item-details-highlights"] li') or None


def specifications(page: PageContext):
    specs = {}
    for row in page.texts('[data-test="item-details-specifications"] div', limit=40):
        if ":" in row:
            key, value = row.split(":", 1)
            if key.strip() and value.strip():
                specs[key.strip()] = value.strip()
    return specs or None


class TargetExtractor(PlatformExtractor):
    platform = "target"
    default_seller = "Target"
    title_suffixes = (r"\s*:\s*Target.*$",)
    confidence_markers = (
        (0.2, ("application/ld+json",)),
        (0.15, ("product-price",)),
        (0.1, ("ratings", "reviews")),
        (0.1, ("shipping", "in stock", "out of stock")),
    )

    name_rules = (rules.jsonld_name, product_title, rules.og_title, rules.page_title, rules.regex_json_name)
    price_rules = (rules.jsonld_price, product_price, rules.meta_price, rules.regex_json_price,
                   rules.regex_price_scan)
    image_rules = (rules.jsonld_images, rules.og_images, rules.image_scan("target.scene7.com"))
    feature_rules = (highlights, rules.feature_list)
    specification_rules = (rules.jsonld_specifications, specifications, rules.spec_table)
