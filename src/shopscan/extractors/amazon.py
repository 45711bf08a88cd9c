import re
from typing import Dict, Optional

from ..parse import availability_from_text, clean_text
from . import rules
from .base import PlatformExtractor
from .page import PageContext


def product_title(page: PageContext) -> Optional[str]:
    return page.text("#productTitle") or page.text("#title")


def byline_brand(page: PageContext) -> Optional[str]:
    text = page.text("#bylineInfo")
    if not text:
        return None
    text = re.sub(r"^(Visit the|Brand:)\s*", "", text, flags=re.I)
    return re.sub(r"\s+Store$", "", text, flags=re.I).strip() or None


def offscreen_price(page: PageContext) -> Optional[str]:
    for selector in (
        "#corePrice_feature_div .a-price .a-offscreen",
        "#corePriceDisplay_desktop_feature_div .a-price .a-offscreen",
        ".a-price:not(.a-text-price) .a-offscreen",
        "#priceblock_ourprice",
        "#priceblock_dealprice",
        "#price_inside_buybox",
    ):
        text = page.text(selector)
        if text and re.search(r"\d", text):
            return text
    return None


def whole_fraction_price(page: PageContext) -> Optional[str]:
    whole = page.text(".a-price-whole")
    if not whole:
        return None
    fraction = page.text(".a-price-fraction") or "00"
    symbol = page.text(".a-price-symbol") or "$"
    return f"{symbol}{whole.rstrip('.')}.{fraction}"


def strike_price(page: PageContext) -> Optional[str]:
    return (page.text(".a-price.a-text-price .a-offscreen")
            or page.text(".a-price-was .a-offscreen")
            or page.text(".a-text-strike"))


def availability_block(page: PageContext) -> Optional[str]:
    return availability_from_text(page.text("#availability") or "")


def popover_rating(page: PageContext) -> Optional[float]:
    text = page.attr("#acrPopover", "title") or page.text("#acrPopover .a-icon-alt") or page.text("span.a-icon-alt")
    match = re.search(r"(\d+(?:\.\d+)?)\s*out of 5", text or "")
    return float(match.group(1)) if match else None


def customer_review_count(page: PageContext) -> Optional[int]:
    text = page.text("#acrCustomerReviewText")
    match = re.search(r"(\d[\d,]*)", text or "")
    return int(match.group(1).replace(",", "")) if match else None


def gallery_images(page: PageContext):
    images = page.attrs("#landingImage", "data-old-hires", "src")
    images += page.attrs("#altImages img", "src")
    return images or None


def product_description(page: PageContext) -> Optional[str]:
    return page.text("#productDescription")


def sold_by(page: PageContext) -> Optional[str]:
    return page.text("#sellerProfileTriggerId") or page.text("#merchant-info a")


def seller_rating_percent(page: PageContext) -> Optional[float]:
    match = re.search(r"seller rating[^0-9]*(\d+)%", page.html, re.I)
    return float(match.group(1)) if match else None


def wayfinding_category(page: PageContext) -> Optional[str]:
    crumbs = page.texts("#wayfinding-breadcrumbs_feature_div li a", limit=10)
    return crumbs[-1] if crumbs else None


def feature_bullets(page: PageContext):
    return page.texts("#feature-bullets li span.a-list-item") or page.texts("#feature-bullets li") or None


def detail_tables(page: PageContext) -> Optional[Dict[str, str]]:
    specs = {}
    for row in page.soup.select("#productDetails_techSpec_section_1 tr, #productDetails_detailBullets_sections1 tr"):
        th, td = row.find("th"), row.find("td")
        if th and td:
            specs[clean_text(th.get_text(" "))] = clean_text(td.get_text(" "))
    for li in page.soup.select("#detailBullets_feature_div li"):
        text = clean_text(li.get_text(" "))
        if ":" in text:
            key, value = text.split(":", 1)
            key = key.strip(" ‏‎")
            if key and value.strip():
                specs[key] = value.strip()
    return specs or None


class AmazonExtractor(PlatformExtractor):
    platform = "amazon"
    default_seller = "Amazon"
    title_suffixes = (r"\s*[-|:]\s*Amazon\.com.*$",)
    confidence_markers = (
        (0.2, ("productTitle", "product-title")),
        (0.2, ("a-price",)),
        (0.1, ("reviews",)),
        (0.1, ("in stock",)),
    )

    name_rules = (rules.jsonld_name, product_title, rules.og_title, rules.page_title, rules.regex_json_name)
    brand_rules = (rules.jsonld_brand, byline_brand, rules.meta_brand, rules.regex_json_brand)
    price_rules = (rules.jsonld_price, offscreen_price, whole_fraction_price, rules.meta_price,
                   rules.regex_json_price, rules.regex_price_scan)
    original_price_rules = (strike_price, rules.regex_list_price)
    availability_rules = (rules.jsonld_availability, availability_block, rules.meta_availability,
                          rules.regex_availability)
    rating_rules = (rules.jsonld_rating, popover_rating, rules.embedded_rating, rules.regex_stars_rating)
    review_count_rules = (rules.jsonld_review_count, customer_review_count, rules.embedded_review_count,
                          rules.regex_review_count)
    image_rules = (rules.jsonld_images, gallery_images, rules.og_images,
                   rules.image_scan("images-amazon.com", "media-amazon.com"))
    description_rules = (rules.jsonld_description, product_description, rules.meta_description)
    seller_rules = (rules.jsonld_seller, sold_by, rules.regex_json_seller)
    seller_rating_rules = (seller_rating_percent, rules.regex_positive_feedback)
    category_rules = (rules.jsonld_category, wayfinding_category, rules.breadcrumb_category,
                      rules.regex_json_category)
    feature_rules = (feature_bullets, rules.feature_list)
    specification_rules = (rules.jsonld_specifications, detail_tables, rules.spec_table)
