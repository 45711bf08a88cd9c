from typing import Optional

from . import rules
from .base import PlatformExtractor
from .page import PageContext


def next_data_product(page: PageContext) -> dict:
    data = rules.json_script(page, "script#__NEXT_DATA__") or {}
    product = (((data.get("props") or {}).get("pageProps") or {}).get("initialData") or {}).get("data") or {}
    return product.get("product") or {}


def next_data_name(page: PageContext) -> Optional[str]:
    return next_data_product(page).get("name")


def next_data_price(page: PageContext) -> Optional[str]:
    price_info = next_data_product(page).get("priceInfo") or {}
    current = price_info.get("currentPrice") or {}
    return current.get("priceString") or current.get("price")


def next_data_brand(page: PageContext) -> Optional[str]:
    return next_data_product(page).get("brand")


def next_data_seller(page: PageContext) -> Optional[str]:
    return next_data_product(page).get("sellerDisplayName") or next_data_product(page).get("sellerName")


def price_wrap(page: PageContext) -> Optional[str]:
    return page.text('[itemprop="price"]') or page.text('[data-testid="price-wrap"] span')


def product_heading(page: PageContext) -> Optional[str]:
    return page.text('h1[itemprop="name"]') or page.text("h1#main-title")


class WalmartExtractor(PlatformExtractor):
    platform = "walmart"
    default_seller = "Walmart"
    title_suffixes = (r"\s*[-|]\s*Walmart\.com.*$",)
    confidence_markers = (
        (0.2, ("application/ld+json", "__next_data__")),
        (0.15, ('itemprop="price"', "price-wrap", "currentprice")),
        (0.1, ("reviews",)),
        (0.1, ("add to cart", "out of stock")),
    )

    name_rules = (rules.jsonld_name, next_data_name, product_heading, rules.og_title, rules.page_title)
    brand_rules = (rules.jsonld_brand, next_data_brand, rules.meta_brand, rules.regex_json_brand)
    price_rules = (rules.jsonld_price, next_data_price, price_wrap, rules.meta_price,
                   rules.regex_json_price, rules.regex_price_scan)
    seller_rules = (rules.jsonld_seller, next_data_seller, rules.regex_json_seller)
    image_rules = (rules.jsonld_images, rules.og_images, rules.image_scan("walmartimages.com"))
