import logging
import re
from typing import Callable, Optional, Sequence

from ..config import MIN_TITLE_LENGTH
from ..errors import ExtractionFailure
from ..models import AVAILABILITY_VALUES, ScrapedProduct, utcnow
from ..parse import DEFAULT_PRICE, clean_text, detect_currency, format_price, is_generic_title, parse_price
from ..platforms import platform_from_url
from . import rules
from .page import PageContext

logger = logging.getLogger(__name__)

Rule = Callable[[PageContext], object]

DEFAULTS = {
    "name": "Unknown Product",
    "brand": "Unknown Brand",
    "price": DEFAULT_PRICE,
    "availability": "unknown",
    "description": "No description available",
    "category": "General",
}

MAX_IMAGES = 10
MAX_FEATURES = 10


class PlatformExtractor:
    """
    Turns raw product-page markup into a ScrapedProduct.

    Each field is filled by walking an ordered tuple of rules (structured
    data, platform DOM, meta tags, raw regex). The first value that passes
    the field's sanity check wins; if none does, the field gets its default.
    Subclasses swap in their own rule tuples, bounds and confidence markers.
    """

    platform = "other"
    default_seller = "Unknown Seller"
    currency = "$"
    min_price = 0.01
    max_price = 50000.0
    # regexes stripped from the end of page titles
    title_suffixes: Sequence[str] = ()

    # (increment, markers): increment applies when any marker is in the lower-cased html
    confidence_markers: Sequence = (
        (0.2, ("application/ld+json",)),
        (0.15, ('itemprop="price"', "product:price:amount", '"price"')),
        (0.1, ("review",)),
        (0.1, ("availability", "in stock")),
    )

    name_rules: Sequence[Rule] = (rules.jsonld_name, rules.itemprop_name, rules.h1_text, rules.og_title,
                                  rules.page_title, rules.regex_json_name)
    brand_rules: Sequence[Rule] = (rules.jsonld_brand, rules.meta_brand, rules.regex_json_brand)
    price_rules: Sequence[Rule] = (rules.jsonld_price, rules.itemprop_price, rules.meta_price,
                                   rules.regex_json_price, rules.regex_price_scan)
    original_price_rules: Sequence[Rule] = (rules.regex_list_price,)
    availability_rules: Sequence[Rule] = (rules.jsonld_availability, rules.itemprop_availability,
                                          rules.meta_availability, rules.regex_availability)
    rating_rules: Sequence[Rule] = (rules.jsonld_rating, rules.itemprop_rating, rules.embedded_rating,
                                    rules.regex_stars_rating)
    review_count_rules: Sequence[Rule] = (rules.jsonld_review_count, rules.itemprop_review_count,
                                          rules.embedded_review_count, rules.regex_review_count)
    image_rules: Sequence[Rule] = (rules.jsonld_images, rules.og_images)
    description_rules: Sequence[Rule] = (rules.jsonld_description, rules.meta_description)
    seller_rules: Sequence[Rule] = (rules.jsonld_seller, rules.regex_json_seller, rules.site_name)
    seller_rating_rules: Sequence[Rule] = (rules.regex_positive_feedback,)
    category_rules: Sequence[Rule] = (rules.jsonld_category, rules.breadcrumb_category, rules.regex_json_category)
    feature_rules: Sequence[Rule] = (rules.feature_list,)
    specification_rules: Sequence[Rule] = (rules.jsonld_specifications, rules.spec_table)

    def matches(self, url: str) -> bool:
        return platform_from_url(url) == self.platform

    def extract(self, html: str, url: str = "") -> ScrapedProduct:
        page = PageContext(html, url)

        name = self._first("name", self.name_rules, page, self._accept_title)
        price = self._first("price", self.price_rules, page, self.normalize_price)
        if name is None:
            logger.warning(f"[{self.platform}] could not extract product title for {url or '<html>'}")
        if price is None:
            logger.warning(f"[{self.platform}] could not extract price for {url or '<html>'}")

        product = ScrapedProduct(
            name=name or DEFAULTS["name"],
            brand=self._first("brand", self.brand_rules, page, self._accept_text) or DEFAULTS["brand"],
            price=price or DEFAULTS["price"],
            original_price=self._first("original_price", self.original_price_rules, page, self.normalize_price),
            availability=self._first("availability", self.availability_rules, page, self._accept_availability)
            or DEFAULTS["availability"],
            rating=self._first("rating", self.rating_rules, page, self._accept_rating),
            review_count=self._first("review_count", self.review_count_rules, page, self._accept_count),
            images=self._first("images", self.image_rules, page, self._accept_images) or [],
            description=self._first("description", self.description_rules, page, self._accept_text)
            or DEFAULTS["description"],
            seller=self._first("seller", self.seller_rules, page, self._accept_text) or self.default_seller,
            seller_rating=self._first("seller_rating", self.seller_rating_rules, page, self._accept_seller_rating),
            category=self._first("category", self.category_rules, page, self._accept_text) or DEFAULTS["category"],
            features=self._first("features", self.feature_rules, page, self._accept_features) or [],
            specifications=self._first("specifications", self.specification_rules, page, self._accept_specs) or {},
            last_updated=utcnow(),
            source=self.platform,
            confidence=self.calculate_confidence(page),
        )
        logger.info(f"[{self.platform}] extracted {product.name[:60]!r} at {product.price} "
                    f"(extractor confidence {product.confidence:.2f})")
        return product

    def calculate_confidence(self, page: PageContext) -> float:
        confidence = 0.5
        for increment, markers in self.confidence_markers:
            if any(m.lower() in page.lower for m in markers):
                confidence += increment
        return round(min(confidence, 1.0), 2)

    def _first(self, field: str, field_rules: Sequence[Rule], page: PageContext, accept):
        for rule in field_rules:
            name = getattr(rule, "__name__", repr(rule))
            try:
                value = rule(page)
            except ExtractionFailure as e:
                logger.debug(f"[{self.platform}] {field} rule {name}: {e}")
                continue
            except Exception as e:
                logger.warning(f"[{self.platform}] {field} rule {name} failed: {e}")
                continue
            if value is None:
                continue
            accepted = accept(value)
            if accepted is not None:
                logger.debug(f"[{self.platform}] {field} <- {name}")
                return accepted
            logger.debug(f"[{self.platform}] {field} rule {name} value rejected: {value!r}")
        return None

    # --- sanity checks; each returns the normalised value or None ---

    def _accept_title(self, value) -> Optional[str]:
        title = clean_text(value)
        for suffix in self.title_suffixes:
            title = re.sub(suffix, "", title, flags=re.I).strip()
        if len(title) <= MIN_TITLE_LENGTH or is_generic_title(title):
            return None
        return title

    def normalize_price(self, value) -> Optional[str]:
        """Format a raw price for this platform, or None when it falls outside (min_price, max_price)."""
        amount = parse_price(value)
        if amount is None or not (self.min_price < amount < self.max_price):
            return None
        symbol = None if isinstance(value, (int, float)) else detect_currency(str(value))
        return format_price(amount, symbol or self.currency)

    def _accept_text(self, value) -> Optional[str]:
        text = clean_text(value) if isinstance(value, str) else None
        return text or None

    def _accept_availability(self, value) -> Optional[str]:
        return value if value in AVAILABILITY_VALUES and value != "unknown" else None

    def _accept_rating(self, value) -> Optional[float]:
        try:
            rating = float(value)
        except (TypeError, ValueError):
            return None
        return rating if 0 < rating <= 5 else None

    def _accept_count(self, value) -> Optional[int]:
        try:
            count = int(value)
        except (TypeError, ValueError):
            return None
        return count if count >= 0 else None

    def _accept_seller_rating(self, value) -> Optional[float]:
        try:
            rating = float(value)
        except (TypeError, ValueError):
            return None
        return rating if 0 <= rating <= 100 else None

    def _accept_images(self, value) -> Optional[list]:
        images = []
        for img in value or []:
            if isinstance(img, str):
                img = img.strip()
                if img.startswith("//"):
                    img = "https:" + img
                if img and img not in images:
                    images.append(img)
        return images[:MAX_IMAGES] or None

    def _accept_features(self, value) -> Optional[list]:
        features = [clean_text(f) for f in value or [] if isinstance(f, str) and clean_text(f)]
        return features[:MAX_FEATURES] or None

    def _accept_specs(self, value) -> Optional[dict]:
        if not isinstance(value, dict):
            return None
        specs = {clean_text(k): clean_text(str(v)) for k, v in value.items() if k and v not in (None, "")}
        return specs or None


class GenericExtractor(PlatformExtractor):
    """Fallback for shops without a dedicated extractor; relies on schema.org and meta tags."""

    platform = "other"

    def matches(self, url: str) -> bool:
        return True
