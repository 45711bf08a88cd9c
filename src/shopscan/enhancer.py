"""
AccuracyEnhancer

One resolve() call runs the whole pipeline for a listing URL:

  acquire  curated record, else live fetch + platform extraction
  validate
  correct  price / title / seller from the alternative data chain
  cross-reference when confidence is still under 80
  validate again; this result is the one returned

Only AllSourcesExhausted escapes. Everything else lowers the confidence
of the result instead of raising.
"""

import logging
import re
from collections import Counter
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence

from .alt_sources import AlternativeDataSource, extract_product_id
from .config import CROSS_REFERENCE_THRESHOLD, SOURCE_CONFIDENCE, VALID_CONFIDENCE_THRESHOLD
from .errors import AllSourcesExhausted, CorrectionFailure, TransportError
from .extractors.registry import ExtractorRegistry, default_registry
from .fetch import RequestGateway
from .models import AccuracyEnhancedResult, LookupResult, ProductRecord, ScrapedProduct, ValidationResult, utcnow
from .platforms import platform_from_url
from .validator import Validator

logger = logging.getLogger(__name__)

# Values alternative sources use when they know nothing
PLACEHOLDER_VALUES = {"$0.00", "Unknown Product", "Various", "Unknown Brand", "Generic", ""}

MIN_CORRECTED_TITLE_CHARS = 10
URL_PRICE_HINT = re.compile(r"price[=_-](\d+\.?\d*)", re.I)

METRICS_RECOMMENDATIONS = [
    "Focus on improving extraction patterns for most common issues",
    "Expand alternative data source coverage",
    "Implement user feedback loop for continuous improvement",
    "Add more platform-specific validation rules",
]

CrossReference = Callable[[ScrapedProduct, str], ScrapedProduct]


def pass_through(product: ScrapedProduct, url: str) -> ScrapedProduct:
    return product


def record_to_product(record: ProductRecord, url: str) -> ScrapedProduct:
    return ScrapedProduct(
        name=record.name,
        brand=record.brand,
        price=record.price,
        availability=record.availability,
        rating=record.rating,
        review_count=record.review_count,
        images=list(record.images),
        description=record.description,
        # curated records carry the shop as the brand
        seller=record.brand,
        category=record.category,
        source=platform_from_url(url),
        confidence=SOURCE_CONFIDENCE["curated-database"],
    )


def product_to_record(product: ScrapedProduct, confidence: float) -> ProductRecord:
    return ProductRecord(
        name=product.name,
        brand=product.brand,
        price=product.price,
        description=product.description,
        category=product.category,
        images=list(product.images),
        rating=product.rating,
        review_count=product.review_count,
        availability=product.availability,
        confidence=confidence,
    )


class _Corrections:
    """Correction state for one resolve call; the alternative lookup runs at most once."""

    def __init__(self, alt_source: AlternativeDataSource, url: str, product_id: Optional[str]):
        self.alt_source = alt_source
        self.url = url
        self.product_id = product_id
        self._lookup: Optional[LookupResult] = None

    def record(self, field: str) -> ProductRecord:
        if self._lookup is None:
            self._lookup = self.alt_source.lookup(self.url, self.product_id)
        if not self._lookup.success or self._lookup.record is None:
            raise CorrectionFailure(field, f"No alternative data for {field}")
        return self._lookup.record


class AccuracyEnhancer:
    def __init__(
        self,
        context,
        gateway: Optional[RequestGateway] = None,
        alt_source: Optional[AlternativeDataSource] = None,
        registry: Optional[ExtractorRegistry] = None,
        validator: Optional[Validator] = None,
        monitor=None,
        cross_reference: CrossReference = pass_through,
    ):
        self.context = context
        self.gateway = gateway or RequestGateway(context)
        self.alt_source = alt_source or AlternativeDataSource(context)
        self.registry = registry or default_registry()
        self.validator = validator or Validator()
        self.monitor = monitor
        self.cross_reference = cross_reference
        self.correctors: Dict[str, Callable[[ScrapedProduct, _Corrections], ScrapedProduct]] = {
            "price": self.correct_price,
            "title": self.correct_title,
            "seller": self.correct_seller,
        }

    def resolve(self, url: str, product_id: Optional[str] = None) -> AccuracyEnhancedResult:
        logger.info(f"Resolving {url}")
        product_id = product_id or extract_product_id(url)
        data_sources: List[str] = []

        # 1. acquire
        product = self._acquire(url, product_id, data_sources)

        # 2. validate
        validation = self.validator.validate(product, url)

        # 3. correct
        corrected_fields: List[str] = []
        if validation.issues:
            logger.info(f"{len(validation.issues)} validation issue(s) for {url}, attempting corrections")
            product, corrected_fields = self._apply_corrections(product, validation, url, product_id)
            if corrected_fields:
                validation = self.validator.validate(product, url)

        # 4. cross-reference
        if validation.confidence < CROSS_REFERENCE_THRESHOLD:
            logger.info(f"Confidence {validation.confidence} below {CROSS_REFERENCE_THRESHOLD}, cross-referencing")
            product = self.cross_reference(product, url)
            data_sources.append("cross-reference")

        # 5. final validation
        final = self.validator.validate(product, url)
        result = AccuracyEnhancedResult(
            product=product,
            confidence=final.confidence,
            data_sources=data_sources,
            validation_report=final,
            corrected_fields=corrected_fields,
            timestamp=utcnow(),
        )
        logger.info(f"Resolved {url}: {product.name[:60]!r} {product.price}, confidence {final.confidence}, "
                    f"sources {data_sources}")

        # 6. bookkeeping
        if final.confidence >= VALID_CONFIDENCE_THRESHOLD and product_id:
            self.context.cache.put(product_id, product_to_record(product, final.confidence / 100))
        if self.monitor is not None:
            self.monitor.record_scan_result(result, url)
        return result

    def _acquire(self, url: str, product_id: Optional[str], data_sources: List[str]) -> ScrapedProduct:
        curated = self.alt_source.curated_lookup(url, product_id)
        if curated.success and curated.record is not None:
            logger.info(f"Found {url} in curated database: {curated.record.name[:60]!r} {curated.record.price}")
            data_sources.append("curated-database")
            return record_to_product(curated.record, url)

        logger.info(f"Not in curated database ({curated.error}), trying live scraping")
        try:
            html = self.gateway.fetch(url)
        except TransportError as e:
            logger.error(f"Live scraping failed for {url}: {e}")
            raise AllSourcesExhausted(url) from e
        product = self.registry.extract(html, url=url)
        data_sources.append("live-scraper")
        return product

    def _apply_corrections(self, product: ScrapedProduct, validation: ValidationResult, url: str,
                           product_id: Optional[str]):
        state = _Corrections(self.alt_source, url, product_id)
        corrected: List[str] = []
        attempted = set()
        for issue in validation.issues:
            if issue.field in attempted or not self._should_correct(issue.field, issue.severity):
                continue
            attempted.add(issue.field)
            try:
                updated = self.correctors[issue.field](product, state)
            except CorrectionFailure as e:
                logger.warning(f"Correction of {issue.field} failed for {url}: {e}")
                continue
            if updated != product:
                product = updated
                corrected.append(issue.field)
        return product, corrected

    @staticmethod
    def _should_correct(field: str, severity: str) -> bool:
        if field in ("price", "title"):
            return severity == "high"
        if field == "seller":
            return severity in ("medium", "high")
        return False

    def correct_price(self, product: ScrapedProduct, state: _Corrections) -> ScrapedProduct:
        try:
            price = state.record("price").price
        except CorrectionFailure:
            price = None
        extractor = self.registry.for_url(state.url)
        price = extractor.normalize_price(price) if price else None
        if price is None:
            match = URL_PRICE_HINT.search(state.url)
            price = extractor.normalize_price(match.group(1)) if match else None
            if price is None:
                raise CorrectionFailure("price", "No usable alternative price")
            logger.info(f"Price taken from URL: {price}")
        logger.info(f"Price corrected: {product.price} -> {price}")
        return replace(product, price=price)

    def correct_title(self, product: ScrapedProduct, state: _Corrections) -> ScrapedProduct:
        name = state.record("title").name
        if not name or name in PLACEHOLDER_VALUES or len(name) <= MIN_CORRECTED_TITLE_CHARS:
            raise CorrectionFailure("title", f"Alternative title unusable: {name!r}")
        logger.info(f"Title corrected: {product.name[:40]!r} -> {name[:40]!r}")
        return replace(product, name=name)

    def correct_seller(self, product: ScrapedProduct, state: _Corrections) -> ScrapedProduct:
        seller = state.record("seller").brand
        if not seller or seller in PLACEHOLDER_VALUES:
            raise CorrectionFailure("seller", f"Alternative seller unusable: {seller!r}")
        logger.info(f"Seller corrected: {product.seller!r} -> {seller!r}")
        return replace(product, seller=seller)

    def generate_accuracy_metrics(self, urls: Sequence[str]) -> Dict:
        """Resolve a batch of URLs and summarise how well it went. Failed URLs are skipped."""
        results = []
        for url in urls:
            try:
                results.append(self.resolve(url))
            except AllSourcesExhausted as e:
                logger.error(f"Failed to process {url}: {e}")

        n = len(results)
        success_rate = sum(1 for r in results if r.confidence >= VALID_CONFIDENCE_THRESHOLD) / n * 100 if n else 0.0
        average_confidence = sum(r.confidence for r in results) / n if n else 0.0
        frequency = Counter(issue.message for r in results for issue in r.validation_report.issues)

        logger.info(f"Metrics complete: {success_rate:.1f}% success rate, {average_confidence:.1f}% avg confidence")
        return {
            "success_rate": success_rate,
            "average_confidence": average_confidence,
            "common_issues": [message for message, _ in frequency.most_common(3)],
            "recommendations": list(METRICS_RECOMMENDATIONS),
            "processed": n,
            "failed": len(urls) - n,
        }


