"""
Validator

Field and cross-field checks on a ScrapedProduct. Every finding is a
ValidationIssue with a severity; confidence is 100 minus the severity
weights of all issues, floored at 0.
"""

import logging
from collections import Counter
from typing import Dict, List, Sequence

from .config import SEVERITY_WEIGHTS, VALID_CONFIDENCE_THRESHOLD
from .models import ScrapedProduct, ValidationIssue, ValidationResult
from .parse import CURRENCY_SYMBOL_CHARS, is_generic_title, parse_price
from .platforms import platform_from_url, platforms_mentioned

logger = logging.getLogger(__name__)

MIN_TITLE_CHARS = 10
MIN_ETSY_TITLE_CHARS = 20
ETSY_PRICE_CEILING = 10000
AMAZON_PRICE_FLOOR = 0.01

ACCURACY_RECOMMENDATIONS = [
    "Implement additional extraction patterns for problematic fields",
    "Add more robust error handling for edge cases",
    "Consider using multiple data sources for validation",
    "Implement user feedback mechanism for accuracy improvement",
]


def confidence_for(issues: Sequence[ValidationIssue]) -> int:
    confidence = 100 - sum(SEVERITY_WEIGHTS[issue.severity] for issue in issues)
    return max(0, min(100, confidence))


def is_valid_confidence(confidence: float) -> bool:
    return confidence >= VALID_CONFIDENCE_THRESHOLD


class Validator:
    def validate(self, product: ScrapedProduct, url: str) -> ValidationResult:
        platform = platform_from_url(url)
        issues: List[ValidationIssue] = []
        issues += self.validate_price(product.price, platform)
        issues += self.validate_title(product.name, platform)
        issues += self.validate_consistency(product)
        issues += self.validate_platform_specific(product, platform)

        confidence = confidence_for(issues)
        result = ValidationResult(
            is_valid=is_valid_confidence(confidence),
            confidence=confidence,
            issues=issues,
            suggestions=self.suggestions(issues),
        )
        logger.debug(f"Validated {url}: confidence {confidence}, {len(issues)} issue(s)")
        return result

    def validate_price(self, price: str, platform: str) -> List[ValidationIssue]:
        issues = []
        amount = parse_price(price)

        if not amount:
            issues.append(ValidationIssue("price", "high", "Price extraction failed or returned zero",
                                          price, expected_pattern="$XX.XX"))
        elif platform == "etsy" and amount > ETSY_PRICE_CEILING:
            issues.append(ValidationIssue("price", "medium", "Price seems unusually high for Etsy product", price))
        elif platform == "amazon" and amount < AMAZON_PRICE_FLOOR:
            issues.append(ValidationIssue("price", "high", "Amazon price too low - likely extraction error", price))

        if not any(ch in (price or "") for ch in CURRENCY_SYMBOL_CHARS):
            issues.append(ValidationIssue("price", "medium", "Missing currency symbol", price,
                                          expected_pattern="Currency symbol + amount"))
        return issues

    def validate_title(self, title: str, platform: str) -> List[ValidationIssue]:
        issues = []
        title = title or ""
        if is_generic_title(title):
            issues.append(ValidationIssue("title", "high", "Generic title detected - scraping may have failed", title))
        if len(title) < MIN_TITLE_CHARS:
            issues.append(ValidationIssue("title", "medium", "Title too short - may be incomplete", title))
        if platform == "etsy" and len(title) < MIN_ETSY_TITLE_CHARS:
            issues.append(ValidationIssue("title", "low", "Etsy title seems shorter than typical", title))
        return issues

    def validate_consistency(self, product: ScrapedProduct) -> List[ValidationIssue]:
        issues = []
        if product.rating and product.rating > 0 and not product.review_count:
            issues.append(ValidationIssue("rating", "low", "Product has rating but no review count",
                                          f"Rating: {product.rating}, Reviews: {product.review_count}"))

        # a seller naming some other marketplace means the record got mixed up
        others = [p for p in platforms_mentioned(product.seller) if p != product.source]
        if product.source not in ("other", "unknown") and others:
            issues.append(ValidationIssue("source", "high", "Source/seller mismatch detected",
                                          f"Source: {product.source}, Seller: {product.seller}"))
        return issues

    def validate_platform_specific(self, product: ScrapedProduct, platform: str) -> List[ValidationIssue]:
        issues = []
        if platform == "etsy" and (not product.seller or product.seller == "Etsy Seller"):
            issues.append(ValidationIssue("seller", "medium", "Etsy shop name not properly extracted",
                                          product.seller or "none"))
        if platform in ("etsy", "ebay") and not product.images:
            issues.append(ValidationIssue("images", "low", "No product images extracted", "0 images"))
        if platform in ("amazon", "bestbuy") and not product.specifications:
            issues.append(ValidationIssue("specifications", "low", "No product specifications extracted", "none"))
        return issues

    def suggestions(self, issues: Sequence[ValidationIssue]) -> List[str]:
        suggestions = []
        fields = {issue.field for issue in issues}
        if any(issue.severity == "high" for issue in issues):
            suggestions.append("Consider re-scraping this URL as critical data may be missing")
        if "price" in fields:
            suggestions.append("Verify price manually on the original website")
        if "title" in fields:
            suggestions.append("Product title may be incomplete - check original listing")
        if "seller" in fields:
            suggestions.append("Confirm the seller or shop name on the original listing")
        return suggestions

    def generate_accuracy_report(self, results: Sequence[ValidationResult]) -> Dict:
        """Accuracy across a batch of validation results, with the five most frequent issues."""
        total = len(results)
        valid = sum(1 for r in results if r.is_valid)
        overall = (valid / total) * 100 if total else 0.0

        frequency = Counter(f"{issue.field}: {issue.message}" for r in results for issue in r.issues)
        return {
            "overall_accuracy": overall,
            "common_issues": [issue for issue, _ in frequency.most_common(5)],
            "recommendations": list(ACCURACY_RECOMMENDATIONS),
        }
