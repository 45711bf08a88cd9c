import random

import pytest

from shopscan.config import SEVERITY_WEIGHTS
from shopscan.models import ScrapedProduct, ValidationIssue, ValidationResult
from shopscan.validator import Validator, confidence_for, is_valid_confidence

ETSY_URL = "https://www.etsy.com/listing/999111222/lily-tumbler"
AMAZON_URL = "https://www.amazon.com/dp/B09B8V1LZ3"
SHOP_URL = "https://shop.example.com/items/mug"


def product(**overrides):
    fields = dict(name="Speckled Stoneware Coffee Mug", brand="Clay Works", price="$18.00", seller="Clay Works",
                  images=["https://cdn.example.com/mug.jpg"], source="other")
    fields.update(overrides)
    return ScrapedProduct(**fields)


def messages(result):
    return [(i.field, i.severity, i.message) for i in result.issues]


@pytest.mark.parametrize("seed", range(20))
def test_confidence_is_weighted_issue_sum(seed):
    rng = random.Random(seed)
    issues = [ValidationIssue("price", rng.choice(list(SEVERITY_WEIGHTS)), "x", "y")
              for _ in range(rng.randint(0, 8))]
    expected = max(0, 100 - sum(SEVERITY_WEIGHTS[i.severity] for i in issues))

    assert confidence_for(issues) == expected
    assert 0 <= confidence_for(issues) <= 100


def test_validity_boundary():
    assert not is_valid_confidence(69)
    assert is_valid_confidence(70)


def test_clean_product_scores_100():
    result = Validator().validate(product(), SHOP_URL)

    assert result == ValidationResult(is_valid=True, confidence=100, issues=[], suggestions=[])


def test_zero_price_is_high_severity():
    result = Validator().validate(product(price="$0.00"), SHOP_URL)

    assert messages(result) == [("price", "high", "Price extraction failed or returned zero")]
    assert result.issues[0].expected_pattern == "$XX.XX"
    assert result.confidence == 75
    assert result.suggestions == [
        "Consider re-scraping this URL as critical data may be missing",
        "Verify price manually on the original website",
    ]


def test_unparseable_price():
    result = Validator().validate(product(price="Call for price"), SHOP_URL)

    assert messages(result) == [
        ("price", "high", "Price extraction failed or returned zero"),
        ("price", "medium", "Missing currency symbol"),
    ]
    assert result.confidence == 60
    assert not result.is_valid


@pytest.mark.parametrize("price, flagged", [
    ("$1,299.00", False),
    ("$.99", False),
    ("$0", True),
    ("$0.00 - $0.00", True),
    ("$ N/A", True),
])
def test_price_read_like_extractors_read_it(price, flagged):
    result = Validator().validate(product(price=price), SHOP_URL)

    assert (("price", "high", "Price extraction failed or returned zero") in messages(result)) == flagged


def test_seventy_is_still_valid():
    # missing currency symbol (15) + short title (15)
    result = Validator().validate(product(name="Small mug", price="18.00"), SHOP_URL)

    assert result.confidence == 70
    assert result.is_valid

    result = Validator().validate(product(name="Small mug", price="18.00", rating=4.5), SHOP_URL)
    assert result.confidence == 65
    assert not result.is_valid


def test_etsy_rules():
    result = Validator().validate(product(name="Glass tumbler", price="$12,500.00", seller="Etsy Seller",
                                          images=[], source="etsy"), ETSY_URL)

    assert messages(result) == [
        ("price", "medium", "Price seems unusually high for Etsy product"),
        ("title", "low", "Etsy title seems shorter than typical"),
        ("seller", "medium", "Etsy shop name not properly extracted"),
        ("images", "low", "No product images extracted"),
    ]
    assert result.confidence == 60
    assert "Confirm the seller or shop name on the original listing" in result.suggestions


def test_amazon_zero_price_counted_once():
    result = Validator().validate(product(price="$0.00", source="amazon", specifications={"Size": "small"}),
                                  AMAZON_URL)

    assert messages(result) == [("price", "high", "Price extraction failed or returned zero")]


def test_amazon_missing_specifications():
    result = Validator().validate(product(source="amazon", seller="Amazon.com"), AMAZON_URL)

    assert messages(result) == [("specifications", "low", "No product specifications extracted")]


def test_generic_title():
    result = Validator().validate(product(name="Unknown Product"), SHOP_URL)

    assert messages(result) == [("title", "high", "Generic title detected - scraping may have failed")]
    assert "Product title may be incomplete - check original listing" in result.suggestions


def test_rating_without_reviews():
    result = Validator().validate(product(rating=4.8, review_count=None), SHOP_URL)

    assert messages(result) == [("rating", "low", "Product has rating but no review count")]


def test_source_seller_mismatch():
    result = Validator().validate(product(source="etsy", seller="eBay Seller"), ETSY_URL)

    assert ("source", "high", "Source/seller mismatch detected") in messages(result)


def test_no_mismatch_for_unknown_sources():
    result = Validator().validate(product(source="other", seller="Sold on Amazon and Etsy"), SHOP_URL)

    assert result.issues == []


def test_accuracy_report():
    validator = Validator()
    results = [
        validator.validate(product(), SHOP_URL),
        validator.validate(product(price="$0.00"), SHOP_URL),
        validator.validate(product(price="$0.00", name="Unknown Product"), SHOP_URL),
    ]
    report = validator.generate_accuracy_report(results)

    assert report["overall_accuracy"] == pytest.approx(200 / 3)
    assert report["common_issues"][0] == "price: Price extraction failed or returned zero"
    assert len(report["recommendations"]) == 4


def test_accuracy_report_empty():
    assert Validator().generate_accuracy_report([])["overall_accuracy"] == 0.0
