import json
import random

import pytest

from shopscan.models import AccuracyEnhancedResult, ScrapedProduct, UserFeedback, ValidationIssue, ValidationResult
from shopscan.monitor import AccuracyMonitor
from shopscan.storage import MetricsStore

AMAZON_URL = "https://www.amazon.com/dp/B09B8V1LZ3"
ETSY_URL = "https://www.etsy.com/listing/999111222/lily-tumbler"

ZERO_PRICE = ValidationIssue("price", "high", "Price extraction failed or returned zero", "$0.00")
NO_IMAGES = ValidationIssue("images", "low", "No product images extracted", "0 images")


def scan(confidence, issues=()):
    return AccuracyEnhancedResult(
        product=ScrapedProduct(name="Speckled Stoneware Coffee Mug", brand="Clay Works", price="$18.00"),
        confidence=confidence,
        data_sources=["live-scraper"],
        validation_report=ValidationResult(is_valid=confidence >= 70, confidence=confidence, issues=list(issues)),
    )


@pytest.mark.parametrize("seed", range(10))
def test_average_confidence_is_running_mean(seed):
    rng = random.Random(seed)
    confidences = [rng.randint(0, 100) for _ in range(rng.randint(1, 40))]
    monitor = AccuracyMonitor(MetricsStore())
    for c in confidences:
        monitor.record_scan_result(scan(c), AMAZON_URL)

    metrics = monitor.get_metrics()
    assert metrics.total_scans == len(confidences)
    assert metrics.successful_scans == sum(1 for c in confidences if c >= 70)
    assert metrics.average_confidence == pytest.approx(sum(confidences) / len(confidences))
    assert metrics.platform_stats["amazon"].avg_confidence == pytest.approx(metrics.average_confidence)


def test_platform_breakdown():
    monitor = AccuracyMonitor(MetricsStore())
    monitor.record_scan_result(scan(100), AMAZON_URL)
    monitor.record_scan_result(scan(60), ETSY_URL)
    monitor.record_scan_result(scan(80), ETSY_URL)

    stats = monitor.get_metrics().platform_stats
    assert (stats["amazon"].scans, stats["amazon"].avg_confidence) == (1, 100)
    assert (stats["etsy"].scans, stats["etsy"].avg_confidence) == (2, 70)


def test_only_high_issues_count_as_errors():
    monitor = AccuracyMonitor(MetricsStore())
    monitor.record_scan_result(scan(70, [ZERO_PRICE, NO_IMAGES]), AMAZON_URL)
    monitor.record_scan_result(scan(75, [ZERO_PRICE]), AMAZON_URL)

    assert monitor.get_metrics().common_errors == [
        {"error": "Price extraction failed or returned zero", "count": 2},
    ]


def test_common_errors_capped_at_ten():
    monitor = AccuracyMonitor(MetricsStore())
    for i in range(10):
        monitor.record_scan_result(scan(75, [ValidationIssue("price", "high", f"error {i}", "x")]), AMAZON_URL)
    # a message repeated within one scan is counted in full before the table is trimmed
    frequent = ValidationIssue("title", "high", "frequent", "x")
    monitor.record_scan_result(scan(0, [frequent] * 5), AMAZON_URL)

    errors = monitor.get_metrics().common_errors
    assert len(errors) == 10
    assert errors[0] == {"error": "frequent", "count": 5}
    assert [e["error"] for e in errors[1:]] == [f"error {i}" for i in range(9)]


def test_new_error_needs_to_outcount_a_full_table():
    monitor = AccuracyMonitor(MetricsStore())
    for i in range(10):
        issue = ValidationIssue("price", "high", f"error {i}", "x")
        monitor.record_scan_result(scan(75, [issue, issue]), AMAZON_URL)
    monitor.record_scan_result(scan(75, [ValidationIssue("price", "high", "rare", "x")]), AMAZON_URL)

    errors = monitor.get_metrics().common_errors
    assert "rare" not in [e["error"] for e in errors]
    assert all(e["count"] == 2 for e in errors)


def test_metrics_are_returned_as_copies():
    monitor = AccuracyMonitor(MetricsStore())
    monitor.record_scan_result(scan(50, [ZERO_PRICE]), AMAZON_URL)
    monitor.record_user_feedback(UserFeedback(url=AMAZON_URL, is_correct=True, field="price"))

    metrics = monitor.get_metrics()
    metrics.total_scans = 99
    metrics.common_errors[0]["count"] = 99
    metrics.platform_stats["amazon"].scans = 99
    monitor.get_feedback()[0].field = "title"

    fresh = monitor.get_metrics()
    assert fresh.total_scans == 1
    assert fresh.common_errors == [{"error": "Price extraction failed or returned zero", "count": 1}]
    assert fresh.platform_stats["amazon"].scans == 1
    assert monitor.get_feedback()[0].field == "price"
    assert monitor.generate_report().summary.startswith("Processed 1 scans")


def test_feedback_log_is_capped():
    monitor = AccuracyMonitor(MetricsStore())
    for i in range(1001):
        monitor.record_user_feedback(UserFeedback(url=f"https://shop.example.com/p/{i}", is_correct=True,
                                                  field="price"))

    feedback = monitor.get_feedback()
    assert len(feedback) == 1000
    assert feedback[0].url == "https://shop.example.com/p/1"
    assert feedback[-1].url == "https://shop.example.com/p/1000"


def test_incorrect_feedback_is_an_error():
    monitor = AccuracyMonitor(MetricsStore())
    monitor.record_user_feedback(UserFeedback(url=AMAZON_URL, is_correct=False, field="price",
                                              expected_value="$49.99", actual_value="$0.00"))

    assert monitor.get_metrics().common_errors == [{"error": "User reported incorrect price", "count": 1}]


def test_report_recommendations():
    monitor = AccuracyMonitor(MetricsStore())
    monitor.record_scan_result(scan(50, [ZERO_PRICE]), AMAZON_URL)
    monitor.record_scan_result(scan(90), AMAZON_URL)
    monitor.record_user_feedback(UserFeedback(url=AMAZON_URL, is_correct=False, field="price"))
    monitor.record_user_feedback(UserFeedback(url=AMAZON_URL, is_correct=True, field="title"))

    report = monitor.generate_report()
    assert report.success_rate == 50
    assert report.summary == ("Processed 2 scans with 50.0% success rate and 70.0% average confidence. "
                              "User feedback indicates 50.0% correction rate.")
    assert report.recommendations == [
        "Success rate below 80% - review extraction patterns",
        "Average confidence below 75% - enhance validation rules",
        "High user correction rate - investigate common accuracy issues",
    ]
    assert report.platform_breakdown == [{"platform": "amazon", "scans": 2, "confidence": 70}]
    assert report.top_errors == ["Price extraction failed or returned zero", "User reported incorrect price"]


def test_healthy_report_has_no_recommendations():
    monitor = AccuracyMonitor(MetricsStore())
    monitor.record_scan_result(scan(95), AMAZON_URL)

    report = monitor.generate_report()
    assert report.recommendations == []
    assert report.summary == "Processed 1 scans with 100.0% success rate and 95.0% average confidence."


def test_empty_report():
    report = AccuracyMonitor(MetricsStore()).generate_report()

    assert report.success_rate == 0.0
    assert report.top_errors == []


def test_metrics_survive_restart(tmp_path):
    path = tmp_path / "state" / "metrics.json"
    monitor = AccuracyMonitor(MetricsStore(str(path)))
    monitor.record_scan_result(scan(50, [ZERO_PRICE]), ETSY_URL)
    monitor.record_user_feedback(UserFeedback(url=ETSY_URL, is_correct=False, field="seller",
                                              user_email="buyer@example.com"))

    reloaded = AccuracyMonitor(MetricsStore(str(path)))
    metrics = reloaded.get_metrics()
    assert metrics.total_scans == 1
    assert metrics.platform_stats["etsy"].avg_confidence == 50
    assert [e["error"] for e in metrics.common_errors] == [
        "Price extraction failed or returned zero", "User reported incorrect seller",
    ]
    feedback = reloaded.get_feedback()
    assert feedback[0].user_email == "buyer@example.com"
    assert feedback[0].timestamp == monitor.get_feedback()[0].timestamp


def test_corrupt_metrics_file_starts_fresh(tmp_path):
    path = tmp_path / "metrics.json"
    path.write_text("{not json", encoding="utf-8")

    assert AccuracyMonitor(MetricsStore(str(path))).get_metrics().total_scans == 0


def test_reset_and_export(tmp_path):
    path = tmp_path / "metrics.json"
    monitor = AccuracyMonitor(MetricsStore(str(path)))
    monitor.record_scan_result(scan(90), AMAZON_URL)
    monitor.record_user_feedback(UserFeedback(url=AMAZON_URL, is_correct=True, field="price"))

    exported = json.loads(monitor.export_metrics())
    assert exported["metrics"]["total_scans"] == 1
    assert exported["feedback"][0]["field"] == "price"
    assert "exported_at" in exported

    monitor.reset_metrics()
    assert monitor.get_metrics().total_scans == 0
    assert monitor.get_feedback() == []
    assert json.loads(path.read_text(encoding="utf-8"))["metrics"]["total_scans"] == 0
