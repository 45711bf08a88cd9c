"""
Accuracy Monitor Module

Keeps running accuracy metrics over resolved products and a capped log of
user feedback, and turns them into a short report.
"""

import json
import logging
from typing import List

from .config import (
    REPORT_CONFIDENCE_FLOOR,
    REPORT_CORRECTION_RATE_CEILING,
    REPORT_SUCCESS_RATE_FLOOR,
    VALID_CONFIDENCE_THRESHOLD,
)
from .models import AccuracyEnhancedResult, AccuracyMetrics, AccuracyReport, PlatformStats, UserFeedback, utcnow
from .platforms import platform_from_url
from .storage import MetricsStore

logger = logging.getLogger(__name__)

MAX_COMMON_ERRORS = 10
REPORT_TOP_ERRORS = 5


def _bump_error(metrics: AccuracyMetrics, message: str) -> None:
    for entry in metrics.common_errors:
        if entry["error"] == message:
            entry["count"] += 1
            break
    else:
        metrics.common_errors.append({"error": message, "count": 1})


def _trim_errors(metrics: AccuracyMetrics) -> None:
    # stable sort keeps first-seen order among equal counts
    metrics.common_errors.sort(key=lambda e: e["count"], reverse=True)
    del metrics.common_errors[MAX_COMMON_ERRORS:]


class AccuracyMonitor:
    def __init__(self, store: MetricsStore):
        self.store = store

    def record_scan_result(self, result: AccuracyEnhancedResult, url: str) -> None:
        platform = platform_from_url(url)
        confidence = result.confidence

        with self.store.update() as store:
            metrics = store.metrics
            metrics.total_scans += 1
            if confidence >= VALID_CONFIDENCE_THRESHOLD:
                metrics.successful_scans += 1
            metrics.average_confidence += (confidence - metrics.average_confidence) / metrics.total_scans

            stats = metrics.platform_stats.setdefault(platform, PlatformStats())
            stats.scans += 1
            stats.avg_confidence += (confidence - stats.avg_confidence) / stats.scans

            for issue in result.validation_report.issues:
                if issue.severity == "high":
                    _bump_error(metrics, issue.message)
            _trim_errors(metrics)

            success_rate = metrics.successful_scans / metrics.total_scans * 100
        logger.info(f"Accuracy metrics updated. Success rate: {success_rate:.1f}%")

    def record_user_feedback(self, feedback: UserFeedback) -> None:
        with self.store.update() as store:
            # deque(maxlen) drops the oldest entry past the cap
            store.feedback.append(feedback)
            if not feedback.is_correct:
                _bump_error(store.metrics, f"User reported incorrect {feedback.field}")
                _trim_errors(store.metrics)
        logger.info(f"User feedback recorded: {feedback.field} {'correct' if feedback.is_correct else 'incorrect'}")

    def get_metrics(self) -> AccuracyMetrics:
        metrics, _ = self.store.snapshot()
        return metrics

    def get_feedback(self) -> List[UserFeedback]:
        _, feedback = self.store.snapshot()
        return feedback

    def generate_report(self) -> AccuracyReport:
        metrics, feedback = self.store.snapshot()

        success_rate = metrics.successful_scans / metrics.total_scans * 100 if metrics.total_scans else 0.0
        correction_rate = (
            sum(1 for f in feedback if not f.is_correct) / len(feedback) * 100 if feedback else 0.0
        )

        summary = (f"Processed {metrics.total_scans} scans with {success_rate:.1f}% success rate "
                   f"and {metrics.average_confidence:.1f}% average confidence.")
        if feedback:
            summary += f" User feedback indicates {correction_rate:.1f}% correction rate."

        recommendations = []
        if success_rate < REPORT_SUCCESS_RATE_FLOOR:
            recommendations.append("Success rate below 80% - review extraction patterns")
        if metrics.average_confidence < REPORT_CONFIDENCE_FLOOR:
            recommendations.append("Average confidence below 75% - enhance validation rules")
        if correction_rate > REPORT_CORRECTION_RATE_CEILING:
            recommendations.append("High user correction rate - investigate common accuracy issues")

        return AccuracyReport(
            summary=summary,
            success_rate=success_rate,
            recommendations=recommendations,
            platform_breakdown=[
                {"platform": name, "scans": stats.scans, "confidence": stats.avg_confidence}
                for name, stats in metrics.platform_stats.items()
            ],
            top_errors=[e["error"] for e in metrics.common_errors[:REPORT_TOP_ERRORS]],
        )

    def reset_metrics(self) -> None:
        self.store.reset()
        logger.info("Accuracy metrics reset")

    def export_metrics(self) -> str:
        payload = self.store.to_dict()
        payload["exported_at"] = utcnow().isoformat()
        return json.dumps(payload, indent=2, ensure_ascii=False)
