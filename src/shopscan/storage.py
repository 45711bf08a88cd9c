"""
Metrics Store

In-memory accuracy metrics and user feedback, optionally mirrored to a JSON
file so that counts survive between CLI invocations.
"""

import copy
import json
import logging
import threading
from collections import deque
from contextlib import contextmanager
from pathlib import Path
from typing import Deque, List, Optional, Tuple

from .models import AccuracyMetrics, UserFeedback, utcnow

logger = logging.getLogger(__name__)


class MetricsStore:
    def __init__(self, path: Optional[str] = None, feedback_limit: int = 1000):
        self.path = Path(path) if path else None
        self.feedback_limit = feedback_limit
        self.metrics = AccuracyMetrics()
        self.feedback: Deque[UserFeedback] = deque(maxlen=feedback_limit)
        self._lock = threading.RLock()
        if self.path and self.path.exists():
            self.load()

    @contextmanager
    def update(self):
        """Hold the lock while mutating; persist once the block finishes."""
        with self._lock:
            yield self
            self.metrics.last_updated = utcnow()
            self.save()

    def snapshot(self) -> Tuple[AccuracyMetrics, List[UserFeedback]]:
        """Detached copies of the metrics and feedback log, taken under the lock."""
        with self._lock:
            return copy.deepcopy(self.metrics), copy.deepcopy(list(self.feedback))

    def load(self) -> None:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Could not load metrics from {self.path}: {e}")
            return
        with self._lock:
            self.metrics = AccuracyMetrics.from_dict(data.get("metrics") or {})
            self.feedback = deque(
                (UserFeedback.from_dict(f) for f in data.get("feedback") or []),
                maxlen=self.feedback_limit,
            )
        logger.debug(f"Loaded metrics from {self.path}: {self.metrics.total_scans} scans, "
                     f"{len(self.feedback)} feedback entries")

    def save(self) -> None:
        if not self.path:
            return
        with self._lock:
            payload = self.to_dict()
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
            tmp.replace(self.path)
        except OSError as e:
            logger.error(f"Could not save metrics to {self.path}: {e}")

    def reset(self) -> None:
        with self._lock:
            self.metrics = AccuracyMetrics()
            self.feedback.clear()
            self.save()

    def to_dict(self) -> dict:
        with self._lock:
            return {
                "metrics": self.metrics.to_dict(),
                "feedback": [f.to_dict() for f in self.feedback],
            }
