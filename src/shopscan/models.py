"""
Data model shared by extractors, alternative sources, the validator,
the enhancer and the accuracy monitor.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

AVAILABILITY_VALUES = ("in_stock", "out_of_stock", "limited", "unknown")
SEVERITIES = ("low", "medium", "high")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_dt(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if value:
        return datetime.fromisoformat(value)
    return utcnow()


@dataclass
class ScrapedProduct:
    name: str
    brand: str
    price: str
    availability: str = "unknown"
    original_price: Optional[str] = None
    rating: Optional[float] = None
    review_count: Optional[int] = None
    images: List[str] = field(default_factory=list)
    description: str = ""
    seller: str = ""
    seller_rating: Optional[float] = None
    category: str = "General"
    features: List[str] = field(default_factory=list)
    specifications: Dict[str, str] = field(default_factory=dict)
    last_updated: datetime = field(default_factory=utcnow)
    source: str = "other"
    confidence: float = 0.5

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["last_updated"] = self.last_updated.isoformat()
        return payload


@dataclass
class ProductRecord:
    """Normalised record returned by an alternative data source."""

    name: str
    brand: str
    price: str
    description: str = ""
    category: str = "General"
    images: List[str] = field(default_factory=list)
    rating: Optional[float] = None
    review_count: Optional[int] = None
    availability: str = "unknown"
    confidence: float = 0.0

    @classmethod
    def from_dict(cls, data: dict, confidence: float = 0.0) -> "ProductRecord":
        availability = data.get("availability") or "unknown"
        if availability not in AVAILABILITY_VALUES:
            availability = "unknown"
        return cls(
            name=str(data.get("name") or ""),
            brand=str(data.get("brand") or ""),
            price=str(data.get("price") or ""),
            description=str(data.get("description") or ""),
            category=str(data.get("category") or "General"),
            images=list(data.get("images") or []),
            rating=data.get("rating"),
            review_count=data.get("reviewCount", data.get("review_count")),
            availability=availability,
            confidence=float(data.get("confidence", confidence)),
        )


@dataclass
class LookupResult:
    success: bool
    source: str
    record: Optional[ProductRecord] = None
    error: Optional[str] = None


@dataclass
class ValidationIssue:
    field: str
    severity: str
    message: str
    detected_value: str
    expected_pattern: Optional[str] = None


@dataclass
class ValidationResult:
    is_valid: bool
    confidence: int
    issues: List[ValidationIssue] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class AccuracyEnhancedResult:
    product: ScrapedProduct
    confidence: int
    data_sources: List[str]
    validation_report: ValidationResult
    corrected_fields: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        return {
            "product": self.product.to_dict(),
            "confidence": self.confidence,
            "data_sources": list(self.data_sources),
            "validation_report": self.validation_report.to_dict(),
            "corrected_fields": list(self.corrected_fields),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class PlatformStats:
    scans: int = 0
    avg_confidence: float = 0.0


@dataclass
class AccuracyMetrics:
    total_scans: int = 0
    successful_scans: int = 0
    average_confidence: float = 0.0
    # [{"error": message, "count": n}], most frequent first
    common_errors: List[dict] = field(default_factory=list)
    platform_stats: Dict[str, PlatformStats] = field(default_factory=dict)
    last_updated: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["last_updated"] = self.last_updated.isoformat()
        return payload

    @classmethod
    def from_dict(cls, data: dict) -> "AccuracyMetrics":
        return cls(
            total_scans=int(data.get("total_scans", 0)),
            successful_scans=int(data.get("successful_scans", 0)),
            average_confidence=float(data.get("average_confidence", 0.0)),
            common_errors=[dict(e) for e in data.get("common_errors", [])],
            platform_stats={
                name: PlatformStats(**stats) for name, stats in (data.get("platform_stats") or {}).items()
            },
            last_updated=_parse_dt(data.get("last_updated")),
        )


@dataclass
class UserFeedback:
    url: str
    is_correct: bool
    field: str
    expected_value: Optional[str] = None
    actual_value: Optional[str] = None
    timestamp: datetime = field(default_factory=utcnow)
    user_email: Optional[str] = None

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["timestamp"] = self.timestamp.isoformat()
        return payload

    @classmethod
    def from_dict(cls, data: dict) -> "UserFeedback":
        return cls(
            url=data["url"],
            is_correct=bool(data["is_correct"]),
            field=data["field"],
            expected_value=data.get("expected_value"),
            actual_value=data.get("actual_value"),
            timestamp=_parse_dt(data.get("timestamp")),
            user_email=data.get("user_email"),
        )


@dataclass
class AccuracyReport:
    summary: str
    success_rate: float
    recommendations: List[str]
    platform_breakdown: List[dict]
    top_errors: List[str]

    def to_dict(self) -> dict:
        return asdict(self)
