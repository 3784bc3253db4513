"""Data models for crawl and audit results."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional


class Severity(Enum):
    """Severity level for audit issues."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class CheckStatus(Enum):
    """Outcome recorded for a single diagnostic check."""
    PASS = "pass"
    WARNING = "warning"
    FAIL = "fail"
    INFO = "info"


class Rating(Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    NEEDS_IMPROVEMENT = "needs improvement"
    POOR = "poor"


class Category(Enum):
    TECHNICAL_SEO = "TECHNICAL_SEO"
    ON_PAGE_SEO = "ON_PAGE_SEO"
    CONTENT_QUALITY = "CONTENT_QUALITY"
    PERFORMANCE = "PERFORMANCE"
    AUTHORITY_BACKLINKS = "AUTHORITY_BACKLINKS"
    LOCAL_SEO = "LOCAL_SEO"


class AuditStatus(Enum):
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class CrawledPage:
    """A single fetched page with its extracted metadata.

    Pages are created once by the crawler and shared read-only between
    analyzers running in parallel.
    """
    url: str
    path: str = "/"
    status_code: int = 0
    depth: int = 0
    title: str = ""
    title_length: int = 0
    meta_description: str = ""
    meta_length: int = 0
    h1_tags: tuple[str, ...] = ()
    h2_tags: tuple[str, ...] = ()
    h3_tags: tuple[str, ...] = ()
    canonical: str = ""
    robots_meta: str = ""
    has_viewport: bool = False
    load_time: int = 0  # milliseconds
    size: int = 0  # bytes
    word_count: int = 0
    image_count: int = 0
    link_count: int = 0
    has_schema: bool = False
    schema_types: tuple[str, ...] = ()
    open_graph: Optional[Mapping[str, str]] = None
    twitter: Optional[Mapping[str, str]] = None
    html: Optional[str] = None
    headers: Optional[Mapping[str, str]] = None
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class FieldSuggestion:
    """A current -> suggested value pair for one fixable field on one page."""
    url: str
    field: str
    current: str
    suggested: str
    copy_paste_ready: bool = True
    context: Optional[str] = None
    image_src: Optional[str] = None


@dataclass(frozen=True)
class Issue:
    """A single problem found by an analyzer."""
    type: str
    severity: Severity
    title: str
    description: str
    recommendation: str
    affected_pages: int = 0
    examples: tuple[Any, ...] = ()
    evidence: tuple[dict[str, Any], ...] = ()
    specifics: tuple[FieldSuggestion, ...] = ()


@dataclass
class CategoryResult:
    """Scored result of one category analyzer."""
    category: Category
    category_score: int  # 0-100
    weight: float
    rating: Rating
    issues: list[Issue] = field(default_factory=list)
    checks: dict[str, dict[str, Any]] = field(default_factory=dict)
    measurement_method: Optional[str] = None
    confidence: Optional[str] = None

    def _count(self, severity: Severity) -> int:
        return sum(1 for i in self.issues if i.severity == severity)

    @property
    def issue_count(self) -> int:
        return len(self.issues)

    @property
    def critical_count(self) -> int:
        return self._count(Severity.CRITICAL)

    @property
    def high_count(self) -> int:
        return self._count(Severity.HIGH)

    @property
    def medium_count(self) -> int:
        return self._count(Severity.MEDIUM)

    @property
    def low_count(self) -> int:
        return self._count(Severity.LOW)


class Priority(Enum):
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class EffortLevel(Enum):
    QUICK_WIN = "QUICK_WIN"
    MODERATE = "MODERATE"
    SUBSTANTIAL = "SUBSTANTIAL"


@dataclass(frozen=True)
class Recommendation:
    """An issue turned into a prioritized, effort-estimated action."""
    issue_type: str
    category: Optional[Category]
    priority: Priority
    title: str
    description: str
    implementation: str
    expected_impact: str
    effort_level: EffortLevel
    estimated_hours: int
    phase: str
    affected_pages: int = 0


@dataclass(frozen=True)
class CMSDetection:
    """The platform a site most likely runs on."""
    platform: str
    platform_key: str
    confidence: str  # high, medium or low
    confidence_pct: int
    api_url: Optional[str] = None
    signals: tuple[str, ...] = ()


@dataclass
class AuditReport:
    """Complete audit result for a site."""
    audit_id: str
    url: str
    domain: str
    status: AuditStatus = AuditStatus.COMPLETED
    overall_score: int = 0
    score_rating: Rating = Rating.POOR
    categories: list[CategoryResult] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)
    pages_crawled: int = 0
    cms: Optional[CMSDetection] = None
    error: Optional[str] = None

    @property
    def quick_wins(self) -> list[Recommendation]:
        """Quick-win recommendations, most severe first."""
        order = {p: i for i, p in enumerate(Priority)}
        wins = [r for r in self.recommendations if r.effort_level == EffortLevel.QUICK_WIN]
        return sorted(wins, key=lambda r: order[r.priority])[:5]
