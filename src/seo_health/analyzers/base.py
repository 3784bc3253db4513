"""Shared analyzer plumbing."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional, Sequence

import httpx

from ..config import AuditConfig
from ..models import (
    Category,
    CategoryResult,
    CheckStatus,
    CrawledPage,
    FieldSuggestion,
    Issue,
    Severity,
)
from ..scoring import clamp_score, get_rating


logger = logging.getLogger(__name__)


def find_homepage(pages: Sequence[CrawledPage]) -> Optional[CrawledPage]:
    """The page at "/" if it was crawled, otherwise the first page."""
    for page in pages:
        if page.path == "/":
            return page
    return pages[0] if pages else None


class ResultBuilder:
    """Collects issues and check diagnostics for a single analyze() call."""

    def __init__(self) -> None:
        self.issues: list[Issue] = []
        self.checks: dict[str, dict[str, Any]] = {}
        self.measurement_method: Optional[str] = None
        self.confidence: Optional[str] = None

    def record(self, name: str, status: CheckStatus, **data: Any) -> dict[str, Any]:
        entry = {**data, "status": status.value}
        self.checks[name] = entry
        return entry

    def add_issue(
        self,
        type: str,
        severity: Severity,
        title: str,
        description: str,
        recommendation: str,
        affected_pages: int = 0,
        examples: Iterable[Any] = (),
        evidence: Iterable[dict[str, Any]] = (),
        specifics: Iterable[FieldSuggestion] = (),
    ) -> Issue:
        issue = Issue(
            type=type,
            severity=severity,
            title=title,
            description=description,
            recommendation=recommendation,
            affected_pages=affected_pages,
            examples=tuple(examples),
            evidence=tuple(evidence),
            specifics=tuple(specifics),
        )
        self.issues.append(issue)
        return issue

    def build(self, category: Category, weight: float, score: float) -> CategoryResult:
        score = clamp_score(score)
        return CategoryResult(
            category=category,
            category_score=score,
            weight=weight,
            rating=get_rating(score),
            issues=list(self.issues),
            checks=dict(self.checks),
            measurement_method=self.measurement_method,
            confidence=self.confidence,
        )


class Analyzer(ABC):
    """Base class for category analyzers.

    Subclasses implement ``run_checks``, which records diagnostics and issues
    on the builder it is given and returns the category score. Nothing is
    stored on the analyzer between calls, so one instance can serve several
    audits concurrently.
    """

    category: Category
    weight: float

    def __init__(self, config: Optional[AuditConfig] = None, transport: Optional[httpx.BaseTransport] = None):
        self.config = config or AuditConfig()
        self.transport = transport

    def http_client(self, timeout: Optional[float] = None) -> httpx.Client:
        return httpx.Client(
            headers={"User-Agent": self.config.crawl.user_agent},
            timeout=timeout if timeout is not None else self.config.check_timeout,
            follow_redirects=True,
            transport=self.transport,
        )

    def analyze(self, audit_id: str, domain: str, pages: Sequence[CrawledPage]) -> CategoryResult:
        """Run every check for this category and return the scored result."""
        logger.info("[%s] Starting %s analysis", audit_id, self.category.value)
        pages = tuple(pages)
        builder = ResultBuilder()
        try:
            score = self.run_checks(builder, domain, pages)
        except Exception:
            logger.exception("[%s] %s analysis failed", audit_id, self.category.value)
            raise

        result = builder.build(self.category, self.weight, score)
        logger.info(
            "[%s] %s analysis completed: score=%d issues=%d",
            audit_id, self.category.value, result.category_score, result.issue_count,
        )
        return result

    @abstractmethod
    def run_checks(self, builder: ResultBuilder, domain: str, pages: tuple[CrawledPage, ...]) -> float:
        """Record checks and issues on `builder` and return the category score."""
