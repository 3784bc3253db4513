"""Turns analyzer issues into prioritized, effort-estimated recommendations."""

from dataclasses import dataclass
from typing import Iterable, Optional

from .models import Category, EffortLevel, Issue, Priority, Recommendation, Severity


@dataclass(frozen=True)
class Effort:
    level: EffortLevel
    hours: int
    phase: str


QUICK_WIN = Effort(EffortLevel.QUICK_WIN, 1, "quick-wins")
MODERATE = Effort(EffortLevel.MODERATE, 3, "short-term")
SUBSTANTIAL = Effort(EffortLevel.SUBSTANTIAL, 12, "medium-term")
DEFAULT_EFFORT = Effort(EffortLevel.MODERATE, 4, "short-term")

# Some types are emitted by analyzers outside this package; they stay so
# their recommendations keep the agreed effort buckets.
EFFORT_BY_TYPE: dict[str, Effort] = {
    **dict.fromkeys([
        "missing_sitemap",
        "missing_robots",
        "robots_missing_sitemap",
        "enable_compression",
        "use_webp",
        "no_google_maps",
        "no_location_in_title",
        "no_trust_badges",
        "trailing_slash_inconsistency",
        "trust_badges_missing_from_homepage",
    ], QUICK_WIN),
    **dict.fromkeys([
        "missing_ssl",
        "missing_meta_descriptions",
        "missing_h1",
        "unoptimized_images",
        "unused_css",
        "missing_privacy_policy",
        "missing_contact_page",
        "missing_local_business_schema",
        "incomplete_nap",
        "thin_content",
        "thin_content_blog",
        "thin_content_service",
        "weak_eeat_signals",
        "js_dependent_content",
        "blog_not_featured_on_homepage",
        "no_faq_sections",
    ], MODERATE),
    **dict.fromkeys([
        "mobile_not_optimized",
        "duplicate_title_tags",
        "duplicate_meta_descriptions",
        "poor_mobile_performance",
        "poor_lcp",
        "no_social_media",
        "inconsistent_phone",
        "inconsistent_address",
        "keyword_cannibalization",
        "low_avg_word_count",
    ], SUBSTANTIAL),
}

PRIORITY_BY_SEVERITY = {
    Severity.CRITICAL: Priority.CRITICAL,
    Severity.HIGH: Priority.HIGH,
    Severity.MEDIUM: Priority.MEDIUM,
    Severity.LOW: Priority.LOW,
}

IMPACT_BY_SEVERITY = {
    Severity.CRITICAL: "High impact. Expected score increase: +10-20 points.",
    Severity.HIGH: "Moderate-high impact. Expected score increase: +5-10 points.",
    Severity.MEDIUM: "Moderate impact. Expected score increase: +3-5 points.",
    Severity.LOW: "Low impact. Expected score increase: +1-3 points.",
}


def effort_for(issue_type: str) -> Effort:
    return EFFORT_BY_TYPE.get(issue_type, DEFAULT_EFFORT)


def classify(issues: Iterable[Issue], category: Optional[Category] = None) -> list[Recommendation]:
    """One recommendation per issue, in issue order."""
    recommendations = []
    for issue in issues:
        effort = effort_for(issue.type)
        recommendations.append(Recommendation(
            issue_type=issue.type,
            category=category,
            priority=PRIORITY_BY_SEVERITY[issue.severity],
            title=issue.title,
            description=issue.description,
            implementation=issue.recommendation,
            expected_impact=IMPACT_BY_SEVERITY[issue.severity],
            effort_level=effort.level,
            estimated_hours=effort.hours,
            phase=effort.phase,
            affected_pages=issue.affected_pages,
        ))
    return recommendations
