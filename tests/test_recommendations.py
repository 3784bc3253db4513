import pytest

from seo_health.models import (
    AuditReport,
    Category,
    EffortLevel,
    Issue,
    Priority,
    Severity,
)
from seo_health.recommendations import classify, effort_for


def make_issue(type_: str, severity: Severity = Severity.MEDIUM, affected_pages: int = 0) -> Issue:
    return Issue(
        type=type_,
        severity=severity,
        title=type_.replace("_", " ").title(),
        description="description",
        recommendation="do the thing",
        affected_pages=affected_pages,
    )


@pytest.mark.parametrize(
    "issue_type, level, hours, phase",
    [
        ("missing_sitemap", EffortLevel.QUICK_WIN, 1, "quick-wins"),
        ("missing_ssl", EffortLevel.MODERATE, 3, "short-term"),
        ("duplicate_title_tags", EffortLevel.SUBSTANTIAL, 12, "medium-term"),
        ("something_new", EffortLevel.MODERATE, 4, "short-term"),
    ],
)
def test_effort_lookup(issue_type, level, hours, phase):
    effort = effort_for(issue_type)
    assert (effort.level, effort.hours, effort.phase) == (level, hours, phase)


def test_classify_maps_each_issue():
    issues = [
        make_issue("missing_ssl", Severity.CRITICAL, affected_pages=12),
        make_issue("unknown_issue_type", Severity.LOW),
    ]
    recs = classify(issues, Category.TECHNICAL_SEO)

    assert len(recs) == 2
    first, second = recs
    assert first.priority == Priority.CRITICAL
    assert first.category == Category.TECHNICAL_SEO
    assert first.implementation == "do the thing"
    assert first.affected_pages == 12
    assert first.expected_impact.startswith("High impact")
    assert second.priority == Priority.LOW
    assert second.effort_level == EffortLevel.MODERATE
    assert second.estimated_hours == 4


def test_classify_empty():
    assert classify([]) == []


def test_quick_wins_are_sorted_and_limited():
    issues = [make_issue("missing_robots", Severity.LOW)] + [
        make_issue("missing_sitemap", Severity.HIGH) for _ in range(5)
    ] + [make_issue("thin_content", Severity.CRITICAL)]
    report = AuditReport(audit_id="a", url="https://example.com/", domain="example.com")
    report.recommendations = classify(issues)

    wins = report.quick_wins
    assert len(wins) == 5
    assert all(r.effort_level == EffortLevel.QUICK_WIN for r in wins)
    assert all(r.priority == Priority.HIGH for r in wins)
