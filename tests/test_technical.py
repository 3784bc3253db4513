import pytest

from conftest import make_page, site_transport
from seo_health.analyzers.technical import (
    DISALLOW_ALL_CAP,
    TechnicalAnalyzer,
    count_sitemap_entries,
    has_disallow_all,
)
from seo_health.models import Category, Severity


SITEMAP = """<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
  <url><loc>https://example.com/</loc></url>
  <url><loc>https://example.com/about</loc></url>
</urlset>"""


def perfect_pages():
    return [
        make_page(
            url,
            has_viewport=True,
            has_schema=True,
            schema_types=("Organization",),
            canonical=url,
        )
        for url in ("https://example.com/", "https://example.com/about", "https://example.com/pricing")
    ]


def routes(robots="User-agent: *\nAllow: /\nSitemap: https://example.com/sitemap.xml\n", sitemap=SITEMAP):
    table = {"https://example.com/": "<html></html>"}
    if robots is not None:
        table["https://example.com/robots.txt"] = (200, robots, {"content-type": "text/plain"})
    if sitemap is not None:
        table["https://example.com/sitemap.xml"] = (200, sitemap, {"content-type": "application/xml"})
    return table


def analyze(pages, table):
    return TechnicalAnalyzer(transport=site_transport(table)).analyze("test", "example.com", pages)


def issue_types(result):
    return [i.type for i in result.issues]


def test_has_disallow_all():
    assert has_disallow_all("User-agent: *\nDisallow: /")
    assert has_disallow_all("user-agent: *\n  disallow:   /   # everything")
    assert not has_disallow_all("User-agent: *\nDisallow: /admin")
    assert not has_disallow_all("User-agent: *\nDisallow:")
    assert not has_disallow_all("")


def test_count_sitemap_entries():
    assert count_sitemap_entries(SITEMAP) == 2
    index = (
        '<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
        "<sitemap><loc>https://example.com/a.xml</loc></sitemap></sitemapindex>"
    )
    assert count_sitemap_entries(index) == 1
    assert count_sitemap_entries("<urlset></urlset>") == 0


def test_perfect_site_scores_100():
    result = analyze(perfect_pages(), routes())
    assert result.category == Category.TECHNICAL_SEO
    assert result.weight == 0.25
    assert result.category_score == 100
    assert result.issues == []
    assert result.checks["sitemap"]["url_count"] == 2
    assert result.checks["ssl"]["has_ssl"] is True


def test_disallow_all_caps_score():
    result = analyze(perfect_pages(), routes(robots="User-agent: *\nDisallow: /\nSitemap: https://example.com/sitemap.xml"))
    assert result.category_score == DISALLOW_ALL_CAP == 45
    blocked = next(i for i in result.issues if i.type == "robots_blocks_all")
    assert blocked.severity == Severity.CRITICAL
    assert blocked.affected_pages == 3


def test_missing_sitemap_and_robots():
    result = analyze(perfect_pages(), routes(robots=None, sitemap=None))
    types = issue_types(result)
    assert "missing_sitemap" in types
    assert "missing_robots" in types
    assert result.checks["sitemap"]["exists"] is False
    # sitemap 0, robots 50, the rest 100
    assert result.category_score == 73


def test_robots_without_sitemap_reference():
    result = analyze(perfect_pages(), routes(robots="User-agent: *\nDisallow: /admin"))
    assert "robots_missing_sitemap" in issue_types(result)
    assert result.checks["robots_txt"]["has_sitemap_reference"] is False


def test_ssl_failure_is_reported():
    table = routes()
    table["https://example.com/"] = None
    result = analyze(perfect_pages(), table)
    ssl_issue = next(i for i in result.issues if i.type == "missing_ssl")
    assert ssl_issue.severity == Severity.CRITICAL
    assert result.checks["ssl"]["has_ssl"] is False


def test_page_markup_issues():
    pages = [
        make_page("https://example.com/", has_viewport=True, canonical="https://example.com/"),
        make_page("https://example.com/a", canonical="https://example.com/elsewhere"),
        make_page("https://example.com/b/"),
        make_page("https://example.com/c"),
    ]
    result = analyze(pages, routes())
    types = issue_types(result)

    mobile = next(i for i in result.issues if i.type == "mobile_not_optimized")
    assert mobile.severity == Severity.CRITICAL
    assert mobile.affected_pages == 3
    assert "no_structured_data" in types
    assert "missing_canonical_tags" in types
    wrong = next(i for i in result.issues if i.type == "wrong_canonical_tags")
    assert wrong.affected_pages == 1
    slash = next(i for i in result.issues if i.type == "trailing_slash_inconsistency")
    assert slash.affected_pages == 1
    assert slash.examples == ("/b/",)
    assert result.checks["trailing_slash"]["with_trailing_slash"] == 1


def test_empty_page_list():
    result = analyze([], routes())
    assert 0 <= result.category_score <= 100
    assert set(issue_types(result)) <= {"missing_sitemap", "missing_robots", "missing_ssl"}
    assert result.checks["trailing_slash"]["checked_paths"] == 0


@pytest.mark.parametrize("table", [routes(robots=None, sitemap=None), {}])
def test_unreachable_site_never_raises(table):
    result = analyze(perfect_pages(), table)
    assert 0 <= result.category_score <= 100
