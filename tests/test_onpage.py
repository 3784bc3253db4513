from conftest import make_page
from seo_health.analyzers.onpage import OnPageAnalyzer
from seo_health.models import Category, Severity


GOOD_META = (
    "Practical guides and tools for small business owners who want clear, honest advice "
    "on growing revenue without wasting money on ads."
)


def good_page(url: str, title: str, **fields):
    fields.setdefault("meta_description", f"{GOOD_META} {title}"[:155])
    fields.setdefault("h1_tags", (title,))
    return make_page(url, title=title, **fields)


def analyze(pages):
    return OnPageAnalyzer().analyze("test", "www.example.com", pages)


def issue(result, type_):
    return next(i for i in result.issues if i.type == type_)


def test_well_formed_pages_score_100():
    pages = [
        good_page("https://example.com/", "Example Co - Growth Advice for Small Businesses"),
        good_page("https://example.com/pricing", "Pricing and Plans for Every Business Size"),
    ]
    result = analyze(pages)
    assert result.category == Category.ON_PAGE_SEO
    assert result.category_score == 100
    assert result.issues == []
    assert result.checks["image_optimization"]["total_images"] == 0


def test_duplicate_titles_are_one_issue_covering_both_pages():
    title = "Our Services for Growing Businesses Nationwide"
    pages = [
        good_page("https://example.com/a", title, meta_description=GOOD_META),
        good_page("https://example.com/b", title, meta_description=GOOD_META + " More."),
    ]
    result = analyze(pages)
    duplicates = [i for i in result.issues if i.type == "duplicate_title_tags"]
    assert len(duplicates) == 1
    assert duplicates[0].affected_pages == 2
    assert duplicates[0].severity == Severity.HIGH
    suggestion = duplicates[0].specifics[0]
    assert suggestion.copy_paste_ready is False
    assert "/a" in suggestion.context and "/b" in suggestion.context


def test_missing_and_short_titles_get_suggestions():
    pages = [
        make_page("https://example.com/coaching", h1_tags=("Executive Coaching",), meta_description=GOOD_META),
        make_page("https://example.com/team", title="Team", h1_tags=("Meet the Team",), meta_description=GOOD_META),
    ]
    result = analyze(pages)

    missing = issue(result, "missing_title_tags")
    assert missing.severity == Severity.CRITICAL
    assert missing.specifics[0].current == "(none)"
    assert missing.specifics[0].suggested == "Executive Coaching | Example"

    short = issue(result, "short_title_tags")
    assert short.specifics[0].suggested == "Meet the Team | Example"


def test_meta_description_problems():
    long_meta = "x" * 200
    pages = [
        good_page("https://example.com/", "Example Co - Growth Advice for Small Businesses", meta_description=""),
        good_page("https://example.com/a", "A Longer Page Title About Something Useful", meta_description="Too short."),
        good_page("https://example.com/b", "Another Page Title About Something Useful", meta_description=long_meta),
    ]
    result = analyze(pages)

    missing = issue(result, "missing_meta_descriptions")
    assert missing.affected_pages == 1
    suggested = missing.specifics[0].suggested
    assert 120 <= len(suggested) <= 160
    assert issue(result, "short_meta_descriptions").severity == Severity.LOW
    trimmed = issue(result, "long_meta_descriptions").specifics[0].suggested
    assert len(trimmed) == 160
    assert trimmed.endswith("...")


def test_heading_problems():
    pages = [
        good_page("https://example.com/a", "A Longer Page Title About Something Useful", h1_tags=()),
        good_page(
            "https://example.com/b",
            "Another Page Title About Something Useful",
            h1_tags=("First", "Second", "Third"),
        ),
        good_page(
            "https://example.com/c",
            "Third Page Title About Something Very Useful",
            h3_tags=("Detail",),
        ),
    ]
    result = analyze(pages)

    assert issue(result, "missing_h1").affected_pages == 1
    multiple = issue(result, "multiple_h1")
    assert '3 H1 tags: "First" and "Second" (+1 more)' in multiple.description
    assert multiple.specifics[0].suggested == "First"
    hierarchy = issue(result, "heading_hierarchy_issues")
    assert "skipped heading level" in hierarchy.description


def test_url_structure_problems():
    pages = [
        good_page("https://example.com/search?q=shoes", "Search Results for Shoes and More Items"),
        good_page("https://example.com/a/b/c/d", "Deeply Nested Page Title for Testing URLs"),
    ]
    result = analyze(pages)
    assert issue(result, "urls_with_parameters").affected_pages == 1
    deep = issue(result, "deep_url_structure")
    assert deep.evidence[0]["detail"] == "4 levels deep"


def test_images_missing_alt_text():
    html = (
        '<img src="https://example.com/uploads/coach-session_2.jpg?v=1">'
        '<img src="/img/logo.png" alt="Example logo">'
        '<img data-src="/img/team_photo.webp" alt="  ">'
    )
    pages = [good_page("https://example.com/", "Example Co - Growth Advice for Small Businesses", html=html)]
    result = analyze(pages)

    alt = issue(result, "images_missing_alt_text")
    assert alt.severity == Severity.MEDIUM
    assert [s.suggested for s in alt.specifics] == ["Coach session 2", "Team photo"]
    assert alt.specifics[0].image_src == "/uploads/coach-session_2.jpg?v=1"
    assert result.checks["image_optimization"]["percentage_with_alt"] == 33


def test_weak_internal_linking():
    pages = [
        good_page("https://example.com/guide", "A Complete Guide to Growing Your Business", word_count=900, link_count=2,
                  h2_tags=("Intro",)),
    ]
    result = analyze(pages)
    weak = issue(result, "weak_internal_linking")
    assert weak.evidence[0]["detail"] == "Only 2 links in 900 words of content"
    assert result.checks["internal_linking"]["avg_links_per_page"] == 2


def test_empty_page_list():
    result = analyze([])
    assert 0 <= result.category_score <= 100
    assert result.issues == []
