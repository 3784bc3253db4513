from conftest import make_page
from seo_health.analyzers.content import ContentQualityAnalyzer, title_keywords
from seo_health.models import Category, Severity


def analyze(pages):
    return ContentQualityAnalyzer().analyze("test", "example.com", pages)


def types(result):
    return [i.type for i in result.issues]


def test_title_keywords():
    assert title_keywords("Best Running Shoes for Trail Runners") == ["running", "shoes", "trail", "runners"]


def test_results_are_tagged_as_measured():
    result = analyze([make_page()])
    assert result.category == Category.CONTENT_QUALITY
    assert result.measurement_method == "crawl-analysis"
    assert result.confidence == "measured"


def test_rich_site_scores_high():
    pages = [
        make_page(
            "https://example.com/",
            title="Example Home",
            word_count=800,
            image_count=3,
            h2_tags=("Latest posts", "Why us", "FAQ"),
        ),
        make_page(
            "https://example.com/faq",
            title="Frequently Asked Questions",
            word_count=700,
            image_count=1,
            schema_types=("FAQPage",),
        ),
    ]
    result = analyze(pages)
    assert result.category_score == 100
    assert result.issues == []
    assert result.checks["faq_sections"]["pages_with_faq"] == 2


def test_thin_content_excludes_homepage():
    pages = [
        make_page("https://example.com/", word_count=50, image_count=1),
        make_page("https://example.com/a", word_count=120, image_count=1),
        make_page("https://example.com/b", word_count=900, image_count=1),
    ]
    result = analyze(pages)
    thin = next(i for i in result.issues if i.type == "thin_content")
    assert thin.affected_pages == 1
    assert thin.severity == Severity.MEDIUM
    assert thin.evidence[0]["detail"] == "120 words (minimum: 300)"
    assert "low_avg_word_count" in types(result)
    assert result.checks["content_volume"]["avg_word_count"] == 357


def test_keyword_cannibalization():
    pages = [
        make_page(f"https://example.com/{i}", title=f"Marketing Services Option {i}", word_count=500)
        for i in range(3)
    ]
    result = analyze(pages)
    cannibal = next(i for i in result.issues if i.type == "keyword_cannibalization")
    # "marketing", "services" and "option" each appear in three titles
    assert len(cannibal.examples) == 3
    assert result.checks["keyword_cannibalization"]["potential_issues"] == 3


def test_repeated_word_within_one_title_counts_once():
    pages = [
        make_page("https://example.com/a", title="Coaching Tips - Coaching Blog", word_count=500),
        make_page("https://example.com/b", title="Coaching Prices", word_count=500),
    ]
    result = analyze(pages)
    assert "keyword_cannibalization" not in types(result)
    assert result.checks["keyword_cannibalization"]["potential_issues"] == 0


def test_complex_titles_hurt_readability():
    long_title = " ".join(["word"] * 16)
    result = analyze([make_page("https://example.com/a", title=long_title, word_count=400)])
    assert "readability_issues" in types(result)
    assert result.checks["readability"]["percentage_good"] == 0


def test_no_faq_and_limited_multimedia():
    pages = [make_page(f"https://example.com/p{i}", word_count=500) for i in range(4)]
    result = analyze(pages)
    assert "no_faq_sections" in types(result)
    multimedia = next(i for i in result.issues if i.type == "limited_multimedia")
    assert multimedia.affected_pages == 4


def test_eeat_and_blog_promotion():
    pages = [make_page("https://example.com/", word_count=500, image_count=1)] + [
        make_page(f"https://example.com/blog/post-{i}", word_count=450, image_count=1) for i in range(3)
    ]
    result = analyze(pages)
    eeat = next(i for i in result.issues if i.type == "weak_eeat_signals")
    assert eeat.affected_pages == 4
    assert "blog_not_featured_on_homepage" in types(result)


def test_dated_headings_count_as_eeat_signal():
    page = make_page("https://example.com/news", word_count=500, h2_tags=("Updated March 2024",))
    result = analyze([page])
    assert "weak_eeat_signals" not in types(result)


def test_empty_page_list():
    result = analyze([])
    assert 0 <= result.category_score <= 100
    assert "low_avg_word_count" not in types(result)
    assert "thin_content" not in types(result)
