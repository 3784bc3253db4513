import pytest
from bs4 import BeautifulSoup

from conftest import html_page, site_transport
from seo_health.config import CrawlConfig
from seo_health.crawler import build_client, crawl, extract_links, extract_metadata, get_schema_types


ROOT = "https://example.com/"


def _links(*hrefs: str) -> str:
    return "".join(f'<a href="{h}">link</a>' for h in hrefs)


SITE = {
    "https://example.com/": html_page(
        "Home",
        _links("/a", "/b", "/c#team", "mailto:hi@example.com", "https://other.com/x", "javascript:void(0)"),
    ),
    "https://example.com/a": html_page("A", _links("/a/deep", "/")),
    "https://example.com/b": html_page("B", _links("/a")),
    "https://example.com/c": html_page("C"),
    "https://example.com/a/deep": html_page("Deep", _links("/a/deep/deeper")),
    "https://example.com/a/deep/deeper": html_page("Deeper"),
}


def run_crawl(routes, **config):
    cfg = CrawlConfig(delay_ms=0, **config)
    with build_client(cfg, site_transport(routes)) as client:
        return crawl(ROOT, cfg, client=client)


def test_single_page_without_links():
    pages = run_crawl({ROOT: html_page("Only page", "<p>hello world</p>")})
    assert len(pages) == 1
    assert pages[0].url == ROOT
    assert pages[0].depth == 0
    assert pages[0].title == "Only page"
    assert pages[0].word_count == 2


def test_crawl_is_breadth_first_and_deduplicated():
    pages = run_crawl(SITE, max_pages=50, max_depth=5)
    urls = [p.url for p in pages]
    assert len(urls) == len(set(urls))
    assert urls[:4] == [
        "https://example.com/",
        "https://example.com/a",
        "https://example.com/b",
        "https://example.com/c",
    ]
    assert set(urls) == set(SITE)
    assert not any("other.com" in u for u in urls)


@pytest.mark.parametrize("max_pages", [1, 2, 3, 5])
def test_crawl_respects_page_budget(max_pages):
    pages = run_crawl(SITE, max_pages=max_pages, max_depth=5)
    assert len(pages) <= max_pages
    assert len({p.url for p in pages}) == len(pages)


def test_crawl_respects_depth_limit():
    pages = run_crawl(SITE, max_pages=50, max_depth=1)
    assert all(p.depth <= 1 for p in pages)
    assert "https://example.com/a/deep" not in {p.url for p in pages}


def test_depth_zero_crawls_only_start_page():
    pages = run_crawl(SITE, max_pages=50, max_depth=0)
    assert [p.url for p in pages] == [ROOT]


def test_failed_pages_are_recorded_and_crawl_continues():
    routes = dict(SITE)
    routes["https://example.com/b"] = None
    routes["https://example.com/c"] = (503, "unavailable")
    pages = run_crawl(routes, max_pages=50, max_depth=5)
    by_url = {p.url: p for p in pages}

    assert by_url["https://example.com/b"].failed
    assert by_url["https://example.com/b"].status_code == 0
    assert by_url["https://example.com/c"].failed
    assert "https://example.com/a/deep" in by_url


def test_client_errors_still_count_as_fetched():
    routes = {ROOT: html_page("Home", _links("/missing"))}
    pages = run_crawl(routes, max_pages=5, max_depth=2)
    missing = pages[1]
    assert missing.url == "https://example.com/missing"
    assert missing.status_code == 404
    assert not missing.failed


def test_html_is_dropped_when_not_kept():
    pages = run_crawl({ROOT: html_page("Home")}, keep_html=False)
    assert pages[0].html is None
    assert pages[0].headers["content-type"] == "text/html"


def test_extract_links_filters_and_resolves():
    soup = BeautifulSoup(
        _links("/x", "y", "#top", "tel:123", "https://other.com/", "/x#frag", "http://example.com/z"),
        "lxml",
    )
    links = extract_links(soup, "https://example.com/dir/", ROOT)
    assert links == [
        "https://example.com/x",
        "https://example.com/dir/y",
        "http://example.com/z",
    ]


def test_extract_metadata():
    html = html_page(
        title="Welcome to Example",
        description="An example site",
        head=(
            '<meta name="viewport" content="width=device-width">'
            '<link rel="canonical" href="https://example.com/">'
            '<meta property="og:title" content="Example">'
            '<meta name="twitter:site" content="@example">'
            '<script type="application/ld+json">{"@graph": [{"@type": "Organization"}, {"@type": "WebSite"}]}</script>'
            '<script type="application/ld+json">not json</script>'
        ),
        body=(
            "<h1>Main heading</h1><h2>One</h2><h2>Two</h2><h3>Sub</h3>"
            '<p>Some words here</p><img src="a.png"><a href="/x">x</a>'
            "<script>var ignored = 1;</script>"
        ),
    )
    meta = extract_metadata(BeautifulSoup(html, "lxml"))
    assert meta["title"] == "Welcome to Example"
    assert meta["title_length"] == len("Welcome to Example")
    assert meta["meta_description"] == "An example site"
    assert meta["h1_tags"] == ("Main heading",)
    assert meta["h2_tags"] == ("One", "Two")
    assert meta["h3_tags"] == ("Sub",)
    assert meta["canonical"] == "https://example.com/"
    assert meta["has_viewport"] is True
    assert meta["has_schema"] is True
    assert meta["schema_types"] == ("Organization", "WebSite")
    assert meta["open_graph"] == {"og:title": "Example"}
    assert meta["twitter"] == {"twitter:site": "@example"}
    assert meta["image_count"] == 1
    assert meta["link_count"] == 1
    assert meta["word_count"] == 9


def test_get_schema_types_handles_lists():
    assert get_schema_types({"@type": ["LocalBusiness", "Dentist"]}) == ["LocalBusiness", "Dentist"]
    assert get_schema_types(["not", "a", "dict"]) == []
