from seo_health.urls import (
    build_robots_txt_url,
    build_sitemap_url,
    ensure_scheme,
    extract_domain,
    extract_path,
    is_same_domain,
    is_valid_url,
    normalize_url,
    resolve_url,
    strip_fragment,
)


def test_ensure_scheme():
    assert ensure_scheme("example.com") == "https://example.com"
    assert ensure_scheme("  http://example.com ") == "http://example.com"
    assert ensure_scheme("https://example.com/a") == "https://example.com/a"


def test_is_valid_url_accepts_public_http_urls():
    assert is_valid_url("https://example.com")
    assert is_valid_url("http://example.com/path?q=1")


def test_is_valid_url_rejects_bad_input():
    assert not is_valid_url("")
    assert not is_valid_url("not a url")
    assert not is_valid_url("ftp://example.com/file")
    assert not is_valid_url("http://localhost:8000/")
    assert not is_valid_url("http://127.0.0.1/")
    assert not is_valid_url("http://192.168.1.10/")


def test_normalize_url():
    assert normalize_url("http://example.com/about/") == "https://example.com/about"
    assert normalize_url("https://example.com") == "https://example.com/"
    assert normalize_url("https://example.com/a?b=2&a=1#top") == "https://example.com/a?a=1&b=2"


def test_strip_fragment_and_resolve():
    assert strip_fragment("https://example.com/a#section") == "https://example.com/a"
    assert resolve_url("https://example.com/blog/post", "../about") == "https://example.com/about"
    assert resolve_url("https://example.com/", "/contact") == "https://example.com/contact"


def test_extract_domain_and_same_domain():
    assert extract_domain("https://www.example.com/a") == "www.example.com"
    assert extract_domain("garbage") == ""
    assert is_same_domain("https://example.com/a", "http://example.com/b")
    assert not is_same_domain("https://example.com/", "https://other.com/")
    assert not is_same_domain("garbage", "garbage")


def test_extract_path():
    assert extract_path("https://example.com") == "/"
    assert extract_path("https://example.com/blog/post") == "/blog/post"
    assert extract_path("https://example.com/search?q=seo") == "/search?q=seo"


def test_root_file_urls():
    assert build_sitemap_url("example.com") == "https://example.com/sitemap.xml"
    assert build_robots_txt_url("https://example.com/deep/page") == "https://example.com/robots.txt"
    assert build_sitemap_url("http://example.com") == "http://example.com/sitemap.xml"
