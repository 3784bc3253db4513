from seo_health.cms import detect_cms


WORDPRESS_HTML = """
<html><head>
<meta name="generator" content="WordPress 6.4.2">
<link rel="stylesheet" href="https://blog.example.com/wp-content/themes/x/style.css">
<script src="https://blog.example.com/wp-includes/js/jquery.js"></script>
</head><body class="home wp-custom-logo"></body></html>
"""


def test_no_signals_means_no_detection():
    assert detect_cms({}, "<html><body>Hello</body></html>") is None
    assert detect_cms() is None


def test_weak_signal_below_threshold():
    # a lone data-hs- attribute scores 6
    assert detect_cms({}, '<div data-hs-form="1"></div>') is None


def test_wordpress_from_html():
    detection = detect_cms({}, WORDPRESS_HTML)
    assert detection.platform == "WordPress"
    assert detection.platform_key == "wordpress"
    # generator 10 + wp-content 8 + wp-includes 8 + class 4 = 30 of 60
    assert detection.confidence_pct == 50
    assert detection.confidence == "medium"
    assert detection.api_url == "https://blog.example.com/wp-json"


def test_wordpress_api_url_prefers_link_header():
    headers = {"Link": '<https://example.com/wp-json/>; rel="https://api.w.org/"'}
    detection = detect_cms(headers, WORDPRESS_HTML, cookies="wordpress_logged_in=1")
    assert detection.api_url == "https://example.com/wp-json"
    # 30 + link header 10 + cookie 10
    assert detection.confidence_pct == 83
    assert detection.confidence == "high"


def test_shopify():
    html = '<script src="https://cdn.shopify.com/s/x.js"></script><script>Shopify.theme = {}</script>'
    detection = detect_cms({"X-Shopify-Stage": "production"}, html)
    assert detection.platform_key == "shopify"
    assert detection.confidence_pct == 100
    assert detection.api_url is None
    assert detection.signals


def test_webflow_header_only_is_low_confidence():
    detection = detect_cms({"x-wf-site": "abc123"}, "")
    assert detection.platform == "Webflow"
    assert detection.confidence_pct == 33
    assert detection.confidence == "low"


def test_ties_keep_first_platform():
    html = 'data-wf-site="1" static.wixstatic.com'
    detection = detect_cms({}, html)
    assert detection.platform_key == "webflow"


def test_hubspot_cookie():
    detection = detect_cms({}, '<script src="//js.hs-scripts.com/1.js"></script>', cookies="hubspotutk=abc")
    assert detection.platform_key == "hubspot"
    assert detection.confidence_pct == 64
