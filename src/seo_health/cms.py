"""CMS fingerprinting from response headers, HTML and cookies."""

import logging
import re
from dataclasses import dataclass
from typing import Mapping, Optional

from .models import CMSDetection
from .scoring import round_score


logger = logging.getLogger(__name__)

MIN_DETECTION_SCORE = 8


@dataclass(frozen=True)
class Signal:
    source: str  # header, html or cookie
    pattern: re.Pattern
    weight: int
    header: Optional[str] = None

    def describe(self) -> str:
        where = f"header:{self.header}" if self.header else self.source
        return f"{where} /{self.pattern.pattern}/"


@dataclass(frozen=True)
class Platform:
    key: str
    name: str
    signals: tuple[Signal, ...]
    max_score: int


def _header(name: str, pattern: str, weight: int) -> Signal:
    return Signal("header", re.compile(pattern, re.IGNORECASE), weight, header=name)


def _html(pattern: str, weight: int) -> Signal:
    return Signal("html", re.compile(pattern, re.IGNORECASE), weight)


def _cookie(pattern: str, weight: int) -> Signal:
    return Signal("cookie", re.compile(pattern, re.IGNORECASE), weight)


PLATFORMS = (
    Platform("wordpress", "WordPress", (
        _header("x-powered-by", r"wordpress", 10),
        _header("link", r'rel="https://api\.w\.org/', 10),
        _html(r"""<meta[^>]+name=["']generator["'][^>]+content=["'][^"']*wordpress""", 10),
        _html(r"/wp-content/", 8),
        _html(r"/wp-includes/", 8),
        _html(r"/wp-json/", 8),
        _html(r"""class=["'][^"']*wp-[a-z]""", 4),
        _html(r"<!--\s*This site is optimized with the Yoast", 6),
        _html(r"<!-- This site uses the Google Analytics", 2),
        _cookie(r"wordpress_", 10),
        _cookie(r"wp-settings", 8),
    ), max_score=60),
    Platform("webflow", "Webflow", (
        _header("x-wf-site", r".+", 10),
        _html(r"data-wf-site=", 10),
        _html(r"webflow\.com/css/", 8),
        _html(r"webflow\.js", 8),
        _html(r"<meta[^>]+generator[^>]+Webflow", 10),
    ), max_score=30),
    Platform("shopify", "Shopify", (
        _header("x-shopify-stage", r".+", 10),
        _html(r"cdn\.shopify\.com", 10),
        _html(r"Shopify\.theme", 10),
        _html(r"myshopify\.com", 8),
        _cookie(r"shopify_", 6),
    ), max_score=30),
    Platform("squarespace", "Squarespace", (
        _html(r"static\d*\.squarespace\.com", 10),
        _html(r"data-squarespace-", 10),
        _html(r"/squarespace-assets/", 8),
        _header("server", r"Squarespace", 10),
    ), max_score=30),
    Platform("wix", "Wix", (
        _html(r"static\.wixstatic\.com", 10),
        _html(r"wix-code-", 8),
        _html(r"<meta[^>]+generator[^>]+Wix\.com", 10),
        _header("x-wix-request-id", r".+", 10),
    ), max_score=30),
    Platform("hubspot", "HubSpot", (
        _html(r"hs-scripts\.com", 10),
        _html(r"hubspot\.com//hs-script-loader", 10),
        _html(r"data-hs-", 6),
        _cookie(r"hubspotutk", 8),
    ), max_score=28),
)

WP_LINK_API_RE = re.compile(r"^<(https?://[^>]+?/wp-json)/?")
WP_CONTENT_HOST_RE = re.compile(r"https?://([^/\"']+)/wp-content/")


def _matches(signal: Signal, headers: Mapping[str, str], html: str, cookies: str) -> bool:
    if signal.source == "header":
        text = headers.get(signal.header, "")
    elif signal.source == "cookie":
        text = cookies
    else:
        text = html
    return bool(text) and bool(signal.pattern.search(text))


def _wordpress_api_url(headers: Mapping[str, str], html: str) -> Optional[str]:
    match = WP_LINK_API_RE.match(headers.get("link", ""))
    if match:
        return match.group(1)
    match = WP_CONTENT_HOST_RE.search(html)
    if match:
        return f"https://{match.group(1)}/wp-json"
    return None


def confidence_label(pct: int) -> str:
    if pct >= 70:
        return "high"
    if pct >= 40:
        return "medium"
    return "low"


def detect_cms(
    headers: Optional[Mapping[str, str]] = None,
    html: str = "",
    cookies: str = "",
) -> Optional[CMSDetection]:
    """Detect the CMS behind a page.

    Args:
        headers: Response headers with lowercased names.
        html: Raw page HTML.
        cookies: Raw Set-Cookie header value.

    Returns:
        The best-scoring platform, or None when no platform reaches the
        detection threshold. Ties keep the platform listed first.
    """
    headers = {k.lower(): v for k, v in (headers or {}).items()}
    html = html or ""
    cookies = cookies or ""

    best: Optional[Platform] = None
    best_score = 0
    best_signals: list[str] = []
    for platform in PLATFORMS:
        matched = [s for s in platform.signals if _matches(s, headers, html, cookies)]
        score = sum(s.weight for s in matched)
        if score > best_score:
            best, best_score = platform, score
            best_signals = [s.describe() for s in matched]

    if best is None or best_score < MIN_DETECTION_SCORE:
        logger.debug("No CMS detected (best score %d)", best_score)
        return None

    pct = min(100, round_score(best_score / best.max_score * 100))
    detection = CMSDetection(
        platform=best.name,
        platform_key=best.key,
        confidence=confidence_label(pct),
        confidence_pct=pct,
        api_url=_wordpress_api_url(headers, html) if best.key == "wordpress" else None,
        signals=tuple(best_signals),
    )
    logger.debug("Detected %s (%d%% confidence)", detection.platform, pct)
    return detection
