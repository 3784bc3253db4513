"""Technical SEO checks: crawlability, transport security and page markup."""

import logging
from typing import Optional
from urllib.parse import urlsplit

import httpx
from bs4 import BeautifulSoup

from ..models import Category, CheckStatus, CrawledPage, Severity
from ..scoring import percentage, weighted_score
from ..urls import build_robots_txt_url, build_sitemap_url
from .base import Analyzer, ResultBuilder


logger = logging.getLogger(__name__)

TECHNICAL_WEIGHTS = {
    "sitemap": 20,
    "robots_txt": 15,
    "ssl": 30,
    "mobile_responsive": 20,
    "structured_data": 5,
    "canonical_tags": 5,
    "trailing_slash": 5,
}

# A site-wide "Disallow: /" keeps search engines out regardless of everything else.
DISALLOW_ALL_CAP = 45

VIEWPORT_TAG = '<meta name="viewport" content="width=device-width, initial-scale=1">'


def has_disallow_all(robots_txt: str) -> bool:
    """True if any rule in robots.txt disallows the whole site."""
    for line in robots_txt.splitlines():
        line = line.split("#", 1)[0]
        directive, sep, value = line.partition(":")
        if sep and directive.strip().lower() == "disallow" and value.strip() == "/":
            return True
    return False


def count_sitemap_entries(xml: str) -> int:
    """Number of <url> and <sitemap> entries in a sitemap or sitemap index."""
    soup = BeautifulSoup(xml, "xml")
    return len(soup.find_all("url")) + len(soup.find_all("sitemap"))


def _is_self_canonical(page: CrawledPage) -> bool:
    return page.canonical in (page.url, page.url.rstrip("/"))


class TechnicalAnalyzer(Analyzer):
    """Sitemap, robots.txt, SSL, viewport, structured data, canonicals and URL consistency."""

    category = Category.TECHNICAL_SEO
    weight = 0.25

    def run_checks(self, builder: ResultBuilder, domain: str, pages: tuple[CrawledPage, ...]) -> float:
        scores: dict[str, float] = {}

        with self.http_client() as client:
            scores["sitemap"], sitemap_exists = self._check_sitemap(builder, client, domain)
            scores["robots_txt"], disallow_all = self._check_robots_txt(
                builder, client, domain, pages, sitemap_exists
            )
            scores["ssl"] = self._check_ssl(builder, client, domain, pages)

        scores["mobile_responsive"] = self._check_mobile(builder, pages)
        scores["structured_data"] = self._check_structured_data(builder, pages)
        scores["canonical_tags"] = self._check_canonical_tags(builder, pages)
        scores["trailing_slash"] = self._check_trailing_slash(builder, pages)

        score = weighted_score(scores, TECHNICAL_WEIGHTS)
        if disallow_all:
            score = min(score, DISALLOW_ALL_CAP)
        return score

    def _check_sitemap(self, builder: ResultBuilder, client: httpx.Client, domain: str) -> tuple[float, bool]:
        sitemap_url = build_sitemap_url(domain)
        error: Optional[str] = None
        url_count = 0
        exists = False
        try:
            response = client.get(sitemap_url)
            if response.status_code == 200:
                exists = True
                url_count = count_sitemap_entries(response.text)
        except httpx.HTTPError as e:
            error = str(e) or type(e).__name__

        if exists:
            status = CheckStatus.PASS if url_count else CheckStatus.WARNING
            builder.record("sitemap", status, exists=True, url=sitemap_url, url_count=url_count)
            logger.debug("Sitemap found at %s with %d entries", sitemap_url, url_count)
            return (100 if url_count else 60), True

        builder.record("sitemap", CheckStatus.FAIL, exists=False, url=sitemap_url, error=error)
        builder.add_issue(
            type="missing_sitemap",
            severity=Severity.HIGH,
            title="Missing XML Sitemap",
            description="No sitemap.xml found. This makes it harder for search engines to discover all pages.",
            recommendation="Generate sitemap.xml using a plugin or tool, then submit to Google Search Console.",
        )
        return 0, False

    def _check_robots_txt(
        self,
        builder: ResultBuilder,
        client: httpx.Client,
        domain: str,
        pages: tuple[CrawledPage, ...],
        sitemap_exists: bool,
    ) -> tuple[float, bool]:
        robots_url = build_robots_txt_url(domain)
        content: Optional[str] = None
        error: Optional[str] = None
        try:
            response = client.get(robots_url)
            if response.status_code == 200:
                content = response.text
        except httpx.HTTPError as e:
            error = str(e) or type(e).__name__

        if content is None:
            builder.record("robots_txt", CheckStatus.WARNING, exists=False, url=robots_url, error=error)
            builder.add_issue(
                type="missing_robots",
                severity=Severity.MEDIUM,
                title="Missing robots.txt",
                description="No robots.txt file found. While not critical, this file helps control search engine crawling.",
                recommendation="Create a robots.txt file with appropriate directives and sitemap reference.",
            )
            return 50, False

        has_sitemap_reference = "sitemap:" in content.lower()
        disallow_all = has_disallow_all(content)
        builder.record(
            "robots_txt",
            CheckStatus.WARNING if disallow_all else CheckStatus.PASS,
            exists=True,
            url=robots_url,
            has_sitemap_reference=has_sitemap_reference,
            has_disallow_all=disallow_all,
        )

        if disallow_all:
            builder.add_issue(
                type="robots_blocks_all",
                severity=Severity.CRITICAL,
                title="Robots.txt Blocks All Pages",
                description='robots.txt contains "Disallow: /" which blocks search engines from crawling your site.',
                recommendation='Remove or modify the "Disallow: /" rule in robots.txt to allow search engine crawling.',
                affected_pages=len(pages),
            )

        if not has_sitemap_reference and sitemap_exists:
            builder.add_issue(
                type="robots_missing_sitemap",
                severity=Severity.LOW,
                title="Sitemap Not Referenced in Robots.txt",
                description="robots.txt does not include a Sitemap: directive.",
                recommendation=f'Add "Sitemap: {build_sitemap_url(domain)}" to robots.txt.',
            )

        if disallow_all:
            return 0, True
        return (100 if has_sitemap_reference else 70), False

    def _check_ssl(
        self, builder: ResultBuilder, client: httpx.Client, domain: str, pages: tuple[CrawledPage, ...]
    ) -> float:
        try:
            # Any response at all means the TLS handshake succeeded
            client.get(f"https://{domain}")
        except httpx.HTTPError as e:
            builder.record("ssl", CheckStatus.FAIL, has_ssl=False, protocol="http", error=str(e) or type(e).__name__)
            builder.add_issue(
                type="missing_ssl",
                severity=Severity.CRITICAL,
                title="No SSL Certificate (HTTPS)",
                description=(
                    "Website is not using HTTPS. This is a major security and SEO issue. "
                    "Google prioritizes HTTPS sites."
                ),
                recommendation=(
                    "Install an SSL certificate (free options: Let's Encrypt) "
                    "and redirect all HTTP traffic to HTTPS."
                ),
                affected_pages=len(pages),
            )
            return 0

        builder.record("ssl", CheckStatus.PASS, has_ssl=True, protocol="https")
        return 100

    def _check_mobile(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> float:
        without_viewport = [p.url for p in pages if not p.has_viewport]
        optimized = len(pages) - len(without_viewport)
        pct = percentage(optimized, len(pages))

        builder.record(
            "mobile_responsive",
            CheckStatus.PASS if pct >= 90 else CheckStatus.FAIL,
            total_pages=len(pages),
            mobile_optimized=optimized,
            percentage_optimized=pct,
        )
        if pages and pct < 90:
            builder.add_issue(
                type="mobile_not_optimized",
                severity=Severity.CRITICAL if pct < 50 else Severity.HIGH,
                title="Mobile Optimization Issues",
                description=f"Only {pct}% of pages have proper viewport meta tags for mobile devices.",
                recommendation=f"Add {VIEWPORT_TAG} to all pages.",
                affected_pages=len(without_viewport),
                examples=without_viewport[:5],
            )
        logger.debug("Viewport coverage %d%%", pct)
        return pct

    def _check_structured_data(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> float:
        without_schema = [p.url for p in pages if not p.has_schema]
        with_schema = len(pages) - len(without_schema)
        schema_types = list(dict.fromkeys(t for p in pages for t in p.schema_types))
        pct = percentage(with_schema, len(pages))

        builder.record(
            "structured_data",
            CheckStatus.PASS if pct >= 50 else CheckStatus.WARNING,
            total_pages=len(pages),
            pages_with_schema=with_schema,
            percentage_with_schema=pct,
            schema_types=schema_types,
        )
        if not pages:
            return pct

        if pct == 0:
            builder.add_issue(
                type="no_structured_data",
                severity=Severity.HIGH,
                title="No Structured Data Found",
                description=(
                    "No Schema.org structured data detected. "
                    "Structured data helps search engines understand your content."
                ),
                recommendation="Add JSON-LD structured data (Organization, WebSite, Article, etc.) to key pages.",
                affected_pages=len(pages),
            )
        elif pct < 50:
            builder.add_issue(
                type="limited_structured_data",
                severity=Severity.MEDIUM,
                title="Limited Structured Data Coverage",
                description=(
                    f"Only {pct}% of pages have structured data. This is a missed opportunity for rich snippets."
                ),
                recommendation=(
                    "Expand structured data coverage to more pages, "
                    "especially product, article, and service pages."
                ),
                affected_pages=len(without_schema),
                examples=without_schema[:5],
            )
        logger.debug("Structured data coverage %d%%, types=%s", pct, schema_types)
        return pct

    def _check_canonical_tags(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> float:
        without_canonical = [p.url for p in pages if not p.canonical]
        wrong_canonical = [
            {"url": p.url, "canonical": p.canonical}
            for p in pages
            if p.canonical and not _is_self_canonical(p)
        ]
        with_canonical = len(pages) - len(without_canonical)
        pct = percentage(with_canonical, len(pages))

        builder.record(
            "canonical_tags",
            CheckStatus.PASS if pct >= 80 else CheckStatus.WARNING,
            total_pages=len(pages),
            pages_with_canonical=with_canonical,
            pages_with_self_referencing=with_canonical - len(wrong_canonical),
            percentage_with_canonical=pct,
        )

        if pages and pct < 80:
            builder.add_issue(
                type="missing_canonical_tags",
                severity=Severity.MEDIUM,
                title="Missing Canonical Tags",
                description=(
                    f"Only {pct}% of pages have canonical tags. This can lead to duplicate content issues."
                ),
                recommendation=(
                    'Add self-referencing canonical tags to all pages: <link rel="canonical" href="[page-url]">'
                ),
                affected_pages=len(without_canonical),
                examples=without_canonical[:5],
            )

        if wrong_canonical:
            builder.add_issue(
                type="wrong_canonical_tags",
                severity=Severity.HIGH,
                title="Incorrect Canonical Tags",
                description=f"{len(wrong_canonical)} pages have canonical tags pointing to different URLs.",
                recommendation="Review canonical tags to ensure they point to the correct version of each page.",
                affected_pages=len(wrong_canonical),
                examples=wrong_canonical[:3],
            )
        return pct

    def _check_trailing_slash(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> float:
        paths = [urlsplit(p.url).path for p in pages]
        paths = [path for path in paths if path and path != "/"]
        with_slash = [path for path in paths if path.endswith("/")]
        without_slash = [path for path in paths if not path.endswith("/")]

        if not paths:
            builder.record("trailing_slash", CheckStatus.INFO, checked_paths=0)
            return 100

        consistent = not with_slash or not without_slash
        builder.record(
            "trailing_slash",
            CheckStatus.PASS if consistent else CheckStatus.WARNING,
            checked_paths=len(paths),
            with_trailing_slash=len(with_slash),
            without_trailing_slash=len(without_slash),
        )
        if consistent:
            return 100

        minority = with_slash if len(with_slash) < len(without_slash) else without_slash
        builder.add_issue(
            type="trailing_slash_inconsistency",
            severity=Severity.LOW,
            title="Inconsistent Trailing Slashes",
            description=(
                f"{len(with_slash)} URLs end with a trailing slash and {len(without_slash)} do not. "
                "Mixed URL formats can split ranking signals between duplicate URLs."
            ),
            recommendation=(
                "Pick one URL format, 301-redirect the other and use it consistently in internal links."
            ),
            affected_pages=len(minority),
            examples=minority[:5],
        )
        return percentage(max(len(with_slash), len(without_slash)), len(paths))
