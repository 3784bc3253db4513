"""Performance scoring from PageSpeed Insights, with a load-time fallback."""

import logging
from dataclasses import asdict
from typing import Optional

import httpx

from ..config import AuditConfig
from ..models import Category, CheckStatus, CrawledPage, Severity
from ..pagespeed import PageSpeedClient, PageSpeedResult
from ..scoring import round_score
from .base import Analyzer, ResultBuilder, find_homepage


logger = logging.getLogger(__name__)

# Crawl timings only cover TTFB plus transfer, so estimates stay in this band.
ESTIMATE_BASE = 45
ESTIMATE_CAP = 65
ESTIMATE_FLOOR = 20

MOBILE_WEIGHT = 0.7
DESKTOP_WEIGHT = 0.3

SLOW_LOAD_MS = 3000


def estimate_score(avg_load_time: int) -> int:
    """Performance estimate from average crawl load time in milliseconds."""
    score = ESTIMATE_BASE
    if avg_load_time < 800:
        score += 15
    if avg_load_time < 400:
        score += 5
    if avg_load_time > 2000:
        score -= 10
    if avg_load_time > 3000:
        score -= 10
    if avg_load_time > 5000:
        score -= 10
    return max(0, min(ESTIMATE_CAP, score))


def find_opportunities(audits: dict) -> list[dict]:
    """Savings opportunities from Lighthouse audits."""
    def details(audit_id: str) -> dict:
        return (audits.get(audit_id) or {}).get("details") or {}

    def score_below_one(audit_id: str) -> bool:
        score = (audits.get(audit_id) or {}).get("score")
        return score is not None and score < 1

    opportunities = []
    css_ms = details("unused-css-rules").get("overallSavingsMs") or 0
    if css_ms > 500:
        opportunities.append({"type": "unused_css", "title": "Remove Unused CSS", "savings_ms": css_ms})

    image_bytes = details("uses-optimized-images").get("overallSavingsBytes") or 0
    if image_bytes > 100_000:
        opportunities.append({
            "type": "unoptimized_images",
            "title": "Optimize Images",
            "savings_kb": round_score(image_bytes / 1024),
        })

    if score_below_one("uses-webp-images"):
        opportunities.append({
            "type": "use_webp",
            "title": "Serve Images in Next-Gen Formats (WebP)",
            "savings_kb": round_score((details("uses-webp-images").get("overallSavingsBytes") or 0) / 1024),
        })

    if score_below_one("uses-text-compression"):
        opportunities.append({
            "type": "enable_compression",
            "title": "Enable Text Compression (GZIP/Brotli)",
            "savings_kb": round_score((details("uses-text-compression").get("overallSavingsBytes") or 0) / 1024),
        })
    return opportunities


class PerformanceAnalyzer(Analyzer):
    """Homepage performance measured by PageSpeed, or estimated from crawl timings."""

    category = Category.PERFORMANCE
    weight = 0.10

    def __init__(
        self,
        config: Optional[AuditConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
        pagespeed: Optional[PageSpeedClient] = None,
    ):
        super().__init__(config, transport)
        self.pagespeed = pagespeed or PageSpeedClient(
            api_key=self.config.pagespeed_api_key,
            timeout=self.config.pagespeed_timeout,
            transport=transport,
        )

    def run_checks(self, builder: ResultBuilder, domain: str, pages: tuple[CrawledPage, ...]) -> float:
        avg_load_time, timed_pages = self._record_load_times(builder, pages)
        homepage = find_homepage(pages)

        if not self.pagespeed.is_configured():
            logger.warning("PageSpeed API key not configured, estimating from load times")
        elif homepage is not None:
            results = self.pagespeed.run_all(homepage.url)
            mobile, desktop = results["mobile"], results["desktop"]
            if mobile.performance_score:
                return self._score_measured(builder, homepage, mobile, desktop)

            logger.warning("PageSpeed returned no usable score for %s, estimating from load times", homepage.url)
            builder.add_issue(
                type="pagespeed_unavailable",
                severity=Severity.LOW,
                title="PageSpeed Measurement Unavailable",
                description="PageSpeed Insights did not return a usable score. Using load-time estimation.",
                recommendation="Check the API key quota and that the homepage is publicly reachable.",
                evidence=[
                    {"url": homepage.url, "detail": f"{r.strategy}: {r.error or 'no performance score'}"}
                    for r in (mobile, desktop)
                ],
            )

        return self._score_estimated(builder, avg_load_time, timed_pages)

    def _record_load_times(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> tuple[int, int]:
        timed = [p.load_time for p in pages if p.load_time]
        avg = round_score(sum(timed) / len(timed)) if timed else 0
        builder.record(
            "load_times",
            CheckStatus.PASS if avg < 2000 else CheckStatus.FAIL,
            avg_load_time=avg,
            pages_analyzed=len(timed),
            estimated_score=estimate_score(avg),
        )
        logger.debug("Average load time %d ms over %d pages", avg, len(timed))
        return avg, len(timed)

    def _score_estimated(self, builder: ResultBuilder, avg_load_time: int, timed_pages: int) -> float:
        builder.measurement_method = "load-time-estimation"
        builder.confidence = "estimated"

        if avg_load_time > SLOW_LOAD_MS:
            builder.add_issue(
                type="slow_load_times",
                severity=Severity.HIGH,
                title="Slow Page Load Times",
                description=f"Average page load time is {avg_load_time}ms. Target is under {SLOW_LOAD_MS}ms.",
                recommendation=(
                    "Optimize server response times, enable caching, compress resources, and optimize images."
                ),
                affected_pages=timed_pages,
                evidence=[{"url": None, "detail": f"Average load time: {avg_load_time}ms across {timed_pages} pages"}],
            )

        if not self.pagespeed.is_configured():
            builder.add_issue(
                type="api_key_missing",
                severity=Severity.LOW,
                title="PageSpeed API Not Configured",
                description="Google PageSpeed Insights API key not configured. Using load-time estimation.",
                recommendation="Set GOOGLE_PAGESPEED_API_KEY for measured Core Web Vitals.",
                evidence=[{"url": None, "detail": "Set GOOGLE_PAGESPEED_API_KEY environment variable"}],
            )

        return max(ESTIMATE_FLOOR, estimate_score(avg_load_time))

    def _score_measured(
        self,
        builder: ResultBuilder,
        homepage: CrawledPage,
        mobile: PageSpeedResult,
        desktop: PageSpeedResult,
    ) -> float:
        builder.measurement_method = "pagespeed-api"
        builder.confidence = "measured"

        mobile_score = mobile.performance_score
        desktop_score = desktop.performance_score
        metrics = mobile.metrics
        builder.record(
            "pagespeed",
            CheckStatus.PASS if mobile_score >= 50 else CheckStatus.FAIL,
            mobile={"score": mobile_score, **{name: asdict(m) for name, m in metrics.items()}},
            desktop={"score": desktop_score},
            seo_score=mobile.seo_score,
        )

        evidence = [{"url": homepage.url, "detail": f"PageSpeed Mobile Score: {mobile_score}/100"}]
        if mobile_score < 50:
            builder.add_issue(
                type="poor_mobile_performance",
                severity=Severity.CRITICAL,
                title="Poor Mobile Performance",
                description=(
                    f"Mobile performance score is {mobile_score}/100. "
                    "This significantly impacts user experience and SEO."
                ),
                recommendation=(
                    "Optimize images, minify resources, enable compression, and reduce server response time."
                ),
                affected_pages=1,
                evidence=evidence,
            )
        elif mobile_score < 90:
            builder.add_issue(
                type="mobile_performance_needs_improvement",
                severity=Severity.HIGH if mobile_score < 70 else Severity.MEDIUM,
                title="Mobile Performance Needs Improvement",
                description=f"Mobile performance score is {mobile_score}/100. There's room for optimization.",
                recommendation="Review PageSpeed Insights recommendations and implement high-impact optimizations.",
                affected_pages=1,
                evidence=evidence,
            )

        if desktop_score is not None and desktop_score < 80:
            builder.add_issue(
                type="desktop_performance_issues",
                severity=Severity.HIGH if desktop_score < 50 else Severity.MEDIUM,
                title="Desktop Performance Issues",
                description=f"Desktop performance score is {desktop_score}/100.",
                recommendation="Optimize for desktop performance: leverage browser caching, optimize CSS/JS delivery.",
                affected_pages=1,
            )

        self._check_web_vitals(builder, metrics)
        self._check_opportunities(builder, mobile.audits)

        effective_desktop = desktop_score if desktop_score is not None else mobile_score
        score = round_score(mobile_score * MOBILE_WEIGHT + effective_desktop * DESKTOP_WEIGHT)
        logger.debug("PageSpeed scores mobile=%s desktop=%s weighted=%d", mobile_score, desktop_score, score)
        return score

    def _check_web_vitals(self, builder: ResultBuilder, metrics: dict) -> None:
        lcp, cls, fcp = metrics.get("lcp"), metrics.get("cls"), metrics.get("fcp")
        if lcp and lcp.value > 2500:
            builder.add_issue(
                type="poor_lcp",
                severity=Severity.HIGH if lcp.value > 4000 else Severity.MEDIUM,
                title="Slow Largest Contentful Paint (LCP)",
                description=f"LCP is {lcp.display_value}. Good LCP is under 2.5 seconds.",
                recommendation="Optimize server response times, resource load times, and client-side rendering.",
                affected_pages=1,
            )
        if cls and cls.value > 0.1:
            builder.add_issue(
                type="high_cls",
                severity=Severity.HIGH if cls.value > 0.25 else Severity.MEDIUM,
                title="High Cumulative Layout Shift (CLS)",
                description=f"CLS is {cls.display_value}. Good CLS is under 0.1.",
                recommendation="Add size attributes to images/videos, avoid inserting content above existing content.",
                affected_pages=1,
            )
        if fcp and fcp.value > 1800:
            builder.add_issue(
                type="slow_fcp",
                severity=Severity.MEDIUM,
                title="Slow First Contentful Paint (FCP)",
                description=f"FCP is {fcp.display_value}. Good FCP is under 1.8 seconds.",
                recommendation="Eliminate render-blocking resources, minify CSS, and optimize fonts.",
                affected_pages=1,
            )

    def _check_opportunities(self, builder: ResultBuilder, audits: dict) -> None:
        opportunities = find_opportunities(audits)
        builder.record(
            "opportunities",
            CheckStatus.INFO if opportunities else CheckStatus.PASS,
            items=opportunities,
        )
        for opp in opportunities:
            savings_kb = opp.get("savings_kb", 0)
            savings_ms = opp.get("savings_ms", 0)
            if savings_kb > 500 or savings_ms > 1000:
                builder.add_issue(
                    type=opp["type"],
                    severity=Severity.MEDIUM,
                    title=opp["title"],
                    description=f"Potential savings: {f'{savings_kb} KB' if savings_kb else f'{savings_ms} ms'}",
                    recommendation="Implement this optimization for improved performance.",
                    affected_pages=1,
                )
