"""Main auditor: crawl a site, run every category analyzer, aggregate."""

import logging
import uuid
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

import httpx

from .analyzers import ANALYZERS, find_homepage
from .cms import detect_cms
from .config import AuditConfig
from .crawler import build_client, crawl
from .models import AuditReport, AuditStatus, CMSDetection, CrawledPage
from .recommendations import classify
from .scoring import aggregate
from .urls import ensure_scheme, extract_domain, is_valid_url


logger = logging.getLogger(__name__)


class InvalidURLError(ValueError):
    """Raised when an audit target is not a public http(s) URL."""


def prepare_url(url: str) -> str:
    """Add a scheme if missing and validate the result."""
    url = ensure_scheme(url)
    if not is_valid_url(url):
        raise InvalidURLError(f"Not a valid public http(s) URL: {url}")
    return url


def detect_site_cms(pages: list[CrawledPage]) -> Optional[CMSDetection]:
    homepage = find_homepage(pages)
    if homepage is None or homepage.failed:
        return None
    headers = dict(homepage.headers or {})
    return detect_cms(headers, homepage.html or "", headers.get("set-cookie", ""))


def run_audit(
    url: str,
    config: Optional[AuditConfig] = None,
    audit_id: Optional[str] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> AuditReport:
    """Run a complete SEO health audit on a site.

    Args:
        url: Site to audit; "https://" is added when no scheme is given.
        config: Crawl and analyzer settings (defaults when omitted).
        audit_id: Identifier used in log lines; a random one when omitted.
        transport: Optional httpx transport shared by every HTTP call.

    Returns:
        AuditReport. If an analyzer raises, the report has status FAILED,
        the error message, and no categories or recommendations.

    Raises:
        InvalidURLError: If url is not a public http(s) URL.
    """
    config = config or AuditConfig()
    audit_id = audit_id or uuid.uuid4().hex
    url = prepare_url(url)
    domain = extract_domain(url)
    report = AuditReport(audit_id=audit_id, url=url, domain=domain)

    logger.info("[%s] Auditing %s", audit_id, url)
    with build_client(config.crawl, transport) as client:
        pages = crawl(url, config.crawl, client=client)
    report.pages_crawled = len(pages)
    report.cms = detect_site_cms(pages)

    analyzers = [cls(config, transport) for cls in ANALYZERS]
    try:
        with ThreadPoolExecutor(max_workers=len(analyzers)) as executor:
            futures = [executor.submit(a.analyze, audit_id, domain, pages) for a in analyzers]
            results = [f.result() for f in futures]
    except Exception as e:
        logger.exception("[%s] Audit of %s failed", audit_id, url)
        report.status = AuditStatus.FAILED
        report.error = str(e) or type(e).__name__
        return report

    summary = aggregate(results)
    report.categories = results
    report.overall_score = summary.overall_score
    report.score_rating = summary.score_rating
    for result in results:
        report.recommendations.extend(classify(result.issues, result.category))

    logger.info(
        "[%s] Audit of %s completed: score=%d (%s), %d recommendations",
        audit_id, url, report.overall_score, report.score_rating.value, len(report.recommendations),
    )
    return report
