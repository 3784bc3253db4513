"""Google PageSpeed Insights client."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from .scoring import round_score


logger = logging.getLogger(__name__)

PAGESPEED_URL = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"

STRATEGIES = ("mobile", "desktop")

METRIC_AUDITS = {
    "lcp": "largest-contentful-paint",
    "fid": "max-potential-fid",
    "cls": "cumulative-layout-shift",
    "fcp": "first-contentful-paint",
    "tti": "interactive",
    "speed_index": "speed-index",
}


@dataclass(frozen=True)
class Metric:
    """One Lighthouse metric: raw value, human display and 0-100 score."""
    value: float
    display_value: str
    score: Optional[int]


@dataclass
class PageSpeedResult:
    """Outcome of one PageSpeed run."""
    url: str
    strategy: str
    performance_score: Optional[int] = None
    seo_score: Optional[int] = None
    metrics: dict[str, Metric] = field(default_factory=dict)
    audits: dict[str, Any] = field(default_factory=dict)
    latency_ms: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _section(parent: dict, key: str) -> dict:
    value = parent.get(key) or {}
    if not isinstance(value, dict):
        raise ValueError("malformed PageSpeed response")
    return value


def _category_score(categories: dict, name: str) -> Optional[int]:
    score = _section(categories, name).get("score")
    # A zero score is treated the same as a missing one
    if not score:
        return None
    return round_score(score * 100)


def parse_metric(audit: Optional[dict]) -> Optional[Metric]:
    if not audit:
        return None
    score = audit.get("score")
    return Metric(
        value=audit.get("numericValue") or 0,
        display_value=audit.get("displayValue") or "N/A",
        score=round_score(score * 100) if score is not None else None,
    )


def parse_response(url: str, strategy: str, data: dict) -> PageSpeedResult:
    """Build a result from a runPagespeed JSON payload.

    Raises ValueError when the payload is not shaped like a Lighthouse result.
    """
    if not isinstance(data, dict):
        raise ValueError("malformed PageSpeed response")
    lighthouse = _section(data, "lighthouseResult")
    categories = _section(lighthouse, "categories")
    audits = {k: v for k, v in _section(lighthouse, "audits").items() if isinstance(v, dict)}

    metrics = {}
    for name, audit_id in METRIC_AUDITS.items():
        metric = parse_metric(audits.get(audit_id))
        if metric is not None:
            metrics[name] = metric

    return PageSpeedResult(
        url=url,
        strategy=strategy,
        performance_score=_category_score(categories, "performance"),
        seo_score=_category_score(categories, "seo"),
        metrics=metrics,
        audits=audits,
    )


class PageSpeedClient:
    """Runs PageSpeed Insights tests. Failures are returned, never raised."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def run(self, url: str, strategy: str = "mobile") -> PageSpeedResult:
        start = time.time()

        if not self.is_configured():
            return PageSpeedResult(url=url, strategy=strategy, error="GOOGLE_PAGESPEED_API_KEY not set")

        logger.debug("Running PageSpeed test for %s (%s)", url, strategy)
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.get(
                    PAGESPEED_URL,
                    params={
                        "url": url,
                        "strategy": strategy,
                        "key": self.api_key,
                        "category": ["performance", "seo"],
                    },
                )
                resp.raise_for_status()
                result = parse_response(url, strategy, resp.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.error("PageSpeed test failed for %s (%s): %s", url, strategy, e)
            return PageSpeedResult(
                url=url,
                strategy=strategy,
                latency_ms=int((time.time() - start) * 1000),
                error=str(e) or type(e).__name__,
            )

        result.latency_ms = int((time.time() - start) * 1000)
        return result

    def run_all(self, url: str) -> dict[str, PageSpeedResult]:
        """Run mobile and desktop tests concurrently."""
        with ThreadPoolExecutor(max_workers=len(STRATEGIES)) as executor:
            futures = {strategy: executor.submit(self.run, url, strategy) for strategy in STRATEGIES}
            return {strategy: future.result() for strategy, future in futures.items()}
