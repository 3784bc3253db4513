"""Shared fixtures: page factory and a mock site served over httpx.MockTransport."""

from typing import Callable, Optional, Union

import httpx
import pytest

from seo_health.config import AuditConfig, CrawlConfig
from seo_health.models import CrawledPage
from seo_health.urls import extract_path


Route = Union[str, tuple[int, str], tuple[int, str, dict]]


def make_page(url: str = "https://example.com/", **fields) -> CrawledPage:
    """CrawledPage with derived lengths filled in from title and description."""
    title = fields.get("title", "")
    description = fields.get("meta_description", "")
    fields.setdefault("title_length", len(title))
    fields.setdefault("meta_length", len(description))
    fields.setdefault("path", extract_path(url))
    fields.setdefault("status_code", 200)
    return CrawledPage(url=url, **fields)


def site_transport(routes: dict[str, Route], fallback_status: int = 404) -> httpx.MockTransport:
    """Serve fixed responses keyed by full URL (query string excluded).

    A route is either an HTML body, (status, body) or (status, body, headers).
    Routes whose value is None raise a connection error.
    """
    def handler(request: httpx.Request) -> httpx.Response:
        key = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        if key not in routes:
            return httpx.Response(fallback_status, text="not found")
        route = routes[key]
        if route is None:
            raise httpx.ConnectError("connection refused", request=request)
        if isinstance(route, str):
            return httpx.Response(200, text=route, headers={"content-type": "text/html"})
        status, body, *rest = route
        headers = {"content-type": "text/html", **(rest[0] if rest else {})}
        return httpx.Response(status, text=body, headers=headers)

    return httpx.MockTransport(handler)


def html_page(
    title: str = "",
    body: str = "",
    head: str = "",
    description: Optional[str] = None,
) -> str:
    meta = f'<meta name="description" content="{description}">' if description is not None else ""
    return f"<html><head><title>{title}</title>{meta}{head}</head><body>{body}</body></html>"


@pytest.fixture
def page() -> Callable[..., CrawledPage]:
    return make_page


@pytest.fixture
def fast_config() -> AuditConfig:
    """Audit config with no politeness delay and no PageSpeed key."""
    return AuditConfig(crawl=CrawlConfig(delay_ms=0, max_pages=10, max_depth=2))
