"""Breadth-first, domain-scoped website crawler."""

import json
import logging
import re
import time
from collections import deque
from typing import Any, Optional
from urllib.parse import urlsplit

import httpx
from bs4 import BeautifulSoup

from .config import CrawlConfig
from .models import CrawledPage
from .urls import extract_path, is_same_domain, resolve_url, strip_fragment


logger = logging.getLogger(__name__)

SKIPPED_HREF_PREFIXES = ("#", "mailto:", "tel:", "javascript:")
NON_CONTENT_TAGS = ["script", "style", "noscript", "template"]


def build_client(config: CrawlConfig, transport: Optional[httpx.BaseTransport] = None) -> httpx.Client:
    """HTTP client used for crawling, with the crawl's timeout and redirect limits."""
    return httpx.Client(
        headers={
            "User-Agent": config.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.9",
        },
        timeout=config.timeout,
        follow_redirects=True,
        max_redirects=config.max_redirects,
        transport=transport,
    )


def extract_json_ld(soup: BeautifulSoup) -> list[Any]:
    """Extract all parseable JSON-LD blocks from the page."""
    results = []
    for script in soup.find_all("script", type="application/ld+json"):
        content = script.get_text()
        if not content or not content.strip():
            continue
        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            continue
        if isinstance(data, list):
            results.extend(data)
        else:
            results.append(data)
    return results


def get_schema_types(data: Any) -> list[str]:
    """Extract @type values from JSON-LD, handling lists and @graph."""
    types: list[str] = []
    if not isinstance(data, dict):
        return types

    type_val = data.get("@type")
    if isinstance(type_val, list):
        types.extend(t for t in type_val if isinstance(t, str))
    elif isinstance(type_val, str):
        types.append(type_val)

    for item in data.get("@graph", []) if isinstance(data.get("@graph"), list) else []:
        types.extend(get_schema_types(item))
    return types


def _text(tag) -> str:
    return " ".join(tag.get_text(" ", strip=True).split())


def _meta_map(soup: BeautifulSoup, attr: str, prefix: str) -> Optional[dict[str, str]]:
    tags = soup.find_all("meta", attrs={attr: re.compile(f"^{re.escape(prefix)}")})
    values = {}
    for tag in tags:
        key, content = tag.get(attr), tag.get("content")
        if key and content:
            values[key] = content
    return values or None


def extract_metadata(soup: BeautifulSoup) -> dict[str, Any]:
    """Extract SEO metadata from a parsed page.

    Word count is computed last because it strips script and style tags
    from the soup.
    """
    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else ""

    desc_tag = soup.find("meta", attrs={"name": "description"})
    meta_description = (desc_tag.get("content") or "").strip() if desc_tag else ""

    canonical_tag = soup.find("link", rel="canonical")
    robots_tag = soup.find("meta", attrs={"name": "robots"})

    blocks = extract_json_ld(soup)
    schema_types: list[str] = []
    for block in blocks:
        schema_types.extend(get_schema_types(block))

    metadata = {
        "title": title,
        "title_length": len(title),
        "meta_description": meta_description,
        "meta_length": len(meta_description),
        "h1_tags": tuple(_text(h) for h in soup.find_all("h1")),
        "h2_tags": tuple(_text(h) for h in soup.find_all("h2")),
        "h3_tags": tuple(_text(h) for h in soup.find_all("h3")),
        "canonical": (canonical_tag.get("href") or "").strip() if canonical_tag else "",
        "robots_meta": (robots_tag.get("content") or "").strip() if robots_tag else "",
        "has_viewport": soup.find("meta", attrs={"name": "viewport"}) is not None,
        "has_schema": bool(blocks),
        "schema_types": tuple(dict.fromkeys(schema_types)),
        "open_graph": _meta_map(soup, "property", "og:"),
        "twitter": _meta_map(soup, "name", "twitter:"),
        "image_count": len(soup.find_all("img")),
        "link_count": len(soup.find_all("a")),
    }

    body = soup.body or soup
    for tag in body.find_all(NON_CONTENT_TAGS):
        tag.decompose()
    metadata["word_count"] = len(body.get_text(" ").split())
    return metadata


def extract_links(soup: BeautifulSoup, base_url: str, start_url: str) -> list[str]:
    """Same-domain absolute links from a page, fragments removed, deduplicated."""
    links = []
    for a in soup.find_all("a", href=True):
        href = a["href"].strip()
        if not href or href.lower().startswith(SKIPPED_HREF_PREFIXES):
            continue
        absolute = strip_fragment(resolve_url(base_url, href))
        try:
            scheme = urlsplit(absolute).scheme
        except ValueError:
            continue
        if scheme not in ("http", "https"):
            continue
        if is_same_domain(absolute, start_url):
            links.append(absolute)
    return list(dict.fromkeys(links))


def fetch_page(
    client: httpx.Client,
    url: str,
    depth: int,
    start_url: str,
    keep_html: bool = True,
) -> tuple[CrawledPage, list[str]]:
    """Fetch and parse one page, returning it with its same-domain links.

    Raises httpx.HTTPError on network failures and on 5xx responses; any
    status below 500 counts as fetched.
    """
    start = time.perf_counter()
    response = client.get(url)
    load_time = int((time.perf_counter() - start) * 1000)

    if response.status_code >= 500:
        raise httpx.HTTPStatusError(
            f"Server error {response.status_code}",
            request=response.request,
            response=response,
        )

    html = response.text
    soup = BeautifulSoup(html, "lxml")
    links = extract_links(soup, url, start_url)
    page = CrawledPage(
        url=url,
        path=extract_path(url),
        status_code=response.status_code,
        depth=depth,
        load_time=load_time,
        size=len(html.encode("utf-8")),
        html=html if keep_html else None,
        headers={k.lower(): v for k, v in response.headers.items()},
        **extract_metadata(soup),
    )
    return page, links


def crawl(
    start_url: str,
    config: Optional[CrawlConfig] = None,
    client: Optional[httpx.Client] = None,
) -> list[CrawledPage]:
    """Crawl a site breadth-first from start_url.

    Args:
        start_url: Absolute URL to start from; only its host is crawled.
        config: Page budget, depth limit, politeness delay and request settings.
        client: Optional pre-built httpx client (it is not closed here).

    Returns:
        Pages in discovery order. Pages that failed to fetch are included
        with status_code 0 and an error message.
    """
    config = config or CrawlConfig()
    logger.info("Starting crawl of %s (max_pages=%d, max_depth=%d)", start_url, config.max_pages, config.max_depth)

    own_client = client is None
    if own_client:
        client = build_client(config)

    visited: set[str] = set()
    seen: set[str] = {start_url}
    queue: deque[tuple[str, int]] = deque([(start_url, 0)])
    results: list[CrawledPage] = []

    try:
        while queue and len(visited) < config.max_pages:
            url, depth = queue.popleft()
            if url in visited or depth > config.max_depth:
                continue

            if results and config.delay_ms > 0:
                time.sleep(config.delay_ms / 1000)

            try:
                page, links = fetch_page(client, url, depth, start_url, keep_html=config.keep_html)
            except httpx.HTTPError as e:
                logger.warning("Failed to crawl %s: %s", url, e)
                visited.add(url)
                results.append(CrawledPage(url=url, path=extract_path(url), depth=depth, error=str(e) or type(e).__name__))
                continue

            visited.add(url)
            results.append(page)

            if depth < config.max_depth and len(visited) < config.max_pages:
                for link in links:
                    if link in seen or link in visited:
                        continue
                    if len(queue) + len(visited) >= config.max_pages:
                        break
                    seen.add(link)
                    queue.append((link, depth + 1))

            logger.debug(
                "Crawled %s (depth=%d, status=%d, visited=%d, queued=%d)",
                url, depth, page.status_code, len(visited), len(queue),
            )
    finally:
        if own_client:
            client.close()

    logger.info("Crawl of %s finished: %d pages, %d left in queue", start_url, len(results), len(queue))
    return results
