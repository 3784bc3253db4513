"""Crawl and audit configuration.

Environment variables are read once, by ``AuditConfig.from_env``; analyzers
receive the resulting config object when they are constructed.
"""

import os
from dataclasses import dataclass, field, replace
from typing import Optional


DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; SEOHealthBot/0.3; +https://github.com/seo-health/seo-health)"


@dataclass(frozen=True)
class CrawlConfig:
    max_pages: int = 50
    max_depth: int = 3
    delay_ms: int = 500
    timeout_ms: int = 10_000
    user_agent: str = DEFAULT_USER_AGENT
    max_redirects: int = 5
    keep_html: bool = True

    @property
    def timeout(self) -> float:
        """Request timeout in seconds."""
        return self.timeout_ms / 1000


@dataclass(frozen=True)
class AuditConfig:
    crawl: CrawlConfig = field(default_factory=CrawlConfig)
    pagespeed_api_key: Optional[str] = None
    pagespeed_timeout: float = 60.0
    check_timeout: float = 5.0  # sitemap, robots.txt and SSL probes

    @property
    def pagespeed_enabled(self) -> bool:
        return bool(self.pagespeed_api_key)

    def with_crawl(self, **changes) -> "AuditConfig":
        return replace(self, crawl=replace(self.crawl, **changes))

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> "AuditConfig":
        """Build a config from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        defaults = CrawlConfig()

        def _int(name: str, default: int) -> int:
            raw = env.get(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return int(raw)
            except ValueError:
                raise ValueError(f"{name} must be an integer, got {raw!r}") from None

        crawl = CrawlConfig(
            max_pages=_int("SEO_HEALTH_MAX_PAGES", defaults.max_pages),
            max_depth=_int("SEO_HEALTH_MAX_DEPTH", defaults.max_depth),
            delay_ms=_int("SEO_HEALTH_DELAY_MS", defaults.delay_ms),
            timeout_ms=_int("SEO_HEALTH_TIMEOUT_MS", defaults.timeout_ms),
            user_agent=env.get("SEO_HEALTH_USER_AGENT") or defaults.user_agent,
        )
        return cls(
            crawl=crawl,
            pagespeed_api_key=env.get("GOOGLE_PAGESPEED_API_KEY") or None,
        )
