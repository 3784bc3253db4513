"""seo-health - crawl a site and score its SEO health."""

__version__ = "0.3.0"
