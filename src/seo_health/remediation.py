"""Deterministic replacement values for fixable on-page fields.

Every function here is pure: the same page always yields the same
suggestion, so reports can show stable before/after pairs.
"""

import re

from .models import CrawledPage


TITLE_MAX = 60
META_MIN = 120
META_MAX = 160

TIMESTAMP_RE = re.compile(r"\b\d{8,}\b")
EXTENSION_RE = re.compile(r"\.[a-z]{2,5}$", re.IGNORECASE)
ORIGIN_RE = re.compile(r"^https?://[^/]+")


def domain_brand(domain: str) -> str:
    """Brand name guessed from the domain: "www.getthrivin.com" -> "Getthrivin"."""
    base = re.sub(r"^www\.", "", domain).split(".")[0]
    return base[:1].upper() + base[1:]


def strip_origin(url: str) -> str:
    return ORIGIN_RE.sub("", url)


def _first_h1(page: CrawledPage) -> str:
    return page.h1_tags[0].strip() if page.h1_tags else ""


def suggest_title(page: CrawledPage, current_title: str, brand: str) -> str:
    """A title of at most 60 characters, built from the H1 (or current title) plus the brand."""
    suffix = f" | {brand}"
    base = _first_h1(page) or current_title or ""
    base = re.sub(rf"\s*[|\-–—]\s*{re.escape(brand)}.*$", "", base, flags=re.IGNORECASE).strip()

    if not base:
        return f"{brand} - Professional Services{suffix}"

    candidate = f"{base}{suffix}"
    if len(candidate) <= TITLE_MAX:
        return candidate

    max_base = TITLE_MAX - len(suffix) - 3
    if len(base) > max_base:
        cut = base.rfind(" ", 0, max_base + 1)
        if cut <= 0:
            cut = max_base
        base = base[:cut] + "..."
    return f"{base}{suffix}"


def suggest_meta_description(page: CrawledPage, brand: str) -> str:
    """A 120-160 character meta description built from the H1 or URL path."""
    h1 = _first_h1(page)
    path_words = (page.path or "/").replace("/", " ").replace("-", " ").strip()

    if h1:
        suggestion = (
            f"{h1} - Learn more on {brand}. We provide expert guidance and resources "
            "to help you achieve your goals. Get started today."
        )
    elif path_words:
        context = path_words[:1].upper() + path_words[1:]
        suggestion = (
            f"{context} at {brand}. Discover our expert approach and see how we can "
            "help you succeed. Explore our resources now."
        )
    else:
        suggestion = (
            f"Welcome to {brand}. Discover our expert services and see how we can "
            "help you achieve your goals. Start your journey today."
        )

    if len(suggestion) > META_MAX:
        return suggestion[:META_MAX - 3] + "..."
    if len(suggestion) < META_MIN:
        suggestion = suggestion.replace(".", ". Trusted by thousands of clients.", 1)
    return suggestion[:META_MAX]


def truncate_meta_description(description: str) -> str:
    return description[:META_MAX - 3] + "..."


def suggest_h1(page: CrawledPage, brand: str) -> str:
    """H1 derived from the title's first segment, without the brand suffix."""
    if not page.title:
        return f"{brand} - Main Heading"
    first = re.split(r"\s*[|–—]\s*", page.title)[0]
    return re.sub(r"\s+-\s+.*$", "", first).strip()


def alt_from_src(src: str) -> str:
    """Readable alt text from an image filename: "/up/coach-session_2.jpg" -> "Coach session 2"."""
    filename = src.split("?", 1)[0].split("#", 1)[0].rsplit("/", 1)[-1]
    name = EXTENSION_RE.sub("", filename)
    cleaned = re.sub(r"[-_]", " ", name)
    cleaned = TIMESTAMP_RE.sub("", cleaned)
    cleaned = " ".join(cleaned.split())
    if not cleaned:
        return "Image"
    return cleaned[:1].upper() + cleaned[1:]
