"""On-page SEO checks with per-page remediation suggestions."""

import logging
from collections import defaultdict

from bs4 import BeautifulSoup

from ..models import Category, CheckStatus, CrawledPage, FieldSuggestion, Severity
from ..remediation import (
    alt_from_src,
    domain_brand,
    strip_origin,
    suggest_h1,
    suggest_meta_description,
    suggest_title,
    truncate_meta_description,
)
from ..scoring import percentage, round_score, weighted_score
from .base import Analyzer, ResultBuilder


logger = logging.getLogger(__name__)

ONPAGE_WEIGHTS = {
    "title_tags": 25,
    "meta_descriptions": 20,
    "heading_structure": 20,
    "url_structure": 10,
    "image_optimization": 10,
    "internal_linking": 10,
    "heading_hierarchy": 5,
}

MAX_SPECIFICS = 10
MAX_H1_SPECIFICS = 8
MAX_ALT_SPECIFICS = 15
ALT_SPECIFICS_PER_PAGE = 3


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def _duplicates(values: dict[str, list[str]]) -> list[dict]:
    return [
        {"value": value, "urls": urls, "count": len(urls)}
        for value, urls in values.items()
        if len(urls) > 1
    ]


def _share_penalized(bad: int, total: int) -> float:
    if bad == 0:
        return 100
    return max(0, 100 - bad / (total or 1) * 100)


class OnPageAnalyzer(Analyzer):
    """Titles, meta descriptions, headings, URLs, image alt text and internal links."""

    category = Category.ON_PAGE_SEO
    weight = 0.20

    def run_checks(self, builder: ResultBuilder, domain: str, pages: tuple[CrawledPage, ...]) -> float:
        brand = domain_brand(domain)
        scores = {
            "title_tags": self._check_titles(builder, pages, brand),
            "meta_descriptions": self._check_meta_descriptions(builder, pages, brand),
            "heading_structure": self._check_heading_structure(builder, pages, brand),
            "heading_hierarchy": self._check_heading_hierarchy(builder, pages),
            "url_structure": self._check_url_structure(builder, pages),
            "image_optimization": self._check_images(builder, pages),
            "internal_linking": self._check_internal_linking(builder, pages),
        }
        return weighted_score(scores, ONPAGE_WEIGHTS)

    def _check_titles(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...], brand: str) -> float:
        missing, too_short, too_long = [], [], []
        missing_fix, short_fix, long_fix = [], [], []
        by_title: dict[str, list[str]] = defaultdict(list)

        for page in pages:
            title = page.title
            if not title.strip():
                missing.append(page.url)
                suggested = suggest_title(page, "", brand)
                missing_fix.append(FieldSuggestion(
                    url=page.url, field="title", current="(none)", suggested=suggested,
                    context=f'Derived from H1: "{page.h1_tags[0]}"' if page.h1_tags else "No H1 found, use page topic",
                ))
                continue

            length = page.title_length
            if length < 30:
                too_short.append({"url": page.url, "title": title, "length": length})
                short_fix.append(FieldSuggestion(
                    url=page.url, field="title", current=title, suggested=suggest_title(page, title, brand),
                    context=f"Current is only {length} chars, target 50-60",
                ))
            if length > 60:
                too_long.append({"url": page.url, "title": title, "length": length})
                long_fix.append(FieldSuggestion(
                    url=page.url, field="title", current=title, suggested=suggest_title(page, title, brand),
                    context=f"Current is {length} chars, truncated to 60 or fewer",
                ))
            by_title[title].append(page.url)

        duplicates = _duplicates(by_title)
        good = len(pages) - len(missing) - len(too_short) - len(too_long)
        pct = percentage(good, len(pages))
        builder.record(
            "title_tags",
            CheckStatus.PASS if pct >= 80 else CheckStatus.FAIL,
            total_pages=len(pages),
            good_titles=good,
            percentage_good=pct,
            missing_count=len(missing),
            too_short_count=len(too_short),
            too_long_count=len(too_long),
            duplicate_count=len(duplicates),
        )

        if missing:
            builder.add_issue(
                type="missing_title_tags",
                severity=Severity.CRITICAL,
                title="Missing Title Tags",
                description=f"{len(missing)} pages are missing title tags. Title tags are crucial for SEO.",
                recommendation="Add unique, descriptive title tags (50-60 characters) to all pages.",
                affected_pages=len(missing),
                examples=missing[:5],
                specifics=missing_fix[:MAX_SPECIFICS],
            )
        if too_short:
            builder.add_issue(
                type="short_title_tags",
                severity=Severity.MEDIUM,
                title="Title Tags Too Short",
                description=f"{len(too_short)} pages have title tags shorter than 30 characters.",
                recommendation="Expand title tags to 50-60 characters, adding brand name and primary keyword.",
                affected_pages=len(too_short),
                examples=too_short[:3],
                specifics=short_fix[:MAX_SPECIFICS],
            )
        if too_long:
            builder.add_issue(
                type="long_title_tags",
                severity=Severity.MEDIUM,
                title="Title Tags Too Long",
                description=(
                    f"{len(too_long)} pages have title tags longer than 60 characters. "
                    "They may be truncated in search results."
                ),
                recommendation="Shorten title tags to 50-60 characters to avoid truncation in SERPs.",
                affected_pages=len(too_long),
                examples=too_long[:3],
                specifics=long_fix[:MAX_SPECIFICS],
            )
        if duplicates:
            builder.add_issue(
                type="duplicate_title_tags",
                severity=Severity.HIGH,
                title="Duplicate Title Tags",
                description=f"{len(duplicates)} duplicate title tags found across multiple pages.",
                recommendation="Make each title tag unique and descriptive of the page content.",
                affected_pages=sum(d["count"] for d in duplicates),
                examples=duplicates[:3],
                specifics=[
                    FieldSuggestion(
                        url=d["urls"][0],
                        field="title",
                        current=d["value"],
                        suggested=f"(unique title for each of the {d['count']} pages)",
                        copy_paste_ready=False,
                        context=(
                            f"Same title used on {d['count']} pages: "
                            + ", ".join(strip_origin(u) for u in d["urls"][:3])
                        ),
                    )
                    for d in duplicates[:5]
                ],
            )

        logger.debug("Title tags: %d%% good", pct)
        return pct

    def _check_meta_descriptions(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...], brand: str) -> float:
        missing, too_short, too_long = [], [], []
        missing_fix, short_fix, long_fix = [], [], []
        by_description: dict[str, list[str]] = defaultdict(list)

        for page in pages:
            meta = page.meta_description
            if not meta.strip():
                missing.append(page.url)
                missing_fix.append(FieldSuggestion(
                    url=page.url, field="meta_description", current="(none)",
                    suggested=suggest_meta_description(page, brand),
                    context=f'Based on H1: "{page.h1_tags[0]}"' if page.h1_tags else "No H1, describe the page topic",
                ))
                continue

            length = page.meta_length
            if length < 120:
                too_short.append({"url": page.url, "description": meta, "length": length})
                short_fix.append(FieldSuggestion(
                    url=page.url, field="meta_description", current=meta,
                    suggested=suggest_meta_description(page, brand),
                    context=f"Current is {length} chars, target 130-155",
                ))
            if length > 160:
                too_long.append({"url": page.url, "description": meta, "length": length})
                long_fix.append(FieldSuggestion(
                    url=page.url, field="meta_description", current=meta,
                    suggested=truncate_meta_description(meta),
                    context="Trimmed to 157 chars",
                ))
            by_description[meta].append(page.url)

        duplicates = _duplicates(by_description)
        good = len(pages) - len(missing) - len(too_short) - len(too_long)
        pct = percentage(good, len(pages))
        builder.record(
            "meta_descriptions",
            CheckStatus.PASS if pct >= 80 else CheckStatus.FAIL,
            total_pages=len(pages),
            good_meta=good,
            percentage_good=pct,
            missing_count=len(missing),
            too_short_count=len(too_short),
            too_long_count=len(too_long),
            duplicate_count=len(duplicates),
        )

        if missing:
            builder.add_issue(
                type="missing_meta_descriptions",
                severity=Severity.HIGH,
                title="Missing Meta Descriptions",
                description=f"{len(missing)} pages are missing meta descriptions.",
                recommendation="Add unique, compelling meta descriptions (130-155 characters) to all pages.",
                affected_pages=len(missing),
                examples=missing[:5],
                specifics=missing_fix[:MAX_SPECIFICS],
            )
        if too_short:
            builder.add_issue(
                type="short_meta_descriptions",
                severity=Severity.LOW,
                title="Meta Descriptions Too Short",
                description=f"{len(too_short)} pages have meta descriptions shorter than 120 characters.",
                recommendation="Expand meta descriptions to 130-155 characters with a clear value proposition.",
                affected_pages=len(too_short),
                examples=too_short[:3],
                specifics=short_fix[:MAX_SPECIFICS],
            )
        if too_long:
            builder.add_issue(
                type="long_meta_descriptions",
                severity=Severity.LOW,
                title="Meta Descriptions Too Long",
                description=f"{len(too_long)} pages have meta descriptions longer than 160 characters.",
                recommendation="Shorten meta descriptions to 130-155 characters to prevent truncation.",
                affected_pages=len(too_long),
                examples=too_long[:3],
                specifics=long_fix[:MAX_SPECIFICS],
            )
        if duplicates:
            builder.add_issue(
                type="duplicate_meta_descriptions",
                severity=Severity.MEDIUM,
                title="Duplicate Meta Descriptions",
                description=f"{len(duplicates)} duplicate meta descriptions found.",
                recommendation="Make each meta description unique and relevant to the page content.",
                affected_pages=sum(d["count"] for d in duplicates),
                examples=duplicates[:3],
                specifics=[
                    FieldSuggestion(
                        url=d["urls"][0],
                        field="meta_description",
                        current=d["value"],
                        suggested=f"(unique description for each of the {d['count']} pages)",
                        copy_paste_ready=False,
                        context=f"Same description used on {d['count']} pages",
                    )
                    for d in duplicates[:5]
                ],
            )

        logger.debug("Meta descriptions: %d%% good", pct)
        return pct

    def _check_heading_structure(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...], brand: str) -> float:
        missing, multiple, empty = [], [], []
        missing_fix, multiple_fix = [], []

        for page in pages:
            h1_tags = page.h1_tags
            if not h1_tags:
                missing.append(page.url)
                missing_fix.append(FieldSuggestion(
                    url=page.url, field="h1", current="(none)", suggested=suggest_h1(page, brand),
                    context=f'Derived from title tag: "{page.title}"' if page.title else "No title available",
                ))
            elif len(h1_tags) > 1:
                multiple.append({"url": page.url, "h1_tags": list(h1_tags), "count": len(h1_tags)})
                others = ", ".join(f'"{h}"' for h in h1_tags[1:])
                multiple_fix.append(FieldSuggestion(
                    url=page.url, field="h1", current=" | ".join(h1_tags), suggested=h1_tags[0],
                    context=f"Keep only the first H1; convert others to H2: {others}",
                ))
            elif not h1_tags[0].strip():
                empty.append(page.url)

        good = len(pages) - len(missing) - len(multiple) - len(empty)
        pct = percentage(good, len(pages))
        builder.record(
            "heading_structure",
            CheckStatus.PASS if pct >= 90 else CheckStatus.FAIL,
            total_pages=len(pages),
            good_headings=good,
            percentage_good=pct,
            missing_h1_count=len(missing),
            multiple_h1_count=len(multiple),
            empty_h1_count=len(empty),
        )

        if missing:
            builder.add_issue(
                type="missing_h1",
                severity=Severity.HIGH,
                title="Missing H1 Tags",
                description=f"{len(missing)} pages are missing H1 tags.",
                recommendation="Add a single, descriptive H1 tag to each page summarizing the main topic.",
                affected_pages=len(missing),
                examples=missing[:5],
                specifics=missing_fix[:MAX_H1_SPECIFICS],
            )
        if multiple:
            if len(multiple) == 1:
                only = multiple[0]
                shown = '" and "'.join(only["h1_tags"][:2])
                more = f" (+{only['count'] - 2} more)" if only["count"] > 2 else ""
                description = (
                    f'1 page has {only["count"]} H1 tags: "{shown}"{more}. Each page should have only one H1.'
                )
            else:
                description = f"{len(multiple)} pages have multiple H1 tags. Each page should have only one H1."
            builder.add_issue(
                type="multiple_h1",
                severity=Severity.HIGH,
                title="Multiple H1 Tags",
                description=description,
                recommendation="Keep only the primary H1; convert all others to H2 or H3 subheadings.",
                affected_pages=len(multiple),
                examples=multiple[:3],
                specifics=multiple_fix[:MAX_H1_SPECIFICS],
            )

        logger.debug("Heading structure: %d%% good", pct)
        return pct

    def _check_heading_hierarchy(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> float:
        problems = []
        for page in pages:
            if len(page.h1_tags) == 1 and not page.h2_tags and page.word_count > 400:
                problems.append({
                    "url": page.url,
                    "issue": "missing_h2",
                    "detail": f'No H2 subheadings on page with {page.word_count} words and H1: "{page.h1_tags[0]}"',
                })
            elif page.h3_tags and not page.h2_tags:
                count = len(page.h3_tags)
                problems.append({
                    "url": page.url,
                    "issue": "h3_without_h2",
                    "detail": f"{count} H3 {_plural(count, 'tag', 'tags')} found but no H2 tags, skipped heading level",
                })

        builder.record(
            "heading_hierarchy",
            CheckStatus.PASS if not problems else CheckStatus.WARNING,
            total_pages=len(pages),
            issues_count=len(problems),
        )

        if problems:
            missing_h2 = sum(1 for p in problems if p["issue"] == "missing_h2")
            skipped = len(problems) - missing_h2
            parts = []
            if missing_h2:
                parts.append(
                    f"{missing_h2} {_plural(missing_h2, 'page has', 'pages have')} "
                    "no H2 subheadings despite substantial content."
                )
            if skipped:
                parts.append(
                    f"{skipped} {_plural(skipped, 'page uses', 'pages use')} "
                    "H3 tags without H2 tags (skipped heading level)."
                )
            builder.add_issue(
                type="heading_hierarchy_issues",
                severity=Severity.MEDIUM,
                title="Heading Hierarchy Issues",
                description=" ".join(parts),
                recommendation=(
                    "Use H2 for main sections and H3 for sub-sections within H2 blocks. "
                    "Never skip heading levels (e.g. H1 -> H3 without H2)."
                ),
                affected_pages=len(problems),
                evidence=[{"url": p["url"], "detail": p["detail"]} for p in problems[:4]],
            )

        return _share_penalized(len(problems), len(pages))

    def _check_url_structure(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> float:
        too_long, with_params, deep = [], [], []
        for page in pages:
            path = page.path or "/"
            if len(page.url) > 100:
                too_long.append({"url": page.url, "length": len(page.url)})
            if "?" in page.url and path != "/":
                with_params.append(page.url)
            depth = path.split("?", 1)[0].rstrip("/").count("/")
            if depth >= 4:
                deep.append({"url": page.url, "depth": depth})

        good = len(pages) - len(too_long) - len(with_params)
        pct = percentage(good, len(pages))
        builder.record(
            "url_structure",
            CheckStatus.PASS if pct >= 80 else CheckStatus.WARNING,
            total_pages=len(pages),
            good_urls=good,
            percentage_good=pct,
            too_long_count=len(too_long),
            has_parameters_count=len(with_params),
            deep_url_count=len(deep),
        )

        if too_long:
            builder.add_issue(
                type="urls_too_long",
                severity=Severity.LOW,
                title="URLs Too Long",
                description=f"{len(too_long)} pages have URLs longer than 100 characters.",
                recommendation="Shorten URLs to be more concise while remaining descriptive.",
                affected_pages=len(too_long),
                examples=too_long[:3],
            )
        if with_params:
            builder.add_issue(
                type="urls_with_parameters",
                severity=Severity.MEDIUM,
                title="URLs With Query Parameters",
                description=f"{len(with_params)} pages have query parameters in URLs.",
                recommendation="Use clean, SEO-friendly URLs without query parameters when possible.",
                affected_pages=len(with_params),
                examples=with_params[:5],
            )
        if deep:
            more = f" and {len(deep) - 1} more" if len(deep) > 1 else ""
            builder.add_issue(
                type="deep_url_structure",
                severity=Severity.LOW,
                title="Deep URL Structure",
                description=(
                    f'{len(deep)} {_plural(len(deep), "URL is", "URLs are")} 4+ levels deep '
                    f'(e.g. "{strip_origin(deep[0]["url"])}"){more}. '
                    "Flat URL structures are preferred by search engines."
                ),
                recommendation=(
                    "Flatten URL hierarchy to a maximum of 3 levels. "
                    "Use 301 redirects for any restructured URLs."
                ),
                affected_pages=len(deep),
                evidence=[{"url": d["url"], "detail": f"{d['depth']} levels deep"} for d in deep[:4]],
            )
        return pct

    def _check_images(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> float:
        total_images = 0
        total_missing = 0
        pages_missing = []
        alt_fix: list[FieldSuggestion] = []

        for page in pages:
            if not page.html:
                total_images += page.image_count
                continue

            images = BeautifulSoup(page.html, "lxml").find_all("img")
            total_images += len(images)
            missing_src = [
                img.get("src") or img.get("data-src") or ""
                for img in images
                if not (img.get("alt") or "").strip()
            ]
            if not missing_src:
                continue

            total_missing += len(missing_src)
            pages_missing.append({"url": page.url, "missing_alt": len(missing_src), "total_images": len(images)})
            for src in missing_src[:ALT_SPECIFICS_PER_PAGE]:
                if len(alt_fix) >= MAX_ALT_SPECIFICS:
                    break
                image_src = strip_origin(src)
                alt_fix.append(FieldSuggestion(
                    url=page.url,
                    field="alt",
                    current="",
                    suggested=alt_from_src(src),
                    context=f"Image: {image_src.split('?')[0].rsplit('/', 1)[-1] or 'unknown'}",
                    image_src=image_src,
                ))

        pct = percentage(total_images - total_missing, total_images, empty=100)
        builder.record(
            "image_optimization",
            CheckStatus.PASS if pct >= 90 else CheckStatus.FAIL,
            total_pages=len(pages),
            total_images=total_images,
            total_missing_alt=total_missing,
            percentage_with_alt=pct,
            pages_with_missing_alt=len(pages_missing),
        )

        if total_missing:
            builder.add_issue(
                type="images_missing_alt_text",
                severity=Severity.HIGH if total_missing > 10 else Severity.MEDIUM,
                title="Images Missing Alt Text",
                description=(
                    f"{total_missing} {_plural(total_missing, 'image', 'images')} across "
                    f"{len(pages_missing)} {_plural(len(pages_missing), 'page', 'pages')} "
                    "are missing alt text. Alt text is essential for accessibility and image SEO."
                ),
                recommendation=(
                    'Add descriptive alt text to all content images. '
                    'Use empty alt="" only for purely decorative images.'
                ),
                affected_pages=len(pages_missing),
                examples=pages_missing[:5],
                specifics=alt_fix,
            )

        logger.debug("Images: %d total, %d missing alt", total_images, total_missing)
        return pct

    def _check_internal_linking(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> float:
        total_links = sum(p.link_count for p in pages)
        weak = [
            {"url": p.url, "link_count": p.link_count, "word_count": p.word_count}
            for p in pages
            if p.path != "/" and p.word_count > 400 and p.link_count < 5
        ]
        avg_links = round_score(total_links / len(pages)) if pages else 0
        builder.record(
            "internal_linking",
            CheckStatus.PASS if not weak else CheckStatus.WARNING,
            total_pages=len(pages),
            total_links=total_links,
            avg_links_per_page=avg_links,
            pages_with_weak_linking=len(weak),
        )

        if weak:
            builder.add_issue(
                type="weak_internal_linking",
                severity=Severity.MEDIUM,
                title="Weak Internal Linking",
                description=(
                    f"{len(weak)} content-rich {_plural(len(weak), 'page has', 'pages have')} fewer than "
                    "5 internal links despite substantial content. Sparse linking leaves pages under-ranked."
                ),
                recommendation=(
                    "Add 3-5 contextual internal links per 500 words of content, "
                    "using descriptive anchor text in the main content."
                ),
                affected_pages=len(weak),
                examples=weak[:5],
                evidence=[
                    {
                        "url": p["url"],
                        "detail": f"Only {p['link_count']} {_plural(p['link_count'], 'link', 'links')} "
                                  f"in {p['word_count']} words of content",
                    }
                    for p in weak[:5]
                ],
            )

        return _share_penalized(len(weak), len(pages))
