"""Content quality checks."""

import logging
import re
from collections import defaultdict

from ..models import Category, CheckStatus, CrawledPage, Severity
from ..scoring import percentage, round_score, weighted_score
from .base import Analyzer, ResultBuilder


logger = logging.getLogger(__name__)

CONTENT_WEIGHTS = {
    "content_volume": 35,
    "keyword_cannibalization": 20,
    "readability": 20,
    "faq_sections": 10,
    "multimedia_presence": 15,
}

THIN_CONTENT_WORDS = 300
LOW_AVERAGE_WORDS = 400
CANNIBALIZATION_MIN_TITLES = 3
CANNIBALIZATION_PENALTY = 15
MAX_TITLE_WORDS = 15

FAQ_MARKERS = ("faq", "frequently asked", "questions")
AUTHOR_RE = re.compile(r"author|written by|by |about the author")
DATE_RE = re.compile(r"20(2[0-9]|[3-9]\d)|updated|published")
BLOG_URL_RE = re.compile(r"/(blog|article|post|news)s?/", re.IGNORECASE)


def _headings_text(page: CrawledPage) -> str:
    return " ".join(page.h2_tags + page.h3_tags).lower()


def title_keywords(title: str) -> list[str]:
    """Lowercased title words longer than four characters."""
    return [word for word in title.lower().split() if len(word) > 4]


class ContentQualityAnalyzer(Analyzer):
    """Thin content, cannibalization, readability, FAQs and multimedia.

    Average word count, E-E-A-T signals and blog promotion on the homepage
    are reported as issues but do not feed the score.
    """

    category = Category.CONTENT_QUALITY
    weight = 0.20

    def run_checks(self, builder: ResultBuilder, domain: str, pages: tuple[CrawledPage, ...]) -> float:
        builder.measurement_method = "crawl-analysis"
        builder.confidence = "measured"

        scores = {
            "content_volume": self._check_content_volume(builder, pages),
            "keyword_cannibalization": self._check_keyword_cannibalization(builder, pages),
            "readability": self._check_readability(builder, pages),
            "faq_sections": self._check_faq_sections(builder, pages),
            "multimedia_presence": self._check_multimedia(builder, pages),
        }
        self._check_eeat_signals(builder, pages)
        self._check_blog_on_homepage(builder, pages)
        return weighted_score(scores, CONTENT_WEIGHTS)

    def _check_content_volume(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> float:
        thin = [
            {"url": p.url, "word_count": p.word_count}
            for p in pages
            if p.word_count < THIN_CONTENT_WORDS and p.path != "/"
        ]
        good = sum(1 for p in pages if p.word_count >= THIN_CONTENT_WORDS)
        total_words = sum(p.word_count for p in pages)
        avg_words = round_score(total_words / len(pages)) if pages else 0
        pct = percentage(good, len(pages))

        builder.record(
            "content_volume",
            CheckStatus.PASS if pct >= 70 else CheckStatus.FAIL,
            total_pages=len(pages),
            total_words=total_words,
            avg_word_count=avg_words,
            good_content=good,
            thin_content=len(thin),
            percentage_good=pct,
        )

        if thin:
            builder.add_issue(
                type="thin_content",
                severity=Severity.HIGH if len(thin) > len(pages) * 0.5 else Severity.MEDIUM,
                title="Thin Content Issues",
                description=(
                    f"{len(thin)} pages have fewer than {THIN_CONTENT_WORDS} words. "
                    "Thin content can negatively impact SEO rankings."
                ),
                recommendation="Expand thin pages with valuable, relevant information for the reader.",
                affected_pages=len(thin),
                examples=thin[:5],
                evidence=[
                    {"url": t["url"], "detail": f"{t['word_count']} words (minimum: {THIN_CONTENT_WORDS})"}
                    for t in thin[:5]
                ],
            )

        if pages and avg_words < LOW_AVERAGE_WORDS:
            builder.add_issue(
                type="low_avg_word_count",
                severity=Severity.MEDIUM,
                title="Low Average Word Count",
                description=f"Average word count is {avg_words} words. Consider adding more comprehensive content.",
                recommendation="Aim for 500-1000 words per page for better SEO performance.",
            )

        logger.debug("Content volume: avg=%d words, %d%% good", avg_words, pct)
        return pct

    def _check_keyword_cannibalization(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> float:
        by_keyword: dict[str, list[CrawledPage]] = defaultdict(list)
        for page in pages:
            for word in dict.fromkeys(title_keywords(page.title)):
                by_keyword[word].append(page)

        shared = [
            {"keyword": word, "page_count": len(hits), "pages": [{"url": p.url, "title": p.title} for p in hits[:5]]}
            for word, hits in by_keyword.items()
            if len(hits) >= CANNIBALIZATION_MIN_TITLES
        ]

        builder.record(
            "keyword_cannibalization",
            CheckStatus.PASS if not shared else CheckStatus.WARNING,
            total_pages=len(pages),
            potential_issues=len(shared),
        )

        if shared:
            builder.add_issue(
                type="keyword_cannibalization",
                severity=Severity.MEDIUM,
                title="Potential Keyword Cannibalization",
                description=(
                    f"{len(shared)} keywords appear in multiple page titles, "
                    "which may indicate keyword cannibalization."
                ),
                recommendation="Review pages targeting the same keywords and consolidate or differentiate them.",
                examples=shared[:3],
                evidence=[
                    {
                        "url": None,
                        "detail": (
                            f'Keyword "{s["keyword"]}" appears in {s["page_count"]} titles '
                            f'(e.g., {", ".join(p["title"] for p in s["pages"][:2])})'
                        ),
                    }
                    for s in shared[:3]
                ],
            )

        return max(0, 100 - len(shared) * CANNIBALIZATION_PENALTY)

    def _check_readability(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> float:
        complex_titles = []
        for page in pages:
            if page.title and page.word_count > 0:
                words = len(page.title.split())
                if words > MAX_TITLE_WORDS:
                    complex_titles.append({"url": page.url, "issue": "complex_title", "title_words": words})

        good = len(pages) - len(complex_titles)
        pct = percentage(good, len(pages))
        builder.record(
            "readability",
            CheckStatus.PASS if pct >= 80 else CheckStatus.WARNING,
            total_pages=len(pages),
            good_readability=good,
            percentage_good=pct,
        )

        if complex_titles:
            builder.add_issue(
                type="readability_issues",
                severity=Severity.LOW,
                title="Readability Concerns",
                description=f"{len(complex_titles)} pages may have readability issues (complex titles).",
                recommendation="Simplify titles and content for better user experience and SEO.",
                affected_pages=len(complex_titles),
                examples=complex_titles[:3],
            )
        return pct

    def _check_faq_sections(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> float:
        with_faq = []
        for page in pages:
            headings = _headings_text(page)
            has_schema = "FAQPage" in page.schema_types
            has_heading = any(marker in headings for marker in FAQ_MARKERS)
            if has_schema or has_heading:
                with_faq.append({"url": page.url, "has_faq_schema": has_schema, "has_faq_heading": has_heading})

        pct = percentage(len(with_faq), len(pages))
        builder.record(
            "faq_sections",
            CheckStatus.PASS if pct > 0 else CheckStatus.INFO,
            total_pages=len(pages),
            pages_with_faq=len(with_faq),
            percentage_with_faq=pct,
        )

        if not with_faq:
            builder.add_issue(
                type="no_faq_sections",
                severity=Severity.LOW,
                title="No FAQ Sections Detected",
                description="No FAQ sections found. FAQ pages can improve user experience and SEO.",
                recommendation="Consider adding FAQ sections with FAQPage schema markup to relevant pages.",
            )
            return 0
        return min(100, pct + 20)

    def _check_multimedia(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> float:
        with_images = [p.url for p in pages if p.image_count > 0]
        without_images = [p.url for p in pages if p.image_count == 0 and p.path != "/"]
        total_images = sum(p.image_count for p in pages)
        pct = percentage(len(with_images), len(pages))

        builder.record(
            "multimedia_presence",
            CheckStatus.PASS if pct >= 60 else CheckStatus.WARNING,
            total_pages=len(pages),
            total_images=total_images,
            pages_with_images=len(with_images),
            pages_without_images=len(without_images),
            percentage_with_images=pct,
            avg_images_per_page=round_score(total_images / len(pages)) if pages else 0,
        )

        if pages and pct < 60:
            builder.add_issue(
                type="limited_multimedia",
                severity=Severity.LOW,
                title="Limited Multimedia Content",
                description=f"Only {pct}% of pages have images. Visual content improves engagement.",
                recommendation="Add relevant images, infographics, or videos to enhance content quality.",
                affected_pages=len(without_images),
                examples=without_images[:5],
                evidence=[{"url": url, "detail": "No images found"} for url in without_images[:5]],
            )

        return pct * 0.7 if pct < 50 else pct

    def _check_eeat_signals(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> None:
        with_signals = 0
        lacking = []
        for page in pages:
            headings = _headings_text(page)
            author = bool(AUTHOR_RE.search(headings))
            dated = bool(DATE_RE.search(f"{page.title} {headings}".lower()))
            cited = page.word_count > 600 and page.image_count > 0
            if author or dated or cited:
                with_signals += 1
            elif page.word_count > 400:
                lacking.append({"url": page.url, "detail": f"{page.word_count} words, no author/date signals"})

        builder.record(
            "eeat_signals",
            CheckStatus.PASS if not lacking else CheckStatus.WARNING,
            total_pages=len(pages),
            pages_with_signals=with_signals,
            pages_lacking_signals=len(lacking),
        )

        if lacking:
            builder.add_issue(
                type="weak_eeat_signals",
                severity=Severity.MEDIUM,
                title="Weak E-E-A-T Signals",
                description=(
                    f"{len(lacking)} substantial page(s) lack visible credibility signals such as "
                    "author attribution, publication dates, or supporting media."
                ),
                recommendation=(
                    "Add author bylines, publication or update dates, and supporting images "
                    'or citations to key content pages. Consider an "About the Author" section.'
                ),
                affected_pages=len(lacking),
                examples=lacking[:5],
            )

    def _check_blog_on_homepage(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> None:
        blog_pages = [p for p in pages if BLOG_URL_RE.search(p.url)]
        homepage = next((p for p in pages if p.path == "/"), None)
        featured = homepage is not None and len(homepage.h2_tags) >= 2

        builder.record(
            "blog_featured_on_homepage",
            CheckStatus.PASS if not blog_pages or featured else CheckStatus.WARNING,
            blog_pages_found=len(blog_pages),
            homepage_found=homepage is not None,
        )

        if len(blog_pages) >= 3 and not featured:
            builder.add_issue(
                type="blog_not_featured_on_homepage",
                severity=Severity.LOW,
                title="Blog Content Not Featured on Homepage",
                description=(
                    f"{len(blog_pages)} blog pages were found but the homepage does not appear "
                    "to surface recent blog content."
                ),
                recommendation=(
                    'Add a "Recent Posts" or "Latest Articles" section to the homepage '
                    "linking your 3-5 most recent posts."
                ),
                affected_pages=1,
            )
