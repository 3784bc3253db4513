"""Authority and trust checks that need no third-party backlink data."""

import logging
import re

from ..models import Category, CheckStatus, CrawledPage, Severity
from ..scoring import round_score, weighted_score
from .base import Analyzer, ResultBuilder, find_homepage


logger = logging.getLogger(__name__)

AUTHORITY_WEIGHTS = {
    "social_media": 20,
    "trust_signals": 30,
    "contact_information": 20,
    "security": 20,
    "backlink_indicators": 10,
}

SOCIAL_PATTERNS = {
    "facebook": re.compile(r"facebook\.com/|fb\.com/", re.IGNORECASE),
    "twitter": re.compile(r"twitter\.com/|x\.com/", re.IGNORECASE),
    "linkedin": re.compile(r"linkedin\.com/", re.IGNORECASE),
    "instagram": re.compile(r"instagram\.com/", re.IGNORECASE),
    "youtube": re.compile(r"youtube\.com/|youtu\.be/", re.IGNORECASE),
    "pinterest": re.compile(r"pinterest\.com/", re.IGNORECASE),
}

# Page kind -> substrings matched against url, path and title
TRUST_PAGES = {
    "privacy_policy": ("privacy", "privacy policy"),
    "terms_of_service": ("terms",),
    "about_page": ("about",),
    "contact_page": ("contact",),
}

EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_RE = re.compile(r"(?:\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")
ADDRESS_RE = re.compile(
    r"\d{1,5}\s+[\w\s]+(?:street|st|avenue|ave|road|rd|highway|hwy|square|sq|trail|trl"
    r"|drive|dr|court|ct|parkway|pkwy|circle|cir|boulevard|blvd)",
    re.IGNORECASE,
)

ORGANIZATION_TYPES = {"Organization", "LocalBusiness"}
MIN_AVG_LINKS = 5


class AuthorityAnalyzer(Analyzer):
    """Social presence, trust pages, contact details, HTTPS and link structure."""

    category = Category.AUTHORITY_BACKLINKS
    weight = 0.15

    def run_checks(self, builder: ResultBuilder, domain: str, pages: tuple[CrawledPage, ...]) -> float:
        scores = {
            "social_media": self._check_social_media(builder, pages),
            "trust_signals": self._check_trust_signals(builder, pages),
            "contact_information": self._check_contact_information(builder, pages),
            "security": self._check_security(builder, pages),
            "backlink_indicators": self._check_backlink_indicators(builder, pages),
        }
        return weighted_score(scores, AUTHORITY_WEIGHTS)

    def _check_social_media(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> float:
        found = dict.fromkeys(SOCIAL_PATTERNS, False)
        for page in pages:
            og_url = (page.open_graph or {}).get("og:url", "")
            for platform, pattern in SOCIAL_PATTERNS.items():
                if pattern.search(page.html or "") or (og_url and pattern.search(og_url)):
                    found[platform] = True
            twitter = page.twitter or {}
            if twitter.get("twitter:site") or twitter.get("twitter:creator"):
                found["twitter"] = True

        platforms = [name for name, present in found.items() if present]
        builder.record(
            "social_media",
            CheckStatus.PASS if len(platforms) >= 2 else CheckStatus.WARNING,
            platforms=found,
            platforms_found=len(platforms),
            platform_list=platforms,
        )

        if not platforms:
            builder.add_issue(
                type="no_social_media",
                severity=Severity.MEDIUM,
                title="No Social Media Presence Detected",
                description="No links to social media profiles found. Social signals can help build authority.",
                recommendation=(
                    "Add links to your business social media profiles (Facebook, LinkedIn, etc.) "
                    "in the footer or header."
                ),
            )
        elif len(platforms) < 2:
            builder.add_issue(
                type="limited_social_media",
                severity=Severity.LOW,
                title="Limited Social Media Presence",
                description="Only 1 social media platform found. Consider expanding your social presence.",
                recommendation="Establish presence on at least 2-3 major social platforms relevant to your audience.",
            )

        logger.debug("Social platforms found: %s", platforms)
        return min(100, len(platforms) / 4 * 100)

    def _check_trust_signals(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> float:
        found = dict.fromkeys(TRUST_PAGES, False)
        for page in pages:
            haystacks = (page.url.lower(), page.path.lower(), page.title.lower())
            for kind, markers in TRUST_PAGES.items():
                if any(marker in text for marker in markers for text in haystacks):
                    found[kind] = True

        present = [kind for kind, ok in found.items() if ok]
        builder.record(
            "trust_signals",
            CheckStatus.PASS if len(present) >= 3 else CheckStatus.WARNING,
            pages=found,
            trust_pages_found=len(present),
            trust_pages_list=present,
        )

        if not found["privacy_policy"]:
            builder.add_issue(
                type="missing_privacy_policy",
                severity=Severity.HIGH,
                title="Missing Privacy Policy",
                description="No privacy policy page found. This is essential for user trust and GDPR compliance.",
                recommendation="Create a privacy policy page explaining how you collect, use, and protect user data.",
            )
        if not found["contact_page"]:
            builder.add_issue(
                type="missing_contact_page",
                severity=Severity.MEDIUM,
                title="Missing Contact Page",
                description="No contact page found. Users need a way to reach you.",
                recommendation="Create a contact page with email, phone, or contact form.",
            )
        if not found["about_page"]:
            builder.add_issue(
                type="missing_about_page",
                severity=Severity.LOW,
                title="Missing About Page",
                description="No about page found. An about page helps build credibility.",
                recommendation="Create an about page describing your business, mission, and team.",
            )

        return len(present) / len(TRUST_PAGES) * 100

    def _check_contact_information(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> float:
        has_email = has_phone = has_address = False
        for page in pages:
            if ORGANIZATION_TYPES.intersection(page.schema_types):
                # Organization markup carries structured contact details
                has_email = has_phone = has_address = True
                break
            html = page.html or ""
            has_email = has_email or bool(EMAIL_RE.search(html))
            has_phone = has_phone or bool(PHONE_RE.search(html))
            has_address = has_address or bool(ADDRESS_RE.search(html))
            if has_email and has_phone and has_address:
                break

        methods = sum((has_email, has_phone, has_address))
        builder.record(
            "contact_information",
            CheckStatus.PASS if methods >= 2 else CheckStatus.WARNING,
            has_email=has_email,
            has_phone=has_phone,
            has_address=has_address,
            contact_methods_found=methods,
        )

        if methods == 0:
            builder.add_issue(
                type="no_contact_info",
                severity=Severity.HIGH,
                title="No Contact Information Found",
                description="No email, phone, or address found on the website.",
                recommendation="Add contact information (email, phone, or address) to build trust and credibility.",
            )
        elif methods < 2:
            builder.add_issue(
                type="limited_contact_info",
                severity=Severity.MEDIUM,
                title="Limited Contact Information",
                description="Only 1 contact method found. Provide multiple ways to reach you.",
                recommendation="Add at least 2 contact methods (email, phone, address) for better accessibility.",
            )

        return methods / 3 * 100

    def _check_security(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> float:
        homepage = find_homepage(pages)
        has_ssl = homepage is not None and homepage.url.startswith("https://")
        builder.record("security", CheckStatus.PASS if has_ssl else CheckStatus.FAIL, has_ssl=has_ssl)

        if homepage is not None and not has_ssl:
            builder.add_issue(
                type="no_ssl_authority",
                severity=Severity.CRITICAL,
                title="No HTTPS - Security Risk",
                description="Website not using HTTPS. This severely damages trust and authority.",
                recommendation="Install SSL certificate and enable HTTPS for all pages.",
                affected_pages=len(pages),
            )
        return 100 if has_ssl else 0

    def _check_backlink_indicators(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> float:
        total_links = sum(p.link_count for p in pages)
        avg_links = round_score(total_links / len(pages)) if pages else 0
        external_links = any("http://" in (p.html or "") or "https://" in (p.html or "") for p in pages)
        has_structure = avg_links >= MIN_AVG_LINKS

        builder.record(
            "backlink_indicators",
            CheckStatus.INFO,
            avg_internal_links=avg_links,
            external_links_found=external_links,
            has_link_structure=has_structure,
        )

        builder.add_issue(
            type="backlink_analysis_limited",
            severity=Severity.LOW,
            title="Backlink Analysis Limited",
            description="Full backlink analysis requires a third-party backlink data provider.",
            recommendation=(
                "Use a backlink data provider for a full profile. "
                "Focus on earning quality backlinks through content marketing and outreach."
            ),
        )
        if avg_links < MIN_AVG_LINKS:
            builder.add_issue(
                type="weak_link_structure",
                severity=Severity.MEDIUM,
                title="Weak Internal Link Structure",
                description=(
                    f"Average of {avg_links} internal links per page. Strong linking helps authority flow."
                ),
                recommendation=(
                    "Improve internal linking to distribute page authority. "
                    "Aim for 5-10 contextual internal links per page."
                ),
            )

        return 70 if has_structure else 40
