"""Local SEO checks, weighted by the kind of business the site represents.

Sites that read as software products are scored on a separate weight
table: physical-location checks still run and are recorded, but they carry
no weight and their absence is not reported as an issue.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Sequence

from ..models import Category, CheckStatus, CrawledPage, Severity
from ..scoring import percentage, round_score, weighted_score
from .authority import ADDRESS_RE, PHONE_RE
from .base import Analyzer, ResultBuilder, find_homepage


logger = logging.getLogger(__name__)


class BusinessType(Enum):
    LOCAL = "local"
    SAAS = "saas"


@dataclass(frozen=True)
class WeightTable:
    business_type: BusinessType
    weights: Mapping[str, int]
    suppressed_issues: frozenset[str] = frozenset()


LOCAL_WEIGHTS = WeightTable(
    business_type=BusinessType.LOCAL,
    weights={
        "local_business_schema": 30,
        "nap_consistency": 30,
        "google_business_profile": 20,
        "location_keywords": 15,
        "geographic_targeting": 5,
    },
)

SAAS_WEIGHTS = WeightTable(
    business_type=BusinessType.SAAS,
    weights={
        "digital_presence": 60,
        "google_business_profile": 40,
        "local_business_schema": 0,
        "nap_consistency": 0,
        "location_keywords": 0,
        "geographic_targeting": 0,
    },
    suppressed_issues=frozenset({
        "incomplete_nap",
        "missing_local_business_schema",
        "no_google_maps",
        "missing_location_keywords",
        "no_location_in_title",
    }),
)

SAAS_KEYWORDS = (
    "saas", "software", "platform", "app", "cloud", "api", "dashboard", "automation",
    "subscription", "free trial", "sign up", "integrations", "analytics", "workflow",
    "developers", "startup",
)
LOCAL_KEYWORDS = (
    "restaurant", "dentist", "dental", "plumber", "plumbing", "salon", "clinic", "attorney",
    "lawyer", "law firm", "contractor", "roofing", "hvac", "cafe", "bakery", "hotel",
    "near me", "visit us", "locally owned", "real estate", "auto repair", "spa", "store hours",
)

LOCAL_BUSINESS_TYPES = {
    "LocalBusiness", "Restaurant", "Store", "Hotel", "Dentist", "Attorney", "RealEstateAgent", "AutoDealer",
}

LOCATION_KEYWORDS = (
    "near me", "local", "city", "town", "state", "zip", "area",
    "neighborhood", "downtown", "location", "directions", "visit us",
)

MAJOR_CITIES_RE = re.compile(
    r"\b(new york|los angeles|chicago|houston|phoenix|san antonio|san diego|dallas|san jose|austin)\b",
    re.IGNORECASE,
)
CITY_STATE_RE = re.compile(r"\b[A-Z][a-z]+,\s*[A-Z]{2}\b")
GEO_META_MARKERS = ("geo.position", "geo.placename", "geo.region")
MAPS_MARKERS = ("maps.google.com", "google.com/maps")
BUSINESS_PROFILE_MARKERS = ("business.google.com", "google.com/business")

DIGITAL_PRESENCE_PAGES = 10


def _keyword_hits(text: str, keywords: Sequence[str]) -> list[str]:
    return [kw for kw in keywords if re.search(rf"\b{re.escape(kw)}\b", text)]


def classify_business(pages: Sequence[CrawledPage]) -> tuple[WeightTable, dict[str, Any]]:
    """Pick the weight table from homepage title, H1 and meta description text.

    Software wins only with at least two software terms and strictly more
    software than local terms; every tie stays local.
    """
    homepage = find_homepage(pages)
    text = ""
    if homepage is not None:
        text = " ".join((homepage.title, *homepage.h1_tags, homepage.meta_description)).lower()

    saas_hits = _keyword_hits(text, SAAS_KEYWORDS)
    local_hits = _keyword_hits(text, LOCAL_KEYWORDS)
    table = SAAS_WEIGHTS if len(saas_hits) >= 2 and len(saas_hits) > len(local_hits) else LOCAL_WEIGHTS
    return table, {"saas_signals": saas_hits, "local_signals": local_hits}


def normalize_phone(raw: str) -> Optional[str]:
    """Last ten digits of a phone number, or None if it has fewer than ten."""
    digits = re.sub(r"\D", "", raw)
    return digits[-10:] if len(digits) >= 10 else None


class LocalAnalyzer(Analyzer):
    """LocalBusiness schema, NAP, Google Business Profile, location keywords and geo targeting."""

    category = Category.LOCAL_SEO
    weight = 0.10

    def run_checks(self, builder: ResultBuilder, domain: str, pages: tuple[CrawledPage, ...]) -> float:
        table, signals = classify_business(pages)
        builder.record("business_type", CheckStatus.INFO, type=table.business_type.value, **signals)
        logger.debug("Business type %s (signals: %s)", table.business_type.value, signals)

        scores = {
            "local_business_schema": self._check_local_business_schema(builder, table, pages),
            "nap_consistency": self._check_nap(builder, table, pages),
            "google_business_profile": self._check_google_business_profile(builder, table, pages),
            "location_keywords": self._check_location_keywords(builder, table, pages),
            "geographic_targeting": self._check_geographic_targeting(builder, table, pages),
            "digital_presence": self._check_digital_presence(builder, pages),
        }
        return weighted_score(scores, table.weights)

    @staticmethod
    def _emit(builder: ResultBuilder, table: WeightTable, **issue: Any) -> None:
        if issue["type"] in table.suppressed_issues:
            logger.debug("Suppressed %s for %s site", issue["type"], table.business_type.value)
            return
        builder.add_issue(**issue)

    def _check_local_business_schema(
        self, builder: ResultBuilder, table: WeightTable, pages: tuple[CrawledPage, ...]
    ) -> float:
        with_schema = [
            {"url": p.url, "schema_types": [t for t in p.schema_types if "Business" in t or "Organization" in t]}
            for p in pages
            if LOCAL_BUSINESS_TYPES.intersection(p.schema_types)
        ]
        builder.record(
            "local_business_schema",
            CheckStatus.PASS if with_schema else CheckStatus.WARNING,
            found=bool(with_schema),
            pages_with_schema=len(with_schema),
            examples=with_schema[:3],
        )

        if not with_schema:
            self._emit(
                builder, table,
                type="missing_local_business_schema",
                severity=Severity.HIGH,
                title="Missing LocalBusiness Schema",
                description=(
                    "No LocalBusiness schema markup found. "
                    "This helps search engines understand your business location."
                ),
                recommendation=(
                    "Add LocalBusiness schema markup with name, address, phone, hours, "
                    "and geo-coordinates to your homepage or contact page."
                ),
            )
            return 0
        return 100

    def _check_nap(self, builder: ResultBuilder, table: WeightTable, pages: tuple[CrawledPage, ...]) -> float:
        phones: set[str] = set()
        addresses: set[str] = set()
        pages_with_phone = pages_with_address = 0

        for page in pages:
            html = page.html or ""
            found_phones = PHONE_RE.findall(html)
            if found_phones:
                pages_with_phone += 1
                phones.update(p for p in map(normalize_phone, found_phones) if p)
            found_addresses = ADDRESS_RE.findall(html)
            if found_addresses:
                pages_with_address += 1
                addresses.update(a.lower().strip() for a in found_addresses)

        has_phone, has_address = bool(phones), bool(addresses)
        consistent_phone = len(phones) <= 1
        consistent_address = len(addresses) <= 2
        consistent = consistent_phone and consistent_address

        builder.record(
            "nap_consistency",
            CheckStatus.PASS if has_phone and has_address and consistent else CheckStatus.WARNING,
            has_phone=has_phone,
            has_address=has_address,
            phone_variations=len(phones),
            address_variations=len(addresses),
            pages_with_phone=pages_with_phone,
            pages_with_address=pages_with_address,
            is_consistent=consistent,
        )

        if not has_phone or not has_address:
            missing = " and ".join(
                name for name, present in (("phone number", has_phone), ("address", has_address)) if not present
            )
            self._emit(
                builder, table,
                type="incomplete_nap",
                severity=Severity.HIGH,
                title="Incomplete NAP Information",
                description=f"Missing {missing} on website.",
                recommendation=(
                    "Add complete business name, address, and phone number (NAP) to your website, "
                    "especially on contact and footer sections."
                ),
            )
        if has_phone and not consistent_phone:
            self._emit(
                builder, table,
                type="inconsistent_phone",
                severity=Severity.MEDIUM,
                title="Inconsistent Phone Numbers",
                description=(
                    f"{len(phones)} different phone numbers found across pages. "
                    "NAP must be consistent for local SEO."
                ),
                recommendation="Use the same phone number format consistently across all pages.",
                affected_pages=pages_with_phone,
            )
        if has_address and not consistent_address:
            self._emit(
                builder, table,
                type="inconsistent_address",
                severity=Severity.MEDIUM,
                title="Inconsistent Addresses",
                description=(
                    f"{len(addresses)} different address formats found. NAP must be consistent for local SEO."
                ),
                recommendation=(
                    "Use the exact same address format across all pages "
                    "and match it with your Google Business Profile."
                ),
                affected_pages=pages_with_address,
            )

        return (30 if has_phone else 0) + (30 if has_address else 0) + (40 if consistent else 0)

    def _check_google_business_profile(
        self, builder: ResultBuilder, table: WeightTable, pages: tuple[CrawledPage, ...]
    ) -> float:
        has_maps = has_profile_link = has_reviews = False
        for page in pages:
            html = page.html or ""
            has_maps = has_maps or any(m in html for m in MAPS_MARKERS)
            has_profile_link = has_profile_link or any(m in html for m in BUSINESS_PROFILE_MARKERS)
            has_reviews = has_reviews or "review" in html
            if has_maps and has_profile_link and has_reviews:
                break

        builder.record(
            "google_business_profile",
            CheckStatus.PASS if has_maps else CheckStatus.WARNING,
            has_google_maps_embed=has_maps,
            has_google_business_link=has_profile_link,
            has_reviews_link=has_reviews,
        )

        if not has_maps:
            self._emit(
                builder, table,
                type="no_google_maps",
                severity=Severity.MEDIUM,
                title="No Google Maps Embed",
                description="No Google Maps embed found. Embedding a map helps users find your location.",
                recommendation="Embed a Google Map of your business location on your contact or about page.",
            )
        if not has_reviews:
            self._emit(
                builder, table,
                type="no_reviews_link",
                severity=Severity.LOW,
                title="No Reviews Section",
                description="No customer reviews section found. Reviews build trust and improve local SEO.",
                recommendation="Add a link to your Google Business reviews or display testimonials on your website.",
            )

        return (60 if has_maps else 0) + (40 if has_reviews else 0)

    def _check_location_keywords(
        self, builder: ResultBuilder, table: WeightTable, pages: tuple[CrawledPage, ...]
    ) -> float:
        matched_pages = 0
        keywords_found: list[str] = []
        for page in pages:
            text = " ".join((page.title, page.meta_description, *page.h1_tags)).lower()
            keyword = next((kw for kw in LOCATION_KEYWORDS if kw in text), None)
            if keyword:
                matched_pages += 1
                if keyword not in keywords_found:
                    keywords_found.append(keyword)

        pct = percentage(matched_pages, len(pages))
        builder.record(
            "location_keywords",
            CheckStatus.PASS if pct >= 30 else CheckStatus.WARNING,
            pages_with_keywords=matched_pages,
            percentage_with_location=pct,
            keywords_found=keywords_found,
        )

        if pct < 30:
            self._emit(
                builder, table,
                type="missing_location_keywords",
                severity=Severity.MEDIUM,
                title="Limited Location Keywords",
                description=(
                    f"Only {pct}% of pages include location keywords. "
                    "Local businesses should emphasize their geographic area."
                ),
                recommendation=(
                    "Include your city, state, or service area in titles, headings, and content. "
                    'Example: "Best Pizza in [City Name]".'
                ),
                affected_pages=len(pages) - matched_pages,
            )

        return min(100, pct * 2)

    def _check_geographic_targeting(
        self, builder: ResultBuilder, table: WeightTable, pages: tuple[CrawledPage, ...]
    ) -> float:
        homepage = find_homepage(pages)
        has_geo_meta = has_location_in_title = False
        if homepage is not None:
            html = homepage.html or ""
            has_geo_meta = any(marker in html for marker in GEO_META_MARKERS)
            has_location_in_title = bool(
                MAJOR_CITIES_RE.search(homepage.title) or CITY_STATE_RE.search(homepage.title)
            )

        builder.record(
            "geographic_targeting",
            CheckStatus.PASS if has_location_in_title else CheckStatus.INFO,
            has_geo_meta=has_geo_meta,
            has_location_in_title=has_location_in_title,
        )

        if not has_location_in_title:
            self._emit(
                builder, table,
                type="no_location_in_title",
                severity=Severity.LOW,
                title="No Geographic Location in Homepage Title",
                description="Homepage title doesn't include city or service area. This helps with local search.",
                recommendation=(
                    "Include your city or service area in the homepage title tag. "
                    'Example: "[Business Name] - [City, State]".'
                ),
                affected_pages=1,
            )

        return (70 if has_location_in_title else 0) + (30 if has_geo_meta else 0)

    def _check_digital_presence(self, builder: ResultBuilder, pages: tuple[CrawledPage, ...]) -> float:
        breadth = min(100, len(pages) / DIGITAL_PRESENCE_PAGES * 100)
        has_schema = any(p.has_schema for p in pages)
        score = (breadth + (100 if has_schema else 0)) / 2
        builder.record(
            "digital_presence",
            CheckStatus.PASS if score >= 70 else CheckStatus.INFO,
            pages_crawled=len(pages),
            has_schema=has_schema,
            score=round_score(score),
        )
        return score
