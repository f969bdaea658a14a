"""
Fixed vocabularies used by the admin forms, the listing pages and search.
"""

from collections.abc import Iterable
from typing import Final, NamedTuple


class Region(NamedTuple):
    name: str
    slug: str
    countries: tuple[str, ...]


REGIONS: Final[dict[str, Region]] = {
    region.name: region
    for region in (
        Region(
            "Eastern Africa",
            "eastern",
            (
                "Kenya",
                "Tanzania",
                "Uganda",
                "Rwanda",
                "Burundi",
                "Ethiopia",
                "Somalia",
                "South Sudan",
                "Eritrea",
                "Djibouti",
            ),
        ),
        Region(
            "Western Africa",
            "western",
            (
                "Nigeria",
                "Ghana",
                "Senegal",
                "Mali",
                "Burkina Faso",
                "Niger",
                "Guinea",
                "Sierra Leone",
                "Liberia",
                "Ivory Coast",
                "Togo",
                "Benin",
                "Gambia",
                "Guinea-Bissau",
                "Cape Verde",
                "Mauritania",
            ),
        ),
        Region(
            "Central Africa",
            "central",
            (
                "DR Congo",
                "Cameroon",
                "Central African Republic",
                "Chad",
                "Gabon",
                "Equatorial Guinea",
                "Republic of Congo",
                "São Tomé and Príncipe",
            ),
        ),
        Region(
            "Northern Africa",
            "northern",
            ("Egypt", "Libya", "Tunisia", "Algeria", "Morocco", "Sudan"),
        ),
        Region(
            "Southern Africa",
            "southern",
            (
                "South Africa",
                "Zimbabwe",
                "Botswana",
                "Namibia",
                "Zambia",
                "Malawi",
                "Mozambique",
                "Angola",
                "Lesotho",
                "Eswatini",
                "Madagascar",
                "Mauritius",
                "Seychelles",
                "Comoros",
            ),
        ),
    )
}

BUSINESS_CATEGORIES: Final[dict[str, str]] = {
    "Agriculture & Agribusiness": "agriculture-agribusiness",
    "Mining & Energy": "mining-energy",
    "Technology & Fintech": "technology-fintech",
    "Infrastructure & Logistics": "infrastructure-logistics",
    "Sustainable Business Practices": "sustainable-business-practices",
    "Market Entry Strategies": "market-entry-strategies",
    "Risk Management": "risk-management",
    "Market Trends & Analysis": "market-trends-analysis",
    "Emerging Industries": "emerging-industries",
    "Case Studies": "case-studies",
}

BUSINESS_REGIONS: Final[tuple[str, ...]] = (*REGIONS, "Continental")

CONTINENTS: Final[tuple[str, ...]] = (
    "Africa",
    "Asia",
    "Europe",
    "North America",
    "South America",
    "Oceania",
)

SCHOLARSHIP_CATEGORY: Final = "Scholarship"

SCHOLARSHIP_TYPES: Final[tuple[str, ...]] = (
    "Undergraduate",
    "Masters",
    "PhD",
    "Language Program",
    "Research Fellowship",
    "Exchange Program",
    "Professional Development",
    "Certificate Program",
    "Summer Program",
    "General Scholarship",
)

FUNDING_TYPES: Final[tuple[str, ...]] = (
    "Fully Funded",
    "Partial Funding",
    "Tuition Only",
    "Living Expenses Only",
    "Travel Grant",
    "Research Grant",
    "Merit-Based",
    "Need-Based",
)

SECURITY_CATEGORIES: Final[tuple[str, ...]] = (
    "Security Advisories",
    "Threat Intelligence",
    "Risk Mitigation",
    "Best Practices",
)

THREAT_LEVELS: Final[dict[str, str]] = {
    "low": "Low",
    "medium": "Medium",
    "high": "High",
    "critical": "Critical",
}

AFRICAN_COUNTRIES: Final[tuple[str, ...]] = (
    "Algeria",
    "Angola",
    "Benin",
    "Botswana",
    "Burkina Faso",
    "Burundi",
    "Cabo Verde",
    "Cameroon",
    "Central African Republic",
    "Chad",
    "Comoros",
    "Democratic Republic of the Congo",
    "Djibouti",
    "Egypt",
    "Equatorial Guinea",
    "Eritrea",
    "Eswatini",
    "Ethiopia",
    "Gabon",
    "Gambia",
    "Ghana",
    "Guinea",
    "Guinea-Bissau",
    "Ivory Coast",
    "Kenya",
    "Lesotho",
    "Liberia",
    "Libya",
    "Madagascar",
    "Malawi",
    "Mali",
    "Mauritania",
    "Mauritius",
    "Morocco",
    "Mozambique",
    "Namibia",
    "Niger",
    "Nigeria",
    "Republic of the Congo",
    "Rwanda",
    "São Tomé and Príncipe",
    "Senegal",
    "Seychelles",
    "Sierra Leone",
    "Somalia",
    "South Africa",
    "South Sudan",
    "Sudan",
    "Tanzania",
    "Togo",
    "Tunisia",
    "Uganda",
    "Zambia",
    "Zimbabwe",
)

# Search vocabulary; groups are scanned in this order
SEARCH_KEYWORDS: Final[dict[str, tuple[str, ...]]] = {
    "continents": CONTINENTS,
    "scholarship_types": (*SCHOLARSHIP_TYPES, "School"),
    "funding_types": FUNDING_TYPES,
    "security_levels": tuple(THREAT_LEVELS.values()),
    "african_countries": AFRICAN_COUNTRIES,
    "business_categories": (
        "Agriculture",
        "Agribusiness",
        "Mining",
        "Energy",
        "Technology",
        "Fintech",
        "Infrastructure",
        "Logistics",
        "Sustainable Business",
        "Market Entry",
        "Risk Management",
        "Market Trends",
        "Analysis",
        "Emerging Industries",
        "Case Studies",
    ),
    "security_categories": (*SECURITY_CATEGORIES, "Alert", "Monitoring"),
}


def as_choices(values: Iterable[str]) -> list[tuple[str, str]]:
    """Turn a vocabulary into `(value, label)` pairs for form fields."""
    return [(value, value) for value in values]


def region_for_slug(slug: str) -> Region | None:
    for region in REGIONS.values():
        if region.slug == slug:
            return region
    return None


def business_category_for_slug(slug: str) -> str | None:
    for category, category_slug in BUSINESS_CATEGORIES.items():
        if category_slug == slug:
            return category
    return None


def category_url(category: str, bucket: str) -> str:
    """Public listing URL of an article category within a search bucket."""
    if bucket == "regional":
        region = REGIONS.get(category)
        return f"/africa/{region.slug if region else 'eastern'}"
    if bucket == "business":
        slug = BUSINESS_CATEGORIES.get(category, "agriculture-agribusiness")
        return f"/business/{slug}"
    if bucket == "scholarships":
        return "/scholarship"
    if bucket == "security":
        return "/security"
    return "/"
