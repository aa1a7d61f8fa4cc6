"""
Deterministic classification tables: jurisdiction by host, bill category by
title keywords and government tier by role title.

All tables are ordered tuples; the first match wins.
"""

import re
from typing import Optional, Tuple

from models.base import SourceTier

UNKNOWN_JURISDICTION = "Unknown"
GENERAL_CATEGORY = "General"

# Host (or parent domain) -> jurisdiction
JURISDICTION_BY_HOST: Tuple[Tuple[str, str], ...] = (
    ("parl.ca", "Canada"),
    ("parl.gc.ca", "Canada"),
    ("ourcommons.ca", "Canada"),
    ("sencanada.ca", "Canada"),
    ("elections.ca", "Canada"),
    ("ola.org", "Ontario"),
    ("assnat.qc.ca", "Quebec"),
    ("leg.bc.ca", "British Columbia"),
    ("assembly.ab.ca", "Alberta"),
    ("legassembly.sk.ca", "Saskatchewan"),
    ("gov.mb.ca", "Manitoba"),
    ("gnb.ca", "New Brunswick"),
    ("nslegislature.ca", "Nova Scotia"),
    ("assembly.pe.ca", "Prince Edward Island"),
    ("assembly.nl.ca", "Newfoundland and Labrador"),
    ("assembly.gov.nt.ca", "Northwest Territories"),
    ("legassembly.gov.yk.ca", "Yukon"),
    ("yukonassembly.ca", "Yukon"),
    ("assembly.nu.ca", "Nunavut"),
    ("toronto.ca", "Toronto"),
    ("vancouver.ca", "Vancouver"),
    ("montreal.ca", "Montreal"),
    ("calgary.ca", "Calgary"),
    ("ottawa.ca", "Ottawa"),
    ("edmonton.ca", "Edmonton"),
    ("winnipeg.ca", "Winnipeg"),
    ("halifax.ca", "Halifax"),
)

CATEGORY_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Healthcare", ("health", "medical", "hospital", "medicare")),
    ("Environment", ("climate", "environment", "carbon", "green", "emission")),
    ("Economy", ("tax", "budget", "economic", "finance", "trade")),
    ("Justice", ("criminal", "justice", "court", "legal", "crime")),
    ("Technology", ("digital", "internet", "cyber", "data", "privacy")),
    ("Defense", ("defense", "defence", "military", "security", "armed forces")),
    ("Education", ("education", "school", "university", "student")),
    ("Immigration", ("immigration", "refugee", "citizenship", "border")),
)

ROLE_MARKERS: Tuple[Tuple[str, SourceTier], ...] = (
    ("Member of Parliament", SourceTier.FEDERAL),
    ("MP", SourceTier.FEDERAL),
    ("Senator", SourceTier.FEDERAL),
    ("Premier", SourceTier.PROVINCIAL),
    ("MLA", SourceTier.PROVINCIAL),
    ("MPP", SourceTier.PROVINCIAL),
    ("MNA", SourceTier.PROVINCIAL),
    ("MHA", SourceTier.PROVINCIAL),
    ("Mayor", SourceTier.MUNICIPAL),
    ("Councillor", SourceTier.MUNICIPAL),
    ("Alderman", SourceTier.MUNICIPAL),
    ("Reeve", SourceTier.MUNICIPAL),
)

DEFAULT_ROLE_BY_TIER = {
    SourceTier.FEDERAL: "Member of Parliament",
    SourceTier.PROVINCIAL: "Member of Legislative Assembly",
    SourceTier.MUNICIPAL: "City Councillor",
}

# Keywords match at word starts ("emission" matches "Emissions", "tax" does not match "syntax")
_CATEGORY_PATTERNS = tuple(
    (category, re.compile(r"\b(?:" + "|".join(re.escape(k) for k in keywords) + ")"))
    for category, keywords in CATEGORY_KEYWORDS
)

# Role markers are whole words, so "MP" never matches inside "MPP".
# Acronyms are case-sensitive, titles are not.
_ROLE_PATTERNS = tuple(
    (
        re.compile(
            r"\b" + re.escape(marker) + r"\b",
            0 if marker.isupper() else re.IGNORECASE
        ),
        tier
    )
    for marker, tier in ROLE_MARKERS
)


def infer_jurisdiction(host: Optional[str]) -> str:
    host = (host or "").lower().rstrip(".")
    for domain, jurisdiction in JURISDICTION_BY_HOST:
        if host == domain or host.endswith("." + domain):
            return jurisdiction
    return UNKNOWN_JURISDICTION


def infer_category(title: Optional[str]) -> str:
    lowered = (title or "").lower()
    for category, pattern in _CATEGORY_PATTERNS:
        if pattern.search(lowered):
            return category
    return GENERAL_CATEGORY


def infer_tier(role: Optional[str], default: SourceTier) -> SourceTier:
    if role:
        for pattern, tier in _ROLE_PATTERNS:
            if pattern.search(role):
                return tier
    return default
