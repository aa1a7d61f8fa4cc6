"""
Built-in catalog of Canadian government data sources.

Politeness intervals are derived from each provider's requests-per-minute
allowance (60000 / rate ms). refresh_interval_hours is advisory metadata for
whatever external scheduler triggers runs.
"""

from typing import Dict, Optional, Tuple

from ingestion.registry import SourceDescriptor
from models.base import DataType, SourceTier

P = DataType.POLITICIANS
B = DataType.BILLS
V = DataType.VOTES
C = DataType.COMMITTEES
E = DataType.ELECTIONS
S = DataType.STATEMENTS


def _source(
    name: str,
    root_address: str,
    tier: SourceTier,
    endpoints: Dict[DataType, str],
    requests_per_minute: int = 60,
    refresh_interval_hours: Optional[int] = 24,
    declared: Optional[Tuple[DataType, ...]] = None,
) -> SourceDescriptor:
    return SourceDescriptor(
        name=name,
        root_address=root_address,
        tier=tier,
        endpoints=endpoints,
        declared_data_types=declared or tuple(endpoints),
        politeness_interval_ms=60000 // requests_per_minute,
        refresh_interval_hours=refresh_interval_hours,
    )


def _legislature(name, root_address, members, bills, committees, **kwargs):
    return _source(
        name,
        root_address,
        SourceTier.PROVINCIAL,
        {P: members, B: bills, C: committees},
        **kwargs
    )


def _council(name, page_url):
    root, _, path = page_url.partition("://")[2].partition("/")
    return _source(
        name,
        "https://" + root,
        SourceTier.MUNICIPAL,
        {P: "/" + path},
        refresh_interval_hours=48,
    )


FEDERAL_SOURCES = (
    _source(
        "Parliament of Canada",
        "https://www.parl.ca",
        SourceTier.FEDERAL,
        {
            P: "/members/en/search/members-search",
            B: "/legisinfo/en/bills",
            V: "/members/en/votes/house",
            C: "/committees/en/home",
            S: "/DocumentViewer/en/house/latest/hansard",
        },
        refresh_interval_hours=6,
    ),
    _source(
        "House of Commons",
        "https://www.ourcommons.ca",
        SourceTier.FEDERAL,
        {
            P: "/members/en",
            V: "/members/en/votes",
            C: "/committees/en",
        },
        requests_per_minute=120,
        refresh_interval_hours=2,
    ),
    _source(
        "Senate of Canada",
        "https://sencanada.ca",
        SourceTier.FEDERAL,
        {
            P: "/en/senators",
            C: "/en/committees",
        },
    ),
    _source(
        "Elections Canada",
        "https://www.elections.ca",
        SourceTier.FEDERAL,
        {E: "/content.aspx?section=res&dir=rep/off&document=index"},
        requests_per_minute=30,
        refresh_interval_hours=168,
    ),
)

PROVINCIAL_SOURCES = (
    _legislature(
        "Ontario Legislative Assembly", "https://www.ola.org",
        "/en/members/current", "/en/legislative-business/bills",
        "/en/legislative-business/committees",
    ),
    _legislature(
        "Quebec National Assembly", "https://www.assnat.qc.ca",
        "/en/deputes", "/en/travaux-parlementaires/projets-loi",
        "/en/travaux-parlementaires/commissions",
    ),
    _legislature(
        "British Columbia Legislative Assembly", "https://www.leg.bc.ca",
        "/parliamentary-business/members",
        "/parliamentary-business/legislation-debates-proceedings/42nd-parliament",
        "/parliamentary-business/committees",
    ),
    _legislature(
        "Alberta Legislative Assembly", "https://www.assembly.ab.ca",
        "/members/members-of-the-legislative-assembly", "/legislation/bills",
        "/committees",
    ),
    _legislature(
        "Saskatchewan Legislative Assembly", "https://www.legassembly.sk.ca",
        "/mlas", "/legislative-business/bills", "/committees",
    ),
    _legislature(
        "Manitoba Legislative Assembly", "https://www.gov.mb.ca/legislature",
        "/members", "/business/bills", "/committees",
    ),
    _legislature(
        "New Brunswick Legislative Assembly", "https://www.gnb.ca/legis",
        "/members-e.asp", "/business/bills-e.asp", "/committees-e.asp",
    ),
    _legislature(
        "Nova Scotia House of Assembly", "https://nslegislature.ca",
        "/members/profiles-of-all-members", "/legislative-business/bills-statutes",
        "/committees",
    ),
    _legislature(
        "Prince Edward Island Legislative Assembly", "https://www.assembly.pe.ca",
        "/members", "/legislation", "/committees",
    ),
    _legislature(
        "Newfoundland and Labrador House of Assembly", "https://www.assembly.nl.ca",
        "/members", "/business/bills", "/committees",
    ),
    _legislature(
        "Northwest Territories Legislative Assembly", "https://www.assembly.gov.nt.ca",
        "/members", "/legislative-business/bills", "/committees",
    ),
    _legislature(
        "Yukon Legislative Assembly", "https://yukonassembly.ca",
        "/mlas", "/business/bills", "/committees",
    ),
    _legislature(
        "Nunavut Legislative Assembly", "https://www.assembly.nu.ca",
        "/members", "/legislative-business/bills", "/committees",
    ),
)

MUNICIPAL_SOURCES = (
    _council("City of Toronto Council", "https://www.toronto.ca/city-government/council/"),
    _council("City of Vancouver Council", "https://vancouver.ca/your-government/city-council.aspx"),
    _council("City of Montreal Council", "https://montreal.ca/en/borough-city-councillors"),
    _council("City of Calgary Council", "https://www.calgary.ca/council/councillors.html"),
    _council("City of Ottawa Council", "https://ottawa.ca/en/city-hall/mayor-and-city-councillors"),
    _council(
        "City of Edmonton Council",
        "https://www.edmonton.ca/city_government/city_organization/mayor-councillors",
    ),
    _council("City of Winnipeg Council", "https://winnipeg.ca/council/"),
    _council("Halifax Regional Council", "https://www.halifax.ca/city-hall/regional-council"),
)

DEFAULT_SOURCES: Tuple[SourceDescriptor, ...] = (
    FEDERAL_SOURCES + PROVINCIAL_SOURCES + MUNICIPAL_SOURCES
)
