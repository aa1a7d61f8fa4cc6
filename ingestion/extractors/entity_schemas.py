"""
Field chains and container queries for every entity kind.

Chains are defined once per field and shared by all sources, so the same
ordering has to work across legislatures with visually different but
structurally similar markup. Specific class names come first, generic
headings and table-column positions last.
"""

from typing import Dict

from ingestion.extractors.selectors import EntitySchema, FieldChain, Query
from models.base import DataType
from schemas.records import (
    BillRecord,
    CommitteeRecord,
    ElectionRecord,
    PoliticianRecord,
    StatementRecord,
    VoteRecord,
)

POLITICIAN_SCHEMA = EntitySchema(
    record_type=PoliticianRecord,
    containers=(
        ".mp-card",
        ".member-card",
        ".mla-card",
        ".mpp-profile",
        ".mla-profile",
        ".councillor-card",
        ".council-member",
        ".official-profile",
        ".politician-profile",
        ".member-info",
        "tr[data-member]",
        "[data-member-id]",
        "table tr:has(td)",
    ),
    fields={
        "name": FieldChain.of(
            ".member-name",
            ".name",
            ".politician-name",
            ".mp-name",
            "h3",
            "h4",
            "strong",
            "td:first-child",
            Query("", attr="data-name"),
        ),
        "role": FieldChain.of(
            ".position",
            ".role",
            ".member-title",
            ".politician-role",
            ".title",
            "td:nth-child(2)",
        ),
        "party": FieldChain.of(
            ".party",
            ".political-party",
            ".affiliation",
            ".party-name",
            ".member-party",
            "td:nth-child(3)",
        ),
        "constituency": FieldChain.of(
            ".constituency",
            ".riding",
            ".district",
            ".electoral-district",
            ".member-constituency",
            "td:nth-child(4)",
        ),
        "contact.phone": FieldChain.of(
            ".phone",
            ".telephone",
            ".contact-phone",
            Query('a[href^="tel:"]', attr="href", prefix="tel:"),
        ),
        "contact.email": FieldChain.of(
            Query('a[href^="mailto:"]', attr="href", prefix="mailto:"),
            ".email",
            ".contact-email",
            ".member-email",
        ),
        "contact.website": FieldChain.of(
            Query(".website a", attr="href"),
            Query(".member-link a", attr="href"),
            Query("a.profile-link", attr="href"),
        ),
        "image_url": FieldChain.of(Query("img", attr="src")),
        "source_id": FieldChain.of(
            Query("", attr="data-member-id"),
            Query("", attr="data-member"),
        ),
    },
)

BILL_SCHEMA = EntitySchema(
    record_type=BillRecord,
    containers=(
        ".bill-item",
        ".legislation-item",
        "tr[data-bill]",
        ".bill-row",
        ".legis-item",
        "[data-bill-number]",
        "table tr:has(td)",
    ),
    fields={
        "bill_number": FieldChain.of(
            ".bill-number",
            ".legislation-number",
            ".bill-id",
            ".legis-number",
            Query("", attr="data-bill-number"),
            "td:first-child",
        ),
        "title": FieldChain.of(
            ".bill-title",
            ".legislation-title",
            ".bill-name",
            "h3",
            "h4",
            ".title",
            "td:nth-child(2)",
        ),
        "status": FieldChain.of(
            ".status",
            ".bill-status",
            ".stage",
            ".progress",
            "td:nth-child(3)",
        ),
        "sponsor": FieldChain.of(".sponsor", ".introduced-by", ".bill-sponsor"),
        "summary": FieldChain.of(".summary", ".description", ".abstract"),
        "source_id": FieldChain.of(Query("", attr="data-bill")),
    },
)

VOTE_SCHEMA = EntitySchema(
    record_type=VoteRecord,
    containers=(
        ".vote-record",
        ".division",
        ".division-result",
        ".voting-result",
        "tr[data-vote]",
    ),
    fields={
        "bill_number": FieldChain.of(
            ".bill-number",
            ".legislation",
            Query("", attr="data-bill"),
            Query("[data-bill]", attr="data-bill"),
        ),
        "date": FieldChain.of(".vote-date", ".date", "time"),
        "result": FieldChain.of(".result", ".outcome"),
        "yes_count": FieldChain.of(".yes-votes", ".yeas", ".yea", ".ayes"),
        "no_count": FieldChain.of(".no-votes", ".nays", ".nay"),
        "abstain_count": FieldChain.of(".abstentions", ".abstain"),
    },
)

COMMITTEE_SCHEMA = EntitySchema(
    record_type=CommitteeRecord,
    containers=(
        ".committee",
        ".committee-item",
        ".committee-card",
        "tr:has(.committee-name)",
    ),
    fields={
        "name": FieldChain.of(".committee-name", ".name", "h3", "h4"),
        "committee_type": FieldChain.of(".committee-type", ".type"),
        "chair": FieldChain.of(".chair", ".chairperson"),
        "members": FieldChain.of(
            ".members li",
            ".committee-members li",
            ".members",
            ".committee-members",
            many=True,
        ),
    },
)

ELECTION_SCHEMA = EntitySchema(
    record_type=ElectionRecord,
    containers=(
        ".election",
        ".election-result",
        "tr:has(.election-date)",
    ),
    fields={
        "name": FieldChain.of(".election-name", ".name", "h3"),
        "date": FieldChain.of(".election-date", ".date", "time"),
        "election_type": FieldChain.of(".election-type", ".type"),
        "status": FieldChain.of(".election-status", ".status"),
        "results_url": FieldChain.of(
            Query(".results a", attr="href"),
            Query("a[href]", attr="href"),
        ),
    },
)

STATEMENT_SCHEMA = EntitySchema(
    record_type=StatementRecord,
    containers=(
        ".speech",
        ".statement",
        ".intervention",
        ".hansard-entry",
    ),
    fields={
        "speaker_name": FieldChain.of(".speaker", ".member-name", ".politician"),
        "content": FieldChain.of(".content", ".text", ".speech-text"),
        "date": FieldChain.of(".date", ".timestamp", "time"),
        "context": FieldChain.of(".context", ".subject", ".topic"),
    },
)

ENTITY_SCHEMAS: Dict[DataType, EntitySchema] = {
    DataType.POLITICIANS: POLITICIAN_SCHEMA,
    DataType.BILLS: BILL_SCHEMA,
    DataType.VOTES: VOTE_SCHEMA,
    DataType.COMMITTEES: COMMITTEE_SCHEMA,
    DataType.ELECTIONS: ELECTION_SCHEMA,
    DataType.STATEMENTS: STATEMENT_SCHEMA,
}
