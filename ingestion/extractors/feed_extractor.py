"""
RSS/Atom feed extractor.

LEGISinfo publishes bill feeds whose item titles look like
"C-21, An Act to amend certain Acts ...". Each entry becomes a BillRecord;
feeds for any other data type yield nothing.
"""

import re
from typing import Optional, Tuple

import feedparser
from bs4 import BeautifulSoup

from ingestion.extractors.selectors import ExtractionResult
from ingestion.fetcher import RawDocument
from models.base import DataType
from schemas.records import BillRecord
import logging

logger = logging.getLogger(__name__)

BILL_TITLE_RE = re.compile(r"^\s*([A-Z]{1,2}-\d+[A-Z]?)\s*[,:\-–—]\s*(.+)$", re.DOTALL)
SPONSOR_RE = re.compile(r"(Minister of [^,.;]+)")
BILL_STAGES = (
    "First Reading",
    "Second Reading",
    "Committee",
    "Report Stage",
    "Third Reading",
    "Royal Assent",
)


def split_bill_title(raw_title: str) -> Tuple[Optional[str], Optional[str]]:
    """Split "C-21, An Act ..." into ("C-21", "An Act ...")"""
    match = BILL_TITLE_RE.match(raw_title or "")
    if not match:
        return None, (raw_title or "").strip() or None
    return match.group(1), match.group(2).strip()


def _plain_text(markup: str) -> str:
    if not markup:
        return ""
    return BeautifulSoup(markup, "lxml").get_text(" ", strip=True)


def _stage(description: str) -> Optional[str]:
    # Last stage mentioned is the furthest reached
    found = None
    for stage in BILL_STAGES:
        if stage.lower() in description.lower():
            found = stage
    return found


class FeedExtractor:
    """Extract BillRecords from RSS/Atom feeds with feedparser"""

    def extract(self, document: RawDocument, data_type: DataType) -> ExtractionResult:
        if DataType(data_type) != DataType.BILLS:
            logger.info(f"Feed at {document.url} ignored for {DataType(data_type).value}")
            return ExtractionResult()

        feed = feedparser.parse(document.text)
        if feed.bozo and not feed.entries:
            logger.warning(f"Unparseable feed at {document.url}: {feed.bozo_exception}")
            return ExtractionResult()

        records = []
        rejected = 0

        for entry in feed.entries:
            bill_number, title = split_bill_title(entry.get("title", ""))
            description = _plain_text(entry.get("summary", entry.get("description", "")))
            sponsor = SPONSOR_RE.search(description)

            record = BillRecord(
                bill_number=bill_number,
                title=title,
                status=_stage(description),
                sponsor=sponsor.group(1) if sponsor else entry.get("author"),
                summary=description,
                source_id=entry.get("id", entry.get("link")),
                source_name=document.source_name,
                source_url=entry.get("link") or document.url,
            )

            if record.missing_key_fields():
                rejected += 1
                continue
            records.append(record)

        logger.info(
            f"Extracted {len(records)} bills from feed {document.url} ({rejected} rejected)"
        )
        return ExtractionResult(records, rejected=rejected, container="feed:entries")
