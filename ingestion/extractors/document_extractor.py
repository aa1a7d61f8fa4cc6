"""
Extraction entry point used by the runner.

Routes feeds to the FeedExtractor and everything else to the HtmlExtractor.
"""

from typing import Optional

from ingestion.extractors.feed_extractor import FeedExtractor
from ingestion.extractors.html_extractor import HtmlExtractor
from ingestion.extractors.selectors import ExtractionResult
from ingestion.fetcher import RawDocument
from models.base import DataType


class DocumentExtractor:
    def __init__(
        self,
        html_extractor: Optional[HtmlExtractor] = None,
        feed_extractor: Optional[FeedExtractor] = None
    ):
        self.html_extractor = html_extractor or HtmlExtractor()
        self.feed_extractor = feed_extractor or FeedExtractor()

    def extract(self, document: RawDocument, data_type: DataType) -> ExtractionResult:
        if document.is_feed:
            return self.feed_extractor.extract(document, data_type)
        return self.html_extractor.extract(document, data_type)
