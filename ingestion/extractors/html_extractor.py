"""
HTML extractor: turns a fetched page into typed records using entity schemas.
"""

from typing import Dict, Optional

from bs4 import BeautifulSoup
from pydantic import ValidationError

from ingestion.extractors.entity_schemas import ENTITY_SCHEMAS
from ingestion.extractors.selectors import (
    EntitySchema,
    ExtractionResult,
    evaluate_node,
    select_candidates,
)
from ingestion.fetcher import RawDocument
from models.base import DataType
import logging

logger = logging.getLogger(__name__)


class HtmlExtractor:
    """
    Extract records from HTML markup.

    Pure tree traversal: no network access, no side effects. A page with
    no matching container yields an empty result rather than an error.
    """

    def __init__(self, schemas: Optional[Dict[DataType, EntitySchema]] = None):
        self.schemas = schemas or ENTITY_SCHEMAS

    def extract(self, document: RawDocument, data_type: DataType) -> ExtractionResult:
        schema = self.schemas.get(DataType(data_type))
        if schema is None:
            logger.warning(f"No entity schema for data type {data_type}")
            return ExtractionResult()

        soup = BeautifulSoup(document.text, "lxml")
        container, nodes = select_candidates(soup, schema.containers)

        if container is None:
            logger.info(
                f"No {DataType(data_type).value} containers found in {document.url}"
            )
            return ExtractionResult()

        records = []
        rejected = 0

        for node in nodes:
            values = evaluate_node(node, schema, base_url=document.url)
            values["source_name"] = document.source_name
            values["source_url"] = document.url

            try:
                record = schema.record_type(**values)
            except ValidationError as e:
                logger.debug(f"Rejected {schema.record_type.__name__} from {document.url}: {e}")
                rejected += 1
                continue

            missing = record.missing_key_fields()
            if missing:
                logger.debug(
                    f"Rejected {schema.record_type.__name__} from {document.url}: "
                    f"missing {', '.join(missing)}"
                )
                rejected += 1
                continue

            records.append(record)

        logger.info(
            f"Extracted {len(records)} {DataType(data_type).value} from {document.url} "
            f"using '{container}' ({rejected} rejected)"
        )
        return ExtractionResult(records, rejected=rejected, container=container)
