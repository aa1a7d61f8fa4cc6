"""
Selector fallback chains and the evaluator that interprets them.

A FieldChain is an ordered tuple of Query values. For one candidate node the
first query that yields a non-empty value wins and later queries are never
consulted. An EntitySchema adds the container queries: the first container
that matches anything in the document is used for every entity in that
document, so strategies never mix within one page.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple, Type, Union
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from schemas.records import RecordBase

URL_ATTRIBUTES = frozenset({"href", "src"})


@dataclass(frozen=True)
class Query:
    """
    One structural query.

    css: CSS selector relative to the candidate node; empty means the node itself
    attr: Read this attribute instead of the element text
    prefix: Strip this prefix from the value (e.g. "mailto:")
    """
    css: str
    attr: Optional[str] = None
    prefix: Optional[str] = None


@dataclass(frozen=True)
class FieldChain:
    queries: Tuple[Query, ...]
    many: bool = False

    @classmethod
    def of(cls, *queries: Union[str, Query], many: bool = False) -> "FieldChain":
        """Build a chain; plain strings become text queries"""
        return cls(
            tuple(q if isinstance(q, Query) else Query(q) for q in queries),
            many=many
        )


@dataclass(frozen=True)
class EntitySchema:
    record_type: Type[RecordBase]
    containers: Tuple[str, ...]
    fields: Dict[str, FieldChain] = field(default_factory=dict)


class ExtractionResult:
    """Records extracted from one document, plus what was dropped"""

    def __init__(
        self,
        records: Optional[List[RecordBase]] = None,
        rejected: int = 0,
        container: Optional[str] = None
    ):
        self.records = list(records or [])
        self.rejected = rejected
        self.container = container

    def __iter__(self) -> Iterator[RecordBase]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def __getitem__(self, index):
        return self.records[index]

    def __repr__(self) -> str:
        return (
            f"ExtractionResult(records={len(self.records)}, "
            f"rejected={self.rejected}, container={self.container!r})"
        )


def _query_values(node: Tag, query: Query, base_url: Optional[str]) -> Iterator[str]:
    targets = [node] if not query.css else node.select(query.css)

    for target in targets:
        if query.attr:
            raw = target.get(query.attr)
            if isinstance(raw, list):
                raw = " ".join(raw)
            value = (raw or "").strip()
        else:
            value = target.get_text(" ", strip=True)

        if not value:
            continue

        if query.prefix and value.lower().startswith(query.prefix.lower()):
            value = value[len(query.prefix):].strip()
            if not value:
                continue
        elif query.attr in URL_ATTRIBUTES and base_url:
            value = urljoin(base_url, value)

        yield value


def evaluate_chain(node: Tag, chain: FieldChain, base_url: Optional[str] = None) -> Union[str, List[str]]:
    """
    Value of one field for one node.

    Returns "" (or [] for many=True chains) when no query in the chain matches.
    """
    for query in chain.queries:
        if chain.many:
            values = list(_query_values(node, query, base_url))
            if values:
                return values
        else:
            for value in _query_values(node, query, base_url):
                return value
    return [] if chain.many else ""


def select_candidates(soup: BeautifulSoup, containers: Tuple[str, ...]) -> Tuple[Optional[str], List[Tag]]:
    """First container query with at least one match, and its nodes"""
    for container in containers:
        nodes = soup.select(container)
        if nodes:
            return container, nodes
    return None, []


def evaluate_node(node: Tag, schema: EntitySchema, base_url: Optional[str] = None) -> Dict[str, object]:
    """
    Evaluate every field chain of a schema against one node.

    Dotted field names ("contact.email") are nested into sub-dicts.
    """
    values: Dict[str, object] = {}
    for name, chain in schema.fields.items():
        value = evaluate_chain(node, chain, base_url)
        if "." in name:
            outer, inner = name.split(".", 1)
            values.setdefault(outer, {})[inner] = value
        else:
            values[name] = value
    return values
