"""
Pydantic schemas for records extracted from government pages.

Records are transient: the extraction layer builds them, the normalizer
cleans them and the upsert store turns them into ORM rows. Each record kind
declares the fields extraction must find (REQUIRED_FIELDS) and how its
natural key is formed.
"""

import re
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from models.base import DataType

_COUNT_RE = re.compile(r"\d[\d,]*")


class RecordBase(BaseModel):
    """Fields shared by every record kind"""

    kind: ClassVar[DataType]
    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ()

    source_name: Optional[str] = None
    source_url: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def blank_strings_to_none(cls, data: Any) -> Any:
        """Extraction reports a missing field as ''; store it as None"""
        if isinstance(data, dict):
            return {
                k: (None if isinstance(v, str) and not v.strip() else v)
                for k, v in data.items()
            }
        return data

    def missing_key_fields(self) -> List[str]:
        """Required fields that came back empty"""
        return [name for name in self.REQUIRED_FIELDS if not getattr(self, name)]

    def has_natural_key(self) -> bool:
        return not self.missing_key_fields()

    def natural_key(self) -> Tuple[Any, ...]:
        raise NotImplementedError


class ContactInfo(BaseModel):
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def blank_strings_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                k: (None if isinstance(v, str) and not v.strip() else v)
                for k, v in data.items()
            }
        return data


class PoliticianRecord(RecordBase):
    kind: ClassVar[DataType] = DataType.POLITICIANS
    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("name",)

    name: Optional[str] = None
    role: Optional[str] = None
    party: Optional[str] = None
    constituency: Optional[str] = None
    jurisdiction: Optional[str] = None
    contact: ContactInfo = Field(default_factory=ContactInfo)
    image_url: Optional[str] = None
    source_id: Optional[str] = None
    tier: Optional[str] = None  # Federal / Provincial / Municipal, set by the normalizer

    def natural_key(self) -> Tuple[Any, ...]:
        return (self.name, self.jurisdiction or "")


class BillRecord(RecordBase):
    kind: ClassVar[DataType] = DataType.BILLS
    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("bill_number", "title")

    bill_number: Optional[str] = None
    title: Optional[str] = None
    status: Optional[str] = None
    sponsor: Optional[str] = None
    summary: Optional[str] = None
    category: Optional[str] = None
    jurisdiction: Optional[str] = None
    source_id: Optional[str] = None

    def natural_key(self) -> Tuple[Any, ...]:
        return (self.bill_number, self.title)


class VoteRecord(RecordBase):
    kind: ClassVar[DataType] = DataType.VOTES
    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("bill_number",)

    bill_number: Optional[str] = None
    date: Optional[str] = None
    result: Optional[str] = None
    yes_count: Optional[int] = None
    no_count: Optional[int] = None
    abstain_count: Optional[int] = None
    jurisdiction: Optional[str] = None

    @field_validator("yes_count", "no_count", "abstain_count", mode="before")
    @classmethod
    def parse_count(cls, v):
        """Tallies arrive as text like '152 yeas' or '1,204'"""
        if v is None or isinstance(v, int):
            return v
        match = _COUNT_RE.search(str(v))
        if not match:
            return None
        return int(match.group(0).replace(",", ""))

    def natural_key(self) -> Tuple[Any, ...]:
        return (self.bill_number, self.date or "", self.jurisdiction or "")


class CommitteeRecord(RecordBase):
    kind: ClassVar[DataType] = DataType.COMMITTEES
    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("name",)

    name: Optional[str] = None
    committee_type: Optional[str] = None
    chair: Optional[str] = None
    members: List[str] = Field(default_factory=list)
    jurisdiction: Optional[str] = None

    @field_validator("members", mode="before")
    @classmethod
    def clean_members(cls, v):
        """Ensure members is a list of names"""
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        return [
            m.strip()
            for item in v
            for m in re.split(r"[,;\n]", str(item))
            if m.strip()
        ]

    def natural_key(self) -> Tuple[Any, ...]:
        return (self.name, self.jurisdiction or "")


class ElectionRecord(RecordBase):
    kind: ClassVar[DataType] = DataType.ELECTIONS
    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("name",)

    name: Optional[str] = None
    date: Optional[str] = None
    election_type: Optional[str] = None
    status: Optional[str] = None
    jurisdiction: Optional[str] = None
    results_url: Optional[str] = None

    def natural_key(self) -> Tuple[Any, ...]:
        return (self.name, self.date or "", self.jurisdiction or "")


class StatementRecord(RecordBase):
    kind: ClassVar[DataType] = DataType.STATEMENTS
    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = ("speaker_name", "content")

    speaker_name: Optional[str] = None
    content: Optional[str] = None
    date: Optional[str] = None
    context: Optional[str] = None
    jurisdiction: Optional[str] = None

    def natural_key(self) -> Tuple[Any, ...]:
        # Speaker is resolved to a politician id by the store
        return (self.speaker_name, self.date or "", self.content)


RawRecord = Union[
    PoliticianRecord,
    BillRecord,
    VoteRecord,
    CommitteeRecord,
    ElectionRecord,
    StatementRecord,
]

RECORD_TYPES: Dict[DataType, Type[RecordBase]] = {
    DataType.POLITICIANS: PoliticianRecord,
    DataType.BILLS: BillRecord,
    DataType.VOTES: VoteRecord,
    DataType.COMMITTEES: CommitteeRecord,
    DataType.ELECTIONS: ElectionRecord,
    DataType.STATEMENTS: StatementRecord,
}
