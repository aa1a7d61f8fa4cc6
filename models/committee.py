from sqlalchemy import Column, String, DateTime, Index
from models.base import Base, IdType, JSONType, utcnow


class Committee(Base):
    """Standing or special committee, keyed by (name, jurisdiction)"""
    __tablename__ = "committees"

    id = Column(IdType, primary_key=True, autoincrement=True)

    # Natural key
    name = Column(String(500), nullable=False)
    jurisdiction = Column(String(100), nullable=False)

    # Mutable fields
    committee_type = Column(String(200), nullable=True)
    chair = Column(String(255), nullable=True)
    members = Column(JSONType, nullable=True)  # list of member names

    source_name = Column(String(200), nullable=True)
    source_url = Column(String(2048), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("uq_committee_name_jurisdiction", "name", "jurisdiction", unique=True),
    )
