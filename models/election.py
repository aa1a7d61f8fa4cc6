from sqlalchemy import Column, String, DateTime, Index
from models.base import Base, IdType, utcnow


class Election(Base):
    """General, provincial, municipal or by-election, keyed by (name, election_date, jurisdiction)"""
    __tablename__ = "elections"

    id = Column(IdType, primary_key=True, autoincrement=True)

    # Natural key
    name = Column(String(500), nullable=False)
    election_date = Column(String(100), nullable=False, default="")  # as published
    jurisdiction = Column(String(100), nullable=False)

    # Mutable fields
    election_type = Column(String(100), nullable=True)
    status = Column(String(100), nullable=True)
    results_url = Column(String(2048), nullable=True)

    source_name = Column(String(200), nullable=True)
    source_url = Column(String(2048), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index(
            "uq_election_name_date_jurisdiction",
            "name", "election_date", "jurisdiction",
            unique=True
        ),
    )
