from sqlalchemy import Column, String, Text, Integer, DateTime, Index
from models.base import Base, IdType, utcnow


class Bill(Base):
    """
    Legislation keyed by (bill_number, title).

    The title is part of the identity: bill numbers are reused across
    sessions, so "C-21" with a materially different title is another bill.
    """
    __tablename__ = "bills"

    id = Column(IdType, primary_key=True, autoincrement=True)

    # Natural key
    bill_number = Column(String(50), nullable=False)
    title = Column(String(1000), nullable=False)

    # Mutable fields
    status = Column(String(255), nullable=True)
    sponsor = Column(String(255), nullable=True)
    summary = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)
    jurisdiction = Column(String(100), nullable=True, index=True)
    source_id = Column(String(255), nullable=True)

    source_name = Column(String(200), nullable=True)
    source_url = Column(String(2048), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("uq_bill_number_title", "bill_number", "title", unique=True),
    )


class VotingRecord(Base):
    """Recorded division on a bill, keyed by (bill_number, vote_date, jurisdiction)"""
    __tablename__ = "voting_records"

    id = Column(IdType, primary_key=True, autoincrement=True)

    # Natural key
    bill_number = Column(String(50), nullable=False)
    vote_date = Column(String(100), nullable=False, default="")  # as published
    jurisdiction = Column(String(100), nullable=False)

    # Mutable fields
    result = Column(String(255), nullable=True)
    yes_count = Column(Integer, nullable=True)
    no_count = Column(Integer, nullable=True)
    abstain_count = Column(Integer, nullable=True)

    source_name = Column(String(200), nullable=True)
    source_url = Column(String(2048), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index(
            "uq_vote_bill_date_jurisdiction",
            "bill_number", "vote_date", "jurisdiction",
            unique=True
        ),
    )
