from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from models.base import Base, IdType, utcnow


class Politician(Base):
    """
    Elected official or sitting member, keyed by (name, jurisdiction).

    name and jurisdiction are the identity and never change after insert;
    everything else is refreshed by later runs.
    """
    __tablename__ = "politicians"

    id = Column(IdType, primary_key=True, autoincrement=True)

    # Natural key
    name = Column(String(255), nullable=False)
    jurisdiction = Column(String(100), nullable=False)

    # Mutable fields
    role = Column(String(255), nullable=True)
    tier = Column(String(20), nullable=True)  # Federal / Provincial / Municipal
    party = Column(String(200), nullable=True)
    constituency = Column(String(255), nullable=True)
    phone = Column(String(100), nullable=True)
    email = Column(String(255), nullable=True)
    website = Column(String(2048), nullable=True)
    image_url = Column(String(2048), nullable=True)
    source_id = Column(String(255), nullable=True)

    # Lineage
    source_name = Column(String(200), nullable=True)
    source_url = Column(String(2048), nullable=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    statements = relationship("PoliticianStatement", back_populates="politician")

    __table_args__ = (
        Index("uq_politician_name_jurisdiction", "name", "jurisdiction", unique=True),
        Index("idx_politician_name", "name"),
    )


class PoliticianStatement(Base):
    """
    Statement attributed to a politician (Hansard entries, speeches).

    Keyed by (politician_id, statement_date, content_hash); the full content
    is too long for a unique index so its SHA-256 stands in for it.
    """
    __tablename__ = "politician_statements"

    id = Column(IdType, primary_key=True, autoincrement=True)

    # Natural key
    politician_id = Column(IdType, ForeignKey("politicians.id"), nullable=False)
    statement_date = Column(String(100), nullable=False, default="")
    content_hash = Column(String(64), nullable=False)

    content = Column(Text, nullable=False)
    context = Column(Text, nullable=True)
    jurisdiction = Column(String(100), nullable=True)

    source_name = Column(String(200), nullable=True)
    source_url = Column(String(2048), nullable=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    politician = relationship("Politician", back_populates="statements")

    __table_args__ = (
        Index(
            "uq_statement_politician_date_hash",
            "politician_id", "statement_date", "content_hash",
            unique=True
        ),
    )
