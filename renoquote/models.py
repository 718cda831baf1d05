import enum
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Enum, Float, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship

from .database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class QuoteStatus(str, enum.Enum):
    DRAFT = "draft"
    ANALYZING = "analyzing"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"


# Structural edits (sub-quotes, materials, ordering) are only allowed here
EDITABLE_STATUSES = (QuoteStatus.DRAFT, QuoteStatus.PENDING)

# Quote lifecycle: key may move to any status in its value list
STATUS_TRANSITIONS = {
    QuoteStatus.DRAFT: [QuoteStatus.ANALYZING, QuoteStatus.PENDING],
    QuoteStatus.ANALYZING: [QuoteStatus.PENDING],
    QuoteStatus.PENDING: [
        QuoteStatus.ANALYZING,
        QuoteStatus.APPROVED,
        QuoteStatus.REJECTED,
        QuoteStatus.EXPIRED,
    ],
    QuoteStatus.APPROVED: [QuoteStatus.EXPIRED],
    QuoteStatus.REJECTED: [],
    QuoteStatus.EXPIRED: [],
}


class User(Base):
    """Homeowners and contractors. Quotes belong to their owner."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    full_name = Column(String, nullable=True)
    role = Column(String, default="homeowner")  # 'homeowner' | 'contractor' | 'admin'
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    quotes = relationship("Quote", back_populates="owner", cascade="all, delete-orphan")


class Quote(Base):
    """Aggregate root. Totals are derived from sub-quotes, never edited directly."""
    __tablename__ = "quotes"

    id = Column(String, primary_key=True, default=_uuid)  # UUID
    owner_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Enum(QuoteStatus), default=QuoteStatus.DRAFT, nullable=False)
    room_type = Column(String, nullable=True)
    surface_area = Column(Float, nullable=True)
    quality_tier = Column(String, default="standard")
    notes = Column(Text, nullable=True)

    # Roll-ups
    materials_total = Column(Float, default=0.0)
    labor_total = Column(Float, default=0.0)
    total_amount = Column(Float, default=0.0)

    analysis_json = Column(JSON, nullable=True)  # Last consolidated analysis
    analyzed_at = Column(DateTime, nullable=True)
    approved_at = Column(DateTime, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    valid_days = Column(Integer, default=30)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", back_populates="quotes")
    sub_quotes = relationship(
        "SubQuote",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="SubQuote.priority",
    )
    photos = relationship("QuotePhoto", back_populates="quote", cascade="all, delete-orphan")


class SubQuote(Base):
    """One work-category line item within a quote."""
    __tablename__ = "sub_quotes"

    id = Column(String, primary_key=True, default=_uuid)
    quote_id = Column(String, ForeignKey("quotes.id"), nullable=False, index=True)
    work_category = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    labor_hours = Column(Float, default=0.0)
    labor_rate = Column(Float, default=0.0)
    labor_cost = Column(Float, default=0.0)
    materials_cost = Column(Float, default=0.0)
    total_cost = Column(Float, default=0.0)
    priority = Column(Integer, default=1)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    quote = relationship("Quote", back_populates="sub_quotes")
    materials = relationship("Material", back_populates="sub_quote", cascade="all, delete-orphan")


class Material(Base):
    __tablename__ = "materials"

    id = Column(String, primary_key=True, default=_uuid)
    sub_quote_id = Column(String, ForeignKey("sub_quotes.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    quantity = Column(Float, default=0.0)
    unit = Column(String, default="piece")
    unit_price = Column(Float, default=0.0)
    total_price = Column(Float, default=0.0)
    brand = Column(String, nullable=True)
    reference = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    sub_quote = relationship("SubQuote", back_populates="materials")


class QuotePhoto(Base):
    """Photo reference supplied by the upload collaborator. Bytes never stored here."""
    __tablename__ = "quote_photos"

    id = Column(String, primary_key=True, default=_uuid)
    quote_id = Column(String, ForeignKey("quotes.id"), nullable=False, index=True)
    url = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    explicit_categories = Column(JSON, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)

    quote = relationship("Quote", back_populates="photos")
