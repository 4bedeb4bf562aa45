"""SQLAlchemy table definitions."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import DeclarativeBase, sessionmaker


def _new_id() -> str:
    return uuid.uuid4().hex


class Base(DeclarativeBase):
    pass


class PortfolioRow(Base):
    __tablename__ = "portfolios"

    id = Column(String(32), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False)
    description = Column(Text, default="")
    created_at = Column(DateTime, default=datetime.utcnow)


class PropertyRow(Base):
    __tablename__ = "property_profiles"
    __table_args__ = (
        CheckConstraint("profile_type IN ('subject', 'competitor')", name="ck_profile_type"),
    )

    id = Column(String(32), primary_key=True, default=_new_id)
    portfolio_id = Column(String(32), ForeignKey("portfolios.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    address = Column(Text, default="")
    profile_type = Column(String(20), nullable=False, default="competitor", index=True)
    total_units = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)


class UnitRow(Base):
    __tablename__ = "property_units"

    id = Column(String(32), primary_key=True, default=_new_id)
    property_id = Column(String(32), ForeignKey("property_profiles.id"), nullable=False, index=True)
    unit_number = Column(String(50), nullable=False)
    tag = Column(String(100), nullable=True)
    bedrooms = Column(Integer, default=0)
    bathrooms = Column(Float, nullable=True)
    square_feet = Column(Integer, nullable=True)
    current_rent = Column(Float, nullable=True)
    status = Column(String(20), default="occupied", index=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class RelationshipRow(Base):
    """One row per unordered property pair.

    pair_low/pair_high hold the two property ids in sorted order so that the
    unique constraint covers both insertion orders.
    """

    __tablename__ = "competitive_relationships"
    __table_args__ = (
        UniqueConstraint("portfolio_id", "pair_low", "pair_high", name="uq_relationship_pair"),
        CheckConstraint("pair_low <> pair_high", name="ck_no_self_pair"),
        CheckConstraint(
            "relationship_type IN ('direct_competitor', 'indirect_competitor', "
            "'market_leader', 'market_follower')",
            name="ck_relationship_type",
        ),
    )

    id = Column(String(32), primary_key=True, default=_new_id)
    portfolio_id = Column(String(32), ForeignKey("portfolios.id"), nullable=False, index=True)
    property_a_id = Column(String(32), ForeignKey("property_profiles.id"), nullable=False)
    property_b_id = Column(String(32), ForeignKey("property_profiles.id"), nullable=False)
    pair_low = Column(String(32), nullable=False, index=True)
    pair_high = Column(String(32), nullable=False, index=True)
    relationship_type = Column(String(30), nullable=False, default="direct_competitor")
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)


def init_db(db_url: str = "sqlite:///compsetiq.db") -> sessionmaker:
    """Initialize the database and return a session factory."""
    engine = create_engine(db_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
