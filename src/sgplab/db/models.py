"""ORM models for SGPLab."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base declarative class."""


class MarketMatch(Base):
    """Ground-truth fixture metadata synced from the market API."""

    __tablename__ = "market_matches"

    match_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    home_team: Mapped[str | None] = mapped_column(String(128))
    away_team: Mapped[str | None] = mapped_column(String(128))
    league: Mapped[str | None] = mapped_column(String(128))
    kickoff_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="UPCOMING")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    last_synced_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    predictions: Mapped[list[MatchPrediction]] = relationship(
        back_populates="match",
        cascade="all, delete-orphan",
    )


class MatchPrediction(Base):
    """Model output for a match; ``prediction_data`` carries the market bundle."""

    __tablename__ = "match_predictions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    match_id: Mapped[str] = mapped_column(ForeignKey("market_matches.match_id"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    prediction_data: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    match: Mapped[MarketMatch] = relationship(back_populates="predictions")


class ParlayConsensus(Base):
    """A synced parlay with its pricing at sync time."""

    __tablename__ = "parlay_consensus"
    __table_args__ = (
        UniqueConstraint("parlay_type", "match_id", "fingerprint", name="uq_parlay_match_fingerprint"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    parlay_id: Mapped[str] = mapped_column(String(36), nullable=False, unique=True)
    api_version: Mapped[str] = mapped_column(String(8), default="v2")
    match_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    fingerprint: Mapped[str] = mapped_column(String(255), nullable=False)
    leg_count: Mapped[int] = mapped_column(Integer, nullable=False)
    combined_prob: Mapped[float] = mapped_column(Float, nullable=False)
    correlation_penalty: Mapped[float] = mapped_column(Float, nullable=False)
    adjusted_prob: Mapped[float] = mapped_column(Float, nullable=False)
    implied_odds: Mapped[float] = mapped_column(Float, nullable=False)
    edge_pct: Mapped[float] = mapped_column(Float, nullable=False)
    confidence_tier: Mapped[str] = mapped_column(String(16), nullable=False)
    parlay_type: Mapped[str] = mapped_column(String(32), nullable=False)
    league_group: Mapped[str | None] = mapped_column(String(128))
    earliest_kickoff: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    latest_kickoff: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    kickoff_window: Mapped[str] = mapped_column(String(16), default="upcoming")
    status: Mapped[str] = mapped_column(String(16), default="active")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    synced_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    legs: Mapped[list[ParlayLeg]] = relationship(
        back_populates="parlay",
        cascade="all, delete-orphan",
        order_by="ParlayLeg.leg_order",
    )


class ParlayLeg(Base):
    """One leg of a synced parlay, owned by its parent."""

    __tablename__ = "parlay_legs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    parlay_id: Mapped[int] = mapped_column(ForeignKey("parlay_consensus.id"), nullable=False)
    match_id: Mapped[str] = mapped_column(String(64), nullable=False)
    market_type: Mapped[str] = mapped_column(String(32), nullable=False)
    outcome: Mapped[str] = mapped_column(String(32), nullable=False)
    description: Mapped[str | None] = mapped_column(String(255))
    home_team: Mapped[str] = mapped_column(String(128), nullable=False)
    away_team: Mapped[str] = mapped_column(String(128), nullable=False)
    model_prob: Mapped[float] = mapped_column(Float, nullable=False)
    decimal_odds: Mapped[float] = mapped_column(Float, nullable=False)
    edge: Mapped[float] = mapped_column(Float, nullable=False)
    leg_order: Mapped[int] = mapped_column(Integer, default=1)

    parlay: Mapped[ParlayConsensus] = relationship(back_populates="legs")
