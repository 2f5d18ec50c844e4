"""Pydantic schemas for the SGPLab API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class SyncStats(BaseModel):
    generated: int
    created: int
    skipped: int
    errors: int


class SyncResponse(BaseModel):
    success: bool = True
    message: str
    stats: SyncStats


class SyncFailure(BaseModel):
    success: bool = False
    error: str
    details: str


class CandidateLeg(BaseModel):
    market_type: str
    side: str
    outcome: str
    probability: float
    description: str


class CandidateResponse(BaseModel):
    match_id: str
    home_team: str
    away_team: str
    league: str
    kickoff: datetime
    fingerprint: str
    legs: list[CandidateLeg]
    combined_prob: float
    fair_odds: float
    correlation_penalty: float
    adjusted_prob: float
    implied_odds: float
    edge_pct: float
    confidence: str


class PreviewResponse(BaseModel):
    count: int
    parlays: list[CandidateResponse]


class ParlayLeg(BaseModel):
    id: int
    match_id: str
    market_type: str
    outcome: str
    outcome_label: str
    home_team: str
    away_team: str
    model_prob: float
    decimal_odds: float
    edge: float
    leg_order: int


class Quality(BaseModel):
    is_tradable: bool
    has_low_edge: bool
    has_low_probability: bool
    risk_level: str
    score: float
    tier: str


class ParlayResponse(BaseModel):
    id: int
    parlay_id: str
    api_version: str
    match_id: str
    leg_count: int
    legs: list[ParlayLeg]
    quality: Quality
    combined_prob: float
    correlation_penalty: float
    adjusted_prob: float
    implied_odds: float
    edge_pct: float
    confidence_tier: str
    parlay_type: str
    league_group: str | None
    earliest_kickoff: datetime
    latest_kickoff: datetime
    kickoff_window: str
    status: str
    created_at: datetime
    synced_at: datetime


class ParlayListResponse(BaseModel):
    success: bool = True
    count: int
    total: int
    parlays: list[ParlayResponse]
    stats: dict[str, int] = Field(default_factory=dict)
