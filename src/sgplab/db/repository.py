"""Persistence boundary used by the parlay synchronizer."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload, sessionmaker

from sgplab.config import PARLAY_API_VERSION, PARLAY_TYPE_SINGLE_GAME
from sgplab.db.database import get_session
from sgplab.db.models import MarketMatch, ParlayConsensus, ParlayLeg


class DuplicateParlayError(RuntimeError):
    """Raised when a parlay with the same match and fingerprint already exists."""


@dataclass(frozen=True)
class MatchRecord:
    match_id: str
    home_team: str | None
    away_team: str | None
    league: str | None


@dataclass(frozen=True)
class ExistingParlay:
    parlay_id: str
    outcomes: tuple[str, ...]


@dataclass
class LegDraft:
    market_type: str
    outcome: str
    description: str
    home_team: str
    away_team: str
    model_prob: float
    decimal_odds: float
    edge: float
    leg_order: int


@dataclass
class ParlayDraft:
    match_id: str
    fingerprint: str
    combined_prob: float
    correlation_penalty: float
    adjusted_prob: float
    implied_odds: float
    edge_pct: float
    confidence_tier: str
    league_group: str | None
    kickoff: datetime
    kickoff_window: str
    legs: list[LegDraft] = field(default_factory=list)
    parlay_type: str = PARLAY_TYPE_SINGLE_GAME


class ParlayStore(Protocol):
    def find_match(self, match_id: str) -> MatchRecord | None: ...

    def find_overlapping_parlays(
        self, match_id: str, outcomes: Sequence[str]
    ) -> list[ExistingParlay]: ...

    def create_parlay(self, draft: ParlayDraft) -> str: ...


class SqlParlayStore:
    """SQLAlchemy-backed store; each write is one transaction."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self.session_factory = session_factory

    def find_match(self, match_id: str) -> MatchRecord | None:
        with get_session(self.session_factory) as session:
            match = session.get(MarketMatch, match_id)
            if match is None:
                return None
            return MatchRecord(
                match_id=match.match_id,
                home_team=match.home_team,
                away_team=match.away_team,
                league=match.league,
            )

    def find_overlapping_parlays(self, match_id: str, outcomes: Sequence[str]) -> list[ExistingParlay]:
        """Single-game parlays of the match sharing at least one leg outcome."""

        stmt = (
            select(ParlayConsensus)
            .where(
                ParlayConsensus.parlay_type == PARLAY_TYPE_SINGLE_GAME,
                ParlayConsensus.match_id == match_id,
                ParlayConsensus.legs.any(ParlayLeg.outcome.in_(list(outcomes))),
            )
            .options(selectinload(ParlayConsensus.legs))
        )
        with get_session(self.session_factory) as session:
            return [
                ExistingParlay(
                    parlay_id=parlay.parlay_id,
                    outcomes=tuple(leg.outcome for leg in parlay.legs),
                )
                for parlay in session.scalars(stmt)
            ]

    def create_parlay(self, draft: ParlayDraft) -> str:
        parlay_id = str(uuid.uuid4())
        now = datetime.utcnow()
        try:
            with get_session(self.session_factory) as session:
                parlay = ParlayConsensus(
                    parlay_id=parlay_id,
                    api_version=PARLAY_API_VERSION,
                    match_id=draft.match_id,
                    fingerprint=draft.fingerprint,
                    leg_count=len(draft.legs),
                    combined_prob=draft.combined_prob,
                    correlation_penalty=draft.correlation_penalty,
                    adjusted_prob=draft.adjusted_prob,
                    implied_odds=draft.implied_odds,
                    edge_pct=draft.edge_pct,
                    confidence_tier=draft.confidence_tier,
                    parlay_type=draft.parlay_type,
                    league_group=draft.league_group,
                    earliest_kickoff=draft.kickoff,
                    latest_kickoff=draft.kickoff,
                    kickoff_window=draft.kickoff_window,
                    status="active",
                    created_at=now,
                    synced_at=now,
                )
                parlay.legs = [
                    ParlayLeg(
                        match_id=draft.match_id,
                        market_type=leg.market_type,
                        outcome=leg.outcome,
                        description=leg.description,
                        home_team=leg.home_team,
                        away_team=leg.away_team,
                        model_prob=leg.model_prob,
                        decimal_odds=leg.decimal_odds,
                        edge=leg.edge,
                        leg_order=leg.leg_order,
                    )
                    for leg in draft.legs
                ]
                session.add(parlay)
        except IntegrityError as exc:
            if not self._fingerprint_stored(draft):
                raise
            raise DuplicateParlayError(
                f"Parlay {draft.fingerprint} already stored for match {draft.match_id}"
            ) from exc
        return parlay_id

    def _fingerprint_stored(self, draft: ParlayDraft) -> bool:
        """True when the (type, match, fingerprint) key is already taken."""

        stmt = select(ParlayConsensus.id).where(
            ParlayConsensus.parlay_type == draft.parlay_type,
            ParlayConsensus.match_id == draft.match_id,
            ParlayConsensus.fingerprint == draft.fingerprint,
        )
        with get_session(self.session_factory) as session:
            return session.scalars(stmt).first() is not None
