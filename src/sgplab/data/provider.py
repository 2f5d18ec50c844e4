"""Market snapshot sources feeding parlay generation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from sgplab.data.schemas import MarketBundle
from sgplab.db.database import get_session
from sgplab.db.models import MarketMatch, MatchPrediction
from sgplab.parlays.types import MatchSnapshot

logger = logging.getLogger(__name__)


class SnapshotFetchError(RuntimeError):
    """The upstream match or market source could not be read."""


@dataclass(frozen=True)
class MatchInfo:
    match_id: str
    home_team: str
    away_team: str
    league: str
    kickoff: datetime


class SnapshotProvider(Protocol):
    def list_upcoming_matches(self) -> list[MatchInfo]: ...

    def fetch_markets(self, match_id: str) -> MarketBundle | None: ...


class DatabaseSnapshotProvider:
    """Reads upcoming active matches and their latest active prediction payload."""

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        now_fn=datetime.utcnow,
    ) -> None:
        self.session_factory = session_factory
        self._now = now_fn

    def list_upcoming_matches(self) -> list[MatchInfo]:
        stmt = (
            select(MarketMatch)
            .where(
                MarketMatch.status == "UPCOMING",
                MarketMatch.is_active.is_(True),
                MarketMatch.kickoff_date >= self._now(),
            )
            .order_by(MarketMatch.kickoff_date.asc())
        )
        with get_session(self.session_factory) as session:
            return [
                MatchInfo(
                    match_id=match.match_id,
                    home_team=match.home_team or "",
                    away_team=match.away_team or "",
                    league=match.league or "",
                    kickoff=match.kickoff_date,
                )
                for match in session.scalars(stmt)
            ]

    def fetch_markets(self, match_id: str) -> MarketBundle | None:
        stmt = (
            select(MatchPrediction)
            .where(
                MatchPrediction.match_id == match_id,
                MatchPrediction.is_active.is_(True),
            )
            .order_by(MatchPrediction.updated_at.desc())
            .limit(1)
        )
        with get_session(self.session_factory) as session:
            prediction = session.scalars(stmt).first()
            if prediction is None:
                return None
            try:
                return MarketBundle.from_prediction(prediction.prediction_data)
            except ValidationError as exc:
                logger.warning("Ignoring malformed market data for match %s: %s", match_id, exc)
                return None


def load_snapshots(provider: SnapshotProvider) -> list[MatchSnapshot]:
    """Fetch every upcoming match with a market bundle; any source failure aborts."""

    try:
        matches = provider.list_upcoming_matches()
        snapshots: list[MatchSnapshot] = []
        for match in matches:
            bundle = provider.fetch_markets(match.match_id)
            if bundle is None:
                continue
            snapshots.append(
                MatchSnapshot(
                    match_id=match.match_id,
                    home_team=match.home_team,
                    away_team=match.away_team,
                    league=match.league,
                    kickoff=match.kickoff,
                    markets=bundle,
                )
            )
    except Exception as exc:
        raise SnapshotFetchError(f"Failed to load market snapshots: {exc}") from exc
    logger.info("Loaded %d market snapshots from %d upcoming matches", len(snapshots), len(matches))
    return snapshots
