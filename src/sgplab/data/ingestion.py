"""Data ingestion utilities for SGPLab."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from sgplab.config import get_settings
from sgplab.data.schemas import UpstreamMatchSchema
from sgplab.db.database import get_session
from sgplab.db.models import MarketMatch, MatchPrediction

logger = logging.getLogger(__name__)


class MarketSource(Protocol):
    def get_matches(self, status: str = "upcoming", limit: int = 100) -> Any: ...

    def get_prediction(self, match_id: str) -> dict[str, Any]: ...


def _as_utc_naive(value: datetime | None) -> datetime:
    if value is None:
        return datetime.utcnow()
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _upsert_match(session: Session, payload: UpstreamMatchSchema, match_id: str) -> MarketMatch:
    match = session.get(MarketMatch, match_id) or MarketMatch(match_id=match_id)
    match.home_team = payload.home.name if payload.home else None
    match.away_team = payload.away.name if payload.away else None
    match.league = payload.league.name if payload.league else None
    match.kickoff_date = _as_utc_naive(payload.kickoff_at)
    match.status = payload.normalized_status
    match.is_active = True
    match.last_synced_at = datetime.utcnow()
    session.add(match)
    return match


def _upsert_prediction(session: Session, match_id: str, data: dict[str, Any]) -> MatchPrediction:
    stmt = select(MatchPrediction).where(MatchPrediction.match_id == match_id)
    prediction = session.scalars(stmt).first() or MatchPrediction(match_id=match_id)
    prediction.prediction_data = data
    prediction.is_active = True
    prediction.updated_at = datetime.utcnow()
    session.add(prediction)
    return prediction


def sync_market_matches(
    client: MarketSource,
    session_factory: sessionmaker[Session] | None = None,
    limit: int | None = None,
) -> dict[str, int]:
    """Fetch upcoming matches and their predictions into the local store."""

    limit = limit or get_settings().market_fetch_limit
    summary = {"matches": 0, "predictions": 0}
    with get_session(session_factory) as session:
        for raw in client.get_matches("upcoming", limit):
            payload = UpstreamMatchSchema.model_validate(raw)
            match_id = payload.resolved_id
            if match_id is None:
                logger.warning("Skipping upstream match without an id: %s", raw)
                continue
            match = _upsert_match(session, payload, match_id)
            summary["matches"] += 1
            if match.status != "UPCOMING":
                continue
            prediction = client.get_prediction(match_id)
            if prediction:
                _upsert_prediction(session, match_id, prediction)
                summary["predictions"] += 1
        session.flush()
    logger.info("Ingested %d matches and %d predictions", summary["matches"], summary["predictions"])
    return summary
