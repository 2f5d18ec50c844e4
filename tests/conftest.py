"""Shared fixtures for SGPLab tests."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime, timedelta
from typing import Any

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from sgplab.data.schemas import MarketBundle
from sgplab.db.models import Base, MarketMatch, MatchPrediction
from sgplab.parlays.types import MatchSnapshot

KICKOFF = datetime.utcnow().replace(microsecond=0) + timedelta(days=2)


@pytest.fixture()
def session_factory() -> Iterator[sessionmaker[Session]]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    yield sessionmaker(bind=engine, class_=Session, expire_on_commit=False, autoflush=False)
    engine.dispose()


@pytest.fixture()
def make_snapshot() -> Callable[..., MatchSnapshot]:
    def _make(
        match_id: str,
        markets: dict[str, Any],
        home_team: str = "Arsenal",
        away_team: str = "Chelsea",
        league: str = "Premier League",
    ) -> MatchSnapshot:
        return MatchSnapshot(
            match_id=match_id,
            home_team=home_team,
            away_team=away_team,
            league=league,
            kickoff=KICKOFF,
            markets=MarketBundle.model_validate(markets),
        )

    return _make


@pytest.fixture()
def add_match(session_factory: sessionmaker[Session]) -> Callable[..., None]:
    def _add(
        match_id: str,
        home_team: str | None = "Arsenal",
        away_team: str | None = "Chelsea",
        markets: dict[str, Any] | None = None,
        status: str = "UPCOMING",
        kickoff: datetime = KICKOFF,
        is_active: bool = True,
    ) -> None:
        with session_factory() as session:
            session.add(
                MarketMatch(
                    match_id=match_id,
                    home_team=home_team,
                    away_team=away_team,
                    league="Premier League",
                    kickoff_date=kickoff,
                    status=status,
                    is_active=is_active,
                )
            )
            if markets is not None:
                session.add(
                    MatchPrediction(
                        match_id=match_id,
                        prediction_data={"additional_markets_v2": markets},
                    )
                )
            session.commit()

    return _add

