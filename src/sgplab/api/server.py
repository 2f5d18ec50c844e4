"""FastAPI backend for SGPLab."""

from __future__ import annotations

import logging
import secrets
from collections.abc import Iterator
from typing import Annotated, Any

from fastapi import Depends, FastAPI, Header, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload, sessionmaker

from sgplab import __version__
from sgplab.api.schemas import (
    CandidateLeg,
    CandidateResponse,
    ParlayLeg,
    ParlayListResponse,
    ParlayResponse,
    PreviewResponse,
    Quality,
    SyncFailure,
    SyncResponse,
)
from sgplab.config import (
    PARLAY_TYPE_SINGLE_GAME,
    TRADABLE_MIN_EDGE_PCT,
    TRADABLE_MIN_PROB,
    get_admin_api_key,
    get_cron_secret,
    get_settings,
)
from sgplab.data.provider import DatabaseSnapshotProvider, SnapshotFetchError, SnapshotProvider, load_snapshots
from sgplab.db.database import SessionLocal
from sgplab.db.models import ParlayConsensus
from sgplab.db.repository import ParlayStore, SqlParlayStore
from sgplab.parlays import quality
from sgplab.parlays.engine import build_parlays
from sgplab.parlays.types import CandidateParlay
from sgplab.scheduling.jobs import failure_payload, run_parlay_sync, sync_result_payload

logger = logging.getLogger(__name__)

app = FastAPI(
    title="SGPLab API",
    version=__version__,
    description="Single-game parlay generation and sync administration.",
)


def get_session_factory() -> sessionmaker[Session]:
    return SessionLocal


SessionFactoryDep = Annotated[sessionmaker, Depends(get_session_factory)]


def get_db(factory: SessionFactoryDep) -> Iterator[Session]:
    db = factory()
    try:
        yield db
    finally:
        db.close()


def get_provider(factory: SessionFactoryDep) -> SnapshotProvider:
    return DatabaseSnapshotProvider(factory)


def get_store(factory: SessionFactoryDep) -> ParlayStore:
    return SqlParlayStore(factory)


def require_admin(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> None:
    try:
        expected = get_admin_api_key()
    except RuntimeError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)) from exc
    if not x_api_key or not secrets.compare_digest(x_api_key, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


def require_cron(authorization: str | None = Header(default=None)) -> None:
    secret = get_cron_secret()
    if not secret:
        logger.error("CRON_SECRET not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Cron secret not configured",
        )
    if not authorization or not secrets.compare_digest(authorization, f"Bearer {secret}"):
        logger.warning("Unauthorized cron job attempt")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


SessionDep = Annotated[Session, Depends(get_db)]
ProviderDep = Annotated[SnapshotProvider, Depends(get_provider)]
StoreDep = Annotated[ParlayStore, Depends(get_store)]
AdminDep = Annotated[None, Depends(require_admin)]
CronDep = Annotated[None, Depends(require_cron)]
LimitQuery = Annotated[int, Query(ge=1, le=200)]
OffsetQuery = Annotated[int, Query(ge=0)]

SYNC_RESPONSES: dict[int | str, dict[str, Any]] = {500: {"model": SyncFailure}}


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


def _run_sync(provider: SnapshotProvider, store: ParlayStore, trigger: str) -> Any:
    logger.info("Syncing generated parlays (%s trigger)", trigger)
    try:
        stats = run_parlay_sync(
            provider,
            store,
            deadline_seconds=get_settings().sync_time_budget_seconds,
        )
    except Exception as exc:
        logger.error("Error syncing parlays: %s", exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=failure_payload(exc))
    return sync_result_payload(stats)


@app.post("/admin/parlays/sync", response_model=SyncResponse, responses=SYNC_RESPONSES)
def sync_parlays(_: AdminDep, provider: ProviderDep, store: StoreDep) -> Any:
    return _run_sync(provider, store, trigger="admin")


@app.post("/admin/parlays/sync-scheduled", response_model=SyncResponse, responses=SYNC_RESPONSES)
def sync_parlays_scheduled(_: CronDep, provider: ProviderDep, store: StoreDep) -> Any:
    return _run_sync(provider, store, trigger="cron")


@app.get("/admin/parlays/preview", response_model=PreviewResponse)
def preview_parlays(_: AdminDep, provider: ProviderDep) -> PreviewResponse:
    try:
        candidates = build_parlays(load_snapshots(provider))
    except SnapshotFetchError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return PreviewResponse(count=len(candidates), parlays=[_candidate_to_response(c) for c in candidates])


@app.get("/admin/parlays", response_model=ParlayListResponse)
def list_parlays(
    _: AdminDep,
    session: SessionDep,
    status_filter: Annotated[str, Query(alias="status")] = "active",
    parlay_type: str | None = None,
    confidence: str | None = None,
    limit: LimitQuery = 50,
    offset: OffsetQuery = 0,
) -> ParlayListResponse:
    filters = [ParlayConsensus.status == status_filter]
    if parlay_type:
        filters.append(ParlayConsensus.parlay_type == parlay_type)
    if confidence:
        filters.append(ParlayConsensus.confidence_tier == confidence)

    stmt = (
        select(ParlayConsensus)
        .where(*filters)
        .options(selectinload(ParlayConsensus.legs))
        .order_by(ParlayConsensus.edge_pct.desc(), ParlayConsensus.earliest_kickoff.asc())
        .limit(limit)
        .offset(offset)
    )
    rows = session.scalars(stmt).all()
    total = session.scalar(select(func.count()).select_from(ParlayConsensus).where(*filters)) or 0
    grouped = session.execute(
        select(
            ParlayConsensus.status,
            ParlayConsensus.parlay_type,
            ParlayConsensus.confidence_tier,
            func.count(),
        ).group_by(ParlayConsensus.status, ParlayConsensus.parlay_type, ParlayConsensus.confidence_tier)
    ).all()
    stats = {
        f"{row_status}_{row_type or 'unknown'}_{row_tier or 'unknown'}": count
        for row_status, row_type, row_tier, count in grouped
    }
    return ParlayListResponse(
        count=len(rows),
        total=total,
        parlays=[_parlay_to_response(row) for row in rows],
        stats=stats,
    )


def _candidate_to_response(candidate: CandidateParlay) -> CandidateResponse:
    return CandidateResponse(
        match_id=candidate.match_id,
        home_team=candidate.match.home_team,
        away_team=candidate.match.away_team,
        league=candidate.match.league,
        kickoff=candidate.match.kickoff,
        fingerprint=candidate.fingerprint,
        legs=[
            CandidateLeg(
                market_type=leg.market.value,
                side=leg.side.value,
                outcome=leg.outcome,
                probability=leg.probability,
                description=leg.description,
            )
            for leg in candidate.legs
        ],
        combined_prob=candidate.combined_prob,
        fair_odds=candidate.fair_odds,
        correlation_penalty=candidate.correlation_penalty,
        adjusted_prob=candidate.adjusted_prob,
        implied_odds=candidate.implied_odds,
        edge_pct=candidate.edge_pct,
        confidence=candidate.confidence.value,
    )


def _parlay_to_response(parlay: ParlayConsensus) -> ParlayResponse:
    score = quality.quality_score(parlay.edge_pct, parlay.combined_prob, parlay.confidence_tier)
    return ParlayResponse(
        id=parlay.id,
        parlay_id=parlay.parlay_id,
        api_version=parlay.api_version,
        match_id=parlay.match_id,
        leg_count=parlay.leg_count,
        legs=[
            ParlayLeg(
                id=leg.id,
                match_id=leg.match_id,
                market_type=leg.market_type,
                outcome=leg.outcome,
                outcome_label=quality.outcome_label(leg.outcome, leg.home_team, leg.away_team),
                home_team=leg.home_team,
                away_team=leg.away_team,
                model_prob=leg.model_prob,
                decimal_odds=leg.decimal_odds,
                edge=leg.edge,
                leg_order=leg.leg_order,
            )
            for leg in parlay.legs
        ],
        quality=Quality(
            is_tradable=quality.is_tradable(parlay.edge_pct, parlay.combined_prob),
            has_low_edge=parlay.edge_pct < TRADABLE_MIN_EDGE_PCT,
            has_low_probability=parlay.combined_prob < TRADABLE_MIN_PROB,
            risk_level=quality.risk_level(parlay.combined_prob),
            score=score,
            tier=quality.quality_tier(score),
        ),
        combined_prob=parlay.combined_prob,
        correlation_penalty=parlay.correlation_penalty,
        adjusted_prob=parlay.adjusted_prob,
        implied_odds=parlay.implied_odds,
        edge_pct=parlay.edge_pct,
        confidence_tier=parlay.confidence_tier,
        parlay_type=parlay.parlay_type or PARLAY_TYPE_SINGLE_GAME,
        league_group=parlay.league_group,
        earliest_kickoff=parlay.earliest_kickoff,
        latest_kickoff=parlay.latest_kickoff,
        kickoff_window=parlay.kickoff_window,
        status=parlay.status,
        created_at=parlay.created_at,
        synced_at=parlay.synced_at,
    )
