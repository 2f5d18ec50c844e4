"""Reconcile generated parlay candidates with the persistent store."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime

from sgplab.config import PLACEHOLDER_TEAM_NAMES
from sgplab.db.repository import DuplicateParlayError, LegDraft, ParlayDraft, ParlayStore
from sgplab.parlays.engine import price_parlay
from sgplab.parlays.types import CandidateParlay

logger = logging.getLogger(__name__)

CREATED = "created"
SKIPPED = "skipped"

MATCH_LOCK_STRIPES = 64
_MATCH_LOCKS = tuple(threading.Lock() for _ in range(MATCH_LOCK_STRIPES))


def match_lock(match_id: str) -> threading.Lock:
    """Process-wide lock serializing lookup-then-create for one match.

    Matches share a fixed pool of locks, so a match id always maps to the
    same lock and the pool never grows.
    """

    return _MATCH_LOCKS[hash(match_id) % MATCH_LOCK_STRIPES]


def is_real_team(name: str | None) -> bool:
    return bool(name and name.strip()) and name.strip() not in PLACEHOLDER_TEAM_NAMES


def kickoff_window(kickoff: datetime, now: datetime) -> str:
    days = (kickoff.date() - now.date()).days
    if days <= 0:
        return "today"
    if days == 1:
        return "tomorrow"
    return "upcoming"


@dataclass
class SyncStats:
    generated: int = 0
    created: int = 0
    skipped: int = 0
    errors: int = 0
    stopped_early: bool = False

    @property
    def message(self) -> str:
        return f"Synced {self.created} parlays ({self.skipped} skipped, {self.errors} errors)"

    def as_dict(self) -> dict[str, int]:
        return {
            "generated": self.generated,
            "created": self.created,
            "skipped": self.skipped,
            "errors": self.errors,
        }


class ParlaySynchronizer:
    """Creates each candidate at most once per (match, leg set).

    Candidates are processed in the order given. Missing matches and
    placeholder team names are skipped, identical leg sets already stored are
    skipped, and a failure on one candidate is counted without stopping the
    run. Pricing is recomputed from the final leg count at write time.
    """

    def __init__(
        self,
        store: ParlayStore,
        *,
        deadline_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        now_fn: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self.store = store
        self.deadline_seconds = deadline_seconds
        self._clock = clock
        self._now = now_fn

    def sync(self, candidates: Sequence[CandidateParlay]) -> SyncStats:
        stats = SyncStats(generated=len(candidates))
        started = self._clock()
        for candidate in candidates:
            if self.deadline_seconds is not None and self._clock() - started >= self.deadline_seconds:
                stats.stopped_early = True
                logger.warning(
                    "Sync time budget of %.1fs exhausted; %d candidates left unprocessed",
                    self.deadline_seconds,
                    stats.generated - stats.created - stats.skipped - stats.errors,
                )
                break
            try:
                result = self._sync_one(candidate)
            except Exception as exc:
                stats.errors += 1
                logger.error("Error creating parlay for match %s: %s", candidate.match_id, exc)
                continue
            if result == CREATED:
                stats.created += 1
            else:
                stats.skipped += 1
        logger.info(
            "Completed syncing parlays: created=%d skipped=%d errors=%d total=%d",
            stats.created,
            stats.skipped,
            stats.errors,
            stats.generated,
        )
        return stats

    def _sync_one(self, candidate: CandidateParlay) -> str:
        match = self.store.find_match(candidate.match_id)
        if match is None:
            logger.info("Match %s not found, skipping parlay", candidate.match_id)
            return SKIPPED

        home_team = match.home_team or candidate.match.home_team
        away_team = match.away_team or candidate.match.away_team
        if not (is_real_team(home_team) and is_real_team(away_team)):
            logger.info(
                "Match %s has placeholder team names (%s vs %s), skipping parlay",
                candidate.match_id,
                home_team,
                away_team,
            )
            return SKIPPED

        outcomes = sorted(candidate.outcomes)
        with match_lock(candidate.match_id):
            existing = self.store.find_overlapping_parlays(candidate.match_id, outcomes)
            if any(sorted(parlay.outcomes) == outcomes for parlay in existing):
                logger.debug("Parlay %s already synced for match %s", candidate.fingerprint, candidate.match_id)
                return SKIPPED
            try:
                self.store.create_parlay(self._draft(candidate, home_team, away_team, match.league))
            except DuplicateParlayError:
                logger.info("Parlay %s was stored concurrently for match %s", candidate.fingerprint, candidate.match_id)
                return SKIPPED
        return CREATED

    def _draft(
        self,
        candidate: CandidateParlay,
        home_team: str,
        away_team: str,
        league: str | None,
    ) -> ParlayDraft:
        leg_count = len(candidate.legs)
        pricing = price_parlay(candidate.combined_prob, leg_count)
        return ParlayDraft(
            match_id=candidate.match_id,
            fingerprint=candidate.fingerprint,
            combined_prob=pricing.combined_prob,
            correlation_penalty=pricing.correlation_penalty,
            adjusted_prob=pricing.adjusted_prob,
            implied_odds=pricing.implied_odds,
            edge_pct=pricing.edge_pct,
            confidence_tier=candidate.confidence.value,
            league_group=league or candidate.match.league,
            kickoff=candidate.match.kickoff,
            kickoff_window=kickoff_window(candidate.match.kickoff, self._now()),
            legs=[
                LegDraft(
                    market_type=leg.market.value,
                    outcome=leg.outcome,
                    description=leg.description,
                    home_team=home_team,
                    away_team=away_team,
                    model_prob=leg.probability,
                    decimal_odds=1 / leg.probability,
                    edge=pricing.edge_pct / leg_count,
                    leg_order=order,
                )
                for order, leg in enumerate(candidate.legs, start=1)
            ],
        )
