"""Scheduling entry points."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict

from sgplab.config import configure_logging, get_settings
from sgplab.data.ingestion import sync_market_matches
from sgplab.data.market_client import MarketApiClient
from sgplab.data.provider import DatabaseSnapshotProvider, SnapshotProvider, load_snapshots
from sgplab.db.database import init_db
from sgplab.db.repository import ParlayStore, SqlParlayStore
from sgplab.parlays.engine import build_parlays
from sgplab.parlays.sync import ParlaySynchronizer, SyncStats

logger = logging.getLogger(__name__)


def run_parlay_sync(
    provider: SnapshotProvider,
    store: ParlayStore,
    deadline_seconds: float | None = None,
) -> SyncStats:
    """Run one full pass: load snapshots -> generate -> rank -> synchronize."""

    snapshots = load_snapshots(provider)
    candidates = build_parlays(snapshots)
    synchronizer = ParlaySynchronizer(store, deadline_seconds=deadline_seconds)
    return synchronizer.sync(candidates)


def sync_result_payload(stats: SyncStats) -> Dict[str, Any]:
    return {"success": True, "message": stats.message, "stats": stats.as_dict()}


def failure_payload(exc: Exception) -> Dict[str, Any]:
    return {"success": False, "error": "Failed to sync parlays", "details": str(exc)}


def main(argv: list[str] | None = None) -> int:  # pragma: no cover - CLI convenience
    parser = argparse.ArgumentParser(description="Generate and sync single-game parlays")
    parser.add_argument("--ingest", action="store_true", help="Pull upcoming matches from the market API first")
    parser.add_argument("--time-budget", type=float, default=None, help="Stop syncing after this many seconds")
    args = parser.parse_args(argv)

    configure_logging()
    settings = get_settings()
    init_db()
    try:
        if args.ingest:
            with MarketApiClient() as client:
                sync_market_matches(client)
        stats = run_parlay_sync(
            DatabaseSnapshotProvider(),
            SqlParlayStore(),
            deadline_seconds=args.time_budget or settings.sync_time_budget_seconds,
        )
    except Exception as exc:
        logger.error("Parlay sync failed: %s", exc)
        print(json.dumps(failure_payload(exc)))
        return 1
    print(json.dumps(sync_result_payload(stats)))
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
