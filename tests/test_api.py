"""HTTP surface tests."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select

from sgplab.api import server
from sgplab.config import get_settings
from sgplab.data.provider import MatchInfo
from sgplab.db.models import ParlayConsensus

ADMIN = {"X-API-Key": "admin-key"}
CRON = {"Authorization": "Bearer cron-secret"}
RICH_MARKETS = {
    "dnb": {"home": 0.62, "away": 0.38},
    "btts": {"yes": 0.28, "no": 0.72},
    "totals": {"3_5": {"over": 0.33, "under": 0.67}},
}


@pytest.fixture()
def client(monkeypatch, session_factory) -> Iterator[TestClient]:
    monkeypatch.setenv("SGPLAB_ADMIN_API_KEY", "admin-key")
    monkeypatch.setenv("CRON_SECRET", "cron-secret")
    get_settings.cache_clear()
    server.app.dependency_overrides[server.get_session_factory] = lambda: session_factory
    with TestClient(server.app) as test_client:
        yield test_client
    server.app.dependency_overrides.clear()
    get_settings.cache_clear()


def _parlay_count(session_factory) -> int:
    with session_factory() as session:
        return session.scalar(select(func.count()).select_from(ParlayConsensus))


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_admin_endpoints_require_key(client: TestClient) -> None:
    assert client.post("/admin/parlays/sync").status_code == 401
    assert client.post("/admin/parlays/sync", headers={"X-API-Key": "nope"}).status_code == 401
    assert client.get("/admin/parlays/preview", headers={"X-API-Key": "nope"}).status_code == 401
    assert client.get("/admin/parlays").status_code == 401


def test_missing_admin_key_configuration(client: TestClient, monkeypatch) -> None:
    monkeypatch.delenv("SGPLAB_ADMIN_API_KEY")
    get_settings.cache_clear()
    response = client.post("/admin/parlays/sync", headers=ADMIN)
    assert response.status_code == 500


def test_admin_sync_creates_then_skips(client: TestClient, add_match, session_factory) -> None:
    add_match("rich", markets=RICH_MARKETS)

    first = client.post("/admin/parlays/sync", headers=ADMIN)
    assert first.status_code == 200
    assert first.json() == {
        "success": True,
        "message": "Synced 4 parlays (0 skipped, 0 errors)",
        "stats": {"generated": 4, "created": 4, "skipped": 0, "errors": 0},
    }

    second = client.post("/admin/parlays/sync", headers=ADMIN).json()
    assert second["stats"] == {"generated": 4, "created": 0, "skipped": 4, "errors": 0}
    assert _parlay_count(session_factory) == 4


class FailingProvider:
    def list_upcoming_matches(self) -> list[MatchInfo]:
        raise ConnectionError("market store offline")

    def fetch_markets(self, match_id: str):
        return None


def test_sync_failure_returns_error_payload(client: TestClient) -> None:
    server.app.dependency_overrides[server.get_provider] = FailingProvider
    response = client.post("/admin/parlays/sync", headers=ADMIN)
    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Failed to sync parlays"
    assert "market store offline" in body["details"]


def test_preview_surfaces_fetch_errors(client: TestClient) -> None:
    server.app.dependency_overrides[server.get_provider] = FailingProvider
    assert client.get("/admin/parlays/preview", headers=ADMIN).status_code == 502


def test_scheduled_sync_uses_bearer_secret(client: TestClient, add_match) -> None:
    add_match("rich", markets=RICH_MARKETS)
    assert client.post("/admin/parlays/sync-scheduled").status_code == 401
    assert client.post("/admin/parlays/sync-scheduled", headers={"Authorization": "cron-secret"}).status_code == 401
    assert client.post("/admin/parlays/sync-scheduled", headers=ADMIN).status_code == 401

    response = client.post("/admin/parlays/sync-scheduled", headers=CRON)
    assert response.status_code == 200
    assert response.json()["stats"]["created"] == 4


def test_scheduled_sync_without_configured_secret(client: TestClient, monkeypatch) -> None:
    monkeypatch.delenv("CRON_SECRET")
    get_settings.cache_clear()
    response = client.post("/admin/parlays/sync-scheduled", headers=CRON)
    assert response.status_code == 500


def test_preview_persists_nothing(client: TestClient, add_match, session_factory) -> None:
    add_match("rich", markets=RICH_MARKETS)
    response = client.get("/admin/parlays/preview", headers=ADMIN)
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 4
    probs = [p["combined_prob"] for p in body["parlays"]]
    assert probs == sorted(probs, reverse=True)
    assert body["parlays"][0]["fingerprint"] == "BTTS_NO|UNDER_3_5"
    assert _parlay_count(session_factory) == 0


def test_list_parlays_with_quality_and_filters(client: TestClient, add_match) -> None:
    add_match("rich", markets=RICH_MARKETS)
    client.post("/admin/parlays/sync", headers=ADMIN)

    body = client.get("/admin/parlays", headers=ADMIN).json()
    assert body["count"] == body["total"] == 4
    assert body["stats"] == {"active_single_game_high": 3, "active_single_game_medium": 1}

    top = body["parlays"][0]
    assert top["leg_count"] == 3
    assert top["confidence_tier"] == "medium"
    assert [leg["leg_order"] for leg in top["legs"]] == [1, 2, 3]
    labels = {leg["outcome"]: leg["outcome_label"] for leg in top["legs"]}
    assert labels == {
        "BTTS_NO": "Both Teams NOT to Score",
        "UNDER_3_5": "Under 3.5 Goals",
        "DNB_H": "Arsenal Draw No Bet",
    }
    assert top["quality"]["is_tradable"] is True
    assert top["quality"]["risk_level"] == "low"
    assert top["quality"]["tier"] in {"excellent", "good", "fair", "poor"}

    high = client.get("/admin/parlays", headers=ADMIN, params={"confidence": "high", "limit": 2}).json()
    assert high["count"] == 2
    assert high["total"] == 3
    assert all(p["confidence_tier"] == "high" for p in high["parlays"])

    archived = client.get("/admin/parlays", headers=ADMIN, params={"status": "archived"}).json()
    assert archived["count"] == 0


def test_list_parlays_validates_limit(client: TestClient) -> None:
    assert client.get("/admin/parlays", headers=ADMIN, params={"limit": 0}).status_code == 422
    assert client.get("/admin/parlays", headers=ADMIN, params={"limit": 201}).status_code == 422
