"""Thin client for the upstream market and prediction API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional

import httpx
from tenacity import RetryCallState, retry, stop_after_attempt, wait_fixed

from sgplab.config import get_settings

logger = logging.getLogger(__name__)


def _retry_log(retry_state: RetryCallState) -> None:  # pragma: no cover - logging helper
    attempt = retry_state.attempt_number
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning("Market API retry attempt %d due to %s", attempt, exception)


class MarketApiClient:
    """Convenient wrapper for the market API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        base_url = base_url or settings.market_api_base_url
        if not base_url:
            raise RuntimeError("BACKEND_API_URL is not configured.")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key or settings.market_api_key
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        self._client = httpx.Client(timeout=30.0, headers=headers, transport=transport)

    def __enter__(self) -> "MarketApiClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    @retry(stop=stop_after_attempt(3), wait=wait_fixed(1), after=_retry_log, reraise=True)
    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        response = self._client.request(method, url, params=params, json=json)
        response.raise_for_status()
        return response.json()

    def get_matches(self, status: str = "upcoming", limit: int = 100) -> Iterable[Dict[str, Any]]:
        """Return matches with the given status."""

        payload = self._request("GET", "/market", {"status": status, "limit": limit, "include_v2": "false"})
        return payload.get("matches", [])

    def get_prediction(self, match_id: str) -> Dict[str, Any]:
        """Fetch the model prediction payload, including ``additional_markets_v2``."""

        return self._request("POST", "/predict", json={"match_id": match_id, "include_analysis": False})
