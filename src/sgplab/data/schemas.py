"""Pydantic schemas for upstream market payloads and the market bundle."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field

Probability = Annotated[float, Field(ge=0.0, le=1.0)]


class DnbMarket(BaseModel):
    """Draw-no-bet probabilities."""

    model_config = ConfigDict(extra="ignore")

    home: Probability | None = None
    away: Probability | None = None


class TotalsLine(BaseModel):
    model_config = ConfigDict(extra="ignore")

    over: Probability | None = None
    under: Probability | None = None


class BttsMarket(BaseModel):
    """Both-teams-to-score probabilities."""

    model_config = ConfigDict(extra="ignore")

    yes: Probability | None = None
    no: Probability | None = None


class DoubleChanceMarket(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    home_or_draw: Probability | None = Field(default=None, alias="1X")
    draw_or_away: Probability | None = Field(default=None, alias="X2")
    home_or_away: Probability | None = Field(default=None, alias="12")


class MarketBundle(BaseModel):
    """Market families published for one match; any family may be missing.

    Totals are keyed by goal line in the upstream underscore notation
    (``"2_5"`` is the 2.5 goals line).
    """

    model_config = ConfigDict(extra="ignore")

    dnb: DnbMarket | None = None
    totals: dict[str, TotalsLine] | None = None
    btts: BttsMarket | None = None
    double_chance: DoubleChanceMarket | None = None

    def totals_line(self, key: str) -> TotalsLine | None:
        if self.totals is None:
            return None
        return self.totals.get(key)

    @classmethod
    def from_prediction(cls, prediction_data: dict[str, Any] | None) -> MarketBundle | None:
        """Extract the bundle from a stored prediction payload."""

        if not prediction_data:
            return None
        markets = prediction_data.get("additional_markets_v2")
        if not markets:
            return None
        return cls.model_validate(markets)


class NamedRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int | str | None = None
    name: str | None = None


class UpstreamMatchSchema(BaseModel):
    """One match as returned by the market API ``/market`` listing."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int | str | None = None
    match_id: int | str | None = None
    home: NamedRef | None = None
    away: NamedRef | None = None
    league: NamedRef | None = None
    kickoff_at: datetime | None = None
    status: str | None = None

    @property
    def resolved_id(self) -> str | None:
        raw = self.id if self.id is not None else self.match_id
        if raw is None or str(raw) in {"", "undefined", "null"}:
            return None
        return str(raw)

    @property
    def normalized_status(self) -> str:
        status = (self.status or "UPCOMING").upper()
        if status == "LIVE":
            return "LIVE"
        if status in {"FINISHED", "COMPLETED"}:
            return "FINISHED"
        return "UPCOMING"
