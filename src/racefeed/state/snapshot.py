"""Immutable race snapshot produced by the store."""

from __future__ import annotations

from pydantic import Field

from racefeed.models._base import RaceFeedBaseModel
from racefeed.models.driver import DriverState
from racefeed.models.messages import Prediction


class RaceSnapshot(RaceFeedBaseModel):
    """Everything the store knows at one point in time.

    ``drivers`` preserves first-seen order, which is the tie-breaker for
    the leaderboard's stable sort. ``predictions`` is ``None`` until the
    first prediction message arrives.
    """

    drivers: dict[str, DriverState] = Field(default_factory=dict)
    predictions: tuple[Prediction, ...] | None = None
    prediction_mae_seconds: float | None = None
    error: str | None = None

    def driver(self, code: str) -> DriverState | None:
        return self.drivers.get(code)

    @property
    def codes(self) -> list[str]:
        return list(self.drivers)
