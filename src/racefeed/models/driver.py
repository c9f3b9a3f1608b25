"""Per-driver state and derived row models."""

from __future__ import annotations

from pydantic import Field

from racefeed.models._base import RaceFeedBaseModel


class DriverState(RaceFeedBaseModel):
    """Canonical reconciled state for one driver.

    Parameters
    ----------
    code : str
        Stable driver identifier, unique within a session.
    lap : int or None
        Current lap, ``None`` until telemetry reports one.
    rank : int or None
        Race position from leaderboard or telemetry.
    km : float
        Cumulative distance from the start line.
    speed_kmh : float or None
        Last reported speed.
    """

    code: str
    lap: int | None = None
    rank: int | None = None
    km: float = 0.0
    speed_kmh: float | None = None


class LeaderboardRow(RaceFeedBaseModel):
    position: int
    code: str
    color: str


class CarMarker(RaceFeedBaseModel):
    """A driver's lap-fraction position, ready to be placed on a track."""

    code: str
    team_color: str
    position_scalar: float = Field(ge=0.0, lt=100.0)


class PredictionRow(RaceFeedBaseModel):
    rank: int
    driver: str
    predicted_seconds: float
