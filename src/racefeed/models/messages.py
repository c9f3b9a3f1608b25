"""Inbound feed message models.

The feed is a tagged union on ``type``. Each variant is parsed into its own
frozen model; :data:`FeedMessage` is the discriminated union used by the
decoder.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import Field, TypeAdapter, field_validator

from racefeed.ingestion.normalize import safe_float, safe_int, safe_str
from racefeed.models._base import RaceFeedBaseModel

DEFAULT_SERVER_ERROR = "server error"


class TelemetryMessage(RaceFeedBaseModel):
    """Per-driver telemetry. Every field except ``driver`` is optional.

    Parameters
    ----------
    driver : str
        Driver code (e.g. ``"VER"``).
    lap_number : int or None
        Current lap.
    position : int or None
        Race position (rank).
    position_from_start_km : float or None
        Cumulative distance from the start line in km.
    speed_kmh : float or None
        Instantaneous speed.
    """

    type: Literal["telemetry"] = "telemetry"
    driver: str
    lap_number: int | None = None
    position: int | None = None
    position_from_start_km: float | None = None
    speed_kmh: float | None = None

    @field_validator("driver", mode="before")
    @classmethod
    def _coerce_driver(cls, value: Any) -> str:
        text = safe_str(value)
        if not text:
            raise ValueError("driver must be non-empty")
        return text

    @field_validator("lap_number", "position", mode="before")
    @classmethod
    def _coerce_ints(cls, value: Any) -> int | None:
        return safe_int(value)

    @field_validator("position_from_start_km", "speed_kmh", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)


class LeaderboardEntry(RaceFeedBaseModel):
    position: int
    code: str

    @field_validator("code", mode="before")
    @classmethod
    def _coerce_code(cls, value: Any) -> str:
        text = safe_str(value)
        if not text:
            raise ValueError("code must be non-empty")
        return text


class LeaderboardMessage(RaceFeedBaseModel):
    """Rank-only partial update for the listed drivers."""

    type: Literal["leaderboard"] = "leaderboard"
    data: list[LeaderboardEntry] = Field(default_factory=list)


class Prediction(RaceFeedBaseModel):
    driver: str
    predicted_seconds: float


class PredictionPayload(RaceFeedBaseModel):
    predictions: list[Prediction] | None = None
    mae_seconds: float | None = None

    @field_validator("mae_seconds", mode="before")
    @classmethod
    def _coerce_mae(cls, value: Any) -> float | None:
        return safe_float(value)


class PredictionMessage(RaceFeedBaseModel):
    """Race-winner model output; replaces the whole predictions list."""

    type: Literal["prediction"] = "prediction"
    data: PredictionPayload | None = None


class InfoMessage(RaceFeedBaseModel):
    type: Literal["info"] = "info"
    message: str | None = None


class ErrorMessage(RaceFeedBaseModel):
    type: Literal["error"] = "error"
    message: str | None = None

    @property
    def text(self) -> str:
        """Human-readable error, with a generic fallback."""
        return self.message or DEFAULT_SERVER_ERROR


FeedMessage = Annotated[
    TelemetryMessage | LeaderboardMessage | PredictionMessage | InfoMessage | ErrorMessage,
    Field(discriminator="type"),
]

FEED_MESSAGE_ADAPTER: TypeAdapter[FeedMessage] = TypeAdapter(FeedMessage)
