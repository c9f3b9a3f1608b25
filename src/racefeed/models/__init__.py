"""Pydantic models for feed messages, driver state, and derived rows."""

from racefeed.models.driver import CarMarker, DriverState, LeaderboardRow, PredictionRow
from racefeed.models.messages import (
    ErrorMessage,
    FeedMessage,
    InfoMessage,
    LeaderboardEntry,
    LeaderboardMessage,
    Prediction,
    PredictionMessage,
    PredictionPayload,
    TelemetryMessage,
)

__all__ = [
    "CarMarker",
    "DriverState",
    "ErrorMessage",
    "FeedMessage",
    "InfoMessage",
    "LeaderboardEntry",
    "LeaderboardMessage",
    "LeaderboardRow",
    "Prediction",
    "PredictionMessage",
    "PredictionPayload",
    "PredictionRow",
    "TelemetryMessage",
]
