"""Per-field merge policy.

A message that omits a field never regresses it: absent values carry the
last known value forward. Arrival order decides conflicts (last write wins
per field); embedded timestamps are not consulted.
"""

from __future__ import annotations

from racefeed.models.driver import DriverState
from racefeed.models.messages import TelemetryMessage


def merge_telemetry(existing: DriverState | None, message: TelemetryMessage) -> DriverState:
    """Merge a telemetry message into the driver's prior state."""
    if existing is None:
        existing = DriverState(code=message.driver)

    return DriverState(
        code=message.driver,
        lap=message.lap_number if message.lap_number is not None else existing.lap,
        rank=message.position if message.position is not None else existing.rank,
        km=message.position_from_start_km if message.position_from_start_km is not None else existing.km,
        speed_kmh=message.speed_kmh if message.speed_kmh is not None else existing.speed_kmh,
    )


def apply_rank(existing: DriverState | None, code: str, position: int) -> DriverState:
    """Leaderboard update: only ``rank`` changes; unseen drivers start at 0 km."""
    if existing is None:
        return DriverState(code=code, lap=None, rank=position, km=0.0, speed_kmh=None)
    if existing.rank == position:
        return existing
    return existing.model_copy(update={"rank": position})
