"""Derived views over a race snapshot.

All functions here are pure: they read a :class:`RaceSnapshot` and return
fresh row models, so they can be recomputed whenever the snapshot changes.
"""

from __future__ import annotations

import math

from racefeed._constants import MAX_POSITION_SCALAR
from racefeed.geometry.circuits import lap_length_km
from racefeed.ingestion.normalize import clamp
from racefeed.models.driver import CarMarker, DriverState, LeaderboardRow, PredictionRow
from racefeed.state.snapshot import RaceSnapshot

_INT32_MASK = 0xFFFFFFFF


def color_for_code(code: str) -> str:
    """Deterministic HSL colour for a driver code.

    Hashes UTF-16 code units with a wrapping 32-bit ``h * 31 + c`` so the
    same code yields the same hue in every session and client.
    """
    acc = 0
    units = code.encode("utf-16-le")
    for i in range(0, len(units), 2):
        acc = (acc * 31 + int.from_bytes(units[i : i + 2], "little")) & _INT32_MASK
    if acc >= 0x80000000:
        acc -= 0x100000000
    hue = abs(acc) % 360
    return f"hsl({hue} 70% 50%)"


def position_scalar(km: float, lap_length: float | None) -> float:
    """Percent of the current lap completed, in ``[0, 100)``.

    Without a positive lap length the distance itself is clamped into
    range (degraded mode).
    """
    if lap_length is not None and lap_length > 0:
        laps = km / lap_length
        frac = laps - math.floor(laps)
        return clamp(frac * 100.0, 0.0, MAX_POSITION_SCALAR)
    return clamp(km, 0.0, MAX_POSITION_SCALAR)


def _leaderboard_key(driver: DriverState) -> tuple[int, float]:
    if driver.rank is not None:
        return (0, float(driver.rank))
    return (1, -driver.km)


def build_leaderboard(snapshot: RaceSnapshot) -> list[LeaderboardRow]:
    """Rank-ordered rows; unranked drivers follow, furthest first.

    ``sorted`` is stable, so ties keep first-seen order.
    """
    ordered = sorted(snapshot.drivers.values(), key=_leaderboard_key)
    return [
        LeaderboardRow(
            position=driver.rank if driver.rank is not None else idx + 1,
            code=driver.code,
            color=color_for_code(driver.code),
        )
        for idx, driver in enumerate(ordered)
    ]


def _by_progress(snapshot: RaceSnapshot) -> list[DriverState]:
    return sorted(snapshot.drivers.values(), key=lambda d: d.km, reverse=True)


def _marker(driver: DriverState, lap_length: float | None) -> CarMarker:
    return CarMarker(
        code=driver.code,
        team_color=color_for_code(driver.code),
        position_scalar=position_scalar(driver.km, lap_length),
    )


def _lap_length_for(circuit: str | None) -> float | None:
    return lap_length_km(circuit) if circuit else None


def top_by_progress(snapshot: RaceSnapshot, circuit: str | None = None, *, n: int = 5) -> list[CarMarker]:
    """The *n* drivers with the most cumulative distance."""
    lap_length = _lap_length_for(circuit)
    return [_marker(driver, lap_length) for driver in _by_progress(snapshot)[:n]]


def all_positions(snapshot: RaceSnapshot, circuit: str | None = None) -> list[CarMarker]:
    """Every known driver, ordered by distance for deterministic iteration."""
    lap_length = _lap_length_for(circuit)
    return [_marker(driver, lap_length) for driver in _by_progress(snapshot)]


def top_predictions(snapshot: RaceSnapshot, *, n: int = 10) -> list[PredictionRow]:
    if not snapshot.predictions:
        return []
    return [
        PredictionRow(rank=idx + 1, driver=p.driver, predicted_seconds=p.predicted_seconds)
        for idx, p in enumerate(snapshot.predictions[:n])
    ]
