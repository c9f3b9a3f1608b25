from __future__ import annotations

import pytest

from racefeed.models.driver import DriverState
from racefeed.models.messages import Prediction
from racefeed.state.snapshot import RaceSnapshot
from racefeed.views import (
    all_positions,
    build_leaderboard,
    color_for_code,
    position_scalar,
    top_by_progress,
    top_predictions,
)


def _snapshot(*drivers: DriverState, **kwargs) -> RaceSnapshot:
    return RaceSnapshot(drivers={d.code: d for d in drivers}, **kwargs)


def test_position_scalar_wraps_laps() -> None:
    assert position_scalar(12.5, 5.0) == pytest.approx(50.0)
    assert position_scalar(0.0, 5.0) == 0.0
    assert position_scalar(10.0, 5.0) == 0.0


def test_position_scalar_stays_below_100() -> None:
    assert position_scalar(4.99999999, 5.0) <= 99.999
    assert position_scalar(-1.0, 5.0) >= 0.0


def test_position_scalar_degraded_mode_clamps_distance() -> None:
    assert position_scalar(42.0, None) == 42.0
    assert position_scalar(250.0, None) == 99.999
    assert position_scalar(-3.0, 0.0) == 0.0


def test_color_for_code_is_deterministic_hsl() -> None:
    assert color_for_code("VER") == color_for_code("VER")
    assert color_for_code("VER").startswith("hsl(")
    assert color_for_code("VER").endswith(" 70% 50%)")
    # h = (86 * 31 + 69) * 31 + 82 = 84867, 84867 % 360 = 267
    assert color_for_code("VER") == "hsl(267 70% 50%)"


def test_leaderboard_ranks_first_then_distance() -> None:
    snapshot = _snapshot(
        DriverState(code="AAA", km=30.0),
        DriverState(code="BBB", rank=2, km=10.0),
        DriverState(code="CCC", rank=1, km=5.0),
        DriverState(code="DDD", km=40.0),
    )

    rows = build_leaderboard(snapshot)

    assert [r.code for r in rows] == ["CCC", "BBB", "DDD", "AAA"]
    assert [r.position for r in rows] == [1, 2, 3, 4]
    assert rows[0].color == color_for_code("CCC")


def test_leaderboard_ties_keep_first_seen_order() -> None:
    snapshot = _snapshot(
        DriverState(code="ZZZ", km=10.0),
        DriverState(code="AAA", km=10.0),
    )

    assert [r.code for r in build_leaderboard(snapshot)] == ["ZZZ", "AAA"]


def test_top_by_progress_limits_and_orders() -> None:
    snapshot = _snapshot(*(DriverState(code=f"D{i:02d}", km=float(i)) for i in range(8)))

    top = top_by_progress(snapshot, "monaco", n=5)

    assert [m.code for m in top] == ["D07", "D06", "D05", "D04", "D03"]
    assert top[0].position_scalar == pytest.approx(7.0 / 3.32 % 1 * 100)


def test_all_positions_unknown_circuit_uses_default_lap() -> None:
    snapshot = _snapshot(DriverState(code="VER", km=12.5))

    (marker,) = all_positions(snapshot, "nowhere")

    assert marker.position_scalar == pytest.approx(50.0)
    assert marker.team_color == color_for_code("VER")


def test_all_positions_without_circuit_is_degraded() -> None:
    snapshot = _snapshot(DriverState(code="VER", km=12.5))

    (marker,) = all_positions(snapshot)

    assert marker.position_scalar == pytest.approx(12.5)


def test_top_predictions() -> None:
    assert top_predictions(RaceSnapshot()) == []

    snapshot = RaceSnapshot(
        predictions=tuple(Prediction(driver=f"D{i}", predicted_seconds=5000.0 + i) for i in range(12)),
    )
    rows = top_predictions(snapshot)

    assert len(rows) == 10
    assert rows[0].rank == 1
    assert rows[0].driver == "D0"
    assert rows[-1].rank == 10
