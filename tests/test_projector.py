from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import pytest

from racefeed.exceptions import GeometryFetchError
from racefeed.geometry.projector import ProjectorState, TrackGeometryProjector
from racefeed.models.driver import CarMarker

_LINE = {"type": "LineString", "coordinates": [[0.0, 0.0], [1.0, 0.0]]}
_OTHER_LINE = {"type": "LineString", "coordinates": [[0.0, 0.0], [0.0, 1.0]]}


@dataclass
class _FakeSource:
    documents: dict[str, Any] = field(default_factory=dict)
    failures: dict[str, Exception] = field(default_factory=dict)
    gates: dict[str, asyncio.Event] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    async def fetch(self, track_id: str) -> Any:
        self.calls.append(track_id)
        gate = self.gates.get(track_id)
        if gate is not None:
            await gate.wait()
        if track_id in self.failures:
            raise self.failures[track_id]
        return self.documents[track_id]


@pytest.mark.asyncio
async def test_load_reaches_ready() -> None:
    projector = TrackGeometryProjector(_FakeSource(documents={"monaco": _LINE}))
    assert projector.state == ProjectorState.IDLE
    assert projector.map_scalar_to_point(10.0) is None

    geometry = await projector.set_track("monaco")

    assert geometry is not None
    assert projector.state == ProjectorState.READY
    assert projector.geometry is geometry
    point = projector.map_scalar_to_point(50.0)
    assert point is not None
    assert point.x == pytest.approx(500.0)


@pytest.mark.asyncio
async def test_fetch_failure_sets_failed_with_message() -> None:
    source = _FakeSource(failures={"monaco": GeometryFetchError("Failed to fetch GeoJSON: 404", status_code=404)})
    projector = TrackGeometryProjector(source)

    assert await projector.set_track("monaco") is None

    assert projector.state == ProjectorState.FAILED
    assert projector.error == "Failed to fetch GeoJSON: 404"
    assert projector.geometry is None


@pytest.mark.asyncio
async def test_points_only_document_fails() -> None:
    source = _FakeSource(documents={"dots": {"type": "Point", "coordinates": [1.0, 2.0]}})
    projector = TrackGeometryProjector(source)

    await projector.set_track("dots")

    assert projector.state == ProjectorState.FAILED
    assert projector.error is not None
    assert "No drawable paths" in projector.error


@pytest.mark.asyncio
async def test_stale_response_is_discarded() -> None:
    gate = asyncio.Event()
    source = _FakeSource(documents={"slow": _LINE, "fast": _OTHER_LINE}, gates={"slow": gate})
    projector = TrackGeometryProjector(source)

    slow_task = asyncio.ensure_future(projector.load("slow"))
    await asyncio.sleep(0)
    await projector.load("fast")
    gate.set()
    assert await slow_task is None

    assert projector.track_id == "fast"
    assert projector.state == ProjectorState.READY
    assert projector.geometry is not None
    assert projector.geometry.track_id == "fast"


@pytest.mark.asyncio
async def test_set_track_cancels_in_flight_load() -> None:
    gate = asyncio.Event()
    source = _FakeSource(documents={"slow": _LINE, "fast": _OTHER_LINE}, gates={"slow": gate})
    projector = TrackGeometryProjector(source)

    slow_task = projector.set_track("slow")
    await asyncio.sleep(0)
    fast_task = projector.set_track("fast")
    await fast_task

    assert slow_task.cancelled()
    assert projector.geometry is not None
    assert projector.geometry.track_id == "fast"
    await projector.aclose()


@pytest.mark.asyncio
async def test_same_track_reload_keeps_geometry_on_failure() -> None:
    source = _FakeSource(documents={"monaco": _LINE})
    projector = TrackGeometryProjector(source)
    previous = await projector.set_track("monaco")

    source.failures["monaco"] = GeometryFetchError("Request to x failed")
    await projector.set_track("monaco")

    assert projector.state == ProjectorState.FAILED
    assert projector.geometry is previous


@pytest.mark.asyncio
async def test_switching_track_invalidates_geometry() -> None:
    source = _FakeSource(
        documents={"monaco": _LINE},
        failures={"monza": GeometryFetchError("Failed to fetch GeoJSON: 500", status_code=500)},
    )
    projector = TrackGeometryProjector(source)
    await projector.set_track("monaco")

    await projector.set_track("monza")

    assert projector.geometry is None
    assert projector.place_markers([CarMarker(code="VER", team_color="#000", position_scalar=1.0)]) == []


@pytest.mark.asyncio
async def test_place_markers_with_highlight() -> None:
    projector = TrackGeometryProjector(_FakeSource(documents={"monaco": _LINE}))
    await projector.set_track("monaco")

    placed = projector.place_markers(
        [CarMarker(code="VER", team_color="#123456", position_scalar=10.0)],
        highlight_code="VER",
        highlight_scalar=90.0,
    )

    assert len(placed) == 1
    assert placed[0].highlighted
    assert placed[0].x == pytest.approx(900.0)


@pytest.mark.asyncio
async def test_malformed_multipolygon_member_is_skipped() -> None:
    document = {"type": "MultiPolygon", "coordinates": [[[[0, 0], [1, 1], [1, 0]]], 5]}
    projector = TrackGeometryProjector(_FakeSource(documents={"odd": document}))

    geometry = await projector.set_track("odd")

    assert projector.state == ProjectorState.READY
    assert geometry is not None
    assert len(geometry.drawable_paths) == 1


@pytest.mark.asyncio
async def test_malformed_line_position_fails_cleanly() -> None:
    document = {"type": "LineString", "coordinates": [[0, 0], [1, 1], {"x": 1}]}
    projector = TrackGeometryProjector(_FakeSource(documents={"odd": document}))

    assert await projector.set_track("odd") is None

    assert projector.state == ProjectorState.FAILED
    assert projector.error is not None
    assert projector.geometry is None
