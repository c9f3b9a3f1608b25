from __future__ import annotations

import numpy as np
import pytest

from racefeed.exceptions import GeometryParseError, NoDrawablePathError, UnsupportedGeometryError
from racefeed.geometry.circuits import geometry_url, lap_length_km, resolve_locator
from racefeed.geometry.geojson import drawable_parts, normalize_document
from racefeed.geometry.path import DrawablePath
from racefeed.geometry.projection import MercatorProjection
from racefeed.geometry.render import render_svg
from racefeed.geometry.track import HIGHLIGHT_COLOR, build_track_geometry
from racefeed.models.driver import CarMarker

_EQUATOR_LINE = {"type": "LineString", "coordinates": [[0.0, 0.0], [1.0, 0.0]]}


def _build(document: object, padding: float = 20.0):
    return build_track_geometry(
        "test",
        document,
        projection=MercatorProjection(),
        canvas_size=(1000.0, 1000.0),
        padding=padding,
    )


def test_normalize_document_shapes() -> None:
    assert len(normalize_document(_EQUATOR_LINE)) == 1
    assert len(normalize_document({"type": "Feature", "geometry": _EQUATOR_LINE})) == 1
    collection = {"type": "FeatureCollection", "features": [{"type": "Feature", "geometry": _EQUATOR_LINE}] * 2}
    assert len(normalize_document(collection)) == 2
    assert len(normalize_document({"features": [{"geometry": _EQUATOR_LINE}]})) == 1


def test_normalize_document_rejects_unsupported() -> None:
    with pytest.raises(UnsupportedGeometryError):
        normalize_document({"type": "Topology", "objects": {}})
    with pytest.raises(UnsupportedGeometryError):
        normalize_document({})
    with pytest.raises(UnsupportedGeometryError):
        normalize_document([1, 2, 3])


def test_drawable_parts_split_multi_geometries() -> None:
    multi_line = {
        "type": "MultiLineString",
        "coordinates": [
            [[0, 0], [1, 0]],
            [[0, 1], [1, 1]],
            [[0, 2], [1, 2]],
        ],
    }
    parts = drawable_parts(multi_line)
    assert len(parts) == 3
    assert not any(p.closed for p in parts)

    multi_polygon = {
        "type": "MultiPolygon",
        "coordinates": [
            [[[0, 0], [1, 0], [1, 1], [0, 0]]],
            [[[2, 0], [3, 0], [3, 1], [2, 0]], [[2.2, 0.1], [2.8, 0.1], [2.8, 0.5], [2.2, 0.1]]],
        ],
    }
    parts = drawable_parts(multi_polygon)
    assert [len(p.rings) for p in parts] == [1, 2]
    assert all(p.closed for p in parts)


def test_drawable_parts_collection_is_one_level_deep() -> None:
    collection = {
        "type": "GeometryCollection",
        "geometries": [
            _EQUATOR_LINE,
            {"type": "Point", "coordinates": [0.5, 0.5]},
            {"type": "GeometryCollection", "geometries": [_EQUATOR_LINE]},
        ],
    }
    assert len(drawable_parts(collection)) == 1


def test_multilinestring_builds_three_paths() -> None:
    document = {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": {
                    "type": "MultiLineString",
                    "coordinates": [
                        [[7.42, 43.73], [7.43, 43.74]],
                        [[7.43, 43.74], [7.44, 43.73]],
                        [[7.44, 43.73], [7.42, 43.73]],
                    ],
                },
            }
        ],
    }

    geometry = _build(document)

    assert len(geometry.drawable_paths) == 3
    assert geometry.primary_path is geometry.drawable_paths[0]


def test_points_only_document_has_no_drawable_path() -> None:
    document = {"type": "MultiPoint", "coordinates": [[7.42, 43.73], [7.43, 43.74]]}

    with pytest.raises(NoDrawablePathError):
        _build(document)


def test_malformed_coordinates_raise_parse_error() -> None:
    with pytest.raises(GeometryParseError):
        _build({"type": "LineString", "coordinates": [["east", "north"], [1.0, 2.0]]})


def test_projection_fits_canvas_and_pads_bounds() -> None:
    geometry = _build(_EQUATOR_LINE, padding=20.0)

    assert geometry.total_path_length == pytest.approx(1000.0)
    assert geometry.bounds.min_x == pytest.approx(-20.0)
    assert geometry.bounds.max_x == pytest.approx(1020.0)
    assert geometry.bounds.min_y == pytest.approx(480.0)
    assert geometry.bounds.max_y == pytest.approx(520.0)

    mid = geometry.point_at_scalar(50.0)
    assert mid.x == pytest.approx(500.0)
    assert mid.y == pytest.approx(500.0)


def test_point_at_scalar_endpoints_and_clamp() -> None:
    geometry = _build(_EQUATOR_LINE)

    start = geometry.point_at_scalar(0.0)
    assert (start.x, start.y) == pytest.approx((0.0, 500.0))
    end = geometry.point_at_scalar(100.0)
    assert (end.x, end.y) == pytest.approx((1000.0, 500.0))
    assert geometry.point_at_scalar(150.0) == end
    assert geometry.point_at_scalar(-5.0) == start


def test_north_is_up_on_canvas() -> None:
    geometry = _build({"type": "LineString", "coordinates": [[0.0, 0.0], [0.0, 1.0]]})

    south = geometry.point_at_scalar(0.0)
    north = geometry.point_at_scalar(100.0)
    assert north.y < south.y


def test_closed_ring_adds_closing_segment() -> None:
    square = np.array([[0.0, 0.0], [10.0, 0.0], [10.0, 10.0], [0.0, 10.0]])

    assert DrawablePath(rings=(square,), closed=False).length == pytest.approx(30.0)
    assert DrawablePath(rings=(square,), closed=True).length == pytest.approx(40.0)


def test_gap_between_rings_has_no_length() -> None:
    path = DrawablePath(
        rings=(
            np.array([[0.0, 0.0], [10.0, 0.0]]),
            np.array([[100.0, 0.0], [100.0, 10.0]]),
        )
    )

    assert path.length == pytest.approx(20.0)
    point = path.point_at_length(15.0)
    assert (point.x, point.y) == pytest.approx((100.0, 5.0))


def test_arc_length_lookup_is_monotonic() -> None:
    path = DrawablePath(rings=(np.array([[0.0, 0.0], [3.0, 4.0], [3.0, 10.0], [9.0, 10.0]]),))
    points = path.points_at_lengths(np.linspace(0.0, path.length, 50))

    assert path.length == pytest.approx(17.0)
    # x and y both only grow along this path
    assert np.all(np.diff(points[:, 0]) >= -1e-9)
    assert np.all(np.diff(points[:, 1]) >= -1e-9)
    assert tuple(points[0]) == pytest.approx((0.0, 0.0))
    assert tuple(points[-1]) == pytest.approx((9.0, 10.0))
    mid = path.point_at_length(8.0)
    assert (mid.x, mid.y) == pytest.approx((3.0, 7.0))


def test_svg_path_data() -> None:
    line = DrawablePath(rings=(np.array([[0.0, 0.0], [10.5, 2.0]]),))
    ring = DrawablePath(rings=(np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0]]),), closed=True)

    assert line.to_svg_d() == "M0,0L10.5,2"
    assert ring.to_svg_d() == "M0,0L1,0L1,1Z"


def test_place_markers_sorted_with_highlight() -> None:
    geometry = _build(_EQUATOR_LINE)
    cars = [
        CarMarker(code="VER", team_color="hsl(267 70% 50%)", position_scalar=25.0),
        CarMarker(code="HAM", team_color="hsl(10 70% 50%)", position_scalar=75.0),
    ]

    placed = geometry.place_markers(cars, highlight_code="VER", highlight_scalar=50.0)

    assert [m.code for m in placed] == ["HAM", "VER"]
    assert placed[0].x == pytest.approx(750.0)
    assert not placed[0].highlighted
    assert placed[1].x == pytest.approx(500.0)
    assert placed[1].team_color == HIGHLIGHT_COLOR
    assert placed[1].highlighted


def test_place_markers_falls_back_to_top_list() -> None:
    geometry = _build(_EQUATOR_LINE)
    top = [CarMarker(code="NOR", team_color="hsl(1 70% 50%)", position_scalar=10.0)]

    placed = geometry.place_markers([], fallback=top)

    assert [m.code for m in placed] == ["NOR"]


def test_render_svg_contains_paths_and_markers() -> None:
    geometry = _build(_EQUATOR_LINE)
    markers = geometry.place_markers([CarMarker(code="VER", team_color="hsl(267 70% 50%)", position_scalar=0.0)])

    svg = render_svg(geometry, markers, label="monaco")

    assert svg.startswith("<svg ")
    view_box = svg.split('viewBox="', 1)[1].split('"', 1)[0]
    assert [float(v) for v in view_box.split()] == pytest.approx([-20.0, 480.0, 1040.0, 40.0])
    assert svg.count('class="track-line"') == 1
    assert ">VER</text>" in svg
    assert "MONACO" in svg


def test_circuit_lookups() -> None:
    assert resolve_locator("Monaco") == "mc-1929"
    assert resolve_locator("atlantis") == "atlantis"
    assert geometry_url("monza", "https://example.test/circuits/") == "https://example.test/circuits/it-1922.geojson"
    assert lap_length_km("Suzuka") == 5.48
    assert lap_length_km("atlantis") == 5.0
