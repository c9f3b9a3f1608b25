"""Built track geometry and scalar-to-point mapping."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from racefeed.exceptions import NoDrawablePathError
from racefeed.geometry.geojson import normalize_document
from racefeed.geometry.path import DrawablePath, TrackPoint
from racefeed.geometry.projection import Bounds, ProjectionStrategy
from racefeed.ingestion.normalize import clamp
from racefeed.models.driver import CarMarker

HIGHLIGHT_COLOR = "#ffffff"


@dataclass(frozen=True)
class PlacedMarker:
    code: str
    x: float
    y: float
    team_color: str
    highlighted: bool = False


def scalar_to_arc_length(scalar: float, total_length: float) -> float:
    """Arc-length position of a lap-fraction scalar on a path of *total_length*."""
    return clamp(scalar, 0.0, 100.0) / 100.0 * total_length


@dataclass(frozen=True)
class TrackGeometry:
    """Drawable outline of one circuit on the virtual canvas.

    ``bounds`` already includes the display padding. The first path is the
    primary path: lap-fraction scalars are mapped onto it.
    """

    track_id: str
    drawable_paths: tuple[DrawablePath, ...]
    bounds: Bounds

    @property
    def primary_path(self) -> DrawablePath:
        return self.drawable_paths[0]

    @property
    def total_path_length(self) -> float:
        return self.primary_path.length

    def point_at_scalar(self, scalar: float) -> TrackPoint:
        return self.primary_path.point_at_length(scalar_to_arc_length(scalar, self.total_path_length))

    def place_markers(
        self,
        cars: Sequence[CarMarker],
        *,
        fallback: Sequence[CarMarker] = (),
        highlight_code: str | None = None,
        highlight_scalar: float | None = None,
    ) -> list[PlacedMarker]:
        """Resolve car markers to canvas points, ordered by code.

        ``fallback`` (typically the top-N list) is used when ``cars`` is
        empty. The highlighted driver, if any, is drawn at
        ``highlight_scalar`` in :data:`HIGHLIGHT_COLOR`. Markers may overlap.
        """
        source = list(cars) if cars else list(fallback)
        placed: list[PlacedMarker] = []
        for car in sorted(source, key=lambda c: c.code):
            is_highlighted = highlight_code == car.code and highlight_scalar is not None
            scalar = highlight_scalar if is_highlighted and highlight_scalar is not None else car.position_scalar
            point = self.point_at_scalar(scalar)
            placed.append(
                PlacedMarker(
                    code=car.code,
                    x=point.x,
                    y=point.y,
                    team_color=HIGHLIGHT_COLOR if is_highlighted else car.team_color,
                    highlighted=is_highlighted,
                )
            )
        return placed


def build_track_geometry(
    track_id: str,
    document: Any,
    *,
    projection: ProjectionStrategy,
    canvas_size: tuple[float, float],
    padding: float,
) -> TrackGeometry:
    """Normalise, project and measure a fetched geometry document.

    Raises
    ------
    UnsupportedGeometryError
        The document shape is not a geometry, feature or collection.
    GeometryParseError
        Coordinates are malformed.
    NoDrawablePathError
        Nothing drawable remained (e.g. a points-only document).
    """
    features: list[Mapping[str, Any]] = normalize_document(document)
    projected = projection.project(features, canvas_size)
    if not projected.paths:
        raise NoDrawablePathError(
            "No drawable paths found in GeoJSON (maybe it's Points only or unsupported geometry)."
        )
    return TrackGeometry(
        track_id=track_id,
        drawable_paths=projected.paths,
        bounds=projected.bounds.padded(padding),
    )
