"""Projection strategies.

A :class:`ProjectionStrategy` takes normalised features plus a target canvas
size and returns drawable paths with their bounding box. The default is a
spherical Mercator projection fitted so the track fills the canvas, centred
along the shorter axis.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

import numpy as np

from racefeed.exceptions import GeometryParseError
from racefeed.geometry.geojson import drawable_parts, geometry_positions, iter_geometries
from racefeed.geometry.path import DrawablePath, FloatArray

_logger = logging.getLogger(__name__)

# Web Mercator latitude limit; the projection diverges at the poles.
_MAX_LATITUDE = 85.05112877980659


@dataclass(frozen=True)
class Bounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    def padded(self, padding: float) -> Bounds:
        return Bounds(
            min_x=self.min_x - padding,
            min_y=self.min_y - padding,
            max_x=self.max_x + padding,
            max_y=self.max_y + padding,
        )

    def view_box(self) -> str:
        return f"{self.min_x} {self.min_y} {max(1.0, self.width)} {max(1.0, self.height)}"


@dataclass(frozen=True)
class ProjectedTrack:
    paths: tuple[DrawablePath, ...]
    bounds: Bounds


class ProjectionStrategy(Protocol):
    """Structural projection interface; any conformal or equal-area
    implementation satisfying it can replace :class:`MercatorProjection`."""

    def project(self, features: Sequence[Mapping[str, Any]], size: tuple[float, float]) -> ProjectedTrack: ...


def _as_positions(raw: Sequence[Any]) -> FloatArray:
    try:
        arr = np.asarray([(float(p[0]), float(p[1])) for p in raw], dtype=float)
    except (TypeError, ValueError, IndexError, KeyError) as exc:
        raise GeometryParseError(f"Malformed coordinates: {exc}") from exc
    return arr.reshape(-1, 2)


def _mercator(lonlat: FloatArray) -> FloatArray:
    """Raw Mercator in radians with y growing downwards (screen space)."""
    lon = np.radians(lonlat[:, 0])
    lat = np.radians(np.clip(lonlat[:, 1], -_MAX_LATITUDE, _MAX_LATITUDE))
    y = -np.log(np.tan(np.pi / 4 + lat / 2))
    return np.column_stack((lon, y))


@dataclass(frozen=True)
class _Fit:
    scale: float
    offset: FloatArray

    def apply(self, raw: FloatArray) -> FloatArray:
        return raw * self.scale + self.offset


def _fit_size(raw: FloatArray, size: tuple[float, float]) -> _Fit:
    width, height = size
    lo = raw.min(axis=0)
    hi = raw.max(axis=0)
    span = hi - lo
    scales = [extent / s for extent, s in zip((width, height), span) if s > 0]
    scale = min(scales) if scales else 1.0
    offset = (np.array([width, height]) - scale * span) / 2 - scale * lo
    return _Fit(scale=scale, offset=offset)


class MercatorProjection:
    """Mercator projection fitted to a fixed canvas."""

    def project(self, features: Sequence[Mapping[str, Any]], size: tuple[float, float]) -> ProjectedTrack:
        geometries = list(iter_geometries(features))

        all_positions: list[Sequence[Any]] = []
        for geometry in geometries:
            all_positions.extend(geometry_positions(geometry))
        if not all_positions:
            return ProjectedTrack(paths=(), bounds=Bounds(0.0, 0.0, 0.0, 0.0))

        raw_all = _mercator(_as_positions(all_positions))
        fit = _fit_size(raw_all, size)

        paths: list[DrawablePath] = []
        for geometry in geometries:
            for part in drawable_parts(geometry):
                try:
                    rings = tuple(
                        fit.apply(_mercator(_as_positions(ring)))
                        for ring in part.rings
                        if isinstance(ring, (list, tuple)) and len(ring) >= 2
                    )
                except GeometryParseError as exc:
                    _logger.debug("Dropping malformed part of %s: %s", geometry.get("type"), exc)
                    continue
                if not rings:
                    _logger.debug("Dropping degenerate part of %s", geometry.get("type"))
                    continue
                paths.append(DrawablePath(rings=rings, closed=part.closed))

        projected_all = fit.apply(raw_all)
        lo = projected_all.min(axis=0)
        hi = projected_all.max(axis=0)
        bounds = Bounds(float(lo[0]), float(lo[1]), float(hi[0]), float(hi[1]))
        return ProjectedTrack(paths=tuple(paths), bounds=bounds)
