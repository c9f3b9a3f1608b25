"""GeoJSON normalisation.

Whatever the document shape (bare geometry, single feature, feature
collection), normalisation yields a flat list of features. Drawable parts
are then extracted per geometry: multi-geometries split into one part per
member, points are skipped, and geometry collections are expanded one
level deep.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from racefeed.exceptions import UnsupportedGeometryError

_logger = logging.getLogger(__name__)

GEOMETRY_TYPES: frozenset[str] = frozenset(
    {
        "Point",
        "MultiPoint",
        "LineString",
        "MultiLineString",
        "Polygon",
        "MultiPolygon",
        "GeometryCollection",
    }
)


@dataclass(frozen=True)
class GeometryPart:
    """One independently drawable part: a line, or a polygon with its rings."""

    rings: tuple[Sequence[Any], ...]
    closed: bool


def normalize_document(document: Any) -> list[Mapping[str, Any]]:
    """Return the features of *document* in uniform feature-collection form."""
    if not isinstance(document, Mapping) or not document:
        raise UnsupportedGeometryError("Empty or non-object geometry document")

    doc_type = document.get("type")
    features: Any
    if doc_type == "FeatureCollection":
        features = document.get("features")
    elif doc_type == "Feature":
        features = [document]
    elif doc_type in GEOMETRY_TYPES:
        features = [{"type": "Feature", "properties": {}, "geometry": document}]
    elif isinstance(document.get("features"), list):
        features = document["features"]
    else:
        raise UnsupportedGeometryError(f"Unsupported GeoJSON structure (type={doc_type!r})")

    if not isinstance(features, list):
        raise UnsupportedGeometryError("FeatureCollection has no features array")
    return [f for f in features if isinstance(f, Mapping)]


def iter_geometries(features: Sequence[Mapping[str, Any]]) -> Iterator[Mapping[str, Any]]:
    for feature in features:
        geometry = feature.get("geometry")
        if isinstance(geometry, Mapping):
            yield geometry


def _members(value: Any) -> list[Any]:
    """*value* as a list of members; anything that is not an array has none."""
    return list(value) if isinstance(value, (list, tuple)) else []


def drawable_parts(geometry: Mapping[str, Any], *, _nested: bool = False) -> list[GeometryPart]:
    geom_type = geometry.get("type")
    coords = geometry.get("coordinates")

    if geom_type == "LineString":
        return [GeometryPart(rings=(_members(coords),), closed=False)]
    if geom_type == "Polygon":
        return [GeometryPart(rings=tuple(_members(coords)), closed=True)]
    if geom_type == "MultiLineString":
        return [GeometryPart(rings=(line,), closed=False) for line in _members(coords)]
    if geom_type == "MultiPolygon":
        return [
            GeometryPart(rings=tuple(polygon), closed=True)
            for polygon in _members(coords)
            if isinstance(polygon, (list, tuple))
        ]
    if geom_type in ("Point", "MultiPoint"):
        return []
    if geom_type == "GeometryCollection":
        if _nested:
            _logger.debug("Skipping nested GeometryCollection")
            return []
        parts: list[GeometryPart] = []
        for child in _members(geometry.get("geometries")):
            if isinstance(child, Mapping):
                parts.extend(drawable_parts(child, _nested=True))
        return parts

    _logger.debug("Skipping unsupported geometry type %r", geom_type)
    return []


def flatten_positions(coords: Any) -> list[Sequence[Any]]:
    """Collect every ``[lon, lat, ...]`` position from nested coordinates."""
    if not isinstance(coords, (list, tuple)) or not coords:
        return []
    if not isinstance(coords[0], (list, tuple)):
        return [coords]
    positions: list[Sequence[Any]] = []
    for item in coords:
        positions.extend(flatten_positions(item))
    return positions


def geometry_positions(geometry: Mapping[str, Any]) -> list[Sequence[Any]]:
    """All positions of a geometry, including points and collection members."""
    if geometry.get("type") == "GeometryCollection":
        positions: list[Sequence[Any]] = []
        for child in _members(geometry.get("geometries")):
            if isinstance(child, Mapping):
                positions.extend(geometry_positions(child))
        return positions
    return flatten_positions(geometry.get("coordinates"))
