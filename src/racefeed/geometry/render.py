"""Minimal SVG rendering of a track and its markers.

Used by developer scripts to eyeball projection results; the real
rendering layer lives outside this package.
"""

from __future__ import annotations

from collections.abc import Sequence
from html import escape

from racefeed.geometry.track import PlacedMarker, TrackGeometry

_STYLE = (
    ".track-line{stroke:#0ea5e9;stroke-width:12;fill:none;stroke-linecap:round;stroke-linejoin:round}"
    ".track-shadow{stroke:#000;stroke-width:16;fill:none;opacity:.25;stroke-linecap:round;stroke-linejoin:round}"
    ".track-label{fill:#334155;font-weight:bold;font-family:monospace}"
)


def render_svg(
    geometry: TrackGeometry,
    markers: Sequence[PlacedMarker] = (),
    *,
    label: str | None = None,
) -> str:
    bounds = geometry.bounds
    parts = [
        f'<svg viewBox="{bounds.view_box()}" xmlns="http://www.w3.org/2000/svg" preserveAspectRatio="xMidYMid meet">',
        f"<defs><style>{_STYLE}</style></defs>",
    ]
    d_strings = [path.to_svg_d() for path in geometry.drawable_paths]
    parts.extend(f'<path class="track-shadow" d="{d}"/>' for d in d_strings)
    parts.extend(f'<path class="track-line" d="{d}"/>' for d in d_strings)

    for marker in markers:
        radius = 24 if marker.highlighted else 20
        fill = "none" if marker.highlighted else marker.team_color
        stroke = "#0ea5e9" if marker.highlighted else "#000000"
        parts.append(
            f'<g transform="translate({marker.x:.2f}, {marker.y:.2f})">'
            f'<circle cx="0" cy="0" r="{radius}" fill="{fill}" stroke="{stroke}" stroke-width="1.5"/>'
            f'<text x="24" y="-2" class="track-label" font-size="24">{escape(marker.code)}</text>'
            "</g>"
        )

    if label:
        parts.append(
            f'<text x="{(bounds.min_x + bounds.max_x) / 2:.2f}" y="{bounds.max_y + 40:.2f}" '
            f'text-anchor="middle" class="track-label" font-size="20">{escape(label.upper())}</text>'
        )
    parts.append("</svg>")
    return "\n".join(parts)
