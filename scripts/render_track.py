#!/usr/bin/env python3
"""Fetch a circuit outline and write it out as an SVG.

Handy for eyeballing projection results and marker placement without the
rendering layer:

    python scripts/render_track.py monaco --marker VER:25 --marker HAM:60 -o monaco.svg
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

import aiohttp  # noqa: E402

from racefeed import FeedConfig, GeometryError, ProjectorState, TrackGeometryProjector  # noqa: E402
from racefeed._transport import HttpGeometrySource  # noqa: E402
from racefeed.geometry.render import render_svg  # noqa: E402
from racefeed.models.driver import CarMarker  # noqa: E402
from racefeed.views import color_for_code  # noqa: E402

_LOG = logging.getLogger("render_track")


class _FileSource:
    """Reads a local GeoJSON file instead of fetching one."""

    def __init__(self, path: Path) -> None:
        self._path = path

    async def fetch(self, track_id: str) -> object:
        return json.loads(self._path.read_text(encoding="utf-8"))


def _parse_marker(text: str) -> CarMarker:
    code, _, scalar = text.partition(":")
    try:
        value = float(scalar)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected CODE:PERCENT, got {text!r}") from exc
    return CarMarker(code=code, team_color=color_for_code(code), position_scalar=min(max(value, 0.0), 99.999))


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render a circuit outline to SVG.")
    parser.add_argument("circuit", help="Circuit identifier or locator (e.g. monaco, it-1922).")
    parser.add_argument("--geojson", type=Path, help="Read the outline from a local file instead of fetching it.")
    parser.add_argument(
        "--marker",
        type=_parse_marker,
        action="append",
        default=[],
        help="Place a car marker, as CODE:PERCENT. May be repeated.",
    )
    parser.add_argument("--highlight", help="Driver code to highlight.")
    parser.add_argument("--output", "-o", type=Path, help="Output file (default: stdout).")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logs.")
    return parser.parse_args()


async def _render(args: argparse.Namespace, config: FeedConfig) -> str:
    async with aiohttp.ClientSession() as session:
        source = _FileSource(args.geojson) if args.geojson else HttpGeometrySource(config, session)
        projector = TrackGeometryProjector(source, canvas_size=config.canvas_size, padding=config.bounds_padding)
        geometry = await projector.set_track(args.circuit)

    if geometry is None or projector.state != ProjectorState.READY:
        raise GeometryError(projector.error or "Track geometry unavailable")

    _LOG.debug("Loaded %d paths, primary length %.1f", len(geometry.drawable_paths), geometry.total_path_length)
    highlight_scalar = next((m.position_scalar for m in args.marker if m.code == args.highlight), None)
    markers = geometry.place_markers(args.marker, highlight_code=args.highlight, highlight_scalar=highlight_scalar)
    return render_svg(geometry, markers, label=args.circuit)


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = FeedConfig.from_env(circuit=args.circuit)
    try:
        svg = asyncio.run(_render(args, config))
    except GeometryError as exc:
        print(f"[render] {exc}", file=sys.stderr)
        return 2

    if args.output:
        args.output.write_text(svg, encoding="utf-8")
        print(f"[render] Wrote {args.output}")
    else:
        print(svg)
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
