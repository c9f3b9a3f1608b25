"""Projected 2D paths and arc-length measurement."""

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property

import numpy as np
import numpy.typing as npt

FloatArray = npt.NDArray[np.float64]


@dataclass(frozen=True)
class TrackPoint:
    x: float
    y: float


def _fmt(value: float) -> str:
    text = f"{value:.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


@dataclass(frozen=True, eq=False)
class DrawablePath:
    """One drawable path on the virtual canvas.

    ``rings`` holds one ``(n, 2)`` array per sub-path. A line has a single
    ring; a polygon has its exterior plus any holes. ``closed`` rings get
    an implicit segment back to their first vertex.

    Length and point lookup follow SVG semantics: sub-paths are walked in
    order and the jump between them contributes no length.
    """

    rings: tuple[FloatArray, ...]
    closed: bool = False

    @cached_property
    def _segments(self) -> tuple[FloatArray, FloatArray, FloatArray]:
        starts: list[FloatArray] = []
        deltas: list[FloatArray] = []
        for ring in self.rings:
            points = ring
            if self.closed and len(points) > 1 and not np.array_equal(points[0], points[-1]):
                points = np.vstack((points, points[:1]))
            if len(points) < 2:
                continue
            starts.append(points[:-1])
            deltas.append(np.diff(points, axis=0))
        if not starts:
            empty = np.zeros((0, 2))
            return empty, empty, np.zeros(1)
        start_arr = np.vstack(starts)
        delta_arr = np.vstack(deltas)
        seg_lengths = np.hypot(delta_arr[:, 0], delta_arr[:, 1])
        cumulative = np.concatenate(([0.0], np.cumsum(seg_lengths)))
        return start_arr, delta_arr, cumulative

    @property
    def length(self) -> float:
        """Total arc length across all sub-paths."""
        return float(self._segments[2][-1])

    def points_at_lengths(self, lengths: npt.ArrayLike) -> FloatArray:
        """Vectorised :meth:`point_at_length`; returns an ``(n, 2)`` array."""
        starts, deltas, cumulative = self._segments
        t = np.clip(np.asarray(lengths, dtype=float), 0.0, cumulative[-1])
        if len(starts) == 0:
            return np.tile(self.rings[0][0], (t.size, 1)) if self.rings else np.zeros((t.size, 2))
        idx = np.clip(np.searchsorted(cumulative, t, side="right") - 1, 0, len(starts) - 1)
        seg_len = cumulative[idx + 1] - cumulative[idx]
        safe_len = np.where(seg_len > 0, seg_len, 1.0)
        local = np.where(seg_len > 0, (t - cumulative[idx]) / safe_len, 0.0)
        return starts[idx] + deltas[idx] * local[:, None]

    def point_at_length(self, length: float) -> TrackPoint:
        """Point at arc length *length*, clamped to the path's extent."""
        x, y = self.points_at_lengths([length])[0]
        return TrackPoint(float(x), float(y))

    def to_svg_d(self) -> str:
        commands: list[str] = []
        for ring in self.rings:
            if len(ring) == 0:
                continue
            head, *tail = ring
            commands.append(f"M{_fmt(head[0])},{_fmt(head[1])}")
            commands.extend(f"L{_fmt(x)},{_fmt(y)}" for x, y in tail)
            if self.closed:
                commands.append("Z")
        return "".join(commands)
