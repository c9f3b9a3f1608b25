"""Track geometry projector state machine.

``idle -> loading -> ready | failed``; every :meth:`TrackGeometryProjector.set_track`
re-enters ``loading``. A load whose track identifier is no longer current
is cancelled, and any response it still produces is discarded.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Sequence
from enum import StrEnum

from racefeed._constants import VIRTUAL_CANVAS_SIZE
from racefeed._transport import GeometrySource
from racefeed.exceptions import GeometryError
from racefeed.geometry.path import TrackPoint
from racefeed.geometry.projection import MercatorProjection, ProjectionStrategy
from racefeed.geometry.track import PlacedMarker, TrackGeometry, build_track_geometry
from racefeed.models.driver import CarMarker

_logger = logging.getLogger(__name__)


class ProjectorState(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class TrackGeometryProjector:
    """Builds and holds the :class:`TrackGeometry` for the current track.

    Switching to a different identifier invalidates the current geometry.
    Reloading the same identifier keeps the previous geometry available
    while loading and after a failure.
    """

    def __init__(
        self,
        source: GeometrySource,
        *,
        projection: ProjectionStrategy | None = None,
        canvas_size: tuple[float, float] = (VIRTUAL_CANVAS_SIZE, VIRTUAL_CANVAS_SIZE),
        padding: float = 20.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._source = source
        self._projection = projection or MercatorProjection()
        self._canvas_size = canvas_size
        self._padding = padding
        self._logger = logger or _logger
        self._state = ProjectorState.IDLE
        self._track_id: str | None = None
        self._geometry: TrackGeometry | None = None
        self._exception: GeometryError | None = None
        self._generation = 0
        self._task: asyncio.Task[TrackGeometry | None] | None = None

    @property
    def state(self) -> ProjectorState:
        return self._state

    @property
    def track_id(self) -> str | None:
        return self._track_id

    @property
    def geometry(self) -> TrackGeometry | None:
        return self._geometry

    @property
    def exception(self) -> GeometryError | None:
        return self._exception

    @property
    def error(self) -> str | None:
        """Human-readable cause of the last failure, if in ``failed``."""
        return str(self._exception) if self._exception is not None else None

    def set_track(self, track_id: str) -> asyncio.Task[TrackGeometry | None]:
        """Start loading *track_id*, cancelling any in-flight load."""
        self._cancel_pending()
        self._task = asyncio.get_running_loop().create_task(self.load(track_id))
        return self._task

    async def load(self, track_id: str) -> TrackGeometry | None:
        """Run the pipeline for *track_id*.

        Returns the new geometry, or ``None`` on failure or when a newer
        load superseded this one. Geometry errors never propagate.
        """
        self._generation += 1
        generation = self._generation
        if track_id != self._track_id:
            self._geometry = None
        self._track_id = track_id
        self._state = ProjectorState.LOADING
        self._exception = None
        self._logger.debug("Loading track geometry track=%s", track_id)

        try:
            document = await self._source.fetch(track_id)
            geometry = build_track_geometry(
                track_id,
                document,
                projection=self._projection,
                canvas_size=self._canvas_size,
                padding=self._padding,
            )
        except GeometryError as exc:
            if generation != self._generation:
                self._logger.debug("Ignoring stale geometry failure track=%s", track_id)
                return None
            self._state = ProjectorState.FAILED
            self._exception = exc
            self._logger.warning("Track geometry failed track=%s: %s", track_id, exc)
            return None

        if generation != self._generation:
            self._logger.debug("Ignoring stale geometry response track=%s", track_id)
            return None

        self._geometry = geometry
        self._state = ProjectorState.READY
        self._logger.debug(
            "Track geometry ready track=%s paths=%d length=%.1f",
            track_id,
            len(geometry.drawable_paths),
            geometry.total_path_length,
        )
        return geometry

    def map_scalar_to_point(self, scalar: float) -> TrackPoint | None:
        """Canvas point for a lap-fraction scalar; ``None`` without geometry."""
        if self._geometry is None:
            return None
        return self._geometry.point_at_scalar(scalar)

    def place_markers(
        self,
        cars: Sequence[CarMarker],
        *,
        fallback: Sequence[CarMarker] = (),
        highlight_code: str | None = None,
        highlight_scalar: float | None = None,
    ) -> list[PlacedMarker]:
        if self._geometry is None:
            return []
        return self._geometry.place_markers(
            cars,
            fallback=fallback,
            highlight_code=highlight_code,
            highlight_scalar=highlight_scalar,
        )

    def _cancel_pending(self) -> None:
        task = self._task
        self._task = None
        if task is not None and not task.done():
            task.cancel()

    async def aclose(self) -> None:
        task = self._task
        self._cancel_pending()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
