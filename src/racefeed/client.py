"""High-level async client tying the feed, store, views and track together."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from typing import Any

import aiohttp

from racefeed._transport import GeometrySource, HttpGeometrySource
from racefeed.config import FeedConfig
from racefeed.exceptions import RaceFeedError
from racefeed.feed import ConnectionStatus, FeedClient
from racefeed.geometry.projection import ProjectionStrategy
from racefeed.geometry.projector import TrackGeometryProjector
from racefeed.geometry.track import PlacedMarker, TrackGeometry
from racefeed.ingestion.decode import Decoded, DecodeResult, decode_frame
from racefeed.metrics import DriverMetrics, RollingMetricsEstimator, SpeedComparison
from racefeed.models._base import RaceFeedBaseModel
from racefeed.models.driver import CarMarker, LeaderboardRow, PredictionRow
from racefeed.models.messages import TelemetryMessage
from racefeed.scheduler import CoalescingScheduler
from racefeed.state.snapshot import RaceSnapshot
from racefeed.state.store import DriverStateStore
from racefeed.views import all_positions, build_leaderboard, top_by_progress, top_predictions

_logger = logging.getLogger(__name__)


class RaceView(RaceFeedBaseModel):
    """Everything a renderer needs for one frame."""

    status: ConnectionStatus
    error: str | None = None
    circuit: str | None = None
    leaderboard: list[LeaderboardRow]
    top: list[CarMarker]
    positions: list[CarMarker]
    predictions: list[PredictionRow]
    revision: int


class RaceFeedClient:
    """Async client for a live race feed.

    Usage::

        async with RaceFeedClient(FeedConfig(circuit="monaco"), on_update=draw) as client:
            await client.run()

    Frames can also be pushed directly with :meth:`handle_frame`, which is
    how replays and tests drive the client without a socket.
    """

    def __init__(
        self,
        config: FeedConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        geometry_source: GeometrySource | None = None,
        projection: ProjectionStrategy | None = None,
        on_update: Callable[[RaceView], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._geometry_source = geometry_source
        self._projection = projection
        self._on_update = on_update
        self._clock = clock
        self._logger = logger or _logger
        self._circuit = config.circuit
        self._store = DriverStateStore(logger=self._logger)
        self._metrics = RollingMetricsEstimator(config.metrics_window_seconds, clock=clock)
        self._comparisons: dict[tuple[str, str], SpeedComparison] = {}
        self._feed: FeedClient | None = None
        self._projector: TrackGeometryProjector | None = None
        self._scheduler: CoalescingScheduler[RaceView] | None = None
        self._run_task: asyncio.Task[None] | None = None
        self._closing = False

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> RaceFeedClient:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        source = self._geometry_source or HttpGeometrySource(self._config, self._http_session)
        self._projector = TrackGeometryProjector(
            source,
            projection=self._projection,
            canvas_size=self._config.canvas_size,
            padding=self._config.bounds_padding,
            logger=self._logger,
        )
        self._feed = FeedClient(
            self._config.ws_url,
            http_session=self._http_session,
            heartbeat=self._config.heartbeat,
            on_result=self.handle_result,
            on_status=self._on_status,
            logger=self._logger,
        )
        if self._on_update is not None:
            self._scheduler = CoalescingScheduler(self._on_update, interval=self._config.render_interval)
        if self._circuit:
            self._projector.set_track(self._circuit)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Release the connection, pending fetches and scheduled updates.

        No update is delivered once this has been called.
        """
        self._closing = True
        task = self._run_task
        self._run_task = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        try:
            if self._feed is not None:
                await self._feed.close()
            if self._projector is not None:
                await self._projector.aclose()
        finally:
            if self._scheduler is not None:
                self._scheduler.cancel()
            if not self._external_session and self._http_session is not None:
                await self._http_session.close()
                self._http_session = None

    # ------------------------------------------------------------------
    # Feed
    # ------------------------------------------------------------------

    def _require_feed(self) -> FeedClient:
        if self._feed is None:
            raise RaceFeedError("Client not initialized. Use 'async with RaceFeedClient(...) as client:'")
        return self._feed

    async def run(self) -> None:
        """Consume the feed until the connection closes."""
        await self._require_feed().run()

    def start(self) -> asyncio.Task[None]:
        """Run the feed in a background task owned by this client."""
        if self._run_task is None or self._run_task.done():
            self._run_task = asyncio.get_running_loop().create_task(self.run())
        return self._run_task

    def _on_status(self, status: ConnectionStatus) -> None:
        if status == ConnectionStatus.OPEN:
            self._store.clear_error()
        self._schedule_update()

    def handle_frame(self, raw: str | bytes) -> RaceSnapshot:
        """Decode and apply one raw frame; malformed frames are ignored."""
        return self.handle_result(decode_frame(raw))

    def handle_result(self, result: DecodeResult) -> RaceSnapshot:
        before = self._store.revision
        snapshot = self._store.apply_result(result)
        if self._store.revision == before:
            return snapshot

        if isinstance(result, Decoded) and isinstance(result.message, TelemetryMessage):
            message = result.message
            if message.speed_kmh is not None:
                self._metrics.observe(message.driver, message.speed_kmh, self._clock())
        now = self._clock()
        for comparison in self._comparisons.values():
            comparison.observe(snapshot, now)
        self._schedule_update()
        return snapshot

    def _schedule_update(self) -> None:
        if self._scheduler is not None and not self._closing:
            self._scheduler.submit(self.view())

    # ------------------------------------------------------------------
    # Circuit / track
    # ------------------------------------------------------------------

    @property
    def circuit(self) -> str | None:
        return self._circuit

    def set_circuit(self, circuit: str) -> asyncio.Task[TrackGeometry | None] | None:
        """Switch circuit: lap length for views and a fresh geometry load."""
        if circuit == self._circuit and self._projector is not None and self._projector.track_id == circuit:
            return None
        self._circuit = circuit
        self._schedule_update()
        if self._projector is None:
            return None
        return self._projector.set_track(circuit)

    @property
    def projector(self) -> TrackGeometryProjector | None:
        return self._projector

    def markers(self, highlight_code: str | None = None) -> list[PlacedMarker]:
        """Place every driver on the track, optionally highlighting one."""
        if self._projector is None:
            return []
        positions = self.positions()
        highlight_scalar = None
        if highlight_code is not None:
            highlight_scalar = next((m.position_scalar for m in positions if m.code == highlight_code), None)
        return self._projector.place_markers(
            positions,
            fallback=self.top(),
            highlight_code=highlight_code,
            highlight_scalar=highlight_scalar,
        )

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> RaceSnapshot:
        return self._store.snapshot

    @property
    def status(self) -> ConnectionStatus:
        return self._feed.status if self._feed is not None else ConnectionStatus.CLOSED

    @property
    def connected(self) -> bool:
        return self.status == ConnectionStatus.OPEN

    @property
    def error(self) -> str | None:
        if self._feed is not None and self._feed.error is not None:
            return self._feed.error
        return self._store.snapshot.error

    def leaderboard(self) -> list[LeaderboardRow]:
        return build_leaderboard(self._store.snapshot)

    def top(self) -> list[CarMarker]:
        return top_by_progress(self._store.snapshot, self._circuit, n=self._config.top_n)

    def positions(self) -> list[CarMarker]:
        return all_positions(self._store.snapshot, self._circuit)

    def predictions(self, n: int = 10) -> list[PredictionRow]:
        return top_predictions(self._store.snapshot, n=n)

    def view(self) -> RaceView:
        return RaceView(
            status=self.status,
            error=self.error,
            circuit=self._circuit,
            leaderboard=self.leaderboard(),
            top=self.top(),
            positions=self.positions(),
            predictions=self.predictions(),
            revision=self._store.revision,
        )

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def driver_metrics(self, code: str) -> DriverMetrics | None:
        return self._metrics.metrics(code)

    def track_comparison(self, code_a: str, code_b: str) -> SpeedComparison:
        """Start (or return) a speed comparison between two drivers."""
        key = (code_a, code_b)
        comparison = self._comparisons.get(key)
        if comparison is None:
            comparison = SpeedComparison(
                code_a,
                code_b,
                window_seconds=self._config.comparison_window_seconds,
                step_seconds=self._config.comparison_step_seconds,
                max_points=self._config.comparison_max_points,
                clock=self._clock,
            )
            self._comparisons[key] = comparison
        return comparison
