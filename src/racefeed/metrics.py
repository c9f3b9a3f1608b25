"""Rolling per-driver metrics estimated from speed samples alone.

The feed carries no pedal or steering channels, so throttle, braking and
cornering are heuristic proxies derived from a short window of speed
observations. They are deterministic functions of the window contents and
are not physical measurements:

* throttle: current speed as a percentage of the window's top speed
* braking: share of consecutive sample pairs decelerating faster than
  ``decel_threshold`` km/h per second
* cornering: share of samples between 40% and 70% of the window's top speed
"""

from __future__ import annotations

import math
import time
from collections import deque
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

import numpy as np

from racefeed.models._base import RaceFeedBaseModel
from racefeed.state.snapshot import RaceSnapshot


@dataclass(frozen=True)
class RollingSample:
    timestamp: float
    speed: float


class DriverMetrics(RaceFeedBaseModel):
    """Integer percentages for display; ``speed`` is rounded km/h."""

    code: str
    speed: int
    throttle: int
    braking: int
    cornering: int
    samples: int


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def compute_metrics(
    samples: Sequence[RollingSample],
    current_speed: float,
    *,
    decel_threshold: float = 8.0,
    dt_floor: float = 0.05,
    band: tuple[float, float] = (0.4, 0.7),
) -> tuple[int, int, int]:
    """Return ``(throttle, braking, cornering)`` percentages for a window."""
    vmax = max((s.speed for s in samples), default=0.0)

    throttle = 0
    if vmax > 0:
        throttle = min(100, max(0, _round_half_up(current_speed / vmax * 100)))

    braking = 0
    if len(samples) > 1:
        braking_count = 0
        for prev, cur in zip(samples, samples[1:]):
            dt = max(dt_floor, cur.timestamp - prev.timestamp)
            if (prev.speed - cur.speed) / dt > decel_threshold:
                braking_count += 1
        braking = min(100, _round_half_up(braking_count / (len(samples) - 1) * 100))

    cornering = 0
    if samples and vmax > 0:
        low, high = band
        corner_count = sum(1 for s in samples if low <= s.speed / vmax <= high)
        cornering = min(100, _round_half_up(corner_count / len(samples) * 100))

    return throttle, braking, cornering


class RollingWindow:
    """Time-ordered samples bounded to ``horizon`` seconds."""

    def __init__(self, horizon: float) -> None:
        self._horizon = horizon
        self._samples: deque[RollingSample] = deque()

    def add(self, sample: RollingSample) -> None:
        """Append and evict everything older than ``sample.timestamp - horizon``.

        A timestamp earlier than the newest sample is clamped to it so the
        window stays ordered.
        """
        if self._samples and sample.timestamp < self._samples[-1].timestamp:
            sample = RollingSample(timestamp=self._samples[-1].timestamp, speed=sample.speed)
        self._samples.append(sample)
        cutoff = sample.timestamp - self._horizon
        while self._samples and self._samples[0].timestamp < cutoff:
            self._samples.popleft()

    @property
    def samples(self) -> tuple[RollingSample, ...]:
        return tuple(self._samples)

    def __len__(self) -> int:
        return len(self._samples)


class RollingMetricsEstimator:
    """Keeps a private window per driver and derives proxy metrics."""

    def __init__(
        self,
        window_seconds: float = 4.0,
        *,
        decel_threshold: float = 8.0,
        dt_floor: float = 0.05,
        band: tuple[float, float] = (0.4, 0.7),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._window_seconds = window_seconds
        self._decel_threshold = decel_threshold
        self._dt_floor = dt_floor
        self._band = band
        self._clock = clock
        self._windows: dict[str, RollingWindow] = {}
        self._latest: dict[str, DriverMetrics] = {}

    def observe(self, code: str, speed_kmh: float, timestamp: float | None = None) -> DriverMetrics:
        """Record one speed observation and return the refreshed metrics."""
        now = self._clock() if timestamp is None else timestamp
        speed = max(0.0, speed_kmh)
        window = self._windows.get(code)
        if window is None:
            window = RollingWindow(self._window_seconds)
            self._windows[code] = window
        window.add(RollingSample(timestamp=now, speed=speed))

        samples = window.samples
        throttle, braking, cornering = compute_metrics(
            samples,
            speed,
            decel_threshold=self._decel_threshold,
            dt_floor=self._dt_floor,
            band=self._band,
        )
        metrics = DriverMetrics(
            code=code,
            speed=_round_half_up(speed),
            throttle=throttle,
            braking=braking,
            cornering=cornering,
            samples=len(samples),
        )
        self._latest[code] = metrics
        return metrics

    def observe_snapshot(
        self,
        snapshot: RaceSnapshot,
        codes: Iterable[str] | None = None,
        timestamp: float | None = None,
    ) -> dict[str, DriverMetrics]:
        """Sample every (or each listed) driver that has a known speed."""
        now = self._clock() if timestamp is None else timestamp
        selected = snapshot.drivers if codes is None else {c: snapshot.drivers[c] for c in codes if c in snapshot.drivers}
        return {
            code: self.observe(code, driver.speed_kmh, now)
            for code, driver in selected.items()
            if driver.speed_kmh is not None
        }

    def metrics(self, code: str) -> DriverMetrics | None:
        return self._latest.get(code)

    def samples(self, code: str) -> tuple[RollingSample, ...]:
        window = self._windows.get(code)
        return window.samples if window is not None else ()

    def reset(self, code: str | None = None) -> None:
        if code is None:
            self._windows.clear()
            self._latest.clear()
            return
        self._windows.pop(code, None)
        self._latest.pop(code, None)


# ------------------------------------------------------------------
# Two-driver speed comparison
# ------------------------------------------------------------------


@dataclass(frozen=True)
class ComparisonSample:
    timestamp: float
    speed: float
    km: float


@dataclass(frozen=True)
class ComparisonPoint:
    timestamp: float
    speed_a: int
    speed_b: int
    delta_seconds: float


def _nearest_indices(times: np.ndarray, buckets: np.ndarray) -> np.ndarray:
    if len(times) == 1:
        return np.zeros(len(buckets), dtype=int)
    right = np.clip(np.searchsorted(times, buckets), 1, len(times) - 1)
    left = right - 1
    choose_left = (buckets - times[left]) <= (times[right] - buckets)
    return np.where(choose_left, left, right)


def _delta_seconds(km_a: float, km_b: float, speed_a: int, speed_b: int) -> float:
    """Time gap estimated from the distance gap at the pair's mean speed."""
    avg_km_per_s = max((speed_a + speed_b) / 2 / 3600, 1e-6)
    delta = (km_b - km_a) / avg_km_per_s
    return delta if math.isfinite(delta) else 0.0


class SpeedComparison:
    """Aligned speed/gap series for two drivers over a sliding window.

    Each driver's samples are resampled into fixed-width time buckets by
    nearest sample; the series is rebuilt on every observation and capped
    at ``max_points``.
    """

    def __init__(
        self,
        code_a: str,
        code_b: str,
        *,
        window_seconds: float = 12.0,
        step_seconds: float = 0.3,
        max_points: int = 400,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.code_a = code_a
        self.code_b = code_b
        self._window_seconds = window_seconds
        self._step_seconds = step_seconds
        self._max_points = max_points
        self._clock = clock
        self._samples: dict[str, deque[ComparisonSample]] = {code_a: deque(), code_b: deque()}
        self._points: tuple[ComparisonPoint, ...] = ()

    @property
    def points(self) -> tuple[ComparisonPoint, ...]:
        return self._points

    def observe(self, snapshot: RaceSnapshot, timestamp: float | None = None) -> tuple[ComparisonPoint, ...]:
        now = self._clock() if timestamp is None else timestamp
        updated = False
        for code, samples in self._samples.items():
            driver = snapshot.drivers.get(code)
            if driver is None or driver.speed_kmh is None:
                continue
            samples.append(ComparisonSample(timestamp=now, speed=max(0.0, driver.speed_kmh), km=driver.km))
            updated = True
        if not updated:
            return self._points

        cutoff = now - self._window_seconds
        for samples in self._samples.values():
            while samples and samples[0].timestamp < cutoff:
                samples.popleft()

        self._points = self._build_series(now)
        return self._points

    def _build_series(self, now: float) -> tuple[ComparisonPoint, ...]:
        series_a = list(self._samples[self.code_a])
        series_b = list(self._samples[self.code_b])
        t0 = min(series_a[0].timestamp if series_a else now, series_b[0].timestamp if series_b else now)
        buckets = np.arange(t0, now + 1e-9, self._step_seconds)

        def resample(series: list[ComparisonSample]) -> tuple[np.ndarray, np.ndarray]:
            if not series:
                zeros = np.zeros(len(buckets))
                return zeros, zeros
            times = np.array([s.timestamp for s in series])
            idx = _nearest_indices(times, buckets)
            speeds = np.array([s.speed for s in series])[idx]
            kms = np.array([s.km for s in series])[idx]
            return speeds, kms

        speeds_a, kms_a = resample(series_a)
        speeds_b, kms_b = resample(series_b)

        points: list[ComparisonPoint] = []
        for i, t in enumerate(buckets):
            speed_a = _round_half_up(float(speeds_a[i]))
            speed_b = _round_half_up(float(speeds_b[i]))
            points.append(
                ComparisonPoint(
                    timestamp=float(t),
                    speed_a=speed_a,
                    speed_b=speed_b,
                    delta_seconds=_delta_seconds(float(kms_a[i]), float(kms_b[i]), speed_a, speed_b),
                )
            )

        if not points:
            last_a = series_a[-1] if series_a else None
            last_b = series_b[-1] if series_b else None
            speed_a = _round_half_up(last_a.speed) if last_a else 0
            speed_b = _round_half_up(last_b.speed) if last_b else 0
            points.append(
                ComparisonPoint(
                    timestamp=now,
                    speed_a=speed_a,
                    speed_b=speed_b,
                    delta_seconds=_delta_seconds(
                        last_a.km if last_a else 0.0,
                        last_b.km if last_b else 0.0,
                        speed_a,
                        speed_b,
                    ),
                )
            )

        return tuple(points[-self._max_points :])

    def reset(self) -> None:
        for samples in self._samples.values():
            samples.clear()
        self._points = ()
