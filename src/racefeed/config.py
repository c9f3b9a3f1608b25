"""Client configuration for racefeed."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from racefeed._constants import (
    DEFAULT_GEOMETRY_BASE_URL,
    DEFAULT_WS_URL,
    VIRTUAL_CANVAS_SIZE,
)
from racefeed.exceptions import RaceFeedConfigError


def _env_float(value: str | None) -> float | None:
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise RaceFeedConfigError(f"Expected a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class FeedConfig:
    """Client configuration.

    Parameters
    ----------
    ws_url : str
        Websocket endpoint of the race feed.
    circuit : str or None
        Circuit identifier (e.g. ``"monaco"``). Used for the lap length
        lookup and the track geometry. ``None`` puts lap-fraction
        computation in degraded mode.
    geometry_base_url : str
        Base URL serving ``<locator>.geojson`` circuit outlines.
    top_n : int
        Number of drivers in the top-by-progress list.
    canvas_width, canvas_height : float
        Virtual canvas the track projection is fitted to.
    bounds_padding : float
        Margin added around the projected track bounds.
    metrics_window_seconds : float
        Lookback horizon of the rolling metrics estimator.
    comparison_window_seconds : float
        Lookback horizon of the speed comparison series.
    comparison_step_seconds : float
        Bucket width of the speed comparison series.
    comparison_max_points : int
        Maximum number of retained comparison points.
    render_interval : float
        Seconds between coalesced view deliveries (one render frame).
    heartbeat : float or None
        Websocket ping interval; ``None`` disables heartbeats.
    request_timeout : float
        Timeout in seconds for geometry document fetches.
    """

    ws_url: str = DEFAULT_WS_URL
    circuit: str | None = None
    geometry_base_url: str = DEFAULT_GEOMETRY_BASE_URL
    top_n: int = 5
    canvas_width: float = VIRTUAL_CANVAS_SIZE
    canvas_height: float = VIRTUAL_CANVAS_SIZE
    bounds_padding: float = 20.0
    metrics_window_seconds: float = 4.0
    comparison_window_seconds: float = 12.0
    comparison_step_seconds: float = 0.3
    comparison_max_points: int = 400
    render_interval: float = 1 / 60
    heartbeat: float | None = None
    request_timeout: float = 10.0

    def __post_init__(self) -> None:
        if not self.ws_url.strip():
            raise RaceFeedConfigError("ws_url must be non-empty")
        if self.top_n < 1:
            raise RaceFeedConfigError("top_n must be at least 1")
        if self.canvas_width <= 0 or self.canvas_height <= 0:
            raise RaceFeedConfigError("canvas size must be positive")
        for name in ("metrics_window_seconds", "comparison_window_seconds", "comparison_step_seconds"):
            if getattr(self, name) <= 0:
                raise RaceFeedConfigError(f"{name} must be positive")
        if self.comparison_max_points < 1:
            raise RaceFeedConfigError("comparison_max_points must be at least 1")
        if self.render_interval < 0:
            raise RaceFeedConfigError("render_interval must not be negative")

    @property
    def canvas_size(self) -> tuple[float, float]:
        return (self.canvas_width, self.canvas_height)

    @classmethod
    def from_env(cls, **overrides: Any) -> FeedConfig:
        """Create configuration from environment variables.

        Reads optional ``RACEFEED_*`` variables. Explicit keyword
        arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        FeedConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "RACEFEED_WS_URL": "ws_url",
            "RACEFEED_CIRCUIT": "circuit",
            "RACEFEED_GEOMETRY_BASE_URL": "geometry_base_url",
        }
        _ENV_FLOAT_MAP = {
            "RACEFEED_METRICS_WINDOW": "metrics_window_seconds",
            "RACEFEED_COMPARISON_WINDOW": "comparison_window_seconds",
            "RACEFEED_RENDER_INTERVAL": "render_interval",
            "RACEFEED_HEARTBEAT": "heartbeat",
            "RACEFEED_REQUEST_TIMEOUT": "request_timeout",
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None and val.strip():
                config_kwargs[field_name] = val.strip()

        for env_key, field_name in _ENV_FLOAT_MAP.items():
            parsed = _env_float(env.get(env_key))
            if parsed is not None:
                config_kwargs[field_name] = parsed

        # top_n is an int, handle separately
        top_n_env = env.get("RACEFEED_TOP_N")
        if top_n_env is not None and "top_n" not in overrides:
            try:
                config_kwargs["top_n"] = int(top_n_env)
            except ValueError as exc:
                raise RaceFeedConfigError(f"RACEFEED_TOP_N must be an integer, got {top_n_env!r}") from exc

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
