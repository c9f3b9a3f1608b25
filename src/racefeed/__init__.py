"""racefeed - Async Python client for live race telemetry feeds."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("racefeed")
except PackageNotFoundError:
    __version__ = "0+local"
from racefeed.client import RaceFeedClient, RaceView
from racefeed.config import FeedConfig
from racefeed.exceptions import (
    FeedTransportError,
    GeometryError,
    GeometryFetchError,
    GeometryParseError,
    MalformedMessageError,
    NoDrawablePathError,
    RaceFeedConfigError,
    RaceFeedError,
    ServerReportedError,
    UnsupportedGeometryError,
)
from racefeed.feed import ConnectionStatus, FeedClient
from racefeed.geometry.projector import ProjectorState, TrackGeometryProjector
from racefeed.geometry.track import PlacedMarker, TrackGeometry
from racefeed.metrics import DriverMetrics, RollingMetricsEstimator, SpeedComparison
from racefeed.models import (
    CarMarker,
    DriverState,
    LeaderboardRow,
    PredictionRow,
)
from racefeed.state.snapshot import RaceSnapshot
from racefeed.state.store import DriverStateStore

__all__ = [
    "__version__",
    "CarMarker",
    "ConnectionStatus",
    "DriverMetrics",
    "DriverState",
    "DriverStateStore",
    "FeedClient",
    "FeedConfig",
    "FeedTransportError",
    "GeometryError",
    "GeometryFetchError",
    "GeometryParseError",
    "LeaderboardRow",
    "MalformedMessageError",
    "NoDrawablePathError",
    "PlacedMarker",
    "PredictionRow",
    "ProjectorState",
    "RaceFeedClient",
    "RaceFeedConfigError",
    "RaceFeedError",
    "RaceSnapshot",
    "RaceView",
    "RollingMetricsEstimator",
    "ServerReportedError",
    "SpeedComparison",
    "TrackGeometry",
    "TrackGeometryProjector",
    "UnsupportedGeometryError",
]
