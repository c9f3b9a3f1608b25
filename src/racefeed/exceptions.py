"""Custom exception hierarchy for racefeed."""

from __future__ import annotations


class RaceFeedError(Exception):
    """Base exception for all racefeed errors."""


class RaceFeedConfigError(RaceFeedError):
    """Invalid or missing configuration."""


class MalformedMessageError(RaceFeedError):
    """A feed frame could not be decoded into a known message.

    Never raised to callers; carried inside
    :class:`racefeed.ingestion.decode.ParseFailure` instead.
    """


class FeedTransportError(RaceFeedError):
    """Websocket-level failure (connect refused, protocol error, abnormal close)."""

    def __init__(self, message: str, *, url: str = "") -> None:
        self.url = url
        super().__init__(message)


class ServerReportedError(RaceFeedError):
    """The feed sent an explicit ``error``-typed message."""


class GeometryError(RaceFeedError):
    """Base for track geometry pipeline failures."""


class GeometryFetchError(GeometryError):
    """Geometry document could not be fetched (network failure or non-200)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class GeometryParseError(GeometryError):
    """Geometry document body is not valid JSON."""


class UnsupportedGeometryError(GeometryError):
    """Document is neither a geometry, a feature nor a feature collection."""


class NoDrawablePathError(GeometryError):
    """Normalisation produced zero drawable paths (e.g. points only)."""
