"""Driver state store.

This is the only component allowed to merge inbound feed messages.
"""

from __future__ import annotations

import logging

from racefeed.ingestion.decode import Decoded, DecodeResult
from racefeed.models.messages import (
    ErrorMessage,
    FeedMessage,
    InfoMessage,
    LeaderboardMessage,
    PredictionMessage,
    TelemetryMessage,
)
from racefeed.state.policy import apply_rank, merge_telemetry
from racefeed.state.snapshot import RaceSnapshot

_logger = logging.getLogger(__name__)


def reduce_snapshot(snapshot: RaceSnapshot, message: FeedMessage) -> RaceSnapshot:
    """Pure reducer: ``(snapshot, message) -> snapshot``.

    Returns the input object unchanged when the message has no effect.
    """
    if isinstance(message, TelemetryMessage):
        drivers = dict(snapshot.drivers)
        drivers[message.driver] = merge_telemetry(drivers.get(message.driver), message)
        return snapshot.model_copy(update={"drivers": drivers})

    if isinstance(message, LeaderboardMessage):
        if not message.data:
            return snapshot
        drivers = dict(snapshot.drivers)
        for entry in message.data:
            drivers[entry.code] = apply_rank(drivers.get(entry.code), entry.code, entry.position)
        return snapshot.model_copy(update={"drivers": drivers})

    if isinstance(message, PredictionMessage):
        payload = message.data
        if payload is None or payload.predictions is None:
            return snapshot
        return snapshot.model_copy(
            update={
                "predictions": tuple(payload.predictions),
                "prediction_mae_seconds": payload.mae_seconds,
            }
        )

    if isinstance(message, ErrorMessage):
        return snapshot.model_copy(update={"error": message.text})

    if isinstance(message, InfoMessage):
        return snapshot

    return snapshot


class DriverStateStore:
    """In-memory store for the reconciled race snapshot.

    The store is deterministic: given the same sequence of messages it
    produces the same snapshot, and replaying an identical message leaves
    the snapshot (and ``revision``) unchanged.
    """

    def __init__(
        self,
        snapshot: RaceSnapshot | None = None,
        *,
        logger: logging.Logger | None = None,
    ) -> None:
        self._snapshot = snapshot if snapshot is not None else RaceSnapshot()
        self._revision = 0
        self._logger = logger or _logger

    @property
    def snapshot(self) -> RaceSnapshot:
        return self._snapshot

    @property
    def revision(self) -> int:
        """Incremented each time the snapshot actually changes."""
        return self._revision

    def apply(self, message: FeedMessage) -> RaceSnapshot:
        """Apply a decoded message and return the resulting snapshot."""
        updated = reduce_snapshot(self._snapshot, message)
        if updated is not self._snapshot and updated != self._snapshot:
            self._snapshot = updated
            self._revision += 1
            self._logger.debug(
                "Applied %s message revision=%d drivers=%d",
                message.type,
                self._revision,
                len(updated.drivers),
            )
        return self._snapshot

    def apply_result(self, result: DecodeResult) -> RaceSnapshot:
        """Apply a decoder result; a parse failure is a no-op."""
        if isinstance(result, Decoded):
            return self.apply(result.message)
        return self._snapshot

    def clear_error(self) -> RaceSnapshot:
        if self._snapshot.error is not None:
            self._snapshot = self._snapshot.model_copy(update={"error": None})
            self._revision += 1
        return self._snapshot
