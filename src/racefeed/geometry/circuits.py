"""Static circuit lookups: geometry locators and lap lengths."""

from __future__ import annotations

from racefeed._constants import (
    CIRCUIT_LOCATORS,
    DEFAULT_GEOMETRY_BASE_URL,
    DEFAULT_LAP_LENGTH_KM,
    LAP_LENGTHS_KM,
)


def resolve_locator(track_id: str) -> str:
    """Map a circuit identifier or alias to its geometry locator.

    Unknown identifiers fall back to the lower-cased identifier itself.
    """
    key = track_id.strip().lower()
    return CIRCUIT_LOCATORS.get(key, key)


def geometry_url(track_id: str, base_url: str = DEFAULT_GEOMETRY_BASE_URL) -> str:
    return f"{base_url.rstrip('/')}/{resolve_locator(track_id)}.geojson"


def lap_length_km(circuit: str) -> float:
    """Lap length for *circuit*, or the default length when unknown."""
    return LAP_LENGTHS_KM.get(circuit.strip().lower(), DEFAULT_LAP_LENGTH_KM)
