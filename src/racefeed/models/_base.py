"""Base model for racefeed wire and state models.

Every feed model inherits from :class:`RaceFeedBaseModel` which provides:

* immutability (``frozen=True``) so snapshots can be shared with the
  rendering layer without defensive copies
* tolerance for unknown keys (``extra="ignore"``); the simulator adds
  fields between releases
* a ``model_validator(mode="before")`` that strips placeholder values
  (``""``, ``"--"``, NaN) so the field default is used instead
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

# Placeholder strings the feed uses for "not available".
_SENTINELS = frozenset({"", "--", "NaN", "nan"})


class RaceFeedBaseModel(BaseModel):
    """Base for feed and state models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        """Drop ``None`` and placeholder values from *values* (one level deep)."""
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and value.strip() in _SENTINELS:
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_placeholders(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        return RaceFeedBaseModel._clean_dict(values)
