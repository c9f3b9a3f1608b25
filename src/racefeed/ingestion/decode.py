"""Feed frame decoder.

Decoding never raises. A frame either becomes a :class:`Decoded` message or a
:class:`ParseFailure`; callers branch on the variant and treat a failure as a
no-op, so garbled or partial frames cannot disturb reconciliation.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from pydantic import ValidationError

from racefeed._redact import summarize_for_log
from racefeed.exceptions import MalformedMessageError
from racefeed.models.messages import FEED_MESSAGE_ADAPTER, FeedMessage

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decoded:
    """A successfully decoded feed message."""

    message: FeedMessage


@dataclass(frozen=True)
class ParseFailure:
    """A frame that could not be decoded, with the reason."""

    error: MalformedMessageError
    raw: str

    @property
    def reason(self) -> str:
        return str(self.error)


DecodeResult = Decoded | ParseFailure


def decode_frame(raw: str | bytes | bytearray) -> DecodeResult:
    """Decode one websocket frame into a typed message."""
    if isinstance(raw, (bytes, bytearray)):
        try:
            text = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as exc:
            return _failure(f"Frame is not UTF-8: {exc}", repr(raw[:64]))
    else:
        text = raw

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        return _failure(f"Frame is not JSON: {exc.msg}", text)

    if not isinstance(parsed, dict):
        return _failure("Frame is not a JSON object", text)

    try:
        message = FEED_MESSAGE_ADAPTER.validate_python(parsed)
    except ValidationError as exc:
        return _failure(f"Unrecognised message ({exc.error_count()} validation errors)", text)

    return Decoded(message=message)


def _failure(reason: str, text: str) -> ParseFailure:
    _logger.debug("Dropping feed frame: %s raw=%s", reason, summarize_for_log(text, max_string=120))
    return ParseFailure(error=MalformedMessageError(reason), raw=text)
