"""Ingestion layer.

Turns raw feed frames into typed messages. Nothing here touches state; the
state/store layer is the only place messages are merged.
"""

__all__: list[str] = []
