"""Telemetry Port Interface.

Contract: Log structured events. log(event, **fields).
"""

from __future__ import annotations

from typing import Any, Protocol


class Telemetry(Protocol):
    def log(self, event: str, **fields: Any) -> None: ...

    """
    Record a named event with structured fields. Implementations decide
    where the record goes (file, log stream, memory).
    """
