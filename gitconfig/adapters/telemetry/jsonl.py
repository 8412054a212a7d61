"""JSON Lines Telemetry adapter.

Implements the Telemetry port by appending structured JSON objects (one per
line) to a file on disk.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

from gitconfig.adapters.clock import SystemClock
from gitconfig.core.utility import REDACTED, redact_uri
from gitconfig.ports.clock import Clock


class JsonlTelemetry:
    _REDACTION_TOKEN = REDACTED
    _DEFAULT_SECRET_KEYS = frozenset(
        {
            "password",
            "secret",
            "token",
            "auth_token",
            "private_key",
        }
    )

    def __init__(
        self,
        session_id: str,
        sink_path: Path,
        clock: Optional[Clock] = None,
        secret_keys: Iterable[str] = _DEFAULT_SECRET_KEYS,
    ) -> None:
        self._session_id = str(session_id)
        self._sink_path = sink_path if isinstance(sink_path, Path) else Path(sink_path)
        self._clock = clock if clock is not None else SystemClock()
        self._secret_keys = frozenset([secret_keys] if isinstance(secret_keys, str) else secret_keys)

    def log(self, event: str, **fields) -> None:
        if not event or not event.strip():
            raise ValueError("Telemetry event name must be a non-empty string")

        sanitized_fields, redacted = self._sanitize_fields(fields)

        record: dict[str, Any] = {
            "event": event,
            "ts_utc": self._clock.now().isoformat(),
            "session_id": self._session_id,
            **sanitized_fields,
        }
        if redacted:
            record["redacted_fields"] = sorted(redacted)

        self._write_record(record)

    def _sanitize_fields(self, fields: Mapping[str, Any]) -> tuple[dict[str, Any], set[str]]:
        sanitized: dict[str, Any] = {}
        redacted: set[str] = set()
        for key, value in fields.items():
            if key in self._secret_keys:
                sanitized[key] = self._REDACTION_TOKEN
                redacted.add(key)
            elif key.endswith("uri") and isinstance(value, str):
                # credentials embedded in clone URIs
                sanitized[key] = redact_uri(value)
            else:
                sanitized[key] = value

        return sanitized, redacted

    def _write_record(self, record: Mapping[str, Any]) -> None:
        payload = json.dumps(
            record, sort_keys=True, separators=(",", ":"), ensure_ascii=True, default=str
        )
        self._sink_path.parent.mkdir(parents=True, exist_ok=True)
        with self._sink_path.open("a", encoding="utf-8") as handle:
            handle.write(payload + "\n")
