from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from domain.utils import sanitize


class StructuredLogger:
    """
    Emits one JSON object per line to stdout.

    With ``mask_sensitive`` on, field values pass through ``sanitize`` so
    credentials never reach the output.  When ``log_file`` is set every line
    is also appended to that file.
    """

    def __init__(self, *, mask_sensitive: bool = True, log_file: str | None = None) -> None:
        self._mask_sensitive = mask_sensitive
        self._log_file = Path(log_file) if log_file else None
        if self._log_file is not None:
            self._log_file.parent.mkdir(parents=True, exist_ok=True)

    def info(self, message: str, **fields: Any) -> None:
        self._emit("info", message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._emit("warning", message, fields)

    def error(self, message: str, **fields: Any) -> None:
        self._emit("error", message, fields)

    def _emit(self, level: str, message: str, fields: dict[str, Any]) -> None:
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "message": message,
            "fields": sanitize(fields) if self._mask_sensitive else fields,
        }
        line = json.dumps(payload, sort_keys=True, default=str)
        print(line)
        if self._log_file is not None:
            with self._log_file.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
