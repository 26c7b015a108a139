from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Mapping

from domain.models import LedgerEntry
from infra.persistence._outcome_codec import entry_from_dict, entry_to_dict


class JsonFileResultLedger:
    """
    JSON-file implementation of ``ResultLedgerPort``.

    The document maps each account username to
    ``{"lastUpdated": ..., "applications": [...]}``.  A missing or unreadable
    file loads as an empty snapshot; saves replace the whole file atomically.
    """

    def __init__(self, path: str = "logs/application-results.json") -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, LedgerEntry]:
        if not self._path.is_file():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError, UnicodeDecodeError):
            return {}
        if not isinstance(data, dict):
            return {}
        snapshot: dict[str, LedgerEntry] = {}
        for account_id, raw in data.items():
            entry = entry_from_dict(raw)
            if entry is not None:
                snapshot[str(account_id)] = entry
        return snapshot

    def save(self, snapshot: Mapping[str, LedgerEntry]) -> None:
        document = {account_id: entry_to_dict(entry) for account_id, entry in snapshot.items()}
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(document, handle, indent=2)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
