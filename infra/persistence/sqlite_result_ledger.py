from __future__ import annotations

import json
import sqlite3
from typing import Mapping

from domain.models import LedgerEntry
from infra.persistence._outcome_codec import entry_from_dict, entry_to_dict


class SQLiteResultLedger:
    """
    SQLite-backed implementation of ``ResultLedgerPort``.

    One row per account holds the serialized application list; ``save``
    replaces the table contents in a single transaction.  The database is
    opened on first use, and a file that is not a readable database loads
    as an empty snapshot.
    """

    _SCHEMA_SQL = """\
    CREATE TABLE IF NOT EXISTS account_results (
        account_id   TEXT PRIMARY KEY,
        last_updated TEXT NOT NULL,
        applications TEXT NOT NULL
    );
    """

    def __init__(self, db_path: str = ":memory:") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def load(self) -> dict[str, LedgerEntry]:
        try:
            rows = self._connection().execute(
                "SELECT account_id, last_updated, applications FROM account_results ORDER BY account_id",
            ).fetchall()
        except sqlite3.DatabaseError:
            return {}
        snapshot: dict[str, LedgerEntry] = {}
        for account_id, last_updated, applications in rows:
            try:
                items = json.loads(applications)
            except (json.JSONDecodeError, TypeError):
                items = []
            entry = entry_from_dict({"lastUpdated": last_updated, "applications": items})
            if entry is not None:
                snapshot[str(account_id)] = entry
        return snapshot

    def save(self, snapshot: Mapping[str, LedgerEntry]) -> None:
        conn = self._connection()
        with conn:
            conn.execute("DELETE FROM account_results")
            conn.executemany(
                "INSERT INTO account_results (account_id, last_updated, applications) VALUES (?, ?, ?)",
                [self._entry_to_row(account_id, entry) for account_id, entry in snapshot.items()],
            )

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # -- helpers ------------------------------------------------------------

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            conn = sqlite3.connect(self._db_path)
            try:
                conn.execute("PRAGMA journal_mode=WAL")
                conn.executescript(self._SCHEMA_SQL)
            except sqlite3.DatabaseError:
                conn.close()
                raise
            self._conn = conn
        return self._conn

    @staticmethod
    def _entry_to_row(account_id: str, entry: LedgerEntry) -> tuple[str, str, str]:
        document = entry_to_dict(entry)
        return (account_id, entry.last_updated, json.dumps(document["applications"]))
