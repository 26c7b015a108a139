"""File and SQLite persistence adapters for the result ledger port."""

from .json_result_ledger import JsonFileResultLedger
from .sqlite_result_ledger import SQLiteResultLedger

__all__ = [
    "JsonFileResultLedger",
    "SQLiteResultLedger",
]
