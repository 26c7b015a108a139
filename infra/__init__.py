"""Infrastructure adapters – concrete implementations of domain ports."""

from .browser import PlaywrightSessionDriver
from .config import FileSystemConfigProvider
from .logs import FileSystemDebugArtifactStore
from .notifications import CompositeNotifier, WebhookNotifier
from .persistence import JsonFileResultLedger, SQLiteResultLedger
from .runtime import StructuredLogger, SystemClock, UuidIdGenerator
from .telegram import TelegramBotConfig, TelegramNotifier

__all__ = [
    "PlaywrightSessionDriver",
    "FileSystemConfigProvider",
    "FileSystemDebugArtifactStore",
    "CompositeNotifier",
    "WebhookNotifier",
    "JsonFileResultLedger",
    "SQLiteResultLedger",
    "SystemClock",
    "UuidIdGenerator",
    "StructuredLogger",
    "TelegramBotConfig",
    "TelegramNotifier",
]
