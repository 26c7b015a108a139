"""Process-level runtime adapters: clock, run ids and the JSON-lines logger."""

from .structured_logger import StructuredLogger
from .system_clock import SystemClock
from .uuid_id_generator import UuidIdGenerator

__all__ = ["StructuredLogger", "SystemClock", "UuidIdGenerator"]
