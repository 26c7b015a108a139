"""
Reusable fakes and in-memory implementations for tests.
"""

from .fake_notifier import RecordingNotifier
from .fake_result_ledger import InMemoryResultLedger
from .fake_runtime import (
    FixedClock,
    InMemoryDebugArtifactStore,
    InMemoryLogger,
    SequentialIdGenerator,
)
from .fake_session_driver import FakeSessionDriver
from .scripted_workflow import ScriptedWorkflow

__all__ = [
    "FakeSessionDriver",
    "InMemoryResultLedger",
    "RecordingNotifier",
    "ScriptedWorkflow",
    "FixedClock",
    "SequentialIdGenerator",
    "InMemoryLogger",
    "InMemoryDebugArtifactStore",
]
