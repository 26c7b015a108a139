from __future__ import annotations

from abc import abstractmethod
from datetime import datetime
from typing import Any, Callable, Mapping, Protocol, Sequence, runtime_checkable

from domain.models import (
    Account,
    LedgerEntry,
    RunContext,
    SelectOption,
    WorkflowResult,
)


@runtime_checkable
class SessionDriverPort(Protocol):
    """
    Effectful accessor for one isolated browsing session.

    Element references are logical names such as ``"login.username"`` or
    ``"asba.company_list"``; the concrete adapter owns the mapping to real
    selectors, so services never handle markup.  Every wait is bounded and
    raises ``NavigationTimeout`` on expiry.
    """

    async def open(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def navigate(self, url: str, *, timeout_ms: int | None = None) -> None:
        ...

    async def wait_for(self, ref: str, timeout_ms: int) -> None:
        ...

    async def is_present(self, ref: str) -> bool:
        ...

    async def read_field(self, ref: str) -> str:
        ...

    async def set_field(self, ref: str, value: str) -> None:
        ...

    async def click(self, ref: str, *, row: int | None = None) -> None:
        ...

    async def select_option(self, ref: str, value: str) -> None:
        ...

    async def read_options(self, ref: str) -> list[SelectOption]:
        ...

    async def read_rows(self, ref: str) -> list[dict[str, Any]]:
        ...

    async def read_labeled_values(self, ref: str) -> dict[str, str]:
        ...

    async def screenshot(self, label: str) -> bytes:
        ...


SessionDriverFactory = Callable[[], SessionDriverPort]


@runtime_checkable
class ResultLedgerPort(Protocol):
    """Durable per-account store of outcome records."""

    @abstractmethod
    def load(self) -> dict[str, LedgerEntry]:
        ...

    @abstractmethod
    def save(self, snapshot: Mapping[str, LedgerEntry]) -> None:
        ...


@runtime_checkable
class NotifierPort(Protocol):
    """Fire-and-forget outbound message about a finished run."""

    async def notify_batch(self, results: Sequence[WorkflowResult]) -> None:
        ...


@runtime_checkable
class AccountWorkflowPort(Protocol):
    """Per-account unit of work driven by the orchestrator."""

    async def run(
        self,
        *,
        driver: SessionDriverPort,
        account: Account,
        run_context: RunContext,
    ) -> WorkflowResult:
        ...


@runtime_checkable
class DebugArtifactStorePort(Protocol):
    """Storage for screenshots captured while a run executes."""

    @abstractmethod
    def ensure_run_directory(self, run_context: RunContext) -> str:
        ...

    @abstractmethod
    def save_screenshot(
        self,
        run_context: RunContext,
        step_name: str,
        image_bytes: bytes,
    ) -> str:
        ...


@runtime_checkable
class ClockPort(Protocol):
    """Time source for deterministic and easily testable code."""

    def now(self) -> datetime:
        ...


@runtime_checkable
class IdGeneratorPort(Protocol):
    """Generation of stable identifiers for runs."""

    def new_run_id(self) -> str:
        ...


@runtime_checkable
class LoggerPort(Protocol):
    """Structured, testable logging abstraction."""

    def info(self, message: str, **fields: Any) -> None:
        ...

    def warning(self, message: str, **fields: Any) -> None:
        ...

    def error(self, message: str, **fields: Any) -> None:
        ...


__all__ = [
    "SessionDriverPort",
    "SessionDriverFactory",
    "ResultLedgerPort",
    "NotifierPort",
    "AccountWorkflowPort",
    "DebugArtifactStorePort",
    "ClockPort",
    "IdGeneratorPort",
    "LoggerPort",
]
