from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Any, Mapping, Sequence


class RunMode(str, Enum):
    """What the orchestrator drives for every configured account."""

    APPLY = "apply"
    RECONCILE = "reconcile"


class ExitStatus(IntEnum):
    """Process exit codes derived from a run's aggregate outcome."""

    OK = 0
    PARTIAL = 1
    FATAL = 2


@dataclass(frozen=True)
class Account:
    """
    One credential/target set, already normalized from its raw JSON form.

    Field aliases are resolved by the config loader; services only ever
    see this canonical shape.
    """

    username: str
    password: str
    dp_name: str
    transaction_pin: str
    applied_kitta: int
    target_issue_name: str | None = None
    crn_number: str = ""


@dataclass(frozen=True)
class Timeouts:
    """Bounded wait durations in milliseconds."""

    short_ms: int = 5_000
    medium_ms: int = 15_000
    long_ms: int = 30_000
    extra_long_ms: int = 60_000


DEFAULT_TERMINAL_STATUSES: tuple[str, ...] = ("Not Alloted", "Not Allotted", "Rejected")


@dataclass(frozen=True)
class AppConfig:
    """Run-wide configuration loaded once from config.json."""

    headless: bool = True
    debug_mode: bool = False
    base_url: str = "https://meroshare.cdsc.com.np"
    navigation_timeout_ms: int = 60_000
    browser_timeout_ms: int = 30_000
    screenshot_on_error: bool = True
    action_delay_min_ms: int = 500
    action_delay_max_ms: int = 2_000
    account_delay_min_ms: int = 3_000
    account_delay_max_ms: int = 5_000
    viewport_width: int = 1920
    viewport_height: int = 1080
    user_agent: str | None = None
    mask_sensitive_logs: bool = True
    log_file: str | None = "logs/combined.log"
    notification_enabled: bool = False
    notification_webhook_url: str | None = None
    bot_token: str | None = None
    telegram_chat_id: str | None = None
    ledger_backend: str = "json"
    ledger_path: str = "logs/application-results.json"
    artifacts_dir: str = "screenshots"
    terminal_statuses: Sequence[str] = field(default_factory=lambda: DEFAULT_TERMINAL_STATUSES)
    timeouts: Timeouts = field(default_factory=Timeouts)

    @property
    def login_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/#/login"

    @property
    def asba_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/#/asba"


@dataclass(frozen=True)
class RunContext:
    """
    Per-account context handed to a workflow.

    The log directory is an abstract path; infra decides how it maps
    to the real filesystem.
    """

    run_id: str
    mode: RunMode = RunMode.APPLY
    account_label: str = ""
    is_debug: bool = False
    log_directory: str | None = None


@dataclass(frozen=True)
class IssueSummary:
    """One row of the ASBA issue list (or the application report list)."""

    index: int
    name: str
    share_type: str = ""
    group: str = ""
    sub_group: str = ""
    can_apply: bool = False


@dataclass(frozen=True)
class OutcomeRecord:
    """
    Tracked outcome of one application for one account.

    ``company_name`` is the unique key within an account's record list.
    """

    company_name: str
    status: str = ""
    is_alloted: bool = False
    share_type: str = ""
    group: str = ""
    applied_qty: int = 0
    alloted_qty: int = 0
    price_per_share: float = 0.0
    amount: float = 0.0
    submitted_date: str = ""
    issue_open_date: str = ""
    issue_close_date: str = ""
    bank: str = ""
    branch: str = ""
    account_number: str = ""
    min_qty: int = 0
    max_qty: int = 0
    remarks: str = ""
    scraped_at: str | None = None


@dataclass(frozen=True)
class LedgerEntry:
    """Persisted state of one account inside the result ledger."""

    last_updated: str
    items: tuple[OutcomeRecord, ...] = ()


@dataclass(frozen=True)
class AllotmentChange:
    record: OutcomeRecord
    previous_qty: int

    @property
    def company_name(self) -> str:
        return self.record.company_name

    @property
    def alloted_qty(self) -> int:
        return self.record.alloted_qty


@dataclass(frozen=True)
class ChangeSet:
    """Diff between a freshly scraped batch and the previously persisted state."""

    new_allotments: tuple[OutcomeRecord, ...] = ()
    updated_allotments: tuple[AllotmentChange, ...] = ()
    new_applications: tuple[OutcomeRecord, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.new_allotments or self.updated_allotments or self.new_applications)


@dataclass(frozen=True)
class ReconcileSummary:
    total: int
    alloted: int
    total_shares: int

    @classmethod
    def of(cls, records: Sequence[OutcomeRecord]) -> "ReconcileSummary":
        alloted = [r for r in records if r.is_alloted]
        return cls(
            total=len(records),
            alloted=len(alloted),
            total_shares=sum(r.alloted_qty for r in alloted),
        )


@dataclass(frozen=True)
class WorkflowResult:
    """Outcome of one account's workflow run."""

    account: str
    dp_name: str
    success: bool
    timestamp: datetime
    message: str | None = None
    error: str | None = None
    error_kind: str | None = None
    reference_id: str | None = None
    skipped: bool = False
    details: Mapping[str, Any] = field(default_factory=dict)
    outcomes: tuple[OutcomeRecord, ...] = ()
    changes: ChangeSet | None = None
    summary: ReconcileSummary | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))


@dataclass(frozen=True)
class RunSummary:
    """Aggregate of a whole run across all accounts."""

    results: tuple[WorkflowResult, ...]
    exit_status: ExitStatus

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)


@dataclass(frozen=True)
class SelectOption:
    """An option of a native ``<select>`` element."""

    value: str
    text: str


__all__ = [
    "RunMode",
    "ExitStatus",
    "Account",
    "Timeouts",
    "DEFAULT_TERMINAL_STATUSES",
    "AppConfig",
    "RunContext",
    "IssueSummary",
    "OutcomeRecord",
    "LedgerEntry",
    "AllotmentChange",
    "ChangeSet",
    "ReconcileSummary",
    "WorkflowResult",
    "RunSummary",
    "SelectOption",
]
