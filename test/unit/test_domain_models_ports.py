import asyncio
from datetime import datetime, timezone

import pytest

from domain import (
    Account,
    AccountWorkflowPort,
    AppConfig,
    AuthenticationError,
    ClockPort,
    ErrorKind,
    ExitStatus,
    FormValidationError,
    LedgerError,
    LoggerPort,
    NavigationTimeout,
    OutcomeRecord,
    RunContext,
    RunMode,
    SubmissionError,
    TargetNotFoundError,
    WorkflowResult,
)
from domain.errors import classify, profile_for
from domain.models import ReconcileSummary
from test.mocks import FixedClock, InMemoryLogger, ScriptedWorkflow

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


def test_run_context_defaults() -> None:
    ctx = RunContext(run_id="run-123")
    assert ctx.mode is RunMode.APPLY
    assert ctx.is_debug is False
    assert ctx.account_label == ""
    assert ctx.log_directory is None


def test_app_config_defaults_and_urls() -> None:
    config = AppConfig(base_url="https://portal.test/")
    assert config.login_url == "https://portal.test/#/login"
    assert config.asba_url == "https://portal.test/#/asba"
    assert config.headless is True
    assert (config.account_delay_min_ms, config.account_delay_max_ms) == (3000, 5000)
    assert config.timeouts.medium_ms == 15000


def test_account_is_immutable() -> None:
    account = Account(
        username="alice01",
        password="pw",
        dp_name="NABIL",
        transaction_pin="1234",
        applied_kitta=10,
    )
    with pytest.raises(AttributeError):
        account.applied_kitta = 20  # type: ignore[misc]


def test_workflow_result_details_are_read_only() -> None:
    details = {"issue": "Alpha"}
    result = WorkflowResult(account="ali****", dp_name="NABIL", success=True, timestamp=NOW, details=details)
    details["issue"] = "changed"

    assert result.details["issue"] == "Alpha"
    with pytest.raises(TypeError):
        result.details["issue"] = "Beta"  # type: ignore[index]


def test_exit_status_values() -> None:
    assert [int(s) for s in ExitStatus] == [0, 1, 2]


def test_reconcile_summary_counts_alloted_shares() -> None:
    summary = ReconcileSummary.of(
        [
            OutcomeRecord(company_name="A", is_alloted=True, alloted_qty=10),
            OutcomeRecord(company_name="B", is_alloted=True, alloted_qty=5),
            OutcomeRecord(company_name="C"),
        ]
    )
    assert (summary.total, summary.alloted, summary.total_shares) == (3, 2, 15)


@pytest.mark.parametrize(
    ("error", "kind", "code", "retryable"),
    [
        (AuthenticationError("x"), ErrorKind.AUTHENTICATION, "AUTH_001", False),
        (NavigationTimeout("x"), ErrorKind.NAVIGATION, "NAV_001", True),
        (TargetNotFoundError("x"), ErrorKind.TARGET_NOT_FOUND, "BIZ_001", False),
        (FormValidationError("x"), ErrorKind.VALIDATION, "VAL_001", False),
        (SubmissionError("x"), ErrorKind.SUBMISSION, "FORM_001", True),
        (LedgerError("x"), ErrorKind.LEDGER, "LED_001", False),
    ],
)
def test_error_classification(error, kind: ErrorKind, code: str, retryable: bool) -> None:
    assert classify(error) is kind
    assert error.code == code
    assert error.retryable is retryable
    assert profile_for(kind).code == code


def test_unclassified_errors_are_unknown() -> None:
    assert classify(RuntimeError("boom")) is ErrorKind.UNKNOWN
    assert profile_for(ErrorKind.UNKNOWN).category == "Unknown"


def test_error_kind_can_be_overridden_per_instance() -> None:
    err = SubmissionError("portal says no", kind=ErrorKind.VALIDATION)
    assert classify(err) is ErrorKind.VALIDATION
    assert err.message == "portal says no"


def test_fakes_conform_to_ports() -> None:
    clock = FixedClock(NOW)
    assert isinstance(clock, ClockPort)
    assert isinstance(InMemoryLogger(), LoggerPort)
    assert isinstance(ScriptedWorkflow(clock), AccountWorkflowPort)


def test_scripted_workflow_returns_success_result() -> None:
    workflow = ScriptedWorkflow(FixedClock(NOW))
    account = Account(username="alice01", password="pw", dp_name="NABIL", transaction_pin="1234", applied_kitta=10)

    result = asyncio.run(workflow.run(driver=None, account=account, run_context=RunContext(run_id="r")))

    assert result.success is True
    assert result.timestamp == NOW
