"""Shared fixtures, context and steps for BDD step definitions."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest
from pytest_bdd import parsers, then, when

from cli.main import build_orchestrator
from domain.models import Account, AppConfig, RunMode, RunSummary
from domain.services import Pacer
from infra.persistence import JsonFileResultLedger
from test.mocks import (
    FakeSessionDriver,
    FixedClock,
    InMemoryLogger,
    RecordingNotifier,
    SequentialIdGenerator,
)
from test.mocks.portal_scripts import apply_portal, report_portal

NOW = datetime(2025, 6, 1, 9, 30, tzinfo=timezone.utc)


@dataclass
class PortalContext:
    """Holds mutable state shared across BDD steps."""

    workdir: Path
    ledger: JsonFileResultLedger
    accounts: list[Account] = field(default_factory=list)
    issues: list[dict[str, Any]] = field(default_factory=list)
    rejected_logins: dict[str, str] = field(default_factory=dict)
    report_rows: list[dict[str, Any]] = field(default_factory=list)
    report_details: dict[int, dict[str, str]] = field(default_factory=dict)
    debug_mode: bool = False
    notifier: RecordingNotifier | None = None
    drivers: list[FakeSessionDriver] = field(default_factory=list)
    logger: InMemoryLogger = field(default_factory=InMemoryLogger)
    summary: RunSummary | None = None


@pytest.fixture()
def ctx(tmp_path: Path) -> PortalContext:
    return PortalContext(workdir=tmp_path, ledger=JsonFileResultLedger(str(tmp_path / "application-results.json")))


def make_account(username: str, target: str | None = None) -> Account:
    return Account(
        username=username,
        password="secret-pass",
        dp_name="NABIL BANK LIMITED",
        transaction_pin="1234",
        applied_kitta=10,
        target_issue_name=target,
    )


def run_mode(ctx: PortalContext, mode: RunMode) -> None:
    """Execute a full run synchronously against scripted portal drivers."""
    config = AppConfig(
        debug_mode=ctx.debug_mode,
        artifacts_dir=str(ctx.workdir / "screenshots"),
        ledger_path=str(ctx.ledger.path),
    )
    pending = list(ctx.accounts)

    def _next_driver() -> FakeSessionDriver:
        account = pending.pop(0)
        if mode is RunMode.RECONCILE:
            driver = report_portal(ctx.report_rows, ctx.report_details)
        else:
            driver = apply_portal(ctx.issues)
        rejection = ctx.rejected_logins.get(account.username)
        if rejection:
            driver.timeouts.add("dashboard.indicator")
            driver.fields["login.error"] = rejection
        ctx.drivers.append(driver)
        return driver

    orchestrator = build_orchestrator(
        config,
        ledger=ctx.ledger,
        logger=ctx.logger,
        clock=FixedClock(NOW),
        id_generator=SequentialIdGenerator(),
        driver_factory=_next_driver,
        notifier=ctx.notifier,
        pacer=Pacer.disabled(),
    )
    ctx.summary = asyncio.run(orchestrator.execute(ctx.accounts, mode))


# -- Shared steps -------------------------------------------------------------


@when(parsers.parse('the run is executed in "{mode}" mode'))
def when_run(ctx: PortalContext, mode: str) -> None:
    run_mode(ctx, RunMode(mode))


@then(parsers.parse("the exit status is {status:d}"))
def then_exit_status(ctx: PortalContext, status: int) -> None:
    assert ctx.summary is not None
    assert int(ctx.summary.exit_status) == status
