from __future__ import annotations

import re
from typing import Callable, Mapping

from domain.errors import NavigationTimeout
from domain.models import (
    Account,
    AppConfig,
    IssueSummary,
    OutcomeRecord,
    ReconcileSummary,
    RunContext,
    WorkflowResult,
)
from domain.ports import ClockPort, LoggerPort, SessionDriverPort
from domain.services.apply_workflow import parse_int
from domain.services.issue_matching import issues_from_rows
from domain.services.login import LoginService
from domain.services.pacing import Pacer
from domain.services.reconciliation import ReconciliationEngine
from domain.services.results import account_result
from domain.utils import normalize_label

_ALLOTED_PATTERN = re.compile(r"allot", re.IGNORECASE)


class ReportScrapeWorkflow:
    """
    Scrapes the application report for one account and reconciles it.

    Only entries without a finalized prior record are opened; a failure on
    one entry is logged and skipped so the rest of the batch still lands in
    the ledger.
    """

    def __init__(
        self,
        *,
        config: AppConfig,
        login: LoginService,
        engine: ReconciliationEngine,
        clock: ClockPort,
        logger: LoggerPort,
        pacer: Pacer,
    ) -> None:
        self._config = config
        self._login = login
        self._engine = engine
        self._clock = clock
        self._logger = logger
        self._pacer = pacer

    async def run(
        self,
        *,
        driver: SessionDriverPort,
        account: Account,
        run_context: RunContext,
    ) -> WorkflowResult:
        label = run_context.account_label
        await self._login.login(driver, account)
        await self._open_reports(driver)

        items = await self._list_items(driver)
        prior = self._engine.prior_records(account.username)
        selection = self._engine.select_items_needing_scrape(items, prior)
        self._logger.info(
            "report_items_selected",
            account=label,
            listed=len(items),
            cached=len(selection.cached),
            to_scrape=len(selection.to_scrape),
        )

        scraped: list[OutcomeRecord] = []
        for position, item in enumerate(selection.to_scrape, start=1):
            self._logger.info(
                "report_item_scraping",
                account=label,
                item=item.name,
                position=position,
                total=len(selection.to_scrape),
            )
            try:
                record = await self._scrape_item(driver, item)
            except Exception as exc:
                self._logger.warning(
                    "report_item_failed",
                    account=label,
                    item=item.name,
                    error=str(exc),
                )
                record = None
            if record is not None:
                scraped.append(record)
                self._logger.info("report_item_scraped", account=label, item=item.name, status=record.status)
            try:
                await self._return_to_list(driver)
            except NavigationTimeout as exc:
                # Nothing further can be opened; keep what was collected.
                self._logger.warning(
                    "report_list_unavailable",
                    account=label,
                    error=str(exc),
                    remaining=len(selection.to_scrape) - position,
                )
                break

        batch = [*selection.cached, *scraped]
        outcome = self._engine.reconcile(account.username, batch)
        self._engine.persist(account.username, outcome.merged)

        summary = ReconcileSummary.of(batch)
        self._logger.info(
            "report_reconciled",
            account=label,
            total=summary.total,
            alloted=summary.alloted,
            new_allotments=len(outcome.changes.new_allotments),
            updated_allotments=len(outcome.changes.updated_allotments),
            new_applications=len(outcome.changes.new_applications),
        )
        return account_result(
            account,
            self._clock,
            message=f"Scraped {len(batch)} application(s)",
            outcomes=tuple(batch),
            changes=outcome.changes,
            summary=summary,
        )

    async def _open_reports(self, driver: SessionDriverPort) -> None:
        timeouts = self._config.timeouts
        try:
            await driver.navigate(self._config.asba_url, timeout_ms=timeouts.extra_long_ms)
            await driver.wait_for("asba.page", timeouts.long_ms)
            await self._pacer.pause(2_000, 2_000)
            if not await driver.is_present("asba.report_tab"):
                raise NavigationTimeout("Could not find Application Report tab")
            await driver.click("asba.report_tab")
            await driver.wait_for("report.company_list", timeouts.long_ms)
            await self._pacer.pause(2_000, 2_000)
        except Exception as exc:
            raise NavigationTimeout(f"Failed to navigate to reports: {exc}") from exc

    async def _list_items(self, driver: SessionDriverPort) -> list[IssueSummary]:
        rows = await driver.read_rows("report.company_list")
        return issues_from_rows(rows)

    async def _scrape_item(self, driver: SessionDriverPort, item: IssueSummary) -> OutcomeRecord | None:
        await driver.click("report.open_button", row=item.index)
        try:
            await driver.wait_for("report.detail", self._config.timeouts.medium_ms)
        except NavigationTimeout:
            self._logger.warning("report_detail_not_loaded", item=item.name)
            return None

        await self._pacer.pause(1_500, 1_500)
        values = await driver.read_labeled_values("report.detail")
        return build_outcome_record(
            item,
            values,
            scraped_at=self._clock.now().isoformat(),
            is_terminal=self._engine.is_terminal_status,
        )

    async def _return_to_list(self, driver: SessionDriverPort) -> None:
        """Go back to the report listing, re-opening the report tab if Back fails."""
        try:
            if await driver.is_present("report.back"):
                await driver.click("report.back")
                await driver.wait_for("report.company_list", self._config.timeouts.medium_ms)
                await self._pacer.pause(1_000, 1_000)
                return
        except Exception as exc:
            self._logger.warning("report_back_failed", error=str(exc))
        await self._open_reports(driver)


def build_outcome_record(
    item: IssueSummary,
    values: Mapping[str, str],
    *,
    scraped_at: str | None,
    is_terminal: Callable[[str], bool],
) -> OutcomeRecord:
    lookup = _LabelLookup(values)
    status = lookup("Status")
    is_alloted = (
        bool(_ALLOTED_PATTERN.search(status))
        and not is_terminal(status)
        and not normalize_label(status).startswith("not ")
    )
    return OutcomeRecord(
        company_name=item.name,
        share_type=item.share_type,
        group=item.group,
        status=status,
        is_alloted=is_alloted,
        applied_qty=parse_int(lookup("Applied Quantity")),
        alloted_qty=parse_int(lookup("Alloted Quantity")) if is_alloted else 0,
        price_per_share=_parse_float(lookup("Price per Share")),
        amount=_parse_float(lookup("Amount")),
        submitted_date=lookup("Application submitted date"),
        issue_open_date=lookup("Issue Open Date"),
        issue_close_date=lookup("Issue Close Date"),
        bank=lookup("Bank"),
        branch=lookup("Branch"),
        account_number=lookup("Account Number"),
        min_qty=parse_int(lookup("Minimum Quantity")),
        max_qty=parse_int(lookup("Maximum Quantity")),
        remarks=lookup("Remarks"),
        scraped_at=scraped_at,
    )


class _LabelLookup:
    """Label lookup that prefers exact label matches over containment."""

    def __init__(self, values: Mapping[str, str]) -> None:
        self._values = [(normalize_label(k), v.strip()) for k, v in values.items()]

    def __call__(self, label: str) -> str:
        wanted = normalize_label(label)
        for key, value in self._values:
            if key == wanted:
                return value
        for key, value in self._values:
            if wanted in key:
                return value
        return ""


def _parse_float(raw: str) -> float:
    found = re.search(r"-?\d+(?:\.\d+)?", raw.replace(",", ""))
    return float(found.group(0)) if found else 0.0
