from __future__ import annotations

from typing import Mapping, Sequence

from domain.errors import classify
from domain.models import (
    Account,
    AppConfig,
    ExitStatus,
    RunContext,
    RunMode,
    RunSummary,
    WorkflowResult,
)
from domain.ports import (
    AccountWorkflowPort,
    ClockPort,
    IdGeneratorPort,
    LoggerPort,
    NotifierPort,
    SessionDriverFactory,
    SessionDriverPort,
)
from domain.services.debug import DebugRunManager
from domain.services.pacing import Pacer
from domain.services.results import failed_result
from domain.utils import mask_value


class RunOrchestrator:
    """
    Drives one workflow over every configured account, strictly in order.

    Each account gets its own freshly opened driver which is always closed
    before the next account starts.  Any exception raised while handling an
    account becomes a failed result for that account only; nothing escapes
    ``run_all``.
    """

    def __init__(
        self,
        *,
        driver_factory: SessionDriverFactory,
        workflows: Mapping[RunMode, AccountWorkflowPort],
        config: AppConfig,
        clock: ClockPort,
        logger: LoggerPort,
        id_generator: IdGeneratorPort,
        pacer: Pacer,
        notifier: NotifierPort | None = None,
        debug_manager: DebugRunManager | None = None,
    ) -> None:
        self._driver_factory = driver_factory
        self._workflows = dict(workflows)
        self._config = config
        self._clock = clock
        self._logger = logger
        self._id_generator = id_generator
        self._pacer = pacer
        self._notifier = notifier
        self._debug_manager = debug_manager

    async def execute(self, accounts: Sequence[Account], mode: RunMode) -> RunSummary:
        results = await self.run_all(accounts, mode)
        summary = self.summarize(results)
        self._logger.info(
            "run_completed",
            mode=mode.value,
            total=len(summary.results),
            succeeded=summary.succeeded,
            failed=summary.failed,
            exit_status=int(summary.exit_status),
        )
        if self._notifier is not None and results:
            try:
                await self._notifier.notify_batch(results)
            except Exception as exc:
                self._logger.warning("notification_failed", error=str(exc))
        return summary

    async def run_all(self, accounts: Sequence[Account], mode: RunMode) -> list[WorkflowResult]:
        workflow = self._workflows.get(mode)
        if workflow is None:
            raise ValueError(f"No workflow registered for mode '{mode.value}'")

        run_id = self._id_generator.new_run_id()
        results: list[WorkflowResult] = []
        for position, account in enumerate(accounts, start=1):
            run_context = RunContext(
                run_id=run_id,
                mode=mode,
                account_label=mask_value(account.username),
                is_debug=self._config.debug_mode,
            )
            results.append(await self._run_account(workflow, account, run_context, position, len(accounts)))

            if position < len(accounts):
                delay_ms = await self._pacer.pause(
                    self._config.account_delay_min_ms,
                    self._config.account_delay_max_ms,
                )
                self._logger.info("inter_account_delay", delay_ms=delay_ms)
        return results

    async def _run_account(
        self,
        workflow: AccountWorkflowPort,
        account: Account,
        run_context: RunContext,
        position: int,
        total: int,
    ) -> WorkflowResult:
        label = run_context.account_label
        self._logger.info(
            "account_started",
            account=label,
            position=position,
            total=total,
            mode=run_context.mode.value,
        )
        if self._debug_manager is not None and run_context.is_debug:
            self._debug_manager.start(run_context)

        driver: SessionDriverPort | None = None
        try:
            driver = self._driver_factory()
            await driver.open()
            self._logger.info("session_opened", account=label)
            result = await workflow.run(driver=driver, account=account, run_context=run_context)
        except Exception as exc:
            self._logger.error(
                "account_failed",
                account=label,
                error=str(exc),
                error_kind=classify(exc).value,
            )
            if driver is not None and self._config.screenshot_on_error and self._debug_manager is not None:
                await self._debug_manager.capture_failure(run_context, driver)
            return failed_result(account, self._clock, exc)
        finally:
            if driver is not None:
                await self._close(driver, label)

        if result.success:
            self._logger.info("account_succeeded", account=label, skipped=result.skipped)
        else:
            self._logger.error("account_failed", account=label, error=result.error)
        return result

    async def _close(self, driver: SessionDriverPort, label: str) -> None:
        try:
            await driver.close()
        except Exception as exc:
            self._logger.warning("session_close_failed", account=label, error=str(exc))
            return
        self._logger.info("session_closed", account=label)

    @staticmethod
    def exit_status_for(results: Sequence[WorkflowResult]) -> ExitStatus:
        if not results:
            return ExitStatus.FATAL
        succeeded = sum(1 for result in results if result.success)
        if succeeded == len(results):
            return ExitStatus.OK
        if succeeded == 0:
            return ExitStatus.FATAL
        return ExitStatus.PARTIAL

    @classmethod
    def summarize(cls, results: Sequence[WorkflowResult]) -> RunSummary:
        return RunSummary(results=tuple(results), exit_status=cls.exit_status_for(results))
