from __future__ import annotations

import re

from domain.errors import (
    FormValidationError,
    NavigationTimeout,
    SubmissionError,
    TargetNotFoundError,
)
from domain.models import Account, AppConfig, IssueSummary, RunContext, WorkflowResult
from domain.ports import ClockPort, LoggerPort, SessionDriverPort
from domain.services.debug import DebugRunManager
from domain.services.issue_matching import issues_from_rows, match_issue
from domain.services.login import LoginService
from domain.services.pacing import Pacer
from domain.services.results import account_result

DEFAULT_MINIMUM_QUANTITY = 10

_REFERENCE_PATTERNS = (
    re.compile(r"reference[:\s#]*(\w+)", re.IGNORECASE),
    re.compile(r"application[:\s#]*(\d+)", re.IGNORECASE),
    re.compile(r"(\d{8,})"),
)
_SUCCESS_WORDS = ("success", "submitted", "application received")


class ApplyWorkflow:
    """Applies for the configured issue on behalf of one account."""

    def __init__(
        self,
        *,
        config: AppConfig,
        login: LoginService,
        clock: ClockPort,
        logger: LoggerPort,
        pacer: Pacer,
        debug_manager: DebugRunManager | None = None,
    ) -> None:
        self._config = config
        self._login = login
        self._clock = clock
        self._logger = logger
        self._pacer = pacer
        self._debug_manager = debug_manager

    async def run(
        self,
        *,
        driver: SessionDriverPort,
        account: Account,
        run_context: RunContext,
    ) -> WorkflowResult:
        label = run_context.account_label
        if not account.target_issue_name:
            raise FormValidationError("No target issue configured for this account")

        await self._login.login(driver, account)
        await self._capture(run_context, driver, "logged_in")

        await self._open_asba(driver)
        target = await self._find_target(driver, account.target_issue_name)
        self._logger.info(
            "issue_matched",
            account=label,
            issue=target.name,
            share_type=target.share_type,
            group=target.group,
        )

        await driver.click("asba.apply_button", row=target.index)
        await driver.wait_for("form.container", self._config.timeouts.long_ms)
        await self._capture(run_context, driver, "form_opened")

        await self._fill_form(driver, account, label)
        await self._capture(run_context, driver, "form_filled")

        await self._proceed(driver)
        await driver.wait_for("form.pin", self._config.timeouts.medium_ms)
        await driver.set_field("form.pin", account.transaction_pin)
        await self._capture(run_context, driver, "pin_entered")

        details = {
            "issue": target.name,
            "kitta": account.applied_kitta,
            "dp": account.dp_name,
        }
        if self._config.debug_mode:
            self._logger.info("final_submit_skipped", account=label, issue=target.name)
            return account_result(
                account,
                self._clock,
                skipped=True,
                message="Debug mode enabled: final submit skipped",
                details=details,
            )

        message = await self._submit(driver)
        await self._capture(run_context, driver, "submitted")
        return account_result(
            account,
            self._clock,
            message=message,
            reference_id=extract_reference(message),
            details=details,
        )

    async def _open_asba(self, driver: SessionDriverPort) -> None:
        try:
            await self._navigate_asba(driver)
        except NavigationTimeout as exc:
            self._logger.warning("asba_navigation_retry", error=str(exc))
            await self._navigate_asba(driver)

    async def _navigate_asba(self, driver: SessionDriverPort) -> None:
        await driver.navigate(self._config.asba_url, timeout_ms=self._config.navigation_timeout_ms)
        await driver.wait_for("asba.page", self._config.browser_timeout_ms)
        await self._pacer.pause(2_000, 2_000)

    async def _find_target(self, driver: SessionDriverPort, target_name: str) -> IssueSummary:
        try:
            await driver.wait_for("asba.company_list", self._config.timeouts.long_ms)
            rows = await driver.read_rows("asba.company_list")
        except NavigationTimeout:
            rows = []
        issues = issues_from_rows(rows)
        self._logger.info("issues_listed", count=len(issues))

        target = match_issue(issues, target_name)
        if target is None:
            open_issues = [issue.name for issue in issues if issue.can_apply]
            self._logger.warning("issue_not_found", issue=target_name, open_issues=open_issues)
            raise TargetNotFoundError(
                f'Issue "{target_name}" not found. Check if issue name is correct and issue is open'
            )
        if not target.can_apply:
            raise TargetNotFoundError(
                f'Issue "{target.name}" is not available for application '
                "(may be closed or already applied)."
            )
        return target

    async def _fill_form(self, driver: SessionDriverPort, account: Account, label: str) -> None:
        minimum = parse_int(await driver.read_field("form.minimum_quantity")) or DEFAULT_MINIMUM_QUANTITY
        if account.applied_kitta < minimum:
            raise FormValidationError(
                f"Applied kitta ({account.applied_kitta}) is less than minimum quantity ({minimum}). "
                f"Set appliedKitta >= {minimum} for this account."
            )

        bank = await self._select_first(
            driver,
            "form.bank",
            "No bank options available. Please check your account settings.",
        )
        self._logger.info("bank_selected", account=label, bank=bank)
        await self._pacer.pause(1_500, 2_000)

        await self._select_first(
            driver,
            "form.account",
            "No bank accounts available. Please ensure your bank account is linked.",
        )
        self._logger.info("bank_account_selected", account=label)
        await self._pacer.pause()

        kitta = str(account.applied_kitta)
        await driver.set_field("form.kitta", kitta)
        entered = (await driver.read_field("form.kitta")).strip()
        if entered != kitta:
            raise FormValidationError(f"Kitta not set correctly. Expected: {kitta}, Got: {entered}")

        amount = (await driver.read_field("form.amount")).strip()
        if amount:
            self._logger.info("amount_calculated", account=label, amount=amount)
        else:
            self._logger.warning("amount_not_calculated", account=label)

        if account.crn_number and await driver.is_present("form.crn"):
            await driver.set_field("form.crn", account.crn_number)
        if await driver.is_present("form.disclaimer"):
            await driver.set_field("form.disclaimer", "true")

    async def _select_first(self, driver: SessionDriverPort, ref: str, empty_message: str) -> str:
        await driver.wait_for(ref, self._config.timeouts.medium_ms)
        options = [option for option in await driver.read_options(ref) if option.value]
        if not options:
            raise FormValidationError(empty_message)
        await driver.select_option(ref, options[0].value)
        return options[0].text

    async def _proceed(self, driver: SessionDriverPort) -> None:
        if not await driver.is_present("form.submit"):
            reason = (await driver.read_field("form.validation_error")).strip()
            raise FormValidationError(f"Form incomplete: {reason or 'Please fill all required fields'}")
        await driver.click("form.submit")
        await self._pacer.pause(2_000, 2_000)

        problem = await self._page_error(driver)
        if problem:
            raise FormValidationError(f"Form validation failed: {problem}")

    async def _submit(self, driver: SessionDriverPort) -> str:
        if not await driver.is_present("form.submit"):
            problem = await self._page_error(driver)
            raise SubmissionError(problem or "Apply button not found or disabled")
        await driver.click("form.submit")
        await self._pacer.pause(3_000, 3_000)

        confirmation = (await driver.read_field("toast.success")).strip()
        if confirmation:
            return confirmation
        problem = await self._page_error(driver)
        if problem:
            raise SubmissionError(problem)
        body = (await driver.read_field("page.body")).lower()
        if any(word in body for word in _SUCCESS_WORDS):
            return "Application appears to be submitted successfully"
        raise SubmissionError("Could not determine submission result - please check the portal manually")

    async def _page_error(self, driver: SessionDriverPort) -> str:
        for ref in ("toast.error", "alert.error"):
            text = (await driver.read_field(ref)).strip()
            if text:
                return text
        return ""

    async def _capture(self, run_context: RunContext, driver: SessionDriverPort, step: str) -> None:
        if self._debug_manager is None:
            return
        await self._debug_manager.capture_step(run_context, driver, step)


def extract_reference(message: str | None) -> str | None:
    if not message:
        return None
    for pattern in _REFERENCE_PATTERNS:
        found = pattern.search(message)
        if found:
            return found.group(1)
    return None


def parse_int(raw: str | None) -> int:
    digits = re.search(r"-?\d+", (raw or "").replace(",", ""))
    return int(digits.group(0)) if digits else 0
