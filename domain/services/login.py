from __future__ import annotations

from typing import Any, Mapping, Sequence

from domain.errors import AuthenticationError, NavigationTimeout
from domain.models import Account, AppConfig
from domain.ports import LoggerPort, SessionDriverPort
from domain.services.pacing import Pacer


class LoginService:
    """Signs one account into the portal through the depository-participant form."""

    def __init__(self, *, config: AppConfig, logger: LoggerPort, pacer: Pacer) -> None:
        self._config = config
        self._logger = logger
        self._pacer = pacer

    async def login(self, driver: SessionDriverPort, account: Account) -> None:
        timeouts = self._config.timeouts
        self._logger.info("login_page_opening", url=self._config.login_url)
        await driver.navigate(self._config.login_url, timeout_ms=self._config.navigation_timeout_ms)
        await self._pacer.pause(2_000, 3_000)

        try:
            await driver.wait_for("login.form", timeouts.medium_ms)
            await self._select_dp(driver, account.dp_name)
            await self._pacer.pause()
            await self._fill_verified(driver, "login.username", account.username)
            await self._pacer.pause()
            await self._fill_verified(driver, "login.password", account.password)
            await self._pacer.pause()
            await driver.click("login.submit")
            await self._verify_dashboard(driver)
        except (AuthenticationError, NavigationTimeout):
            raise
        except Exception as exc:
            raise AuthenticationError(f"Login failed: {exc}") from exc

        self._logger.info("login_succeeded", dp=account.dp_name)

    async def _select_dp(self, driver: SessionDriverPort, dp_name: str) -> None:
        short = self._config.timeouts.short_ms
        await driver.wait_for("login.dp_dropdown", self._config.timeouts.medium_ms)
        await driver.click("login.dp_dropdown")
        await driver.wait_for("login.dp_search", short)
        await driver.set_field("login.dp_search", dp_name)
        await self._pacer.pause(1_000, 1_500)
        await driver.wait_for("login.dp_options", short)

        options = await driver.read_rows("login.dp_options")
        index = pick_option(options, dp_name)
        if index is None:
            raise AuthenticationError(f"DP selection failed: no option matches '{dp_name}'")
        await driver.click("login.dp_options", row=index)

    async def _fill_verified(self, driver: SessionDriverPort, ref: str, value: str) -> None:
        await driver.set_field(ref, value)
        if await driver.read_field(ref) == value:
            return
        self._logger.warning("field_mismatch_retrying", field=ref)
        await driver.set_field(ref, value)

    async def _verify_dashboard(self, driver: SessionDriverPort) -> None:
        try:
            await driver.wait_for("dashboard.indicator", self._config.timeouts.medium_ms)
            return
        except NavigationTimeout:
            pass
        rejection = (await driver.read_field("login.error")).strip()
        if rejection:
            raise AuthenticationError(f"Login rejected: {rejection}")
        raise AuthenticationError("Login failed - still on login page")


def pick_option(options: Sequence[Mapping[str, Any]], wanted: str) -> int | None:
    """Index of the first option containing ``wanted``; first option as fallback."""
    if not options:
        return None
    needle = wanted.strip().lower()
    for index, option in enumerate(options):
        if needle and needle in str(option.get("text", "")).lower():
            return index
    return 0
