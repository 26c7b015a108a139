from __future__ import annotations

import asyncio

import pytest

from domain.errors import AuthenticationError, NavigationTimeout
from domain.models import Account, AppConfig
from domain.services import LoginService, Pacer
from domain.services.login import pick_option
from test.mocks import FakeSessionDriver, InMemoryLogger

ACCOUNT = Account(
    username="alice01",
    password="secret-pass",
    dp_name="NIC ASIA",
    transaction_pin="1234",
    applied_kitta=10,
)


def _driver(**kwargs) -> FakeSessionDriver:
    kwargs.setdefault(
        "rows",
        {"login.dp_options": [{"text": "NABIL BANK LIMITED (10400)"}, {"text": "NIC ASIA BANK (13700)"}]},
    )
    return FakeSessionDriver(**kwargs)


def _service(logger: InMemoryLogger | None = None) -> LoginService:
    return LoginService(config=AppConfig(), logger=logger or InMemoryLogger(), pacer=Pacer.disabled())


def test_login_selects_matching_dp_and_fills_credentials() -> None:
    driver = _driver()
    logger = InMemoryLogger()

    asyncio.run(_service(logger).login(driver, ACCOUNT))

    assert driver.visited_urls == ["https://meroshare.cdsc.com.np/#/login"]
    assert ("login.dp_options", 1) in driver.clicks
    assert ("login.username", "alice01") in driver.writes
    assert ("login.password", "secret-pass") in driver.writes
    assert driver.clicked("login.submit") == 1
    assert "login_succeeded" in logger.messages("info")


def test_field_mismatch_is_retried_once() -> None:
    driver = _driver(sticky_fields={"login.username": "alic"})
    logger = InMemoryLogger()

    asyncio.run(_service(logger).login(driver, ACCOUNT))

    assert [w for w in driver.writes if w[0] == "login.username"] == [
        ("login.username", "alice01"),
        ("login.username", "alice01"),
    ]
    assert logger.fields_of("field_mismatch_retrying") == [{"field": "login.username"}]


def test_missing_dp_options_fail_authentication() -> None:
    driver = _driver(rows={"login.dp_options": []})

    with pytest.raises(AuthenticationError, match="DP selection failed"):
        asyncio.run(_service().login(driver, ACCOUNT))


def test_portal_rejection_message_is_surfaced() -> None:
    driver = _driver(timeouts={"dashboard.indicator"}, fields={"login.error": " Invalid credentials "})

    with pytest.raises(AuthenticationError, match="Login rejected: Invalid credentials"):
        asyncio.run(_service().login(driver, ACCOUNT))


def test_no_dashboard_and_no_message_means_still_on_login_page() -> None:
    driver = _driver(timeouts={"dashboard.indicator"})

    with pytest.raises(AuthenticationError, match="still on login page"):
        asyncio.run(_service().login(driver, ACCOUNT))


@pytest.mark.parametrize("ref", ["login.form", "login.dp_dropdown"])
def test_page_that_never_loads_is_a_navigation_timeout(ref: str) -> None:
    driver = _driver(timeouts={ref})

    with pytest.raises(NavigationTimeout, match=ref):
        asyncio.run(_service().login(driver, ACCOUNT))

    assert driver.clicked("login.submit") == 0


def test_other_failures_are_wrapped_as_authentication_errors() -> None:
    driver = _driver()

    def _detached(_fake: FakeSessionDriver, _row: int | None) -> None:
        raise RuntimeError("submit button detached")

    driver.on_click["login.submit"] = _detached

    with pytest.raises(AuthenticationError, match="Login failed: submit button detached"):
        asyncio.run(_service().login(driver, ACCOUNT))


def test_login_url_is_logged_before_navigation() -> None:
    logger = InMemoryLogger()

    asyncio.run(_service(logger).login(_driver(), ACCOUNT))

    assert logger.fields_of("login_page_opening") == [{"url": "https://meroshare.cdsc.com.np/#/login"}]


def test_pick_option_prefers_containment_and_falls_back_to_first() -> None:
    options = [{"text": "Alpha Capital (1)"}, {"text": "Beta Securities (2)"}]

    assert pick_option(options, "beta securities") == 1
    assert pick_option(options, "Gamma") == 0
    assert pick_option([], "Gamma") is None
