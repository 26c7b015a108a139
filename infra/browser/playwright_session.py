from __future__ import annotations

from typing import Any, Mapping

from domain.errors import NavigationTimeout
from domain.models import AppConfig, SelectOption
from infra.browser.selectors import (
    DEFAULT_REFS,
    Css,
    ElementSpec,
    LabeledBlock,
    LabelValue,
    RowList,
    resolve,
)

_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
]
_VALUE_TAGS = {"input", "select", "textarea"}


def _playwright_timeout_error() -> type[Exception]:
    from playwright.async_api import TimeoutError as PlaywrightTimeoutError

    return PlaywrightTimeoutError


class PlaywrightSessionDriver:
    """
    Playwright-backed implementation of SessionDriverPort.

    Requires ``playwright`` to be installed and browsers set up via
    ``playwright install chromium``.

    Every ``open()`` starts its own Playwright instance, Chromium browser and
    browser context, so no cookies or storage leak between accounts.  Call
    ``close()`` when finished; it is safe to call more than once.  A page may
    be injected for tests, in which case ``open()`` does not launch anything.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        refs: Mapping[str, ElementSpec] = DEFAULT_REFS,
        page: Any = None,
    ) -> None:
        self._config = config
        self._refs = refs
        self._playwright: Any = None
        self._browser: Any = None
        self._context: Any = None
        self._page: Any = page

    # -- lifecycle ----------------------------------------------------------

    async def open(self) -> None:
        if self._page is not None:
            return
        from playwright.async_api import async_playwright

        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self._config.headless,
            args=_LAUNCH_ARGS,
        )
        context_options: dict[str, Any] = {
            "viewport": {
                "width": self._config.viewport_width,
                "height": self._config.viewport_height,
            },
        }
        if self._config.user_agent:
            context_options["user_agent"] = self._config.user_agent
        self._context = await self._browser.new_context(**context_options)
        self._page = await self._context.new_page()
        self._page.set_default_timeout(self._config.browser_timeout_ms)
        self._page.set_default_navigation_timeout(self._config.navigation_timeout_ms)

    async def close(self) -> None:
        page, context, browser, playwright = self._page, self._context, self._browser, self._playwright
        self._page = self._context = self._browser = self._playwright = None
        if context is not None:
            await context.close()
        elif page is not None and browser is not None:
            await page.close()
        if browser is not None:
            await browser.close()
        if playwright is not None:
            await playwright.stop()

    def _ensure_page(self) -> Any:
        if self._page is None:
            raise RuntimeError("Browser not launched. Call open() first.")
        return self._page

    # -- navigation ---------------------------------------------------------

    async def navigate(self, url: str, *, timeout_ms: int | None = None) -> None:
        page = self._ensure_page()
        timeout = timeout_ms or self._config.navigation_timeout_ms
        try:
            await page.goto(url, wait_until="networkidle", timeout=timeout)
        except _playwright_timeout_error() as exc:
            raise NavigationTimeout(f"Navigation to {url} timed out after {timeout}ms") from exc

    async def wait_for(self, ref: str, timeout_ms: int) -> None:
        spec = resolve(ref, self._refs)
        locator = self._ensure_page().locator(spec.anchor).first
        try:
            await locator.wait_for(state="visible", timeout=timeout_ms)
        except _playwright_timeout_error() as exc:
            raise NavigationTimeout(f"Timed out after {timeout_ms}ms waiting for {ref}") from exc

    # -- reads --------------------------------------------------------------

    async def is_present(self, ref: str) -> bool:
        spec = resolve(ref, self._refs)
        return await self._ensure_page().locator(spec.anchor).count() > 0

    async def read_field(self, ref: str) -> str:
        locator = self._single(ref)
        if await locator.count() == 0:
            return ""
        tag = await locator.evaluate("el => el.tagName.toLowerCase()")
        if tag in _VALUE_TAGS:
            return await locator.input_value()
        return (await locator.inner_text()).strip()

    async def read_options(self, ref: str) -> list[SelectOption]:
        locator = self._single(ref)
        raw = await locator.locator("option").evaluate_all(
            "opts => opts.map(o => ({value: o.value, text: (o.textContent || '').trim()}))"
        )
        return [SelectOption(value=str(item["value"]), text=str(item["text"])) for item in raw]

    async def read_rows(self, ref: str) -> list[dict[str, Any]]:
        spec = self._rows_spec(ref)
        rows = self._ensure_page().locator(spec.container)
        items: list[dict[str, Any]] = []
        for index in range(await rows.count()):
            row = rows.nth(index)
            item: dict[str, Any] = {}
            for name, row_field in spec.fields.items():
                if not row_field.selector:
                    item[name] = (await row.inner_text()).strip()
                    continue
                target = row.locator(row_field.selector)
                if row_field.kind == "present":
                    item[name] = await target.count() > 0
                elif await target.count() > 0:
                    item[name] = (await target.first.inner_text()).strip()
                else:
                    item[name] = ""
            items.append(item)
        return items

    async def read_labeled_values(self, ref: str) -> dict[str, str]:
        spec = resolve(ref, self._refs)
        if not isinstance(spec, LabeledBlock):
            raise ValueError(f"{ref} is not a labeled block")
        page = self._ensure_page()
        values: dict[str, str] = {}
        for row_selector, label_selector, value_selector in spec.layouts:
            rows = page.locator(row_selector)
            for index in range(await rows.count()):
                row = rows.nth(index)
                label = row.locator(label_selector)
                value = row.locator(value_selector)
                if await label.count() == 0 or await value.count() == 0:
                    continue
                key = (await label.first.inner_text()).strip()
                if key:
                    values.setdefault(key, (await value.first.inner_text()).strip())
        return values

    async def screenshot(self, label: str) -> bytes:
        page = self._ensure_page()
        return await page.screenshot(full_page=True)

    # -- writes -------------------------------------------------------------

    async def set_field(self, ref: str, value: str) -> None:
        locator = self._single(ref)
        if await locator.get_attribute("type") == "checkbox":
            await locator.set_checked(value.strip().lower() in {"true", "1", "on", "yes"})
            return
        await locator.fill(value)

    async def click(self, ref: str, *, row: int | None = None) -> None:
        spec = resolve(ref, self._refs)
        page = self._ensure_page()
        if isinstance(spec, RowList):
            if row is None:
                raise ValueError(f"{ref} needs a row index")
            target = page.locator(spec.container).nth(row)
            if spec.action:
                target = target.locator(spec.action).first
            await target.click()
            return
        await page.locator(spec.anchor).first.click()

    async def select_option(self, ref: str, value: str) -> None:
        await self._single(ref).select_option(value)

    # -- internal helpers ---------------------------------------------------

    def _single(self, ref: str) -> Any:
        spec = resolve(ref, self._refs)
        page = self._ensure_page()
        if isinstance(spec, LabelValue):
            group = page.locator(spec.group).filter(has=page.locator("label", has_text=spec.label))
            return group.locator(spec.value).first
        if isinstance(spec, Css):
            return page.locator(spec.selector).first
        raise ValueError(f"{ref} does not address a single element")

    def _rows_spec(self, ref: str) -> RowList:
        spec = resolve(ref, self._refs)
        if not isinstance(spec, RowList):
            raise ValueError(f"{ref} is not a row list")
        return spec
