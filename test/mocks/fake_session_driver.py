from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from domain.errors import NavigationTimeout
from domain.models import SelectOption
from domain.ports import SessionDriverPort

ClickHook = Callable[["FakeSessionDriver", "int | None"], None]


@dataclass
class FakeSessionDriver:
    """
    Scriptable in-memory SessionDriverPort.

    ``fields`` back ``read_field``/``set_field``; ``present`` drives
    ``is_present``; refs listed in ``timeouts`` make ``wait_for`` raise.
    ``on_click`` hooks let a test mutate the page after a click, e.g. to
    reveal a success toast once the final submit happens.
    """

    fields: dict[str, str] = field(default_factory=dict)
    present: set[str] = field(default_factory=set)
    timeouts: set[str] = field(default_factory=set)
    rows: dict[str, list[dict[str, Any]]] = field(default_factory=dict)
    options: dict[str, list[SelectOption]] = field(default_factory=dict)
    details_by_row: dict[int, dict[str, str]] = field(default_factory=dict)
    sticky_fields: dict[str, str] = field(default_factory=dict)
    on_click: dict[str, ClickHook] = field(default_factory=dict)
    fail_on_open: Exception | None = None
    fail_on_close: Exception | None = None
    fail_on_screenshot: Exception | None = None

    opened: bool = False
    closed: bool = False
    visited_urls: list[str] = field(default_factory=list)
    clicks: list[tuple[str, int | None]] = field(default_factory=list)
    writes: list[tuple[str, str]] = field(default_factory=list)
    selected: dict[str, str] = field(default_factory=dict)
    waited: list[str] = field(default_factory=list)
    screenshots: list[str] = field(default_factory=list)
    last_row: int | None = None

    async def open(self) -> None:
        if self.fail_on_open is not None:
            raise self.fail_on_open
        self.opened = True

    async def close(self) -> None:
        self.closed = True
        if self.fail_on_close is not None:
            raise self.fail_on_close

    async def navigate(self, url: str, *, timeout_ms: int | None = None) -> None:
        self.visited_urls.append(url)

    async def wait_for(self, ref: str, timeout_ms: int) -> None:
        self.waited.append(ref)
        if ref in self.timeouts:
            raise NavigationTimeout(f"Timed out after {timeout_ms}ms waiting for {ref}")

    async def is_present(self, ref: str) -> bool:
        return ref in self.present

    async def read_field(self, ref: str) -> str:
        if ref in self.sticky_fields:
            return self.sticky_fields[ref]
        return self.fields.get(ref, "")

    async def set_field(self, ref: str, value: str) -> None:
        self.writes.append((ref, value))
        self.fields[ref] = value

    async def click(self, ref: str, *, row: int | None = None) -> None:
        self.clicks.append((ref, row))
        if row is not None:
            self.last_row = row
        hook = self.on_click.get(ref)
        if hook is not None:
            hook(self, row)

    async def select_option(self, ref: str, value: str) -> None:
        self.selected[ref] = value

    async def read_options(self, ref: str) -> list[SelectOption]:
        return list(self.options.get(ref, []))

    async def read_rows(self, ref: str) -> list[dict[str, Any]]:
        return [dict(row) for row in self.rows.get(ref, [])]

    async def read_labeled_values(self, ref: str) -> dict[str, str]:
        if self.last_row is None:
            return {}
        return dict(self.details_by_row.get(self.last_row, {}))

    async def screenshot(self, label: str) -> bytes:
        if self.fail_on_screenshot is not None:
            raise self.fail_on_screenshot
        self.screenshots.append(label)
        return b"PNG_FAKE"

    def clicked(self, ref: str) -> int:
        return sum(1 for clicked_ref, _row in self.clicks if clicked_ref == ref)


_driver_check: SessionDriverPort = FakeSessionDriver()
