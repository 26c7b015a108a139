from __future__ import annotations

import asyncio
import json
import urllib.request
from typing import Any, Sequence

from domain.models import WorkflowResult
from domain.ports import ClockPort, NotifierPort
from infra.notifications.payload import batch_payload


class NotificationError(RuntimeError):
    pass


class WebhookNotifier:
    """POSTs the run summary as JSON to a configured webhook."""

    def __init__(self, *, url: str, clock: ClockPort, timeout_seconds: float = 10.0) -> None:
        self._url = url
        self._clock = clock
        self._timeout = timeout_seconds

    async def notify_batch(self, results: Sequence[WorkflowResult]) -> None:
        payload = batch_payload(results, self._clock.now().isoformat())
        await asyncio.to_thread(self._sync_post, payload)

    def _sync_post(self, payload: dict[str, Any]) -> None:
        body = json.dumps(payload).encode("utf-8")
        req = urllib.request.Request(self._url, data=body, method="POST")
        req.add_header("Content-Type", "application/json")
        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:  # nosec B310
                resp.read()
        except Exception as exc:
            raise NotificationError(f"Webhook failed: {exc}") from exc


class CompositeNotifier:
    """Fans one batch out to several notifiers; every target is attempted."""

    def __init__(self, notifiers: Sequence[NotifierPort]) -> None:
        self._notifiers = list(notifiers)

    async def notify_batch(self, results: Sequence[WorkflowResult]) -> None:
        failures: list[str] = []
        for notifier in self._notifiers:
            try:
                await notifier.notify_batch(results)
            except Exception as exc:
                failures.append(f"{type(notifier).__name__}: {exc}")
        if failures:
            raise NotificationError("; ".join(failures))
