from __future__ import annotations

from typing import Sequence

from domain.models import WorkflowResult
from domain.ports import NotifierPort


class RecordingNotifier:
    def __init__(self, fail_with: Exception | None = None) -> None:
        self.batches: list[list[WorkflowResult]] = []
        self._fail_with = fail_with

    async def notify_batch(self, results: Sequence[WorkflowResult]) -> None:
        self.batches.append(list(results))
        if self._fail_with is not None:
            raise self._fail_with


_notifier_check: NotifierPort = RecordingNotifier()
