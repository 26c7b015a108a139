from __future__ import annotations

import uuid


class UuidIdGenerator:
    """One id per run; it names the screenshot directory and tags log events."""

    def new_run_id(self) -> str:
        return f"run-{uuid.uuid4().hex[:12]}"
