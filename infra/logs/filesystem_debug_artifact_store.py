from __future__ import annotations

import re
from pathlib import Path

from domain.models import RunContext


class FileSystemDebugArtifactStore:
    """Stores screenshots under screenshots/run_<id>/, numbered per run."""

    def __init__(self, base_dir: str = "screenshots") -> None:
        self._base_dir = Path(base_dir)
        self._step_counter: dict[str, int] = {}

    def ensure_run_directory(self, run_context: RunContext) -> str:
        run_dir = self._run_dir(run_context)
        run_dir.mkdir(parents=True, exist_ok=True)
        return str(run_dir)

    def save_screenshot(
        self,
        run_context: RunContext,
        step_name: str,
        image_bytes: bytes,
    ) -> str:
        run_dir = self._run_dir(run_context)
        run_dir.mkdir(parents=True, exist_ok=True)
        count = self._step_counter.get(run_context.run_id, 0) + 1
        self._step_counter[run_context.run_id] = count
        parts = [f"{count:03d}"]
        if run_context.account_label:
            parts.append(self._safe(run_context.account_label))
        parts.append(self._safe(step_name))
        path = run_dir / ("_".join(parts) + ".png")
        path.write_bytes(image_bytes)
        return str(path)

    def _run_dir(self, run_context: RunContext) -> Path:
        if run_context.log_directory:
            return Path(run_context.log_directory)
        return self._base_dir / f"run_{run_context.run_id}"

    @staticmethod
    def _safe(name: str) -> str:
        cleaned = re.sub(r"[^A-Za-z0-9_-]+", "_", name).strip("_")
        return cleaned or "step"
