from __future__ import annotations

from domain.models import RunContext
from domain.ports import DebugArtifactStorePort, LoggerPort, SessionDriverPort


class DebugRunManager:
    """Coordinates step screenshots for debug runs and failure screenshots."""

    def __init__(
        self,
        artifact_store: DebugArtifactStorePort,
        logger: LoggerPort | None = None,
    ) -> None:
        self._artifact_store = artifact_store
        self._logger = logger

    def start(self, run_context: RunContext) -> str:
        return self._artifact_store.ensure_run_directory(run_context)

    async def capture_step(
        self,
        run_context: RunContext,
        driver: SessionDriverPort,
        step_name: str,
    ) -> str | None:
        if not run_context.is_debug:
            return None
        return await self._capture(run_context, driver, step_name)

    async def capture_failure(
        self,
        run_context: RunContext,
        driver: SessionDriverPort,
        step_name: str = "error",
    ) -> str | None:
        return await self._capture(run_context, driver, step_name)

    async def _capture(
        self,
        run_context: RunContext,
        driver: SessionDriverPort,
        step_name: str,
    ) -> str | None:
        # A failed screenshot must never mask the failure being recorded.
        try:
            image = await driver.screenshot(step_name)
            path = self._artifact_store.save_screenshot(run_context, step_name, image)
        except Exception as exc:
            if self._logger is not None:
                self._logger.warning(
                    "screenshot_failed",
                    step=step_name,
                    account=run_context.account_label,
                    error=str(exc),
                )
            return None
        if self._logger is not None:
            self._logger.info(
                "screenshot_saved",
                step=step_name,
                account=run_context.account_label,
                path=path,
            )
        return path
