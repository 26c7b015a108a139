from __future__ import annotations

import asyncio
import random
from typing import Awaitable, Callable

Sleeper = Callable[[float], Awaitable[None]]


class Pacer:
    """Randomized, bounded pauses between remote interactions."""

    def __init__(
        self,
        *,
        min_ms: int = 0,
        max_ms: int = 0,
        sleep: Sleeper = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self._min_ms = min_ms
        self._max_ms = max_ms
        self._sleep = sleep
        self._rng = rng or random.Random()

    @classmethod
    def disabled(cls) -> "Pacer":
        async def _no_sleep(_seconds: float) -> None:
            return None

        return cls(sleep=_no_sleep)

    def pick_ms(self, min_ms: int | None = None, max_ms: int | None = None) -> int:
        low = self._min_ms if min_ms is None else min_ms
        high = self._max_ms if max_ms is None else max_ms
        if high <= low:
            return max(low, 0)
        return self._rng.randint(low, high)

    async def pause(self, min_ms: int | None = None, max_ms: int | None = None) -> int:
        delay_ms = self.pick_ms(min_ms, max_ms)
        if delay_ms > 0:
            await self._sleep(delay_ms / 1000)
        return delay_ms
