"""Fixed-rate async ticker shared by the refresh and broadcast loops."""

import asyncio
import logging

from src.core.schedule import next_deadline


logger = logging.getLogger(__name__)


class Ticker:
    """Async iterator that fires every ``interval`` seconds.

    The first tick fires one interval after iteration starts. If the
    consumer is still busy when a deadline passes, the missed ticks are
    dropped and the schedule resumes on the original phase.
    """

    def __init__(self, interval: float, name: str = "ticker") -> None:
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        self.interval = interval
        self.name = name
        self.skipped = 0
        self._deadline: float | None = None

    def __aiter__(self) -> "Ticker":
        return self

    async def __anext__(self) -> float:
        loop = asyncio.get_running_loop()

        if self._deadline is None:
            self._deadline = loop.time() + self.interval
        else:
            self._deadline, skipped = next_deadline(
                self._deadline, loop.time(), self.interval,
            )
            if skipped:
                self.skipped += skipped
                logger.warning(
                    "%s fell behind, skipped %d tick(s)", self.name, skipped,
                )

        delay = self._deadline - loop.time()
        if delay > 0:
            await asyncio.sleep(delay)

        return self._deadline
