"""Timer trigger -- runs a check cycle every check interval.

A plain asyncio background task: sleep, run one cycle, repeat. A failed
cycle is logged and skipped; the next tick tries again.
"""

import asyncio

from fxalert.check_cycle import CheckCycle
from fxalert.exceptions import CheckError
from fxalert.logging import get_logger

logger = get_logger(__name__)


class CheckScheduler:
    """Invokes CheckCycle.run_check on a fixed interval in the background."""

    def __init__(self, check_cycle: CheckCycle, interval_seconds: float = 1800.0) -> None:
        self._check_cycle = check_cycle
        self._interval = interval_seconds
        self._running = False
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Begin scheduled checks in the background."""
        if self._running:
            logger.warning("scheduler_already_running")
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("scheduler_started", interval_seconds=self._interval)

    async def stop(self) -> None:
        """Stop scheduled checks."""
        self._running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("scheduler_stopped")

    async def _run_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._interval)
            if not self._running:
                break
            await self._tick()

    async def _tick(self) -> None:
        """Run one scheduled cycle, logging instead of raising."""
        logger.info("scheduled_check_running")
        try:
            result = await self._check_cycle.run_check()
        except asyncio.CancelledError:
            raise
        except CheckError as e:
            logger.warning("scheduled_check_failed", error=str(e))
        except Exception:
            logger.error("scheduled_check_failed", exc_info=True)
        else:
            logger.info(
                "scheduled_check_complete",
                rate=str(result.rate),
                triggered=result.triggered,
            )
