"""Wall-clock pacing for interactive runs.

The engine never schedules itself; a :class:`TickPacer` is the timer that
calls :meth:`SimulationRunner.advance` every ``base_interval / speed``
seconds on the running event loop, and stops once the run is done.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from engine.simulation.runner import SimulationRunner

logger = logging.getLogger(__name__)


class TickPacer:
    """Asyncio ticker driving one runner.

    Parameters
    ----------
    runner : SimulationRunner
        Engine to step.
    base_interval : float
        Interval in seconds at speed 1.
    """

    def __init__(
        self,
        runner: SimulationRunner,
        base_interval: float = 0.5,
    ) -> None:
        if base_interval <= 0:
            raise ValueError(f"base_interval must be > 0, got {base_interval}")
        self.runner = runner
        self.base_interval = base_interval
        self.speed: float = 1.0
        self._task: Optional[asyncio.Task] = None

    @property
    def interval(self) -> float:
        return self.base_interval / self.speed

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, speed: float = 1.0) -> None:
        """(Re)start ticking at *speed*; a running ticker is replaced."""
        if speed <= 0:
            raise ValueError(f"speed must be > 0, got {speed}")
        self.stop()
        self.speed = speed
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info("Ticker started at %.3fs per tick (x%g)", self.interval, speed)

    def stop(self) -> None:
        if self._task is not None:
            if not self._task.done():
                self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        try:
            while True:
                await asyncio.sleep(self.interval)
                self.runner.advance()
                if self.runner.state.done:
                    logger.info(
                        "Ticker stopping: run complete at tick %d", self.runner.state.tick_index
                    )
                    return
        except asyncio.CancelledError:
            logger.debug("Ticker cancelled")
            raise
