"""Periodic expiry sweeper for abandoned pending actions."""

import asyncio
import logging
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from graph_voice.actions.engine import ConfirmationEngine

logger = logging.getLogger(__name__)


class ExpirySweeper:
    """
    Calls ConfirmationEngine.sweep_expired on a fixed interval.

    Conversations get abandoned mid-confirmation; without a sweep their
    pending actions would accumulate forever. Run it at least once per
    expiry window so memory stays bounded.
    """

    def __init__(
        self,
        engine: "ConfirmationEngine",
        interval_seconds: float = 300,
        max_age_seconds: float | None = None,
    ) -> None:
        """
        Initialize the sweeper.

        Args:
            engine: Engine whose store is swept.
            interval_seconds: Seconds to wait between sweeps.
            max_age_seconds: Age at which actions are removed (default: engine TTL).
        """
        self.engine = engine
        self.interval_seconds = interval_seconds
        self.max_age_seconds = max_age_seconds

        self.last_sweep: datetime | None = None
        self.total_removed = 0
        self._stop_requested = False

    def sweep_once(self) -> int:
        """Run a single sweep and return the number of actions removed."""
        removed = self.engine.sweep_expired(self.max_age_seconds)
        self.last_sweep = datetime.now()
        self.total_removed += removed
        logger.debug("Expiry sweep removed %d action(s)", removed)
        return removed

    def stop(self) -> None:
        """Ask the loop to exit after its current sleep."""
        self._stop_requested = True

    async def run(self) -> None:
        """Sweep until stop() is called or the task is cancelled."""
        self._stop_requested = False
        logger.info("Expiry sweeper started (every %ss)", self.interval_seconds)

        while not self._stop_requested:
            try:
                self.sweep_once()
            except Exception:
                # Continue running despite errors
                logger.exception("Expiry sweep failed")

            try:
                await asyncio.sleep(self.interval_seconds)
            except asyncio.CancelledError:
                logger.info("Expiry sweeper cancelled")
                raise

        logger.info("Expiry sweeper stopped")

    def start(self) -> "asyncio.Task[None]":
        """Schedule run() on the running event loop."""
        return asyncio.get_running_loop().create_task(self.run(), name="expiry-sweeper")
