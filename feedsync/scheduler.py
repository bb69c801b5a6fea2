"""
Feed update scheduler.

Background task that refreshes all feeds on the interval stored in settings.
The interval is re-read after every run, so changes apply from the next
sleep without a restart.
"""

import asyncio
import logging
from enum import Enum

from .settings import DEFAULT_FEED_UPDATE_INTERVAL, SettingsService
from .sync import FeedUpdateResult, SyncEngine

logger = logging.getLogger(__name__)

WARMUP_DELAY_SECONDS = 120
MAX_LOGGED_ERRORS = 10


class SchedulerState(str, Enum):
    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


class FeedUpdateScheduler:
    """
    Background scheduler for batch feed updates.

    Lifecycle: STOPPED -> STARTING -> RUNNING -> STOPPING -> STOPPED.
    Stopping is cooperative: the stop event ends the warm-up or the sleep
    at once, and a batch in flight stops between feeds.
    """

    def __init__(
        self,
        sync_engine: SyncEngine,
        settings: SettingsService,
        warmup_seconds: float = WARMUP_DELAY_SECONDS,
    ):
        self.sync_engine = sync_engine
        self.settings = settings
        self.warmup_seconds = warmup_seconds
        self.state = SchedulerState.STOPPED
        self.last_result: FeedUpdateResult | None = None
        self._interval_minutes = DEFAULT_FEED_UPDATE_INTERVAL
        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()

    @property
    def interval_minutes(self) -> int:
        return self._interval_minutes

    @property
    def is_running(self) -> bool:
        return self.state in (SchedulerState.STARTING, SchedulerState.RUNNING)

    async def start(self):
        """Start the scheduler loop."""
        if self.state != SchedulerState.STOPPED:
            logger.warning(f"Scheduler start ignored, state is {self.state.value}")
            return

        self.state = SchedulerState.STARTING
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run_loop())
        logger.info("Feed update scheduler is starting")

    async def stop(self):
        """Stop the scheduler and wait for the loop to exit."""
        if self.state == SchedulerState.STOPPED:
            return

        self.state = SchedulerState.STOPPING
        self._stop_event.set()

        if self._task:
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        self.state = SchedulerState.STOPPED
        logger.info("Feed update scheduler stopped")

    async def run_now(self) -> FeedUpdateResult:
        """Run one batch update immediately, outside the regular cadence."""
        logger.info("Triggering immediate feed update")
        return await self._do_update(self._stop_event if self.is_running else None)

    async def _run_loop(self):
        """Main scheduling loop."""
        try:
            self._load_interval()
            if self.state == SchedulerState.STARTING:
                self.state = SchedulerState.RUNNING

            logger.info(f"Waiting {self.warmup_seconds:g}s before first update")
            if await self._wait(self.warmup_seconds):
                return

            while not self._stop_event.is_set():
                try:
                    logger.info("Starting scheduled feed update")
                    await self._do_update(self._stop_event)

                    # Reload interval after each update in case it changed
                    self._load_interval()
                except Exception:
                    logger.exception("Error occurred during scheduled feed update")

                logger.info(f"Next feed update scheduled in {self._interval_minutes} minutes")
                if await self._wait(self._interval_minutes * 60):
                    break
        finally:
            logger.info("Feed update scheduler loop exited")
            if self.state != SchedulerState.STOPPING:
                self.state = SchedulerState.STOPPED

    async def _wait(self, seconds: float) -> bool:
        """Sleep, waking early on stop. Returns True if stop was requested."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    def _load_interval(self):
        try:
            self._interval_minutes = self.settings.get_interval()
            logger.info(f"Feed update interval loaded: {self._interval_minutes} minutes")
        except Exception:
            logger.exception("Error loading update interval, using default")
            self._interval_minutes = DEFAULT_FEED_UPDATE_INTERVAL

    async def _do_update(self, cancel_event: asyncio.Event | None) -> FeedUpdateResult:
        result = await self.sync_engine.update_all_feeds(cancel_event)
        self.last_result = result

        logger.info(
            f"Feed update completed: {result.total_feeds} total, "
            f"{result.successful_updates} successful, {result.failed_updates} failed"
        )

        for error in result.errors[:MAX_LOGGED_ERRORS]:
            logger.warning(f"Feed update error: {error}")
        if len(result.errors) > MAX_LOGGED_ERRORS:
            logger.warning(f"... and {len(result.errors) - MAX_LOGGED_ERRORS} more errors")

        return result
