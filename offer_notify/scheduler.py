"""
Poll scheduler for the fetch, dedup and notify cycle.

Runs one cycle immediately, then one per interval tick, in a single
sequential loop so that two cycles never overlap.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass

from offer_notify.exceptions import FetchError, NotifyError, StoreTransactionError
from offer_notify.feed import FeedSource
from offer_notify.models import Entry, Notification
from offer_notify.notifier import Notifier
from offer_notify.storage import SeenStore

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 45.0


class SchedulerState(enum.Enum):
    """Lifecycle states of the poll scheduler."""

    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass
class CycleResult:
    """
    Outcome of one poll cycle.

    Attributes
    ----------
    fetched : int
        Number of entries returned by the feed.
    new : int
        Number of entries marked as seen for the first time.
    notified : int
        Number of notifications delivered.
    failed : int
        Number of notifications that could not be delivered.
    aborted : bool
        Whether the cycle stopped before processing every entry.
    """

    fetched: int = 0
    new: int = 0
    notified: int = 0
    failed: int = 0
    aborted: bool = False


def next_deadline(previous: float, now: float, interval: float) -> float:
    """
    Compute the next tick after a cycle finished.

    Ticks that fell due while the cycle was running are dropped rather
    than queued, so a slow cycle never triggers back-to-back cycles.

    Parameters
    ----------
    previous : float
        The tick that started the cycle.
    now : float
        Current loop time.
    interval : float
        Seconds between ticks.

    Returns
    -------
    float
        The first tick strictly after ``now``.
    """
    deadline = previous + interval
    dropped = 0
    while deadline <= now:
        deadline += interval
        dropped += 1
    if dropped:
        logger.debug("Cycle overran the poll interval, dropped %d tick(s)", dropped)
    return deadline


class PollScheduler:
    """
    Drives the fetch, dedup and notify cycle on a fixed cadence.

    All collaborators are injected; the scheduler is the only writer to
    the seen-store and the only caller of the notifier.
    """

    def __init__(
        self,
        store: SeenStore,
        source: FeedSource,
        notifier: Notifier,
        interval: float = DEFAULT_INTERVAL,
    ):
        """
        Initialize the scheduler.

        Parameters
        ----------
        store : SeenStore
            Initialized seen-store.
        source : FeedSource
            Feed to poll.
        notifier : Notifier
            Backend delivering notifications for new entries.
        interval : float
            Seconds between two cycles.
        """
        if interval <= 0:
            raise ValueError("interval must be greater than zero")
        self.store = store
        self.source = source
        self.notifier = notifier
        self.interval = interval
        self.state = SchedulerState.IDLE

    async def run(self, stop: asyncio.Event) -> None:
        """
        Run cycles until ``stop`` is set.

        The first cycle starts immediately. ``stop`` is only observed
        between cycles, so a cycle in progress always runs to completion.

        Parameters
        ----------
        stop : asyncio.Event
            Cancellation token, typically set by a signal handler.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time()

        while not stop.is_set():
            try:
                await self.run_cycle()
            except Exception:
                logger.exception("Unexpected error during poll cycle")

            deadline = next_deadline(deadline, loop.time(), self.interval)
            try:
                await asyncio.wait_for(stop.wait(), timeout=max(0.0, deadline - loop.time()))
            except asyncio.TimeoutError:
                pass

        self.state = SchedulerState.STOPPED
        logger.info("Poll scheduler stopped")

    async def run_cycle(self) -> CycleResult:
        """
        Fetch the feed and notify every entry not seen before.

        Returns
        -------
        CycleResult
            Counters describing what the cycle did.
        """
        result = CycleResult()
        self.state = SchedulerState.RUNNING

        try:
            logger.info("Fetching feed...")
            try:
                entries = await self.source.fetch()
            except FetchError as e:
                logger.warning("Skipping cycle: %s", e)
                result.aborted = True
                return result

            result.fetched = len(entries)
            try:
                await self._process_entries(entries, result)
            except StoreTransactionError as e:
                logger.error("Aborting cycle, seen-store transaction failed: %s", e)
                result.aborted = True
        finally:
            self.state = SchedulerState.IDLE

        logger.info(
            "Cycle done: %d fetched, %d new, %d notified, %d failed",
            result.fetched,
            result.new,
            result.notified,
            result.failed,
        )
        return result

    async def _process_entries(self, entries: list[Entry], result: CycleResult) -> None:
        """
        Mark and notify entries in feed order.

        A delivery failure only affects its own entry, which stays marked.
        A store failure propagates and ends the cycle.
        """
        for entry in entries:
            if not await self.store.check_and_mark(entry.identifier):
                continue

            result.new += 1
            logger.info("New item: %s (%s)", entry.title, entry.link)

            try:
                await self.notifier.send(Notification.for_entry(entry))
            except NotifyError as e:
                result.failed += 1
                logger.error("Failed to notify for entry '%s': %s", entry.title[:50], e)
            except Exception:
                result.failed += 1
                logger.exception("Unexpected error notifying for entry '%s'", entry.title[:50])
            else:
                result.notified += 1
