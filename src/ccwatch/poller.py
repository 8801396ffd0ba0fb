import asyncio
import time

import structlog

from ccwatch.errors import LockFailure
from ccwatch.metrics import MetricsUpdater
from ccwatch.models import DEFAULT_INTERVAL_SECONDS, UsageSnapshot, interval_for
from ccwatch.notifier import Notifier
from ccwatch.source.base import UsageSource
from ccwatch.state import StateStore

logger = structlog.get_logger()


class Poller:
    """
    Poller is responsible for the periodic refresh of the usage
    snapshot. Each cycle looks up the interval from the current
    settings, fetches from the source, stores and publishes the
    result, then sleeps for the interval.

    Settings are read at the start of every cycle, so a change takes
    effect once the sleep in progress ends; there is no early wake-up
    and no restart. A failing fetch is logged and the loop carries on
    with the last stored snapshot.
    """

    def __init__(
        self,
        source: "UsageSource",
        store: "StateStore",
        notifier: "Notifier",
        metrics_updater: "MetricsUpdater",
    ) -> "None":
        self._source = source
        self._store = store
        self._notifier = notifier
        self._metrics = metrics_updater
        self._stop_event: "asyncio.Event" = asyncio.Event()
        self._task: "asyncio.Task[None] | None" = None

    def start(self) -> "asyncio.Task[None]":
        """
        spawns the polling loop as a task. Calling it again returns
        the task already running instead of spawning another loop.
        """
        if self._task is None:
            self._task = asyncio.create_task(self.run(), name="ccwatch-poller")
        return self._task

    def stop(self) -> "None":
        """
        signals the loop to stop after the current cycle. Only used on
        process shutdown.
        """
        self._stop_event.set()

    def current_interval(self) -> "int":
        try:
            settings = self._store.get_settings()
        except LockFailure:
            logger.exception("settings_read_error")
            return DEFAULT_INTERVAL_SECONDS
        return interval_for(settings.polling_frequency)

    async def run(self) -> "None":
        """
        runs the polling loop until stop() is called.
        """
        while not self._stop_event.is_set():
            interval = await self.run_once()
            await self._sleep(interval)

    async def run_once(self) -> "int":
        """
        performs one fetch cycle and returns the interval to wait
        before the next one.
        """
        interval = self.current_interval()
        logger.info("fetch_cycle_start", source=self._source.name, interval=interval)

        cycle_start = time.monotonic()
        snapshot: "UsageSnapshot | None" = None
        try:
            snapshot = await self._source.fetch()
        except Exception:
            logger.exception("usage_fetch_error", source=self._source.name)
            self._metrics.inc_fetch_error(self._source.name, "poll")

        duration = time.monotonic() - cycle_start
        self._metrics.observe_fetch_duration(self._source.name, duration)

        if snapshot is not None:
            try:
                self._store.set_snapshot(snapshot)
            except LockFailure:
                logger.exception("snapshot_store_error", source=self._source.name)
            self._notifier.publish(snapshot)
            self._metrics.update_snapshot(self._source.name, snapshot, time.time())

        logger.info("fetch_cycle_end", source=self._source.name)
        return interval

    async def _sleep(self, seconds: "float") -> "None":
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
        except TimeoutError:
            pass
