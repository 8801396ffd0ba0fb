import time
from typing import Any, Protocol

import structlog

from ccwatch.errors import CommandError, LockFailure
from ccwatch.metrics import MetricsUpdater
from ccwatch.models import Settings, UsageSnapshot
from ccwatch.notifier import Notifier
from ccwatch.source.base import UsageSource
from ccwatch.state import StateStore

logger = structlog.get_logger()


class WindowController(Protocol):
    """
    WindowController is the UI toolkit side of the window commands.
    """

    def show(self) -> "None": ...

    def hide(self) -> "None": ...

    def quit(self) -> "None": ...


class Commands:
    """
    Commands is the set of operations a UI can invoke. Failures reach
    the caller as CommandError with a readable message.
    """

    def __init__(
        self,
        source: "UsageSource",
        store: "StateStore",
        notifier: "Notifier",
        metrics_updater: "MetricsUpdater",
        window: "WindowController | None" = None,
    ) -> "None":
        self._source = source
        self._store = store
        self._notifier = notifier
        self._metrics = metrics_updater
        self._window = window

    async def get_usage(self) -> "UsageSnapshot":
        """
        fetches right away, bypassing the poller's timer, stores the
        result and returns it. The returned snapshot is the one this
        call fetched even if a poll cycle stores another right after.
        """
        try:
            snapshot = await self._source.fetch()
        except Exception as exc:
            logger.exception("usage_fetch_error", source=self._source.name)
            self._metrics.inc_fetch_error(self._source.name, "command")
            raise CommandError(f"Failed to get usage data: {exc}") from exc

        try:
            self._store.set_snapshot(snapshot)
        except LockFailure as exc:
            logger.exception("snapshot_store_error", source=self._source.name)
            raise CommandError(f"Failed to get usage data: {exc}") from exc

        self._notifier.publish(snapshot)
        self._metrics.update_snapshot(self._source.name, snapshot, time.time())
        return snapshot

    def get_settings(self) -> "Settings":
        try:
            return self._store.get_settings()
        except LockFailure as exc:
            logger.exception("settings_read_error")
            raise CommandError(str(exc)) from exc

    def update_settings(self, new_settings: "Settings | dict[str, Any]") -> "Settings":
        """
        replaces the settings wholesale. The poller picks the new
        interval up at its next cycle; nothing is restarted.
        """
        if isinstance(new_settings, dict):
            new_settings = Settings.from_dict(new_settings)

        try:
            previous = self._store.set_settings(new_settings)
        except LockFailure as exc:
            logger.exception("settings_update_error")
            raise CommandError(f"Failed to lock settings: {exc}") from exc

        logger.info(
            "settings_updated",
            polling_frequency=new_settings.polling_frequency,
            previous_polling_frequency=previous.polling_frequency,
            auto_start=new_settings.auto_start,
        )
        return new_settings

    def _delegate(self, action: "str") -> "None":
        if self._window is None:
            return
        try:
            getattr(self._window, action)()
        except Exception as exc:
            logger.exception("window_command_error", action=action)
            raise CommandError(str(exc)) from exc

    def show_window(self) -> "None":
        self._delegate("show")

    def hide_window(self) -> "None":
        self._delegate("hide")

    def quit(self) -> "None":
        self._delegate("quit")
