import threading
from typing import Any, Callable, Protocol

import structlog

from ccwatch.models import UsageSnapshot

logger = structlog.get_logger()

USAGE_UPDATED_EVENT = "usage-updated"

Subscriber = Callable[[dict[str, Any]], None]


class StatusSink(Protocol):
    """
    StatusSink is the tray-style indicator the notifier writes to.
    Implementations may fail at any time, e.g. once the underlying
    widget has been torn down.
    """

    def set_label(self, label: "str") -> "None": ...

    def set_tooltip(self, tooltip: "str") -> "None": ...


def format_cost(amount: "float") -> "str":
    return f"${amount:.2f}"


def format_label(snapshot: "UsageSnapshot") -> "str":
    return format_cost(snapshot.today.cost)


def format_tooltip(snapshot: "UsageSnapshot") -> "str":
    """
    builds the longer indicator text: today's cost plus either the
    session state or the aggregation mode. Degraded snapshots carry
    their error message so the indicator never goes blank.
    """
    label = format_label(snapshot)
    session = snapshot.session

    if session is not None:
        tooltip = f"Today: {label} | Session: {format_cost(session.cost)}"
        if session.is_active:
            tooltip += " (Active)"
    else:
        tooltip = f"Today: {label} | Mode: {snapshot.mode}"

    if snapshot.error is not None:
        tooltip += f" | no data: {snapshot.error}"

    return tooltip


class Notifier:
    """
    Notifier pushes each new snapshot to the status sink and to the
    subscribers of the usage-updated event. Delivery is fire and
    forget: a failing sink or subscriber is logged and skipped, it
    never fails the caller. Subscribers registered after an event
    was emitted do not receive it.
    """

    def __init__(self, sink: "StatusSink | None" = None) -> "None":
        self._sink = sink
        self._lock: "threading.Lock" = threading.Lock()
        self._subscribers: "dict[str, list[Subscriber]]" = {}

    def subscribe(
        self,
        callback: "Subscriber",
        event: "str" = USAGE_UPDATED_EVENT,
    ) -> "Callable[[], None]":
        """
        registers callback for event and returns a function that
        removes it again.
        """
        with self._lock:
            self._subscribers.setdefault(event, []).append(callback)

        def unsubscribe() -> "None":
            with self._lock:
                callbacks = self._subscribers.get(event, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe

    def emit(self, event: "str", payload: "dict[str, Any]") -> "int":
        """
        delivers payload to every current subscriber of event and
        returns how many received it without raising.
        """
        # copy under the lock so callbacks may (un)subscribe freely
        with self._lock:
            callbacks = list(self._subscribers.get(event, []))

        delivered = 0
        for callback in callbacks:
            try:
                callback(payload)
                delivered += 1
            except Exception:
                logger.exception("subscriber_error", event=event)
        return delivered

    def update_status(self, snapshot: "UsageSnapshot") -> "bool":
        """
        writes label and tooltip to the sink. Returns False when there
        is no sink or it failed.
        """
        sink = self._sink
        if sink is None:
            return False

        try:
            sink.set_label(format_label(snapshot))
            sink.set_tooltip(format_tooltip(snapshot))
        except Exception as exc:
            logger.debug("status_sink_unavailable", error=str(exc))
            return False
        return True

    def publish(self, snapshot: "UsageSnapshot") -> "None":
        self.update_status(snapshot)
        self.emit(USAGE_UPDATED_EVENT, snapshot.to_dict())
