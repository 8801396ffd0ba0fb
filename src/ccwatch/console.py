from typing import Callable

import structlog

logger = structlog.get_logger()


class ConsoleStatus:
    """
    ConsoleStatus is the status sink used when no tray toolkit is
    attached. It logs the label and tooltip whenever they change.
    """

    def __init__(self) -> "None":
        self.label: "str" = "$0.00"
        self.tooltip: "str" = "Claude Usage Monitor"

    def set_label(self, label: "str") -> "None":
        if label != self.label:
            logger.info("status_label", label=label)
        self.label = label

    def set_tooltip(self, tooltip: "str") -> "None":
        if tooltip != self.tooltip:
            logger.debug("status_tooltip", tooltip=tooltip)
        self.tooltip = tooltip


class HeadlessWindow:
    """
    HeadlessWindow stands in for the dashboard window. Show and hide
    only flip a flag; quit invokes the given callback.
    """

    def __init__(self, on_quit: "Callable[[], None] | None" = None) -> "None":
        self.visible = False
        self._on_quit = on_quit

    def show(self) -> "None":
        self.visible = True

    def hide(self) -> "None":
        self.visible = False

    def quit(self) -> "None":
        logger.info("quit_requested")
        if self._on_quit is not None:
            self._on_quit()
