from ccwatch.console import ConsoleStatus, HeadlessWindow


class TestConsoleStatus:
    def test_keeps_latest_values(self) -> "None":
        status = ConsoleStatus()
        status.set_label("$1.00")
        status.set_tooltip("Today: $1.00 | Mode: daily")
        assert status.label == "$1.00"
        assert status.tooltip == "Today: $1.00 | Mode: daily"


class TestHeadlessWindow:
    def test_show_hide(self) -> "None":
        window = HeadlessWindow()
        window.show()
        assert window.visible is True
        window.hide()
        assert window.visible is False

    def test_quit_calls_back(self) -> "None":
        calls: "list[bool]" = []
        HeadlessWindow(on_quit=lambda: calls.append(True)).quit()
        assert calls == [True]
