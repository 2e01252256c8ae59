"""Tests for the realtime watcher thread lifecycle."""

import logging

from prospector.services.realtime import ProspectWatcher


def make_watcher(on_change=lambda: None) -> ProspectWatcher:
    return ProspectWatcher("https://abcd1234.supabase.co", "key", on_change)


class TestProspectWatcher:
    """Lifecycle without a network connection."""

    def test_is_daemon_thread(self):
        watcher = make_watcher()
        assert watcher.daemon
        assert watcher.name == "prospects-watcher"

    def test_stop_before_start_exits_without_connecting(self, monkeypatch):
        async def fail_connect(url, key):
            raise AssertionError("should not connect")

        monkeypatch.setattr("prospector.services.realtime.acreate_client", fail_connect)
        watcher = make_watcher()

        watcher.stop()
        watcher.start()
        watcher.join(timeout=5)

        assert not watcher.is_alive()

    def test_stop_is_idempotent(self):
        watcher = make_watcher()
        watcher.stop()
        watcher.stop()

    def test_change_calls_on_change(self):
        calls = []
        watcher = make_watcher(lambda: calls.append(1))

        watcher._handle_change({"eventType": "INSERT"})

        assert calls == [1]

    def test_change_callback_errors_are_logged(self, caplog):
        def broken():
            raise RuntimeError("fetch failed")

        watcher = make_watcher(broken)

        with caplog.at_level(logging.ERROR):
            watcher._handle_change({"eventType": "DELETE"})

        assert "fetch failed" in caplog.text

    def test_connection_failure_ends_thread_and_logs(self, monkeypatch, caplog):
        async def refuse(url, key):
            raise ConnectionError("realtime unreachable")

        monkeypatch.setattr("prospector.services.realtime.acreate_client", refuse)
        watcher = make_watcher()

        with caplog.at_level(logging.ERROR):
            watcher.start()
            watcher.join(timeout=5)

        assert not watcher.is_alive()
        assert "realtime unreachable" in caplog.text
