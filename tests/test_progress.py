"""Tests for progress reporting."""

import threading
import time

from diskscope.models import ScanProgress
from diskscope.progress import ProgressObserver, ProgressReporter


class TestProgressReporter:
    def test_starts_at_zero(self):
        assert ProgressReporter().snapshot() == ScanProgress()

    def test_advance_accumulates(self):
        reporter = ProgressReporter()
        reporter.advance(3, 300, "/a")
        reporter.advance(2, 50, "/b")

        snapshot = reporter.snapshot()
        assert snapshot.files_scanned == 5
        assert snapshot.bytes_found == 350
        assert snapshot.current_folder == "/b"

    def test_advance_without_folder_keeps_previous(self):
        reporter = ProgressReporter()
        reporter.advance(1, 1, "/a")
        reporter.advance(1, 1)
        assert reporter.snapshot().current_folder == "/a"

    def test_reset(self):
        reporter = ProgressReporter()
        reporter.advance(3, 300, "/a")
        reporter.reset()
        assert reporter.snapshot() == ScanProgress()

    def test_concurrent_writers(self):
        reporter = ProgressReporter()

        def work():
            for _ in range(1000):
                reporter.advance(1, 10, "/x")

        threads = [threading.Thread(target=work) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        snapshot = reporter.snapshot()
        assert snapshot.files_scanned == 4000
        assert snapshot.bytes_found == 40000

    def test_snapshot_is_a_copy(self):
        reporter = ProgressReporter()
        before = reporter.snapshot()
        reporter.advance(1, 1, "/a")
        assert before.files_scanned == 0


class TestProgressObserver:
    def test_polls_until_stopped(self):
        reporter = ProgressReporter()
        reporter.advance(1, 42, "/a")
        seen = []

        observer = ProgressObserver(reporter, seen.append, interval=0.01)
        observer.start()
        time.sleep(0.1)
        observer.stop()
        observer.join(1)

        assert not observer.is_alive()
        assert seen
        assert seen[-1].bytes_found == 42

    def test_stops_when_inactive(self):
        seen = []
        observer = ProgressObserver(
            ProgressReporter(), seen.append, interval=0.01, is_active=lambda: False
        )
        observer.start()
        observer.join(1)

        assert not observer.is_alive()
        assert seen == []

    def test_callback_errors_do_not_stop_polling(self):
        calls = []

        def callback(snapshot):
            calls.append(snapshot)
            raise ValueError("bad view")

        observer = ProgressObserver(ProgressReporter(), callback, interval=0.01)
        observer.start()
        time.sleep(0.1)
        observer.stop()
        observer.join(1)

        assert len(calls) > 1
