"""
Tests for the SyncScheduler polling loop.
"""

from outlook_google_sync.models import EventOutcome
from outlook_google_sync.models import SourceReadError
from outlook_google_sync.models import SyncAction
from outlook_google_sync.models import SyncReport
from outlook_google_sync.scheduler import SyncScheduler


class CountingPass:
    def __init__(self, results=None):
        self.calls = 0
        self.results = list(results or [])

    def __call__(self) -> SyncReport:
        self.calls += 1
        if self.results:
            result = self.results.pop(0)
            if isinstance(result, Exception):
                raise result
            return result
        return SyncReport()


def test_runs_max_passes_without_sleeping_after_last():
    run_pass = CountingPass()
    scheduler = SyncScheduler(run_pass, interval=0)

    scheduler.run(max_passes=3)

    assert run_pass.calls == 3
    assert scheduler.passes == 3


def test_stop_during_pass_exits_after_it():
    scheduler = None

    def run_pass():
        scheduler.stop()
        return SyncReport()

    scheduler = SyncScheduler(run_pass, interval=3600)
    scheduler.run()

    assert scheduler.passes == 1
    assert scheduler.stopped


def test_stopped_before_start_runs_nothing():
    run_pass = CountingPass()
    scheduler = SyncScheduler(run_pass, interval=0)
    scheduler.stop()

    scheduler.run()

    assert run_pass.calls == 0


def test_aborted_pass_does_not_stop_loop(caplog):
    run_pass = CountingPass([SourceReadError("Graph down"), SyncReport()])
    scheduler = SyncScheduler(run_pass, interval=0)

    scheduler.run(max_passes=2)

    assert run_pass.calls == 2
    assert "Sync pass aborted: Graph down" in caplog.text


def test_partial_failure_is_logged(caplog):
    report = SyncReport()
    report.record(EventOutcome(SyncAction.CREATE, "A", ok=False, error="boom"))
    scheduler = SyncScheduler(CountingPass([report]), interval=0)

    scheduler.run(max_passes=1)

    assert "1 failed event(s)" in caplog.text


def test_unexpected_exception_is_logged_and_loop_continues(caplog):
    run_pass = CountingPass([ConnectionResetError("connection reset by peer"), SyncReport()])
    scheduler = SyncScheduler(run_pass, interval=0)

    scheduler.run(max_passes=2)

    assert run_pass.calls == 2
    assert scheduler.passes == 2
    assert "Sync pass crashed" in caplog.text
    assert "ConnectionResetError" in caplog.text
