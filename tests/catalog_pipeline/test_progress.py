"""Tests for catalog-pipeline/rate_limit/progress.py."""

import io
import logging
import sys
from pathlib import Path

import pytest

# Add catalog-pipeline to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "catalog-pipeline"))

from rate_limit.progress import ProgressLogHandler, ProgressReporter, format_duration


class FakeClock:
    def __init__(self, now: float = 100.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def make_reporter(clock: FakeClock | None = None, **kwargs) -> tuple[ProgressReporter, io.StringIO]:
    stream = io.StringIO()
    reporter = ProgressReporter(
        clock=clock or FakeClock(), stream=stream, disable=True, **kwargs
    )
    return reporter, stream


class TestFormatDuration:
    """Tests for format_duration()."""

    def test_unknown(self):
        assert format_duration(None) == "--:--"

    def test_minutes(self):
        assert format_duration(75) == "1:15"

    def test_hours(self):
        assert format_duration(3725) == "1:02:05"

    def test_zero(self):
        assert format_duration(0) == "0:00"


class TestThroughputAndEta:
    """Tests for throughput and ETA."""

    def test_eta_unknown_before_progress(self):
        clock = FakeClock()
        reporter, _ = make_reporter(clock)
        reporter.start(10)

        clock.now += 5
        assert reporter.throughput == 0
        assert reporter.eta_seconds is None
        assert reporter.postfix()["eta"] == "--:--"

    def test_eta_from_rate(self):
        clock = FakeClock()
        reporter, _ = make_reporter(clock)
        reporter.start(10)

        clock.now += 4
        reporter.update(2)

        assert reporter.throughput == pytest.approx(0.5)
        assert reporter.eta_seconds == pytest.approx(16.0)
        assert reporter.postfix()["speed"] == "0.50/s"
        assert reporter.postfix()["eta"] == "0:16"

    def test_update_is_absolute_and_clamped(self):
        reporter, _ = make_reporter()
        reporter.start(5)

        reporter.update(3)
        reporter.update(3)
        assert reporter.completed == 3

        reporter.update(99)
        assert reporter.completed == 5

        reporter.update(-1)
        assert reporter.completed == 0

    def test_extras_in_postfix(self):
        reporter, _ = make_reporter()
        reporter.start(5)

        reporter.update(1, {"products": 48})

        assert reporter.postfix()["products"] == 48

    def test_start_resets(self):
        reporter, _ = make_reporter()
        reporter.start(5, description="phones")
        reporter.update(5, {"products": 10})

        reporter.start(3)

        assert reporter.completed == 0
        assert reporter.extra == {}
        assert reporter.description == "phones"


class TestLogBuffering:
    """Tests for log buffering while the bar is active."""

    def test_writes_directly_when_idle(self):
        reporter, stream = make_reporter()

        reporter.log("hello")

        assert "hello" in stream.getvalue()

    def test_buffers_while_active(self):
        reporter, stream = make_reporter(buffer_limit=3)
        reporter.start(5)

        for i in range(3):
            reporter.log(f"line {i}")

        assert stream.getvalue() == ""

    def test_flushes_past_limit(self):
        reporter, stream = make_reporter(buffer_limit=3)
        reporter.start(5)

        for i in range(4):
            reporter.log(f"line {i}")

        output = stream.getvalue()
        assert [f"line {i}" in output for i in range(4)] == [True] * 4
        assert output.index("line 0") < output.index("line 3")

    def test_stop_flushes(self):
        reporter, stream = make_reporter()
        reporter.start(5)
        reporter.log("pending")

        reporter.stop()

        assert "pending" in stream.getvalue()
        assert not reporter.active

    def test_context_manager_stops(self):
        reporter, stream = make_reporter()

        with reporter:
            reporter.start(2)
            reporter.log("inside")

        assert not reporter.active
        assert "inside" in stream.getvalue()


class TestProgressLogHandler:
    """Tests for ProgressLogHandler."""

    def test_routes_formatted_records(self):
        reporter, stream = make_reporter()
        handler = ProgressLogHandler(reporter)
        handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        record = logging.LogRecord("x", logging.WARNING, __file__, 1, "slow page", None, None)

        handler.emit(record)

        assert "WARNING slow page" in stream.getvalue()
