"""Live progress reporting with throughput and ETA."""

import logging
import sys
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, TextIO

from tqdm import tqdm

from config.constants import LOG_BUFFER_LIMIT


def format_duration(seconds: float | None) -> str:
    """Format seconds as H:MM:SS / M:SS ('--:--' when unknown)."""
    if seconds is None:
        return "--:--"
    seconds = int(round(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


@dataclass
class ProgressReporter:
    """Progress bar for one category's pages.

    While the bar is active, log lines are buffered and written above the
    bar with tqdm.write so they never tear it. The buffer is flushed when
    it grows past `buffer_limit`, on flush() and on stop().
    """

    description: str = "Pages"
    unit: str = "page"
    buffer_limit: int = LOG_BUFFER_LIMIT
    clock: Callable[[], float] = time.monotonic
    stream: TextIO | None = None
    disable: bool = False

    total: int = field(default=0, init=False)
    completed: int = field(default=0, init=False)
    extra: dict[str, Any] = field(default_factory=dict, init=False)
    _started_at: float | None = field(default=None, init=False, repr=False)
    _bar: tqdm | None = field(default=None, init=False, repr=False)
    _buffer: list[str] = field(default_factory=list, init=False, repr=False)

    @property
    def active(self) -> bool:
        return self._bar is not None

    @property
    def elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        return max(0.0, self.clock() - self._started_at)

    @property
    def throughput(self) -> float:
        """Completed units per second."""
        elapsed = self.elapsed
        if elapsed <= 0:
            return 0.0
        return self.completed / elapsed

    @property
    def eta_seconds(self) -> float | None:
        """Seconds left at the current throughput; None while it is 0."""
        rate = self.throughput
        if rate <= 0:
            return None
        return max(0, self.total - self.completed) / rate

    def start(self, total_units: int, description: str | None = None) -> None:
        """Begin a new progress run (stops any active one first)."""
        if self.active:
            self.stop()
        if description is not None:
            self.description = description
        self.total = total_units
        self.completed = 0
        self.extra = {}
        self._started_at = self.clock()
        self._bar = tqdm(
            total=total_units,
            desc=self.description,
            unit=self.unit,
            file=self.stream or sys.stderr,
            disable=self.disable,
            leave=False,
            dynamic_ncols=True,
        )

    def update(self, completed_units: int, extra: dict[str, Any] | None = None) -> None:
        """Move the bar to `completed_units` (absolute, not a delta)."""
        completed_units = min(max(completed_units, 0), self.total)
        if extra:
            self.extra.update(extra)

        delta = completed_units - self.completed
        self.completed = completed_units
        if self._bar is not None:
            if delta > 0:
                self._bar.update(delta)
            self._bar.set_postfix(self.postfix(), refresh=True)

    def postfix(self) -> dict[str, Any]:
        """Values shown after the bar: speed, ETA and extras."""
        return {
            "speed": f"{self.throughput:.2f}/s",
            "eta": format_duration(self.eta_seconds),
            **self.extra,
        }

    def log(self, message: str) -> None:
        """Print `message`, buffering it while the bar is active."""
        if not self.active:
            self._write(message)
            return
        self._buffer.append(message)
        if len(self._buffer) > self.buffer_limit:
            self.flush()

    def flush(self) -> None:
        """Write all buffered lines above the bar."""
        lines, self._buffer = self._buffer, []
        for line in lines:
            self._write(line)

    def stop(self) -> None:
        """Close the bar and flush anything still buffered."""
        if self._bar is not None:
            self._bar.close()
            self._bar = None
        self.flush()

    def _write(self, message: str) -> None:
        tqdm.write(message, file=self.stream or sys.stderr)

    def __enter__(self) -> "ProgressReporter":
        return self

    def __exit__(self, *args: Any) -> None:
        self.stop()


class ProgressLogHandler(logging.Handler):
    """Logging handler that routes formatted records into a ProgressReporter."""

    def __init__(self, reporter: ProgressReporter, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.reporter = reporter

    def emit(self, record: logging.LogRecord) -> None:
        try:
            message = self.format(record)
            self.reporter.log(message)
        except Exception:
            self.handleError(record)
