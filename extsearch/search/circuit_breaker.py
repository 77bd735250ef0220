"""Per-engine circuit breaker.

An engine that fails ``threshold`` times with no gap longer than ``window``
between failures is skipped. Once ``window`` has elapsed since its last
failure, its record is dropped and it becomes eligible again.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

FAILURE_THRESHOLD = 3
FAILURE_WINDOW_SECONDS = 5 * 60


@dataclass
class FailureRecord:
    count: int
    last_failure: float


class CircuitBreaker:
    """Thread-safe failure store keyed by engine id."""

    def __init__(
        self,
        threshold: int = FAILURE_THRESHOLD,
        window_seconds: float = FAILURE_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if threshold < 1:
            raise ValueError(f"threshold must be >= 1, got {threshold}")
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive, got {window_seconds}")
        self.threshold = threshold
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._records: dict[str, FailureRecord] = {}

    def _current(self, engine_id: str, now: float) -> FailureRecord | None:
        """Caller holds the lock. Drops the record when the window has elapsed."""
        record = self._records.get(engine_id)
        if record is None:
            return None
        if now - record.last_failure > self.window_seconds:
            del self._records[engine_id]
            return None
        return record

    def record_failure(self, engine_id: str) -> int:
        """Count one failure; returns the failure count inside the current window."""
        with self._lock:
            now = self._clock()
            record = self._current(engine_id, now)
            if record is None:
                record = FailureRecord(count=0, last_failure=now)
                self._records[engine_id] = record
            record.count += 1
            record.last_failure = now
            count = record.count
        if count == self.threshold:
            logger.warning(
                "Circuit open for %s: %s failures within %.0fs",
                engine_id,
                count,
                self.window_seconds,
            )
        return count

    def is_open(self, engine_id: str) -> bool:
        """True while the engine should be skipped."""
        with self._lock:
            record = self._current(engine_id, self._clock())
            return record is not None and record.count >= self.threshold

    def failure_count(self, engine_id: str) -> int:
        with self._lock:
            record = self._current(engine_id, self._clock())
            return record.count if record else 0

    def reset(self, engine_id: str | None = None) -> None:
        with self._lock:
            if engine_id is None:
                self._records.clear()
            else:
                self._records.pop(engine_id, None)

    def snapshot(self) -> dict[str, FailureRecord]:
        """Copy of all live records."""
        with self._lock:
            now = self._clock()
            for engine_id in list(self._records):
                self._current(engine_id, now)
            return {
                k: FailureRecord(count=v.count, last_failure=v.last_failure)
                for k, v in self._records.items()
            }
