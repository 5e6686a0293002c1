"""Timing information for backend lookups."""

import logging
import threading
import time
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BackendCallMetric:
    """One backend lookup: which reference, how long, whether it succeeded."""

    reference: str
    duration: float
    success: bool


@dataclass
class ResolutionMetrics:
    """Aggregated metrics for one pipeline run.

    Worker threads record calls concurrently, so `record_call` takes a lock.
    Values are never recorded, only reference texts and timings.
    """

    total_entries: int = 0
    successful_resolutions: int = 0
    failed_resolutions: int = 0
    cache_hits: int = 0
    total_duration: float = 0.0
    calls: list[BackendCallMetric] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record_call(self, reference: str, duration: float, success: bool) -> None:
        with self._lock:
            self.calls.append(BackendCallMetric(reference, duration, success))
            if success:
                self.successful_resolutions += 1
            else:
                self.failed_resolutions += 1

    def record_cache_hit(self) -> None:
        with self._lock:
            self.cache_hits += 1

    def slowest_calls(self, limit: int = 5) -> list[BackendCallMetric]:
        with self._lock:
            return sorted(self.calls, key=lambda call: call.duration, reverse=True)[:limit]

    def log_summary(self) -> None:
        """Log a performance summary at INFO level."""
        logger.info("=== Secret Resolution Performance Summary ===")
        logger.info(f"Total entries processed: {self.total_entries}")
        logger.info(f"Successful resolutions: {self.successful_resolutions}")
        logger.info(f"Failed resolutions: {self.failed_resolutions}")
        logger.info(f"Cache hits: {self.cache_hits}")
        logger.info(f"Total time: {self.total_duration:.3f}s")

        if self.calls:
            average = sum(call.duration for call in self.calls) / len(self.calls)
            logger.info(f"Average time per backend call: {average:.3f}s")
            logger.info("Slowest backend calls:")
            for index, call in enumerate(self.slowest_calls(), start=1):
                status = "success" if call.success else "failed"
                logger.info(f"  {index}. {call.reference} - {call.duration:.3f}s ({status})")


class Timer:
    """Context manager measuring wall-clock time of a block."""

    def __init__(self, label: str):
        self.label = label
        self.start = 0.0
        self.elapsed = 0.0

    def __enter__(self) -> "Timer":
        logger.debug(f"Starting timer: {self.label}")
        self.start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.elapsed = time.perf_counter() - self.start
        logger.debug(f"Timer '{self.label}' completed in {self.elapsed:.3f}s")
