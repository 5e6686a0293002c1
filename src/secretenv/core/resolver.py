"""
Concurrent, cached secret resolution.

The resolver owns the only shared mutable state of a pipeline run: a cache of
outcomes keyed by reference text. Distinct texts are dispatched once each on a
bounded thread pool; `resolve_all` returns only after every dispatched lookup
has finished, which is the barrier between resolution and expansion.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING

from .errors import ResolutionError
from .metrics import ResolutionMetrics
from .types import FailureKind, ResolutionOutcome, ResolutionResult

if TYPE_CHECKING:
    from secretenv.backends.base import SecretBackend

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8


class SecretResolver:
    """Resolve reference texts through a backend, at most once per text.

    Failures are cached like values: resolving the same text twice within one
    resolver's lifetime always yields the same outcome, and concurrent calls
    for one uncached text share a single backend lookup. Create one resolver
    per pipeline run so the cache never outlives the invocation.

    Example:
        >>> resolver = SecretResolver(StaticBackend({"op://v/i/f": "42"}))
        >>> resolver.resolve("op://v/i/f").value
        '42'
    """

    def __init__(
        self,
        backend: SecretBackend,
        max_workers: int = DEFAULT_MAX_WORKERS,
        metrics: ResolutionMetrics | None = None,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.backend = backend
        self.max_workers = max_workers
        self.metrics = metrics if metrics is not None else ResolutionMetrics()
        self._cache: dict[str, ResolutionOutcome] = {}
        self._in_flight: dict[str, threading.Event] = {}
        self._lock = threading.Lock()

    def resolve(self, text: str) -> ResolutionOutcome:
        """Resolve a single reference text, using the cache when possible."""
        cached = self._get_cached(text)
        if cached is not None:
            self.metrics.record_cache_hit()
            logger.debug(f"Using cached outcome for {text}")
            return cached
        return self._lookup_and_store(text)

    def resolve_all(
        self, texts: Iterable[str], fail_fast: bool = False
    ) -> dict[str, ResolutionResult]:
        """Resolve many reference texts concurrently.

        Args:
            texts: Reference texts, duplicates allowed
            fail_fast: Raise on the first failure instead of collecting it

        Returns:
            One ResolutionResult per distinct text, in first-seen order

        Raises:
            ResolutionError: Only when `fail_fast` is set and a lookup failed
        """
        texts = list(texts)
        distinct = list(dict.fromkeys(texts))
        pending = []
        for text in distinct:
            if self._get_cached(text) is None:
                pending.append(text)
            else:
                self.metrics.record_cache_hit()
        for _ in range(len(texts) - len(distinct)):
            self.metrics.record_cache_hit()

        if pending:
            self._dispatch(pending, fail_fast)

        with self._lock:
            return {text: ResolutionResult(text, self._cache[text]) for text in distinct}

    def cached_texts(self) -> list[str]:
        with self._lock:
            return list(self._cache)

    def _dispatch(self, pending: list[str], fail_fast: bool) -> None:
        workers = min(self.max_workers, len(pending))
        logger.debug(f"Resolving {len(pending)} reference(s) with {workers} worker(s)")

        executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="secretenv-resolve")
        try:
            futures = {executor.submit(self._lookup_and_store, text): text for text in pending}
            for future in as_completed(futures):
                outcome = future.result()
                if fail_fast and outcome.error is not None:
                    for other in futures:
                        other.cancel()
                    raise outcome.error
        finally:
            # Never return before in-flight lookups finish
            executor.shutdown(wait=True, cancel_futures=True)

    def _lookup_and_store(self, text: str) -> ResolutionOutcome:
        # Callers racing on the same text wait for the first lookup
        while True:
            with self._lock:
                cached = self._cache.get(text)
                if cached is not None:
                    return cached
                in_flight = self._in_flight.get(text)
                if in_flight is None:
                    in_flight = self._in_flight[text] = threading.Event()
                    break
            in_flight.wait()

        try:
            outcome = self._lookup(text)
            with self._lock:
                self._cache[text] = outcome
            return outcome
        finally:
            with self._lock:
                del self._in_flight[text]
            in_flight.set()

    def _lookup(self, text: str) -> ResolutionOutcome:
        start = time.perf_counter()
        try:
            value = self.backend.resolve(text)
        except ResolutionError as e:
            duration = time.perf_counter() - start
            logger.warning(f"Failed to resolve {text} in {duration:.3f}s: {e}")
            self.metrics.record_call(text, duration, success=False)
            return ResolutionOutcome.failure(e)
        except Exception as e:
            duration = time.perf_counter() - start
            logger.warning(
                f"Backend {self.backend.name} raised {type(e).__name__} resolving {text}: {e}"
            )
            self.metrics.record_call(text, duration, success=False)
            error = ResolutionError(FailureKind.BACKEND_UNAVAILABLE, text, f"{type(e).__name__}: {e}")
            return ResolutionOutcome.failure(error)

        duration = time.perf_counter() - start
        logger.debug(f"Resolved {text} in {duration:.3f}s")
        self.metrics.record_call(text, duration, success=True)
        return ResolutionOutcome.success(str(value))

    def _get_cached(self, text: str) -> ResolutionOutcome | None:
        with self._lock:
            return self._cache.get(text)
