"""
Global pytest configuration and fixtures.
"""

import threading
import time

import pytest

from secretenv.backends.base import SecretBackend
from secretenv.core.errors import ResolutionError
from secretenv.core.types import FailureKind


class CountingBackend(SecretBackend):
    """In-memory backend that records every lookup.

    Values map reference text to a string, or to a FailureKind to make that
    reference fail. `delay` slows every lookup down so concurrency is
    observable.
    """

    def __init__(self, values=None, delay: float = 0.0):
        super().__init__()
        self.values = dict(values or {})
        self.delay = delay
        self.calls: list[str] = []
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "counting"

    @property
    def bare_schemes(self) -> tuple[str, ...]:
        return ("op://",)

    def resolve(self, reference: str) -> str:
        with self._lock:
            self.calls.append(reference)
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            value = self.values.get(reference, FailureKind.NOT_FOUND)
            if isinstance(value, FailureKind):
                raise ResolutionError(value, reference)
            return value
        finally:
            with self._lock:
                self.active -= 1

    def call_count(self, reference: str) -> int:
        with self._lock:
            return self.calls.count(reference)


@pytest.fixture
def counting_backend():
    """Factory fixture building CountingBackend instances."""
    return CountingBackend


@pytest.fixture(autouse=True)
def isolate_environment(monkeypatch, tmp_path):
    """Keep the developer's configuration and debug flags out of every test."""
    monkeypatch.delenv("SECRETENV_CONFIG", raising=False)
    monkeypatch.delenv("SECRETENV_DEBUG", raising=False)
    monkeypatch.delenv("SECRETENV_PROFILE", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
