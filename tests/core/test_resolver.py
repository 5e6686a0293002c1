import threading

import pytest

from secretenv.backends.static import StaticBackend
from secretenv.core.errors import ResolutionError
from secretenv.core.resolver import SecretResolver
from secretenv.core.types import FailureKind


class TestSecretResolver:
    """Test SecretResolver caching and error handling."""

    def test_resolve_single(self):
        """Test resolving one reference."""
        resolver = SecretResolver(StaticBackend({"op://v/i/f": "42"}))
        outcome = resolver.resolve("op://v/i/f")
        assert outcome.ok
        assert outcome.value == "42"

    def test_resolve_is_cached(self, counting_backend):
        """Test that repeated lookups come from the cache."""
        backend = counting_backend({"op://v/i/f": "42"})
        resolver = SecretResolver(backend)

        first = resolver.resolve("op://v/i/f")
        second = resolver.resolve("op://v/i/f")

        assert first is second
        assert backend.call_count("op://v/i/f") == 1
        assert resolver.metrics.cache_hits == 1

    def test_failures_are_cached(self, counting_backend):
        """Test that failures are cached like values."""
        backend = counting_backend({"op://v/i/f": FailureKind.DENIED})
        resolver = SecretResolver(backend)

        first = resolver.resolve("op://v/i/f")
        second = resolver.resolve("op://v/i/f")

        assert not first.ok
        assert first.error.kind == FailureKind.DENIED
        assert second.error is first.error
        assert backend.call_count("op://v/i/f") == 1

    def test_unexpected_exception_becomes_backend_unavailable(self):
        """Test that unexpected backend errors map to BACKEND_UNAVAILABLE."""
        class ExplodingBackend(StaticBackend):
            def resolve(self, reference):
                raise RuntimeError("connection reset")

        resolver = SecretResolver(ExplodingBackend())
        outcome = resolver.resolve("op://v/i/f")

        assert outcome.error.kind == FailureKind.BACKEND_UNAVAILABLE
        assert "RuntimeError: connection reset" in str(outcome.error)

    def test_invalid_max_workers(self):
        """Test that at least one worker is required."""
        with pytest.raises(ValueError):
            SecretResolver(StaticBackend(), max_workers=0)


class TestResolveAll:
    """Test concurrent resolution of many references."""

    def test_deduplicates_texts(self, counting_backend):
        """Test that duplicate texts are looked up once."""
        backend = counting_backend({"op://v/i/a": "1", "op://v/i/b": "2"})
        resolver = SecretResolver(backend)

        results = resolver.resolve_all(["op://v/i/a", "op://v/i/b", "op://v/i/a", "op://v/i/a"])

        assert list(results) == ["op://v/i/a", "op://v/i/b"]
        assert results["op://v/i/a"].outcome.value == "1"
        assert results["op://v/i/b"].outcome.value == "2"
        assert backend.call_count("op://v/i/a") == 1
        assert resolver.metrics.cache_hits == 2

    def test_lookups_run_concurrently(self, counting_backend):
        """Test that lookups overlap up to the worker limit."""
        values = {f"op://v/i/{n}": str(n) for n in range(6)}
        backend = counting_backend(values, delay=0.05)
        resolver = SecretResolver(backend, max_workers=3)

        results = resolver.resolve_all(list(values))

        assert all(result.outcome.ok for result in results.values())
        assert 1 < backend.max_active <= 3

    def test_single_worker_is_sequential(self, counting_backend):
        """Test that one worker means sequential lookups."""
        values = {f"op://v/i/{n}": str(n) for n in range(4)}
        backend = counting_backend(values, delay=0.01)

        SecretResolver(backend, max_workers=1).resolve_all(list(values))

        assert backend.max_active == 1

    def test_all_lookups_finish_before_return(self, counting_backend):
        """Test that resolve_all waits for every lookup."""
        values = {f"op://v/i/{n}": str(n) for n in range(5)}
        backend = counting_backend(values, delay=0.02)
        resolver = SecretResolver(backend, max_workers=2)

        resolver.resolve_all(list(values))

        assert backend.active == 0
        assert sorted(resolver.cached_texts()) == sorted(values)

    def test_failures_are_collected(self, counting_backend):
        """Test that failures are returned, not raised."""
        backend = counting_backend({"op://v/i/ok": "fine", "op://v/i/slow": FailureKind.TIMEOUT})
        resolver = SecretResolver(backend)

        results = resolver.resolve_all(["op://v/i/ok", "op://v/i/missing", "op://v/i/slow"])

        assert results["op://v/i/ok"].outcome.value == "fine"
        assert results["op://v/i/missing"].outcome.error.kind == FailureKind.NOT_FOUND
        assert results["op://v/i/slow"].outcome.error.kind == FailureKind.TIMEOUT
        assert resolver.metrics.successful_resolutions == 1
        assert resolver.metrics.failed_resolutions == 2

    def test_fail_fast_raises(self, counting_backend):
        """Test that fail-fast raises the failure."""
        backend = counting_backend({"op://v/i/ok": "fine"})
        resolver = SecretResolver(backend)

        with pytest.raises(ResolutionError) as exc_info:
            resolver.resolve_all(["op://v/i/ok", "op://v/i/missing"], fail_fast=True)

        assert exc_info.value.kind == FailureKind.NOT_FOUND
        assert backend.active == 0

    def test_fail_fast_cancels_lookups_not_yet_started(self, counting_backend):
        """Test that fail-fast skips lookups still waiting for a worker."""
        texts = ["op://v/i/missing"] + [f"op://v/i/{n}" for n in range(9)]
        backend = counting_backend({text: "ok" for text in texts[1:]}, delay=0.02)
        resolver = SecretResolver(backend, max_workers=1)

        with pytest.raises(ResolutionError):
            resolver.resolve_all(texts, fail_fast=True)

        assert len(backend.calls) < len(texts)
        assert backend.calls[0] == "op://v/i/missing"
        assert backend.active == 0

    def test_previously_cached_texts_are_not_dispatched(self, counting_backend):
        """Test that cached texts are not looked up again."""
        backend = counting_backend({"op://v/i/a": "1", "op://v/i/b": "2"})
        resolver = SecretResolver(backend)
        resolver.resolve("op://v/i/a")

        resolver.resolve_all(["op://v/i/a", "op://v/i/b"])

        assert backend.calls.count("op://v/i/a") == 1
        assert backend.calls.count("op://v/i/b") == 1

    def test_concurrent_resolve_calls_share_one_lookup(self, counting_backend):
        """Test that racing resolve calls share one backend lookup."""
        backend = counting_backend({"op://v/i/f": "42"}, delay=0.01)
        resolver = SecretResolver(backend)
        outcomes = []

        def worker():
            outcomes.append(resolver.resolve("op://v/i/f"))

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len({id(outcome) for outcome in outcomes}) == 1
        assert backend.call_count("op://v/i/f") == 1
