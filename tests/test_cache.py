"""Tests for the resilience cache."""

import asyncio
import logging

import pytest

from rampgate.cache import ResilienceCache
from rampgate.errors import (
    AuthenticationFailed,
    CredentialError,
    SigningError,
    TransportError,
    UpstreamTimeout,
)
from rampgate.upstream.base import UpstreamResult

KEY = ("api.developer.coinbase.com", "config", "sell")


class Fetcher:
    """Scripted fetcher that records how often it was called."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def fallback():
    return "static"


class TestFreshness:
    """Tests for hits and expiry."""

    @pytest.mark.asyncio
    async def test_fresh_entry_skips_upstream(self, cache):
        fetcher = Fetcher(UpstreamResult.ok("live"))

        assert await cache.get_or_fetch(KEY, fetcher, fallback) == "live"
        assert await cache.get_or_fetch(KEY, fetcher, fallback) == "live"

        assert fetcher.calls == 1
        assert cache.stats.hits == 1
        assert cache.stats.misses == 1

    @pytest.mark.asyncio
    async def test_failing_fetcher_not_consulted_while_fresh(self, cache):
        await cache.get_or_fetch(KEY, Fetcher(UpstreamResult.ok("live")), fallback)
        failing = Fetcher(TransportError("down"))

        assert await cache.get_or_fetch(KEY, failing, fallback) == "live"
        assert failing.calls == 0

    @pytest.mark.asyncio
    async def test_expired_entry_refetched(self, cache, clock):
        fetcher = Fetcher(UpstreamResult.ok("v1"), UpstreamResult.ok("v2"))

        await cache.get_or_fetch(KEY, fetcher, fallback)
        clock.advance(900)

        assert await cache.get_or_fetch(KEY, fetcher, fallback) == "v2"
        assert fetcher.calls == 2

    @pytest.mark.asyncio
    async def test_per_call_ttl(self, cache, clock):
        fetcher = Fetcher(UpstreamResult.ok("v1"), UpstreamResult.ok("v2"))

        await cache.get_or_fetch(KEY, fetcher, fallback, ttl=10)
        clock.advance(11)

        assert await cache.get_or_fetch(KEY, fetcher, fallback, ttl=10) == "v2"

    @pytest.mark.asyncio
    async def test_keys_are_independent(self, cache):
        us = Fetcher(UpstreamResult.ok("us"))
        gb = Fetcher(UpstreamResult.ok("gb"))

        assert await cache.get_or_fetch(("options", "US"), us, fallback) == "us"
        assert await cache.get_or_fetch(("options", "GB"), gb, fallback) == "gb"
        assert us.calls == gb.calls == 1


class TestDegradation:
    """Tests for stale and fallback serving."""

    @pytest.mark.asyncio
    async def test_failure_without_entry_serves_fallback(self, cache):
        fetcher = Fetcher(UpstreamResult.fail(TransportError("down")))

        assert await cache.get_or_fetch(KEY, fetcher, fallback) == "static"
        assert cache.stats.fallback_served == 1
        assert "TransportError" in cache.stats.last_error

    @pytest.mark.asyncio
    async def test_stale_preferred_over_fallback(self, cache, clock):
        fetcher = Fetcher(UpstreamResult.ok("live"), UpstreamResult.fail(UpstreamTimeout("slow")))

        await cache.get_or_fetch(KEY, fetcher, fallback)
        clock.advance(3600)

        assert await cache.get_or_fetch(KEY, fetcher, fallback) == "live"
        assert cache.stats.stale_served == 1
        assert cache.stats.fallback_served == 0

    @pytest.mark.asyncio
    async def test_stale_entry_survives_failure(self, cache, clock):
        fetcher = Fetcher(UpstreamResult.ok("live"), UpstreamResult.fail(TransportError("down")))

        await cache.get_or_fetch(KEY, fetcher, fallback)
        clock.advance(3600)
        await cache.get_or_fetch(KEY, fetcher, fallback)

        assert cache.peek(KEY).value == "live"

    @pytest.mark.asyncio
    async def test_fallback_is_not_cached(self, cache):
        fetcher = Fetcher(UpstreamResult.fail(TransportError("down")), UpstreamResult.ok("live"))

        assert await cache.get_or_fetch(KEY, fetcher, fallback) == "static"
        assert cache.peek(KEY) is None
        assert await cache.get_or_fetch(KEY, fetcher, fallback) == "live"

    @pytest.mark.asyncio
    async def test_unexpected_exception_degrades(self, cache):
        fetcher = Fetcher(RuntimeError("bug in parser"))

        assert await cache.get_or_fetch(KEY, fetcher, fallback) == "static"

    @pytest.mark.asyncio
    async def test_auth_failure_is_loud(self, cache, caplog):
        fetcher = Fetcher(UpstreamResult.fail(AuthenticationFailed(401, "invalid jwt"), 401))

        with caplog.at_level(logging.ERROR, logger="rampgate.cache"):
            assert await cache.get_or_fetch(KEY, fetcher, fallback) == "static"

        assert cache.stats.auth_failures == 1
        assert any(
            r.levelno == logging.ERROR and "rejected credentials" in r.getMessage() for r in caplog.records
        )

    @pytest.mark.asyncio
    async def test_injected_logger(self, clock, caplog):
        logger = logging.getLogger("tests.cache_sink")
        cache = ResilienceCache(ttl_seconds=900, clock=clock, logger=logger)
        fetcher = Fetcher(UpstreamResult.fail(TransportError("down")))

        with caplog.at_level(logging.WARNING, logger="tests.cache_sink"):
            await cache.get_or_fetch(KEY, fetcher, fallback)

        assert any(r.name == "tests.cache_sink" for r in caplog.records)


class TestFatalErrors:
    """Credential and signing errors are never hidden."""

    @pytest.mark.asyncio
    async def test_raised_credential_error_propagates(self, cache):
        with pytest.raises(CredentialError):
            await cache.get_or_fetch(KEY, Fetcher(CredentialError("no key")), fallback)

    @pytest.mark.asyncio
    async def test_returned_signing_error_propagates(self, cache):
        fetcher = Fetcher(UpstreamResult.fail(SigningError("bad path")))
        with pytest.raises(SigningError):
            await cache.get_or_fetch(KEY, fetcher, fallback)


class TestConcurrency:
    """Tests for per-key serialization."""

    @pytest.mark.asyncio
    async def test_concurrent_misses_collapse(self, cache):
        release = asyncio.Event()
        calls = 0

        async def slow_fetch():
            nonlocal calls
            calls += 1
            await release.wait()
            return UpstreamResult.ok("live")

        tasks = [asyncio.create_task(cache.get_or_fetch(KEY, slow_fetch, fallback)) for _ in range(5)]
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(*tasks)

        assert results == ["live"] * 5
        assert calls == 1

    @pytest.mark.asyncio
    async def test_different_keys_fetch_in_parallel(self, cache):
        started = []
        release = asyncio.Event()

        def fetcher_for(name):
            async def fetch():
                started.append(name)
                await release.wait()
                return UpstreamResult.ok(name)
            return fetch

        first = asyncio.create_task(cache.get_or_fetch(("k", 1), fetcher_for("a"), fallback))
        second = asyncio.create_task(cache.get_or_fetch(("k", 2), fetcher_for("b"), fallback))
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        assert sorted(started) == ["a", "b"]
        release.set()
        assert await asyncio.gather(first, second) == ["a", "b"]

    def test_reset_clears_everything(self, cache):
        cache.store(KEY, "value")
        cache.stats.hits = 3

        cache.reset()

        assert cache.peek(KEY) is None
        assert cache.stats.hits == 0
