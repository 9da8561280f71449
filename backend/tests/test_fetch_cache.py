"""Tests for the per-session fetch cache and per-category cancellation."""

import asyncio

import pytest

from bulbfit.services.fetch_cache import FetchCache, FetchStatus


class Counter:
    """Query function factory that counts calls and can be held open."""

    def __init__(self, value, gate: asyncio.Event | None = None, stubborn: bool = False, error: Exception | None = None):
        self.value = value
        self.gate = gate
        self.stubborn = stubborn
        self.error = error
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.gate is not None:
            try:
                await self.gate.wait()
            except asyncio.CancelledError:
                if not self.stubborn:
                    raise
                await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.value


@pytest.mark.asyncio
async def test_repeat_key_hits_gateway_once():
    cache = FetchCache()
    query = Counter(["BMW", "AUDI"])

    first = await cache.resolve("brands", "brands|2012", query)
    assert first.status == FetchStatus.OK
    assert first.value == ["BMW", "AUDI"]

    second = await cache.resolve("brands", "brands|2012", query)
    assert second.status == FetchStatus.CACHED
    assert second.value == ["BMW", "AUDI"]
    assert query.calls == 1


@pytest.mark.asyncio
async def test_cache_hit_never_toggles_loading():
    cache = FetchCache()
    await cache.resolve("years", "years", Counter([2015, 2012]))

    pending = cache.resolve("years", "years", Counter([1999]))
    assert cache.is_loading("years") is False
    outcome = await pending
    assert outcome.value == [2015, 2012]
    assert cache.is_loading("years") is False


@pytest.mark.asyncio
async def test_loading_flag_set_until_settled():
    cache = FetchCache()
    gate = asyncio.Event()
    pending = cache.resolve("models", "models|2012|BMW", Counter(["3 Series"], gate))
    assert cache.is_loading("models") is True
    gate.set()
    await pending
    assert cache.is_loading("models") is False


@pytest.mark.asyncio
async def test_new_request_cancels_previous_in_same_category():
    cache = FetchCache()
    gate_a = asyncio.Event()
    query_a = Counter(["AUDI"], gate_a)
    query_b = Counter(["TOYOTA"])

    pending_a = cache.resolve("brands", "brands|2012", query_a)
    pending_b = cache.resolve("brands", "brands|2015", query_b)

    outcome_a = await pending_a
    outcome_b = await pending_b
    assert outcome_a.status == FetchStatus.CANCELLED
    assert outcome_b.status == FetchStatus.OK
    assert not cache.has("brands|2012")
    assert cache.get("brands|2015") == ["TOYOTA"]


@pytest.mark.asyncio
async def test_late_completion_after_cancel_is_discarded():
    """A superseded request that still returns a value must not write anything."""
    cache = FetchCache()
    gate_a = asyncio.Event()
    query_a = Counter(["STALE"], gate_a, stubborn=True)

    pending_a = cache.resolve("brands", "brands|2012", query_a)
    await asyncio.sleep(0)  # let the first request reach the network
    outcome_b = await cache.resolve("brands", "brands|2015", Counter(["FRESH"]))
    assert outcome_b.status == FetchStatus.OK
    assert cache.is_loading("brands") is False

    gate_a.set()
    outcome_a = await pending_a
    assert outcome_a.status == FetchStatus.CANCELLED
    assert not cache.has("brands|2012")
    assert cache.is_loading("brands") is False


@pytest.mark.asyncio
async def test_late_completion_does_not_clear_newer_loading_flag():
    cache = FetchCache()
    gate_a, gate_b = asyncio.Event(), asyncio.Event()
    pending_a = cache.resolve("brands", "brands|2012", Counter(["STALE"], gate_a, stubborn=True))
    await asyncio.sleep(0)
    pending_b = cache.resolve("brands", "brands|2015", Counter(["FRESH"], gate_b))

    gate_a.set()
    assert (await pending_a).status == FetchStatus.CANCELLED
    assert cache.is_loading("brands") is True

    gate_b.set()
    assert (await pending_b).status == FetchStatus.OK
    assert cache.is_loading("brands") is False


@pytest.mark.asyncio
async def test_cancelled_request_error_is_discarded():
    cache = FetchCache()
    gate = asyncio.Event()
    pending = cache.resolve("models", "models|2012|BMW", Counter(None, gate, stubborn=True, error=RuntimeError("boom")))
    await asyncio.sleep(0)
    assert cache.cancel("models") is True
    gate.set()
    outcome = await pending
    assert outcome.status == FetchStatus.CANCELLED
    assert outcome.error is None


@pytest.mark.asyncio
async def test_failure_clears_loading_and_caches_nothing():
    cache = FetchCache()
    query = Counter(None, error=RuntimeError("catalog unavailable"))
    outcome = await cache.resolve("years", "years", query)
    assert outcome.status == FetchStatus.FAILED
    assert not outcome.usable
    assert "catalog unavailable" in outcome.error
    assert cache.is_loading("years") is False
    assert not cache.has("years")

    # A later request goes back to the gateway
    retry = await cache.resolve("years", "years", Counter([2012]))
    assert retry.status == FetchStatus.OK


@pytest.mark.asyncio
async def test_categories_have_independent_loading_flags():
    cache = FetchCache()
    gate_years, gate_brands = asyncio.Event(), asyncio.Event()
    pending_years = cache.resolve("years", "years", Counter([2012], gate_years))
    pending_brands = cache.resolve("brands", "brands|2012", Counter(["BMW"], gate_brands))
    assert cache.loading == {"years": True, "brands": True}

    gate_brands.set()
    await pending_brands
    assert cache.is_loading("years") is True
    assert cache.is_loading("brands") is False
    # Different categories never cancel each other
    gate_years.set()
    assert (await pending_years).status == FetchStatus.OK


@pytest.mark.asyncio
async def test_explicit_cancel_clears_loading():
    cache = FetchCache()
    gate = asyncio.Event()
    pending = cache.resolve("positions", "positions|k", Counter([], gate))
    assert cache.cancel("positions") is True
    assert cache.is_loading("positions") is False
    assert cache.in_flight("positions") is None
    assert (await pending).status == FetchStatus.CANCELLED
    assert cache.cancel("positions") is False


@pytest.mark.asyncio
async def test_cancel_all():
    cache = FetchCache()
    pendings = [
        cache.resolve("years", "years", Counter([], asyncio.Event())),
        cache.resolve("brands", "brands|1", Counter([], asyncio.Event())),
    ]
    cache.cancel_all()
    outcomes = await asyncio.gather(*pendings)
    assert all(o.status == FetchStatus.CANCELLED for o in outcomes)
    assert not any(cache.loading.values())
