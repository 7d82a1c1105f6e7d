"""
TESTES - SYNC SCHEDULER
=======================
Guard de in-flight, isolamento por lead, rate limit e parada.
"""

import asyncio
from typing import Callable, List
from unittest.mock import AsyncMock

import pytest

from listing_sync.domain.entities.enums import WebhookEvent
from listing_sync.domain.listing import PropertyData, PropertySearchCriteria
from listing_sync.exceptions import SourceUnavailable
from listing_sync.infrastructure.data_sources import InMemoryListingAdapter, SourceAdapter, SourceConfig
from listing_sync.infrastructure.scheduler import SourceState, SyncScheduler, SyncTickStatus
from listing_sync.infrastructure.services import SourceRateLimiter, WebhookDispatcher, WebhookRegistry
from listing_sync.infrastructure.stores import InMemoryLeadStore, InMemorySubscriptionStore
from listing_sync.services.matching_engine import MatchingEngine
from tests.utils import FakeClock, make_lead, make_property


class ScriptedAdapter(SourceAdapter):
    """Adapter cujo comportamento é uma corrotina definida pelo teste."""

    def __init__(self, source: str, behavior: Callable):
        super().__init__(SourceConfig(source=source))
        self.behavior = behavior
        self.calls: List[PropertySearchCriteria] = []

    async def search_properties(self, criteria: PropertySearchCriteria) -> List[PropertyData]:
        self.calls.append(criteria)
        return await self.behavior(criteria)


def build_scheduler(adapter, leads, match_store, rpm=60, dispatcher=None, threshold=0.0, batch_size=50):
    engine = MatchingEngine(match_store, score_threshold=threshold)
    return SyncScheduler(
        adapters={adapter.name: adapter},
        lead_store=InMemoryLeadStore(leads),
        matching_engine=engine,
        rate_limiter=SourceRateLimiter(requests_per_minute=rpm, clock=FakeClock()),
        dispatcher=dispatcher,
        sync_intervals={adapter.name: 15},
        batch_size=batch_size,
    )


@pytest.mark.asyncio
async def test_tick_matches_leads_and_dispatches(match_store):
    adapter = InMemoryListingAdapter(SourceConfig(source="zillow"), [make_property()])
    dispatcher = AsyncMock()
    scheduler = build_scheduler(adapter, [make_lead()], match_store, dispatcher=dispatcher)

    result = await scheduler.run_tick("zillow")

    assert result.status == SyncTickStatus.COMPLETED
    assert result.leads_processed == 1
    assert [m.property_id for m in result.matches] == ["prop-1"]
    assert len(await match_store.get_for_lead("lead-1")) == 1

    dispatcher.dispatch.assert_awaited_once()
    event, data, tenant_id = dispatcher.dispatch.await_args.args
    assert event == WebhookEvent.PROPERTY_MATCHED
    assert tenant_id == "tenant-a"
    assert data["lead_id"] == "lead-1"
    assert data["source"] == "zillow"
    assert data["matches"][0]["property_id"] == "prop-1"


@pytest.mark.asyncio
async def test_no_dispatch_when_nothing_retained(match_store):
    adapter = InMemoryListingAdapter(SourceConfig(source="zillow"), [make_property()])
    dispatcher = AsyncMock()
    scheduler = build_scheduler(adapter, [make_lead()], match_store, dispatcher=dispatcher, threshold=0.6)

    result = await scheduler.run_tick("zillow")

    assert result.leads_processed == 1
    assert result.matches == []
    dispatcher.dispatch.assert_not_awaited()


@pytest.mark.asyncio
async def test_overlapping_tick_is_skipped(match_store):
    release = asyncio.Event()
    started = asyncio.Event()

    async def slow_fetch(criteria):
        started.set()
        await release.wait()
        return [make_property()]

    adapter = ScriptedAdapter("zillow", slow_fetch)
    scheduler = build_scheduler(adapter, [make_lead()], match_store)

    first = asyncio.create_task(scheduler.run_tick("zillow"))
    await started.wait()
    assert scheduler.status()["sources"]["zillow"]["state"] == SourceState.FETCHING.value

    second = await scheduler.run_tick("zillow")
    assert second.status == SyncTickStatus.SKIPPED_IN_FLIGHT

    release.set()
    first_result = await first

    assert first_result.status == SyncTickStatus.COMPLETED
    assert len(adapter.calls) == 1
    assert scheduler.status()["sources"]["zillow"]["in_flight"] is False
    assert scheduler.status()["sources"]["zillow"]["state"] == SourceState.IDLE.value


@pytest.mark.asyncio
async def test_failing_lead_does_not_abort_batch(match_store):
    async def fetch(criteria):
        if criteria.city == "Boomtown":
            raise SourceUnavailable("zillow", "timeout")
        if criteria.city == "Crashville":
            raise RuntimeError("bug in adapter")
        return [make_property(city=criteria.city)]

    leads = [
        make_lead(id="lead-1"),
        make_lead(id="lead-2", city="Boomtown"),
        make_lead(id="lead-3", city="Crashville"),
        make_lead(id="lead-4", city="Ottawa"),
    ]
    scheduler = build_scheduler(ScriptedAdapter("zillow", fetch), leads, match_store)

    result = await scheduler.run_tick("zillow")

    assert result.status == SyncTickStatus.COMPLETED
    assert result.leads_failed == 2
    assert result.leads_processed == 2
    assert await match_store.get_for_lead("lead-4")


class UnreachableSubscriptionStore(InMemorySubscriptionStore):
    async def list(self, tenant_id):
        raise RuntimeError("db down")


@pytest.mark.asyncio
async def test_dispatch_failure_does_not_abort_batch(match_store):
    adapter = InMemoryListingAdapter(SourceConfig(source="zillow"), [make_property()])
    dispatcher = WebhookDispatcher(WebhookRegistry(UnreachableSubscriptionStore()))
    leads = [make_lead(id=f"lead-{i}") for i in range(3)]
    scheduler = build_scheduler(adapter, leads, match_store, dispatcher=dispatcher)

    result = await scheduler.run_tick("zillow")

    assert result.status == SyncTickStatus.COMPLETED
    assert result.leads_processed == 3
    assert result.dispatch_failures == 3
    for lead in leads:
        assert await match_store.get_for_lead(lead.id)


@pytest.mark.asyncio
async def test_rate_limited_leads_wait_for_next_tick(match_store):
    adapter = InMemoryListingAdapter(SourceConfig(source="zillow"), [make_property()])
    leads = [make_lead(id=f"lead-{i}") for i in range(3)]
    scheduler = build_scheduler(adapter, leads, match_store, rpm=1)

    result = await scheduler.run_tick("zillow")

    assert result.status == SyncTickStatus.COMPLETED
    assert result.leads_processed == 1
    assert result.leads_rate_limited == 2


@pytest.mark.asyncio
async def test_leads_without_city_and_closed_status_are_skipped(match_store):
    adapter = ScriptedAdapter("zillow", AsyncMock(return_value=[]))
    leads = [
        make_lead(id="no-city", city=None),
        make_lead(id="contacted", status="contacted"),
    ]
    scheduler = build_scheduler(adapter, leads, match_store)

    result = await scheduler.run_tick("zillow")

    assert result.leads_skipped_no_city == 1
    assert result.leads_processed == 0
    assert adapter.calls == []


@pytest.mark.asyncio
async def test_batch_is_limited_per_tenant(match_store):
    adapter = ScriptedAdapter("zillow", AsyncMock(return_value=[]))
    leads = [make_lead(id=f"a-{i}") for i in range(3)] + [
        make_lead(id=f"b-{i}", tenant_id="tenant-b") for i in range(3)
    ]
    scheduler = build_scheduler(adapter, leads, match_store, batch_size=2)

    result = await scheduler.run_tick("zillow")

    assert result.leads_processed == 4
    assert len(adapter.calls) == 4


@pytest.mark.asyncio
async def test_stop_discards_late_results(match_store):
    release = asyncio.Event()
    started = asyncio.Event()

    async def slow_fetch(criteria):
        started.set()
        await release.wait()
        return [make_property()]

    dispatcher = AsyncMock()
    scheduler = build_scheduler(
        ScriptedAdapter("zillow", slow_fetch), [make_lead()], match_store, dispatcher=dispatcher
    )

    tick = asyncio.create_task(scheduler.run_tick("zillow"))
    await started.wait()
    scheduler.stop()
    release.set()
    result = await tick

    assert result.status == SyncTickStatus.STOPPED
    assert result.matches == []
    assert await match_store.get_for_lead("lead-1") == []
    dispatcher.dispatch.assert_not_awaited()

    # Depois de parado, novos ticks não fazem nada
    assert (await scheduler.run_tick("zillow")).status == SyncTickStatus.STOPPED


@pytest.mark.asyncio
async def test_unknown_source_tick(match_store):
    adapter = InMemoryListingAdapter(SourceConfig(source="zillow"))
    scheduler = build_scheduler(adapter, [], match_store)

    result = await scheduler.run_tick("mls")

    assert result.status == SyncTickStatus.UNKNOWN_SOURCE


@pytest.mark.asyncio
async def test_start_registers_one_job_per_source_and_stop_clears(match_store):
    adapter = InMemoryListingAdapter(SourceConfig(source="zillow"))
    scheduler = build_scheduler(adapter, [], match_store)

    scheduler.start()
    try:
        assert scheduler.running is True
        status = scheduler.status()
        assert status["running"] is True
        assert status["sources"]["zillow"]["next_run"] is not None
    finally:
        scheduler.stop()

    assert scheduler.running is False
    assert scheduler.stopped is True
    assert scheduler.status()["sources"]["zillow"]["next_run"] is None
