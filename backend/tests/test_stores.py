"""
TESTES - STORES
===============
Substituição por (lead, fonte) no banco e resolução de leads.
"""

import pytest

from listing_sync.domain.entities.enums import ListingSource, MatchStatus
from listing_sync.domain.listing import LeadFilter
from listing_sync.infrastructure.stores import InMemoryLeadStore, LeadResolver, SQLAlchemyMatchStore
from listing_sync.services.matching_engine import MatchingEngine
from tests.utils import make_lead, make_property


@pytest.mark.asyncio
async def test_sqlalchemy_match_store_replaces_per_lead_and_source(session_factory):
    store = SQLAlchemyMatchStore(session_factory)
    engine = MatchingEngine(store, score_threshold=0.0)
    lead = make_lead()

    await engine.process_property_matches(lead, [make_property(id="old-1"), make_property(id="old-2")], "zillow")
    await engine.process_property_matches(lead, [make_property(id="mls-1", source="mls")], "mls")
    await engine.process_property_matches(lead, [make_property(id="new-1")], "zillow")

    stored = await store.get_for_lead(lead.id)

    assert sorted(m.property_id for m in stored) == ["mls-1", "new-1"]
    match = next(m for m in stored if m.property_id == "new-1")
    assert match.source == ListingSource.ZILLOW
    assert match.status == MatchStatus.PENDING
    assert match.tenant_id == "tenant-a"
    assert match.property.city == "Toronto"
    assert match.property.price == 625_000
    assert match.reasons[0] == "Located in Toronto"
    assert match.created_at is not None


@pytest.mark.asyncio
async def test_sqlalchemy_match_store_keeps_rank_order_on_ties(session_factory):
    store = SQLAlchemyMatchStore(session_factory)
    engine = MatchingEngine(store, score_threshold=0.0)

    properties = [make_property(id=f"p{i}") for i in range(4)]
    await engine.process_property_matches(make_lead(), properties, "zillow")

    stored = await store.get_for_lead("lead-1")
    assert [m.property_id for m in stored] == ["p0", "p1", "p2", "p3"]


@pytest.mark.asyncio
async def test_sqlalchemy_empty_save_clears_previous_set(session_factory):
    store = SQLAlchemyMatchStore(session_factory)
    engine = MatchingEngine(store, score_threshold=0.0)
    lead = make_lead()

    await engine.process_property_matches(lead, [make_property()], "zillow")
    await engine.process_property_matches(lead, [], "zillow")

    assert await store.get_for_lead(lead.id) == []


@pytest.mark.asyncio
async def test_sqlalchemy_find_by_property_is_tenant_scoped(session_factory):
    store = SQLAlchemyMatchStore(session_factory)
    engine = MatchingEngine(store, score_threshold=0.0)

    await engine.process_property_matches(make_lead(id="a"), [make_property(id="z-1")], "zillow")
    await engine.process_property_matches(make_lead(id="b", tenant_id="tenant-b"), [make_property(id="z-1")], "zillow")

    assert [m.lead_id for m in await store.find_by_property("z-1", tenant_id="tenant-a")] == ["a"]
    assert len(await store.find_by_property("z-1")) == 2


@pytest.mark.asyncio
async def test_sqlalchemy_find_by_property_is_source_scoped(session_factory):
    store = SQLAlchemyMatchStore(session_factory)
    engine = MatchingEngine(store, score_threshold=0.0)

    await engine.process_property_matches(make_lead(id="a"), [make_property(id="123")], "zillow")
    await engine.process_property_matches(make_lead(id="b"), [make_property(id="123", source="mls")], "mls")

    assert [m.lead_id for m in await store.find_by_property("123", source="mls")] == ["b"]
    assert [m.lead_id for m in await store.find_by_property("123", tenant_id="tenant-a", source="zillow")] == ["a"]


@pytest.mark.asyncio
async def test_in_memory_lead_store_query_and_tenants():
    store = InMemoryLeadStore([
        make_lead(id="1"),
        make_lead(id="2", status="contacted"),
        make_lead(id="3", tenant_id="tenant-b"),
        make_lead(id="4"),
    ])

    assert [l.id for l in await store.query(LeadFilter(tenant_id="tenant-a", status="new"))] == ["1", "4"]
    assert [l.id for l in await store.query(LeadFilter(tenant_id="tenant-a", limit=1))] == ["1"]
    assert await store.list_tenants() == ["tenant-a", "tenant-b"]
    assert (await store.get("3")).tenant_id == "tenant-b"


@pytest.mark.asyncio
async def test_lead_resolver_skips_closed_and_other_cities():
    resolver = LeadResolver(InMemoryLeadStore([
        make_lead(id="same-city"),
        make_lead(id="any-city", city=None),
        make_lead(id="other-city", city="Ottawa"),
        make_lead(id="lost", status="lost"),
    ]))

    leads = await resolver.resolve_for_listing("tenant-a", make_property(city="TORONTO"))

    assert [l.id for l in leads] == ["same-city", "any-city"]
