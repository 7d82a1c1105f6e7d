"""
TESTES - WEBHOOKS DE PROVIDER (entrada)
=======================================
new_listing, price_change, tipos desconhecidos e payloads inválidos.
"""

from unittest.mock import AsyncMock

import pytest

from listing_sync.application.use_cases import InboundStatus, InboundWebhookHandler
from listing_sync.domain.entities.enums import WebhookEvent
from listing_sync.domain.provider_events import (
    NewListingEvent,
    PriceChangeEvent,
    UnknownEvent,
    parse_provider_event,
)
from listing_sync.exceptions import InvalidProviderPayload, UnknownSource
from listing_sync.infrastructure.stores import InMemoryLeadStore, LeadResolver
from listing_sync.services.matching_engine import MatchingEngine
from tests.utils import make_lead, make_property


LISTING_DATA = {
    "id": "z-100",
    "address": "100 Queen St W",
    "city": "Toronto",
    "price": 625000,
    "beds": 2,
    "property_type": "Condo",
    "days_on_market": 1,
}


def build_handler(match_store, leads, threshold=0.6):
    dispatcher = AsyncMock()
    dispatcher.dispatch.return_value = []
    handler = InboundWebhookHandler(
        matching_engine=MatchingEngine(match_store, score_threshold=threshold),
        dispatcher=dispatcher,
        lead_resolver=LeadResolver(InMemoryLeadStore(leads)),
        match_store=match_store,
    )
    return handler, dispatcher


# =============================================================================
# PARSING
# =============================================================================

def test_parse_known_and_unknown_types():
    assert isinstance(parse_provider_event({"type": "new_listing", "data": LISTING_DATA}), NewListingEvent)
    assert isinstance(
        parse_provider_event({"type": "price_change", "data": {"id": "z-1", "new_price": 10}}),
        PriceChangeEvent,
    )
    assert isinstance(parse_provider_event({"type": "listing_removed", "data": {}}), UnknownEvent)


@pytest.mark.parametrize(
    "payload",
    [
        None,
        [],
        {"data": {}},
        {"type": "", "data": {}},
        {"type": "new_listing"},
        {"type": "price_change", "data": {"property_id": "z-1"}},
        {"type": "price_change", "data": {"property_id": "z-1", "new_price": -5}},
    ],
)
def test_malformed_payloads_rejected(payload):
    with pytest.raises(InvalidProviderPayload):
        parse_provider_event(payload)


# =============================================================================
# new_listing
# =============================================================================

@pytest.mark.asyncio
async def test_new_listing_notifies_resolved_leads(match_store):
    leads = [
        make_lead(id="lead-1"),
        make_lead(id="lead-2", city=None),
        make_lead(id="lead-3", city="Ottawa"),
        make_lead(id="lead-4", status="converted"),
        make_lead(id="lead-5", tenant_id="tenant-b"),
    ]
    handler, dispatcher = build_handler(match_store, leads)

    result = await handler.handle("zillow", {"type": "new_listing", "data": LISTING_DATA}, "tenant-a")

    assert result.status == InboundStatus.PROCESSED
    assert result.lead_ids == ["lead-1", "lead-2"]
    # score máximo é 0.2, o corte padrão não retém nada
    assert result.retained_matches == 0

    assert dispatcher.dispatch.await_count == 2
    event, data, tenant_id = dispatcher.dispatch.await_args_list[0].args
    assert event == WebhookEvent.PROPERTY_MATCHED
    assert tenant_id == "tenant-a"
    assert data["lead_id"] == "lead-1"
    assert data["retained"] is False
    assert data["match"]["property_id"] == "z-100"
    assert data["match"]["source"] == "zillow"
    assert data["match"]["score"] == pytest.approx(0.17)


@pytest.mark.asyncio
async def test_new_listing_retained_match_is_persisted(match_store):
    handler, dispatcher = build_handler(match_store, [make_lead()], threshold=0.1)

    result = await handler.handle("realtor", {"type": "new_listing", "data": LISTING_DATA}, "tenant-a")

    assert result.retained_matches == 1
    stored = await match_store.get_for_lead("lead-1")
    assert [(m.property_id, m.source.value) for m in stored] == [("z-100", "realtor")]
    assert dispatcher.dispatch.await_args.args[1]["retained"] is True


@pytest.mark.asyncio
async def test_new_listing_with_invalid_data_rejected(match_store):
    handler, dispatcher = build_handler(match_store, [make_lead()])

    with pytest.raises(InvalidProviderPayload):
        await handler.handle("zillow", {"type": "new_listing", "data": {"city": "Toronto"}}, "tenant-a")

    dispatcher.dispatch.assert_not_awaited()


@pytest.mark.asyncio
async def test_new_listing_failure_for_one_lead_does_not_stop_others(match_store):
    leads = [make_lead(id="lead-1"), make_lead(id="lead-2"), make_lead(id="lead-3")]
    handler, dispatcher = build_handler(match_store, leads)
    dispatcher.dispatch.side_effect = [[], RuntimeError("db down"), []]

    result = await handler.handle("zillow", {"type": "new_listing", "data": LISTING_DATA}, "tenant-a")

    assert result.status == InboundStatus.PROCESSED
    assert result.lead_ids == ["lead-1", "lead-3"]
    assert result.failures == 1
    assert result.to_dict()["failures"] == 1


@pytest.mark.asyncio
async def test_new_listing_matching_failure_is_isolated(match_store):
    leads = [make_lead(id="lead-1"), make_lead(id="lead-2")]
    handler, dispatcher = build_handler(match_store, leads, threshold=0.1)
    real_process = handler.matching_engine.process_property_matches

    async def flaky(lead, properties, source):
        if lead.id == "lead-1":
            raise RuntimeError("store offline")
        return await real_process(lead, properties, source)

    handler.matching_engine.process_property_matches = flaky

    result = await handler.handle("zillow", {"type": "new_listing", "data": LISTING_DATA}, "tenant-a")

    assert result.lead_ids == ["lead-2"]
    assert result.failures == 1
    assert result.retained_matches == 1
    dispatcher.dispatch.assert_awaited_once()


# =============================================================================
# price_change
# =============================================================================

@pytest.mark.asyncio
async def test_price_change_notifies_leads_with_previous_match(match_store):
    engine = MatchingEngine(match_store, score_threshold=0.0)
    await engine.process_property_matches(make_lead(id="lead-1"), [make_property(id="z-100")], "zillow")
    await engine.process_property_matches(make_lead(id="lead-2"), [make_property(id="z-100")], "zillow")
    await engine.process_property_matches(
        make_lead(id="lead-3", tenant_id="tenant-b"), [make_property(id="z-100")], "zillow"
    )
    handler, dispatcher = build_handler(match_store, [])

    result = await handler.handle(
        "zillow",
        {"type": "price_change", "data": {"id": "z-100", "old_price": 625000, "new_price": 600000}},
        "tenant-a",
    )

    assert result.status == InboundStatus.PROCESSED
    assert result.lead_ids == ["lead-1", "lead-2"]
    event, data, tenant_id = dispatcher.dispatch.await_args_list[0].args
    assert event == WebhookEvent.PROPERTY_PRICE_CHANGED
    assert tenant_id == "tenant-a"
    assert data == {
        "lead_id": "lead-1",
        "property_id": "z-100",
        "source": "zillow",
        "old_price": 625000,
        "new_price": 600000,
        "delta": -25000,
    }


@pytest.mark.asyncio
async def test_price_change_falls_back_to_snapshot_price(match_store):
    engine = MatchingEngine(match_store, score_threshold=0.0)
    await engine.process_property_matches(make_lead(), [make_property(id="z-100", price=700000)], "zillow")
    handler, dispatcher = build_handler(match_store, [])

    await handler.handle(
        "zillow", {"type": "price_change", "data": {"property_id": "z-100", "new_price": 650000}}, "tenant-a"
    )

    data = dispatcher.dispatch.await_args.args[1]
    assert data["old_price"] == 700000
    assert data["delta"] == -50000


@pytest.mark.asyncio
async def test_price_change_without_matches_sends_nothing(match_store):
    handler, dispatcher = build_handler(match_store, [])

    result = await handler.handle(
        "mls", {"type": "price_change", "data": {"id": "unknown", "new_price": 1}}, "tenant-a"
    )

    assert result.status == InboundStatus.PROCESSED
    assert result.lead_ids == []
    dispatcher.dispatch.assert_not_awaited()


@pytest.mark.asyncio
async def test_price_change_only_reaches_matches_from_same_source(match_store):
    engine = MatchingEngine(match_store, score_threshold=0.0)
    await engine.process_property_matches(make_lead(), [make_property(id="123", source="mls")], "mls")
    handler, dispatcher = build_handler(match_store, [])

    result = await handler.handle(
        "zillow", {"type": "price_change", "data": {"property_id": "123", "new_price": 1}}, "tenant-a"
    )

    assert result.lead_ids == []
    dispatcher.dispatch.assert_not_awaited()

    result = await handler.handle(
        "mls", {"type": "price_change", "data": {"property_id": "123", "new_price": 600000}}, "tenant-a"
    )

    assert result.lead_ids == ["lead-1"]
    assert dispatcher.dispatch.await_args.args[1]["old_price"] == 625000


@pytest.mark.asyncio
async def test_price_change_notification_failure_skips_only_that_lead(match_store):
    engine = MatchingEngine(match_store, score_threshold=0.0)
    await engine.process_property_matches(make_lead(id="lead-1"), [make_property(id="z-100")], "zillow")
    await engine.process_property_matches(make_lead(id="lead-2"), [make_property(id="z-100")], "zillow")
    handler, dispatcher = build_handler(match_store, [])
    dispatcher.dispatch.side_effect = [RuntimeError("db down"), []]

    result = await handler.handle(
        "zillow", {"type": "price_change", "data": {"id": "z-100", "new_price": 600000}}, "tenant-a"
    )

    assert result.lead_ids == ["lead-2"]
    assert result.failures == 1
    assert dispatcher.dispatch.await_count == 2


# =============================================================================
# OUTROS
# =============================================================================

@pytest.mark.asyncio
async def test_unknown_event_type_is_ignored(match_store):
    handler, dispatcher = build_handler(match_store, [make_lead()])

    result = await handler.handle("zillow", {"type": "listing_removed", "data": {"id": "z-1"}}, "tenant-a")

    assert result.status == InboundStatus.IGNORED
    assert result.event_type == "listing_removed"
    dispatcher.dispatch.assert_not_awaited()


@pytest.mark.asyncio
async def test_unknown_provider_rejected(match_store):
    handler, _ = build_handler(match_store, [])

    with pytest.raises(UnknownSource):
        await handler.handle("craigslist", {"type": "new_listing", "data": LISTING_DATA}, "tenant-a")
