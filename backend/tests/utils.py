"""Helpers compartilhados pelos testes."""

import json
from typing import List

import httpx

from listing_sync.domain.listing import Lead, PropertyData


def make_lead(**overrides) -> Lead:
    data = {
        "id": "lead-1",
        "tenant_id": "tenant-a",
        "city": "Toronto",
        "price_range": "500k-750k",
        "property_type": "Condo",
        "timeline": "urgent",
        "status": "new",
    }
    data.update(overrides)
    return Lead(**data)


def make_property(**overrides) -> PropertyData:
    data = {
        "id": "prop-1",
        "source": "zillow",
        "address": "100 Queen St W",
        "city": "Toronto",
        "state": "ON",
        "price": 625_000,
        "beds": 2,
        "baths": 2,
        "property_type": "Condo",
        "days_on_market": 8,
    }
    data.update(overrides)
    return PropertyData(**data)


class FakeClock:
    """Relógio controlado pelo teste (segundos)."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingTransport:
    """
    Monta um httpx.MockTransport que guarda cada request recebida.

    handler(request) -> httpx.Response
    """

    def __init__(self, handler=None):
        self.requests: List[httpx.Request] = []
        self._handler = handler or (lambda request: httpx.Response(200, text="ok"))
        self.transport = httpx.MockTransport(self._record)

    def _record(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    def bodies(self) -> List[dict]:
        return [json.loads(r.content) for r in self.requests]
