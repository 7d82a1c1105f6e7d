"""
HTTP LISTING ADAPTER
====================

Adapter genérico para APIs JSON de provedores de anúncios.

Exemplo de configuração:
    SourceConfig(
        source="zillow",
        api_url="https://api.exemplo.com/v1/listings",
        api_key="...",
        timeout=10.0,
        field_mapping={"zpid": "id", "bedrooms": "beds", "zipcode": "zip_code"},
    )

A API deve responder um array JSON de anúncios ou um objeto com
"properties" / "results" / "data" contendo o array.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from listing_sync.domain.listing import PropertyData, PropertySearchCriteria
from .interface import SourceAdapter, SourceConfig

logger = logging.getLogger(__name__)


class HttpListingAdapter(SourceAdapter):
    """Busca anúncios via HTTP GET com httpx."""

    DEFAULT_HEADERS = {
        "Accept": "application/json",
        "User-Agent": "listing-sync/1.0",
    }

    LIST_KEYS = ("properties", "results", "data", "listings")

    def __init__(self, config: SourceConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        # transport injetável para testes (httpx.MockTransport)
        self._transport = transport
        super().__init__(config)

    def _validate_config(self) -> None:
        if not self.config.api_url:
            raise ValueError(f"HttpListingAdapter({self.config.source}) requires 'api_url'")

    @property
    def headers(self) -> Dict[str, str]:
        headers = dict(self.DEFAULT_HEADERS)
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        return headers

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout,
                headers=self.headers,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.error(f"[{self.name}] Erro HTTP: {type(e).__name__}: {e}")
            raise self._unavailable(f"{type(e).__name__}: {e}") from e

        if response.status_code == 404:
            return None

        if response.status_code != 200:
            logger.warning(f"[{self.name}] Status inesperado: {response.status_code}")
            raise self._unavailable(f"HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise self._unavailable(f"invalid JSON: {e}") from e

    def _extract_items(self, body: Any) -> List[Dict[str, Any]]:
        if isinstance(body, list):
            return body
        if isinstance(body, dict):
            for key in self.LIST_KEYS:
                if isinstance(body.get(key), list):
                    return body[key]
        raise self._unavailable("unexpected response shape")

    def _to_property(self, raw: Dict[str, Any]) -> Optional[PropertyData]:
        mapped = self._apply_field_mapping(raw)
        try:
            return PropertyData.from_dict(mapped, source=self.name)
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"[{self.name}] Anúncio ignorado ({type(e).__name__}: {e})")
            return None

    async def search_properties(self, criteria: PropertySearchCriteria) -> List[PropertyData]:
        params = criteria.to_params()
        params.pop("source", None)

        logger.info(f"[{self.name}] Buscando anúncios: {params}")
        body = await self._get_json(self.config.api_url, params=params)
        if body is None:
            return []

        properties = []
        for raw in self._extract_items(body):
            if not isinstance(raw, dict):
                continue
            prop = self._to_property(raw)
            if prop is not None:
                properties.append(prop)

        logger.info(f"[{self.name}] {len(properties)} anúncios recebidos")
        return properties[: criteria.limit] if criteria.limit else properties

    async def get_property_details(self, external_id: str) -> Optional[PropertyData]:
        url = f"{self.config.api_url.rstrip('/')}/{external_id}"
        body = await self._get_json(url)
        if not isinstance(body, dict):
            return None
        return self._to_property(body)
