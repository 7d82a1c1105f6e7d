"""
ROTAS: IMÓVEIS E MATCHES
========================

GET  /leads/{lead_id}/matches  -> matches persistidos do lead
POST /properties/search        -> busca direta nas fontes (com rate limit)
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from listing_sync.api.dependencies import Container, get_container
from listing_sync.api.schemas import LeadMatchesResponse, PropertySearchRequest, PropertySearchResponse
from listing_sync.domain.listing import PropertySearchCriteria
from listing_sync.exceptions import UnknownSource

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Properties"])


@router.get("/leads/{lead_id}/matches", response_model=LeadMatchesResponse)
async def get_lead_matches(lead_id: str, container: Container = Depends(get_container)):
    matches = await container.listing_service.get_property_matches(lead_id)
    return LeadMatchesResponse(
        lead_id=lead_id,
        total=len(matches),
        matches=[m.to_dict() for m in matches],
    )


@router.post("/properties/search", response_model=PropertySearchResponse)
async def search_properties(
    payload: PropertySearchRequest,
    container: Container = Depends(get_container),
):
    criteria = PropertySearchCriteria(**payload.model_dump(exclude={"sources"}))

    try:
        result = await container.listing_service.search_properties(criteria, payload.sources)
    except UnknownSource as e:
        raise HTTPException(status_code=400, detail=str(e))

    return PropertySearchResponse(
        total=len(result.properties),
        properties=[p.to_dict() for p in result.properties],
        skipped=result.skipped,
    )
