"""
ROTAS: ASSINATURAS DE WEBHOOK
=============================

CRUD das URLs de callback de um tenant.
A entrega é at-most-once (sem retry), informado em delivery_guarantee.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from listing_sync.api.dependencies import Container, get_container
from listing_sync.api.schemas import (
    SubscriptionCreate,
    SubscriptionCreatedResponse,
    SubscriptionResponse,
    SubscriptionUpdate,
)
from listing_sync.exceptions import InvalidSubscription

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tenants/{tenant_id}/webhooks", tags=["Webhook Subscriptions"])


@router.post("", response_model=SubscriptionCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_subscription(
    tenant_id: str,
    payload: SubscriptionCreate,
    container: Container = Depends(get_container),
):
    try:
        subscription = await container.registry.subscribe(
            tenant_id,
            payload.url,
            payload.events,
            secret=payload.secret,
        )
    except InvalidSubscription as e:
        raise HTTPException(status_code=422, detail=str(e))

    return subscription.to_dict(include_secret=True)


@router.get("", response_model=List[SubscriptionResponse])
async def list_subscriptions(tenant_id: str, container: Container = Depends(get_container)):
    return [s.to_dict() for s in await container.registry.list(tenant_id)]


@router.get("/{subscription_id}", response_model=SubscriptionResponse)
async def get_subscription(
    tenant_id: str,
    subscription_id: str,
    container: Container = Depends(get_container),
):
    subscription = await container.registry.get(tenant_id, subscription_id)
    if subscription is None:
        raise HTTPException(status_code=404, detail="Assinatura não encontrada")
    return subscription.to_dict()


@router.patch("/{subscription_id}", response_model=SubscriptionResponse)
async def update_subscription(
    tenant_id: str,
    subscription_id: str,
    payload: SubscriptionUpdate,
    container: Container = Depends(get_container),
):
    try:
        subscription = await container.registry.update(
            tenant_id,
            subscription_id,
            **payload.model_dump(exclude_unset=True),
        )
    except InvalidSubscription as e:
        raise HTTPException(status_code=422, detail=str(e))

    if subscription is None:
        raise HTTPException(status_code=404, detail="Assinatura não encontrada")
    return subscription.to_dict()


@router.delete("/{subscription_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_subscription(
    tenant_id: str,
    subscription_id: str,
    container: Container = Depends(get_container),
):
    removed = await container.registry.unsubscribe(tenant_id, subscription_id)
    if not removed:
        raise HTTPException(status_code=404, detail="Assinatura não encontrada")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
