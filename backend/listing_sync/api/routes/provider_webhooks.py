"""
ROTAS: WEBHOOKS DE PROVIDER
===========================

Zillow, Realtor.com e MLS enviam eventos para cá:
    POST /webhooks/providers/{provider}
    Header X-Tenant-Id obrigatório

Assinatura: validada só quando {provider}_webhook_secret está configurado.
Sem secret, o evento é aceito com aviso no log.
"""

import json
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from listing_sync.api.dependencies import Container, get_container
from listing_sync.api.schemas import ProviderWebhookResponse
from listing_sync.config import SUPPORTED_SOURCES
from listing_sync.exceptions import InvalidProviderPayload, SignatureMismatch, UnknownSource
from listing_sync.infrastructure.services.webhook_dispatcher import SIGNATURE_HEADER, verify_signature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks/providers", tags=["Provider Webhooks"])


def ensure_valid_signature(body: bytes, signature: Optional[str], secret: str) -> None:
    """Raises SignatureMismatch se a assinatura não confere."""
    if not verify_signature(body, signature, secret):
        raise SignatureMismatch("Invalid webhook signature")


@router.post("/{provider}", response_model=ProviderWebhookResponse)
async def receive_provider_webhook(
    provider: str,
    request: Request,
    x_tenant_id: Optional[str] = Header(None, alias="X-Tenant-Id"),
    x_webhook_signature: Optional[str] = Header(None, alias=SIGNATURE_HEADER),
    container: Container = Depends(get_container),
):
    """
    1. Valida provider e tenant
    2. Valida assinatura (se houver secret)
    3. Entrega o evento ao InboundWebhookHandler
    """
    if provider not in SUPPORTED_SOURCES:
        raise HTTPException(status_code=404, detail=f"Provider desconhecido: {provider}")

    if not x_tenant_id:
        raise HTTPException(status_code=400, detail="Header X-Tenant-Id é obrigatório")

    body = await request.body()

    secret = container.settings.webhook_secret_for(provider)
    if secret:
        try:
            ensure_valid_signature(body, x_webhook_signature, secret)
        except SignatureMismatch:
            logger.warning(f"Assinatura inválida no webhook {provider} (tenant={x_tenant_id})")
            raise HTTPException(status_code=401, detail="Assinatura inválida")
    else:
        logger.warning(f"⚠️ [{provider}] {provider}_webhook_secret não configurado, assinatura não verificada")

    try:
        payload = json.loads(body or b"null")
    except ValueError:
        raise HTTPException(status_code=422, detail="Payload não é JSON válido")

    try:
        result = await container.inbound_handler.handle(provider, payload, x_tenant_id)
    except UnknownSource as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidProviderPayload as e:
        logger.warning(f"[{provider}] Payload inválido (tenant={x_tenant_id}): {e}")
        raise HTTPException(status_code=422, detail=str(e))

    return ProviderWebhookResponse(**result.to_dict())
