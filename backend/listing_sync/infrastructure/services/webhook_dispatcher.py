"""
WEBHOOK DISPATCHER - Fan-out assinado para os tenants
=====================================================

FLUXO:
1. Resolve assinaturas ativas do tenant que escutam o evento
2. Nenhuma? Retorna [] sem nem montar o payload
3. Monta {event, timestamp, tenant_id, data} e serializa UMA vez
4. Entrega em paralelo (limite de concorrência via Semaphore)
5. Cada entrega captura o próprio resultado: timeout/erro de um
   assinante nunca afeta os outros
6. dispatch() só retorna depois de TODAS as tentativas

HEADERS:
- X-Webhook-Signature: sha256=<hmac_hex_digest>
- X-Webhook-Event
- X-Webhook-Timestamp

GARANTIA: best-effort, at-most-once. Sem retry, sem dead-letter.
retry_count existe na assinatura mas não é consumido aqui.
"""

import asyncio
import hashlib
import hmac
import json
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Union

import httpx

from listing_sync.domain.webhook import (
    MAX_RESPONSE_BODY_CHARS,
    WebhookDelivery,
    WebhookPayload,
    WebhookSubscription,
)
from listing_sync.exceptions import DeliveryFailed
from .webhook_registry import WebhookRegistry

logger = logging.getLogger(__name__)


DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_MAX_CONCURRENCY = 50

SIGNATURE_HEADER = "X-Webhook-Signature"
EVENT_HEADER = "X-Webhook-Event"
TIMESTAMP_HEADER = "X-Webhook-Timestamp"


# =============================================================================
# ASSINATURA HMAC
# =============================================================================

def _to_bytes(value: Union[str, bytes]) -> bytes:
    return value if isinstance(value, bytes) else value.encode("utf-8")


def sign_payload(payload: Union[str, bytes], secret: str) -> str:
    """Retorna "sha256=<hex>" do HMAC-SHA256 do payload."""
    digest = hmac.new(_to_bytes(secret), _to_bytes(payload), hashlib.sha256).hexdigest()
    return f"sha256={digest}"


def verify_signature(payload: Union[str, bytes], signature: Optional[str], secret: str) -> bool:
    """
    Recalcula a assinatura e compara em tempo constante.

    Nunca lança: assinatura ausente, de outro tamanho ou com
    caracteres não-ASCII simplesmente retorna False.
    """
    if not signature or not isinstance(signature, (str, bytes)):
        return False

    expected = sign_payload(payload, secret).encode("ascii")
    # compare_digest sobre bytes retorna False quando os tamanhos diferem
    return hmac.compare_digest(expected, _to_bytes(signature))


def serialize_payload(payload: WebhookPayload) -> str:
    """JSON compacto; é exatamente esta string que vai assinada."""
    return json.dumps(payload.to_dict(), separators=(",", ":"), ensure_ascii=False, default=str)


# =============================================================================
# DISPATCHER
# =============================================================================

class WebhookDispatcher:
    """Entrega eventos às assinaturas do tenant."""

    def __init__(
        self,
        registry: WebhookRegistry,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self.registry = registry
        self.timeout = timeout
        self.max_concurrency = max_concurrency
        # transport injetável para testes (httpx.MockTransport)
        self._transport = transport

    sign_payload = staticmethod(sign_payload)
    verify_signature = staticmethod(verify_signature)

    async def dispatch(self, event: str, data: Any, tenant_id: str) -> List[WebhookDelivery]:
        event = getattr(event, "value", event)
        subscriptions = await self.registry.active_for(tenant_id, event)

        if not subscriptions:
            logger.debug(f"[Webhooks] Nenhum assinante para {event} (tenant {tenant_id})")
            return []

        payload = WebhookPayload(
            event=event,
            timestamp=datetime.now(timezone.utc).isoformat(),
            tenant_id=tenant_id,
            data=data,
        )
        body = serialize_payload(payload)

        logger.info(
            f"📤 [Webhooks] Disparando {event} para {len(subscriptions)} assinante(s) "
            f"(tenant {tenant_id})"
        )

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            results = await asyncio.gather(
                *(self._deliver_limited(semaphore, client, sub, payload, body) for sub in subscriptions),
                return_exceptions=True,
            )

        deliveries = []
        for sub, result in zip(subscriptions, results):
            if isinstance(result, BaseException):
                # Rede de segurança: falha inesperada vira entrega malsucedida
                logger.error(
                    f"❌ [Webhooks] Erro inesperado na entrega {sub.id}: {result!r}",
                    exc_info=result,
                )
                result = self._failed_delivery(sub, payload, None, repr(result))
            deliveries.append(result)

        delivered = sum(1 for d in deliveries if d.success)
        logger.info(f"[Webhooks] {event}: {delivered}/{len(deliveries)} entregues")
        return deliveries

    async def _deliver_limited(
        self,
        semaphore: asyncio.Semaphore,
        client: httpx.AsyncClient,
        subscription: WebhookSubscription,
        payload: WebhookPayload,
        body: str,
    ) -> WebhookDelivery:
        async with semaphore:
            return await self.deliver(client, subscription, payload, body)

    async def deliver(
        self,
        client: httpx.AsyncClient,
        subscription: WebhookSubscription,
        payload: WebhookPayload,
        body: str,
    ) -> WebhookDelivery:
        """Uma tentativa de POST para uma assinatura."""
        headers = {
            "Content-Type": "application/json",
            SIGNATURE_HEADER: sign_payload(body, subscription.secret),
            EVENT_HEADER: payload.event,
            TIMESTAMP_HEADER: payload.timestamp,
        }

        try:
            response = await client.post(subscription.url, content=body.encode("utf-8"), headers=headers)
        except httpx.HTTPError as e:
            failure = DeliveryFailed(subscription.id, None, f"{type(e).__name__}: {e}")
            logger.error(f"❌ [Webhooks] {failure}")
            return self._failed_delivery(subscription, payload, None, failure.reason)

        response_body = response.text[:MAX_RESPONSE_BODY_CHARS]
        success = 200 <= response.status_code < 300

        delivery = WebhookDelivery(
            subscription_id=subscription.id,
            event=payload.event,
            payload=payload,
            response_status=response.status_code,
            response_body=response_body,
            success=success,
        )

        if success:
            subscription.last_triggered_at = delivery.delivered_at
            try:
                await self.registry.mark_triggered(subscription)
            except Exception as e:
                # O assinante já recebeu: a entrega continua bem-sucedida
                logger.error(f"❌ [Webhooks] Falha ao registrar last_triggered_at de {subscription.id}: {e}", exc_info=True)
            logger.info(f"✅ [Webhooks] Entregue {subscription.id} (status {response.status_code})")
        else:
            # TODO: reenvio com backoff exponencial limitado por retry_count
            failure = DeliveryFailed(subscription.id, response.status_code, "non-2xx response")
            logger.warning(f"⚠️ [Webhooks] {failure}")

        return delivery

    @staticmethod
    def _failed_delivery(
        subscription: WebhookSubscription,
        payload: WebhookPayload,
        status: Optional[int],
        reason: str,
    ) -> WebhookDelivery:
        return WebhookDelivery(
            subscription_id=subscription.id,
            event=payload.event,
            payload=payload,
            response_status=status,
            response_body=reason[:MAX_RESPONSE_BODY_CHARS],
            success=False,
        )
