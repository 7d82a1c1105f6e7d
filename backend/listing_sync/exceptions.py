"""
EXCEÇÕES DO MOTOR DE SINCRONIZAÇÃO
==================================

Somente falhas reais viram exceção. Resultados esperados
(rate limit atingido, nenhum assinante) são status, não erros.
"""

from typing import Optional


class ListingSyncError(Exception):
    """Base para todos os erros do pacote."""


class SourceUnavailable(ListingSyncError):
    """Fonte de anúncios falhou ou estourou timeout."""

    def __init__(self, source: str, reason: str = ""):
        self.source = source
        self.reason = reason
        super().__init__(f"Source '{source}' unavailable: {reason}" if reason else f"Source '{source}' unavailable")


class UnknownSource(ListingSyncError):
    """Nenhum adapter registrado para a fonte pedida."""

    def __init__(self, source: str):
        self.source = source
        super().__init__(f"Unknown listing source: {source}")


class DeliveryFailed(ListingSyncError):
    """Entrega de webhook com status não-2xx ou erro de rede."""

    def __init__(self, subscription_id: str, status: Optional[int] = None, reason: str = ""):
        self.subscription_id = subscription_id
        self.status = status
        self.reason = reason
        super().__init__(f"Delivery to {subscription_id} failed (status={status}): {reason}")


class SignatureMismatch(ListingSyncError):
    """Assinatura HMAC do webhook recebido não confere."""


class InvalidSubscription(ListingSyncError):
    """Configuração de assinatura inválida (URL, eventos)."""


class InvalidProviderPayload(ListingSyncError):
    """Payload de webhook do provider malformado."""
