"""
SOURCE ADAPTER INTERFACE
========================

Interface abstrata para os provedores de anúncios (Zillow, Realtor.com, MLS).
Cada adapter concreto deve implementar search_properties().

Contrato de erro: qualquer falha do provider chega aqui como
SourceUnavailable. Exceções específicas (httpx, JSON, etc.) não
atravessam esta fronteira.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from listing_sync.domain.listing import PropertyData, PropertySearchCriteria
from listing_sync.exceptions import SourceUnavailable


@dataclass
class SourceConfig:
    """Configuração de um adapter de fonte."""

    source: str
    api_url: Optional[str] = None
    api_key: Optional[str] = None
    timeout: float = 10.0
    # chave_externa -> chave_interna (snake_case de PropertyData)
    field_mapping: Dict[str, str] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)


class SourceAdapter(ABC):
    """
    Classe abstrata base para adapters de fonte.

    Obrigatório:
    - search_properties(): busca por critérios

    Opcional:
    - initialize(): prepara conexões/credenciais
    - get_property_details(): busca um anúncio pelo ID externo
    """

    def __init__(self, config: SourceConfig):
        self.config = config
        self._validate_config()

    @property
    def name(self) -> str:
        return self.config.source

    def _validate_config(self) -> None:
        """Deve lançar ValueError se a configuração for inválida."""
        pass

    async def initialize(self) -> None:
        pass

    @abstractmethod
    async def search_properties(self, criteria: PropertySearchCriteria) -> List[PropertyData]:
        """
        Busca anúncios por critérios.

        Raises:
            SourceUnavailable: se o provider falhar ou estourar timeout
        """

    async def get_property_details(self, external_id: str) -> Optional[PropertyData]:
        return None

    async def aclose(self) -> None:
        pass

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _unavailable(self, reason: str) -> SourceUnavailable:
        return SourceUnavailable(self.name, reason)

    def _apply_field_mapping(self, raw: Dict[str, Any]) -> Dict[str, Any]:
        """
        Aplica mapeamento de campos do schema externo para o interno.

        Campos não mapeados passam adiante com o nome original.
        """
        if not self.config.field_mapping:
            return dict(raw)

        mapped: Dict[str, Any] = {}
        for key, value in raw.items():
            internal = self.config.field_mapping.get(key, key)
            mapped[internal] = value
        return mapped
