"""Configurações do motor de sincronização - carrega variáveis do .env"""

from functools import lru_cache
from typing import Dict, List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


SUPPORTED_SOURCES = ("zillow", "realtor", "mls")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===========================================
    # CORE
    # ===========================================
    environment: str = "development"
    debug: bool = False
    database_url: str = "sqlite+aiosqlite:///./listing_sync.db"
    log_json: bool = True

    # ===========================================
    # SINCRONIZAÇÃO (pull)
    # ===========================================
    requests_per_minute: int = 60
    sync_batch_size: int = 50
    scheduler_timezone: str = "UTC"

    zillow_enabled: bool = False
    zillow_sync_interval_minutes: int = 30
    zillow_api_url: Optional[str] = None
    zillow_api_key: Optional[str] = None
    zillow_webhook_secret: Optional[str] = None  # Para validar webhooks recebidos

    realtor_enabled: bool = False
    realtor_sync_interval_minutes: int = 30
    realtor_api_url: Optional[str] = None
    realtor_api_key: Optional[str] = None
    realtor_webhook_secret: Optional[str] = None

    mls_enabled: bool = False
    mls_sync_interval_minutes: int = 60
    mls_api_url: Optional[str] = None
    mls_api_key: Optional[str] = None
    mls_webhook_secret: Optional[str] = None

    # Timeout das chamadas às APIs das fontes (pull)
    source_timeout_seconds: float = 15.0

    # ===========================================
    # MATCHING
    # ===========================================
    match_score_threshold: float = 0.6
    max_matches_per_lead: int = 5

    # ===========================================
    # WEBHOOKS (saída)
    # ===========================================
    webhook_timeout_seconds: float = 10.0
    webhook_max_concurrency: int = 50

    # ===========================================
    # PROPRIEDADES
    # ===========================================
    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def enabled_sources(self) -> List[str]:
        """Fontes habilitadas, na ordem fixa zillow, realtor, mls."""
        return [s for s in SUPPORTED_SOURCES if getattr(self, f"{s}_enabled")]

    def sync_intervals(self) -> Dict[str, int]:
        return {s: getattr(self, f"{s}_sync_interval_minutes") for s in SUPPORTED_SOURCES}

    def source_config(self, source: str) -> Dict[str, Optional[str]]:
        return {
            "api_url": getattr(self, f"{source}_api_url"),
            "api_key": getattr(self, f"{source}_api_key"),
        }

    def webhook_secret_for(self, provider: str) -> Optional[str]:
        """Secret HMAC configurado para webhooks de um provider (ou None)."""
        if provider not in SUPPORTED_SOURCES:
            return None
        return getattr(self, f"{provider}_webhook_secret")


@lru_cache
def get_settings() -> Settings:
    return Settings()
