"""
SCHEDULER DE SINCRONIZAÇÃO DE ANÚNCIOS
======================================

Um job periódico por fonte (zillow, realtor, mls), independentes entre si:
uma fonte lenta não atrasa o tick da outra.

MÁQUINA DE ESTADOS (por fonte):
    IDLE -> RATE_LIMIT_CHECK -> {pula | FETCHING} -> {DISPATCHING | loga e pula} -> IDLE

POR TICK:
1. Guard de in-flight: se o tick anterior da mesma fonte ainda roda,
   o novo disparo não faz nada (SKIPPED_IN_FLIGHT)
2. Para cada tenant, pega um lote limitado de leads "new"
3. Para cada lead com cidade: rate limiter -> adapter -> MatchingEngine
4. Falha de um lead não aborta o lote
5. Matches retidos viram evento property.matched para o tenant

CANCELAMENTO:
stop() remove os jobs e marca a flag de parada. Buscas em andamento podem
terminar, mas o resultado que chegar depois da parada é DESCARTADO.

TECNOLOGIA: APScheduler (AsyncIOScheduler)
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from listing_sync.domain.entities.enums import WebhookEvent
from listing_sync.domain.listing import Lead, LeadFilter, LeadMatch, PropertySearchCriteria
from listing_sync.exceptions import SourceUnavailable
from listing_sync.infrastructure.data_sources.interface import SourceAdapter
from listing_sync.infrastructure.services.rate_limiter import SourceRateLimiter
from listing_sync.infrastructure.services.webhook_dispatcher import WebhookDispatcher
from listing_sync.infrastructure.stores.lead_store import LeadStore
from listing_sync.services.matching_engine import MatchingEngine

logger = logging.getLogger(__name__)


DEFAULT_SYNC_INTERVAL_MINUTES = 30
DEFAULT_BATCH_SIZE = 50
CANDIDATE_LEAD_STATUS = "new"


class SourceState(str, Enum):
    IDLE = "idle"
    RATE_LIMIT_CHECK = "rate_limit_check"
    FETCHING = "fetching"
    DISPATCHING = "dispatching"


class SyncTickStatus(str, Enum):
    COMPLETED = "completed"
    SKIPPED_IN_FLIGHT = "skipped_in_flight"
    STOPPED = "stopped"
    UNKNOWN_SOURCE = "unknown_source"


@dataclass
class SyncTickResult:
    """Resumo de um tick. Resultados esperados são status, não exceções."""
    source: str
    status: SyncTickStatus
    leads_processed: int = 0
    leads_skipped_no_city: int = 0
    leads_rate_limited: int = 0
    leads_failed: int = 0
    dispatch_failures: int = 0
    matches: List[LeadMatch] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "source": self.source,
            "status": self.status.value,
            "leads_processed": self.leads_processed,
            "leads_skipped_no_city": self.leads_skipped_no_city,
            "leads_rate_limited": self.leads_rate_limited,
            "leads_failed": self.leads_failed,
            "dispatch_failures": self.dispatch_failures,
            "matches": len(self.matches),
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


@dataclass
class SourceRuntime:
    """Estado observável de uma fonte."""
    state: SourceState = SourceState.IDLE
    in_flight: bool = False
    last_run_at: Optional[datetime] = None
    last_result: Optional[SyncTickResult] = None


class SyncScheduler:
    """
    Agenda e executa a sincronização de cada fonte.

    CHAMADO POR: lifespan da API (start/stop) ou diretamente via run_tick()
    """

    def __init__(
        self,
        adapters: Dict[str, SourceAdapter],
        lead_store: LeadStore,
        matching_engine: MatchingEngine,
        rate_limiter: SourceRateLimiter,
        dispatcher: Optional[WebhookDispatcher] = None,
        sync_intervals: Optional[Dict[str, int]] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        timezone_name: str = "UTC",
    ):
        self.adapters = adapters
        self.lead_store = lead_store
        self.matching_engine = matching_engine
        self.rate_limiter = rate_limiter
        self.dispatcher = dispatcher
        self.sync_intervals = sync_intervals or {}
        self.batch_size = batch_size
        self.timezone_name = timezone_name

        self._scheduler: Optional[AsyncIOScheduler] = None
        self._stopped = False
        self._runtime: Dict[str, SourceRuntime] = {name: SourceRuntime() for name in adapters}

    # =========================================================================
    # CICLO DE VIDA
    # =========================================================================

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    @property
    def stopped(self) -> bool:
        return self._stopped

    def start(self) -> None:
        """Registra um job por fonte e inicia o scheduler (precisa de event loop ativo)."""
        if self.running:
            logger.warning("⚠️ Scheduler de sincronização já está rodando")
            return

        self._stopped = False
        self._scheduler = AsyncIOScheduler(
            timezone=self.timezone_name,
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": 60,
            },
        )

        for source in self.adapters:
            minutes = self.sync_intervals.get(source, DEFAULT_SYNC_INTERVAL_MINUTES)
            self._scheduler.add_job(
                self._run_job,
                trigger=IntervalTrigger(minutes=minutes),
                args=[source],
                id=f"sync_{source}",
                name=f"Sync {source}",
                replace_existing=True,
            )
            logger.info(f"📅 Job registrado: sync {source} (a cada {minutes} min)")

        self._scheduler.start()
        logger.info(f"🚀 Scheduler de sincronização iniciado ({len(self.adapters)} fontes)")

    def stop(self) -> None:
        """Cancela todos os timers. Resultados que chegarem depois são descartados."""
        self._stopped = True

        if self._scheduler is None:
            return

        if self._scheduler.running:
            self._scheduler.remove_all_jobs()
            self._scheduler.shutdown(wait=False)
            logger.info("🛑 Scheduler de sincronização parado")

        self._scheduler = None

    async def _run_job(self, source: str) -> None:
        """Alvo do APScheduler. Nunca deixa exceção escapar para o scheduler."""
        try:
            await self.run_tick(source)
        except Exception as e:
            logger.error(f"❌ [Sync] Erro inesperado no tick de {source}: {e}", exc_info=True)

    # =========================================================================
    # TICK
    # =========================================================================

    async def run_tick(self, source: str) -> SyncTickResult:
        adapter = self.adapters.get(source)
        if adapter is None:
            logger.error(f"[Sync] Fonte desconhecida: {source}")
            return SyncTickResult(source=source, status=SyncTickStatus.UNKNOWN_SOURCE)

        runtime = self._runtime.setdefault(source, SourceRuntime())

        # Check-and-set sem await no meio: atômico no event loop
        if runtime.in_flight:
            logger.info(f"⏭️ [Sync] {source}: tick anterior ainda em andamento, pulando")
            return SyncTickResult(source=source, status=SyncTickStatus.SKIPPED_IN_FLIGHT)

        if self._stopped:
            return SyncTickResult(source=source, status=SyncTickStatus.STOPPED)

        runtime.in_flight = True
        result = SyncTickResult(source=source, status=SyncTickStatus.COMPLETED)
        logger.info(f"🔄 [Sync] Iniciando tick de {source}")

        try:
            await self._sync_source(source, adapter, result)
        finally:
            runtime.in_flight = False
            runtime.state = SourceState.IDLE
            runtime.last_run_at = result.started_at
            result.finished_at = datetime.now(timezone.utc)
            runtime.last_result = result

        logger.info(
            f"✅ [Sync] {source}: {result.leads_processed} leads, {len(result.matches)} matches, "
            f"{result.leads_rate_limited} limitados, {result.leads_failed} falhas ({result.status.value})"
        )
        return result

    async def _sync_source(self, source: str, adapter: SourceAdapter, result: SyncTickResult) -> None:
        tenants = await self.lead_store.list_tenants()

        for tenant_id in tenants:
            leads = await self.lead_store.query(
                LeadFilter(tenant_id=tenant_id, status=CANDIDATE_LEAD_STATUS, limit=self.batch_size)
            )
            logger.debug(f"[Sync] {source}: {len(leads)} leads candidatos no tenant {tenant_id}")

            for lead in leads:
                if self._stopped:
                    result.status = SyncTickStatus.STOPPED
                    return
                await self._sync_lead(source, adapter, lead, result)

    async def _sync_lead(
        self,
        source: str,
        adapter: SourceAdapter,
        lead: Lead,
        result: SyncTickResult,
    ) -> None:
        runtime = self._runtime[source]

        if not lead.city:
            result.leads_skipped_no_city += 1
            return

        runtime.state = SourceState.RATE_LIMIT_CHECK
        if not self.rate_limiter.check_and_consume(source):
            logger.warning(f"⚠️ [Sync] {source}: rate limit atingido, lead {lead.id} fica para o próximo tick")
            result.leads_rate_limited += 1
            return

        runtime.state = SourceState.FETCHING
        try:
            properties = await adapter.search_properties(PropertySearchCriteria.from_lead(lead))
        except SourceUnavailable as e:
            logger.error(f"❌ [Sync] {e} (lead {lead.id})")
            result.leads_failed += 1
            return
        except Exception as e:
            logger.error(f"❌ [Sync] {source}: erro inesperado do adapter (lead {lead.id}): {e}", exc_info=True)
            result.leads_failed += 1
            return

        if self._stopped:
            logger.info(f"[Sync] {source}: parada solicitada, descartando resultado do lead {lead.id}")
            result.status = SyncTickStatus.STOPPED
            return

        try:
            matches = await self.matching_engine.process_property_matches(lead, properties, source)
        except Exception as e:
            logger.error(f"❌ [Sync] {source}: falha ao processar matches do lead {lead.id}: {e}", exc_info=True)
            result.leads_failed += 1
            return

        result.leads_processed += 1
        result.matches.extend(matches)

        if matches and self.dispatcher is not None and not self._stopped:
            runtime.state = SourceState.DISPATCHING
            # Matches já persistidos: falha no aviso não derruba o lote
            try:
                await self.dispatcher.dispatch(
                    WebhookEvent.PROPERTY_MATCHED,
                    {
                        "lead_id": lead.id,
                        "source": source,
                        "matches": [m.to_dict() for m in matches],
                    },
                    lead.tenant_id,
                )
            except Exception as e:
                logger.error(f"❌ [Sync] {source}: falha ao notificar matches do lead {lead.id}: {e}", exc_info=True)
                result.dispatch_failures += 1

    # =========================================================================
    # STATUS
    # =========================================================================

    def status(self) -> dict:
        """Status por fonte, para health check."""
        sources = {}
        for source, runtime in self._runtime.items():
            next_run = None
            if self._scheduler is not None:
                job = self._scheduler.get_job(f"sync_{source}")
                if job is not None and job.next_run_time:
                    next_run = job.next_run_time.isoformat()

            sources[source] = {
                "state": runtime.state.value,
                "in_flight": runtime.in_flight,
                "last_run_at": runtime.last_run_at.isoformat() if runtime.last_run_at else None,
                "last_result": runtime.last_result.to_dict() if runtime.last_result else None,
                "next_run": next_run,
                "rate_limit": self.rate_limiter.status(source),
            }

        return {
            "running": self.running,
            "stopped": self._stopped,
            "sources": sources,
        }
