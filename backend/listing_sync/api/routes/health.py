"""
HEALTH CHECK
============
Status do banco e do scheduler de sincronização (por fonte).
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text

from listing_sync.api.dependencies import Container, get_container

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
async def health_check(container: Container = Depends(get_container)):
    """
    Retorna 200 se tudo OK, 503 se o banco não responde.

    Verificações:
    - Database conectado (quando configurado)
    - Estado de cada fonte no scheduler
    """
    status = "healthy"
    checks = {}

    if container.session_factory is not None:
        try:
            async with container.session_factory() as session:
                await session.execute(text("SELECT 1"))
            checks["database"] = "ok"
        except Exception as e:
            logger.error(f"❌ Health check: banco indisponível: {e}")
            checks["database"] = f"error: {str(e)}"
            status = "unhealthy"
    else:
        checks["database"] = "in_memory"

    body = {
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
        "scheduler": container.scheduler.status(),
    }
    return JSONResponse(content=body, status_code=200 if status == "healthy" else 503)
