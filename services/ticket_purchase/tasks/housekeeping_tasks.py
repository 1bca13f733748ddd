"""Tareas periódicas de Celery: limpieza de pendientes y reconciliación de tickets"""
from typing import Dict
import logging
import asyncio
from shared.cache.celery_app import celery_app

logger = logging.getLogger(__name__)


def run_async(coro):
    """Helper para ejecutar coroutines en contexto síncrono de Celery"""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def _with_database(job):
    """Engine nuevo por ejecución: el pool async está ligado al event loop"""
    from shared.database.connection import init_db, close_db, get_session_maker

    await init_db()
    try:
        return await job(get_session_maker())
    finally:
        await close_db()


@celery_app.task(name="purge_stale_pending_reservations")
def purge_stale_pending_reservations_task() -> Dict:
    """Eliminar reservas pending más antiguas que el TTL"""
    from services.ticket_purchase.services.housekeeping_service import purge_stale_pending_reservations

    logger.info("[CELERY] Limpiando reservas pendientes vencidas")
    return run_async(_with_database(
        lambda session_factory: purge_stale_pending_reservations(session_factory)
    ))


@celery_app.task(name="reconcile_confirmed_reservations")
def reconcile_confirmed_reservations_task() -> Dict:
    """Emitir tickets faltantes de reservas confirmadas"""
    from services.ticket_purchase.services.housekeeping_service import reconcile_confirmed_reservations

    logger.info("[CELERY] Reconciliando reservas confirmadas sin tickets")
    return run_async(_with_database(
        lambda session_factory: reconcile_confirmed_reservations(session_factory)
    ))
