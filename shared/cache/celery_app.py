"""
Configuración de Celery para tareas periódicas de mantenimiento
(limpieza de reservas pendientes y reconciliación de tickets)
"""
from celery import Celery
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)

REDIS_URL = settings.REDIS_URL

celery_app = Celery(
    "connvia",
    broker=REDIS_URL,
    backend=REDIS_URL,
    include=[
        "services.ticket_purchase.tasks.housekeeping_tasks",
    ]
)

celery_app.conf.update(
    # Serialización
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",

    # Timezone
    timezone="UTC",
    enable_utc=True,

    task_track_started=True,

    # Límites de tiempo
    task_time_limit=10 * 60,
    task_soft_time_limit=8 * 60,

    worker_prefetch_multiplier=1,

    broker_connection_retry_on_startup=True,

    # ACK late: confirmar tarea solo cuando termina
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    result_expires=3600,

    # Reiniciar worker después de N tareas (previene memory leaks)
    worker_max_tasks_per_child=1000,
)

# Tareas periódicas (celery beat)
celery_app.conf.beat_schedule = {
    "purge-stale-pending-reservations": {
        "task": "purge_stale_pending_reservations",
        "schedule": float(settings.CLEANUP_INTERVAL_SECONDS),
    },
    "reconcile-confirmed-reservations": {
        "task": "reconcile_confirmed_reservations",
        "schedule": float(settings.RECONCILE_INTERVAL_SECONDS),
    },
}

logger.info(
    "Celery configurado - Broker: %s, cleanup cada %ss, reconciliación cada %ss",
    REDIS_URL.split("@")[-1] if "@" in REDIS_URL else REDIS_URL,
    settings.CLEANUP_INTERVAL_SECONDS,
    settings.RECONCILE_INTERVAL_SECONDS
)
