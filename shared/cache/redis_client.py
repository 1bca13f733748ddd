"""Cliente Redis compartido (probe de readiness y storage del rate limiter)"""
import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from typing import Optional
from redis.exceptions import RedisError
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)

redis_client: Optional[redis.Redis] = None
redis_pool: Optional[ConnectionPool] = None


async def init_redis(redis_url: Optional[str] = None):
    """Inicializar conexión a Redis con pool de conexiones"""
    global redis_client, redis_pool

    redis_url = redis_url or settings.REDIS_URL
    max_connections = settings.REDIS_MAX_CONNECTIONS

    redis_pool = ConnectionPool.from_url(
        redis_url,
        max_connections=max_connections,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_keepalive=True,
        retry_on_timeout=True,
        health_check_interval=30,
    )

    redis_client = redis.Redis(connection_pool=redis_pool)

    # La API arranca aunque Redis no responda; /ready lo reporta
    try:
        await redis_client.ping()
        logger.info(f"Redis conectado exitosamente (pool max_connections={max_connections})")
    except (RedisError, OSError) as e:
        logger.error(f"Error conectando a Redis: {e}")


async def get_redis() -> redis.Redis:
    """Obtener cliente Redis"""
    if redis_client is None:
        await init_redis()
    return redis_client


async def ping_redis() -> bool:
    """True si Redis responde al PING"""
    client = await get_redis()
    return bool(await client.ping())


async def close_redis():
    """Cerrar conexión a Redis y pool"""
    global redis_client, redis_pool
    if redis_client:
        await redis_client.aclose()
        redis_client = None
    if redis_pool:
        await redis_pool.disconnect()
        redis_pool = None
    logger.info("Redis desconectado")
