"""API principal - Punto de entrada de la aplicación"""
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
import logging
from contextlib import asynccontextmanager

from app.core.config import settings
from shared.database.connection import init_db, close_db, create_schema, ping_db
from shared.cache.redis_client import init_redis, close_redis, ping_redis
from shared.exception_handlers import register_exception_handlers
from shared.utils.rate_limiter import limiter, rate_limit_exceeded_handler

# Configurar logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle events de la aplicación"""
    # Startup
    logger.info("Iniciando aplicación...")
    await init_db()
    if settings.APP_ENV == "development":
        await create_schema()
    await init_redis()
    logger.info("Aplicación iniciada")
    yield
    # Shutdown
    logger.info("Cerrando aplicación...")
    await close_db()
    await close_redis()
    logger.info("Aplicación cerrada")


# Crear aplicación FastAPI
app = FastAPI(
    title="Connvia API",
    description="Backend de reservas de venues y venta de tickets para eventos",
    version="1.0.0",
    lifespan=lifespan
)

register_exception_handlers(app)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Incluir routers de cada servicio
from services.ticket_purchase.routes.reservations import router as reservations_router
from services.ticket_purchase.routes.tickets import router as tickets_router
from services.ticket_purchase.routes.webhooks import router as webhooks_router
from services.venue_booking.routes.venue_reservations import router as venue_reservations_router
from services.admin.routes.admin import router as admin_router

app.include_router(reservations_router, prefix="/api/v1/attendee", tags=["attendee"])
app.include_router(tickets_router, prefix="/api/v1/attendee", tags=["attendee"])
app.include_router(webhooks_router, prefix="/api/v1/payments", tags=["payments"])
app.include_router(venue_reservations_router, prefix="/api/v1/venue-reservations", tags=["venue-reservations"])
app.include_router(admin_router, prefix="/api/v1/admin", tags=["admin"])


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {"status": "ok", "service": "connvia-api"}


@app.get("/ready")
async def ready():
    """Ready check endpoint - verifica conexiones"""
    checks = {}
    try:
        await ping_db()
        checks["database"] = "connected"
    except Exception as e:
        logger.error(f"Ready check DB failed: {e}")
        checks["database"] = "error"

    try:
        await ping_redis()
        checks["redis"] = "connected"
    except Exception as e:
        logger.error(f"Ready check Redis failed: {e}")
        checks["redis"] = "error"

    if all(value == "connected" for value in checks.values()):
        return {"status": "ready", **checks}
    return JSONResponse(status_code=503, content={"status": "not ready", **checks})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.APP_DEBUG
    )
