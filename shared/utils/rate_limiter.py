"""
Rate limiting usando slowapi con storage compartido en Redis.
Los contadores sobreviven reinicios y se comparten entre instancias.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request, Response
from starlette.responses import JSONResponse
import hashlib
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)

STORAGE_URI = settings.RATE_LIMIT_STORAGE_URI or settings.REDIS_URL


def get_real_client_ip(request: Request) -> str:
    """
    Obtener IP real del cliente considerando proxies/load balancers.
    """
    # X-Forwarded-For puede tener múltiples IPs: client, proxy1, proxy2
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return get_remote_address(request)


def get_user_identifier(request: Request) -> str:
    """
    Identificador para rate limiting: IP + hash del token si hay autenticación.
    """
    ip = get_real_client_ip(request)

    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token_hash = hashlib.sha256(auth_header.encode()).hexdigest()[:12]
        return f"{ip}:{token_hash}"

    return ip


limiter = Limiter(
    key_func=get_user_identifier,
    storage_uri=STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
    headers_enabled=False,  # Compatibilidad con respuestas dict de FastAPI
)
logger.info(
    f"Rate limiter {'habilitado' if settings.RATE_LIMIT_ENABLED else 'deshabilitado'}, "
    f"storage: {STORAGE_URI.split('@')[-1]}"
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Handler para rate limit exceeded con el mismo envelope que el resto de errores"""
    logger.warning(
        f"Rate limit exceeded - IP: {get_real_client_ip(request)}, "
        f"Path: {request.url.path}, limit: {exc.detail}"
    )

    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": "Demasiadas solicitudes. Por favor espera antes de intentar nuevamente.",
        },
        headers={"Retry-After": "60"},
    )


# ============ RATE LIMITS PRE-DEFINIDOS ============

RATE_LIMITS = {
    # Creación de reservas: restrictivo para evitar reservas basura
    "reservation": "10/minute",

    # Cambios de estado de pago hechos por el cliente
    "payment_status": "20/minute",

    # Webhooks: permisivo porque la pasarela reintenta
    "webhook": "100/minute",

    # Listados
    "read": "60/minute",
}
