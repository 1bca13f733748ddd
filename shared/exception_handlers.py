"""Handlers de excepciones para FastAPI (formato {success, error})"""
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from shared.exceptions import DomainError

logger = logging.getLogger(__name__)


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Errores de dominio"""
    logger.warning(f"Domain error ({exc.status_code}) en {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message}
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """HTTPException (autenticación, rutas inexistentes)"""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None)
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Body o parámetros inválidos -> 400"""
    errors = exc.errors()
    fields = []
    for err in errors:
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "path", "query")]
        fields.append(f"{'.'.join(loc) or 'body'}: {err.get('msg')}")
    message = "Campos inválidos o faltantes: " + "; ".join(fields)
    logger.warning(f"Validation error en {request.url.path}: {message}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": message}
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Unhandled exception en {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "Error interno del servidor"}
    )


EXCEPTION_HANDLERS = {
    DomainError: domain_error_handler,
    StarletteHTTPException: http_exception_handler,
    RequestValidationError: request_validation_handler,
    Exception: general_exception_handler,
}


def register_exception_handlers(app):
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
