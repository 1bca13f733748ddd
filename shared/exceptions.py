"""Excepciones compartidas de la aplicación"""


class DomainError(Exception):
    """Error de dominio con mensaje y status code HTTP"""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ValidationError(DomainError):
    """Campos requeridos faltantes o con formato inválido (400)"""

    def __init__(self, message: str):
        super().__init__(message, 400)


class InvalidStatusTransition(ValidationError):
    """La reserva existe pero no admite el estado solicitado (409)"""

    def __init__(self, message: str):
        super().__init__(message)
        self.status_code = 409


class NotFoundOrForbidden(DomainError):
    """Recurso inexistente o de otro usuario; el mensaje no distingue ambos casos (404)"""

    def __init__(self, message: str = "Recurso no encontrado"):
        super().__init__(message, 404)


class ForbiddenError(DomainError):
    """Rol insuficiente (403)"""

    def __init__(self, message: str):
        super().__init__(message, 403)


class WebhookSignatureError(DomainError):
    """Firma de webhook inválida (401)"""

    def __init__(self, message: str = "Firma de webhook inválida"):
        super().__init__(message, 401)


# ============ EMISIÓN DE TICKETS ============
# No llegan al cliente: el endpoint de estado de pago las registra y responde igual.

class TicketIssuanceError(Exception):
    """Base de errores de emisión de tickets"""

    def __init__(self, reservation_id, message: str):
        self.reservation_id = reservation_id
        self.message = message
        super().__init__(f"[reserva {reservation_id}] {message}")


class IssuanceConflict(TicketIssuanceError):
    """Lock-wait timeout o fallo de la transacción de emisión (reintentable)"""


class DataIntegrityError(TicketIssuanceError):
    """Datos inconsistentes (evento faltante, cantidad inválida); requiere remediación manual"""


class ReservationNotConfirmed(TicketIssuanceError):
    """Se pidió emitir tickets para una reserva que no está confirmada"""
