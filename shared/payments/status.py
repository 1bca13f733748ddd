"""Estados de pago de reservas y normalización de sinónimos"""
from enum import Enum
from typing import FrozenSet, Optional

from shared.exceptions import ValidationError


class PaymentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    FAILED = "failed"


# Valores que envían clientes y pasarelas de pago -> estado canónico
_SYNONYMS = {
    "pending": PaymentStatus.PENDING,
    "confirmed": PaymentStatus.CONFIRMED,
    "successful": PaymentStatus.CONFIRMED,
    "success": PaymentStatus.CONFIRMED,
    "succeeded": PaymentStatus.CONFIRMED,
    "paid": PaymentStatus.CONFIRMED,
    "approved": PaymentStatus.CONFIRMED,
    "completed": PaymentStatus.CONFIRMED,
    "cancelled": PaymentStatus.CANCELLED,
    "canceled": PaymentStatus.CANCELLED,
    "failed": PaymentStatus.FAILED,
    "rejected": PaymentStatus.FAILED,
    "declined": PaymentStatus.FAILED,
}

# Estado destino -> estados desde los que se puede llegar.
# confirmed -> confirmed se acepta para que los reintentos del webhook
# lleguen al motor de emisión (que es idempotente).
_ALLOWED_SOURCES = {
    PaymentStatus.PENDING: frozenset({PaymentStatus.PENDING}),
    PaymentStatus.CONFIRMED: frozenset({PaymentStatus.PENDING, PaymentStatus.FAILED, PaymentStatus.CONFIRMED}),
    PaymentStatus.CANCELLED: frozenset({PaymentStatus.PENDING, PaymentStatus.FAILED, PaymentStatus.CANCELLED}),
    PaymentStatus.FAILED: frozenset({PaymentStatus.PENDING, PaymentStatus.FAILED}),
}


def normalize_payment_status(value: Optional[str]) -> PaymentStatus:
    """
    Convertir el estado recibido al valor canónico.

    Se aplica una sola vez en el borde (endpoint o webhook); el resto del
    código trabaja con PaymentStatus.
    """
    if isinstance(value, PaymentStatus):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("paymentStatus es requerido")
    status = _SYNONYMS.get(value.strip().lower())
    if status is None:
        raise ValidationError(
            f"paymentStatus inválido: '{value}'. Valores válidos: "
            + ", ".join(s.value for s in PaymentStatus)
        )
    return status


def allowed_sources(target: PaymentStatus) -> FrozenSet[PaymentStatus]:
    """Estados actuales desde los que se permite pasar a `target`"""
    return _ALLOWED_SOURCES[target]


def can_transition(current: PaymentStatus, target: PaymentStatus) -> bool:
    return PaymentStatus(current) in _ALLOWED_SOURCES[target]
