"""Verificación de notificaciones de la pasarela de pago"""
from typing import Optional
import hashlib
import hmac
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)


class PaymentGatewayService:
    """Firma HMAC de los webhooks de la pasarela"""

    def __init__(self, webhook_secret: Optional[str] = None):
        self.webhook_secret = settings.PAYMENT_WEBHOOK_SECRET if webhook_secret is None else webhook_secret

    def compute_signature(self, raw_body: bytes) -> str:
        return hmac.new(
            self.webhook_secret.encode("utf-8"),
            raw_body,
            hashlib.sha256
        ).hexdigest()

    def verify_webhook(self, raw_body: bytes, signature: Optional[str]) -> bool:
        """
        Verificar webhook usando HMAC SHA256 sobre el body crudo

        Args:
            raw_body: Body tal como llegó (antes de parsear JSON)
            signature: Header X-Signature, "<hex>" o "sha256=<hex>"

        Returns:
            True si la firma es válida
        """
        # En desarrollo, si no hay secret configurado, permitir sin verificación
        if not self.webhook_secret:
            logger.warning("Webhook secret no configurado, saltando verificación (solo desarrollo)")
            return True

        if not signature:
            logger.warning("Webhook sin X-Signature")
            return False

        received = signature.strip()
        if received.lower().startswith("sha256="):
            received = received.split("=", 1)[1]

        expected = self.compute_signature(raw_body)
        if not hmac.compare_digest(received.lower(), expected):
            logger.warning("Firma de webhook no coincide")
            return False
        return True
