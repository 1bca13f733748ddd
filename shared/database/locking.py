"""
Lock exclusivo por fila: "bloquear clave K, verificar, actuar condicionalmente, commit".

Todas las operaciones que deben ejecutarse una sola vez por clave (emisión de
tickets por reserva) pasan por este protocolo en lugar de repetir
SELECT ... FOR UPDATE en cada llamada.
"""
from sqlalchemy import select, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from typing import Any, Optional
import logging

logger = logging.getLogger(__name__)


class LockNotAcquired(Exception):
    """No se pudo obtener el lock dentro del lock-wait timeout"""

    def __init__(self, key: Any, cause: Optional[BaseException] = None):
        self.key = key
        self.cause = cause
        super().__init__(f"No se pudo adquirir lock para {key}: {cause}")


async def set_lock_timeout(session: AsyncSession, timeout_ms: int):
    """
    Configurar el lock-wait timeout de la transacción actual.

    Solo PostgreSQL (SET LOCAL, se descarta al terminar la transacción).
    En SQLite el límite es el PRAGMA busy_timeout de cada conexión.
    """
    if session.get_bind().dialect.name == "postgresql":
        await session.execute(text(f"SET LOCAL lock_timeout = '{int(timeout_ms)}ms'"))


class ExclusiveRowLock:
    """
    Context manager async que abre su propia sesión y bloquea una fila por PK.

    Uso:
        async with ExclusiveRowLock(session_maker, Model, key) as lock:
            lock.row       # fila bloqueada (None si no existe)
            lock.session   # sesión de la transacción
            lock.release() # terminar sin cambios (rollback)

    Salida normal -> commit. Excepción o release() -> rollback. La sesión se
    cierra siempre.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker,
        model,
        key: Any,
        lock_timeout_ms: int = 5000
    ):
        self.session_factory = session_factory
        self.model = model
        self.key = key
        self.lock_timeout_ms = lock_timeout_ms
        self.session: Optional[AsyncSession] = None
        self.row = None
        self._released = False

    def release(self):
        """Marcar la transacción para rollback (rama sin cambios)"""
        self._released = True

    async def __aenter__(self) -> "ExclusiveRowLock":
        self.session = self.session_factory()
        try:
            await set_lock_timeout(self.session, self.lock_timeout_ms)
            stmt = select(self.model).where(self.model.id == self.key).with_for_update()
            result = await self.session.execute(stmt)
            self.row = result.scalar_one_or_none()
        except DBAPIError as e:
            await self._close(rollback=True)
            logger.warning(f"Lock no adquirido para {self.model.__tablename__}:{self.key}: {e}")
            raise LockNotAcquired(self.key, e) from e
        except BaseException:
            await self._close(rollback=True)
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None or self._released:
            await self._close(rollback=True)
            return False
        try:
            await self.session.commit()
        except BaseException:
            await self._close(rollback=True)
            raise
        await self._close(rollback=False)
        return False

    async def _close(self, rollback: bool):
        try:
            if rollback:
                await self.session.rollback()
        finally:
            await self.session.close()
