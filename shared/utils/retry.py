"""Reintentos con backoff exponencial para operaciones async"""
import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Tuple, Type, TypeVar, Union

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def retry_with_backoff(
    func: Callable[[], Union[T, Awaitable[T]]],
    max_retries: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,)
) -> T:
    """
    Llamar a `func` hasta que no lance una de `exceptions`

    La espera entre intentos arranca en `initial_delay` y se multiplica por
    `exponential_base` hasta `max_delay`. Con `max_retries=3` hay como
    máximo 4 llamadas; la excepción del último intento se propaga.
    """
    delay = initial_delay
    attempt = 0

    while True:
        try:
            result = func()
            if inspect.isawaitable(result):
                result = await result
            return result
        except exceptions as e:
            attempt += 1
            if attempt > max_retries:
                logger.error(f"Sin éxito tras {attempt} intentos: {e}")
                raise
            logger.warning(f"Intento {attempt} falló ({e}), reintentando en {delay:.2f}s")
            await asyncio.sleep(delay)
            delay = min(delay * exponential_base, max_delay)
