"""Conexión a la base de datos (PostgreSQL en producción, SQLite en desarrollo/tests)"""
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy import event, text
from typing import AsyncGenerator, Optional
import logging

from app.core.config import settings

logger = logging.getLogger(__name__)

# Base para modelos SQLAlchemy
Base = declarative_base()

# Engine y session factory
engine = None
async_session_maker: Optional[async_sessionmaker] = None


def normalize_database_url(url: str) -> str:
    """Convertir la URL al driver async correspondiente"""
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    if url.startswith("postgresql+psycopg://"):
        return url.replace("postgresql+psycopg://", "postgresql+asyncpg://", 1)
    return url


def _install_sqlite_locking(sync_engine, busy_timeout_ms: int):
    """
    SQLite no soporta SELECT ... FOR UPDATE.

    Cada transacción se abre con BEGIN IMMEDIATE, que toma el lock de escritura
    de la base al comenzar; una segunda transacción espera hasta busy_timeout
    y luego falla con "database is locked".
    """
    @event.listens_for(sync_engine, "connect")
    def _sqlite_connect(dbapi_connection, _):
        # Desactivar el BEGIN implícito del driver
        dbapi_connection.isolation_level = None
        cur = dbapi_connection.cursor()
        cur.execute(f"PRAGMA busy_timeout={int(busy_timeout_ms)};")
        cur.close()

    @event.listens_for(sync_engine, "begin")
    def _sqlite_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


async def init_db(database_url: Optional[str] = None):
    """Inicializar conexión a la base de datos"""
    global engine, async_session_maker

    if engine is not None:
        logger.warning("Database engine already initialized, skipping...")
        return

    database_url = normalize_database_url(database_url or settings.DATABASE_URL)

    logger.info(f"Initializing database connection to: {database_url.split('@')[1] if '@' in database_url else database_url}")

    is_sqlite = database_url.startswith("sqlite")

    pool_config = {"pool_pre_ping": True}
    if not is_sqlite:
        pool_config.update({
            "pool_recycle": 300,
            "pool_timeout": 30,
            "pool_use_lifo": True,
            "pool_size": settings.DATABASE_POOL_SIZE,
            "max_overflow": settings.DATABASE_MAX_OVERFLOW,
        })
        logger.info(f"Pool config: size={pool_config['pool_size']}, overflow={pool_config['max_overflow']}")

    engine = create_async_engine(
        database_url,
        echo=settings.APP_DEBUG,
        **pool_config
    )

    if is_sqlite:
        _install_sqlite_locking(engine.sync_engine, settings.SQLITE_BUSY_TIMEOUT_MS)

    async_session_maker = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False
    )

    logger.info("Database engine initialized successfully")


def get_session_maker() -> async_sessionmaker:
    """Session factory activa (para operaciones que abren su propia transacción)"""
    if async_session_maker is None:
        logger.error("Database not initialized! Call init_db() first.")
        raise RuntimeError("Database not initialized. Please check application startup.")
    return async_session_maker


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency para obtener sesión de base de datos.

    La conexión vuelve al pool en todos los caminos de salida (éxito,
    error esperado o excepción inesperada).
    """
    session_maker = get_session_maker()
    async with session_maker() as session:
        yield session


async def create_schema():
    """Crear tablas (desarrollo y tests; producción usa migraciones)"""
    # Registrar modelos en Base.metadata
    import shared.database.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ping_db():
    """Verificar conectividad (SELECT 1)"""
    async with get_session_maker()() as session:
        await session.execute(text("SELECT 1"))


async def close_db():
    """Cerrar conexiones a la base de datos"""
    global engine, async_session_maker
    if engine:
        logger.info("Closing database connections...")
        await engine.dispose()
        engine = None
        async_session_maker = None
        logger.info("Database connections closed")
