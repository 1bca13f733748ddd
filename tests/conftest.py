import os

# Configuración de tests: debe quedar antes de importar la aplicación
os.environ["APP_ENV"] = "test"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["RATE_LIMIT_STORAGE_URI"] = "memory://"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["TICKET_SIGNING_SECRET"] = "test-ticket-secret"
os.environ["PAYMENT_WEBHOOK_SECRET"] = "test-webhook-secret"

import httpx
import pytest_asyncio

from shared.database.connection import init_db, close_db, create_schema, get_session_maker


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path):
    """Base SQLite en archivo por test (el lock de BEGIN IMMEDIATE necesita conexiones separadas)"""
    await init_db(f"sqlite:///{tmp_path / 'connvia-test.db'}")
    await create_schema()
    try:
        yield get_session_maker()
    finally:
        await close_db()


@pytest_asyncio.fixture(scope="function")
async def client(session_factory):
    from main import app

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test", timeout=10.0) as c:
        yield c
