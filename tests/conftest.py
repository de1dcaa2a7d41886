import os

# services.api.main builds a default app at import time.
os.environ.setdefault("OPENAI_API_KEY", "test-key")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text

from sqlgate.db.engine import DBConfig, get_engine


class FakeModel:
    """Stands in for ModelClient: returns canned text and records prompts."""

    def __init__(self, reply="", exc=None):
        self.reply = reply
        self.exc = exc
        self.payloads = []

    async def complete(self, payload):
        self.payloads.append(payload)
        if self.exc is not None:
            raise self.exc
        return self.reply


@pytest.fixture
def engine(tmp_path):
    cfg = DBConfig(url=f"sqlite:///{tmp_path / 'store.db'}", pool_size=2, pool_timeout=1)
    eng = get_engine(cfg)
    with eng.begin() as conn:
        conn.execute(text("CREATE TABLE Users (id INTEGER PRIMARY KEY, name TEXT NOT NULL, created_at TEXT)"))
        conn.execute(text("CREATE TABLE Orders (id INTEGER PRIMARY KEY, user_id INTEGER, amount REAL DEFAULT 0)"))
        conn.execute(text("INSERT INTO Users (id, name) VALUES (1, 'ada'), (2, 'grace')"))
        conn.execute(text("INSERT INTO Orders (id, user_id, amount) VALUES (1, 1, 10.5), (2, 1, 3), (3, 2, 7)"))
    yield eng
    eng.dispose()


@pytest.fixture
def fake_model():
    return FakeModel()


@pytest.fixture
def app(engine, fake_model):
    from services.api.main import ApiConfig, create_app

    return create_app(engine=engine, model=fake_model, cfg=ApiConfig())


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def lenient_client(app):
    # Unhandled errors are re-raised by Starlette after the 500 is sent.
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
