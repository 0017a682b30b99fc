"""
Pytest configuration for the ingestion backend test suite.

Configures:
- pytest-asyncio for async test support (auto mode, see pyproject.toml)
- a fake vector-store gateway shaped like AsyncOpenAI
- a FastAPI TestClient with auth, redis and the ledger replaced
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest
from fastapi.testclient import TestClient

AUTH_HEADER = {"Authorization": "Bearer token-1"}


def make_gateway():
    """Fake gateway exposing the resources VectorStoreClient calls."""
    return SimpleNamespace(
        files=SimpleNamespace(
            create=AsyncMock(),
            retrieve=AsyncMock(),
            delete=AsyncMock(),
        ),
        vector_stores=SimpleNamespace(
            retrieve=AsyncMock(return_value=SimpleNamespace(id="vs-1")),
            create=AsyncMock(return_value=SimpleNamespace(id="vs-new")),
            files=SimpleNamespace(
                create=AsyncMock(),
                retrieve=AsyncMock(),
                list=AsyncMock(),
                delete=AsyncMock(),
            ),
            file_batches=SimpleNamespace(
                create=AsyncMock(return_value=SimpleNamespace(id="batch-1")),
                retrieve=AsyncMock(),
            ),
        ),
    )


def uploaded(file_id):
    return SimpleNamespace(id=file_id)


def not_found(url="https://api.openai.com/v1/files/file-x"):
    request = httpx.Request("DELETE", url)
    return openai.NotFoundError(
        "not found", response=httpx.Response(404, request=request), body=None
    )


def batch(status, completed=0, in_progress=0, failed=0, cancelled=0):
    return SimpleNamespace(
        id="batch-1",
        status=status,
        file_counts=SimpleNamespace(
            completed=completed,
            in_progress=in_progress,
            failed=failed,
            cancelled=cancelled,
            total=completed + in_progress + failed + cancelled,
        ),
    )


@pytest.fixture
def gateway():
    return make_gateway()


@pytest.fixture
def vs_client(gateway):
    from vector_ingest.src.vector_store.client import VectorStoreClient
    from vector_ingest.src.vector_store.store_id import VectorStoreConfig

    config = VectorStoreConfig(
        configured_store_id="vs-1", upload_concurrency=2, poll_interval=0.01, max_wait_time=1.0
    )
    return VectorStoreClient(gateway, config)


@pytest.fixture
def fake_redis(monkeypatch):
    import redis_cache.redis_client as cache

    fake = MagicMock()
    fake.lrange.return_value = []
    fake.get.return_value = None
    monkeypatch.setattr(cache, "redis_client", fake)
    return fake


@pytest.fixture
def ledger():
    repo = MagicMock()
    repo.record_ingestion = AsyncMock()
    repo.set_batch_status = AsyncMock()
    repo.list_batches = AsyncMock(return_value=[])
    return repo


@pytest.fixture
def api_client(vs_client, ledger, fake_redis):
    """TestClient with every outside collaborator replaced."""
    from api.dependencies import get_ingestion_repository, get_vector_store_client
    from api.main import app
    from api.security import AuthSettings, get_auth_settings
    from db.database import get_db

    async def _no_db():
        yield None

    app.dependency_overrides[get_auth_settings] = lambda: AuthSettings(
        auth_tokens={"token-1": "user-1"}
    )
    app.dependency_overrides[get_vector_store_client] = lambda: vs_client
    app.dependency_overrides[get_ingestion_repository] = lambda: ledger
    app.dependency_overrides[get_db] = _no_db

    yield TestClient(app)

    app.dependency_overrides.clear()
