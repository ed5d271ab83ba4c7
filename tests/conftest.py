from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from modelcache.config import XML_PATH_LOG_ACTIVE, XML_PATH_LOG_FILE, get_settings
from modelcache.observability.collector import LoadCollector

from tests.helpers import Base, Product, RecordingSink, StoreProduct


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> Iterator[None]:
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "log"))
    monkeypatch.setenv("PROJECT_ROOT", "/app")
    monkeypatch.setenv("MODELCACHE_LOG_ACTIVE", "true")
    monkeypatch.setenv("MODELCACHE_LOG_FILE", "modelcache.log")
    monkeypatch.setenv("PROFILER_ENABLED", "true")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def config() -> dict:
    return {XML_PATH_LOG_ACTIVE: True, XML_PATH_LOG_FILE: "modelcache.log"}


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def collector(config: dict, sink: RecordingSink) -> LoadCollector:
    return LoadCollector(
        config=config,
        sink=sink,
        diagnostics_enabled=lambda: True,
        current_url=lambda: "http://shop.test/catalog?page=2&amp;sort=name",
        path_prefix="/app/",
    )


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    with Session(engine) as db:
        db.add_all(
            [
                Product(id=7, sku="TSHIRT-RED"),
                Product(id=3, sku="MUG-BLUE"),
                StoreProduct(store_id=1, product_id=7, price_cents=1999),
            ]
        )
        db.commit()
    yield engine
    engine.dispose()


@pytest.fixture
async def api_client(app) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
