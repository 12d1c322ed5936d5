"""
Test Configuration — Fixtures for async DB, test client, and product data.

Each test gets its own in-memory SQLite database so API tests never see
each other's rows.
"""

from datetime import datetime

import pytest
from httpx import ASGITransport, AsyncClient

from api.deps import get_db
from api.main import app
from db.session import create_tables, make_engine, make_session_factory
from inventory.records import Decision, DecisionLabel, ProductRecord

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def make_product(product_id: int, name: str | None = None, stock: int = 50, sales: int = 20, lead: int = 5) -> ProductRecord:
    return ProductRecord(
        id=product_id,
        name=name or f"Product {product_id:03d}",
        current_inventory=stock,
        avg_sales=sales,
        lead_time=lead,
    )


def decide(products, reorder_ids) -> dict[int, Decision]:
    """Decisions with score 0.9 for reorder_ids and 0.1 for the rest."""
    reorder_ids = set(reorder_ids)
    return {
        p.id: Decision(score=0.9, label=DecisionLabel.REORDER)
        if p.id in reorder_ids
        else Decision(score=0.1, label=DecisionLabel.SAFE)
        for p in products
    }


@pytest.fixture
def catalog() -> list[ProductRecord]:
    """Twelve products with distinct names, stock and sales."""
    names = [
        "Wireless Mouse 120", "Gaming Keyboard 330", "4K Monitor 410", "Bluetooth Headset 215",
        "Smart Speaker 780", "Portable SSD 505", "USB-C Router 640", "Ergonomic Keyboard 290",
        "Mechanical Keyboard 875", "Noise-Cancelling Headset 150", "Smart Tablet 333", "Gaming Laptop 901",
    ]
    return [
        make_product(i + 1, name=name, stock=(i * 9) % 100, sales=10 + i * 3, lead=1 + i % 14)
        for i, name in enumerate(names)
    ]


@pytest.fixture
async def test_engine():
    """Fresh in-memory database with all tables."""
    engine = make_engine(TEST_DATABASE_URL)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_db(test_engine):
    SessionLocal = make_session_factory(test_engine)
    async with SessionLocal() as session:
        yield session


@pytest.fixture
async def client(test_db):
    """Async test client with the DB dependency overridden."""

    async def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def seeded_db(test_db):
    """Three products inserted out of alphabetical order."""
    from db.models import Product

    now = datetime(2025, 1, 15, 12, 0, 0)
    rows = [
        Product(name="Wireless Mouse 120", current_inventory=0, avg_sales=50, lead_time=3, created_at=now, updated_at=now),
        Product(name="4K Monitor 410", current_inventory=100, avg_sales=5, lead_time=2, created_at=now, updated_at=now),
        Product(name="Gaming Keyboard 330", current_inventory=12, avg_sales=30, lead_time=7, created_at=now, updated_at=now),
    ]
    test_db.add_all(rows)
    await test_db.commit()
    return rows
