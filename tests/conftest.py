"""
Cafeteria test fixtures

Every test gets a fresh SQLite database (file based, so concurrent sessions
really use separate connections) and a fresh in-memory broadcaster.
"""
import os
import tempfile

# Settings are read once at import time; configure before importing cafeteria.
_DB_DIR = tempfile.mkdtemp(prefix="cafeteria-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_DB_DIR, 'cafeteria.db')}"
os.environ["BROADCAST_BACKEND"] = "memory"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["OPT_LOCK_BASE_DELAY_MS"] = "1"
os.environ["OPT_LOCK_JITTER_MS"] = "1"

from decimal import Decimal

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import func, select

from cafeteria.core.broadcast import close_broadcaster, get_broadcaster
from cafeteria.core.security import create_access_token
from cafeteria.db.database import AsyncSessionLocal, Base, engine
from cafeteria.models.order import Order, OrderItem
from cafeteria.models.product import Product
from cafeteria.models.user import User  # noqa: F401  (registers the table)


@pytest_asyncio.fixture
async def db_engine():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    # Pooled aiosqlite connections are bound to this test's event loop
    await engine.dispose()


@pytest_asyncio.fixture
async def hub():
    await close_broadcaster()
    broadcaster = get_broadcaster()
    yield broadcaster
    await close_broadcaster()


@pytest_asyncio.fixture
async def client(db_engine, hub):
    from cafeteria.main import app

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def make_product(db_engine):
    async def _make(name: str = "Coffee", price: str = "2.50", stock: int = 10, category: str = "drinks") -> int:
        async with AsyncSessionLocal() as db:
            async with db.begin():
                product = Product(name=name, price=Decimal(price), category=category, stock_quantity=stock)
                db.add(product)
            return product.id
    return _make


async def stock_of(product_id: int) -> int:
    async with AsyncSessionLocal() as db:
        return await db.scalar(select(Product.stock_quantity).where(Product.id == product_id))


async def count_orders() -> tuple[int, int]:
    """(orders, order_items) currently stored."""
    async with AsyncSessionLocal() as db:
        orders = await db.scalar(select(func.count(Order.id)))
        items = await db.scalar(select(func.count(OrderItem.id)))
        return orders, items


@pytest.fixture
def admin_headers():
    token = create_access_token({"sub": "1", "username": "admin", "role": "admin"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def cashier_headers():
    token = create_access_token({"sub": "2", "username": "till-1", "role": "cashier"})
    return {"Authorization": f"Bearer {token}"}
