import os
import tempfile
from datetime import datetime, timedelta
from decimal import Decimal

os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "grocery-test-logs"))
os.environ.setdefault("CART_SWEEP_ENABLED", "false")

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from grocery.core.deps import get_db
from grocery.db.base import Base
from grocery.main import app
from grocery.models import (
    User, B2BBusiness, B2BDeliveryAddress, Category, Product, Cart
)

API = "/api/v1"

DEFAULT_TIERS = [
    {"min_qty": 10, "max_qty": 49, "price_per_unit": 75},
    {"min_qty": 50, "max_qty": None, "price_per_unit": 70},
]


def headers(user) -> dict:
    return {"X-User-Id": str(user.id)}


def future(hours: int = 48) -> str:
    return (datetime.utcnow() + timedelta(hours=hours)).isoformat()


class Seeder:
    """Inserts fixtures directly through the ORM"""

    def __init__(self, session_factory):
        self.session_factory = session_factory
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    async def add(self, obj):
        async with self.session_factory() as db:
            db.add(obj)
            await db.commit()
        return obj

    async def get(self, model, pk):
        async with self.session_factory() as db:
            return await db.get(model, pk)

    async def user(self, account_type: str = "b2c", **kwargs) -> User:
        n = self._next()
        data = dict(
            full_name=f"User {n}",
            email=f"user{n}@example.com",
            mobile=f"98765{n:05d}",
            account_type=account_type)
        data.update(kwargs)
        return await self.add(User(**data))

    async def business(
        self,
        user: User,
        account_status: str = "approved",
        credit_limit: Decimal = Decimal("100000"),
        credit_period_days: int = 15) -> B2BBusiness:
        n = self._next()
        approved = account_status == "approved"
        return await self.add(B2BBusiness(
            user_id=user.id,
            business_name=f"Business {n}",
            business_type="restaurant",
            gst_number=f"27AAACB{n:04d}Z1Z",
            pan_number=f"AAACB{n:04d}Z",
            contact_person={"name": "Owner", "mobile": "9876500000"},
            business_address={"city": "Pune"},
            account_status=account_status,
            credit_limit=credit_limit if approved else Decimal("0"),
            credit_period_days=credit_period_days if approved else 0,
            available_credit=credit_limit if approved else Decimal("0"),
            used_credit=Decimal("0")))

    async def b2b_user(self, **kwargs):
        user = await self.user("b2b")
        business = await self.business(user, **kwargs)
        return user, business

    async def address(self, business: B2BBusiness, **kwargs) -> B2BDeliveryAddress:
        n = self._next()
        data = dict(
            business_id=business.id,
            label=f"Outlet {n}",
            address_line1=f"{n} Market Road",
            city="Pune",
            state="MH",
            pincode="411001",
            is_default=False,
            is_active=True)
        data.update(kwargs)
        return await self.add(B2BDeliveryAddress(**data))

    async def category(self, name: str = None) -> Category:
        n = self._next()
        return await self.add(Category(name=name or f"Category {n}", is_active=True))

    async def product(self, category: Category = None, **kwargs) -> Product:
        if category is None:
            category = await self.category()
        n = self._next()
        data = dict(
            sku=f"SKU-{n:04d}",
            name=f"Product {n}",
            category_id=category.id,
            brand="Farm Fresh",
            unit="kg",
            b2c_mrp=Decimal("120"),
            b2c_selling_price=Decimal("100"),
            b2c_max_quantity=10,
            b2b_base_price=Decimal("80"),
            b2b_min_order_qty=10,
            b2b_bulk_tiers=DEFAULT_TIERS,
            total_stock=1000,
            b2c_reserved_stock=300,
            b2b_reserved_stock=700,
            status="active",
            is_deleted=False)
        data.update(kwargs)
        return await self.add(Product(**data))

    async def expire_cart(self, user: User):
        async with self.session_factory() as db:
            await db.execute(
                update(Cart).where(Cart.user_id == user.id)
                .values(expires_at=datetime.utcnow() - timedelta(minutes=1))
            )
            await db.commit()


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    yield factory
    await engine.dispose()


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def seed(session_factory) -> Seeder:
    return Seeder(session_factory)


@pytest.fixture
async def admin(seed):
    return await seed.user("admin")


@pytest.fixture
async def shopper(seed):
    return await seed.user("b2c")


@pytest.fixture
async def buyer(seed):
    """Approved wholesale user and business"""
    return await seed.b2b_user()


@pytest.fixture
async def product(seed):
    return await seed.product()
