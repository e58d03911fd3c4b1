import asyncio

from grocery.db.session import engine
from grocery.db.base import Base

# register every model on Base.metadata
from grocery.models import (  # noqa: F401
    User, B2BBusiness, B2BDeliveryAddress, Category, Subcategory,
    Product, StockFlow, Cart, CartItem, Order, OrderItem, AuditLog
)


async def ensure_tables_exist() -> None:
    """
    Create any missing tables (called at startup)
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


if __name__ == "__main__":
    asyncio.run(ensure_tables_exist())
