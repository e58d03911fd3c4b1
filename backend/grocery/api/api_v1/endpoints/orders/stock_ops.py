"""
Order stock operations
- check every line against its channel pool before anything moves
- deduct pool + total stock on placement
- restore them on cancellation
Each movement is written to the stock flow ledger.
"""

from typing import Iterable
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from grocery.core.logging_config import get_logger
from grocery.models.order import Order
from grocery.models.product import Product
from grocery.models.stock import StockFlow

logger = get_logger(__name__)


def check_stock_available(lines: Iterable, channel: str) -> None:
    """Every cart line must be covered by the channel pool

    lines: objects with .product and .quantity (cart items)
    """
    for line in lines:
        product = line.product
        if product.reserved_for(channel) < line.quantity:
            logger.warning(f"Stock short for {product.sku} ({channel}): {product.reserved_for(channel)} < {line.quantity}")
            raise HTTPException(status_code=400, detail=f"Insufficient stock for {product.name}")


def _move_stock(
    db: AsyncSession,
    product: Product,
    channel: str,
    change: int,
    order: Order,
    operator_id: int,
    reason: str) -> StockFlow:
    before = product.reserved_for(channel)
    if channel == "b2b":
        product.b2b_reserved_stock = before + change
    else:
        product.b2c_reserved_stock = before + change
    product.total_stock = (product.total_stock or 0) + change

    flow = StockFlow(
        product_id=product.id,
        order=order,
        channel=channel,
        flow_type="in" if change > 0 else "out",
        quantity_change=change,
        quantity_before=before,
        quantity_after=before + change,
        reason=reason,
        operator_id=operator_id)
    db.add(flow)
    return flow


def deduct_stock(
    db: AsyncSession,
    product: Product,
    quantity: int,
    channel: str,
    order: Order,
    operator_id: int) -> StockFlow:
    """Order placed: take quantity out of the channel pool"""
    return _move_stock(
        db, product, channel, -quantity, order, operator_id,
        reason=f"Order {order.order_number}")


def restore_stock(
    db: AsyncSession,
    product: Product,
    quantity: int,
    channel: str,
    order: Order,
    operator_id: int) -> StockFlow:
    """Order cancelled: put quantity back into the channel pool"""
    return _move_stock(
        db, product, channel, quantity, order, operator_id,
        reason=f"Cancelled {order.order_number}")
