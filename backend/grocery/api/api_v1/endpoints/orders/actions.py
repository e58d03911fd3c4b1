"""
Order actions
- cancel (owner, placed orders only)
- B2B reorder into the cart at current tier prices
"""

from decimal import Decimal
from typing import Any
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from grocery.core.deps import get_db, get_current_user, require_b2b
from grocery.core.logging_config import get_logger
from grocery.models.cart import CartItem
from grocery.models.order import Order
from grocery.models.product import Product
from grocery.models.user import User
from grocery.schemas.order import OrderCancel, ReorderResponse, UnavailableItem, PriceChange
from ..cart import get_or_create_cart, find_line, apply_b2b_pricing
from .core import load_order
from .stock_ops import restore_stock
from .credit_ops import restore_order_credit

router = APIRouter()
logger = get_logger(__name__)


async def cancel_order_effects(
    db: AsyncSession,
    order: Order,
    operator_id: int,
    reason: str = None) -> None:
    """Put stock and credit back and mark the order cancelled

    order must be loaded with items and business.
    """
    for item in order.items:
        product = await db.get(Product, item.product_id)
        if product:
            restore_stock(db, product, item.quantity, order.order_type, order, operator_id)

    if order.is_credit and order.business:
        await restore_order_credit(db, order.business, order, operator_id)

    order.order_status = "cancelled"
    order.cancellation_reason = reason


@router.post("/{order_id}/cancel")
async def cancel_order(
    *,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    order_id: int,
    cancel_in: OrderCancel = None) -> Any:
    order = await load_order(db, order_id)
    if order.user_id != user.id:
        raise HTTPException(status_code=403, detail="Access denied")
    if order.order_status != "placed":
        raise HTTPException(status_code=400, detail="Order cannot be cancelled at this stage")

    reason = cancel_in.reason if cancel_in else None
    await cancel_order_effects(db, order, user.id, reason)
    await db.commit()

    logger.info(f"❌ Order {order.order_number} cancelled by user {user.id}")
    return {"message": "Order cancelled successfully", "order_number": order.order_number}


@router.post("/b2b/reorder/{order_id}", response_model=ReorderResponse)
async def reorder(
    *,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_b2b),
    order_id: int) -> Any:
    """Copy a past order into the cart; lines are re-priced by tier"""
    order = await load_order(db, order_id)
    if order.user_id != user.id or order.order_type != "b2b":
        raise HTTPException(status_code=404, detail="Order not found")

    cart = await get_or_create_cart(db, user)
    added = 0
    unavailable = []
    price_changes = []

    for line in order.items:
        product = await db.get(Product, line.product_id)
        if not product or not product.is_available:
            unavailable.append(UnavailableItem(product=line.product_name, reason="Product no longer available"))
            continue

        item = find_line(cart, product.id)
        new_quantity = (item.quantity if item else 0) + line.quantity
        if product.reserved_for("b2b") < new_quantity:
            unavailable.append(UnavailableItem(product=line.product_name, reason="Insufficient stock"))
            continue
        if product.b2b_max_order_qty and new_quantity > product.b2b_max_order_qty:
            unavailable.append(UnavailableItem(
                product=line.product_name,
                reason=f"Maximum order quantity is {product.b2b_max_order_qty} units"))
            continue

        if item:
            item.quantity = new_quantity
        else:
            item = CartItem(product=product, quantity=new_quantity)
            cart.items.append(item)
        apply_b2b_pricing(item, product)
        added += 1

        old_price = Decimal(str(line.unit_price))
        if item.unit_price != old_price:
            price_changes.append(PriceChange(
                product=line.product_name,
                old_price=float(old_price),
                new_price=float(item.unit_price)))

    await db.commit()
    logger.info(f"🔁 Reorder of {order.order_number}: {added} added, {len(unavailable)} unavailable")

    return ReorderResponse(
        message="Items added to cart" if added else "No items could be added",
        items_added=added,
        items_unavailable=len(unavailable),
        unavailable_items=unavailable,
        price_changes=price_changes)
