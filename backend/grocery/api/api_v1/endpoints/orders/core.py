"""
Order core helpers
- order number generation
- response building
- loading with lines
"""

from datetime import datetime, timezone
from typing import Optional
from fastapi import HTTPException
from sqlalchemy import select, func, cast, Integer
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from grocery.models.order import Order
from grocery.schemas.order import OrderDetailResponse, OrderItemResponse, OrderSummary


async def generate_order_number(db: AsyncSession, order_type: str) -> str:
    """ORD/B2B + YYYYMMDD (UTC) + sequence of the day, at least 3 digits"""
    prefix = "B2B" if order_type == "b2b" else "ORD"
    date_str = datetime.utcnow().strftime("%Y%m%d")

    # sequence compared as a number so 1000 sorts after 999
    pattern = f"{prefix}{date_str}%"
    seq_expr = cast(func.substr(Order.order_number, len(prefix) + 9), Integer)
    result = await db.execute(
        select(func.max(seq_expr)).where(Order.order_number.like(pattern))
    )
    max_seq = result.scalar()

    seq = (max_seq or 0) + 1
    return f"{prefix}{date_str}{seq:03d}"


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored datetimes are naive UTC"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


async def load_order(db: AsyncSession, order_id: int) -> Order:
    result = await db.execute(
        select(Order)
        .options(selectinload(Order.items), selectinload(Order.business))
        .where(Order.id == order_id)
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


def build_order_summary(order: Order) -> OrderSummary:
    """Order history row; b2b rows carry billing fields"""
    info = order.delivery_info or {}
    resp = OrderSummary(
        order_id=order.id,
        order_number=order.order_number,
        order_date=order.order_date,
        total_items=order.total_items,
        total_amount=float(order.total_amount),
        order_status=order.order_status)

    if order.order_type == "b2b":
        resp.po_number = order.po_number
        resp.gst_amount = float(order.gst_amount or 0)
        resp.payment_method = order.payment_method
        resp.payment_status = order.payment_status
        resp.due_date = order.due_date
        resp.delivery_locations = len(info.get("locations") or []) or 1
    else:
        address = info.get("address") or {}
        resp.delivery_address = address.get("address_line1") if isinstance(address, dict) else None
    return resp


def build_order_detail(order: Order) -> OrderDetailResponse:
    return OrderDetailResponse(
        order_id=order.id,
        order_number=order.order_number,
        order_type=order.order_type,
        order_status=order.order_status,
        order_date=order.order_date,
        po_number=order.po_number,
        delivery_info=order.delivery_info,
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        subtotal=float(order.subtotal),
        gst_amount=float(order.gst_amount or 0),
        delivery_charges=float(order.delivery_charges or 0),
        total_amount=float(order.total_amount),
        credit_used=float(order.credit_used or 0),
        due_date=order.due_date,
        special_instructions=order.special_instructions,
        cancellation_reason=order.cancellation_reason,
        business_name=order.business.business_name if order.business else None,
        items=[
            OrderItemResponse(
                id=item.id,
                product_id=item.product_id,
                product_name=item.product_name,
                sku=item.sku,
                quantity=item.quantity,
                unit_price=float(item.unit_price),
                applied_tier=item.applied_tier,
                item_total=float(item.item_total),
                delivery_location_id=item.delivery_location_id)
            for item in order.items
        ])
