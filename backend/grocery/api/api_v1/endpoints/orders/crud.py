"""
Order placement and reading
- B2C place / B2B place
- own order list and detail
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, List
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from grocery.core.config import settings
from grocery.core.deps import get_db, get_current_user, require_b2b, require_b2c
from grocery.core.logging_config import get_logger
from grocery.models.business import B2BDeliveryAddress
from grocery.models.cart import Cart
from grocery.models.order import Order, OrderItem
from grocery.models.user import User
from grocery.schemas.order import (
    B2COrderPlace, B2BOrderPlace, DeliveryLocation, OrderPlacedResponse, ScheduledDelivery,
    OrderListResponse, OrderDetailResponse, Pagination
)
from grocery.services.pricing import charges_for
from ..cart import load_cart, empty_expired_cart
from .core import (
    generate_order_number, to_naive_utc, load_order,
    build_order_summary, build_order_detail
)
from .stock_ops import check_stock_available, deduct_stock
from .credit_ops import check_credit_available, credit_due_date, debit_order_credit

router = APIRouter()
logger = get_logger(__name__)

SLOT_MINUTES = {"15min": 15, "30min": 30, "1hr": 60}


async def _load_checkout_cart(db: AsyncSession, user: User) -> Cart:
    cart = await load_cart(db, user.id)
    if cart is not None:
        empty_expired_cart(cart)
    if cart is None or not cart.items:
        raise HTTPException(status_code=400, detail="Cart is empty")
    return cart


def _cart_subtotal(cart: Cart) -> Decimal:
    return sum((item.item_total for item in cart.items), Decimal("0"))


def _add_order_lines(order: Order, cart: Cart, location_id: int = None):
    for item in cart.items:
        order.items.append(OrderItem(
            product_id=item.product_id,
            product_name=item.product.name,
            sku=item.product.sku,
            quantity=item.quantity,
            unit_price=item.unit_price,
            applied_tier=item.applied_tier,
            item_total=item.item_total,
            delivery_location_id=location_id))


async def _resolve_locations(
    db: AsyncSession,
    business_id: int,
    locations: List[DeliveryLocation]) -> List[dict]:
    """Saved addresses are looked up; ad-hoc ones are stored as given"""
    resolved = []
    for loc in locations:
        if loc.location_id is None:
            resolved.append(loc.model_dump())
            continue
        address = await db.get(B2BDeliveryAddress, loc.location_id)
        if not address or address.business_id != business_id or not address.is_active:
            raise HTTPException(status_code=400, detail=f"Delivery location {loc.location_id} not found")
        resolved.append({
            "location_id": address.id,
            "label": loc.label or address.label,
            "address_line1": address.address_line1,
            "city": address.city,
            "pincode": address.pincode,
        })
    return resolved


@router.post("/b2c/place", response_model=OrderPlacedResponse, status_code=201)
async def place_b2c_order(
    *,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_b2c),
    order_in: B2COrderPlace) -> Any:
    cart = await _load_checkout_cart(db, user)

    subtotal = _cart_subtotal(cart)
    if subtotal < settings.B2C_MIN_ORDER_VALUE:
        raise HTTPException(
            status_code=400,
            detail=f"Minimum order value is ₹{settings.B2C_MIN_ORDER_VALUE}"
        )
    check_stock_available(cart.items, "b2c")

    charges = charges_for("b2c", subtotal)
    scheduled_date = to_naive_utc(order_in.scheduled_date)
    order = Order(
        order_number=await generate_order_number(db, "b2c"),
        user_id=user.id,
        order_type="b2c",
        delivery_info={
            "address": order_in.delivery_address,
            "slot": order_in.delivery_slot,
            "scheduled_date": scheduled_date.isoformat() if scheduled_date else None,
            "instructions": order_in.delivery_instructions,
        },
        payment_method=order_in.payment_method,
        payment_status="pending",
        order_status="placed",
        subtotal=charges["subtotal"],
        gst_amount=charges["gst_amount"],
        delivery_charges=charges["delivery_charges"],
        total_amount=charges["total_amount"],
        items=[])
    _add_order_lines(order, cart)
    db.add(order)

    for item in cart.items:
        deduct_stock(db, item.product, item.quantity, "b2c", order, user.id)
    cart.items.clear()

    await db.commit()
    logger.info(f"🛒 Order {order.order_number} placed by user {user.id}: ₹{order.total_amount}")

    now = datetime.utcnow()
    if order_in.delivery_slot == "scheduled" and scheduled_date:
        estimated = scheduled_date
    else:
        estimated = now + timedelta(minutes=SLOT_MINUTES.get(order_in.delivery_slot, 0))

    return OrderPlacedResponse(
        order_id=order.id,
        order_number=order.order_number,
        order_type="b2c",
        total_amount=float(order.total_amount),
        payment_method=order.payment_method,
        estimated_delivery=estimated)


@router.post("/b2b/place", response_model=OrderPlacedResponse, status_code=201)
async def place_b2b_order(
    *,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_b2b),
    order_in: B2BOrderPlace) -> Any:
    """Wholesale checkout; every check runs before stock or credit moves"""
    business = user.business
    cart = await _load_checkout_cart(db, user)

    subtotal = _cart_subtotal(cart)
    if subtotal < settings.B2B_MIN_ORDER_VALUE:
        raise HTTPException(
            status_code=400,
            detail=f"Minimum order value for B2B is ₹{settings.B2B_MIN_ORDER_VALUE}"
        )

    locations = await _resolve_locations(db, business.id, order_in.delivery_locations)
    if len(locations) > 1:
        per_location = subtotal / len(locations)
        if per_location < settings.B2B_MIN_LOCATION_VALUE:
            raise HTTPException(
                status_code=400,
                detail=f"Minimum order value per location is ₹{settings.B2B_MIN_LOCATION_VALUE}"
            )

    charges = charges_for("b2b", subtotal)
    if order_in.payment_method == "credit":
        check_credit_available(business, charges["total_amount"])

    scheduled_date = to_naive_utc(order_in.scheduled_date)
    earliest = datetime.utcnow() + timedelta(hours=settings.B2B_SCHEDULE_LEAD_HOURS)
    if scheduled_date < earliest:
        raise HTTPException(
            status_code=400,
            detail=f"B2B orders must be scheduled at least {settings.B2B_SCHEDULE_LEAD_HOURS} hours in advance"
        )

    check_stock_available(cart.items, "b2b")

    order = Order(
        order_number=await generate_order_number(db, "b2b"),
        user_id=user.id,
        business_id=business.id,
        order_type="b2b",
        po_number=order_in.po_number,
        delivery_info={
            "locations": locations,
            "billing_address": order_in.billing_address,
            "scheduled_date": scheduled_date.isoformat(),
            "scheduled_time_slot": order_in.scheduled_time_slot,
        },
        payment_method=order_in.payment_method,
        payment_status="pending",
        order_status="placed",
        subtotal=charges["subtotal"],
        gst_amount=charges["gst_amount"],
        delivery_charges=charges["delivery_charges"],
        total_amount=charges["total_amount"],
        special_instructions=order_in.special_instructions,
        items=[])
    if order.is_credit:
        order.due_date = credit_due_date(business, scheduled_date)

    single_location = locations[0].get("location_id") if len(locations) == 1 else None
    _add_order_lines(order, cart, single_location)
    db.add(order)

    for item in cart.items:
        deduct_stock(db, item.product, item.quantity, "b2b", order, user.id)
    if order.is_credit:
        await debit_order_credit(db, business, order, user.id)
    cart.items.clear()

    await db.commit()
    logger.info(
        f"📦 B2B order {order.order_number} placed by business {business.id}: "
        f"₹{order.total_amount} ({order.payment_method})"
    )

    deliveries = [
        ScheduledDelivery(
            location=loc.get("label") or loc.get("address_line1"),
            delivery_date=scheduled_date,
            time_slot=order_in.scheduled_time_slot)
        for loc in locations
    ] or [ScheduledDelivery(delivery_date=scheduled_date, time_slot=order_in.scheduled_time_slot)]

    return OrderPlacedResponse(
        order_id=order.id,
        order_number=order.order_number,
        order_type="b2b",
        total_amount=float(order.total_amount),
        payment_method=order.payment_method,
        credit_due_date=order.due_date,
        scheduled_deliveries=deliveries)


@router.get("/", response_model=OrderListResponse)
async def list_my_orders(
    *,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100)) -> Any:
    """The caller's orders, newest first"""
    conditions = [Order.user_id == user.id, Order.order_type == user.account_type]

    total = (await db.execute(
        select(func.count(Order.id)).where(*conditions)
    )).scalar() or 0

    result = await db.execute(
        select(Order)
        .options(selectinload(Order.items))
        .where(*conditions)
        .order_by(Order.order_date.desc(), Order.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    orders = result.scalars().all()

    return OrderListResponse(
        orders=[build_order_summary(o) for o in orders],
        pagination=Pagination(page=page, limit=limit, total=total))


@router.get("/{order_id}", response_model=OrderDetailResponse)
async def get_order(
    *,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    order_id: int) -> Any:
    order = await load_order(db, order_id)
    if order.user_id != user.id:
        raise HTTPException(status_code=403, detail="Access denied")
    return build_order_detail(order)
