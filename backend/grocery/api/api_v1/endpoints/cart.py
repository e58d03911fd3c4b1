"""Shopping cart API

- B2C lines are priced at the retail selling price
- B2B lines are priced through the bulk tier table at the line's quantity,
  and re-priced whenever the quantity changes
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from grocery.core.config import settings
from grocery.core.deps import get_db, get_current_user, require_b2b, require_b2c
from grocery.models.cart import Cart, CartItem
from grocery.models.product import Product
from grocery.models.user import User
from grocery.schemas.cart import (
    CartAdd, CartItemUpdate, CartLineResponse, CartItemResponse,
    CartSummary, CartCreditInfo, CartResponse, NextTierResponse
)
from grocery.services.pricing import (
    NextTierInfo, calculate_b2b_price, get_next_tier_info, charges_for, to_money
)

router = APIRouter()


def cart_ttl_minutes(account_type: str) -> int:
    if account_type == "b2b":
        return settings.B2B_CART_TTL_MINUTES
    return settings.B2C_CART_TTL_MINUTES


def empty_expired_cart(cart: Cart, now: datetime = None) -> bool:
    """Drop the lines of an expired cart and open a new window"""
    if not cart.is_expired(now):
        return False
    cart.items.clear()
    cart.renew(cart_ttl_minutes(cart.account_type), now)
    return True


async def load_cart(db: AsyncSession, user_id: int) -> Optional[Cart]:
    result = await db.execute(
        select(Cart)
        .options(selectinload(Cart.items).selectinload(CartItem.product))
        .where(Cart.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_or_create_cart(db: AsyncSession, user: User) -> Cart:
    """The user's live cart, created on first use"""
    cart = await load_cart(db, user.id)
    if cart is None:
        cart = Cart(
            user_id=user.id,
            account_type=user.account_type,
            business_id=user.business.id if user.is_b2b and user.business else None,
            items=[])
        cart.renew(cart_ttl_minutes(user.account_type))
        db.add(cart)
        await db.flush()
    else:
        empty_expired_cart(cart)
    return cart


def find_line(cart: Cart, product_id: int) -> Optional[CartItem]:
    for item in cart.items:
        if item.product_id == product_id:
            return item
    return None


def apply_b2b_pricing(item: CartItem, product: Product) -> Optional[NextTierInfo]:
    """Re-price a B2B line at its current quantity"""
    tiers = product.b2b_bulk_tiers or []
    price = calculate_b2b_price(product.b2b_base_price, item.quantity, tiers)
    item.unit_price = to_money(price.unit_price)
    item.applied_tier = price.applied_tier
    return get_next_tier_info(item.quantity, tiers, base_price=product.b2b_base_price)


async def _get_orderable_product(db: AsyncSession, product_id: int) -> Product:
    product = await db.get(Product, product_id)
    if not product or not product.is_available:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def _check_pool(product: Product, channel: str, quantity: int):
    if product.reserved_for(channel) < quantity:
        raise HTTPException(status_code=400, detail="Insufficient stock available")


def _check_b2b_quantity(product: Product, quantity: int):
    if quantity < product.b2b_min_order_qty:
        raise HTTPException(
            status_code=400,
            detail=f"Minimum order quantity is {product.b2b_min_order_qty} units"
        )
    if product.b2b_max_order_qty and quantity > product.b2b_max_order_qty:
        raise HTTPException(
            status_code=400,
            detail=f"Maximum order quantity is {product.b2b_max_order_qty} units"
        )


def _line_response(item: CartItem, next_tier: Optional[NextTierInfo] = None) -> CartLineResponse:
    return CartLineResponse(
        cart_item_id=item.id,
        product_id=item.product_id,
        quantity=item.quantity,
        unit_price=float(item.unit_price),
        applied_tier=item.applied_tier,
        item_total=float(item.item_total),
        next_tier_info=NextTierResponse(**next_tier.to_dict()) if next_tier else None)


@router.post("/add", response_model=CartLineResponse)
async def add_to_cart(
    *,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_b2c),
    item_in: CartAdd) -> Any:
    """Add retail units"""
    if item_in.quantity < 1 or item_in.quantity > settings.B2C_MAX_ADD_QUANTITY:
        raise HTTPException(
            status_code=400,
            detail=f"Quantity must be between 1 and {settings.B2C_MAX_ADD_QUANTITY} for B2C"
        )

    product = await _get_orderable_product(db, item_in.product_id)
    _check_pool(product, "b2c", item_in.quantity)

    cart = await get_or_create_cart(db, user)
    item = find_line(cart, product.id)
    if item:
        new_quantity = item.quantity + item_in.quantity
        if new_quantity > product.b2c_max_quantity:
            raise HTTPException(
                status_code=400,
                detail=f"Maximum quantity per product is {product.b2c_max_quantity}"
            )
        _check_pool(product, "b2c", new_quantity)
        item.quantity = new_quantity
    else:
        item = CartItem(product=product, quantity=item_in.quantity)
        cart.items.append(item)
    item.unit_price = product.b2c_selling_price

    await db.commit()
    return _line_response(item)


@router.post("/b2b/add", response_model=CartLineResponse)
async def add_to_cart_b2b(
    *,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_b2b),
    item_in: CartAdd) -> Any:
    """Add wholesale units; the line is priced by bulk tier"""
    product = await _get_orderable_product(db, item_in.product_id)

    if item_in.quantity < product.b2b_min_order_qty:
        raise HTTPException(
            status_code=400,
            detail=f"Minimum order quantity is {product.b2b_min_order_qty} units"
        )
    _check_pool(product, "b2b", item_in.quantity)

    cart = await get_or_create_cart(db, user)
    item = find_line(cart, product.id)
    if item:
        new_quantity = item.quantity + item_in.quantity
        _check_b2b_quantity(product, new_quantity)
        _check_pool(product, "b2b", new_quantity)
        item.quantity = new_quantity
    else:
        _check_b2b_quantity(product, item_in.quantity)
        item = CartItem(product=product, quantity=item_in.quantity)
        cart.items.append(item)

    next_tier = apply_b2b_pricing(item, product)
    await db.commit()
    return _line_response(item, next_tier)


@router.get("/", response_model=CartResponse)
async def get_cart(
    *,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)) -> Any:
    cart = await load_cart(db, user.id)
    if cart is not None and empty_expired_cart(cart):
        await db.commit()

    if cart is None or not cart.items:
        return CartResponse(
            cart_id=cart.id if cart else None,
            account_type=user.account_type,
            items=[],
            summary=CartSummary())

    items = []
    subtotal = Decimal("0")
    for item in cart.items:
        subtotal += item.item_total
        items.append(CartItemResponse(
            cart_item_id=item.id,
            product_id=item.product_id,
            product_name=item.product.name,
            quantity=item.quantity,
            unit_price=float(item.unit_price),
            applied_tier=item.applied_tier,
            item_total=float(item.item_total)))

    charges = charges_for(user.account_type, subtotal)
    response = CartResponse(
        cart_id=cart.id,
        account_type=cart.account_type,
        items=items,
        summary=CartSummary(
            total_items=sum(i.quantity for i in items),
            subtotal=float(charges["subtotal"]),
            delivery_charges=float(charges["delivery_charges"]),
            total_amount=float(charges["total_amount"])))

    if user.is_b2b and user.business:
        available = Decimal(str(user.business.available_credit or 0))
        response.summary.gst_18 = float(charges["gst_amount"])
        response.credit_info = CartCreditInfo(
            credit_available=float(available),
            credit_after_order=float(available - charges["total_amount"]))

    return response


async def _load_own_item(db: AsyncSession, user: User, cart_item_id: int) -> CartItem:
    result = await db.execute(
        select(CartItem)
        .options(selectinload(CartItem.cart), selectinload(CartItem.product))
        .where(CartItem.id == cart_item_id)
    )
    item = result.scalar_one_or_none()
    # lines of an expired cart count as gone
    if not item or item.cart.user_id != user.id or item.cart.is_expired():
        raise HTTPException(status_code=404, detail="Cart item not found")
    return item


@router.put("/items/{cart_item_id}", response_model=CartLineResponse)
async def update_cart_item(
    *,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    cart_item_id: int,
    item_in: CartItemUpdate) -> Any:
    """Set a line's quantity"""
    item = await _load_own_item(db, user, cart_item_id)
    product = item.product
    quantity = item_in.quantity
    next_tier = None

    if item.cart.account_type == "b2c":
        if quantity < 1 or quantity > product.b2c_max_quantity:
            raise HTTPException(
                status_code=400,
                detail=f"Quantity must be between 1 and {product.b2c_max_quantity}"
            )
        _check_pool(product, "b2c", quantity)
        item.quantity = quantity
        item.unit_price = product.b2c_selling_price
    else:
        _check_b2b_quantity(product, quantity)
        _check_pool(product, "b2b", quantity)
        item.quantity = quantity
        next_tier = apply_b2b_pricing(item, product)

    await db.commit()
    return _line_response(item, next_tier)


@router.delete("/items/{cart_item_id}")
async def remove_cart_item(
    *,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    cart_item_id: int) -> Any:
    item = await _load_own_item(db, user, cart_item_id)
    await db.delete(item)
    await db.commit()
    return {"message": "Item removed from cart"}


@router.delete("/clear")
async def clear_cart(
    *,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)) -> Any:
    cart = await load_cart(db, user.id)
    if cart:
        cart.items.clear()
        await db.commit()
    return {"message": "Cart cleared"}
