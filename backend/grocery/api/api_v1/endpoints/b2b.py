"""B2B account API
- business profile and credit dashboard
- delivery addresses
"""

from datetime import datetime
from typing import Any, List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from grocery.core.deps import get_db, require_b2b
from grocery.models.business import B2BDeliveryAddress
from grocery.models.order import Order
from grocery.models.user import User
from grocery.schemas.business import (
    BusinessProfile, CreditInfo, PaymentSummary, InvoiceSummary, CreditDashboard,
    AddressCreate, AddressUpdate, AddressResponse
)

router = APIRouter()

RECENT_INVOICES = 10


@router.get("/profile", response_model=BusinessProfile)
async def get_profile(
    *,
    user: User = Depends(require_b2b)) -> Any:
    business = user.business
    return BusinessProfile(
        business_id=business.id,
        business_name=business.business_name,
        business_type=business.business_type,
        gst_number=business.gst_number,
        pan_number=business.pan_number,
        contact_person=business.contact_person,
        business_address=business.business_address,
        account_status=business.account_status,
        credit_limit=float(business.credit_limit or 0),
        credit_period_days=business.credit_period_days or 0,
        available_credit=float(business.available_credit or 0),
        used_credit=float(business.used_credit or 0),
        user_name=user.full_name,
        user_email=user.email)


@router.get("/credit", response_model=CreditDashboard)
async def get_credit_dashboard(
    *,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_b2b)) -> Any:
    """Credit line usage, outstanding amounts and recent invoices"""
    business = user.business
    now = datetime.utcnow()
    pending = [
        Order.business_id == business.id,
        Order.payment_method == "credit",
        Order.payment_status == "pending",
        Order.order_status != "cancelled",
    ]

    pending_amount, pending_count = (await db.execute(
        select(func.coalesce(func.sum(Order.total_amount), 0), func.count(Order.id)).where(*pending)
    )).one()
    overdue_amount = (await db.execute(
        select(func.coalesce(func.sum(Order.total_amount), 0))
        .where(*pending, Order.due_date < now)
    )).scalar()

    result = await db.execute(
        select(Order)
        .where(Order.business_id == business.id, Order.payment_method == "credit")
        .order_by(Order.order_date.desc(), Order.id.desc())
        .limit(RECENT_INVOICES)
    )
    invoices = [
        InvoiceSummary(
            invoice_number=f"INV-{order.order_number}",
            order_number=order.order_number,
            invoice_date=order.order_date,
            due_date=order.due_date,
            amount=float(order.total_amount),
            status=order.payment_status)
        for order in result.scalars().all()
    ]

    return CreditDashboard(
        business_id=business.id,
        business_name=business.business_name,
        credit_info=CreditInfo(
            total_limit=float(business.credit_limit or 0),
            available_credit=float(business.available_credit or 0),
            used_credit=float(business.used_credit or 0),
            credit_period_days=business.credit_period_days or 0),
        payment_summary=PaymentSummary(
            pending_amount=float(pending_amount or 0),
            overdue_amount=float(overdue_amount or 0),
            pending_invoices=pending_count or 0),
        recent_invoices=invoices)


async def _unset_default(db: AsyncSession, business_id: int, keep_id: int = None):
    stmt = (
        update(B2BDeliveryAddress)
        .where(B2BDeliveryAddress.business_id == business_id, B2BDeliveryAddress.is_default == True)  # noqa: E712
    )
    if keep_id is not None:
        stmt = stmt.where(B2BDeliveryAddress.id != keep_id)
    await db.execute(stmt.values(is_default=False).execution_options(synchronize_session=False))


async def _get_own_address(db: AsyncSession, user: User, address_id: int) -> B2BDeliveryAddress:
    address = await db.get(B2BDeliveryAddress, address_id)
    if not address or address.business_id != user.business.id or not address.is_active:
        raise HTTPException(status_code=404, detail="Address not found")
    return address


@router.get("/addresses", response_model=List[AddressResponse])
async def list_addresses(
    *,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_b2b)) -> Any:
    """Active addresses, default first"""
    result = await db.execute(
        select(B2BDeliveryAddress)
        .where(
            B2BDeliveryAddress.business_id == user.business.id,
            B2BDeliveryAddress.is_active == True  # noqa: E712
        )
        .order_by(B2BDeliveryAddress.is_default.desc(), B2BDeliveryAddress.created_at.desc(),
                  B2BDeliveryAddress.id.desc())
    )
    return [AddressResponse.model_validate(a) for a in result.scalars().all()]


@router.post("/addresses", response_model=AddressResponse, status_code=201)
async def create_address(
    *,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_b2b),
    address_in: AddressCreate) -> Any:
    business_id = user.business.id
    if address_in.is_default:
        await _unset_default(db, business_id)

    address = B2BDeliveryAddress(**address_in.model_dump(), business_id=business_id, is_active=True)
    db.add(address)
    await db.commit()
    await db.refresh(address)
    return AddressResponse.model_validate(address)


@router.put("/addresses/{address_id}", response_model=AddressResponse)
async def update_address(
    *,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_b2b),
    address_id: int,
    address_in: AddressUpdate) -> Any:
    address = await _get_own_address(db, user, address_id)
    update_data = address_in.model_dump(exclude_unset=True)
    if update_data.get("is_default"):
        await _unset_default(db, address.business_id, keep_id=address.id)

    for field, value in update_data.items():
        setattr(address, field, value)
    await db.commit()
    await db.refresh(address)
    return AddressResponse.model_validate(address)


@router.delete("/addresses/{address_id}")
async def delete_address(
    *,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_b2b),
    address_id: int) -> Any:
    """Soft delete"""
    address = await _get_own_address(db, user, address_id)
    address.is_active = False
    address.is_default = False
    await db.commit()
    return {"message": "Address deleted successfully"}
