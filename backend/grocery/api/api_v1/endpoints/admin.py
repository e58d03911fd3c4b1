"""Admin back-office API
- B2B registration review (approve with a credit line / reject)
- order list and status changes
"""

import math
from datetime import datetime
from decimal import Decimal
from typing import Any, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from grocery.core.config import settings
from grocery.core.deps import get_db, require_admin
from grocery.core.logging_config import get_logger
from grocery.models.business import B2BBusiness
from grocery.models.order import Order, ORDER_STATUSES
from grocery.models.user import User
from grocery.schemas.admin import (
    PendingRegistration, RegistrationDecision, RegistrationDecisionResponse,
    AdminOrderRow, AdminOrderList, OrderStatusUpdate, OrderStatusResponse
)
from grocery.schemas.order import Pagination
from .audit_logs import create_audit_log
from .orders import cancel_order_effects
from .orders.core import load_order

router = APIRouter()
logger = get_logger(__name__)


@router.get("/registrations/pending", response_model=List[PendingRegistration])
async def list_pending_registrations(
    *,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin)) -> Any:
    result = await db.execute(
        select(B2BBusiness)
        .options(selectinload(B2BBusiness.user))
        .where(B2BBusiness.account_status == "pending")
        .order_by(B2BBusiness.created_at.asc(), B2BBusiness.id.asc())
    )
    return [
        PendingRegistration(
            business_id=b.id,
            business_name=b.business_name,
            business_type=b.business_type,
            gst_number=b.gst_number,
            pan_number=b.pan_number,
            contact_person=b.contact_person,
            business_address=b.business_address,
            documents=b.documents,
            registration_date=b.created_at,
            user_id=b.user_id,
            user_name=b.user.full_name,
            user_email=b.user.email)
        for b in result.scalars().all()
    ]


@router.post("/registrations/{business_id}", response_model=RegistrationDecisionResponse)
async def decide_registration(
    *,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
    business_id: int,
    decision: RegistrationDecision) -> Any:
    """Approve (credit limit + period required) or reject (reason required)"""
    business = await db.get(B2BBusiness, business_id)
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")
    if business.account_status != "pending":
        raise HTTPException(status_code=400, detail=f"Business is already {business.account_status}")

    if decision.action == "approve":
        if decision.credit_limit is None or decision.credit_period_days is None:
            raise HTTPException(status_code=400, detail="Credit limit and credit period are required")
        limit = Decimal(str(decision.credit_limit))
        if limit < settings.CREDIT_LIMIT_MIN or limit > settings.CREDIT_LIMIT_MAX:
            raise HTTPException(
                status_code=400,
                detail=f"Credit limit must be between ₹{settings.CREDIT_LIMIT_MIN} and ₹{settings.CREDIT_LIMIT_MAX}"
            )
        if decision.credit_period_days not in settings.CREDIT_PERIOD_OPTIONS:
            raise HTTPException(
                status_code=400,
                detail=f"Credit period must be one of {settings.CREDIT_PERIOD_OPTIONS} days"
            )

        business.account_status = "approved"
        business.credit_limit = limit
        business.credit_period_days = decision.credit_period_days
        business.available_credit = limit
        business.used_credit = Decimal("0")
        business.approval_date = datetime.utcnow()
        business.approved_by = admin.id
        await create_audit_log(
            db, admin.id, "approve", "business",
            resource_id=business.id, resource_name=business.business_name,
            new_value={"credit_limit": float(limit), "credit_period_days": decision.credit_period_days})
        await db.commit()

        logger.info(f"✅ Business {business.id} approved: limit ₹{limit}, {decision.credit_period_days} days")
        return RegistrationDecisionResponse(
            message="Business approved successfully",
            business_id=business.id,
            business_name=business.business_name,
            account_status=business.account_status,
            credit_limit=float(limit),
            credit_period_days=business.credit_period_days)

    if decision.action == "reject":
        if not decision.rejection_reason:
            raise HTTPException(status_code=400, detail="Rejection reason is required")
        business.account_status = "rejected"
        business.rejection_reason = decision.rejection_reason
        await create_audit_log(
            db, admin.id, "reject", "business",
            resource_id=business.id, resource_name=business.business_name,
            description=decision.rejection_reason)
        await db.commit()

        logger.info(f"🚫 Business {business.id} rejected")
        return RegistrationDecisionResponse(
            message="Business rejected",
            business_id=business.id,
            business_name=business.business_name,
            account_status=business.account_status,
            rejection_reason=business.rejection_reason)

    raise HTTPException(status_code=400, detail="Invalid action")


@router.get("/orders", response_model=AdminOrderList)
async def list_orders(
    *,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
    order_type: Optional[str] = Query(None, pattern="^(b2c|b2b)$"),
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100)) -> Any:
    conditions = []
    if order_type:
        conditions.append(Order.order_type == order_type)
    if status:
        conditions.append(Order.order_status == status)

    total = (await db.execute(select(func.count(Order.id)).where(*conditions))).scalar() or 0
    result = await db.execute(
        select(Order)
        .options(selectinload(Order.items), selectinload(Order.user), selectinload(Order.business))
        .where(*conditions)
        .order_by(Order.order_date.desc(), Order.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )

    rows = [
        AdminOrderRow(
            order_id=o.id,
            order_number=o.order_number,
            order_type=o.order_type,
            user_id=o.user_id,
            user_name=o.user.full_name if o.user else "",
            business_name=o.business.business_name if o.business else None,
            order_date=o.order_date,
            order_status=o.order_status,
            total_amount=float(o.total_amount),
            payment_method=o.payment_method,
            payment_status=o.payment_status,
            item_count=len(o.items))
        for o in result.scalars().all()
    ]
    return AdminOrderList(
        orders=rows,
        pagination=Pagination(page=page, limit=limit, total=total, pages=math.ceil(total / limit)))


@router.put("/orders/{order_id}/status", response_model=OrderStatusResponse)
async def update_order_status(
    *,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
    order_id: int,
    status_in: OrderStatusUpdate) -> Any:
    """Move an order along its lifecycle"""
    if status_in.order_status not in ORDER_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid order status")

    order = await load_order(db, order_id)
    old_status = order.order_status
    if not order.can_transition_to(status_in.order_status):
        logger.warning(f"Rejected status change {old_status} -> {status_in.order_status} on {order.order_number}")
        raise HTTPException(
            status_code=400,
            detail=f"Cannot change order status from {old_status} to {status_in.order_status}"
        )

    if status_in.order_status == "cancelled":
        await cancel_order_effects(db, order, admin.id, status_in.reason)
    else:
        order.order_status = status_in.order_status

    await create_audit_log(
        db, admin.id, "status_change", "order",
        resource_id=order.id, resource_name=order.order_number,
        description=status_in.reason,
        old_value={"order_status": old_status},
        new_value={"order_status": order.order_status})
    await db.commit()

    logger.info(f"🔄 Order {order.order_number}: {old_status} -> {order.order_status}")
    return OrderStatusResponse(
        message="Order status updated",
        order_id=order.id,
        order_number=order.order_number,
        order_status=order.order_status)
