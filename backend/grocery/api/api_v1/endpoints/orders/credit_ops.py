"""
B2B credit operations
- credit orders debit the business credit line at placement
- cancelling a credit order gives the amount back
"""

from datetime import datetime, timedelta
from decimal import Decimal
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from grocery.core.logging_config import get_logger
from grocery.models.business import B2BBusiness
from grocery.models.order import Order
from ..audit_logs import create_audit_log

logger = get_logger(__name__)


def check_credit_available(business: B2BBusiness, amount: Decimal) -> None:
    if Decimal(str(business.available_credit or 0)) < amount:
        logger.warning(f"Credit short for business {business.id}: {business.available_credit} < {amount}")
        raise HTTPException(status_code=400, detail="Insufficient credit limit")


def credit_due_date(business: B2BBusiness, scheduled_date: datetime) -> datetime:
    """Due credit_period_days after the scheduled delivery"""
    return scheduled_date + timedelta(days=business.credit_period_days or 0)


async def debit_order_credit(
    db: AsyncSession,
    business: B2BBusiness,
    order: Order,
    operator_id: int) -> None:
    amount = Decimal(str(order.total_amount))
    before = float(business.available_credit or 0)
    business.debit_credit(amount)
    order.credit_used = amount
    await create_audit_log(
        db, operator_id, "credit", "business",
        resource_id=business.id, resource_name=business.business_name,
        description=f"Credit debited for {order.order_number}",
        old_value={"available_credit": before},
        new_value={"available_credit": float(business.available_credit)})
    logger.info(f"Credit -{amount} for business {business.id} ({order.order_number})")


async def restore_order_credit(
    db: AsyncSession,
    business: B2BBusiness,
    order: Order,
    operator_id: int) -> None:
    amount = Decimal(str(order.credit_used or order.total_amount))
    before = float(business.available_credit or 0)
    business.restore_credit(amount)
    await create_audit_log(
        db, operator_id, "credit", "business",
        resource_id=business.id, resource_name=business.business_name,
        description=f"Credit restored for cancelled {order.order_number}",
        old_value={"available_credit": before},
        new_value={"available_credit": float(business.available_credit)})
    logger.info(f"Credit +{amount} for business {business.id} ({order.order_number})")
