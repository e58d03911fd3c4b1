"""Account registration and current user"""

from typing import Any
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from grocery.core.deps import get_db, get_current_user
from grocery.core.logging_config import get_logger
from grocery.models.user import User
from grocery.models.business import B2BBusiness
from grocery.schemas.auth import (
    B2CRegister, B2BRegister, RegisterResponse, CurrentUserResponse
)

router = APIRouter()
logger = get_logger(__name__)


@router.post("/register/b2c", response_model=RegisterResponse, status_code=201)
async def register_b2c(
    *,
    db: AsyncSession = Depends(get_db),
    user_in: B2CRegister) -> Any:
    """Retail sign-up; admins are provisioned out of band"""
    existing = await db.execute(
        select(User).where(or_(User.email == user_in.email, User.mobile == user_in.mobile))
    )
    if existing.scalars().first():
        raise HTTPException(status_code=400, detail="User with this email or mobile already exists")

    user = User(
        full_name=user_in.full_name,
        email=user_in.email,
        mobile=user_in.mobile,
        account_type=user_in.account_type)
    db.add(user)
    await db.commit()

    logger.info(f"Registered {user.account_type} user {user.id}")
    return RegisterResponse(
        user_id=user.id,
        account_type=user.account_type,
        message="B2C registration successful"
    )


@router.post("/register/b2b", response_model=RegisterResponse, status_code=201)
async def register_b2b(
    *,
    db: AsyncSession = Depends(get_db),
    business_in: B2BRegister) -> Any:
    """Wholesale sign-up; the business waits for admin approval"""
    existing = await db.execute(
        select(B2BBusiness).where(B2BBusiness.gst_number == business_in.gst_number)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Business with this GST number already exists")

    existing = await db.execute(
        select(User).where(or_(
            User.email == business_in.email,
            User.mobile == business_in.contact_person.mobile
        ))
    )
    if existing.scalars().first():
        raise HTTPException(status_code=400, detail="User with this email or mobile already exists")

    user = User(
        full_name=business_in.contact_person.name,
        email=business_in.email,
        mobile=business_in.contact_person.mobile,
        account_type="b2b")
    db.add(user)
    await db.flush()

    business = B2BBusiness(
        user_id=user.id,
        business_name=business_in.business_name,
        business_type=business_in.business_type,
        gst_number=business_in.gst_number,
        pan_number=business_in.pan_number,
        registration_number=business_in.registration_number,
        contact_person=business_in.contact_person.model_dump(),
        business_address=business_in.business_address,
        documents=business_in.documents,
        account_status="pending")
    db.add(business)
    await db.commit()

    logger.info(f"B2B registration {business.id} ({business.business_name}) awaiting approval")
    return RegisterResponse(
        user_id=user.id,
        account_type=user.account_type,
        message="B2B registration submitted. Pending admin approval.",
        business_id=business.id,
        account_status=business.account_status
    )


@router.get("/me", response_model=CurrentUserResponse)
async def read_current_user(user: User = Depends(get_current_user)) -> Any:
    resp = CurrentUserResponse(
        user_id=user.id,
        name=user.full_name,
        email=user.email,
        account_type=user.account_type,
        created_at=user.created_at
    )
    if user.is_b2b and user.business:
        resp.business_id = user.business.id
        resp.business_name = user.business.business_name
        resp.business_status = user.business.account_status
        resp.credit_available = float(user.business.available_credit or 0)
    return resp
