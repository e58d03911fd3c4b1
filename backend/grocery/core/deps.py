"""Dependencies: database session and the acting user

Token issuance is handled outside this service; the gateway forwards the
authenticated user id in the X-User-Id header.
"""
from typing import AsyncGenerator, Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from grocery.db.session import SessionLocal
from grocery.models.user import User


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Database session dependency
    """
    async with SessionLocal() as session:
        yield session


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    x_user_id: Optional[int] = Header(None)) -> User:
    """Load the acting user and check the account may act"""
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Authentication required")

    result = await db.execute(
        select(User).options(selectinload(User.business)).where(User.id == x_user_id)
    )
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")

    if user.is_b2b:
        if not user.business:
            raise HTTPException(status_code=401, detail="Business account not found")
        if not user.business.is_approved:
            raise HTTPException(
                status_code=403,
                detail=f"Business account is {user.business.account_status}. Cannot access."
            )

    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


async def require_b2b(user: User = Depends(get_current_user)) -> User:
    if not user.is_b2b:
        raise HTTPException(status_code=403, detail="B2B account required")
    return user


async def require_b2c(user: User = Depends(get_current_user)) -> User:
    if not user.is_b2c:
        raise HTTPException(status_code=403, detail="B2C account required")
    return user
