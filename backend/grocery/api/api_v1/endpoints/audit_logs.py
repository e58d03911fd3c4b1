"""Audit log API (admin)"""

from typing import Any, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func, and_
from sqlalchemy.ext.asyncio import AsyncSession

from grocery.core.deps import get_db, require_admin
from grocery.models.audit_log import AuditLog
from grocery.models.user import User
from grocery.schemas.admin import AuditLogResponse, AuditLogListResponse

router = APIRouter()


def _parse_day(value: str) -> datetime:
    try:
        return datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date {value}, expected YYYY-MM-DD")


@router.get("/", response_model=AuditLogListResponse)
async def list_logs(
    *,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    action: Optional[str] = Query(None),
    resource_type: Optional[str] = Query(None),
    user_id: Optional[int] = Query(None),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None)) -> Any:
    """List audit entries, newest first"""
    conditions = []
    if action:
        conditions.append(AuditLog.action == action)
    if resource_type:
        conditions.append(AuditLog.resource_type == resource_type)
    if user_id:
        conditions.append(AuditLog.user_id == user_id)
    if start_date:
        conditions.append(AuditLog.created_at >= _parse_day(start_date))
    if end_date:
        conditions.append(AuditLog.created_at <= _parse_day(end_date))

    query = select(AuditLog)
    count_query = select(func.count(AuditLog.id))
    if conditions:
        query = query.where(and_(*conditions))
        count_query = count_query.where(and_(*conditions))

    total = (await db.execute(count_query)).scalar() or 0
    query = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    query = query.offset((page - 1) * limit).limit(limit)
    logs = (await db.execute(query)).scalars().all()

    return AuditLogListResponse(
        data=[AuditLogResponse.model_validate(log) for log in logs],
        total=total,
        page=page,
        limit=limit
    )


async def create_audit_log(
    db: AsyncSession,
    user_id: int,
    action: str,
    resource_type: str,
    resource_id: Optional[int] = None,
    resource_name: Optional[str] = None,
    description: Optional[str] = None,
    old_value: Optional[dict] = None,
    new_value: Optional[dict] = None) -> AuditLog:
    """Stage an audit entry; committed with the caller's transaction"""
    log = AuditLog(
        user_id=user_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        resource_name=resource_name,
        description=description,
        old_value=old_value,
        new_value=new_value
    )
    db.add(log)
    return log
