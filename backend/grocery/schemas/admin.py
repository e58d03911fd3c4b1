"""Admin back-office schemas"""
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from datetime import datetime

from grocery.schemas.order import Pagination


class PendingRegistration(BaseModel):
    business_id: int
    business_name: str
    business_type: Optional[str] = None
    gst_number: str
    pan_number: Optional[str] = None
    contact_person: Optional[Dict[str, Any]] = None
    business_address: Optional[Dict[str, Any]] = None
    documents: Optional[Dict[str, Any]] = None
    registration_date: datetime
    user_id: int
    user_name: str
    user_email: str


class RegistrationDecision(BaseModel):
    action: str = Field(..., description="approve / reject")
    credit_limit: Optional[float] = None
    credit_period_days: Optional[int] = None
    rejection_reason: Optional[str] = None


class RegistrationDecisionResponse(BaseModel):
    message: str
    business_id: int
    business_name: str
    account_status: str
    credit_limit: Optional[float] = None
    credit_period_days: Optional[int] = None
    rejection_reason: Optional[str] = None


class AdminOrderRow(BaseModel):
    order_id: int
    order_number: str
    order_type: str
    user_id: int
    user_name: str
    business_name: Optional[str] = None
    order_date: datetime
    order_status: str
    total_amount: float
    payment_method: str
    payment_status: str
    item_count: int


class AdminOrderList(BaseModel):
    orders: List[AdminOrderRow]
    pagination: Pagination


class OrderStatusUpdate(BaseModel):
    order_status: str
    reason: Optional[str] = Field(None, max_length=500)


class OrderStatusResponse(BaseModel):
    message: str
    order_id: int
    order_number: str
    order_status: str


class AuditLogResponse(BaseModel):
    id: int
    user_id: int
    action: str
    resource_type: str
    resource_id: Optional[int] = None
    resource_name: Optional[str] = None
    description: Optional[str] = None
    old_value: Optional[Any] = None
    new_value: Optional[Any] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AuditLogListResponse(BaseModel):
    data: List[AuditLogResponse]
    total: int
    page: int
    limit: int
