"""B2B profile, credit and delivery address schemas"""
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from datetime import datetime


class BusinessProfile(BaseModel):
    business_id: int
    business_name: str
    business_type: Optional[str] = None
    gst_number: str
    pan_number: Optional[str] = None
    contact_person: Optional[Dict[str, Any]] = None
    business_address: Optional[Dict[str, Any]] = None
    account_status: str
    credit_limit: float
    credit_period_days: int
    available_credit: float
    used_credit: float
    user_name: str = ""
    user_email: str = ""


class CreditInfo(BaseModel):
    total_limit: float
    available_credit: float
    used_credit: float
    credit_period_days: int


class PaymentSummary(BaseModel):
    pending_amount: float
    overdue_amount: float
    pending_invoices: int


class InvoiceSummary(BaseModel):
    invoice_number: str
    order_number: str
    invoice_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    amount: float
    status: str


class CreditDashboard(BaseModel):
    business_id: int
    business_name: str
    credit_info: CreditInfo
    payment_summary: PaymentSummary
    recent_invoices: List[InvoiceSummary]


# ===== Delivery addresses =====
class AddressBase(BaseModel):
    label: Optional[str] = Field(None, max_length=50)
    address_line1: str = Field(..., min_length=1, max_length=200)
    address_line2: Optional[str] = Field(None, max_length=200)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    pincode: str = Field(..., min_length=6, max_length=10)
    contact_person: Optional[str] = Field(None, max_length=100)
    contact_mobile: Optional[str] = Field(None, max_length=20)
    is_default: bool = False


class AddressCreate(AddressBase):
    pass


class AddressUpdate(BaseModel):
    label: Optional[str] = Field(None, max_length=50)
    address_line1: Optional[str] = Field(None, min_length=1, max_length=200)
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = Field(None, min_length=6, max_length=10)
    contact_person: Optional[str] = None
    contact_mobile: Optional[str] = None
    is_default: Optional[bool] = None


class AddressResponse(AddressBase):
    id: int
    business_id: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
