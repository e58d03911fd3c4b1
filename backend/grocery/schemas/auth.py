"""Registration and current-user schemas"""
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field
from datetime import datetime


class B2CRegister(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=255)
    mobile: str = Field(..., min_length=10, max_length=20)
    account_type: str = Field(default="b2c", pattern="^b2c$")


class ContactPerson(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    mobile: str = Field(..., min_length=10, max_length=20)
    designation: Optional[str] = None


class B2BRegister(BaseModel):
    business_name: str = Field(..., min_length=1, max_length=200)
    business_type: str = Field(..., max_length=50)
    gst_number: str = Field(..., min_length=15, max_length=15, description="15-char GSTIN")
    pan_number: str = Field(..., min_length=10, max_length=10)
    registration_number: Optional[str] = None
    contact_person: ContactPerson
    business_address: Dict[str, Any]
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$", max_length=255)
    documents: Dict[str, str] = Field(default_factory=dict, description="Document URLs (uploaded elsewhere)")


class RegisterResponse(BaseModel):
    user_id: int
    account_type: str
    message: str
    business_id: Optional[int] = None
    account_status: Optional[str] = None


class CurrentUserResponse(BaseModel):
    user_id: int
    name: str
    email: str
    account_type: str
    created_at: datetime
    business_id: Optional[int] = None
    business_name: Optional[str] = None
    business_status: Optional[str] = None
    credit_available: Optional[float] = None
