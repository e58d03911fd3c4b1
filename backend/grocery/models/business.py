"""
B2B business accounts and their delivery addresses

A wholesale user owns exactly one business record. The business starts as
pending and can only place orders once an admin approves it and assigns a
credit line.
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, DECIMAL
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import relationship

from grocery.db.base import Base


class B2BBusiness(Base):
    """Wholesale business account with its credit line"""
    __tablename__ = "b2b_businesses"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    business_name = Column(String(200), nullable=False, comment="Registered business name")
    business_type = Column(String(50), comment="restaurant / retailer / caterer ...")
    gst_number = Column(String(15), unique=True, nullable=False, index=True)
    pan_number = Column(String(10))
    registration_number = Column(String(50))
    contact_person = Column(JSON, comment="{name, mobile, designation}")
    business_address = Column(JSON)
    documents = Column(JSON, default=dict, comment="Uploaded document URLs")

    # pending / approved / rejected / suspended
    account_status = Column(String(20), nullable=False, default="pending", index=True)

    # Credit line (set at approval)
    credit_limit = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"))
    credit_period_days = Column(Integer, nullable=False, default=0)
    available_credit = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"))
    used_credit = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"))

    approval_date = Column(DateTime)
    approved_by = Column(Integer, ForeignKey("users.id"))
    rejection_reason = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="business", foreign_keys=[user_id])
    approver = relationship("User", foreign_keys=[approved_by])
    addresses = relationship("B2BDeliveryAddress", back_populates="business", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<B2BBusiness {self.gst_number}: {self.business_name} ({self.account_status})>"

    @property
    def is_approved(self) -> bool:
        return self.account_status == "approved"

    def debit_credit(self, amount: Decimal):
        """Move amount from available to used credit"""
        self.available_credit = (self.available_credit or Decimal("0")) - amount
        self.used_credit = (self.used_credit or Decimal("0")) + amount

    def restore_credit(self, amount: Decimal):
        """Give amount back to available credit"""
        self.available_credit = (self.available_credit or Decimal("0")) + amount
        self.used_credit = (self.used_credit or Decimal("0")) - amount


class B2BDeliveryAddress(Base):
    """Delivery location of a business (soft deleted via is_active)"""
    __tablename__ = "b2b_delivery_addresses"

    id = Column(Integer, primary_key=True, index=True)
    business_id = Column(Integer, ForeignKey("b2b_businesses.id"), nullable=False, index=True)

    label = Column(String(50), comment="e.g. Main kitchen, Outlet 2")
    address_line1 = Column(String(200), nullable=False)
    address_line2 = Column(String(200))
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=False)
    pincode = Column(String(10), nullable=False)
    contact_person = Column(String(100))
    contact_mobile = Column(String(20))

    is_default = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    business = relationship("B2BBusiness", back_populates="addresses")

    def __repr__(self):
        return f"<B2BDeliveryAddress {self.id}: {self.label} ({self.city})>"
