"""
Order model

Status flow:
    placed -> confirmed -> processing -> dispatched -> delivered
    placed / confirmed / processing -> cancelled
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, DECIMAL
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import relationship

from grocery.db.base import Base

ORDER_STATUSES = ["placed", "confirmed", "processing", "dispatched", "delivered", "cancelled"]

# allowed next states
STATUS_TRANSITIONS = {
    "placed": {"confirmed", "cancelled"},
    "confirmed": {"processing", "cancelled"},
    "processing": {"dispatched", "cancelled"},
    "dispatched": {"delivered"},
    "delivered": set(),
    "cancelled": set(),
}


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)

    # ORD20241202001 (b2c) / B2B20241202001 (b2b)
    order_number = Column(String(30), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    business_id = Column(Integer, ForeignKey("b2b_businesses.id"), index=True)
    # b2c / b2b
    order_type = Column(String(10), nullable=False, index=True)
    po_number = Column(String(50), comment="Buyer purchase order number")
    order_date = Column(DateTime, default=datetime.utcnow)

    # b2c: {address, slot, scheduled_date, instructions}
    # b2b: {locations, billing_address, scheduled_date, scheduled_time_slot}
    delivery_info = Column(JSON)

    # cod / online / credit
    payment_method = Column(String(20), nullable=False, default="cod")
    # pending / paid
    payment_status = Column(String(20), nullable=False, default="pending", index=True)
    order_status = Column(String(20), nullable=False, default="placed", index=True)

    subtotal = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"))
    gst_amount = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"))
    delivery_charges = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"))
    total_amount = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"))
    credit_used = Column(DECIMAL(12, 2), nullable=False, default=Decimal("0.00"))
    due_date = Column(DateTime, comment="Credit payment due date")

    special_instructions = Column(Text)
    cancellation_reason = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="orders")
    business = relationship("B2BBusiness")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id")

    def __repr__(self):
        return f"<Order {self.order_number} ({self.order_type}: {self.order_status})>"

    @property
    def is_credit(self) -> bool:
        return self.payment_method == "credit"

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    def can_transition_to(self, status: str) -> bool:
        return status in STATUS_TRANSITIONS.get(self.order_status, set())


class OrderItem(Base):
    """Order line with product snapshot"""
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)

    product_name = Column(String(200), nullable=False, comment="Name at order time")
    sku = Column(String(50), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(DECIMAL(12, 2), nullable=False)
    applied_tier = Column(String(50))
    item_total = Column(DECIMAL(12, 2), nullable=False)
    delivery_location_id = Column(Integer, ForeignKey("b2b_delivery_addresses.id"))

    created_at = Column(DateTime, default=datetime.utcnow)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")

    def __repr__(self):
        return f"<OrderItem {self.id}: {self.sku} x{self.quantity}>"
