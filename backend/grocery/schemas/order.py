"""Order schemas"""
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field
from datetime import datetime


# ===== Placement =====
class B2COrderPlace(BaseModel):
    delivery_address: Dict[str, Any]
    delivery_slot: Optional[str] = Field(None, description="15min / 30min / 1hr / scheduled")
    scheduled_date: Optional[datetime] = None
    delivery_instructions: Optional[str] = None
    payment_method: str = Field(default="cod", pattern="^(cod|online)$")


class DeliveryLocation(BaseModel):
    location_id: Optional[int] = Field(None, description="Saved delivery address ID")
    label: Optional[str] = None
    address_line1: Optional[str] = None


class B2BOrderPlace(BaseModel):
    delivery_locations: List[DeliveryLocation] = Field(default_factory=list)
    billing_address: Optional[Dict[str, Any]] = None
    scheduled_date: datetime
    scheduled_time_slot: Optional[str] = None
    po_number: Optional[str] = Field(None, max_length=50)
    payment_method: str = Field(default="cod", pattern="^(cod|online|credit)$")
    special_instructions: Optional[str] = None


class ScheduledDelivery(BaseModel):
    location: Optional[str] = None
    delivery_date: datetime
    time_slot: Optional[str] = None


class OrderPlacedResponse(BaseModel):
    order_id: int
    order_number: str
    order_type: str
    total_amount: float
    payment_method: str
    estimated_delivery: Optional[datetime] = None
    credit_due_date: Optional[datetime] = None
    scheduled_deliveries: List[ScheduledDelivery] = Field(default_factory=list)


# ===== Reading =====
class OrderSummary(BaseModel):
    """Row of the customer's order history"""
    order_id: int
    order_number: str
    order_date: datetime
    total_items: int
    total_amount: float
    order_status: str
    # b2c
    delivery_address: Optional[str] = None
    # b2b
    po_number: Optional[str] = None
    gst_amount: Optional[float] = None
    payment_method: Optional[str] = None
    payment_status: Optional[str] = None
    due_date: Optional[datetime] = None
    delivery_locations: Optional[int] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: Optional[int] = None


class OrderListResponse(BaseModel):
    orders: List[OrderSummary]
    pagination: Pagination


class OrderItemResponse(BaseModel):
    id: int
    product_id: int
    product_name: str
    sku: str
    quantity: int
    unit_price: float
    applied_tier: Optional[str] = None
    item_total: float
    delivery_location_id: Optional[int] = None


class OrderDetailResponse(BaseModel):
    order_id: int
    order_number: str
    order_type: str
    order_status: str
    order_date: datetime
    po_number: Optional[str] = None
    delivery_info: Optional[Dict[str, Any]] = None
    payment_method: str
    payment_status: str
    subtotal: float
    gst_amount: float
    delivery_charges: float
    total_amount: float
    credit_used: float
    due_date: Optional[datetime] = None
    special_instructions: Optional[str] = None
    cancellation_reason: Optional[str] = None
    business_name: Optional[str] = None
    items: List[OrderItemResponse] = Field(default_factory=list)


class OrderCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class UnavailableItem(BaseModel):
    product: str
    reason: str


class PriceChange(BaseModel):
    product: str
    old_price: float
    new_price: float


class ReorderResponse(BaseModel):
    message: str
    items_added: int
    items_unavailable: int
    unavailable_items: List[UnavailableItem] = Field(default_factory=list)
    price_changes: List[PriceChange] = Field(default_factory=list)
