"""Cart schemas"""
from typing import Optional, List
from pydantic import BaseModel, Field


class CartAdd(BaseModel):
    product_id: int
    quantity: int = Field(..., description="Units to add")


class CartItemUpdate(BaseModel):
    quantity: int


class NextTierResponse(BaseModel):
    quantity_needed: int
    price_per_unit: float
    savings: float


class CartLineResponse(BaseModel):
    """Result of adding or updating a line"""
    cart_item_id: int
    product_id: int
    quantity: int
    unit_price: float
    applied_tier: Optional[str] = None
    item_total: float
    next_tier_info: Optional[NextTierResponse] = None


class CartItemResponse(BaseModel):
    cart_item_id: int
    product_id: int
    product_name: str
    quantity: int
    unit_price: float
    applied_tier: Optional[str] = None
    item_total: float


class CartSummary(BaseModel):
    total_items: int = 0
    subtotal: float = 0
    delivery_charges: float = 0
    total_amount: float = 0
    gst_18: Optional[float] = None


class CartCreditInfo(BaseModel):
    credit_available: float
    credit_after_order: float


class CartResponse(BaseModel):
    cart_id: Optional[int] = None
    account_type: str
    items: List[CartItemResponse] = Field(default_factory=list)
    summary: CartSummary
    credit_info: Optional[CartCreditInfo] = None
