"""Product schemas - admin write model and per-channel read models"""
from typing import Optional, List
from pydantic import BaseModel, Field, model_validator
from datetime import datetime


class BulkTierSchema(BaseModel):
    """One B2B price band"""
    min_qty: int = Field(..., ge=1, description="Lowest quantity in the band")
    max_qty: Optional[int] = Field(None, description="Highest quantity, empty = unbounded")
    price_per_unit: float = Field(..., ge=0)

    @model_validator(mode="after")
    def check_range(self):
        if self.max_qty is not None and self.max_qty < self.min_qty:
            raise ValueError("max_qty must not be below min_qty")
        return self


class ProductCreate(BaseModel):
    sku: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    category_id: int
    subcategory_id: Optional[int] = None
    brand: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    unit: str = Field(default="pc", max_length=20)
    quantity_per_unit: float = Field(default=1, gt=0)
    images: List[str] = Field(default_factory=list, description="Image URLs")
    is_vegetarian: bool = True
    expiry_date: Optional[datetime] = None
    # B2C
    b2c_mrp: float = Field(..., gt=0)
    b2c_selling_price: float = Field(..., gt=0)
    b2c_min_quantity: int = Field(default=1, ge=1)
    b2c_max_quantity: int = Field(default=10, ge=1)
    # B2B
    b2b_base_price: float = Field(..., gt=0)
    b2b_min_order_qty: int = Field(default=1, ge=1)
    b2b_max_order_qty: Optional[int] = Field(None, ge=1)
    b2b_bulk_tiers: List[BulkTierSchema] = Field(default_factory=list)
    # Inventory; pools default to a 30/70 split of total_stock
    total_stock: int = Field(default=0, ge=0)
    b2c_reserved_stock: Optional[int] = Field(None, ge=0)
    b2b_reserved_stock: Optional[int] = Field(None, ge=0)


class ProductUpdate(BaseModel):
    sku: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    category_id: Optional[int] = None
    subcategory_id: Optional[int] = None
    brand: Optional[str] = None
    description: Optional[str] = None
    unit: Optional[str] = None
    quantity_per_unit: Optional[float] = Field(None, gt=0)
    images: Optional[List[str]] = None
    is_vegetarian: Optional[bool] = None
    expiry_date: Optional[datetime] = None
    b2c_mrp: Optional[float] = Field(None, gt=0)
    b2c_selling_price: Optional[float] = Field(None, gt=0)
    b2c_min_quantity: Optional[int] = Field(None, ge=1)
    b2c_max_quantity: Optional[int] = Field(None, ge=1)
    b2b_base_price: Optional[float] = Field(None, gt=0)
    b2b_min_order_qty: Optional[int] = Field(None, ge=1)
    b2b_max_order_qty: Optional[int] = Field(None, ge=1)
    b2b_bulk_tiers: Optional[List[BulkTierSchema]] = None
    total_stock: Optional[int] = Field(None, ge=0)
    b2c_reserved_stock: Optional[int] = Field(None, ge=0)
    b2b_reserved_stock: Optional[int] = Field(None, ge=0)
    status: Optional[str] = Field(None, pattern="^(active|inactive)$")


class ProductCreatedResponse(BaseModel):
    product_id: int
    message: str


class ProductView(BaseModel):
    """Fields common to both storefronts"""
    product_id: int
    name: str
    brand: Optional[str] = None
    sku: str
    unit: str
    in_stock: bool
    available_stock: int


class B2CProductView(ProductView):
    mrp: float
    selling_price: float
    discount_percentage: float
    max_quantity: int


class B2BProductView(ProductView):
    base_price: float
    min_order_qty: int
    max_order_qty: Optional[int] = None
    bulk_tiers: List[BulkTierSchema] = Field(default_factory=list)


class ProductDetailMixin(BaseModel):
    description: Optional[str] = None
    quantity_per_unit: float = 1
    images: List[str] = Field(default_factory=list)
    category: str = ""
    subcategory: str = ""


class B2CProductDetail(B2CProductView, ProductDetailMixin):
    pass


class B2BProductDetail(B2BProductView, ProductDetailMixin):
    pass


class StockFlowResponse(BaseModel):
    id: int
    product_id: int
    order_id: Optional[int] = None
    channel: str
    flow_type: str
    type_display: str
    quantity_change: int
    quantity_before: int
    quantity_after: int
    reason: Optional[str] = None
    created_at: datetime
