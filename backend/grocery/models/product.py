"""
Product model - one catalog row carries both channels

Each product has a retail (B2C) price block, a wholesale (B2B) price block
with optional bulk tiers, and an inventory split into two reserved pools.
total_stock moves together with whichever pool an order draws from.
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, DECIMAL
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import relationship

from grocery.db.base import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)

    sku = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=False, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    subcategory_id = Column(Integer, ForeignKey("subcategories.id"), index=True)
    brand = Column(String(100))
    description = Column(Text)
    unit = Column(String(20), nullable=False, default="pc", comment="kg / g / L / pc ...")
    quantity_per_unit = Column(DECIMAL(10, 3), default=Decimal("1"))
    images = Column(JSON, default=list)
    is_vegetarian = Column(Boolean, default=True)
    expiry_date = Column(DateTime)

    # B2C pricing
    b2c_mrp = Column(DECIMAL(12, 2), nullable=False, comment="Printed MRP")
    b2c_selling_price = Column(DECIMAL(12, 2), nullable=False)
    b2c_min_quantity = Column(Integer, nullable=False, default=1)
    b2c_max_quantity = Column(Integer, nullable=False, default=10)

    # B2B pricing
    b2b_base_price = Column(DECIMAL(12, 2), nullable=False)
    b2b_min_order_qty = Column(Integer, nullable=False, default=1)
    b2b_max_order_qty = Column(Integer, comment="NULL means no cap")
    # [{"min_qty": 10, "max_qty": 49, "price_per_unit": 90.0}, ...]
    b2b_bulk_tiers = Column(JSON, default=list)

    # Inventory
    total_stock = Column(Integer, nullable=False, default=0)
    b2c_reserved_stock = Column(Integer, nullable=False, default=0)
    b2b_reserved_stock = Column(Integer, nullable=False, default=0)

    # active / inactive
    status = Column(String(20), nullable=False, default="active", index=True)
    is_deleted = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("Category", back_populates="products")
    subcategory = relationship("Subcategory", back_populates="products")

    def __repr__(self):
        return f"<Product {self.sku}: {self.name}>"

    @property
    def is_available(self) -> bool:
        """Listed and orderable"""
        return not self.is_deleted and self.status == "active"

    @property
    def discount_percentage(self) -> float:
        """B2C discount off MRP, 2 dp"""
        mrp = Decimal(str(self.b2c_mrp or 0))
        if mrp <= 0:
            return 0.0
        selling = Decimal(str(self.b2c_selling_price or 0))
        return round(float((mrp - selling) / mrp * 100), 2)

    def reserved_for(self, channel: str) -> int:
        """Units reserved for the b2c or b2b channel"""
        if channel == "b2b":
            return self.b2b_reserved_stock or 0
        return self.b2c_reserved_stock or 0
