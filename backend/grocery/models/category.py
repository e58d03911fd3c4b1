from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from grocery.db.base import Base


class Category(Base):
    """Top-level catalog category"""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(Text)
    image_url = Column(String(500))
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    subcategories = relationship("Subcategory", back_populates="category", order_by="Subcategory.name")
    products = relationship("Product", back_populates="category")

    def __repr__(self):
        return f"<Category {self.id}: {self.name}>"


class Subcategory(Base):
    """Second catalog level; names are unique within a category"""
    __tablename__ = "subcategories"
    __table_args__ = (
        UniqueConstraint('category_id', 'name', name='uq_subcategory_category_name'),
    )

    id = Column(Integer, primary_key=True, index=True)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("Category", back_populates="subcategories")
    products = relationship("Product", back_populates="subcategory")

    def __repr__(self):
        return f"<Subcategory {self.id}: {self.name}>"
