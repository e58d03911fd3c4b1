from datetime import datetime, timedelta
from decimal import Decimal
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, DECIMAL, UniqueConstraint
from sqlalchemy.orm import relationship

from grocery.db.base import Base


class Cart(Base):
    """Shopping cart; one per user, valid until expires_at"""
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    account_type = Column(String(10), nullable=False)
    business_id = Column(Integer, ForeignKey("b2b_businesses.id"))
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="cart")
    items = relationship(
        "CartItem", back_populates="cart", cascade="all, delete-orphan",
        order_by="CartItem.id"
    )

    def __repr__(self):
        return f"<Cart {self.id} user={self.user_id} ({self.account_type})>"

    def is_expired(self, now: datetime = None) -> bool:
        return self.expires_at <= (now or datetime.utcnow())

    def renew(self, ttl_minutes: int, now: datetime = None):
        self.expires_at = (now or datetime.utcnow()) + timedelta(minutes=ttl_minutes)


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (
        UniqueConstraint('cart_id', 'product_id', name='uq_cart_product'),
    )

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(DECIMAL(12, 2), nullable=False)
    applied_tier = Column(String(50))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    cart = relationship("Cart", back_populates="items")
    product = relationship("Product")

    def __repr__(self):
        return f"<CartItem {self.id}: {self.product_id} x{self.quantity}>"

    @property
    def item_total(self) -> Decimal:
        return Decimal(str(self.unit_price)) * self.quantity
