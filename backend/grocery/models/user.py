from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship

from grocery.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    mobile = Column(String(20), unique=True, index=True)
    # b2c / b2b / admin
    account_type = Column(String(10), nullable=False, default="b2c", index=True)
    # active / inactive
    status = Column(String(10), nullable=False, default="active")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    business = relationship(
        "B2BBusiness", back_populates="user", uselist=False,
        foreign_keys="B2BBusiness.user_id"
    )
    cart = relationship("Cart", back_populates="user", uselist=False)
    orders = relationship("Order", back_populates="user")

    def __repr__(self):
        return f"<User {self.id}: {self.email} ({self.account_type})>"

    @property
    def is_admin(self) -> bool:
        return self.account_type == "admin"

    @property
    def is_b2b(self) -> bool:
        return self.account_type == "b2b"

    @property
    def is_b2c(self) -> bool:
        return self.account_type == "b2c"

    @property
    def is_active(self) -> bool:
        return self.status == "active"
