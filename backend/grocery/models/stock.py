"""
Stock flow ledger - one row per movement of a channel pool
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from grocery.db.base import Base


class StockFlow(Base):
    """Stock movement caused by an order"""
    __tablename__ = "stock_flows"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), index=True)

    # b2c / b2b pool that moved
    channel = Column(String(10), nullable=False)
    # out: order placed
    # in: order cancelled, stock restored
    flow_type = Column(String(10), nullable=False)

    # signed; negative for out
    quantity_change = Column(Integer, nullable=False)
    quantity_before = Column(Integer, nullable=False, comment="Channel pool before")
    quantity_after = Column(Integer, nullable=False, comment="Channel pool after")
    reason = Column(String(200))

    operator_id = Column(Integer, ForeignKey("users.id"))
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    product = relationship("Product", foreign_keys=[product_id])
    order = relationship("Order", foreign_keys=[order_id])

    def __repr__(self):
        return f"<StockFlow {self.product_id}: {self.flow_type} {self.quantity_change:+d}>"

    @property
    def type_display(self) -> str:
        type_map = {
            "out": "Order deduction",
            "in": "Cancellation restock",
        }
        return type_map.get(self.flow_type, self.flow_type)
