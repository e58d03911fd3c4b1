"""
Audit log - back-office actions worth tracing
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.dialects.sqlite import JSON
from sqlalchemy.orm import relationship

from grocery.db.base import Base


class AuditLog(Base):
    """Audit trail entry

    Recorded actions:
    - B2B registration approval / rejection
    - product and category create, update, delete
    - admin order status changes
    - credit debits and restorations on order placement and cancellation
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # create / update / delete / approve / reject / status / cancel / credit
    action = Column(String(20), nullable=False, index=True)
    # business / product / category / subcategory / order
    resource_type = Column(String(50), nullable=False, index=True)
    resource_id = Column(Integer, index=True)
    resource_name = Column(String(200))
    description = Column(String(500))
    old_value = Column(JSON)
    new_value = Column(JSON)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    user = relationship("User", foreign_keys=[user_id])

    def __repr__(self):
        return f"<AuditLog {self.action} {self.resource_type}:{self.resource_id}>"
