"""
Return requests and their workflow steps
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from dcc_sfa.db.base import AuditMixin, Base


class ReturnRequest(AuditMixin, Base):
    __tablename__ = "return_requests"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    return_date = Column(DateTime, default=datetime.utcnow)
    reason = Column(Text)
    status = Column(String(20), default="pending")
    resolution_notes = Column(Text)
    assigned_agent_id = Column(Integer, ForeignKey("users.id"))
    approved_by = Column(Integer, ForeignKey("users.id"))
    approved_date = Column(DateTime)

    customer = relationship("Customer", lazy="selectin")
    product = relationship("Product", lazy="selectin")
    assigned_agent = relationship("User", foreign_keys=[assigned_agent_id], lazy="selectin")
    approver = relationship("User", foreign_keys=[approved_by], lazy="selectin")


class ReturnWorkflowStep(AuditMixin, Base):
    __tablename__ = "return_workflow_steps"

    id = Column(Integer, primary_key=True, index=True)
    return_request_id = Column(Integer, ForeignKey("return_requests.id"), nullable=False)
    step_number = Column(Integer, nullable=False)
    step_name = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False, default="pending",
                    comment="pending/in_progress/completed/rejected")
    assigned_to = Column(Integer, ForeignKey("users.id"))
    action_required = Column(Text)
    action_taken = Column(Text)
    notes = Column(Text)
    completed_at = Column(DateTime)
    completed_by = Column(Integer, ForeignKey("users.id"))
