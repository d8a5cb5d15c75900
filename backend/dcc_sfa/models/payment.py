"""
Customer payments

A payment is applied to invoices through payment lines; the invoice's
amount_paid moves with its lines.
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from dcc_sfa.db.base import AuditMixin, Base


class Payment(AuditMixin, Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    payment_number = Column(String(50), nullable=False, unique=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    payment_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    collected_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    method = Column(String(50), nullable=False)
    reference_number = Column(String(100))
    total_amount = Column(Numeric(18, 2), nullable=False, default=0)
    notes = Column(Text)

    customer = relationship("Customer", lazy="selectin")
    collector = relationship("User", lazy="selectin")
    lines = relationship("PaymentLine", back_populates="payment", lazy="selectin")


class PaymentLine(AuditMixin, Base):
    __tablename__ = "payment_lines"

    id = Column(Integer, primary_key=True, index=True)
    parent_id = Column(Integer, ForeignKey("payments.id"), nullable=False, comment="Payment")
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False, index=True)
    invoice_number = Column(String(50))
    invoice_date = Column(DateTime)
    amount_applied = Column(Numeric(18, 2), nullable=False, default=0)
    notes = Column(Text)

    payment = relationship("Payment", back_populates="lines", lazy="selectin")
