from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from dcc_sfa.db.base import AuditMixin, Base


class CreditNote(AuditMixin, Base):
    """Credit note raised against an order (parent_id = order id)"""
    __tablename__ = "credit_notes"

    id = Column(Integer, primary_key=True, index=True)
    credit_note_number = Column(String(50), nullable=False, unique=True)
    parent_id = Column(Integer, ForeignKey("orders.id"), nullable=False, comment="Order")
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    credit_note_date = Column(DateTime, default=datetime.utcnow)
    due_date = Column(DateTime)
    status = Column(String(20), default="draft")
    reason = Column(Text)
    payment_method = Column(String(50), default="credit")
    subtotal = Column(Numeric(18, 2), default=0)
    discount_amount = Column(Numeric(18, 2), default=0)
    tax_amount = Column(Numeric(18, 2), default=0)
    shipping_amount = Column(Numeric(18, 2), default=0)
    total_amount = Column(Numeric(18, 2), default=0)
    amount_applied = Column(Numeric(18, 2), default=0)
    balance_due = Column(Numeric(18, 2), default=0)
    notes = Column(Text)
    billing_address = Column(Text)

    customer = relationship("Customer", lazy="selectin")
    order = relationship("Order", lazy="selectin")
    items = relationship("CreditNoteItem", back_populates="credit_note", lazy="selectin")


class CreditNoteItem(AuditMixin, Base):
    __tablename__ = "credit_note_items"

    id = Column(Integer, primary_key=True, index=True)
    credit_note_id = Column(Integer, ForeignKey("credit_notes.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    product_name = Column(String(255))
    unit = Column(String(20))
    quantity = Column(Numeric(18, 3), nullable=False, default=1)
    unit_price = Column(Numeric(18, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(18, 2), default=0)
    tax_amount = Column(Numeric(18, 2), default=0)
    total_amount = Column(Numeric(18, 2), default=0)
    notes = Column(Text)

    credit_note = relationship("CreditNote", back_populates="items")
    product = relationship("Product", lazy="selectin")
