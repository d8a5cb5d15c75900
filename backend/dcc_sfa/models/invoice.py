"""
Invoices

An invoice and its items are always written in one transaction; the header
totals follow the items (subtotal, discount, tax, total, balance_due).
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from dcc_sfa.db.base import AuditMixin, Base


class Invoice(AuditMixin, Base):
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String(50), nullable=False, unique=True)
    parent_id = Column(Integer, ForeignKey("orders.id"), comment="Order")
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    invoice_date = Column(DateTime, default=datetime.utcnow)
    due_date = Column(DateTime)
    status = Column(String(20), default="draft")
    payment_method = Column(String(50), default="cash")
    subtotal = Column(Numeric(18, 2), default=0)
    discount_amount = Column(Numeric(18, 2), default=0)
    tax_amount = Column(Numeric(18, 2), default=0)
    shipping_amount = Column(Numeric(18, 2), default=0)
    total_amount = Column(Numeric(18, 2), default=0)
    amount_paid = Column(Numeric(18, 2), default=0)
    balance_due = Column(Numeric(18, 2), default=0)
    notes = Column(Text)
    billing_address = Column(Text)

    customer = relationship("Customer", lazy="selectin")
    order = relationship("Order", lazy="selectin")
    items = relationship("InvoiceItem", back_populates="invoice", lazy="selectin")


class InvoiceItem(AuditMixin, Base):
    __tablename__ = "invoice_items"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    product_name = Column(String(255))
    unit = Column(String(20))
    quantity = Column(Numeric(18, 3), nullable=False, default=1)
    unit_price = Column(Numeric(18, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(18, 2), default=0)
    tax_amount = Column(Numeric(18, 2), default=0)
    total_amount = Column(Numeric(18, 2), default=0)
    notes = Column(Text)

    invoice = relationship("Invoice", back_populates="items")
    product = relationship("Product", lazy="selectin")
