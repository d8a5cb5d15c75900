"""
Sales orders

Order totals are derived from their lines:
  line total = quantity * unit_price - discount_amount + tax_amount
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from dcc_sfa.db.base import AuditMixin, Base


class Order(AuditMixin, Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(50), nullable=False, unique=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    salesperson_id = Column(Integer, ForeignKey("users.id"))
    order_date = Column(DateTime, default=datetime.utcnow)
    delivery_date = Column(DateTime)
    status = Column(String(20), default="draft")
    priority = Column(String(20), default="medium")
    order_type = Column(String(20), default="regular")
    payment_method = Column(String(50), default="cash")
    payment_terms = Column(String(100))
    subtotal = Column(Numeric(18, 2), default=0)
    discount_amount = Column(Numeric(18, 2), default=0)
    tax_amount = Column(Numeric(18, 2), default=0)
    shipping_amount = Column(Numeric(18, 2), default=0)
    total_amount = Column(Numeric(18, 2), default=0)
    notes = Column(Text)
    shipping_address = Column(Text)
    approval_status = Column(String(20), default="pending")

    customer = relationship("Customer", lazy="selectin")
    salesperson = relationship("User", lazy="selectin")
    items = relationship("OrderItem", back_populates="order", lazy="selectin")


class OrderItem(AuditMixin, Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    product_name = Column(String(255))
    unit = Column(String(20))
    quantity = Column(Numeric(18, 3), nullable=False, default=1)
    unit_price = Column(Numeric(18, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(18, 2), default=0)
    tax_amount = Column(Numeric(18, 2), default=0)
    total_amount = Column(Numeric(18, 2), default=0)
    notes = Column(Text)

    order = relationship("Order", back_populates="items")
