"""
Customers (outlets) and customer groups

A customer group links customers, depots and zones through three link tables.
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from dcc_sfa.db.base import AuditMixin, Base


class Customer(AuditMixin, Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=False, unique=True)
    short_name = Column(String(100))
    zones_id = Column(Integer, ForeignKey("zones.id"))
    type = Column(String(50))
    contact_person = Column(String(255))
    phone_number = Column(String(20))
    email = Column(String(255))
    address = Column(Text)
    city = Column(String(100))
    state = Column(String(100))
    zipcode = Column(String(20))
    latitude = Column(Numeric(10, 7))
    longitude = Column(Numeric(10, 7))
    credit_limit = Column(Numeric(18, 2), default=0)
    outstanding_amount = Column(Numeric(18, 2), default=0)
    salesperson_id = Column(Integer, ForeignKey("users.id"))
    last_visit_date = Column(DateTime)

    zone = relationship("Zone", lazy="selectin")
    salesperson = relationship("User", lazy="selectin")


class CustomerGroup(AuditMixin, Base):
    __tablename__ = "customer_groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=False, unique=True)
    description = Column(Text)
    discount_percentage = Column(Numeric(5, 2), default=0)
    credit_terms = Column(Integer, default=30)
    payment_terms = Column(String(100))
    price_group = Column(String(100))

    members = relationship("CustomerGroupMember", back_populates="group", lazy="selectin")
    depots = relationship("CustomerGroupDepot", back_populates="group", lazy="selectin")
    zones = relationship("CustomerGroupZone", back_populates="group", lazy="selectin")


class CustomerGroupMember(AuditMixin, Base):
    __tablename__ = "customer_group_members"

    id = Column(Integer, primary_key=True, index=True)
    customer_group_id = Column(Integer, ForeignKey("customer_groups.id"), nullable=False)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    joined_at = Column(DateTime, default=datetime.utcnow)

    group = relationship("CustomerGroup", back_populates="members")
    customer = relationship("Customer", lazy="selectin")


class CustomerGroupDepot(AuditMixin, Base):
    __tablename__ = "customer_group_depots"

    id = Column(Integer, primary_key=True, index=True)
    customer_group_id = Column(Integer, ForeignKey("customer_groups.id"), nullable=False)
    depot_id = Column(Integer, ForeignKey("depots.id"), nullable=False)

    group = relationship("CustomerGroup", back_populates="depots")
    depot = relationship("Depot", lazy="selectin")


class CustomerGroupZone(AuditMixin, Base):
    __tablename__ = "customer_group_zones"

    id = Column(Integer, primary_key=True, index=True)
    customer_group_id = Column(Integer, ForeignKey("customer_groups.id"), nullable=False)
    zone_id = Column(Integer, ForeignKey("zones.id"), nullable=False)

    group = relationship("CustomerGroup", back_populates="zones")
    zone = relationship("Zone", lazy="selectin")
