"""
Depots and zones

Company
  └── Depot (parent_id = company)
        └── Zone (depot_id, nullable; cleared when the depot is deleted)
"""
from sqlalchemy import Column, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from dcc_sfa.db.base import AuditMixin, Base


class Depot(AuditMixin, Base):
    __tablename__ = "depots"

    id = Column(Integer, primary_key=True, index=True)
    parent_id = Column(Integer, ForeignKey("companies.id"), nullable=False, comment="Company")
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=False, unique=True)
    address = Column(Text)
    city = Column(String(100))
    state = Column(String(100))
    zipcode = Column(String(20))
    phone_number = Column(String(20))
    email = Column(String(255))
    # users also point at depots, so these are created after both tables
    manager_id = Column(Integer, ForeignKey("users.id", use_alter=True, name="fk_depots_manager_id"))
    supervisor_id = Column(Integer, ForeignKey("users.id", use_alter=True, name="fk_depots_supervisor_id"))
    coordinator_id = Column(Integer, ForeignKey("users.id", use_alter=True, name="fk_depots_coordinator_id"))
    latitude = Column(Numeric(10, 7))
    longitude = Column(Numeric(10, 7))

    company = relationship("Company", lazy="selectin")
    manager = relationship("User", foreign_keys=[manager_id], lazy="selectin")
    supervisor = relationship("User", foreign_keys=[supervisor_id], lazy="selectin")
    coordinator = relationship("User", foreign_keys=[coordinator_id], lazy="selectin")


class Zone(AuditMixin, Base):
    __tablename__ = "zones"

    id = Column(Integer, primary_key=True, index=True)
    parent_id = Column(Integer, ForeignKey("companies.id"), nullable=False, comment="Company")
    depot_id = Column(Integer, ForeignKey("depots.id"))
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=False, unique=True)
    description = Column(Text)
    supervisor_id = Column(Integer, ForeignKey("users.id", use_alter=True, name="fk_zones_supervisor_id"))

    company = relationship("Company", lazy="selectin")
    depot = relationship("Depot", lazy="selectin")
