from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from dcc_sfa.db.base import AuditMixin, Base


class Vehicle(AuditMixin, Base):
    """Delivery / sales vehicle; vehicle_number is unique"""
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True)
    vehicle_number = Column(String(50), nullable=False, unique=True)
    type = Column(String(50), nullable=False, comment="truck, van, bike ...")
    make = Column(String(100))
    model = Column(String(100))
    year = Column(Integer)
    capacity = Column(Numeric(10, 2))
    fuel_type = Column(String(20))
    current_latitude = Column(Numeric(10, 7))
    current_longitude = Column(Numeric(10, 7))
    last_location_update = Column(DateTime)
    assigned_to = Column(Integer, ForeignKey("users.id"))
    status = Column(String(20), default="available")
    fuel_level = Column(Numeric(5, 2))
    mileage = Column(Numeric(12, 2))
    last_service_date = Column(DateTime)
    next_service_due = Column(DateTime)
    insurance_expiry = Column(DateTime)
    registration_expiry = Column(DateTime)

    driver = relationship("User", lazy="selectin")
