from sqlalchemy import Column, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from dcc_sfa.db.base import AuditMixin, Base


class Warehouse(AuditMixin, Base):
    __tablename__ = "warehouses"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=False, unique=True)
    type = Column(String(50), default="main")
    depot_id = Column(Integer, ForeignKey("depots.id"))
    manager_id = Column(Integer, ForeignKey("users.id"))
    address = Column(Text)
    city = Column(String(100))
    state = Column(String(100))
    zipcode = Column(String(20))
    capacity = Column(Numeric(12, 2))
    latitude = Column(Numeric(10, 7))
    longitude = Column(Numeric(10, 7))

    depot = relationship("Depot", lazy="selectin")
    manager = relationship("User", lazy="selectin")
