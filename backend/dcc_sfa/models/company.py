from sqlalchemy import Column, Integer, String, Text

from dcc_sfa.db.base import AuditMixin, Base


class Company(AuditMixin, Base):
    """Tenant company; owns depots, zones and users"""
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=False, unique=True)
    address = Column(Text)
    city = Column(String(100))
    state = Column(String(100))
    country = Column(String(100))
    zipcode = Column(String(20))
    phone_number = Column(String(20))
    email = Column(String(255))
    website = Column(String(255))
