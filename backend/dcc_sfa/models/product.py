from sqlalchemy import Column, Integer, Numeric, String, Text

from dcc_sfa.db.base import AuditMixin, Base


class Product(AuditMixin, Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=False, unique=True)
    description = Column(Text)
    category = Column(String(100))
    brand = Column(String(100))
    unit_of_measurement = Column(String(20), default="pcs")
    base_price = Column(Numeric(18, 2), default=0)
    tax_rate = Column(Numeric(5, 2), default=0)
