from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from dcc_sfa.db.base import AuditMixin, Base


class PriceList(AuditMixin, Base):
    __tablename__ = "pricelists"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    currency_code = Column(String(10), default="USD")
    valid_from = Column(DateTime)
    valid_to = Column(DateTime)

    items = relationship("PriceListItem", back_populates="pricelist", lazy="selectin")


class PriceListItem(AuditMixin, Base):
    __tablename__ = "pricelist_items"

    id = Column(Integer, primary_key=True, index=True)
    pricelist_id = Column(Integer, ForeignKey("pricelists.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    unit_price = Column(Numeric(18, 2), nullable=False, default=0)
    uom = Column(String(20))
    discount_percent = Column(Numeric(5, 2), default=0)
    effective_from = Column(DateTime)
    effective_to = Column(DateTime)

    pricelist = relationship("PriceList", back_populates="items")
    product = relationship("Product", lazy="selectin")
