"""
Assets (coolers and other equipment)

AssetType
  └── AssetMaster (serial_number unique; current_location / current_status)
        ├── AssetWarrantyClaim
        ├── AssetMaintenance (needs an active warranty claim)
        └── AssetMovement → AssetMovementContract (generated PDF)
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from dcc_sfa.db.base import AuditMixin, Base


class AssetType(AuditMixin, Base):
    __tablename__ = "asset_types"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text)
    category = Column(String(100))
    brand = Column(String(100))


class AssetMaster(AuditMixin, Base):
    __tablename__ = "asset_master"

    id = Column(Integer, primary_key=True, index=True)
    asset_type_id = Column(Integer, ForeignKey("asset_types.id"), nullable=False)
    name = Column(String(255))
    serial_number = Column(String(100), nullable=False, unique=True)
    purchase_date = Column(DateTime)
    warranty_expiry = Column(DateTime)
    current_location = Column(String(255))
    current_status = Column(String(50), default="Available")
    assigned_to = Column(String(255))

    asset_type = relationship("AssetType", lazy="selectin")

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        return self.asset_type.name if self.asset_type else f"Asset #{self.id}"


class AssetWarrantyClaim(AuditMixin, Base):
    __tablename__ = "asset_warranty_claims"

    id = Column(Integer, primary_key=True, index=True)
    asset_id = Column(Integer, ForeignKey("asset_master.id"), nullable=False)
    claim_date = Column(DateTime, default=datetime.utcnow)
    issue_description = Column(Text)
    claim_status = Column(String(20), default="pending")
    resolved_date = Column(DateTime)
    notes = Column(Text)

    asset = relationship("AssetMaster", lazy="selectin")


class AssetMaintenance(AuditMixin, Base):
    __tablename__ = "asset_maintenance"

    id = Column(Integer, primary_key=True, index=True)
    asset_id = Column(Integer, ForeignKey("asset_master.id"), nullable=False)
    asset_movement_id = Column(Integer, ForeignKey("asset_movements.id"))
    maintenance_date = Column(DateTime, nullable=False)
    issue_reported = Column(Text)
    action_taken = Column(Text)
    technician_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    cost = Column(Numeric(18, 2))
    remarks = Column(Text)

    asset = relationship("AssetMaster", lazy="selectin")
    technician = relationship("User", lazy="selectin")


class AssetMovement(AuditMixin, Base):
    __tablename__ = "asset_movements"

    id = Column(Integer, primary_key=True, index=True)
    asset_id = Column(Integer, ForeignKey("asset_master.id"), nullable=False)
    movement_type = Column(String(20), nullable=False, comment="transfer/maintenance/repair/disposal/return")
    from_depot_id = Column(Integer, ForeignKey("depots.id"))
    to_depot_id = Column(Integer, ForeignKey("depots.id"))
    from_customer_id = Column(Integer, ForeignKey("customers.id"))
    to_customer_id = Column(Integer, ForeignKey("customers.id"))
    movement_date = Column(DateTime, default=datetime.utcnow)
    performed_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    notes = Column(Text)
    approval_status = Column(String(20), default="pending")
    approved_by = Column(Integer, ForeignKey("users.id"))
    approved_at = Column(DateTime)

    asset = relationship("AssetMaster", lazy="selectin")
    from_depot = relationship("Depot", foreign_keys=[from_depot_id], lazy="selectin")
    to_depot = relationship("Depot", foreign_keys=[to_depot_id], lazy="selectin")
    from_customer = relationship("Customer", foreign_keys=[from_customer_id], lazy="selectin")
    to_customer = relationship("Customer", foreign_keys=[to_customer_id], lazy="selectin")
    performer = relationship("User", foreign_keys=[performed_by], lazy="selectin")

    @property
    def from_location(self) -> str:
        if self.from_depot:
            return self.from_depot.name
        if self.from_customer:
            return self.from_customer.name
        return ""

    @property
    def to_location(self) -> str:
        if self.to_depot:
            return self.to_depot.name
        if self.to_customer:
            return self.to_customer.name
        return ""


class AssetMovementContract(AuditMixin, Base):
    __tablename__ = "asset_movement_contracts"

    id = Column(Integer, primary_key=True, index=True)
    asset_movement_id = Column(Integer, ForeignKey("asset_movements.id"), nullable=False)
    contract_number = Column(String(50), nullable=False)
    contract_date = Column(DateTime, default=datetime.utcnow)
    file_name = Column(String(255), nullable=False)
    contract_url = Column(String(500), nullable=False)
    file_size = Column(Integer)
