"""
Asset type, asset master, warranty claim, maintenance and movement schemas
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from dcc_sfa.schemas.common import ACTIVE_FLAG_PATTERN, AuditFields, RefBlock

MOVEMENT_TYPES = ("transfer", "maintenance", "repair", "disposal", "return")


class AssetTypeBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(None, max_length=100)
    brand: Optional[str] = Field(None, max_length=100)


class AssetTypeCreate(AssetTypeBase):
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class AssetTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    is_active: Optional[str] = Field(None, pattern=ACTIVE_FLAG_PATTERN)
    log_inst: Optional[int] = None


class AssetTypeResponse(AssetTypeBase, AuditFields):
    id: int
    asset_count: int = 0


class AssetMasterBase(BaseModel):
    asset_type_id: int
    name: Optional[str] = Field(None, max_length=255)
    serial_number: str = Field(..., min_length=1, max_length=100)
    purchase_date: Optional[datetime] = None
    warranty_expiry: Optional[datetime] = None
    current_location: Optional[str] = Field(None, max_length=255)
    current_status: str = Field("Available", max_length=50)
    assigned_to: Optional[str] = Field(None, max_length=255)


class AssetMasterCreate(AssetMasterBase):
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class AssetMasterUpdate(BaseModel):
    asset_type_id: Optional[int] = None
    name: Optional[str] = None
    serial_number: Optional[str] = Field(None, min_length=1, max_length=100)
    purchase_date: Optional[datetime] = None
    warranty_expiry: Optional[datetime] = None
    current_location: Optional[str] = None
    current_status: Optional[str] = None
    assigned_to: Optional[str] = None
    is_active: Optional[str] = Field(None, pattern=ACTIVE_FLAG_PATTERN)
    log_inst: Optional[int] = None


class AssetMasterResponse(AssetMasterBase, AuditFields):
    id: int
    asset_type: Optional[RefBlock] = None


class WarrantyClaimBase(BaseModel):
    asset_id: int
    claim_date: Optional[datetime] = None
    issue_description: Optional[str] = None
    claim_status: str = Field("pending", max_length=20)
    resolved_date: Optional[datetime] = None
    notes: Optional[str] = None


class WarrantyClaimCreate(WarrantyClaimBase):
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class WarrantyClaimUpdate(BaseModel):
    claim_date: Optional[datetime] = None
    issue_description: Optional[str] = None
    claim_status: Optional[str] = Field(None, max_length=20)
    resolved_date: Optional[datetime] = None
    notes: Optional[str] = None
    is_active: Optional[str] = Field(None, pattern=ACTIVE_FLAG_PATTERN)
    log_inst: Optional[int] = None


class WarrantyClaimResponse(WarrantyClaimBase, AuditFields):
    id: int
    asset: Optional[RefBlock] = None


class MaintenanceBase(BaseModel):
    asset_id: int
    maintenance_date: datetime
    technician_id: int
    issue_reported: Optional[str] = None
    action_taken: Optional[str] = None
    cost: Optional[float] = Field(None, ge=0)
    remarks: Optional[str] = None


class MaintenanceCreate(MaintenanceBase):
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class MaintenanceUpdate(BaseModel):
    maintenance_date: Optional[datetime] = None
    technician_id: Optional[int] = None
    issue_reported: Optional[str] = None
    action_taken: Optional[str] = None
    cost: Optional[float] = Field(None, ge=0)
    remarks: Optional[str] = None
    is_active: Optional[str] = Field(None, pattern=ACTIVE_FLAG_PATTERN)
    log_inst: Optional[int] = None


class MaintenanceResponse(MaintenanceBase, AuditFields):
    id: int
    asset_movement_id: Optional[int] = None
    asset: Optional[RefBlock] = None
    technician: Optional[RefBlock] = None


class MovementBase(BaseModel):
    asset_id: int
    movement_type: str = Field(..., description=", ".join(MOVEMENT_TYPES))
    performed_by: int
    from_depot_id: Optional[int] = None
    to_depot_id: Optional[int] = None
    from_customer_id: Optional[int] = None
    to_customer_id: Optional[int] = None
    movement_date: Optional[datetime] = None
    notes: Optional[str] = None


class MovementCreate(MovementBase):
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class MovementUpdate(BaseModel):
    movement_date: Optional[datetime] = None
    notes: Optional[str] = None
    is_active: Optional[str] = Field(None, pattern=ACTIVE_FLAG_PATTERN)
    log_inst: Optional[int] = None


class MovementApprove(BaseModel):
    approval_status: str = Field("approved", pattern="^(approved|rejected)$")
    notes: Optional[str] = None


class ContractResponse(BaseModel):
    id: int
    asset_movement_id: int
    contract_number: str
    contract_date: Optional[datetime] = None
    file_name: str
    contract_url: str
    file_size: Optional[int] = None


class MovementResponse(MovementBase, AuditFields):
    id: int
    approval_status: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    from_location: str = ""
    to_location: str = ""
    asset: Optional[RefBlock] = None
    performer: Optional[RefBlock] = None
    contract: Optional[ContractResponse] = None
