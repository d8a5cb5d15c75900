"""
Return request and workflow step schemas
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from dcc_sfa.schemas.common import ACTIVE_FLAG_PATTERN, AuditFields, RefBlock


class WorkflowStepResponse(BaseModel):
    id: int
    return_request_id: int
    step_number: int
    step_name: str
    status: str
    assigned_to: Optional[int] = None
    action_required: Optional[str] = None
    action_taken: Optional[str] = None
    notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    completed_by: Optional[int] = None

    class Config:
        from_attributes = True


class WorkflowStepUpdate(BaseModel):
    status: Optional[str] = None
    action_taken: Optional[str] = None
    notes: Optional[str] = None
    assigned_to: Optional[int] = None


class WorkflowExecute(BaseModel):
    template_id: str = "standard_return"
    resolution_notes: Optional[str] = None


class ReturnReject(BaseModel):
    reason: str = Field(..., min_length=1)


class ReturnRequestBase(BaseModel):
    customer_id: int
    product_id: int
    return_date: Optional[datetime] = None
    reason: Optional[str] = None
    assigned_agent_id: Optional[int] = None


class ReturnRequestCreate(ReturnRequestBase):
    is_active: str = Field("Y", pattern=ACTIVE_FLAG_PATTERN)


class ReturnRequestUpdate(BaseModel):
    return_date: Optional[datetime] = None
    reason: Optional[str] = None
    status: Optional[str] = None
    resolution_notes: Optional[str] = None
    assigned_agent_id: Optional[int] = None
    is_active: Optional[str] = Field(None, pattern=ACTIVE_FLAG_PATTERN)
    log_inst: Optional[int] = None


class ReturnRequestResponse(ReturnRequestBase, AuditFields):
    id: int
    status: str = "pending"
    resolution_notes: Optional[str] = None
    approved_by: Optional[int] = None
    approved_date: Optional[datetime] = None
    customer: Optional[RefBlock] = None
    product: Optional[RefBlock] = None
    assigned_agent: Optional[RefBlock] = None
    workflow_steps: List[WorkflowStepResponse] = []
