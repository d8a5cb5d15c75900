"""
Return request API

A new request opens with the initial workflow; the workflow endpoints move it
through review, execution or rejection.
"""
import logging
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.core.deps import AuthUser, get_db, require_permission
from dcc_sfa.models import Customer, Product, ReturnRequest, ReturnWorkflowStep, User
from dcc_sfa.schemas.common import DataEnvelope, ListEnvelope, MessageResponse, audit_fields, ref
from dcc_sfa.schemas.return_request import (
    ReturnReject,
    ReturnRequestCreate,
    ReturnRequestResponse,
    ReturnRequestUpdate,
    WorkflowExecute,
    WorkflowStepResponse,
    WorkflowStepUpdate,
)
from dcc_sfa.services.audit import apply_update, create_audit_log, request_ip, stamp_create
from dcc_sfa.services.pagination import paginate, search_filter
from dcc_sfa.services.return_workflow import (
    create_initial_workflow,
    execute_full_workflow_flow,
    get_return_request,
    get_workflow_steps,
    reject_return_request,
    update_workflow_step,
)
from dcc_sfa.services.stats import status_stats

logger = logging.getLogger(__name__)

router = APIRouter()


async def build_return_request_response(db: AsyncSession, request: ReturnRequest) -> ReturnRequestResponse:
    steps = await get_workflow_steps(db, request.id)
    return ReturnRequestResponse(
        id=request.id,
        customer_id=request.customer_id,
        product_id=request.product_id,
        return_date=request.return_date,
        reason=request.reason,
        assigned_agent_id=request.assigned_agent_id,
        status=request.status or "pending",
        resolution_notes=request.resolution_notes,
        approved_by=request.approved_by,
        approved_date=request.approved_date,
        customer=ref(request.customer),
        product=ref(request.product),
        assigned_agent=ref(request.assigned_agent, code_attr="employee_id"),
        workflow_steps=[WorkflowStepResponse.model_validate(s) for s in steps],
        **audit_fields(request),
    )


async def _check_references(db: AsyncSession, data: dict):
    if data.get("customer_id") is not None and not await db.get(Customer, data["customer_id"]):
        raise HTTPException(status_code=400, detail="Customer not found")
    if data.get("product_id") is not None and not await db.get(Product, data["product_id"]):
        raise HTTPException(status_code=400, detail="Product not found")
    if data.get("assigned_agent_id") is not None and not await db.get(User, data["assigned_agent_id"]):
        raise HTTPException(status_code=400, detail="Assigned agent not found")


@router.get("", response_model=ListEnvelope[ReturnRequestResponse])
async def list_return_requests(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("return", "read"))),
    page: int = Query(1),
    limit: int = Query(10),
    search: Optional[str] = Query(None),
    is_active: Optional[str] = Query(None, alias="isActive"),
    status: Optional[str] = Query(None),
    customer_id: Optional[int] = Query(None)) -> Any:
    """List return requests"""
    conditions = []
    condition = search_filter(search, ReturnRequest.reason, ReturnRequest.resolution_notes)
    if condition is not None:
        conditions.append(condition)
    if is_active:
        conditions.append(ReturnRequest.is_active == is_active)
    if status:
        conditions.append(ReturnRequest.status == status)
    if customer_id:
        conditions.append(ReturnRequest.customer_id == customer_id)

    result = await paginate(db, ReturnRequest, conditions, page, limit)
    return {
        "success": True,
        "message": "Return requests retrieved successfully",
        "data": [await build_return_request_response(db, r) for r in result.data],
        "pagination": result.pagination,
        "stats": await status_stats(db, ReturnRequest, "return_requests"),
    }


@router.get("/{request_id}", response_model=DataEnvelope[ReturnRequestResponse])
async def get_return_request_detail(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("return", "read"))),
    request_id: int) -> Any:
    """Get one return request with its workflow"""
    return_request = await get_return_request(db, request_id)
    return {
        "message": "Return request fetched successfully",
        "data": await build_return_request_response(db, return_request),
    }


@router.post("", response_model=DataEnvelope[ReturnRequestResponse], status_code=201)
async def create_return_request(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("return", "create"))),
    request: Request,
    request_in: ReturnRequestCreate) -> Any:
    """Create a return request and open its workflow"""
    data = request_in.model_dump()
    await _check_references(db, data)
    if data.get("return_date") is None:
        data.pop("return_date")

    return_request = ReturnRequest(**data, status="pending", **stamp_create(current_user.id))
    db.add(return_request)
    await db.flush()
    await create_initial_workflow(db, return_request.id, current_user.id)
    await create_audit_log(
        db, current_user.id, "create", "return_request",
        resource_id=return_request.id,
        description=f"Created return request {return_request.id}",
        ip_address=request_ip(request),
    )
    await db.commit()

    return_request = await db.get(ReturnRequest, return_request.id, populate_existing=True)
    logger.info(f"↩️ Return request {return_request.id} created by user {current_user.id}")
    return {
        "message": "Return request created successfully",
        "data": await build_return_request_response(db, return_request),
    }


@router.put("/{request_id}", response_model=DataEnvelope[ReturnRequestResponse])
async def update_return_request(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("return", "update"))),
    request_id: int,
    request_in: ReturnRequestUpdate) -> Any:
    """Update a return request"""
    return_request = await get_return_request(db, request_id)
    data = request_in.model_dump(exclude_unset=True)
    await _check_references(db, data)
    apply_update(return_request, data, current_user.id)
    await db.commit()
    return_request = await db.get(ReturnRequest, request_id, populate_existing=True)
    return {
        "message": "Return request updated successfully",
        "data": await build_return_request_response(db, return_request),
    }


@router.delete("/{request_id}", response_model=MessageResponse)
async def delete_return_request(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("return", "delete"))),
    request: Request,
    request_id: int) -> Any:
    """Delete a return request and its workflow steps"""
    await get_return_request(db, request_id)
    await db.execute(delete(ReturnWorkflowStep).where(ReturnWorkflowStep.return_request_id == request_id))
    await db.execute(delete(ReturnRequest).where(ReturnRequest.id == request_id))
    await create_audit_log(
        db, current_user.id, "delete", "return_request",
        resource_id=request_id,
        description=f"Deleted return request {request_id}",
        ip_address=request_ip(request),
    )
    await db.commit()
    return {"message": "Return request deleted successfully"}


@router.get("/{request_id}/workflow", response_model=DataEnvelope[List[WorkflowStepResponse]])
async def get_return_workflow(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("return", "read"))),
    request_id: int) -> Any:
    """Workflow steps of a return request"""
    await get_return_request(db, request_id)
    steps = await get_workflow_steps(db, request_id)
    return {
        "message": "Workflow steps retrieved successfully",
        "data": [WorkflowStepResponse.model_validate(s) for s in steps],
    }


@router.put("/{request_id}/workflow/{step_id}", response_model=DataEnvelope[WorkflowStepResponse])
async def update_return_workflow_step(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("return", "update"))),
    request_id: int,
    step_id: int,
    step_in: WorkflowStepUpdate) -> Any:
    """Update one workflow step"""
    await get_return_request(db, request_id)
    step = await update_workflow_step(db, request_id, step_id, current_user.id, **step_in.model_dump())
    await db.commit()
    return {"message": "Workflow step updated successfully", "data": WorkflowStepResponse.model_validate(step)}


@router.post("/{request_id}/workflow/execute", response_model=DataEnvelope[List[WorkflowStepResponse]])
async def execute_return_workflow(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("return", "update"))),
    request_id: int,
    execute_in: WorkflowExecute) -> Any:
    """Run a workflow template to completion and close the request"""
    steps = await execute_full_workflow_flow(
        db, request_id, current_user.id,
        template_id=execute_in.template_id,
        resolution_notes=execute_in.resolution_notes,
    )
    return {
        "message": "Workflow executed successfully",
        "data": [WorkflowStepResponse.model_validate(s) for s in steps],
    }


@router.post("/{request_id}/reject", response_model=DataEnvelope[ReturnRequestResponse])
async def reject_return(
    *,
    db: AsyncSession = Depends(get_db),
    current_user: AuthUser = Depends(require_permission(("return", "update"))),
    request_id: int,
    reject_in: ReturnReject) -> Any:
    """Reject a return request"""
    await reject_return_request(db, request_id, current_user.id, reject_in.reason)
    return_request = await db.get(ReturnRequest, request_id, populate_existing=True)
    return {
        "message": "Return request rejected successfully",
        "data": await build_return_request_response(db, return_request),
    }
