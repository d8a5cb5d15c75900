"""
Return request workflow steps

A new request gets five steps; the first is completed and the second is in
progress. Executing a template replaces the steps with a fully completed run
and closes the request. Rejecting marks the in-progress step rejected.
"""
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from dcc_sfa.models import ReturnRequest, ReturnWorkflowStep
from dcc_sfa.services.audit import touch

logger = logging.getLogger(__name__)

STEP_STATUSES = ("pending", "in_progress", "completed", "rejected")

INITIAL_STEPS = [
    ("Request Submitted", "completed", "Return request submitted by customer"),
    ("Initial Review", "in_progress", "Review return request details"),
    ("Approval Decision", "pending", "Approve or reject the return"),
    ("Processing", "pending", "Process the returned items"),
    ("Completion", "pending", "Close the return request"),
]

WORKFLOW_TEMPLATES = {
    "standard_return": [
        "Request Submitted",
        "Initial Review",
        "Approval Decision",
        "Processing",
        "Completion",
    ],
    "urgent_return": [
        "Request Submitted",
        "Priority Review",
        "Approval Decision",
        "Expedited Processing",
        "Completion",
    ],
    "warranty_return": [
        "Request Submitted",
        "Warranty Verification",
        "Technical Inspection",
        "Approval Decision",
        "Replacement / Repair",
        "Completion",
    ],
}
DEFAULT_TEMPLATE = "standard_return"


async def get_return_request(db: AsyncSession, request_id: int) -> ReturnRequest:
    request = await db.get(ReturnRequest, request_id)
    if not request:
        raise HTTPException(status_code=404, detail="Return request not found")
    return request


async def get_workflow_steps(db: AsyncSession, request_id: int) -> List[ReturnWorkflowStep]:
    result = await db.execute(
        select(ReturnWorkflowStep)
        .where(
            ReturnWorkflowStep.return_request_id == request_id,
            ReturnWorkflowStep.is_active == "Y",
        )
        .order_by(ReturnWorkflowStep.createdate.asc(), ReturnWorkflowStep.step_number.asc())
    )
    return list(result.scalars().all())


async def get_workflow_step_by_step(db: AsyncSession, request_id: int, step_number: int) -> Optional[ReturnWorkflowStep]:
    result = await db.execute(
        select(ReturnWorkflowStep).where(
            ReturnWorkflowStep.return_request_id == request_id,
            ReturnWorkflowStep.step_number == step_number,
            ReturnWorkflowStep.is_active == "Y",
        )
    )
    return result.scalars().first()


def _new_step(request_id: int, step_number: int, step_name: str, status: str, user_id: int, **extra) -> ReturnWorkflowStep:
    now = datetime.utcnow()
    return ReturnWorkflowStep(
        return_request_id=request_id,
        step_number=step_number,
        step_name=step_name,
        status=status,
        completed_at=now if status in ("completed", "rejected") else None,
        completed_by=user_id if status in ("completed", "rejected") else None,
        is_active="Y",
        createdby=user_id,
        createdate=now,
        log_inst=1,
        **extra,
    )


async def create_initial_workflow(db: AsyncSession, request_id: int, user_id: int) -> List[ReturnWorkflowStep]:
    """Add the five opening steps; caller commits"""
    steps = [
        _new_step(request_id, number, name, status, user_id, action_required=action)
        for number, (name, status, action) in enumerate(INITIAL_STEPS, start=1)
    ]
    db.add_all(steps)
    await db.flush()
    return steps


async def add_workflow_step(
    db: AsyncSession,
    request_id: int,
    step_name: str,
    user_id: int,
    status: str = "pending",
    notes: str = None,
    action_required: str = None) -> ReturnWorkflowStep:
    existing = await get_workflow_steps(db, request_id)
    next_number = max((s.step_number for s in existing), default=0) + 1
    step = _new_step(request_id, next_number, step_name, status, user_id, notes=notes, action_required=action_required)
    db.add(step)
    await db.flush()
    return step


async def update_workflow_step(
    db: AsyncSession,
    request_id: int,
    step_id: int,
    user_id: int,
    status: Optional[str] = None,
    action_taken: Optional[str] = None,
    notes: Optional[str] = None,
    assigned_to: Optional[int] = None) -> ReturnWorkflowStep:
    step = await db.get(ReturnWorkflowStep, step_id)
    if not step or step.return_request_id != request_id:
        raise HTTPException(status_code=404, detail="Workflow step not found")
    if status is not None:
        if status not in STEP_STATUSES:
            raise HTTPException(
                status_code=400,
                detail=f"Invalid status. Must be one of: {', '.join(STEP_STATUSES)}",
            )
        step.status = status
        if status in ("completed", "rejected"):
            step.completed_at = datetime.utcnow()
            step.completed_by = user_id
    if action_taken is not None:
        step.action_taken = action_taken
    if notes is not None:
        step.notes = notes
    if assigned_to is not None:
        step.assigned_to = assigned_to
    touch(step, user_id)
    await db.flush()
    return step


async def execute_full_workflow_flow(
    db: AsyncSession,
    request_id: int,
    user_id: int,
    template_id: str = DEFAULT_TEMPLATE,
    resolution_notes: str = None) -> List[ReturnWorkflowStep]:
    """Replace the steps with a completed run of a template and close the request; commits"""
    request = await get_return_request(db, request_id)
    step_names = WORKFLOW_TEMPLATES.get(template_id)
    if step_names is None:
        logger.warning(f"Unknown workflow template {template_id}, using {DEFAULT_TEMPLATE}")
        template_id = DEFAULT_TEMPLATE
        step_names = WORKFLOW_TEMPLATES[DEFAULT_TEMPLATE]

    await db.execute(delete(ReturnWorkflowStep).where(ReturnWorkflowStep.return_request_id == request_id))
    steps = [
        _new_step(request_id, number, name, "completed", user_id, action_taken=f"Completed via {template_id}")
        for number, name in enumerate(step_names, start=1)
    ]
    db.add_all(steps)

    now = datetime.utcnow()
    request.status = "completed"
    request.approved_by = user_id
    request.approved_date = now
    request.resolution_notes = resolution_notes or f"Processed using {template_id.replace('_', ' ')} workflow"
    touch(request, user_id)

    await db.commit()
    logger.info(f"✅ Return request {request_id} completed with template {template_id}")
    return await get_workflow_steps(db, request_id)


async def reject_return_request(
    db: AsyncSession,
    request_id: int,
    user_id: int,
    reason: str = None) -> ReturnRequest:
    """Reject the current step and the request; commits"""
    request = await get_return_request(db, request_id)
    if request.status in ("completed", "rejected"):
        raise HTTPException(status_code=400, detail=f"Return request is already {request.status}")

    steps = await get_workflow_steps(db, request_id)
    now = datetime.utcnow()
    for step in steps:
        if step.status == "in_progress":
            step.status = "rejected"
            step.completed_at = now
            step.completed_by = user_id
            step.notes = reason
            touch(step, user_id)

    await add_workflow_step(
        db, request_id, "Request Rejected", user_id,
        status="rejected", notes=reason or "Request rejected",
    )

    request.status = "rejected"
    request.resolution_notes = reason or request.resolution_notes
    touch(request, user_id)
    await db.commit()
    logger.info(f"Return request {request_id} rejected by user {user_id}")
    return request
