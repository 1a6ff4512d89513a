"""
Dispatch API Endpoints.

Brokers create dispatches and split them across lease-hauler companies.
"""

from typing import List
from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from haulage.app.db.session import get_db
from haulage.app.core.guards import require_broker, enforce_dispatch_owner
from haulage.app.domain.dispatch.dispatch_board import DispatchBoard, unassigned_trucks
from haulage.app.models.dispatch import Dispatch, CompanyDispatchAssignment
from haulage.app.models.enums import UserRole
from haulage.app.schemas.dispatch import (
    AssignmentCreate, AssignmentResponse, DispatchCreate, DispatchDetail, DispatchResponse
)
from haulage.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/dispatches", tags=["Dispatches"])


def _detail(dispatch: Dispatch, assignments: List[CompanyDispatchAssignment]) -> DispatchDetail:
    unassigned = unassigned_trucks(dispatch, assignments)
    return DispatchDetail(
        dispatch=DispatchResponse.model_validate(dispatch),
        assignments=[AssignmentResponse.model_validate(a) for a in assignments],
        trucks_assigned=dispatch.quantity - unassigned,
        trucks_unassigned=unassigned
    )


@router.get("", response_model=List[DispatchDetail])
async def list_dispatches(
    current_user: dict = Depends(require_broker),
    db: AsyncSession = Depends(get_db)
):
    """The broker's dispatches, newest first. Admins see every broker's."""
    broker_id = None if current_user["role"] == UserRole.ADMIN.value else current_user["user_id"]
    dispatches = await DispatchBoard.list_for_broker(db, broker_id)
    grouped = await DispatchBoard.assignments_for(db, [d.id for d in dispatches])
    return [_detail(d, grouped[d.id]) for d in dispatches]


@router.post("", response_model=DispatchDetail, status_code=status.HTTP_201_CREATED)
async def create_dispatch(
    payload: DispatchCreate,
    current_user: dict = Depends(require_broker),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a dispatch (Broker only).

    Optional `assignments` split the requested trucks across lease haulers
    up front; the dispatch then starts as `assigned_to_lh`.
    """
    dispatch = await DispatchBoard.create(
        db,
        broker_id=current_user["user_id"],
        fields=payload.model_dump(exclude={"assignments"}),
        assignments=[a.model_dump() for a in payload.assignments]
    )

    await log_event(
        db=db,
        action=AuditAction.DISPATCH_CREATED,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        metadata={"dispatch_id": dispatch.id, "quantity": dispatch.quantity}
    )

    grouped = await DispatchBoard.assignments_for(db, [dispatch.id])
    return _detail(dispatch, grouped[dispatch.id])


@router.get("/{dispatch_id}", response_model=DispatchDetail)
async def get_dispatch(
    dispatch_id: int = Path(..., description="Dispatch ID"),
    current_user: dict = Depends(require_broker),
    db: AsyncSession = Depends(get_db)
):
    dispatch = await DispatchBoard.get(db, dispatch_id)
    enforce_dispatch_owner(dispatch, current_user)

    grouped = await DispatchBoard.assignments_for(db, [dispatch.id])
    return _detail(dispatch, grouped[dispatch.id])


@router.post(
    "/{dispatch_id}/assign",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED
)
async def assign_dispatch(
    payload: AssignmentCreate,
    dispatch_id: int = Path(..., description="Dispatch ID"),
    current_user: dict = Depends(require_broker),
    db: AsyncSession = Depends(get_db)
):
    """
    Hand part of a dispatch to a lease-hauler company.

    Moves a `created` dispatch to `assigned_to_lh`.
    """
    dispatch = await DispatchBoard.get(db, dispatch_id)
    enforce_dispatch_owner(dispatch, current_user)

    assignment = await DispatchBoard.assign(
        db,
        dispatch_id=dispatch.id,
        company_id=payload.company_id,
        quantity=payload.quantity,
        assigned_by=current_user["user_id"]
    )

    await log_event(
        db=db,
        action=AuditAction.DISPATCH_ASSIGNED,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        metadata={
            "dispatch_id": dispatch.id,
            "company_id": assignment.company_id,
            "quantity": assignment.quantity,
        }
    )

    return AssignmentResponse.model_validate(assignment)
