"""
Driver Work Day API Endpoints.

Daily setup, current state and the signed end-of-day ticket.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from haulage.app.db.session import get_db
from haulage.app.core.guards import require_driver, enforce_work_day_owner
from haulage.app.domain.activity.work_day_lifecycle import WorkDayLifecycle
from haulage.app.schemas.activity import DriverStateResponse
from haulage.app.schemas.work_day import (
    WorkDayCreate, WorkDayComplete, WorkDayResponse,
    WorkDayCompleteResponse, WorkDayWithState
)
from haulage.app.services.audit import log_event, AuditAction
from haulage.app.services.driver_state import get_driver_state

router = APIRouter(prefix="/driver", tags=["Driver - Work Days"])


@router.post("/work-days", response_model=WorkDayWithState, status_code=status.HTTP_201_CREATED)
async def start_work_day(
    setup: WorkDayCreate,
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    """
    Start a work day (Driver only).

    Validates:
    - No other active work day for the driver
    - Truck, job, material and both locations exist
    """
    work_day = await WorkDayLifecycle.start(
        db,
        driver_id=current_user["user_id"],
        truck_id=setup.truck_id,
        job_id=setup.job_id,
        material_id=setup.material_id,
        source_location_id=setup.source_location_id,
        destination_location_id=setup.destination_location_id,
        work_date=setup.work_date,
    )

    await log_event(
        db=db,
        action=AuditAction.WORK_DAY_STARTED,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        metadata={"work_day_id": work_day.id, "truck_id": work_day.truck_id}
    )

    return WorkDayWithState(
        work_day=WorkDayResponse.model_validate(work_day),
        state=await get_driver_state(db, work_day)
    )


@router.get("/work-days/active", response_model=Optional[WorkDayWithState])
async def get_active_work_day(
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    """The driver's active work day with its derived state, or null."""
    work_day = await WorkDayLifecycle.get_active(db, current_user["user_id"])
    if not work_day:
        return None

    return WorkDayWithState(
        work_day=WorkDayResponse.model_validate(work_day),
        state=await get_driver_state(db, work_day)
    )


@router.get("/work-days/{work_day_id}/state", response_model=DriverStateResponse)
async def get_work_day_state(
    work_day_id: int = Path(..., description="Work day ID"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    """Current step, load number and suspension, derived from the log."""
    work_day = await WorkDayLifecycle.get(db, work_day_id)
    enforce_work_day_owner(work_day, current_user)

    return await get_driver_state(db, work_day)


@router.post("/work-days/{work_day_id}/complete", response_model=WorkDayCompleteResponse)
async def complete_work_day(
    sign_off: WorkDayComplete,
    work_day_id: int = Path(..., description="Work day ID"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    """
    Close the day with driver and operator signatures.

    total_loads is the number of non-cancelled dumps.
    """
    work_day = await WorkDayLifecycle.get(db, work_day_id)
    enforce_work_day_owner(work_day, current_user)

    work_day = await WorkDayLifecycle.complete(
        db,
        work_day_id,
        driver_signature=sign_off.driver_signature,
        operator_name=sign_off.operator_name,
        operator_signature=sign_off.operator_signature,
    )

    await log_event(
        db=db,
        action=AuditAction.WORK_DAY_COMPLETED,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        metadata={"work_day_id": work_day.id, "total_loads": work_day.total_loads}
    )

    return WorkDayCompleteResponse(
        work_day_id=work_day.id,
        status=work_day.status,
        end_time=work_day.end_time,
        total_loads=work_day.total_loads
    )
