"""
Driver Activity API Endpoints.

Drivers log GPS-stamped cycle steps, breaks and breakdowns. The current
state is re-derived from the log after every change.
"""

from fastapi import APIRouter, Depends, Path, status

from sqlalchemy.ext.asyncio import AsyncSession

from haulage.app.db.session import get_db
from haulage.app.core.config import settings
from haulage.app.core.exceptions import ValidationError
from haulage.app.core.guards import require_driver, enforce_work_day_owner
from haulage.app.core.redis_client import get_redis
from haulage.app.domain.activity.activity_log import ActivityLog, work_day_lock
from haulage.app.domain.activity.state_machine import as_utc, derive_state, requires_load_data
from haulage.app.domain.activity.work_day_lifecycle import WorkDayLifecycle
from haulage.app.models.activity import Activity
from haulage.app.schemas.activity import (
    ActivityCreate, ActivityResponse, ActivityLogResponse, ActivityListResponse
)
from haulage.app.services.audit import log_event, AuditAction
from haulage.app.services.driver_state import describe_state, get_driver_state
from haulage.app.services.throttle import acquire_action_slot, release_action_slot

router = APIRouter(prefix="/driver", tags=["Driver - Activities"])


def check_load_data(payload: ActivityCreate, material_type: str) -> None:
    """
    Ticket and weight gate for loaded_with_material.

    Raises:
        ValidationError: Ticket (or explicit no-ticket) or net weight missing.
    """
    if not requires_load_data(
        payload.activity_type, material_type, settings.export_material_keyword
    ):
        return

    missing = []
    if not (payload.ticket_number and payload.ticket_number.strip()) and not payload.no_ticket:
        missing.append("ticket_number")
    if payload.net_weight is None:
        missing.append("net_weight")

    if missing:
        raise ValidationError(
            "Ticket number (or no_ticket) and net weight are required when loading",
            details={"missing": missing}
        )


@router.post(
    "/work-days/{work_day_id}/activities",
    response_model=ActivityLogResponse,
    status_code=status.HTTP_201_CREATED
)
async def log_activity(
    payload: ActivityCreate,
    work_day_id: int = Path(..., description="Work day ID"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db),
    redis=Depends(get_redis)
):
    """
    Log a driver action (Driver only).

    Validates:
    - Driver owns the work day and it is active
    - Not inside the cooldown window of the previous action
    - Ticket and net weight on loaded_with_material (non-export material)

    The load number defaults to the one derived from the log.
    """
    work_day = await WorkDayLifecycle.get(db, work_day_id)
    enforce_work_day_owner(work_day, current_user)

    await acquire_action_slot(redis, work_day_id)
    try:
        async with work_day_lock(work_day_id):
            material_type = await WorkDayLifecycle.material_type(db, work_day)
            check_load_data(payload, material_type)

            records = await ActivityLog.list_for_work_day(db, work_day_id)
            load_number = payload.load_number or derive_state(records).load_number

            activity = await ActivityLog.append(db, Activity(
                work_day_id=work_day_id,
                load_number=load_number,
                activity_type=payload.activity_type,
                timestamp=payload.timestamp,
                latitude=payload.latitude,
                longitude=payload.longitude,
                ticket_number=None if payload.no_ticket else payload.ticket_number,
                net_weight=payload.net_weight,
                notes=payload.notes,
            ))

            state = describe_state(records + [activity], material_type)
    except Exception:
        await release_action_slot(redis, work_day_id)
        raise

    await log_event(
        db=db,
        action=AuditAction.ACTIVITY_LOGGED,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        metadata={
            "work_day_id": work_day_id,
            "activity_id": activity.id,
            "activity_type": activity.activity_type.value,
            "load_number": activity.load_number,
            "latitude": activity.latitude,
            "longitude": activity.longitude,
        }
    )

    return ActivityLogResponse(
        activity=ActivityResponse.model_validate(activity),
        state=state
    )


@router.get("/work-days/{work_day_id}/activities", response_model=ActivityListResponse)
async def list_activities(
    work_day_id: int = Path(..., description="Work day ID"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    """All records of the day, cancelled ones included, oldest first."""
    work_day = await WorkDayLifecycle.get(db, work_day_id)
    enforce_work_day_owner(work_day, current_user)

    records = await ActivityLog.list_for_work_day(db, work_day_id)
    records.sort(key=lambda r: (as_utc(r.timestamp), r.id))

    return ActivityListResponse(
        work_day_id=work_day_id,
        activities=[ActivityResponse.model_validate(r) for r in records],
        total=len(records)
    )


@router.patch("/activities/{activity_id}/cancel", response_model=ActivityLogResponse)
async def cancel_activity(
    activity_id: int = Path(..., description="Activity ID"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    """Cancel one record. Cancelling twice is allowed."""
    activity = await ActivityLog.get(db, activity_id)
    work_day = await WorkDayLifecycle.get(db, activity.work_day_id)
    enforce_work_day_owner(work_day, current_user)

    async with work_day_lock(work_day.id):
        activity = await ActivityLog.cancel(db, activity_id)

    await log_event(
        db=db,
        action=AuditAction.ACTIVITY_CANCELLED,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        metadata={"work_day_id": work_day.id, "activity_id": activity.id}
    )

    return ActivityLogResponse(
        activity=ActivityResponse.model_validate(activity),
        state=await get_driver_state(db, work_day)
    )


@router.post("/work-days/{work_day_id}/rewind", response_model=ActivityLogResponse)
async def rewind_activity(
    work_day_id: int = Path(..., description="Work day ID"),
    current_user: dict = Depends(require_driver),
    db: AsyncSession = Depends(get_db)
):
    """
    Undo the most recent action.

    The record is cancelled, not deleted. Returns the cancelled record and
    the state derived without it.
    """
    work_day = await WorkDayLifecycle.get(db, work_day_id)
    enforce_work_day_owner(work_day, current_user)

    async with work_day_lock(work_day_id):
        activity = await ActivityLog.rewind(db, work_day_id)

    await log_event(
        db=db,
        action=AuditAction.ACTIVITY_REWOUND,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        metadata={
            "work_day_id": work_day_id,
            "activity_id": activity.id,
            "activity_type": activity.activity_type.value,
        }
    )

    return ActivityLogResponse(
        activity=ActivityResponse.model_validate(activity),
        state=await get_driver_state(db, work_day)
    )
