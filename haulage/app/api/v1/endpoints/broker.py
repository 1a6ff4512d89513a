"""
Broker API Endpoints.

Today's dashboard, the signed end-of-day tickets and the lease-hauler
companies dispatches are split across.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from haulage.app.db.session import get_db
from haulage.app.core.guards import require_broker
from haulage.app.domain.activity.activity_log import ActivityLog
from haulage.app.domain.activity.state_machine import active_records
from haulage.app.domain.activity.work_day_lifecycle import WorkDayLifecycle
from haulage.app.domain.dispatch.dispatch_board import DispatchBoard
from haulage.app.models.company import Company
from haulage.app.schemas.activity import ActivityResponse
from haulage.app.schemas.dashboard import DashboardStats, TruckStatusBoard
from haulage.app.schemas.dispatch import CompanyCreate, CompanyResponse
from haulage.app.schemas.work_day import WorkDayDetail, WorkDayResponse
from haulage.app.services.dashboard import DashboardService
from haulage.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/broker", tags=["Broker"])


@router.get("/work-days/completed", response_model=List[WorkDayDetail])
async def list_completed_work_days(
    current_user: dict = Depends(require_broker),
    db: AsyncSession = Depends(get_db)
):
    """Completed work days with their non-cancelled activity, newest first."""
    work_days = await WorkDayLifecycle.list_completed(db)

    details = []
    for work_day in work_days:
        records = await ActivityLog.list_for_work_day(db, work_day.id)
        details.append(WorkDayDetail(
            work_day=WorkDayResponse.model_validate(work_day),
            activities=[ActivityResponse.model_validate(r) for r in active_records(records)]
        ))
    return details


@router.get("/dashboard/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    job_id: Optional[int] = Query(None, description="Restrict to one job"),
    current_user: dict = Depends(require_broker),
    db: AsyncSession = Depends(get_db)
):
    """Today's loads, tonnage and cycle time."""
    return await DashboardService.get_stats(db, job_id=job_id)


@router.get("/dashboard/truck-status", response_model=TruckStatusBoard)
async def get_truck_status(
    job_id: Optional[int] = Query(None, description="Restrict to one job"),
    current_user: dict = Depends(require_broker),
    db: AsyncSession = Depends(get_db)
):
    """Trucks grouped by where they are in the haul cycle."""
    return await DashboardService.get_truck_status(db, job_id=job_id)


# --- Lease haulers ---

@router.get("/lease-hauler-companies", response_model=List[CompanyResponse])
async def list_lease_hauler_companies(
    current_user: dict = Depends(require_broker),
    db: AsyncSession = Depends(get_db)
):
    """Companies a dispatch can be assigned to."""
    companies = await DispatchBoard.list_lease_haulers(db)
    return [CompanyResponse.model_validate(c) for c in companies]


@router.post(
    "/lease-hauler-companies",
    response_model=CompanyResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_lease_hauler_company(
    company_data: CompanyCreate,
    current_user: dict = Depends(require_broker),
    db: AsyncSession = Depends(get_db)
):
    company = Company(**company_data.model_dump(), is_lease_hauler=True)
    db.add(company)
    await db.commit()
    await db.refresh(company)

    await log_event(
        db=db,
        action=AuditAction.COMPANY_CREATED,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        metadata={"company_id": company.id}
    )
    return CompanyResponse.model_validate(company)
