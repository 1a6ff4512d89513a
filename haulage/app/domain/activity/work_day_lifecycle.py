"""
Work Day Lifecycle (Domain Logic).

active -> completed. A day is opened by the driver at daily setup and closed
by the signed end-of-day ticket. There is no cancellation path; an abandoned
day stays active.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from haulage.app.core.exceptions import ConflictError, NotFoundError, ValidationError
from haulage.app.domain.activity.activity_log import ActivityLog
from haulage.app.domain.activity.state_machine import count_completed_loads
from haulage.app.models.activity_enums import WorkDayStatus
from haulage.app.models.job import Job
from haulage.app.models.location import Location
from haulage.app.models.material import Material
from haulage.app.models.truck import Truck
from haulage.app.models.work_day import WorkDay

logger = logging.getLogger("haulage.work_day")


class WorkDayLifecycle:

    @staticmethod
    async def get(db: AsyncSession, work_day_id: int) -> WorkDay:
        work_day = await db.get(WorkDay, work_day_id)
        if not work_day:
            raise NotFoundError("Work day", work_day_id)
        return work_day

    @staticmethod
    async def get_active(db: AsyncSession, driver_id: int) -> Optional[WorkDay]:
        """The driver's active work day, if any."""
        result = await db.execute(
            select(WorkDay).where(
                WorkDay.driver_id == driver_id,
                WorkDay.status == WorkDayStatus.ACTIVE
            ).order_by(WorkDay.id.desc()).limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def start(
        db: AsyncSession,
        driver_id: int,
        truck_id: int,
        job_id: int,
        material_id: int,
        source_location_id: int,
        destination_location_id: int,
        work_date: datetime,
    ) -> WorkDay:
        """
        Open a work day for the driver.

        Raises:
            ConflictError: The driver already has an active work day.
            NotFoundError: A referenced truck, job, material or location
                does not exist.
        """
        existing = await WorkDayLifecycle.get_active(db, driver_id)
        if existing:
            raise ConflictError(
                "You already have an active work day. Complete it before starting another.",
                details={"work_day_id": existing.id}
            )

        references = (
            (Truck, "Truck", truck_id),
            (Job, "Job", job_id),
            (Material, "Material", material_id),
            (Location, "Source location", source_location_id),
            (Location, "Destination location", destination_location_id),
        )
        for model, label, ref_id in references:
            if await db.get(model, ref_id) is None:
                raise NotFoundError(label, ref_id)

        work_day = WorkDay(
            driver_id=driver_id,
            truck_id=truck_id,
            job_id=job_id,
            material_id=material_id,
            source_location_id=source_location_id,
            destination_location_id=destination_location_id,
            work_date=work_date,
            status=WorkDayStatus.ACTIVE,
            start_time=datetime.now(timezone.utc),
            total_loads=0,
        )

        db.add(work_day)
        await db.commit()
        await db.refresh(work_day)

        logger.info(
            "Work day started",
            extra={"work_day_id": work_day.id, "driver_id": driver_id, "truck_id": truck_id}
        )
        return work_day

    @staticmethod
    async def complete(
        db: AsyncSession,
        work_day_id: int,
        driver_signature: Optional[str],
        operator_name: Optional[str],
        operator_signature: Optional[str],
    ) -> WorkDay:
        """
        Close the day with the signed end-of-day ticket.

        total_loads counts non-cancelled dumped_material records.

        Raises:
            ValidationError: Any sign-off field is empty or whitespace.
            NotFoundError: Unknown work day.
            ConflictError: The day is already completed.
        """
        sign_off = {
            "driver_signature": driver_signature,
            "operator_name": operator_name,
            "operator_signature": operator_signature,
        }
        missing = [name for name, value in sign_off.items() if not value or not value.strip()]
        if missing:
            raise ValidationError(
                "Driver signature, operator name and operator signature are all required",
                details={"missing": missing}
            )

        work_day = await WorkDayLifecycle.get(db, work_day_id)
        if work_day.status == WorkDayStatus.COMPLETED:
            raise ConflictError(
                "Work day is already completed",
                details={"work_day_id": work_day.id}
            )

        records = await ActivityLog.list_for_work_day(db, work_day.id)

        work_day.total_loads = count_completed_loads(records)
        work_day.driver_signature = driver_signature
        work_day.operator_name = operator_name.strip()
        work_day.operator_signature = operator_signature
        work_day.end_time = datetime.now(timezone.utc)
        work_day.status = WorkDayStatus.COMPLETED

        await db.commit()
        await db.refresh(work_day)

        logger.info(
            "Work day completed",
            extra={"work_day_id": work_day.id, "total_loads": work_day.total_loads}
        )
        return work_day

    @staticmethod
    async def list_completed(db: AsyncSession) -> List[WorkDay]:
        """Completed work days, most recent first (broker end-of-day view)."""
        result = await db.execute(
            select(WorkDay).where(
                WorkDay.status == WorkDayStatus.COMPLETED
            ).order_by(WorkDay.end_time.desc(), WorkDay.id.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def material_type(db: AsyncSession, work_day: WorkDay) -> Optional[str]:
        material = await db.get(Material, work_day.material_id)
        return material.type if material else None
