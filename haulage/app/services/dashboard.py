"""
Broker Dashboard Service.

Aggregates today's non-cancelled activity into load counts, tonnage and a
per-truck status board. READ-ONLY.
"""

from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from haulage.app.domain.activity.state_machine import (
    Suspended, active_records, as_utc, derive_state, format_cycle_time
)
from haulage.app.models.activity import Activity
from haulage.app.models.activity_enums import ActivityType, WorkDayStatus
from haulage.app.models.truck import Truck
from haulage.app.models.user import User
from haulage.app.models.work_day import WorkDay
from haulage.app.schemas.dashboard import (
    DashboardStats, TruckStatusBoard, TruckStatusBucket, TruckStatusEntry
)

ACTIVE_WINDOW = timedelta(hours=2)

# Bucket by the step the driver is expected to log next
STEP_BUCKETS = {
    ActivityType.LOADED_WITH_MATERIAL: "at_load_site",
    ActivityType.ARRIVED_AT_DUMP_SITE: "in_transit",
    ActivityType.DUMPED_MATERIAL: "at_dump_site",
    ActivityType.ARRIVED_AT_LOAD_SITE: "returning",
}

SUSPENSION_BUCKETS = {
    ActivityType.BREAK: "on_break",
    ActivityType.BREAKDOWN: "broken_down",
}


def start_of_day(now: datetime) -> datetime:
    now = as_utc(now)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


class DashboardService:

    @staticmethod
    async def _todays_rows(db: AsyncSession, job_id: Optional[int], now: datetime):
        query = select(Activity, WorkDay, Truck, User).join(
            WorkDay, Activity.work_day_id == WorkDay.id
        ).join(
            Truck, WorkDay.truck_id == Truck.id
        ).join(
            User, WorkDay.driver_id == User.id
        ).where(
            Activity.cancelled == False,  # noqa: E712
            Activity.timestamp >= start_of_day(now)
        )

        if job_id:
            query = query.where(WorkDay.job_id == job_id)

        result = await db.execute(query)
        return result.all()

    @staticmethod
    async def get_stats(
        db: AsyncSession,
        job_id: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> DashboardStats:
        """Today's load and truck counts."""
        now = as_utc(now or datetime.now(timezone.utc))
        rows = await DashboardService._todays_rows(db, job_id, now)

        recent_cutoff = now - ACTIVE_WINDOW
        trucks_active = {
            truck.id for activity, _, truck, _ in rows
            if as_utc(activity.timestamp) > recent_cutoff
        }
        drivers_active = {work_day.driver_id for _, work_day, _, _ in rows}

        # One group per haul cycle
        loads: Dict[tuple, List[Activity]] = defaultdict(list)
        for activity, _, _, _ in rows:
            loads[(activity.work_day_id, activity.load_number)].append(activity)

        loads_in_transit = loads_delivered = 0
        tons_in_transit = tons_delivered = 0.0
        cycle_times: List[float] = []

        for group in loads.values():
            types = {a.activity_type for a in group}
            delivered = ActivityType.DUMPED_MATERIAL in types

            if delivered:
                ordered = active_records(group)
                span = as_utc(ordered[-1].timestamp) - as_utc(ordered[0].timestamp)
                cycle_times.append(span.total_seconds() / 60)

            if ActivityType.LOADED_WITH_MATERIAL not in types:
                continue

            loaded = next(a for a in group if a.activity_type == ActivityType.LOADED_WITH_MATERIAL)
            weight = loaded.net_weight or 0.0
            if delivered:
                loads_delivered += 1
                tons_delivered += weight
            else:
                loads_in_transit += 1
                tons_in_transit += weight

        avg_minutes = round(sum(cycle_times) / len(cycle_times)) if cycle_times else None

        eod_query = select(func.count(WorkDay.id)).where(
            WorkDay.status == WorkDayStatus.COMPLETED,
            WorkDay.end_time >= start_of_day(now)
        )
        if job_id:
            eod_query = eod_query.where(WorkDay.job_id == job_id)
        trucks_eod = (await db.execute(eod_query)).scalar() or 0

        return DashboardStats(
            trucks_active=len(trucks_active),
            loads_in_transit=loads_in_transit,
            loads_delivered=loads_delivered,
            tons_in_transit=round(tons_in_transit, 2),
            tons_delivered=round(tons_delivered, 2),
            avg_cycle_time_minutes=avg_minutes,
            avg_cycle_time=format_cycle_time(avg_minutes) if avg_minutes is not None else "--",
            total_activities=len(rows),
            drivers_active=len(drivers_active),
            trucks_eod=trucks_eod
        )

    @staticmethod
    async def get_truck_status(
        db: AsyncSession,
        job_id: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> TruckStatusBoard:
        """
        Where every truck with activity today currently is.

        Today's rows only pick the work days; each day's state is derived
        from its whole log, so a cycle started before UTC midnight keeps its
        step and load number.
        """
        now = as_utc(now or datetime.now(timezone.utc))
        rows = await DashboardService._todays_rows(db, job_id, now)

        days: Dict[int, dict] = {}
        for _, work_day, truck, driver in rows:
            days.setdefault(work_day.id, {
                "work_day": work_day, "truck": truck, "driver": driver, "activities": []
            })

        if days:
            result = await db.execute(
                select(Activity).where(Activity.work_day_id.in_(list(days)))
            )
            for activity in result.scalars().all():
                days[activity.work_day_id]["activities"].append(activity)

        buckets: Dict[str, List[TruckStatusEntry]] = defaultdict(list)
        for entry in days.values():
            work_day = entry["work_day"]
            state = derive_state(entry["activities"])
            latest = active_records(entry["activities"])[-1]

            if work_day.status == WorkDayStatus.COMPLETED:
                bucket = "completed"
            elif isinstance(state, Suspended):
                bucket = SUSPENSION_BUCKETS[state.kind]
            else:
                bucket = STEP_BUCKETS[state.current_step]

            driver = entry["driver"]
            buckets[bucket].append(TruckStatusEntry(
                truck_id=entry["truck"].id,
                truck_number=entry["truck"].number,
                driver=driver.full_name or driver.username,
                work_day_id=work_day.id,
                load_number=state.load_number,
                last_activity_type=latest.activity_type.value,
                last_activity=latest.timestamp
            ))

        return TruckStatusBoard(**{
            name: TruckStatusBucket(count=len(buckets[name]), trucks=buckets[name])
            for name in TruckStatusBoard.model_fields
        })
