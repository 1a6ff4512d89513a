"""
Activity Log (Domain Logic).

Stores and retrieves a work day's activity records. Append-only apart from
the cancellation flag; nothing is ever physically removed.
"""

import asyncio
import logging
import weakref
from datetime import datetime, timezone
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from haulage.app.core.exceptions import NotFoundError, NothingToRewindError, ValidationError
from haulage.app.domain.activity.state_machine import as_utc, latest_record
from haulage.app.models.activity import Activity
from haulage.app.models.activity_enums import WorkDayStatus
from haulage.app.models.work_day import WorkDay

logger = logging.getLogger("haulage.activity")

REQUIRED_FIELDS = ("work_day_id", "load_number", "activity_type", "timestamp")

# Held only while an append/rewind is in flight for that work day
_work_day_locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()


def work_day_lock(work_day_id: int) -> asyncio.Lock:
    """
    Per-work-day mutex serialising "append, then re-derive" sequences.

    Single-process only; concurrent appends from several workers can
    still interleave.
    """
    lock = _work_day_locks.get(work_day_id)
    if lock is None:
        lock = asyncio.Lock()
        _work_day_locks[work_day_id] = lock
    return lock


class ActivityLog:

    @staticmethod
    async def _open_work_day(db: AsyncSession, work_day_id: int, action: str) -> WorkDay:
        work_day = await db.get(WorkDay, work_day_id)
        if not work_day:
            raise NotFoundError("Work day", work_day_id)

        # Signed-off days are frozen
        if work_day.status != WorkDayStatus.ACTIVE:
            raise ValidationError(
                f"Cannot {action} a {work_day.status.value} work day",
                details={"work_day_id": work_day.id}
            )
        return work_day

    @staticmethod
    async def append(db: AsyncSession, record: Activity) -> Activity:
        """
        Store a new activity record.

        Only required-field presence is checked here. Sequencing rules live
        in the state machine and the caller.

        Raises:
            ValidationError: A required field is missing, or the work day
                is already completed.
            NotFoundError: The work day does not exist.
        """
        missing = [name for name in REQUIRED_FIELDS if getattr(record, name) is None]
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                details={"missing": missing}
            )

        if record.load_number < 1:
            raise ValidationError(
                "load_number must be a positive integer",
                details={"load_number": record.load_number}
            )

        await ActivityLog._open_work_day(db, record.work_day_id, "log activities on")

        record.id = None
        record.timestamp = as_utc(record.timestamp)
        record.cancelled = False
        record.cancelled_at = None

        db.add(record)
        await db.commit()
        await db.refresh(record)

        logger.info(
            "Activity logged",
            extra={
                "work_day_id": record.work_day_id,
                "activity_id": record.id,
                "activity_type": record.activity_type.value,
                "load_number": record.load_number,
            }
        )
        return record

    @staticmethod
    async def get(db: AsyncSession, activity_id: int) -> Activity:
        activity = await db.get(Activity, activity_id)
        if not activity:
            raise NotFoundError("Activity", activity_id)
        return activity

    @staticmethod
    async def cancel(db: AsyncSession, activity_id: int) -> Activity:
        """
        Flag a record as cancelled.

        Idempotent: cancelling twice succeeds and refreshes `cancelled_at`.

        Raises:
            NotFoundError: Unknown activity id.
            ValidationError: The work day is already completed.
        """
        activity = await ActivityLog.get(db, activity_id)
        await ActivityLog._open_work_day(db, activity.work_day_id, "cancel activities on")

        activity.cancelled = True
        activity.cancelled_at = datetime.now(timezone.utc)

        await db.commit()
        await db.refresh(activity)

        logger.info(
            "Activity cancelled",
            extra={"work_day_id": activity.work_day_id, "activity_id": activity.id}
        )
        return activity

    @staticmethod
    async def list_for_work_day(db: AsyncSession, work_day_id: int) -> List[Activity]:
        """All records for the day, cancelled ones included, in storage order."""
        result = await db.execute(
            select(Activity).where(Activity.work_day_id == work_day_id)
        )
        return list(result.scalars().all())

    @staticmethod
    async def rewind(db: AsyncSession, work_day_id: int) -> Activity:
        """
        Cancel the most recent non-cancelled record of the day.

        Raises:
            NotFoundError: The work day does not exist.
            ValidationError: The work day is already completed.
            NothingToRewindError: No cancellable record exists.
        """
        await ActivityLog._open_work_day(db, work_day_id, "rewind")

        records = await ActivityLog.list_for_work_day(db, work_day_id)
        last = latest_record(records)
        if last is None:
            raise NothingToRewindError(work_day_id)

        return await ActivityLog.cancel(db, last.id)
