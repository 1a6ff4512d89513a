"""
Driver state read model.

Combines the derived state of a work day's log with the day's material so
the driver app knows which button to show and whether to ask for load data.
"""

from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from haulage.app.core.config import settings
from haulage.app.domain.activity.activity_log import ActivityLog
from haulage.app.domain.activity.state_machine import (
    count_completed_loads, derive_state, progress, requires_load_data
)
from haulage.app.domain.activity.work_day_lifecycle import WorkDayLifecycle
from haulage.app.models.activity import Activity
from haulage.app.models.work_day import WorkDay
from haulage.app.schemas.activity import DriverStateResponse


def describe_state(records: List[Activity], material_type: str = None) -> DriverStateResponse:
    state = derive_state(records)
    return DriverStateResponse(
        current_step=state.current_step,
        load_number=state.load_number,
        suspension=state.suspension,
        can_advance=state.can_advance,
        requires_load_data=requires_load_data(
            state.current_step, material_type, settings.export_material_keyword
        ),
        progress=progress(state.current_step),
        completed_loads=count_completed_loads(records)
    )


async def get_driver_state(db: AsyncSession, work_day: WorkDay) -> DriverStateResponse:
    records = await ActivityLog.list_for_work_day(db, work_day.id)
    material_type = await WorkDayLifecycle.material_type(db, work_day)
    return describe_state(records, material_type)
