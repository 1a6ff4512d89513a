"""
Driver Activity State Machine.

Derives the driver's current step and load number from the work day's
activity log. Nothing here is persisted: the state is a fold over the
non-cancelled records sorted by (timestamp, id).

Forward cycle (closed, wraps at the end):
    arrived_at_load_site -> loaded_with_material -> arrived_at_dump_site
    -> dumped_material -> arrived_at_load_site (next load)

Break and breakdown suspend the cycle; a `driving` record resumes it at
the step that was current when the suspension began.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

from haulage.app.models.activity_enums import ActivityType


CYCLE: List[ActivityType] = [
    ActivityType.ARRIVED_AT_LOAD_SITE,
    ActivityType.LOADED_WITH_MATERIAL,
    ActivityType.ARRIVED_AT_DUMP_SITE,
    ActivityType.DUMPED_MATERIAL,
]

SUSPENSIONS = (ActivityType.BREAK, ActivityType.BREAKDOWN)

NEXT_STEP = {
    ActivityType.ARRIVED_AT_LOAD_SITE: ActivityType.LOADED_WITH_MATERIAL,
    ActivityType.LOADED_WITH_MATERIAL: ActivityType.ARRIVED_AT_DUMP_SITE,
    ActivityType.ARRIVED_AT_DUMP_SITE: ActivityType.DUMPED_MATERIAL,
    ActivityType.DUMPED_MATERIAL: ActivityType.ARRIVED_AT_LOAD_SITE,
}

DEFAULT_STEP = ActivityType.ARRIVED_AT_LOAD_SITE


def next_step(step: ActivityType) -> ActivityType:
    """Cycle step that follows `step`."""
    return NEXT_STEP[ActivityType(step)]


def is_cycle_step(activity_type: ActivityType) -> bool:
    return ActivityType(activity_type) in NEXT_STEP


def is_suspension(activity_type: ActivityType) -> bool:
    return ActivityType(activity_type) in SUSPENSIONS


@dataclass(frozen=True)
class Cycling:
    """Driver is working through the load cycle."""
    step: ActivityType
    load_number: int

    @property
    def current_step(self) -> ActivityType:
        return self.step

    @property
    def suspension(self) -> Optional[ActivityType]:
        return None

    @property
    def can_advance(self) -> bool:
        return True


@dataclass(frozen=True)
class Suspended:
    """Driver is on break or broken down; the cycle is frozen."""
    kind: ActivityType
    frozen_step: ActivityType
    frozen_load_number: int

    @property
    def current_step(self) -> ActivityType:
        return self.frozen_step

    @property
    def load_number(self) -> int:
        return self.frozen_load_number

    @property
    def suspension(self) -> Optional[ActivityType]:
        return self.kind

    @property
    def can_advance(self) -> bool:
        return False


DriverState = Union[Cycling, Suspended]

INITIAL_STATE = Cycling(step=DEFAULT_STEP, load_number=1)


def suspend(state: DriverState, kind: ActivityType) -> Suspended:
    """Enter break/breakdown, freezing the current step and load number."""
    kind = ActivityType(kind)
    if kind not in SUSPENSIONS:
        raise ValueError(f"{kind.value} is not a suspension")
    return Suspended(
        kind=kind,
        frozen_step=state.current_step,
        frozen_load_number=state.load_number,
    )


def resume(state: DriverState, resume_point: Optional[Cycling] = None) -> Cycling:
    """
    Leave a suspension via a `driving` record.

    A `driving` record while already cycling re-resumes at `resume_point`,
    the state produced by the most recent resume in the log. With no earlier
    suspension it is malformed history and resolves to
    `arrived_at_load_site` with the load number unchanged.
    """
    if isinstance(state, Suspended):
        return Cycling(step=state.frozen_step, load_number=state.frozen_load_number)
    if resume_point is not None:
        return resume_point
    return Cycling(step=DEFAULT_STEP, load_number=state.load_number)


def advance(state: DriverState, activity_type: ActivityType) -> Cycling:
    """Apply a cycle record. A completed dump starts the next load."""
    activity_type = ActivityType(activity_type)
    load_number = state.load_number
    if activity_type == ActivityType.DUMPED_MATERIAL:
        load_number += 1
    return Cycling(step=next_step(activity_type), load_number=load_number)


def transition(
    state: DriverState,
    activity_type: ActivityType,
    resume_point: Optional[Cycling] = None,
) -> DriverState:
    """Single reducer step over one activity record."""
    activity_type = ActivityType(activity_type)
    if is_suspension(activity_type):
        return suspend(state, activity_type)
    if activity_type == ActivityType.DRIVING:
        return resume(state, resume_point)
    return advance(state, activity_type)


def as_utc(value: datetime) -> datetime:
    """Read naive timestamps as UTC so mixed sources sort together."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _order_key(record):
    record_id = record.id if record.id is not None else float("inf")
    return (as_utc(record.timestamp), record_id)


def active_records(records: Iterable) -> list:
    """Non-cancelled records sorted by (timestamp, id)."""
    return sorted((r for r in records if not r.cancelled), key=_order_key)


def latest_record(records: Iterable):
    """Most recent non-cancelled record, or None."""
    ordered = active_records(records)
    return ordered[-1] if ordered else None


def derive_state(records: Iterable) -> DriverState:
    """
    Derive the driver's state from a work day's activity log.

    Accepts any records exposing `id`, `activity_type`, `timestamp` and
    `cancelled`. Cancelled records are ignored. Never raises on a
    well-typed log.

    The fold also remembers where the last suspension was resumed, so a
    repeated `driving` record (a double-tapped "end break") lands on the
    same step instead of restarting the load.
    """
    state: DriverState = INITIAL_STATE
    resume_point: Optional[Cycling] = None
    for record in active_records(records):
        was_suspended = isinstance(state, Suspended)
        state = transition(state, record.activity_type, resume_point)
        if was_suspended and ActivityType(record.activity_type) == ActivityType.DRIVING:
            resume_point = state
    return state


def count_completed_loads(records: Iterable) -> int:
    """Non-cancelled dumped_material records."""
    return sum(
        1 for r in records
        if not r.cancelled and ActivityType(r.activity_type) == ActivityType.DUMPED_MATERIAL
    )


def is_export_material(material_type: Optional[str], keyword: str = "export") -> bool:
    return bool(material_type) and keyword.lower() in material_type.lower()


def requires_load_data(
    step: ActivityType,
    material_type: Optional[str],
    keyword: str = "export",
) -> bool:
    """
    Whether ticket number and net weight must be collected before logging `step`.

    Export materials bypass the collection step entirely.
    """
    if ActivityType(step) != ActivityType.LOADED_WITH_MATERIAL:
        return False
    return not is_export_material(material_type, keyword)


def is_valid_transition(from_step: ActivityType, to_step: ActivityType) -> bool:
    """
    Whether `to_step` is the expected record after `from_step`.

    Break, breakdown and driving have no successor in the cycle and flow to
    `arrived_at_load_site`.
    """
    from_step = ActivityType(from_step)
    expected = next_step(from_step) if is_cycle_step(from_step) else DEFAULT_STEP
    return expected == ActivityType(to_step)


def progress(step: ActivityType) -> float:
    """Percent of the cycle reached at `step` (0 for non-cycle types)."""
    step = ActivityType(step)
    if step not in CYCLE:
        return 0.0
    return (CYCLE.index(step) + 1) / len(CYCLE) * 100


def completed_steps(step: ActivityType) -> List[ActivityType]:
    step = ActivityType(step)
    if step not in CYCLE:
        return []
    return CYCLE[:CYCLE.index(step)]


def remaining_steps(step: ActivityType) -> List[ActivityType]:
    step = ActivityType(step)
    if step not in CYCLE:
        return []
    return CYCLE[CYCLE.index(step) + 1:]


def cycle_time_minutes(start: datetime, end: datetime) -> int:
    return round((as_utc(end) - as_utc(start)).total_seconds() / 60)


def format_cycle_time(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes} min"
    hours, remaining = divmod(minutes, 60)
    if remaining == 0:
        return f"{hours}h"
    return f"{hours}h {remaining}m"
