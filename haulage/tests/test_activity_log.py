"""
Activity log service tests.

Append, cancel, list and rewind against the in-memory database.
"""

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from haulage.app.core.exceptions import NotFoundError, NothingToRewindError, ValidationError
from haulage.app.domain.activity.activity_log import ActivityLog, work_day_lock
from haulage.app.domain.activity.state_machine import derive_state, Cycling
from haulage.app.domain.activity.work_day_lifecycle import WorkDayLifecycle
from haulage.app.models.activity import Activity
from haulage.app.models.activity_enums import ActivityType

T0 = datetime(2026, 3, 2, 6, 0, tzinfo=timezone.utc)


def record(work_day_id, activity_type, minutes=0, load_number=1, **fields):
    return Activity(
        work_day_id=work_day_id,
        load_number=load_number,
        activity_type=activity_type,
        timestamp=T0 + timedelta(minutes=minutes),
        **fields
    )


@pytest.mark.asyncio
async def test_append_assigns_id_and_clears_cancelled(db_session, work_day):
    stored = await ActivityLog.append(
        db_session,
        record(work_day.id, ActivityType.ARRIVED_AT_LOAD_SITE, cancelled=True, latitude=26.7, longitude=-80.1)
    )

    assert stored.id is not None
    assert stored.cancelled is False
    assert stored.cancelled_at is None
    assert stored.latitude == 26.7


@pytest.mark.asyncio
async def test_append_without_gps_is_accepted(db_session, work_day):
    stored = await ActivityLog.append(db_session, record(work_day.id, ActivityType.BREAK))
    assert stored.latitude is None
    assert stored.longitude is None


@pytest.mark.asyncio
async def test_append_missing_required_field(db_session, work_day):
    incomplete = Activity(work_day_id=work_day.id, activity_type=ActivityType.BREAK, load_number=1)

    with pytest.raises(ValidationError) as exc_info:
        await ActivityLog.append(db_session, incomplete)

    assert exc_info.value.details["missing"] == ["timestamp"]


@pytest.mark.asyncio
async def test_append_rejects_non_positive_load_number(db_session, work_day):
    with pytest.raises(ValidationError):
        await ActivityLog.append(db_session, record(work_day.id, ActivityType.BREAK, load_number=0))


@pytest.mark.asyncio
async def test_append_unknown_work_day(db_session, reference_data):
    with pytest.raises(NotFoundError):
        await ActivityLog.append(db_session, record(4242, ActivityType.ARRIVED_AT_LOAD_SITE))


@pytest.mark.asyncio
async def test_append_to_completed_work_day_rejected(db_session, work_day):
    await WorkDayLifecycle.complete(db_session, work_day.id, "sig-d", "Op", "sig-o")

    with pytest.raises(ValidationError):
        await ActivityLog.append(db_session, record(work_day.id, ActivityType.ARRIVED_AT_LOAD_SITE))


@pytest.mark.asyncio
async def test_append_normalises_timestamp_to_utc(db_session, work_day):
    eastern = timezone(timedelta(hours=-5))
    stored = await ActivityLog.append(db_session, Activity(
        work_day_id=work_day.id,
        load_number=1,
        activity_type=ActivityType.ARRIVED_AT_LOAD_SITE,
        timestamp=datetime(2026, 3, 2, 1, 0, tzinfo=eastern),
    ))

    assert stored.timestamp.replace(tzinfo=None) == datetime(2026, 3, 2, 6, 0)


@pytest.mark.asyncio
async def test_cancel_is_idempotent(db_session, work_day):
    stored = await ActivityLog.append(db_session, record(work_day.id, ActivityType.ARRIVED_AT_LOAD_SITE))

    first = await ActivityLog.cancel(db_session, stored.id)
    second = await ActivityLog.cancel(db_session, stored.id)

    assert first.cancelled is True
    assert second.cancelled is True
    assert second.cancelled_at is not None


@pytest.mark.asyncio
async def test_cancel_unknown_activity(db_session, work_day):
    with pytest.raises(NotFoundError):
        await ActivityLog.cancel(db_session, 999)


@pytest.mark.asyncio
async def test_append_then_cancel_restores_state(db_session, work_day):
    await ActivityLog.append(db_session, record(work_day.id, ActivityType.ARRIVED_AT_LOAD_SITE))
    before = derive_state(await ActivityLog.list_for_work_day(db_session, work_day.id))

    extra = await ActivityLog.append(db_session, record(work_day.id, ActivityType.LOADED_WITH_MATERIAL, minutes=10))
    await ActivityLog.cancel(db_session, extra.id)

    after = derive_state(await ActivityLog.list_for_work_day(db_session, work_day.id))
    assert after == before


@pytest.mark.asyncio
async def test_list_includes_cancelled_records(db_session, work_day):
    first = await ActivityLog.append(db_session, record(work_day.id, ActivityType.ARRIVED_AT_LOAD_SITE))
    await ActivityLog.append(db_session, record(work_day.id, ActivityType.LOADED_WITH_MATERIAL, minutes=5))
    await ActivityLog.cancel(db_session, first.id)

    records = await ActivityLog.list_for_work_day(db_session, work_day.id)
    assert len(records) == 2
    assert sum(1 for r in records if r.cancelled) == 1


@pytest.mark.asyncio
async def test_rewind_cancels_latest_by_timestamp(db_session, work_day):
    # Stored out of order: the later timestamp goes in first
    later = await ActivityLog.append(db_session, record(work_day.id, ActivityType.LOADED_WITH_MATERIAL, minutes=10))
    await ActivityLog.append(db_session, record(work_day.id, ActivityType.ARRIVED_AT_LOAD_SITE, minutes=0))

    rewound = await ActivityLog.rewind(db_session, work_day.id)

    assert rewound.id == later.id
    assert rewound.cancelled is True
    state = derive_state(await ActivityLog.list_for_work_day(db_session, work_day.id))
    assert state == Cycling(ActivityType.LOADED_WITH_MATERIAL, 1)


@pytest.mark.asyncio
async def test_rewind_single_record_returns_to_start(db_session, work_day):
    await ActivityLog.append(db_session, record(work_day.id, ActivityType.ARRIVED_AT_LOAD_SITE))
    await ActivityLog.rewind(db_session, work_day.id)

    state = derive_state(await ActivityLog.list_for_work_day(db_session, work_day.id))
    assert state == Cycling(ActivityType.ARRIVED_AT_LOAD_SITE, 1)


@pytest.mark.asyncio
async def test_rewind_with_nothing_left(db_session, work_day):
    stored = await ActivityLog.append(db_session, record(work_day.id, ActivityType.ARRIVED_AT_LOAD_SITE))
    await ActivityLog.cancel(db_session, stored.id)

    with pytest.raises(NothingToRewindError):
        await ActivityLog.rewind(db_session, work_day.id)


@pytest.mark.asyncio
async def test_cancel_and_rewind_rejected_after_sign_off(db_session, work_day):
    stored = await ActivityLog.append(db_session, record(work_day.id, ActivityType.DUMPED_MATERIAL))
    await WorkDayLifecycle.complete(db_session, work_day.id, "sig-d", "Op", "sig-o")

    with pytest.raises(ValidationError):
        await ActivityLog.cancel(db_session, stored.id)
    with pytest.raises(ValidationError):
        await ActivityLog.rewind(db_session, work_day.id)

    records = await ActivityLog.list_for_work_day(db_session, work_day.id)
    assert [r.cancelled for r in records] == [False]


@pytest.mark.asyncio
async def test_rewind_unknown_work_day(db_session, reference_data):
    with pytest.raises(NotFoundError):
        await ActivityLog.rewind(db_session, 4242)


@pytest.mark.asyncio
async def test_work_day_lock_is_shared_per_work_day():
    lock = work_day_lock(7)
    assert work_day_lock(7) is lock
    assert work_day_lock(8) is not lock

    order = []

    async def hold(tag):
        async with work_day_lock(7):
            order.append(f"{tag}-in")
            await asyncio.sleep(0.01)
            order.append(f"{tag}-out")

    await asyncio.gather(hold("a"), hold("b"))
    assert order == ["a-in", "a-out", "b-in", "b-out"]
