"""
Driver action throttle.

Rejects a new activity for a work day if the previous accepted one landed
less than `activity_cooldown_seconds` ago. Stops double-taps from producing
duplicate GPS-stamped records. Backed by a Redis key with a PX expiry.
"""

import logging

from haulage.app.core.config import settings
from haulage.app.core.exceptions import ActionCooldownError

logger = logging.getLogger("haulage.throttle")

KEY_PREFIX = "haulage:cooldown:work_day"


def cooldown_key(work_day_id: int) -> str:
    return f"{KEY_PREFIX}:{work_day_id}"


async def acquire_action_slot(redis, work_day_id: int, cooldown_seconds: float = None) -> None:
    """
    Claim the action slot for this work day.

    Raises:
        ActionCooldownError: Another action was accepted inside the window.
    """
    if cooldown_seconds is None:
        cooldown_seconds = settings.activity_cooldown_seconds
    if cooldown_seconds <= 0:
        return

    window_ms = int(cooldown_seconds * 1000)
    key = cooldown_key(work_day_id)

    acquired = await redis.set(key, "1", nx=True, px=window_ms)
    if acquired:
        return

    remaining = await redis.pttl(key)
    retry_after_ms = remaining if remaining and remaining > 0 else window_ms
    logger.warning(
        "Activity rejected inside cooldown",
        extra={"work_day_id": work_day_id, "retry_after_ms": retry_after_ms}
    )
    raise ActionCooldownError(retry_after_ms)


async def release_action_slot(redis, work_day_id: int) -> None:
    """Free the slot again when the claimed action was not accepted."""
    await redis.delete(cooldown_key(work_day_id))
