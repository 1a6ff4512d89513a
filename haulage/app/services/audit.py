"""
Audit logging service for work day and activity log changes.

Gives brokers a trail of who logged, cancelled or rewound what.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from haulage.app.models.audit_log import AuditLog


class AuditAction:
    """Standardized audit action constants."""
    USER_CREATED = "USER_CREATED"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILED = "LOGIN_FAILED"

    # Reference data
    TRUCK_CREATED = "TRUCK_CREATED"
    JOB_CREATED = "JOB_CREATED"
    MATERIAL_CREATED = "MATERIAL_CREATED"
    LOCATION_CREATED = "LOCATION_CREATED"
    COMPANY_CREATED = "COMPANY_CREATED"

    # Work day lifecycle
    WORK_DAY_STARTED = "WORK_DAY_STARTED"
    WORK_DAY_COMPLETED = "WORK_DAY_COMPLETED"

    # Activity log
    ACTIVITY_LOGGED = "ACTIVITY_LOGGED"
    ACTIVITY_CANCELLED = "ACTIVITY_CANCELLED"
    ACTIVITY_REWOUND = "ACTIVITY_REWOUND"

    # Dispatch board
    DISPATCH_CREATED = "DISPATCH_CREATED"
    DISPATCH_ASSIGNED = "DISPATCH_ASSIGNED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor_id: Optional[int] = None,
    actor_username: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
    ip_address: Optional[str] = None
) -> AuditLog:
    """
    Write an event to the audit log.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor_id: ID of user performing the action
        actor_username: Username of actor
        metadata: Additional context as JSON
        ip_address: IP address of the request

    Returns:
        Created AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor_id,
        actor_username=actor_username,
        action=action,
        meta_data=metadata,
        ip_address=ip_address
    )

    db.add(audit_log)
    await db.commit()
    await db.refresh(audit_log)

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    actor_id: Optional[int] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering, most recent first.
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if actor_id:
        query = query.where(AuditLog.actor_id == actor_id)

    if action:
        query = query.where(AuditLog.action == action)

    query = query.limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())
