"""
Security guards for role-based and ownership-based access control.
"""

from typing import List
from fastapi import Depends, HTTPException, status
from haulage.app.core.exceptions import InsufficientPermissionsError
from haulage.app.models.enums import UserRole
from haulage.app.models.work_day import WorkDay
from haulage.app.models.dispatch import Dispatch
from haulage.app.core.dependencies import get_current_user


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.get("/broker/dashboard/stats")
        async def stats(current_user: dict = Depends(require_role([UserRole.BROKER]))):
            ...

    Raises:
        HTTPException 403 if user role is not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        user_role_str = current_user.get("role")

        if not user_role_str:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Role information missing from token"
            )

        try:
            user_role = UserRole(user_role_str)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid role in token"
            )

        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )

        return current_user

    return role_checker


require_driver = require_role([UserRole.DRIVER])
require_broker = require_role([UserRole.BROKER, UserRole.ADMIN])


def enforce_work_day_owner(work_day: WorkDay, current_user: dict) -> None:
    """
    Drivers may only act on their own work days.

    Raises:
        InsufficientPermissionsError: The work day belongs to another driver.
    """
    if work_day.driver_id != current_user.get("user_id"):
        raise InsufficientPermissionsError(
            "This work day is not assigned to you",
            details={"work_day_id": work_day.id}
        )


def enforce_dispatch_owner(dispatch: Dispatch, current_user: dict) -> None:
    """
    Brokers may only manage their own dispatches; admins manage any.

    Raises:
        InsufficientPermissionsError: The dispatch belongs to another broker.
    """
    if current_user.get("role") == UserRole.ADMIN.value:
        return
    if dispatch.broker_id != current_user.get("user_id"):
        raise InsufficientPermissionsError(
            "This dispatch belongs to another broker",
            details={"dispatch_id": dispatch.id}
        )
