"""
Activity log schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

from haulage.app.models.activity_enums import ActivityType


class ActivityCreate(BaseModel):
    """
    Driver action.

    `load_number` defaults to the derived one. `ticket_number`/`no_ticket`
    and `net_weight` are collected for loaded_with_material unless the
    day's material is an export type.
    """
    activity_type: ActivityType
    timestamp: datetime
    load_number: Optional[int] = Field(None, gt=0)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    ticket_number: Optional[str] = Field(None, max_length=100)
    no_ticket: bool = False
    net_weight: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = None


class ActivityResponse(BaseModel):
    """Schema for activity response."""
    id: int
    work_day_id: int
    load_number: int
    activity_type: ActivityType
    timestamp: datetime
    latitude: Optional[float]
    longitude: Optional[float]
    ticket_number: Optional[str]
    net_weight: Optional[float]
    notes: Optional[str]
    cancelled: bool
    cancelled_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


class DriverStateResponse(BaseModel):
    """Derived driver state for the main activity screen."""
    current_step: ActivityType
    load_number: int
    suspension: Optional[ActivityType]  # break / breakdown / None
    can_advance: bool  # Main button disabled while suspended
    requires_load_data: bool  # Show the ticket/weight popup
    progress: float  # Percent of the cycle
    completed_loads: int


class ActivityLogResponse(BaseModel):
    """Response after appending, cancelling or rewinding."""
    activity: ActivityResponse
    state: DriverStateResponse


class ActivityListResponse(BaseModel):
    """All records for the day, cancelled ones included."""
    work_day_id: int
    activities: List[ActivityResponse]
    total: int
