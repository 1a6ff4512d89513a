"""
Work day schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

from haulage.app.models.activity_enums import WorkDayStatus
from haulage.app.schemas.activity import ActivityResponse, DriverStateResponse


class WorkDayCreate(BaseModel):
    """Daily setup submitted by the driver."""
    truck_id: int = Field(..., gt=0)
    job_id: int = Field(..., gt=0)
    material_id: int = Field(..., gt=0)
    source_location_id: int = Field(..., gt=0)
    destination_location_id: int = Field(..., gt=0)
    work_date: datetime


class WorkDayComplete(BaseModel):
    """
    End-of-day ticket.

    Emptiness is checked by the lifecycle service so that a blank field
    comes back as a domain validation error.
    """
    driver_signature: Optional[str] = None  # Signature pad data URL
    operator_name: Optional[str] = None
    operator_signature: Optional[str] = None


class WorkDayResponse(BaseModel):
    """Schema for work day response."""
    id: int
    driver_id: int
    truck_id: int
    job_id: int
    material_id: int
    source_location_id: int
    destination_location_id: int
    work_date: datetime
    status: WorkDayStatus
    total_loads: int
    start_time: Optional[datetime]
    end_time: Optional[datetime]
    operator_name: Optional[str]
    driver_signature: Optional[str]
    operator_signature: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class WorkDayCompleteResponse(BaseModel):
    """Response after end-of-day sign-off."""
    work_day_id: int
    status: WorkDayStatus
    end_time: datetime
    total_loads: int


class WorkDayWithState(BaseModel):
    """Active work day together with the derived driver state."""
    work_day: WorkDayResponse
    state: DriverStateResponse


class WorkDayDetail(BaseModel):
    """Completed work day with its activity log (broker EOD view)."""
    work_day: WorkDayResponse
    activities: List[ActivityResponse]
