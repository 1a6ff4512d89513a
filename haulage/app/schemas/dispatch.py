"""
Dispatch and lease-hauler company schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional

from haulage.app.models.dispatch_enums import DispatchStatus


class CompanyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    contact_email: Optional[str] = Field(None, max_length=255)
    contact_phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=500)


class CompanyResponse(BaseModel):
    id: int
    name: str
    contact_email: Optional[str]
    contact_phone: Optional[str]
    address: Optional[str]
    is_lease_hauler: bool
    created_at: datetime

    class Config:
        from_attributes = True


class AssignmentCreate(BaseModel):
    """Trucks one lease hauler takes on a dispatch."""
    company_id: int
    quantity: int = Field(..., ge=1)


class AssignmentResponse(BaseModel):
    id: int
    dispatch_id: int
    company_id: int
    quantity: int
    assigned_by: int
    assigned_at: datetime

    class Config:
        from_attributes = True


class DispatchCreate(BaseModel):
    job_name: str = Field(..., min_length=1, max_length=255)
    job_id: Optional[int] = None
    invoice_job_name: Optional[str] = Field(None, max_length=255)
    date: datetime
    start_time: str = Field(..., min_length=1, max_length=20)
    truck_type: str = Field(..., min_length=1, max_length=100)
    quantity: int = Field(..., ge=1, description="Trucks requested")
    material_type: str = Field(..., min_length=1, max_length=100)
    material_from: str = Field(..., min_length=1, max_length=500)
    delivered_to: str = Field(..., min_length=1, max_length=500)
    account: Optional[str] = Field(None, max_length=255)
    travel_time: int = Field(0, ge=0, description="Minutes")
    material_from_gps_pin: Optional[str] = Field(None, max_length=100)
    delivered_to_gps_pin: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None
    assignments: List[AssignmentCreate] = Field(default_factory=list)


class DispatchResponse(BaseModel):
    id: int
    broker_id: int
    job_id: Optional[int]
    job_name: str
    invoice_job_name: Optional[str]
    date: datetime
    start_time: str
    truck_type: str
    quantity: int
    material_type: str
    material_from: str
    delivered_to: str
    account: Optional[str]
    travel_time: int
    material_from_gps_pin: Optional[str]
    delivered_to_gps_pin: Optional[str]
    notes: Optional[str]
    status: DispatchStatus
    created_at: datetime

    class Config:
        from_attributes = True


class DispatchDetail(BaseModel):
    """Dispatch with its lease-hauler assignments."""
    dispatch: DispatchResponse
    assignments: List[AssignmentResponse]
    trucks_assigned: int
    trucks_unassigned: int
