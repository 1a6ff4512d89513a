"""
Reference data schemas (trucks, jobs, materials, locations).
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from haulage.app.models.activity_enums import LocationKind


class TruckCreate(BaseModel):
    number: str = Field(..., min_length=1, max_length=50)
    type: str = Field(..., min_length=1, max_length=100)


class TruckResponse(BaseModel):
    id: int
    number: str
    type: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class JobCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    customer_name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None


class JobResponse(BaseModel):
    id: int
    name: str
    customer_name: Optional[str]
    status: str
    description: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class MaterialCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    type: str = Field(..., min_length=1, max_length=100)
    price_per_load: Optional[float] = Field(None, ge=0)


class MaterialResponse(BaseModel):
    id: int
    name: str
    type: str
    price_per_load: Optional[float]
    created_at: datetime

    class Config:
        from_attributes = True


class LocationCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    address: Optional[str] = Field(None, max_length=500)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    kind: LocationKind


class LocationResponse(BaseModel):
    id: int
    name: str
    address: Optional[str]
    latitude: Optional[float]
    longitude: Optional[float]
    kind: LocationKind
    created_at: datetime

    class Config:
        from_attributes = True
