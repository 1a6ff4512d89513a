"""
Broker dashboard schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional


class DashboardStats(BaseModel):
    """Today's aggregate haul stats."""
    trucks_active: int  # Activity in the last 2 hours
    loads_in_transit: int
    loads_delivered: int
    tons_in_transit: float
    tons_delivered: float
    avg_cycle_time_minutes: Optional[int]
    avg_cycle_time: str  # "32 min", "1h 5m" or "--"
    total_activities: int
    drivers_active: int
    trucks_eod: int  # Work days signed off today


class TruckStatusEntry(BaseModel):
    """One truck on the status board."""
    truck_id: int
    truck_number: str
    driver: str
    work_day_id: int
    load_number: int
    last_activity_type: str
    last_activity: datetime


class TruckStatusBucket(BaseModel):
    count: int = 0
    trucks: List[TruckStatusEntry] = []


class TruckStatusBoard(BaseModel):
    """Trucks grouped by where they are in the cycle."""
    at_load_site: TruckStatusBucket
    in_transit: TruckStatusBucket
    at_dump_site: TruckStatusBucket
    returning: TruckStatusBucket
    on_break: TruckStatusBucket
    broken_down: TruckStatusBucket
    completed: TruckStatusBucket
