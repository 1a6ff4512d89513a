"""
Reference Data API Endpoints.

Trucks, jobs, materials and locations picked at daily setup. Any signed-in
user can list them; brokers maintain them.
"""

from typing import List
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from haulage.app.db.session import get_db
from haulage.app.core.dependencies import get_current_user
from haulage.app.core.guards import require_broker
from haulage.app.models.truck import Truck
from haulage.app.models.job import Job
from haulage.app.models.material import Material
from haulage.app.models.location import Location
from haulage.app.models.activity_enums import LocationKind
from haulage.app.schemas.reference import (
    TruckCreate, TruckResponse, JobCreate, JobResponse,
    MaterialCreate, MaterialResponse, LocationCreate, LocationResponse
)
from haulage.app.services.audit import log_event, AuditAction

router = APIRouter(tags=["Reference Data"])


async def _create(db: AsyncSession, instance, action: str, current_user: dict):
    db.add(instance)
    await db.commit()
    await db.refresh(instance)

    await log_event(
        db=db,
        action=action,
        actor_id=current_user["user_id"],
        actor_username=current_user["sub"],
        metadata={"id": instance.id}
    )
    return instance


# --- Trucks ---

@router.get("/trucks", response_model=List[TruckResponse])
async def list_trucks(
    active_only: bool = Query(True, description="Hide retired trucks"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List trucks."""
    query = select(Truck).order_by(Truck.number)
    if active_only:
        query = query.where(Truck.is_active == True)  # noqa: E712
    result = await db.execute(query)
    return [TruckResponse.model_validate(t) for t in result.scalars().all()]


@router.post("/trucks", response_model=TruckResponse, status_code=status.HTTP_201_CREATED)
async def create_truck(
    truck_data: TruckCreate,
    current_user: dict = Depends(require_broker),
    db: AsyncSession = Depends(get_db)
):
    """Add a truck (Broker only)."""
    truck = Truck(number=truck_data.number, type=truck_data.type, is_active=True)
    truck = await _create(db, truck, AuditAction.TRUCK_CREATED, current_user)
    return TruckResponse.model_validate(truck)


# --- Jobs ---

@router.get("/jobs", response_model=List[JobResponse])
async def list_jobs(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List active jobs."""
    result = await db.execute(
        select(Job).where(Job.status == "active").order_by(Job.name)
    )
    return [JobResponse.model_validate(j) for j in result.scalars().all()]


@router.post("/jobs", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def create_job(
    job_data: JobCreate,
    current_user: dict = Depends(require_broker),
    db: AsyncSession = Depends(get_db)
):
    """Add a job (Broker only)."""
    job = Job(
        name=job_data.name,
        customer_name=job_data.customer_name,
        description=job_data.description,
        status="active"
    )
    job = await _create(db, job, AuditAction.JOB_CREATED, current_user)
    return JobResponse.model_validate(job)


# --- Materials ---

@router.get("/materials", response_model=List[MaterialResponse])
async def list_materials(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List materials."""
    result = await db.execute(select(Material).order_by(Material.name))
    return [MaterialResponse.model_validate(m) for m in result.scalars().all()]


@router.post("/materials", response_model=MaterialResponse, status_code=status.HTTP_201_CREATED)
async def create_material(
    material_data: MaterialCreate,
    current_user: dict = Depends(require_broker),
    db: AsyncSession = Depends(get_db)
):
    """Add a material (Broker only)."""
    material = Material(
        name=material_data.name,
        type=material_data.type,
        price_per_load=material_data.price_per_load
    )
    material = await _create(db, material, AuditAction.MATERIAL_CREATED, current_user)
    return MaterialResponse.model_validate(material)


# --- Locations ---

@router.get("/locations", response_model=List[LocationResponse])
async def list_locations(
    kind: LocationKind = Query(None, description="source or destination"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List load sites and dump sites."""
    query = select(Location).order_by(Location.name)
    if kind:
        query = query.where(Location.kind == kind)
    result = await db.execute(query)
    return [LocationResponse.model_validate(loc) for loc in result.scalars().all()]


@router.post("/locations", response_model=LocationResponse, status_code=status.HTTP_201_CREATED)
async def create_location(
    location_data: LocationCreate,
    current_user: dict = Depends(require_broker),
    db: AsyncSession = Depends(get_db)
):
    """Add a load site or dump site (Broker only)."""
    location = Location(
        name=location_data.name,
        address=location_data.address,
        latitude=location_data.latitude,
        longitude=location_data.longitude,
        kind=location_data.kind
    )
    location = await _create(db, location, AuditAction.LOCATION_CREATED, current_user)
    return LocationResponse.model_validate(location)
