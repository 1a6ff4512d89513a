"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from haulage.app.api.v1.endpoints import (
    auth, reference_data, work_days, activities, broker, dispatches
)

router = APIRouter()

# Authentication
router.include_router(auth.router)

# Trucks, jobs, materials, locations
router.include_router(reference_data.router)

# Driver app
router.include_router(work_days.router)
router.include_router(activities.router)

# Broker dashboard
router.include_router(broker.router)

# Dispatch board
router.include_router(dispatches.router)
