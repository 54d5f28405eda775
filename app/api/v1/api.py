"""
Main API Router
Aggregates all API endpoints for v1
"""

from fastapi import APIRouter
from app.api.v1.endpoints import (
    auth,
    users,
    events,
    registrations,
    waitinglist,
    admin
)

api_router = APIRouter()

# Include all routers
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(registrations.router, prefix="/registrations", tags=["registrations"])
api_router.include_router(waitinglist.router, prefix="/waitinglist", tags=["waiting list"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
