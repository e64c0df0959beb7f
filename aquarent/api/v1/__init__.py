"""API v1 routes aggregation"""

from fastapi import APIRouter

from .notifications.router import router as notifications_router

# Create v1 router
api_router = APIRouter()

# Include all routers
api_router.include_router(notifications_router, prefix="/notifications", tags=["Notifications"])

# Export router
router = api_router
