from fastapi import APIRouter

from app.api.v1.endpoints import (
    admin_support,
    bookings,
    photo_progress,
    schedule_negotiations,
    support,
)

api_router = APIRouter()
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])
api_router.include_router(schedule_negotiations.router, tags=["schedule-negotiations"])
api_router.include_router(photo_progress.router, prefix="/installer", tags=["photo-progress"])
api_router.include_router(support.router, prefix="/support", tags=["support"])
api_router.include_router(admin_support.router, prefix="/admin/support", tags=["admin-support"])
