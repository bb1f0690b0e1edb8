"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from companion_booking.api.routes import bookings, chats, analytics, notifications

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(bookings.router)
api_router.include_router(chats.router)
api_router.include_router(analytics.router)
api_router.include_router(notifications.router)
