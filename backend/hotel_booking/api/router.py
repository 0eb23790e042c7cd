"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter

from hotel_booking.api.routes import admin, agent, reservations, rooms

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(rooms.router)
api_router.include_router(reservations.router)
api_router.include_router(agent.router)
api_router.include_router(admin.router)
