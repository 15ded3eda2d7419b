"""API routes for HangJegyzet notifications."""

from fastapi import APIRouter

from .notifications import router as notifications_router

# Main API router
api_router = APIRouter()

# Webhook administration, history and event triggers
api_router.include_router(notifications_router)

__all__ = ["api_router"]
