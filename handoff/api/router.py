"""API router combining all route modules."""

from fastapi import APIRouter

from handoff.api import health, verify

api_router = APIRouter()

# Health check routes (no prefix)
api_router.include_router(health.router)

# Order / username verification and delivery registration (widget, public)
api_router.include_router(verify.router, tags=["verify"])
