"""
Main API router
"""
from fastapi import APIRouter

from lead_router.api.v1.endpoints import campaigns, lead_packages, prospects, users

api_router = APIRouter()

# Include endpoint routers
api_router.include_router(prospects.router, tags=["prospects"])
api_router.include_router(users.router, tags=["users"])
api_router.include_router(campaigns.router, tags=["campaigns"])
api_router.include_router(lead_packages.router, tags=["lead-packages"])
