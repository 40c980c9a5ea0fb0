"""API v1 router."""
from fastapi import APIRouter

from compliance_training.api.v1 import analytics

api_router = APIRouter()

api_router.include_router(analytics.router, prefix="/analytics", tags=["Performance Analytics"])
