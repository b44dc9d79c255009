"""
Main API router
"""
from fastapi import APIRouter

from app.api.v1 import (
    health,
    version,
    auth,
    leaves,
    reconciliation,
    variance,
    audit,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(version.router, tags=["version"])
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(leaves.router, prefix="/leaves", tags=["leaves"])
api_router.include_router(reconciliation.router, prefix="/reconciliation", tags=["reconciliation"])
api_router.include_router(variance.router, prefix="/variance", tags=["variance"])
api_router.include_router(audit.router, prefix="/audit", tags=["audit"])
