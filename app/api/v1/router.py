from fastapi import APIRouter

from app.api.v1.endpoints import consultations, drafts, versions

# Create API router
api_router = APIRouter()

# Static consultation routes are registered before the /{consultation_id} ones
api_router.include_router(consultations.router, prefix="/consultations", tags=["Consultations"])
api_router.include_router(drafts.router, prefix="/consultations", tags=["Drafts"])
api_router.include_router(versions.router, prefix="/consultations", tags=["Versions"])

__all__ = ["api_router"]
