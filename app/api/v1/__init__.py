from fastapi import APIRouter

from app.api.v1.routers import health, subjects
from app.services.registry import PIPELINES

api_router = APIRouter()
api_router.include_router(health.router)
for pipeline in PIPELINES.values():
    api_router.include_router(subjects.build_router(pipeline))

__all__ = ["api_router"]
