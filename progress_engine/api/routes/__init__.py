from fastapi import APIRouter

from progress_engine.api.routes import goals, health, missions

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(missions.router, prefix="/missions", tags=["missions"])
api_router.include_router(goals.router, prefix="/goals", tags=["goals (legacy)"])
