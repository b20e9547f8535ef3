from fastapi import APIRouter

from app.api.v1.endpoints import admin, auth, suggestions

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(auth.router)
api_router.include_router(suggestions.router)
api_router.include_router(admin.router)
