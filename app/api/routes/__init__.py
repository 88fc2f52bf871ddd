"""
API Routes - Combines all route modules into single router.
"""

from fastapi import APIRouter

from app.api.routes.auth_routes import router as auth_router
from app.api.routes.profile_routes import router as profile_router
from app.api.routes.skill_routes import router as skill_router
from app.api.routes.analysis_routes import router as analysis_router
from app.api.routes.recommendation_routes import router as recommendation_router
from app.api.routes.user_routes import router as user_router

# Main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(auth_router)
api_router.include_router(profile_router)
api_router.include_router(skill_router)
api_router.include_router(analysis_router)
api_router.include_router(recommendation_router)
api_router.include_router(user_router)
