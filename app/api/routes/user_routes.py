"""
User Routes

GET /user/skill-gap-data/{user_id} - Profile + skills in the shape the ML service expects
"""

from fastapi import APIRouter, Depends

from app.core.auth import ensure_can_access, get_current_user
from app.services.profile_service import ProfileService, get_profile_service

router = APIRouter(prefix="/user", tags=["Users"])


@router.get("/skill-gap-data/{user_id}")
def get_skill_gap_data(user_id: str, user: dict = Depends(get_current_user),
                       service: ProfileService = Depends(get_profile_service)):
    ensure_can_access(user, user_id)
    return service.get_skill_gap_data(user_id)
