"""
Recommendation Routes

GET  /recommendations/user/{user_id}                - Courses, pathway and insights for the latest gap analysis
GET  /recommendations/user/{user_id}/courses        - Courses stored from the last generation
POST /recommendations/save-enrollment               - Record enrollment (query: userId, courseId, courseTitle)
POST /recommendations/save-course                   - Save course for later (same params)
GET  /recommendations/user/{user_id}/enrollments    - Enrolled courses
GET  /recommendations/user/{user_id}/saved-courses  - Saved courses

Every response is wrapped in ApiResponse {success, message, data, error, timestamp, status}.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from app.core.auth import ensure_can_access, get_current_user
from app.schemas.schemas import ApiResponse, CourseAction, CourseRecommendation, RecommendationResponse
from app.services.recommendation_service import RecommendationService, get_recommendation_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/recommendations", tags=["Recommendations"])


def _error(message: str, status: int = 500) -> JSONResponse:
    return JSONResponse(status_code=status, content=ApiResponse.fail(message, status=status).model_dump())


@router.get("/user/{user_id}", response_model=ApiResponse[RecommendationResponse])
def get_user_recommendations(user_id: str, user: dict = Depends(get_current_user),
                             service: RecommendationService = Depends(get_recommendation_service)):
    """
    Generate recommendations from the user's latest skill gap analysis.

    Falls back to starter recommendations (no analysis yet) or locally built
    ones (ML service down), so this only fails on storage errors.
    """
    ensure_can_access(user, user_id)
    try:
        recommendations = service.generate_recommendations(user_id)
    except Exception:
        logger.exception("Failed to generate recommendations for user %s", user_id)
        return _error("Failed to generate recommendations")
    return ApiResponse.ok(recommendations, message="Recommendations generated successfully")


@router.get("/user/{user_id}/courses", response_model=ApiResponse[List[CourseRecommendation]])
def get_stored_courses(user_id: str, user: dict = Depends(get_current_user),
                       service: RecommendationService = Depends(get_recommendation_service)):
    ensure_can_access(user, user_id)
    return ApiResponse.ok(service.get_saved_recommendations(user_id))


@router.post("/save-enrollment", response_model=ApiResponse)
def save_enrollment(
    user_id: str = Query(..., alias="userId"),
    course_id: str = Query(..., alias="courseId"),
    course_title: Optional[str] = Query(None, alias="courseTitle"),
    user: dict = Depends(get_current_user),
    service: RecommendationService = Depends(get_recommendation_service),
):
    ensure_can_access(user, user_id)
    try:
        service.save_enrollment(user_id, course_id, course_title)
    except Exception:
        logger.exception("Failed to save enrollment for user %s", user_id)
        return _error("Failed to save enrollment")
    return ApiResponse.ok(message="Enrollment saved successfully")


@router.post("/save-course", response_model=ApiResponse)
def save_course(
    user_id: str = Query(..., alias="userId"),
    course_id: str = Query(..., alias="courseId"),
    course_title: Optional[str] = Query(None, alias="courseTitle"),
    user: dict = Depends(get_current_user),
    service: RecommendationService = Depends(get_recommendation_service),
):
    ensure_can_access(user, user_id)
    try:
        service.save_course(user_id, course_id, course_title)
    except Exception:
        logger.exception("Failed to save course for user %s", user_id)
        return _error("Failed to save course")
    return ApiResponse.ok(message="Course saved successfully")


@router.get("/user/{user_id}/enrollments", response_model=ApiResponse[List[CourseAction]])
def list_enrollments(user_id: str, user: dict = Depends(get_current_user),
                     service: RecommendationService = Depends(get_recommendation_service)):
    ensure_can_access(user, user_id)
    return ApiResponse.ok(service.get_enrollments(user_id))


@router.get("/user/{user_id}/saved-courses", response_model=ApiResponse[List[CourseAction]])
def list_saved_courses(user_id: str, user: dict = Depends(get_current_user),
                       service: RecommendationService = Depends(get_recommendation_service)):
    ensure_can_access(user, user_id)
    return ApiResponse.ok(service.get_saved_courses(user_id))
