"""
Skill Routes

User skills:
GET  /skills/user/{user_id}                - List tracked skills
POST /skills/sync-from-profile/{user_id}   - Re-sync skills from the profile
GET  /skills/user/{user_id}/analytics      - Totals and status distribution
GET  /skills/user/{user_id}/ml-ready       - Skills in the ML service format

Exams:
POST /skills/generate-exam                 - Generate multiple choice exam
POST /skills/{skill_id}/exam-result        - Record exam score on a skill
POST /skills/evaluate-answer               - Score a free-text answer
GET  /skills/exam/usage                    - Gemini key/model usage counters
POST /skills/exam/usage/reset              - Reset usage counters (HR only)
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from app.core.auth import ensure_can_access, get_current_user
from app.schemas.schemas import (
    AnswerEvaluationRequest, ExamRequest, ExamResultRequest, MessageResponse, UserSkillResponse
)
from app.services.exam_service import ExamService, get_exam_service
from app.services.profile_service import ProfileService, get_profile_service
from app.services.user_skill_service import UserSkillService, get_user_skill_service

router = APIRouter(prefix="/skills", tags=["Skills"])


# ============================================================
# USER SKILLS
# ============================================================

@router.get("/user/{user_id}", response_model=List[UserSkillResponse])
def get_user_skills(user_id: str, user: dict = Depends(get_current_user),
                    service: UserSkillService = Depends(get_user_skill_service)):
    ensure_can_access(user, user_id)
    return service.get_user_skills(user_id)


@router.post("/sync-from-profile/{user_id}", response_model=List[UserSkillResponse])
def sync_from_profile(user_id: str, user: dict = Depends(get_current_user),
                      profiles: ProfileService = Depends(get_profile_service),
                      service: UserSkillService = Depends(get_user_skill_service)):
    ensure_can_access(user, user_id)
    profile = profiles.get_profile(user_id)
    return service.sync_skills_from_profile(user_id, profile.get("technical_skills"))


@router.get("/user/{user_id}/analytics")
def get_skill_analytics(user_id: str, user: dict = Depends(get_current_user),
                        service: UserSkillService = Depends(get_user_skill_service)):
    ensure_can_access(user, user_id)
    return service.get_skill_analytics(user_id)


@router.get("/user/{user_id}/ml-ready")
def get_ml_ready_skills(user_id: str, user: dict = Depends(get_current_user),
                        service: UserSkillService = Depends(get_user_skill_service)):
    ensure_can_access(user, user_id)
    return service.get_ml_ready_skills(user_id)


# ============================================================
# EXAMS
# ============================================================

@router.post("/generate-exam")
def generate_exam(request: ExamRequest, user: dict = Depends(get_current_user),
                  exams: ExamService = Depends(get_exam_service)):
    """
    Generate an exam for a skill. Uses Gemini when a key/model is available,
    otherwise built-in question banks (see `source` in the response).
    """
    skill = (request.skill or "").strip()
    if not skill:
        raise HTTPException(status_code=400, detail="Skill name is required")

    return exams.generate_exam(
        skill,
        category=request.category or "General",
        difficulty=request.difficulty or "intermediate",
        number_of_questions=request.number_of_questions or 5,
    )


@router.post("/{skill_id}/exam-result", response_model=UserSkillResponse)
def submit_exam_result(skill_id: str, request: ExamResultRequest, user: dict = Depends(get_current_user),
                       service: UserSkillService = Depends(get_user_skill_service)):
    skill = service.store.get_by_id(skill_id)
    if not skill:
        raise HTTPException(status_code=404, detail="Skill not found")
    ensure_can_access(user, skill["user_id"])
    return service.update_skill_proficiency(skill_id, request.score, request.status.value)


@router.post("/evaluate-answer")
def evaluate_answer(request: AnswerEvaluationRequest, user: dict = Depends(get_current_user),
                    exams: ExamService = Depends(get_exam_service)):
    return exams.evaluate_answer(request.question, request.answer, request.context)


@router.get("/exam/usage")
def exam_usage(user: dict = Depends(get_current_user),
               exams: ExamService = Depends(get_exam_service)):
    return exams.get_usage_stats()


@router.post("/exam/usage/reset", response_model=MessageResponse)
def reset_exam_usage(user: dict = Depends(get_current_user),
                     exams: ExamService = Depends(get_exam_service)):
    if user.get("role") != "hr":
        raise HTTPException(status_code=403, detail="HR only")
    exams.reset_usage_counters()
    return MessageResponse(message="Usage counters reset")
