"""
Skill Gap Analysis Routes

POST /analyze/skill-gap/{user_id}        - Analyze a user against a job role (body: {"jobRole": ...})
POST /analyze/skill-gap?jobRole=...      - Same, for the logged-in user
GET  /analyze/current-role/{user_id}     - Current role analysis (hasAnalysis=false if none)
GET  /analyze/history/{user_id}          - All analyses, newest first

Analysis itself is done by the ML service; 502 when it is unavailable.
"""

from typing import List

from fastapi import APIRouter, Depends, Query

from app.core.auth import ensure_can_access, get_current_user
from app.schemas.schemas import (
    CurrentRoleResponse, SkillGapAnalysisResult, SkillGapRequest, StoredSkillGapAnalysis
)
from app.services.skill_gap_service import SkillGapService, get_skill_gap_service

router = APIRouter(prefix="/analyze", tags=["Skill Gap Analysis"])


@router.post("/skill-gap/{user_id}", response_model=SkillGapAnalysisResult)
def analyze_user_skill_gap(user_id: str, request: SkillGapRequest, user: dict = Depends(get_current_user),
                           service: SkillGapService = Depends(get_skill_gap_service)):
    ensure_can_access(user, user_id)
    return service.analyze_skill_gap(user_id, request.job_role)


@router.post("/skill-gap", response_model=SkillGapAnalysisResult)
def analyze_my_skill_gap(job_role: str = Query(..., alias="jobRole", min_length=1),
                         user: dict = Depends(get_current_user),
                         service: SkillGapService = Depends(get_skill_gap_service)):
    return service.analyze_skill_gap(user["user_id"], job_role)


@router.get("/current-role/{user_id}", response_model=CurrentRoleResponse)
def current_role(user_id: str, user: dict = Depends(get_current_user),
                 service: SkillGapService = Depends(get_skill_gap_service)):
    ensure_can_access(user, user_id)
    return service.get_current_role_analysis(user_id)


@router.get("/history/{user_id}", response_model=List[StoredSkillGapAnalysis])
def analysis_history(user_id: str, user: dict = Depends(get_current_user),
                     service: SkillGapService = Depends(get_skill_gap_service)):
    ensure_can_access(user, user_id)
    return service.get_analysis_history(user_id)
