"""
Profile Routes (current user)

GET    /profile                          - Get own profile (created on first access)
POST   /profile                          - Create profile
PUT    /profile                          - Update profile (only provided fields)
GET    /profile/analytics                - Skill level / category distribution
POST   /profile/resume/upload            - Upload resume (PDF/DOCX/TXT) and analyze it
GET    /profile/resume/formats           - Supported formats
GET    /profile/resumes                  - All resumes, newest first
GET    /profile/resumes/history          - Latest resumes (max 4)
GET    /profile/resumes/{resume_id}      - One resume
PUT    /profile/resumes/{resume_id}/active    - Make a resume the active one
POST   /profile/resumes/{resume_id}/reanalyze - Run AI analysis again
DELETE /profile/resumes/{resume_id}      - Delete a resume
"""

from typing import List

from fastapi import APIRouter, Depends, File, UploadFile
from starlette.concurrency import run_in_threadpool

from app.core.auth import get_current_user
from app.schemas.schemas import (
    MessageResponse, ProfileResponse, ProfileUpdate, ResumeAnalysisResponse, ResumeResponse
)
from app.services.profile_service import ProfileService, get_profile_service
from app.utils.file_upload import get_supported_formats, read_upload

router = APIRouter(prefix="/profile", tags=["Profile"])


@router.get("", response_model=ProfileResponse)
def get_profile(user: dict = Depends(get_current_user),
                service: ProfileService = Depends(get_profile_service)):
    return service.get_profile(user["user_id"])


@router.post("", response_model=ProfileResponse, status_code=201)
def create_profile(data: ProfileUpdate, user: dict = Depends(get_current_user),
                   service: ProfileService = Depends(get_profile_service)):
    return service.create_profile(user["user_id"], data.model_dump(exclude_none=True))


@router.put("", response_model=ProfileResponse)
def update_profile(data: ProfileUpdate, user: dict = Depends(get_current_user),
                   service: ProfileService = Depends(get_profile_service)):
    """Update profile. Only provided fields are updated."""
    return service.update_profile(user["user_id"], data.model_dump(exclude_none=True))


@router.get("/analytics")
def get_skill_analytics(user: dict = Depends(get_current_user),
                        service: ProfileService = Depends(get_profile_service)):
    return service.get_skill_analytics(user["user_id"])


@router.post("/resume/upload", response_model=ResumeAnalysisResponse, status_code=201)
async def upload_resume(file: UploadFile = File(...), user: dict = Depends(get_current_user),
                        service: ProfileService = Depends(get_profile_service)):
    """
    Upload a resume and merge its AI analysis into the profile.

    Limits: 5MB, PDF/DOCX/TXT, 4 resumes per user (oldest is replaced).
    """
    content, ext = await read_upload(file)
    # AI call blocks; keep it off the event loop
    return await run_in_threadpool(
        service.upload_and_analyze_resume, user["user_id"], content, ext, file.filename
    )


@router.get("/resume/formats")
def supported_formats():
    return get_supported_formats()


@router.get("/resumes", response_model=List[ResumeResponse])
def list_resumes(user: dict = Depends(get_current_user),
                 service: ProfileService = Depends(get_profile_service)):
    return service.get_user_resumes(user["user_id"])


@router.get("/resumes/history", response_model=List[ResumeResponse])
def resume_history(user: dict = Depends(get_current_user),
                   service: ProfileService = Depends(get_profile_service)):
    return service.get_resume_history(user["user_id"])


@router.get("/resumes/{resume_id}", response_model=ResumeResponse)
def get_resume(resume_id: str, user: dict = Depends(get_current_user),
               service: ProfileService = Depends(get_profile_service)):
    return service.get_resume(user["user_id"], resume_id)


@router.put("/resumes/{resume_id}/active", response_model=ResumeResponse)
def set_active_resume(resume_id: str, user: dict = Depends(get_current_user),
                      service: ProfileService = Depends(get_profile_service)):
    return service.set_active_resume(user["user_id"], resume_id)


@router.post("/resumes/{resume_id}/reanalyze", response_model=ResumeAnalysisResponse)
def reanalyze_resume(resume_id: str, user: dict = Depends(get_current_user),
                     service: ProfileService = Depends(get_profile_service)):
    return service.reanalyze_resume(user["user_id"], resume_id)


@router.delete("/resumes/{resume_id}", response_model=MessageResponse)
def delete_resume(resume_id: str, user: dict = Depends(get_current_user),
                  service: ProfileService = Depends(get_profile_service)):
    service.delete_resume(user["user_id"], resume_id)
    return MessageResponse(message="Resume deleted")
