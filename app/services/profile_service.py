"""
Profile Service - user profiles and the resume upload pipeline.

Upload pipeline:
1. Validate file + extract text          (utils.file_upload)
2. Enforce the per-user resume limit     (oldest resume is dropped)
3. Store the file bytes in MongoDB
4. Analyze the text with Gemini          (resume_parsing_service)
5. Merge the analysis into the profile   (fill blanks, append new entries)
6. Make the new resume the active one
7. Sync profile skills into user_skills
"""

import hashlib
import logging
import time
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.core.config import get_settings
from app.core.exceptions import NotFoundError
from app.services.mongo_service import ProfileStore, ResumeStore, StudentStore
from app.services.resume_parsing_service import ResumeParsingService, get_resume_parser, has_data
from app.services.user_skill_service import UserSkillService, get_user_skill_service
from app.utils.file_upload import CONTENT_TYPES, extract_text

logger = logging.getLogger(__name__)

settings = get_settings()

# Confidence recorded on a resume whose analysis produced data
ANALYSIS_CONFIDENCE = 0.85

# Profile fields filled from a resume only when still empty
_SCALAR_MERGE_FIELDS = {
    "full_name": "fullName",
    "email": "email",
    "contact_number": "contactNumber",
    "title": "title",
    "summary": "summary",
}


def _key(*parts: Optional[str]) -> tuple:
    return tuple((p or "").strip().lower() for p in parts)


class ProfileService:

    def __init__(
        self,
        students: StudentStore = None,
        profiles: ProfileStore = None,
        resumes: ResumeStore = None,
        skills: UserSkillService = None,
        parser: ResumeParsingService = None,
    ):
        self.students = students or StudentStore()
        self.profiles = profiles or ProfileStore()
        self.resumes = resumes or ResumeStore()
        self.skills = skills or get_user_skill_service()
        self.parser = parser or get_resume_parser()

    # ============================================================
    # PROFILE
    # ============================================================

    def _require_student(self, user_id: str) -> dict:
        student = self.students.get_by_id(user_id)
        if not student:
            raise NotFoundError(f"User not found: {user_id}")
        return student

    def _default_profile(self, student: dict) -> dict:
        full_name = f"{student.get('first_name') or ''} {student.get('last_name') or ''}".strip()
        return {
            "user_id": student["id"],
            "full_name": full_name,
            "email": student.get("email"),
            "contact_number": student.get("phone_number"),
            "title": student.get("current_job_role"),
            "summary": student.get("summary"),
            "technical_skills": list(student.get("skills") or []),
            "soft_skills": [],
            "languages": [],
            "education": [],
            "experience": [],
            "certifications": [],
            "projects": [],
            "preferred_roles": [],
            "current_resume_id": None,
            "is_public": True,
            "seeking_opportunities": True,
        }

    def get_profile(self, user_id: str) -> dict:
        """Fetch the profile, creating a default one from the account on first access."""
        profile = self.profiles.get_by_user(user_id)
        if profile is None:
            student = self._require_student(user_id)
            profile = self.profiles.insert(self._default_profile(student))
            logger.info("Created default profile for user %s", user_id)
        self.skills.sync_skills_from_profile(user_id, profile.get("technical_skills"))
        return profile

    def create_profile(self, user_id: str, data: Dict[str, Any]) -> dict:
        """Create a profile from explicit data; an existing one is updated instead."""
        if self.profiles.get_by_user(user_id) is not None:
            return self.update_profile(user_id, data)

        student = self._require_student(user_id)
        doc = self._default_profile(student)
        doc.update({k: v for k, v in data.items() if v is not None})
        profile = self.profiles.insert(doc)
        self.skills.sync_skills_from_profile(user_id, profile.get("technical_skills"))
        logger.info("New profile created for user %s", user_id)
        return profile

    def update_profile(self, user_id: str, data: Dict[str, Any]) -> dict:
        """Partial update: only non-null fields are written."""
        self.get_profile(user_id)
        updates = {k: v for k, v in data.items() if v is not None}
        profile = self.profiles.update(user_id, updates) if updates else self.profiles.get_by_user(user_id)
        self.skills.sync_skills_from_profile(user_id, profile.get("technical_skills"))
        return profile

    def get_skill_analytics(self, user_id: str) -> dict:
        self._require_student(user_id)
        return self.skills.get_profile_skill_analytics(user_id)

    # ============================================================
    # RESUMES
    # ============================================================

    def _enforce_resume_limit(self, user_id: str) -> None:
        limit = settings.max_resumes_per_user
        while self.resumes.count_by_user(user_id) >= limit:
            oldest = self.resumes.get_oldest(user_id)
            if oldest is None:
                break
            self.resumes.delete(oldest["id"])
            logger.info("Resume limit reached for user %s, deleted oldest %s", user_id, oldest["id"])

    def _store_analysis(self, resume_id: str, analysis: dict) -> float:
        confidence = ANALYSIS_CONFIDENCE if has_data(analysis) else 0.0
        self.resumes.update(resume_id, {
            "full_name": analysis["fullName"],
            "email": analysis["email"],
            "contact_number": analysis["contactNumber"],
            "title": analysis["title"],
            "summary": analysis["summary"],
            "technical_skills": analysis["skills"],
            "certifications": analysis["certifications"],
            "education": analysis["education"],
            "experience": analysis["experience"],
            "analysis_complete": True,
            "analyzed_date": datetime.utcnow(),
            "confidence_score": confidence,
        })
        return confidence

    def merge_analysis_into_profile(self, user_id: str, analysis: dict) -> dict:
        """
        Fill empty scalar fields and append entries the profile does not have yet.
        Nothing already on the profile is overwritten.
        """
        profile = self.get_profile(user_id)
        updates: Dict[str, Any] = {}

        for field, source in _SCALAR_MERGE_FIELDS.items():
            if not profile.get(field) and analysis.get(source):
                updates[field] = analysis[source]

        skills = list(profile.get("technical_skills") or [])
        known = {s.lower() for s in skills}
        for skill in analysis.get("skills", []):
            if skill.lower() not in known:
                skills.append(skill)
                known.add(skill.lower())
        if len(skills) != len(profile.get("technical_skills") or []):
            updates["technical_skills"] = skills

        education = list(profile.get("education") or [])
        seen = {_key(e.get("degree"), e.get("institution")) for e in education}
        for edu in analysis.get("education", []):
            k = _key(edu.get("degree"), edu.get("institution"))
            if k not in seen:
                education.append(edu)
                seen.add(k)
        if len(education) != len(profile.get("education") or []):
            updates["education"] = education

        experience = list(profile.get("experience") or [])
        seen = {_key(e.get("position"), e.get("company")) for e in experience}
        for exp in analysis.get("experience", []):
            k = _key(exp.get("position"), exp.get("company"))
            if k not in seen:
                experience.append(exp)
                seen.add(k)
        if len(experience) != len(profile.get("experience") or []):
            updates["experience"] = experience

        certifications = list(profile.get("certifications") or [])
        seen = {_key(c.get("name")) for c in certifications}
        for name in analysis.get("certifications", []):
            if _key(name) not in seen:
                certifications.append({"name": name})
                seen.add(_key(name))
        if len(certifications) != len(profile.get("certifications") or []):
            updates["certifications"] = certifications

        if not updates:
            return profile
        logger.info("Merging resume analysis into profile of %s: %s", user_id, sorted(updates))
        return self.profiles.update(user_id, updates)

    def _activate(self, user_id: str, resume_id: Optional[str]) -> None:
        self.resumes.deactivate_all(user_id)
        if resume_id:
            self.resumes.update(resume_id, {"is_active": True})
        self.profiles.update(user_id, {"current_resume_id": resume_id})

    def upload_and_analyze_resume(self, user_id: str, content: bytes, ext: str,
                                  original_filename: str) -> dict:
        """Run the full upload pipeline (see module docstring)."""
        self._require_student(user_id)
        text = extract_text(content, ext)

        self._enforce_resume_limit(user_id)

        resume_id = self.resumes.insert({
            "user_id": user_id,
            "file_name": f"resume_{int(time.time() * 1000)}{ext}",
            "original_file_name": original_filename,
            "file_type": CONTENT_TYPES[ext],
            "file_size": len(content),
            "file_data": content,
            "checksum": hashlib.sha256(content).hexdigest(),
            "upload_date": datetime.utcnow(),
            "analysis_complete": False,
            "is_active": False,
            "confidence_score": 0.0,
            "upload_source": "web_upload",
        })
        logger.info("Stored resume %s for user %s (%d bytes)", resume_id, user_id, len(content))

        analysis = self.parser.analyze_resume(text)
        confidence = self._store_analysis(resume_id, analysis)

        profile = self.merge_analysis_into_profile(user_id, analysis)
        self._activate(user_id, resume_id)
        self.skills.sync_skills_from_profile(user_id, profile.get("technical_skills"))

        return {
            "success": True,
            "message": "Resume uploaded and analyzed successfully",
            "analysisResult": analysis,
            "resumeId": resume_id,
            "profileId": profile["id"],
            "confidenceScore": confidence,
        }

    def reanalyze_resume(self, user_id: str, resume_id: str) -> dict:
        resume = self.get_resume(user_id, resume_id)
        content = self.resumes.get_file(resume_id)
        if not content:
            raise NotFoundError(f"Resume file missing: {resume_id}")

        ext = next((e for e, ct in CONTENT_TYPES.items() if ct == resume.get("file_type")), ".txt")
        analysis = self.parser.analyze_resume(extract_text(content, ext))
        confidence = self._store_analysis(resume_id, analysis)

        profile = self.merge_analysis_into_profile(user_id, analysis)
        self.skills.sync_skills_from_profile(user_id, profile.get("technical_skills"))

        return {
            "success": True,
            "message": "Resume re-analyzed successfully",
            "analysisResult": analysis,
            "resumeId": resume_id,
            "profileId": profile["id"],
            "confidenceScore": confidence,
        }

    def get_user_resumes(self, user_id: str) -> List[dict]:
        return self.resumes.list_by_user(user_id)

    def get_resume_history(self, user_id: str) -> List[dict]:
        return self.resumes.list_by_user(user_id, limit=settings.max_resumes_per_user)

    def get_resume(self, user_id: str, resume_id: str) -> dict:
        resume = self.resumes.get_by_id(resume_id, user_id=user_id)
        if not resume:
            raise NotFoundError(f"Resume not found: {resume_id}")
        return resume

    def set_active_resume(self, user_id: str, resume_id: str) -> dict:
        self.get_resume(user_id, resume_id)
        self._activate(user_id, resume_id)
        return self.get_resume(user_id, resume_id)

    def delete_resume(self, user_id: str, resume_id: str) -> None:
        """Delete a resume; if it was active, the newest remaining one takes over."""
        resume = self.get_resume(user_id, resume_id)
        self.resumes.delete(resume_id)

        if resume.get("is_active"):
            remaining = self.resumes.list_by_user(user_id, limit=1)
            self._activate(user_id, remaining[0]["id"] if remaining else None)
        logger.info("Deleted resume %s for user %s", resume_id, user_id)

    # ============================================================
    # SKILL GAP DATA (shape consumed by the ML service)
    # ============================================================

    def get_skill_gap_data(self, user_id: str) -> dict:
        student = self._require_student(user_id)
        profile = self.profiles.get_by_user(user_id) or {}
        years = student.get("years_of_experience") or 0

        profile_data = {
            "firstName": student.get("first_name"),
            "lastName": student.get("last_name"),
            "email": student.get("email"),
            "currentJobRole": student.get("current_job_role"),
            "yearsOfExperience": years,
            "summary": profile.get("summary") or student.get("summary"),
            "skills": profile.get("technical_skills") or student.get("skills") or [],
            "certifications": profile.get("certifications") or student.get("certifications") or [],
            "education": profile.get("education") or student.get("education") or [],
            "experience": profile.get("experience") or student.get("experience") or [],
            "totalExperience": f"{years} years",
        }

        skills_data = [
            {
                "name": s["name"],
                "proficiency": s.get("proficiency", 0),
                "level": s.get("level"),
                "verified": bool(s.get("verified")),
                "confidence": s.get("confidence_level"),
                "experienceMonths": s.get("experience_months", 0),
                "category": s.get("category"),
            }
            for s in self.skills.get_user_skills(user_id)
        ]
        return {"profile": profile_data, "skills": skills_data}


# Factory function
def get_profile_service() -> ProfileService:
    return ProfileService()
