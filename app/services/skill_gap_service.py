"""
Skill Gap Service - asks the ML service how a user measures up to a job role.

Flow:
1. Gather profile + skills for the user       (profile_service)
2. POST them to the ML service                (/internal-analyze)
3. Store the result as the user's current role analysis
"""

import logging
from datetime import datetime
from typing import List

from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import ValidationError
from app.schemas.schemas import CurrentRoleResponse, SkillGapAnalysisResult
from app.services.ml_service_client import MLServiceClient, MLServiceError, get_ml_client
from app.services.mongo_service import SkillGapAnalysisStore
from app.services.profile_service import ProfileService, get_profile_service

logger = logging.getLogger(__name__)


class SkillGapService:

    def __init__(
        self,
        profiles: ProfileService = None,
        store: SkillGapAnalysisStore = None,
        ml_client: MLServiceClient = None,
    ):
        self.profiles = profiles or get_profile_service()
        self.store = store or SkillGapAnalysisStore()
        self.ml_client = ml_client or get_ml_client()

    def analyze_skill_gap(self, user_id: str, job_role: str) -> SkillGapAnalysisResult:
        """Raises NotFoundError for unknown users, MLServiceError if the ML call fails."""
        job_role = (job_role or "").strip()
        if not job_role:
            raise ValidationError("Job role is required")
        logger.info("Starting skill gap analysis for user %s, role %s", user_id, job_role)

        user_data = self.profiles.get_skill_gap_data(user_id)
        payload = {
            "user_id": user_id,
            "job_role": job_role,
            "profile_data": user_data["profile"],
            "skills_data": user_data["skills"],
        }

        body = self.ml_client.analyze_skill_gap(payload)
        try:
            result = SkillGapAnalysisResult.model_validate(body)
        except PydanticValidationError as e:
            logger.error("Unparseable ML analysis for user %s: %s", user_id, e)
            raise MLServiceError("ML service returned an invalid analysis") from e

        result.user_id = result.user_id or user_id
        result.job_role = result.job_role or job_role

        self._save_as_current(user_id, job_role, result)
        logger.info("Skill gap analysis for user %s done: match %.1f", user_id, result.match_score)
        return result

    def _save_as_current(self, user_id: str, job_role: str, result: SkillGapAnalysisResult) -> str:
        cleared = self.store.clear_current(user_id)
        if cleared:
            logger.debug("Cleared %d current-role flags for user %s", cleared, user_id)

        doc = result.model_dump(exclude={"user_id", "job_role"})
        doc.update({
            "user_id": user_id,
            "job_role": job_role,
            "is_current_role": True,
            "analyzed_at": datetime.utcnow(),
        })
        return self.store.insert(doc)

    def get_current_role_analysis(self, user_id: str) -> CurrentRoleResponse:
        analysis = self.store.get_current(user_id)
        if analysis is None:
            return CurrentRoleResponse(user_id=user_id, current_role="Not set", has_analysis=False)

        return CurrentRoleResponse(
            user_id=user_id,
            current_role=analysis.get("job_role") or "Not set",
            has_analysis=True,
            match_score=analysis.get("match_score"),
            analyzed_at=analysis.get("analyzed_at"),
            required_skills=analysis.get("required_skills") or [],
            current_skills=analysis.get("current_skills") or [],
            missing_skills=analysis.get("missing_skills") or [],
            partial_match_skills=analysis.get("partial_match_skills") or [],
            gap_analysis=analysis.get("gap_analysis") or {},
            recommendations=analysis.get("recommendations") or [],
            time_to_close_gap=analysis.get("time_to_close_gap"),
            salary_impact=analysis.get("salary_impact"),
        )

    def get_analysis_history(self, user_id: str) -> List[dict]:
        """Newest first."""
        return self.store.list_by_user(user_id)


# Factory function
def get_skill_gap_service() -> SkillGapService:
    return SkillGapService()
