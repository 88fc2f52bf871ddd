"""
Recommendation Service - courses and a learning pathway for a user's skill gap.

The ML service picks the courses. This module prepares its input from the
latest stored skill gap analysis and degrades gracefully:

- no analysis yet        -> fixed starter recommendations
- ML service unavailable -> pathway/insights built locally, no courses
"""

import logging
from typing import Any, Dict, List, Optional

from app.schemas.schemas import CourseRecommendation, LearningPathStep, RecommendationResponse
from app.services.ml_service_client import MLServiceClient, MLServiceError, get_ml_client
from app.services.mongo_service import (
    CourseActionStore,
    CourseRecommendationStore,
    SkillGapAnalysisStore,
    StudentStore,
)

logger = logging.getLogger(__name__)

DEFAULT_JOB_ROLE = "Software Engineer"

SKILL_DESCRIPTIONS = {
    "Cloud Computing": "Managing and deploying applications on cloud platforms",
    "Automation": "Automating processes and workflows",
    "CI/CD": "Continuous Integration and Continuous Deployment practices",
    "Python": "Versatile programming language for various applications",
    "Linux": "Operating system and command-line proficiency",
    "Git": "Version control system for collaborative development",
    "SQL": "Database querying and management",
    "Security": "Application and data security practices",
    "Java": "Object-oriented programming language",
    "JavaScript": "Client-side and server-side scripting",
    "CSS": "Styling and layout for web applications",
    "HTML": "Markup language for web content",
    "React": "JavaScript library for building user interfaces",
}
DEFAULT_SKILL_DESCRIPTION = "Essential skill for professional development"


def priority_for_importance(importance: Optional[float]) -> str:
    importance = importance or 0.0
    if importance > 0.1:
        return "High"
    if importance > 0.05:
        return "Medium"
    return "Low"


def skill_description(name: str) -> str:
    return SKILL_DESCRIPTIONS.get(name, DEFAULT_SKILL_DESCRIPTION)


def progress_percentage(analysis: dict) -> float:
    required = len(analysis.get("required_skills") or [])
    current = len(analysis.get("current_skills") or [])
    return current / required * 100 if required else 0.0


def fallback_insights(analysis: dict) -> List[str]:
    match_score = analysis.get("match_score") or 0.0
    if match_score >= 80:
        insights = ["🎉 Excellent match! Focus on mastering advanced concepts in your strongest areas."]
    elif match_score >= 60:
        insights = ["📈 Good foundation! Work on your missing skills to become highly competitive."]
    else:
        insights = ["🚀 Great opportunity for growth! Start with foundational skills and build systematically."]

    if any("cloud" in (s.get("name") or "").lower() for s in analysis.get("missing_skills") or []):
        insights.append("☁️ Cloud skills are in high demand and can significantly increase your market value.")

    insights.append("⏱️ Complete the recommended courses in order for maximum learning efficiency.")
    insights.append("🎯 Focus on practical projects to reinforce your learning.")
    return insights


def basic_learning_pathway(analysis: dict) -> List[LearningPathStep]:
    missing = analysis.get("missing_skills") or []
    high = [s["name"] for s in missing if (s.get("importance") or 0) > 0.1][:3]
    medium = [s["name"] for s in missing if 0.05 < (s.get("importance") or 0) <= 0.1][:3]

    pathway = []
    if high:
        pathway.append(LearningPathStep(
            step=len(pathway) + 1,
            title="Master " + ", ".join(high[:2]),
            description="Build strong foundation in high-priority technologies",
            duration="3 weeks",
            skills=high,
            status="current",
            courses=["course_1", "course_2"],
        ))
    if medium:
        pathway.append(LearningPathStep(
            step=len(pathway) + 1,
            title="Learn Additional Core Technologies",
            description="Expand your skill set with important supporting technologies",
            duration="2 weeks",
            skills=medium,
            status="current" if not pathway else "upcoming",
            courses=["course_3", "course_4"],
        ))
    return pathway


def starter_recommendations() -> RecommendationResponse:
    """Used before the user has run any skill gap analysis."""
    return RecommendationResponse(
        missing_skills=[
            {"name": "Node.js", "description": "JavaScript runtime", "importance": 0.8,
             "category": "Technical", "priority": "High"},
            {"name": "MongoDB", "description": "NoSQL database", "importance": 0.7,
             "category": "Technical", "priority": "High"},
            {"name": "Git", "description": "Version control", "importance": 0.6,
             "category": "Technical", "priority": "Medium"},
        ],
        course_recommendations=[],
        learning_pathway=[
            LearningPathStep(
                step=1,
                title="Master Node.js & MongoDB Fundamentals",
                description="Build strong foundation in backend technologies",
                duration="2 weeks",
                skills=["Node.js", "MongoDB"],
                status="current",
                courses=["course_1", "course_2"],
            ),
            LearningPathStep(
                step=2,
                title="Learn Git & Collaboration",
                description="Master version control and team workflows",
                duration="1 week",
                skills=["Git"],
                status="upcoming",
                courses=["course_3"],
            ),
        ],
        insights=[
            "Start with foundational skills and build systematically.",
            "Focus on practical projects to reinforce learning.",
            "Complete courses in order for maximum efficiency.",
        ],
        progress_percentage=0.0,
    )


def parse_courses(raw: Any) -> List[CourseRecommendation]:
    """ML course dicts -> CourseRecommendation; unusable entries are skipped."""
    courses = []
    for item in raw or []:
        if not isinstance(item, dict):
            continue
        data = dict(item)
        # the ML service calls it "students"
        if data.get("students") is not None and data.get("studentCount") is None:
            data["studentCount"] = data.pop("students")
        data = {k: v for k, v in data.items() if v is not None}
        try:
            courses.append(CourseRecommendation.model_validate(data))
        except ValueError as e:
            logger.warning("Skipping malformed course from ML service: %s", e)
    return courses


def parse_pathway(raw: Any) -> List[LearningPathStep]:
    steps = []
    for item in raw or []:
        if not isinstance(item, dict):
            continue
        try:
            steps.append(LearningPathStep.model_validate(
                {k: v for k, v in item.items() if v is not None}
            ))
        except ValueError as e:
            logger.warning("Skipping malformed pathway step from ML service: %s", e)
    return steps


class RecommendationService:

    def __init__(
        self,
        analyses: SkillGapAnalysisStore = None,
        students: StudentStore = None,
        courses: CourseRecommendationStore = None,
        enrollments: CourseActionStore = None,
        saved_courses: CourseActionStore = None,
        ml_client: MLServiceClient = None,
    ):
        self.analyses = analyses or SkillGapAnalysisStore()
        self.students = students or StudentStore()
        self.courses = courses or CourseRecommendationStore()
        self.enrollments = enrollments or CourseActionStore("enrollments")
        self.saved_courses = saved_courses or CourseActionStore("saved_courses")
        self.ml_client = ml_client or get_ml_client()

    def _missing_skills(self, analysis: dict, with_description: bool = False) -> List[Dict[str, Any]]:
        skills = []
        for s in analysis.get("missing_skills") or []:
            entry = {
                "name": s.get("name"),
                "importance": s.get("importance"),
                "category": s.get("category"),
                "priority": priority_for_importance(s.get("importance")),
            }
            if with_description:
                entry["description"] = skill_description(s.get("name"))
            skills.append(entry)
        return skills

    def _profile_data(self, student: Optional[dict], current_job_role: str) -> dict:
        if student is None:
            return {"currentJobRole": current_job_role, "yearsOfExperience": 0, "department": "Not specified"}

        data = {
            "firstName": student.get("first_name"),
            "lastName": student.get("last_name"),
            "email": student.get("email"),
            "currentJobRole": student.get("current_job_role"),
            "yearsOfExperience": student.get("years_of_experience"),
            "department": student.get("department"),
            "company": student.get("company_name") or "Not specified",
        }
        if student.get("education"):
            data["education"] = student["education"]
        if student.get("experience"):
            data["experience"] = student["experience"]
        return data

    def generate_recommendations(self, user_id: str) -> RecommendationResponse:
        logger.info("Generating recommendations for user %s", user_id)

        analysis = self.analyses.get_latest(user_id)
        if analysis is None:
            logger.warning("No skill gap analysis for user %s, using starter recommendations", user_id)
            return starter_recommendations()

        student = self.students.get_by_id(user_id)
        current_job_role = (student or {}).get("current_job_role") or DEFAULT_JOB_ROLE

        payload = {
            "user_id": user_id,
            "job_role": analysis.get("job_role"),
            "current_job_role": current_job_role,
            "missing_skills": self._missing_skills(analysis),
            "current_skills": analysis.get("current_skills") or [],
            "profile_data": self._profile_data(student, current_job_role),
            "skills_data": analysis.get("current_skills") or [],
        }

        try:
            body = self.ml_client.generate_recommendations(payload)
        except MLServiceError as e:
            logger.warning("ML recommendations unavailable for user %s (%s), using basic ones", user_id, e)
            return RecommendationResponse(
                missing_skills=self._missing_skills(analysis),
                learning_pathway=basic_learning_pathway(analysis),
                insights=fallback_insights(analysis),
                progress_percentage=progress_percentage(analysis),
                current_job_role=current_job_role,
                target_job_role=analysis.get("job_role"),
            )

        courses = parse_courses(body.get("courseRecommendations"))
        insights = [i for i in body.get("insights") or [] if isinstance(i, str)]

        self.courses.replace_for_user(user_id, [c.model_dump() for c in courses])

        return RecommendationResponse(
            missing_skills=self._missing_skills(analysis, with_description=True),
            course_recommendations=courses,
            learning_pathway=parse_pathway(body.get("learningPathway")),
            insights=insights or fallback_insights(analysis),
            progress_percentage=progress_percentage(analysis),
            current_job_role=current_job_role,
            target_job_role=analysis.get("job_role"),
        )

    def get_saved_recommendations(self, user_id: str) -> List[dict]:
        return self.courses.list_by_user(user_id)

    def save_enrollment(self, user_id: str, course_id: str, course_title: str = None) -> bool:
        created = self.enrollments.save(user_id, course_id, course_title)
        logger.info("User %s enrolled in course %s (%s)", user_id, course_id, course_title)
        return created

    def save_course(self, user_id: str, course_id: str, course_title: str = None) -> bool:
        created = self.saved_courses.save(user_id, course_id, course_title)
        logger.info("User %s saved course %s (%s)", user_id, course_id, course_title)
        return created

    def get_enrollments(self, user_id: str) -> List[dict]:
        return self.enrollments.list_by_user(user_id)

    def get_saved_courses(self, user_id: str) -> List[dict]:
        return self.saved_courses.list_by_user(user_id)


# Factory function
def get_recommendation_service() -> RecommendationService:
    return RecommendationService()
