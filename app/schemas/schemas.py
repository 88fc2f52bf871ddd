"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.

The JSON API speaks camelCase (what the web client and the ML service use);
Python code and MongoDB documents use snake_case. CamelModel bridges the two:
fields are declared snake_case, serialized with camelCase aliases, and
accepted under either name.
"""

import time
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_serializer
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================
# ENUMS
# ============================================================

class UserRole(str, Enum):
    employee = "employee"
    hr = "hr"


class SkillStatus(str, Enum):
    pending = "pending"
    verified = "verified"
    unverified = "unverified"
    needs_improvement = "needs_improvement"


# ============================================================
# GENERIC RESPONSES
# ============================================================

class MessageResponse(BaseModel):
    message: str
    success: bool = True


T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope used by the recommendation endpoints. Null fields are omitted."""
    success: bool
    message: Optional[str] = None
    data: Optional[T] = None
    error: Optional[str] = None
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000))
    status: int = 200

    @model_serializer(mode="wrap")
    def _drop_nulls(self, handler):
        return {k: v for k, v in handler(self).items() if v is not None}

    @classmethod
    def ok(cls, data: Any = None, message: str = "Operation completed successfully") -> "ApiResponse":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, error: str, status: int = 400) -> "ApiResponse":
        return cls(success=False, error=error, status=status)


# ============================================================
# AUTH SCHEMAS
# ============================================================

class SignupRequest(CamelModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)
    phone_number: Optional[str] = None
    dob: Optional[str] = None
    role: UserRole = UserRole.employee
    company_name: Optional[str] = None
    current_job_role: Optional[str] = None
    years_of_experience: Optional[int] = Field(None, ge=0, le=70)
    department: Optional[str] = None
    skills: List[str] = []
    summary: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class UserResponse(CamelModel):
    id: str
    first_name: str
    last_name: str
    email: str
    role: str
    phone_number: Optional[str] = None
    company_name: Optional[str] = None
    current_job_role: Optional[str] = None
    years_of_experience: Optional[int] = None
    department: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


class LoginResponse(CamelModel):
    message: str = "Login successful"
    user: UserResponse


# ============================================================
# PROFILE SCHEMAS
# ============================================================

class Education(CamelModel):
    degree: str = ""
    institution: str = ""
    year: Optional[str] = None
    field_of_study: Optional[str] = None
    grade: Optional[str] = None


class Experience(CamelModel):
    position: str = ""
    company: str = ""
    duration: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None


class Certification(CamelModel):
    name: str
    issuer: Optional[str] = None
    issue_date: Optional[str] = None
    credential_url: Optional[str] = None


class Project(CamelModel):
    name: str
    description: Optional[str] = None
    technologies: List[str] = []
    url: Optional[str] = None


class ProfileUpdate(CamelModel):
    """Every field optional; only provided (non-null) fields are applied."""
    full_name: Optional[str] = None
    email: Optional[EmailStr] = None
    contact_number: Optional[str] = None
    location: Optional[str] = None
    linked_in_url: Optional[str] = None
    github_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    title: Optional[str] = None
    summary: Optional[str] = None
    technical_skills: Optional[List[str]] = None
    soft_skills: Optional[List[str]] = None
    languages: Optional[List[str]] = None
    total_experience: Optional[str] = None
    education: Optional[List[Education]] = None
    experience: Optional[List[Experience]] = None
    certifications: Optional[List[Certification]] = None
    projects: Optional[List[Project]] = None
    is_public: Optional[bool] = None
    seeking_opportunities: Optional[bool] = None
    preferred_roles: Optional[List[str]] = None
    expected_salary: Optional[str] = None
    notice_period: Optional[str] = None


class ProfileResponse(CamelModel):
    id: str
    user_id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    contact_number: Optional[str] = None
    location: Optional[str] = None
    linked_in_url: Optional[str] = None
    github_url: Optional[str] = None
    portfolio_url: Optional[str] = None
    title: Optional[str] = None
    summary: Optional[str] = None
    technical_skills: List[str] = []
    soft_skills: List[str] = []
    languages: List[str] = []
    total_experience: Optional[str] = None
    education: List[Education] = []
    experience: List[Experience] = []
    certifications: List[Certification] = []
    projects: List[Project] = []
    current_resume_id: Optional[str] = None
    is_public: bool = True
    seeking_opportunities: bool = True
    preferred_roles: List[str] = []
    expected_salary: Optional[str] = None
    notice_period: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============================================================
# RESUME SCHEMAS
# ============================================================

class ResumeResponse(CamelModel):
    """Resume metadata + analysis. File bytes are never returned."""
    id: str
    user_id: str
    file_name: str
    original_file_name: Optional[str] = None
    file_type: str
    file_size: int
    upload_date: datetime
    analyzed_date: Optional[datetime] = None
    full_name: Optional[str] = None
    email: Optional[str] = None
    contact_number: Optional[str] = None
    title: Optional[str] = None
    summary: Optional[str] = None
    technical_skills: List[str] = []
    certifications: List[str] = []
    education: List[Education] = []
    experience: List[Experience] = []
    is_active: bool = False
    analysis_complete: bool = False
    confidence_score: float = 0.0
    upload_source: Optional[str] = None


class ResumeAnalysisResponse(CamelModel):
    success: bool
    message: str
    analysis_result: Dict[str, Any]
    resume_id: str
    profile_id: str
    confidence_score: float


# ============================================================
# USER SKILL SCHEMAS
# ============================================================

class UserSkillResponse(CamelModel):
    id: str
    user_id: str
    name: str
    category: Optional[str] = None
    proficiency: int = 0
    score: int = 0
    level: Optional[str] = None
    status: Optional[str] = None
    verified: bool = False
    experience_months: int = 0
    confidence_level: Optional[str] = None
    last_verified: Optional[datetime] = None
    projects: List[Any] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============================================================
# EXAM SCHEMAS
# ============================================================

class ExamRequest(CamelModel):
    skill: Optional[str] = None
    category: Optional[str] = None
    difficulty: Optional[str] = None
    number_of_questions: Optional[int] = Field(None, ge=1, le=20)


class ExamResultRequest(BaseModel):
    score: int = Field(..., ge=0, le=100)
    status: SkillStatus


class AnswerEvaluationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question: str = Field(..., min_length=1)
    # clients send userAnswer
    answer: str = Field(..., min_length=1, alias="userAnswer")
    context: Optional[str] = None


# ============================================================
# SKILL GAP SCHEMAS
# Mirrors the ML service's /internal-analyze response. Missing or
# null values fall back to defaults so partial payloads still parse.
# ============================================================

def _none_to_default(value, default):
    return default if value is None else value


class SkillAnalysis(CamelModel):
    name: str = ""
    importance: float = 0.0
    required_proficiency: int = 0
    category: Optional[str] = None
    probability: float = 0.0
    user_proficiency: int = 0
    gap: int = 0
    status: Optional[str] = None
    user_confidence: Optional[str] = None

    @field_validator("importance", "probability", "required_proficiency", "user_proficiency", "gap",
                     mode="before")
    @classmethod
    def _numbers(cls, v):
        return _none_to_default(v, 0)

    @field_validator("required_proficiency", "user_proficiency", "gap", mode="before")
    @classmethod
    def _round(cls, v):
        return int(round(float(v))) if isinstance(v, (int, float)) else v


class UserSkillAnalysis(CamelModel):
    name: str = ""
    proficiency: int = 0
    level: Optional[str] = None
    verified: bool = False
    confidence: Optional[str] = None

    @field_validator("proficiency", mode="before")
    @classmethod
    def _proficiency(cls, v):
        v = _none_to_default(v, 0)
        return int(round(float(v))) if isinstance(v, (int, float)) else v

    @field_validator("verified", mode="before")
    @classmethod
    def _verified(cls, v):
        return _none_to_default(v, False)

    @field_validator("confidence", mode="before")
    @classmethod
    def _confidence(cls, v):
        # some ML builds send a float here
        return v if v is None or isinstance(v, str) else str(v)


class SkillGapAnalysisResult(CamelModel):
    user_id: Optional[str] = None
    job_role: Optional[str] = None
    match_score: float = 0.0
    required_skills: List[SkillAnalysis] = []
    current_skills: List[UserSkillAnalysis] = []
    missing_skills: List[SkillAnalysis] = []
    partial_match_skills: List[SkillAnalysis] = []
    gap_analysis: Dict[str, Any] = {}
    recommendations: List[str] = []
    time_to_close_gap: Optional[str] = None
    salary_impact: Optional[str] = None

    @field_validator("required_skills", "current_skills", "missing_skills", "partial_match_skills",
                     "recommendations", mode="before")
    @classmethod
    def _lists(cls, v):
        return _none_to_default(v, [])

    @field_validator("gap_analysis", mode="before")
    @classmethod
    def _dict(cls, v):
        return _none_to_default(v, {})

    @field_validator("match_score", mode="before")
    @classmethod
    def _score(cls, v):
        return _none_to_default(v, 0.0)


class SkillGapRequest(CamelModel):
    job_role: str = Field(..., min_length=1)


class StoredSkillGapAnalysis(SkillGapAnalysisResult):
    id: str
    is_current_role: bool = False
    analyzed_at: datetime


class CurrentRoleResponse(CamelModel):
    user_id: str
    current_role: str
    has_analysis: bool
    match_score: Optional[float] = None
    analyzed_at: Optional[datetime] = None
    required_skills: List[SkillAnalysis] = []
    current_skills: List[UserSkillAnalysis] = []
    missing_skills: List[SkillAnalysis] = []
    partial_match_skills: List[SkillAnalysis] = []
    gap_analysis: Dict[str, Any] = {}
    recommendations: List[str] = []
    time_to_close_gap: Optional[str] = None
    salary_impact: Optional[str] = None


# ============================================================
# RECOMMENDATION SCHEMAS
# ============================================================

class CourseRecommendation(CamelModel):
    id: Optional[str] = None
    skill_id: Optional[str] = None
    skill_name: Optional[str] = None
    platform: Optional[str] = None
    title: Optional[str] = None
    instructor: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    duration: Optional[str] = None
    difficulty: Optional[str] = None
    rating: float = 4.0
    student_count: int = 1000
    price: Optional[str] = None
    original_price: Optional[str] = None
    features: List[str] = []
    duration_category: Optional[str] = None
    platform_icon: Optional[str] = None
    relevance_score: float = 0.8


class LearningPathStep(CamelModel):
    step: int
    title: str
    description: Optional[str] = None
    duration: Optional[str] = None
    skills: List[str] = []
    status: Optional[str] = None
    courses: List[str] = []


class RecommendationResponse(CamelModel):
    missing_skills: List[Dict[str, Any]] = []
    course_recommendations: List[CourseRecommendation] = []
    learning_pathway: List[LearningPathStep] = []
    insights: List[str] = []
    progress_percentage: float = 0.0
    current_job_role: Optional[str] = None
    target_job_role: Optional[str] = None


class CourseAction(CamelModel):
    course_id: str
    course_title: Optional[str] = None
    created_at: Optional[datetime] = None
