"""Tests for skill gap analysis through the ML service"""

import json

import httpx
import pytest

from app.core.exceptions import NotFoundError, ValidationError
from app.services.ml_service_client import MLServiceError
from app.services.profile_service import ProfileService
from app.services.resume_parsing_service import ResumeParsingService
from app.services.skill_gap_service import SkillGapService
from tests.conftest import FakeAIClient, ml_client_for


ML_ANALYSIS = {
    "match_score": 62.5,
    "required_skills": [
        {"name": "Python", "importance": 0.2, "required_proficiency": 80, "probability": 0.9},
        {"name": "Kafka", "importance": 0.1, "required_proficiency": 70.4, "probability": None},
    ],
    "current_skills": [{"name": "Python", "proficiency": 55.6, "verified": None, "confidence": 0.7}],
    "missing_skills": [{"name": "Kafka", "importance": 0.1, "gap": 70}],
    "partial_match_skills": None,
    "gap_analysis": {"overall": "moderate"},
    "recommendations": ["Learn Kafka"],
    "time_to_close_gap": "3-6 months",
}


def make_service(handler):
    profiles = ProfileService(parser=ResumeParsingService(ai_client=FakeAIClient()))
    return SkillGapService(profiles=profiles, ml_client=ml_client_for(handler))


def ok_handler(seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(json.loads(request.content))
        return httpx.Response(200, json=ML_ANALYSIS)
    return handler


class TestAnalyzeSkillGap:

    def test_sends_profile_and_skills(self, student_id):
        seen = []
        make_service(ok_handler(seen)).analyze_skill_gap(student_id, "Data Engineer")

        payload = seen[0]
        assert payload["user_id"] == student_id
        assert payload["job_role"] == "Data Engineer"
        assert payload["profile_data"]["currentJobRole"] == "Backend Developer"
        assert isinstance(payload["skills_data"], list)

    def test_lenient_parsing(self, student_id):
        result = make_service(ok_handler()).analyze_skill_gap(student_id, "Data Engineer")

        assert result.user_id == student_id
        assert result.job_role == "Data Engineer"
        assert result.match_score == 62.5
        assert result.required_skills[1].required_proficiency == 70
        assert result.required_skills[1].probability == 0.0
        assert result.current_skills[0].proficiency == 56
        assert result.current_skills[0].verified is False
        assert result.current_skills[0].confidence == "0.7"
        assert result.partial_match_skills == []

    def test_result_serializes_camel_case(self, student_id):
        result = make_service(ok_handler()).analyze_skill_gap(student_id, "Data Engineer")
        data = result.model_dump(by_alias=True)
        assert data["matchScore"] == 62.5
        assert data["missingSkills"][0]["name"] == "Kafka"
        assert data["timeToCloseGap"] == "3-6 months"

    def test_only_latest_is_current(self, student_id, fake_db):
        service = make_service(ok_handler())
        service.analyze_skill_gap(student_id, "Data Engineer")
        service.analyze_skill_gap(student_id, "Platform Engineer")

        docs = fake_db["skill_gap_analyses"].docs
        assert len(docs) == 2
        assert [d["is_current_role"] for d in docs] == [False, True]

        current = service.get_current_role_analysis(student_id)
        assert current.has_analysis is True
        assert current.current_role == "Platform Engineer"
        assert current.match_score == 62.5
        assert current.recommendations == ["Learn Kafka"]

        history = service.get_analysis_history(student_id)
        assert [h["job_role"] for h in history] == ["Platform Engineer", "Data Engineer"]

    def test_blank_job_role(self, student_id):
        calls = []
        service = make_service(lambda request: calls.append(request) or httpx.Response(200, json=ML_ANALYSIS))
        with pytest.raises(ValidationError):
            service.analyze_skill_gap(student_id, "   ")
        assert calls == []

    def test_unknown_user(self):
        with pytest.raises(NotFoundError):
            make_service(ok_handler()).analyze_skill_gap("64b7f0c2a1b2c3d4e5f60718", "Data Engineer")

    def test_ml_failure_is_not_stored(self, student_id, fake_db):
        service = make_service(lambda request: httpx.Response(503, text="down"))
        with pytest.raises(MLServiceError):
            service.analyze_skill_gap(student_id, "Data Engineer")
        assert fake_db.get("skill_gap_analyses") is None or fake_db["skill_gap_analyses"].docs == []

    def test_invalid_analysis(self, student_id):
        bad = {"match_score": "not a number"}
        service = make_service(lambda request: httpx.Response(200, json=bad))
        with pytest.raises(MLServiceError):
            service.analyze_skill_gap(student_id, "Data Engineer")


class TestCurrentRole:

    def test_without_analysis(self, student_id):
        current = make_service(ok_handler()).get_current_role_analysis(student_id)
        assert current.current_role == "Not set"
        assert current.has_analysis is False
        assert current.missing_skills == []
