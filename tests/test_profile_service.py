"""Tests for profiles and the resume upload pipeline"""

import json

import pytest

from app.core.exceptions import NotFoundError
from app.services.profile_service import ANALYSIS_CONFIDENCE, ProfileService
from app.services.resume_parsing_service import ResumeParsingService
from tests.conftest import FakeAIClient


RESUME_TEXT = b"Asha Rao\nasha@example.com\nSenior Backend Developer\nPython, FastAPI, Docker"

ANALYSIS_REPLY = json.dumps({
    "fullName": "Asha Rao",
    "email": "asha@example.com",
    "contactNumber": "+91 98765 43210",
    "title": "Senior Backend Developer",
    "skills": ["python", "FastAPI", "Docker"],
    "certifications": ["AWS Certified Developer"],
    "education": [{"degree": "B.Tech", "institution": "NIT Trichy", "year": "2019"}],
    "experience": [{"position": "Engineer", "company": "Acme", "duration": "3 years", "description": "APIs"}],
    "summary": "Backend engineer.",
})


@pytest.fixture
def ai():
    return FakeAIClient()


@pytest.fixture
def service(fake_db, ai):
    return ProfileService(parser=ResumeParsingService(ai_client=ai))


class TestProfile:

    def test_default_profile_from_account(self, service, student_id, fake_db):
        profile = service.get_profile(student_id)
        assert profile["full_name"] == "Asha Rao"
        assert profile["title"] == "Backend Developer"
        assert profile["technical_skills"] == ["Python", "MongoDB"]
        assert profile["is_public"] is True
        assert profile["experience"] == []

        # skills are tracked as soon as the profile exists
        names = sorted(d["name"] for d in fake_db["user_skills"].docs)
        assert names == ["MongoDB", "Python"]

    def test_get_profile_is_idempotent(self, service, student_id, fake_db):
        first = service.get_profile(student_id)
        second = service.get_profile(student_id)
        assert first["id"] == second["id"]
        assert len(fake_db["user_profiles"].docs) == 1

    def test_unknown_user(self, service):
        with pytest.raises(NotFoundError):
            service.get_profile("64b7f0c2a1b2c3d4e5f60718")

    def test_create_profile_with_data(self, service, student_id):
        profile = service.create_profile(student_id, {"title": "Tech Lead", "summary": None})
        assert profile["title"] == "Tech Lead"
        assert profile["full_name"] == "Asha Rao"

    def test_create_existing_profile_updates(self, service, student_id, fake_db):
        service.get_profile(student_id)
        profile = service.create_profile(student_id, {"title": "Tech Lead"})
        assert profile["title"] == "Tech Lead"
        assert len(fake_db["user_profiles"].docs) == 1

    def test_update_ignores_nulls_and_syncs_skills(self, service, student_id, fake_db):
        service.get_profile(student_id)
        profile = service.update_profile(student_id, {
            "summary": "Updated", "title": None, "technical_skills": ["Python", "Kafka"],
        })
        assert profile["summary"] == "Updated"
        assert profile["title"] == "Backend Developer"
        names = {d["name"] for d in fake_db["user_skills"].docs}
        assert "Kafka" in names

    def test_skill_analytics(self, service, student_id):
        service.get_profile(student_id)
        analytics = service.get_skill_analytics(student_id)
        assert analytics["totalSkills"] == 2
        assert analytics["levelDistribution"]["pending"] == 2


class TestResumeUpload:

    def test_upload_merges_analysis(self, service, student_id, ai, fake_db):
        ai.replies.append(ANALYSIS_REPLY)
        result = service.upload_and_analyze_resume(student_id, RESUME_TEXT, ".txt", "cv.txt")

        assert result["success"] is True
        assert result["confidenceScore"] == ANALYSIS_CONFIDENCE
        assert result["analysisResult"]["skills"] == ["python", "FastAPI", "Docker"]

        profile = service.get_profile(student_id)
        # existing values are kept, blanks are filled
        assert profile["title"] == "Backend Developer"
        assert profile["contact_number"] == "+91 98765 43210"
        assert profile["technical_skills"] == ["Python", "MongoDB", "FastAPI", "Docker"]
        assert profile["certifications"] == [{"name": "AWS Certified Developer"}]
        assert profile["education"][0]["institution"] == "NIT Trichy"
        assert profile["current_resume_id"] == result["resumeId"]

        resume = service.get_resume(student_id, result["resumeId"])
        assert resume["is_active"] is True
        assert resume["analysis_complete"] is True
        assert resume["original_file_name"] == "cv.txt"
        assert resume["file_name"].startswith("resume_") and resume["file_name"].endswith(".txt")
        assert "file_data" not in resume

        assert {d["name"] for d in fake_db["user_skills"].docs} >= {"FastAPI", "Docker"}

    def test_reupload_does_not_duplicate_entries(self, service, student_id, ai):
        ai.replies.extend([ANALYSIS_REPLY, ANALYSIS_REPLY])
        service.upload_and_analyze_resume(student_id, RESUME_TEXT, ".txt", "cv.txt")
        service.upload_and_analyze_resume(student_id, RESUME_TEXT, ".txt", "cv2.txt")

        profile = service.get_profile(student_id)
        assert len(profile["technical_skills"]) == 4
        assert len(profile["education"]) == 1
        assert len(profile["experience"]) == 1
        assert len(profile["certifications"]) == 1

    def test_ai_failure_still_stores_resume(self, service, student_id, ai):
        ai.error = RuntimeError("quota exceeded")
        result = service.upload_and_analyze_resume(student_id, RESUME_TEXT, ".txt", "cv.txt")
        assert result["success"] is True
        assert result["confidenceScore"] == 0.0
        assert len(service.get_user_resumes(student_id)) == 1

    def test_resume_limit_drops_oldest(self, service, student_id, ai):
        ai.error = RuntimeError("offline")
        ids = [
            service.upload_and_analyze_resume(student_id, RESUME_TEXT, ".txt", f"cv{i}.txt")["resumeId"]
            for i in range(5)
        ]
        remaining = {r["id"] for r in service.get_user_resumes(student_id)}
        assert len(remaining) == 4
        assert ids[0] not in remaining
        assert len(service.get_resume_history(student_id)) == 4

    def test_delete_active_resume_activates_newest(self, service, student_id, ai):
        ai.error = RuntimeError("offline")
        first = service.upload_and_analyze_resume(student_id, RESUME_TEXT, ".txt", "a.txt")["resumeId"]
        second = service.upload_and_analyze_resume(student_id, RESUME_TEXT, ".txt", "b.txt")["resumeId"]

        service.delete_resume(student_id, second)
        assert service.get_resume(student_id, first)["is_active"] is True
        assert service.get_profile(student_id)["current_resume_id"] == first

        service.delete_resume(student_id, first)
        assert service.get_profile(student_id)["current_resume_id"] is None

    def test_set_active_resume(self, service, student_id, ai):
        ai.error = RuntimeError("offline")
        first = service.upload_and_analyze_resume(student_id, RESUME_TEXT, ".txt", "a.txt")["resumeId"]
        service.upload_and_analyze_resume(student_id, RESUME_TEXT, ".txt", "b.txt")

        resume = service.set_active_resume(student_id, first)
        assert resume["is_active"] is True
        active = [r for r in service.get_user_resumes(student_id) if r["is_active"]]
        assert [r["id"] for r in active] == [first]

    def test_reanalyze(self, service, student_id, ai):
        ai.replies.extend(["garbage", ANALYSIS_REPLY])
        resume_id = service.upload_and_analyze_resume(student_id, RESUME_TEXT, ".txt", "a.txt")["resumeId"]
        assert service.get_resume(student_id, resume_id)["confidence_score"] == 0.0

        result = service.reanalyze_resume(student_id, resume_id)
        assert result["confidenceScore"] == ANALYSIS_CONFIDENCE
        assert "Docker" in service.get_profile(student_id)["technical_skills"]

    def test_other_users_resume_is_not_found(self, service, student_id, ai, fake_db):
        from tests.conftest import create_student

        ai.error = RuntimeError("offline")
        resume_id = service.upload_and_analyze_resume(student_id, RESUME_TEXT, ".txt", "a.txt")["resumeId"]
        other = create_student(fake_db, email="other@example.com")
        with pytest.raises(NotFoundError):
            service.get_resume(other, resume_id)


class TestSkillGapData:

    def test_shape(self, service, student_id):
        service.get_profile(student_id)
        data = service.get_skill_gap_data(student_id)

        profile = data["profile"]
        assert profile["firstName"] == "Asha"
        assert profile["currentJobRole"] == "Backend Developer"
        assert profile["totalExperience"] == "3 years"
        assert profile["skills"] == ["Python", "MongoDB"]

        skill = data["skills"][0]
        assert set(skill) == {"name", "proficiency", "level", "verified", "confidence",
                              "experienceMonths", "category"}

    def test_without_profile_uses_account(self, service, student_id):
        data = service.get_skill_gap_data(student_id)
        assert data["profile"]["skills"] == ["Python", "MongoDB"]
        assert data["skills"] == []

    def test_unknown_user(self, service):
        with pytest.raises(NotFoundError):
            service.get_skill_gap_data("not-an-id")
