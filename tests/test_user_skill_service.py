"""Tests for skill categories, sync, verification and analytics"""

import pytest

from app.core.exceptions import NotFoundError
from app.services.mongo_service import UserSkillStore
from app.services.user_skill_service import (
    UserSkillService, confidence_value, determine_category, level_for_score, new_skill_doc
)


@pytest.fixture
def service():
    return UserSkillService()


class TestCategories:

    @pytest.mark.parametrize("name,category", [
        ("Python", "Programming"),
        ("C++", "Programming"),
        ("React", "Frontend"),
        ("Node.js", "Backend"),
        ("PostgreSQL", "Database"),
        ("Docker", "Cloud & DevOps"),
        ("Flutter", "Mobile"),
        ("PyTorch", "Data Science & AI"),
        ("Cypress", "Testing"),
        ("Scrum", "Tools & Methodologies"),
        ("Leadership", "Soft Skills"),
        ("Underwater Basket Weaving", "Other"),
    ])
    def test_determine_category(self, name, category):
        assert determine_category(name) == category

    def test_programming_checked_before_frontend(self):
        # "JavaScript" would also be a frontend skill; first group wins
        assert determine_category("JavaScript") == "Programming"

    @pytest.mark.parametrize("score,level", [
        (100, "Expert"), (80, "Expert"), (79, "Advanced"), (60, "Advanced"),
        (59, "Intermediate"), (40, "Intermediate"), (39, "Beginner"), (0, "Beginner"),
    ])
    def test_level_for_score(self, score, level):
        assert level_for_score(score) == level

    def test_confidence_value(self):
        assert confidence_value("high") == 0.9
        assert confidence_value("MEDIUM") == 0.7
        assert confidence_value("low") == 0.3
        assert confidence_value(None) == 0.5


class TestSync:

    def test_creates_pending_skills(self, service):
        skills = service.sync_skills_from_profile("u1", ["Python", "python ", "Docker", ""])
        assert sorted(s["name"] for s in skills) == ["Docker", "Python"]
        python = next(s for s in skills if s["name"] == "Python")
        assert python["status"] == "pending"
        assert python["level"] == "Pending"
        assert python["proficiency"] == 0
        assert python["verified"] is False
        assert python["confidence_level"] == "low"
        assert python["category"] == "Programming"

    def test_existing_skill_keeps_progress_and_gets_category_fixed(self, service, fake_db):
        service.sync_skills_from_profile("u1", ["Python"])
        doc = fake_db["user_skills"].docs[0]
        doc["category"] = "Other"
        doc["proficiency"] = 85

        skills = service.sync_skills_from_profile("u1", ["PYTHON"])
        assert len(skills) == 1
        assert skills[0]["category"] == "Programming"
        assert skills[0]["proficiency"] == 85

    def test_removed_skills_are_kept(self, service):
        service.sync_skills_from_profile("u1", ["Python", "Go"])
        skills = service.sync_skills_from_profile("u1", ["Python"])
        assert {s["name"] for s in skills} == {"Python", "Go"}

    def test_users_are_isolated(self, service):
        service.sync_skills_from_profile("u1", ["Python"])
        service.sync_skills_from_profile("u2", ["Java"])
        assert [s["name"] for s in service.get_user_skills("u2")] == ["Java"]

    def test_repeated_sync_does_not_duplicate(self, service, fake_db):
        service.sync_skills_from_profile("u1", ["Python", "python"])
        service.sync_skills_from_profile("u1", ["Python", "python"])
        assert len(fake_db["user_skills"].docs) == 1


class TestUserSkillStore:

    def test_insert_same_name_twice_keeps_one(self, fake_db):
        store = UserSkillStore()
        first = store.insert(new_skill_doc("u1", "Docker"))
        second = store.insert(new_skill_doc("u1", "docker"))

        assert first is not None
        assert second is None
        docs = fake_db["user_skills"].docs
        assert len(docs) == 1
        assert docs[0]["name"] == "Docker"
        assert docs[0]["name_lower"] == "docker"
        assert docs[0]["user_id"] == "u1"

    def test_insert_same_name_for_other_user(self, fake_db):
        store = UserSkillStore()
        store.insert(new_skill_doc("u1", "Docker"))
        assert store.insert(new_skill_doc("u2", "Docker")) is not None
        assert len(fake_db["user_skills"].docs) == 2


class TestProficiency:

    def test_verified_result(self, service):
        skill = service.sync_skills_from_profile("u1", ["Python"])[0]
        updated = service.update_skill_proficiency(skill["id"], 82, "verified")
        assert updated["score"] == 82
        assert updated["proficiency"] == 82
        assert updated["verified"] is True
        assert updated["level"] == "Expert"
        assert updated["last_verified"] is not None

    def test_needs_improvement_result(self, service):
        skill = service.sync_skills_from_profile("u1", ["Python"])[0]
        updated = service.update_skill_proficiency(skill["id"], 35, "needs_improvement")
        assert updated["verified"] is False
        assert updated["level"] == "Beginner"

    def test_unknown_skill(self, service):
        with pytest.raises(NotFoundError):
            service.update_skill_proficiency("64b7f0c2a1b2c3d4e5f60718", 50, "verified")


class TestAnalytics:

    def test_analytics(self, service):
        skills = service.sync_skills_from_profile("u1", ["Python", "Docker", "Scrum"])
        ids = {s["name"]: s["id"] for s in skills}
        service.update_skill_proficiency(ids["Python"], 90, "verified")
        service.update_skill_proficiency(ids["Docker"], 30, "needs_improvement")

        analytics = service.get_skill_analytics("u1")
        assert analytics["totalSkills"] == 3
        assert analytics["verifiedSkills"] == 1
        assert analytics["averageProficiency"] == 40.0
        assert analytics["skillDistribution"] == {
            "verified": 1, "pending": 1, "unverified": 0, "needs_improvement": 1
        }

    def test_empty_analytics(self, service):
        analytics = service.get_skill_analytics("nobody")
        assert analytics["totalSkills"] == 0
        assert analytics["averageProficiency"] == 0.0

    def test_profile_analytics_distributions(self, service):
        skills = service.sync_skills_from_profile("u1", ["Python", "Java", "React"])
        service.update_skill_proficiency(skills[0]["id"], 65, "verified")

        analytics = service.get_profile_skill_analytics("u1")
        assert analytics["levelDistribution"]["advanced"] == 1
        assert analytics["levelDistribution"]["pending"] == 2
        assert analytics["categoryDistribution"] == {"Programming": 2, "Frontend": 1}

    def test_ml_ready(self, service):
        skills = service.sync_skills_from_profile("u1", ["Python"])
        service.update_skill_proficiency(skills[0]["id"], 70, "verified")

        data = service.get_ml_ready_skills("u1")
        assert data["userId"] == "u1"
        assert data["totalVerifiedSkills"] == 1
        skill = data["skills"][0]
        assert skill["level"] == "advanced"
        assert skill["confidence"] == 0.3
        assert skill["experience_months"] == 0
        assert skill["last_verified"] is not None
        assert data["averageConfidence"] == 0.3

    def test_ml_ready_without_skills(self, service):
        assert service.get_ml_ready_skills("u1")["averageConfidence"] == 0.5
