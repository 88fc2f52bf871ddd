"""
User Skill Service - tracked skills, categories, verification and analytics.

Skills enter as "pending" when they show up in a profile and become
verified (or needs_improvement) once the user takes an exam.
"""

import logging
import re
from datetime import datetime
from typing import Dict, List, Optional

from app.core.exceptions import NotFoundError
from app.services.mongo_service import UserSkillStore

logger = logging.getLogger(__name__)


# ============================================================
# CATEGORY DETECTION
# First matching group wins
# ============================================================

_CATEGORY_PATTERNS = [
    ("Programming", r"java|python|javascript|typescript|c\+\+|c#|go|rust|kotlin|swift|php|ruby|scala|r|matlab|perl|haskell|elixir|clojure|dart"),
    ("Frontend", r"react|angular|vue|svelte|ember|backbone|jquery|html|css|sass|less|bootstrap|tailwind|webpack|vite|babel|redux|mobx|next\.?js|nuxt\.?js|gatsby"),
    ("Backend", r"node\.?js|express|spring|django|flask|fastapi|laravel|ruby on rails|asp\.net|nestjs|koa|hapi|micronaut|quarkus|graphql|rest api|microservices|serverless"),
    ("Database", r"mysql|postgresql|mongodb|redis|elasticsearch|cassandra|oracle|sql server|sqlite|dynamodb|cosmosdb|firebase|realm|hbase|couchbase|neo4j|arangodb"),
    ("Cloud & DevOps", r"aws|azure|gcp|google cloud|amazon web services|docker|kubernetes|terraform|ansible|jenkins|gitlab|github actions|circleci|travis ci|helm|istio|linkerd|openshift"),
    ("Mobile", r"android|ios|react native|flutter|xamarin|ionic|cordova|phonegap|swiftui|jetpack compose|kotlin multiplatform"),
    ("Data Science & AI", r"tensorflow|pytorch|keras|scikit-learn|pandas|numpy|matplotlib|seaborn|jupyter|tableau|power bi|apache spark|hadoop|kafka|airflow|mlflow|kubeflow|hugging face|openai"),
    ("Testing", r"junit|testng|jest|mocha|chai|cypress|selenium|playwright|pytest|rspec|cucumber|jmeter|postman|soapui"),
    ("Tools & Methodologies", r"git|svn|mercurial|jira|confluence|slack|teams|zoom|agile|scrum|kanban|waterfall|devops|ci/cd|tdd|bdd|domain driven design|clean architecture"),
    ("Soft Skills", r"communication|leadership|teamwork|problem solving|critical thinking|adaptability|time management|creativity|collaboration|presentation|negotiation|conflict resolution|emotional intelligence"),
]

# c++ / c# end in a non-word char, so a trailing \b would never match them
CATEGORY_RULES = [
    (name, re.compile(r"\b(?:" + words + r")(?!\w)")) for name, words in _CATEGORY_PATTERNS
]

CONFIDENCE_VALUES = {"high": 0.9, "medium": 0.7, "low": 0.3}

SKILL_STATUSES = ("verified", "pending", "unverified", "needs_improvement")


def determine_category(skill_name: str) -> str:
    lower = (skill_name or "").lower()
    for category, pattern in CATEGORY_RULES:
        if pattern.search(lower):
            return category
    return "Other"


def level_for_score(score: int) -> str:
    if score >= 80:
        return "Expert"
    if score >= 60:
        return "Advanced"
    if score >= 40:
        return "Intermediate"
    return "Beginner"


def confidence_value(confidence_level: Optional[str]) -> float:
    return CONFIDENCE_VALUES.get((confidence_level or "").lower(), 0.5)


def new_skill_doc(user_id: str, name: str) -> dict:
    """Defaults for a skill first seen on a profile."""
    return {
        "user_id": user_id,
        "name": name,
        "category": determine_category(name),
        "proficiency": 0,
        "score": 0,
        "status": "pending",
        "level": "Pending",
        "verified": False,
        "experience_months": 0,
        "confidence_level": "low",
        "last_verified": None,
        "projects": [],
    }


class UserSkillService:

    def __init__(self, store: UserSkillStore = None):
        self.store = store or UserSkillStore()

    def get_user_skills(self, user_id: str) -> List[dict]:
        return self.store.list_by_user(user_id)

    def sync_skills_from_profile(self, user_id: str, skill_names: List[str]) -> List[dict]:
        """
        Make user_skills mirror the profile's skill list.

        New names (case-insensitive) are created as pending; existing ones
        only get their category corrected. Skills no longer on the profile
        are kept, since they may carry exam results.
        """
        existing = {s["name"].lower(): s for s in self.store.list_by_user(user_id)}
        seen = set()
        created = 0

        for raw_name in skill_names or []:
            name = (raw_name or "").strip()
            key = name.lower()
            if not name or key in seen:
                continue
            seen.add(key)

            if key in existing:
                skill = existing[key]
                category = determine_category(name)
                if skill.get("category") != category:
                    self.store.update(skill["id"], {"category": category})
                continue

            if self.store.insert(new_skill_doc(user_id, name)):
                created += 1

        orphaned = [s["name"] for k, s in existing.items() if k not in seen]
        if orphaned:
            logger.info("User %s has %d skills no longer on profile: %s", user_id, len(orphaned), orphaned)

        logger.info("Synced skills for user %s: %d new, %d total on profile", user_id, created, len(seen))
        return self.store.list_by_user(user_id)

    def update_skill_proficiency(self, skill_id: str, score: int, status: str) -> dict:
        """Record an exam result on a skill."""
        skill = self.store.get_by_id(skill_id)
        if not skill:
            raise NotFoundError(f"Skill not found: {skill_id}")

        now = datetime.utcnow()
        fields = {
            "score": score,
            "proficiency": score,
            "status": status,
            "verified": status == "verified",
            "level": level_for_score(score),
            "last_verified": now,
        }
        self.store.update(skill_id, fields)
        logger.info("Skill %s (%s) scored %d -> %s", skill_id, skill["name"], score, status)
        return {**skill, **fields}

    def get_skill_analytics(self, user_id: str) -> dict:
        skills = self.store.list_by_user(user_id)
        total = len(skills)
        verified = sum(1 for s in skills if s.get("verified"))
        average = sum(s.get("proficiency", 0) for s in skills) / total if total else 0.0

        distribution: Dict[str, int] = {status: 0 for status in SKILL_STATUSES}
        for s in skills:
            status = s.get("status")
            if status in distribution:
                distribution[status] += 1

        return {
            "totalSkills": total,
            "verifiedSkills": verified,
            "averageProficiency": round(average, 2),
            "skillDistribution": distribution,
        }

    def get_profile_skill_analytics(self, user_id: str) -> dict:
        """Totals plus counts per level and per category."""
        skills = self.store.list_by_user(user_id)
        analytics = self.get_skill_analytics(user_id)

        level_dist = {level.lower(): 0 for level in ("Expert", "Advanced", "Intermediate", "Beginner", "Pending")}
        category_dist: Dict[str, int] = {}
        for s in skills:
            level = (s.get("level") or "").lower()
            if level in level_dist:
                level_dist[level] += 1
            category = s.get("category") or "Other"
            category_dist[category] = category_dist.get(category, 0) + 1

        return {
            "totalSkills": analytics["totalSkills"],
            "verifiedSkills": analytics["verifiedSkills"],
            "averageProficiency": analytics["averageProficiency"],
            "levelDistribution": level_dist,
            "categoryDistribution": category_dist,
        }

    def get_ml_ready_skills(self, user_id: str) -> dict:
        """Skills in the snake_case shape the ML service consumes."""
        skills = []
        for s in self.store.list_by_user(user_id):
            last_verified = s.get("last_verified")
            skills.append({
                "name": s["name"],
                "category": s.get("category"),
                "proficiency": s.get("proficiency", 0),
                "level": (s.get("level") or "").lower(),
                "verified": bool(s.get("verified")),
                "confidence": confidence_value(s.get("confidence_level")),
                "experience_months": s.get("experience_months", 0),
                "last_verified": last_verified.isoformat() if last_verified else None,
            })

        avg_confidence = (
            sum(s["confidence"] for s in skills) / len(skills) if skills else 0.5
        )
        return {
            "userId": user_id,
            "skills": skills,
            "totalVerifiedSkills": sum(1 for s in skills if s["verified"]),
            "averageConfidence": avg_confidence,
        }


# Factory function
def get_user_skill_service() -> UserSkillService:
    return UserSkillService()
