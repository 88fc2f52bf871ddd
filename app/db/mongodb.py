"""
MongoDB Connection Utility

MongoDB stores everything for WorkSkill AI:
- Student accounts and profiles
- Uploaded resumes (file bytes + AI analysis)
- Tracked user skills
- Skill gap analyses returned by the ML service
- Course recommendations, enrollments, saved courses
"""
import logging

from pymongo import MongoClient, ASCENDING, DESCENDING
from pymongo.database import Database
from pymongo.collection import Collection
from app.core.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Global client (connection pooling handled internally by pymongo)
_client: MongoClient = None
_db: Database = None


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client (singleton pattern)"""
    global _client
    if _client is None:
        _client = MongoClient(settings.mongodb_uri)
    return _client


def get_mongo_db() -> Database:
    """Get the application database"""
    global _db
    if _db is None:
        client = get_mongo_client()
        _db = client[settings.mongodb_db]
    return _db


def get_collection(name: str) -> Collection:
    """Get a specific collection (see COLLECTIONS)."""
    db = get_mongo_db()
    return db[name]


def test_mongo_connection() -> bool:
    """
    Test if MongoDB is reachable.
    Returns True if connection successful, False otherwise.
    """
    try:
        client = get_mongo_client()
        # ping command checks connection
        client.admin.command('ping')
        return True
    except Exception as e:
        logger.warning("MongoDB connection failed: %s", e)
        return False


# Collection name constants (avoid typos)
COLLECTIONS = {
    "students": "students",
    "profiles": "user_profiles",
    "user_skills": "user_skills",
    "resumes": "resumes",
    "skill_gap_analyses": "skill_gap_analyses",
    "course_recommendations": "course_recommendations",
    "enrollments": "enrollments",
    "saved_courses": "saved_courses",
}


def init_mongo_indexes():
    """
    Create indexes for better query performance.
    Call this once during app startup.
    """
    db = get_mongo_db()

    db[COLLECTIONS["students"]].create_index("email", unique=True)
    db[COLLECTIONS["profiles"]].create_index("user_id", unique=True)

    # Skill lookups are always per user, names compared lower-cased
    db[COLLECTIONS["user_skills"]].create_index([
        ("user_id", ASCENDING),
        ("name_lower", ASCENDING)
    ], unique=True)

    db[COLLECTIONS["resumes"]].create_index([
        ("user_id", ASCENDING),
        ("upload_date", DESCENDING)
    ])

    db[COLLECTIONS["skill_gap_analyses"]].create_index([
        ("user_id", ASCENDING),
        ("analyzed_at", DESCENDING)
    ])

    db[COLLECTIONS["course_recommendations"]].create_index("user_id")
    db[COLLECTIONS["enrollments"]].create_index([("user_id", ASCENDING), ("course_id", ASCENDING)], unique=True)
    db[COLLECTIONS["saved_courses"]].create_index([("user_id", ASCENDING), ("course_id", ASCENDING)], unique=True)

    logger.info("MongoDB indexes created successfully")
