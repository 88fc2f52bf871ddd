"""
MongoDB Service - CRUD operations for document collections.

Collections in this database:
1. students               - Accounts (login + basic employee data)
2. user_profiles          - Rich profile built from the user and their resumes
3. user_skills            - Tracked skills with proficiency / verification state
4. resumes                - Uploaded files and their AI analysis
5. skill_gap_analyses     - Results returned by the ML service
6. course_recommendations - Last course list suggested for each user
7. enrollments / saved_courses - Course actions taken by the user

Each class below is a thin wrapper over one collection. Business rules
live in the services that use them (profile_service, user_skill_service, ...).
"""

from datetime import datetime
from typing import Optional, List, Dict, Any
from bson import ObjectId
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from app.db.mongodb import get_collection, COLLECTIONS


# ============================================================
# HELPER: Convert ObjectId to string for JSON serialization
# ============================================================

def serialize_doc(doc: dict) -> Optional[dict]:
    """Convert MongoDB document to JSON-serializable dict (_id -> id)."""
    if doc is None:
        return None
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    return doc


def serialize_docs(docs) -> list:
    """Convert list of MongoDB documents to JSON-serializable list."""
    return [serialize_doc(doc) for doc in docs]


def to_object_id(value: str) -> Optional[ObjectId]:
    """Parse a string id; None when it is not a valid ObjectId."""
    if isinstance(value, ObjectId):
        return value
    if value and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


# ============================================================
# STUDENTS COLLECTION
# Accounts. password_hash never leaves this module.
# ============================================================

class StudentStore:

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["students"])

    def insert(self, data: dict) -> str:
        now = datetime.utcnow()
        doc = {
            **data,
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }
        result = self.collection.insert_one(doc)
        return str(result.inserted_id)

    def get_by_id(self, user_id: str) -> Optional[dict]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        doc = self.collection.find_one({"_id": oid}, {"password_hash": 0})
        return serialize_doc(doc)

    def get_by_email_with_password(self, email: str) -> Optional[dict]:
        """Only used by login."""
        doc = self.collection.find_one({"email": email.lower()})
        return serialize_doc(doc)

    def email_exists(self, email: str) -> bool:
        return self.collection.count_documents({"email": email.lower()}) > 0

    def touch_login(self, user_id: str) -> None:
        self.collection.update_one(
            {"_id": to_object_id(user_id)},
            {"$set": {"last_login_at": datetime.utcnow()}}
        )


# ============================================================
# USER PROFILES COLLECTION
# ============================================================

class ProfileStore:

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["profiles"])

    def get_by_user(self, user_id: str) -> Optional[dict]:
        return serialize_doc(self.collection.find_one({"user_id": user_id}))

    def insert(self, doc: dict) -> dict:
        now = datetime.utcnow()
        doc = {**doc, "created_at": now, "updated_at": now}
        result = self.collection.insert_one(doc)
        doc["_id"] = result.inserted_id
        return serialize_doc(doc)

    def update(self, user_id: str, fields: dict) -> Optional[dict]:
        """$set the given fields and return the fresh document."""
        fields = {**fields, "updated_at": datetime.utcnow()}
        self.collection.update_one({"user_id": user_id}, {"$set": fields})
        return self.get_by_user(user_id)


# ============================================================
# USER SKILLS COLLECTION
# name_lower enforces case-insensitive uniqueness per user
# ============================================================

class UserSkillStore:

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["user_skills"])

    def list_by_user(self, user_id: str) -> List[dict]:
        cursor = self.collection.find({"user_id": user_id}, sort=[("name", 1)])
        return serialize_docs(cursor)

    def get_by_id(self, skill_id: str) -> Optional[dict]:
        oid = to_object_id(skill_id)
        if oid is None:
            return None
        return serialize_doc(self.collection.find_one({"_id": oid}))

    def insert(self, doc: dict) -> Optional[str]:
        """
        Create the skill unless the user already has one with the same name.
        Returns the new id, or None when an equal name was already stored.
        """
        now = datetime.utcnow()
        name_lower = doc["name"].lower()
        fields = {k: v for k, v in doc.items() if k != "user_id"}
        fields.update({"created_at": now, "updated_at": now})
        try:
            result = self.collection.update_one(
                {"user_id": doc["user_id"], "name_lower": name_lower},
                {"$setOnInsert": fields},
                upsert=True,
            )
        except DuplicateKeyError:
            # a concurrent sync won the race on the unique index
            return None
        if result.upserted_id is None:
            return None
        return str(result.upserted_id)

    def update(self, skill_id: str, fields: dict) -> bool:
        fields = {**fields, "updated_at": datetime.utcnow()}
        result = self.collection.update_one({"_id": to_object_id(skill_id)}, {"$set": fields})
        return result.modified_count > 0


# ============================================================
# RESUMES COLLECTION
# Stores the raw file bytes plus the AI analysis of them
# ============================================================

class ResumeStore:

    # file bytes are large; listings never need them
    WITHOUT_FILE = {"file_data": 0}

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["resumes"])

    def insert(self, doc: dict) -> str:
        result = self.collection.insert_one(doc)
        return str(result.inserted_id)

    def get_by_id(self, resume_id: str, user_id: str = None) -> Optional[dict]:
        oid = to_object_id(resume_id)
        if oid is None:
            return None
        query = {"_id": oid}
        if user_id is not None:
            query["user_id"] = user_id
        return serialize_doc(self.collection.find_one(query, self.WITHOUT_FILE))

    def get_file(self, resume_id: str) -> Optional[bytes]:
        doc = self.collection.find_one({"_id": to_object_id(resume_id)}, {"file_data": 1})
        return doc.get("file_data") if doc else None

    def list_by_user(self, user_id: str, limit: int = 0) -> List[dict]:
        """Newest first."""
        cursor = self.collection.find(
            {"user_id": user_id},
            self.WITHOUT_FILE,
            sort=[("upload_date", -1)],
            limit=limit
        )
        return serialize_docs(cursor)

    def count_by_user(self, user_id: str) -> int:
        return self.collection.count_documents({"user_id": user_id})

    def get_oldest(self, user_id: str) -> Optional[dict]:
        doc = self.collection.find_one(
            {"user_id": user_id}, self.WITHOUT_FILE, sort=[("upload_date", 1)]
        )
        return serialize_doc(doc)

    def update(self, resume_id: str, fields: dict) -> bool:
        result = self.collection.update_one({"_id": to_object_id(resume_id)}, {"$set": fields})
        return result.modified_count > 0

    def deactivate_all(self, user_id: str) -> int:
        result = self.collection.update_many(
            {"user_id": user_id, "is_active": True},
            {"$set": {"is_active": False}}
        )
        return result.modified_count

    def delete(self, resume_id: str) -> bool:
        result = self.collection.delete_one({"_id": to_object_id(resume_id)})
        return result.deleted_count > 0


# ============================================================
# SKILL GAP ANALYSES COLLECTION
# Only the newest analysis per user has is_current_role=True
# ============================================================

class SkillGapAnalysisStore:

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["skill_gap_analyses"])

    def clear_current(self, user_id: str) -> int:
        result = self.collection.update_many(
            {"user_id": user_id, "is_current_role": True},
            {"$set": {"is_current_role": False}}
        )
        return result.modified_count

    def insert(self, doc: dict) -> str:
        result = self.collection.insert_one(doc)
        return str(result.inserted_id)

    def get_current(self, user_id: str) -> Optional[dict]:
        doc = self.collection.find_one(
            {"user_id": user_id, "is_current_role": True},
            sort=[("analyzed_at", -1)]
        )
        return serialize_doc(doc)

    def get_latest(self, user_id: str) -> Optional[dict]:
        doc = self.collection.find_one({"user_id": user_id}, sort=[("analyzed_at", -1)])
        return serialize_doc(doc)

    def list_by_user(self, user_id: str) -> List[dict]:
        cursor = self.collection.find({"user_id": user_id}, sort=[("analyzed_at", -1)])
        return serialize_docs(cursor)


# ============================================================
# COURSE RECOMMENDATIONS COLLECTION
# Replaced wholesale every time recommendations are generated
# ============================================================

class CourseRecommendationStore:

    def __init__(self):
        self.collection: Collection = get_collection(COLLECTIONS["course_recommendations"])

    def replace_for_user(self, user_id: str, courses: List[Dict[str, Any]]) -> int:
        self.collection.delete_many({"user_id": user_id})
        if not courses:
            return 0
        now = datetime.utcnow()
        # the ML course id is kept as course_id so it does not clash with _id
        docs = [
            {**{k: v for k, v in course.items() if k != "id"},
             "course_id": course.get("id"), "user_id": user_id, "created_at": now}
            for course in courses
        ]
        result = self.collection.insert_many(docs)
        return len(result.inserted_ids)

    def list_by_user(self, user_id: str) -> List[dict]:
        courses = []
        for doc in self.collection.find({"user_id": user_id}, {"_id": 0}):
            doc["id"] = doc.pop("course_id", None)
            courses.append(doc)
        return courses


# ============================================================
# ENROLLMENTS / SAVED COURSES
# Same shape, different collection
# ============================================================

class CourseActionStore:

    def __init__(self, collection_key: str):
        self.collection: Collection = get_collection(COLLECTIONS[collection_key])

    def save(self, user_id: str, course_id: str, course_title: str = None) -> bool:
        """Upsert so repeating the action is harmless. True if newly created."""
        result = self.collection.update_one(
            {"user_id": user_id, "course_id": course_id},
            {
                "$set": {"course_title": course_title},
                "$setOnInsert": {"created_at": datetime.utcnow()}
            },
            upsert=True
        )
        return result.upserted_id is not None

    def list_by_user(self, user_id: str) -> List[dict]:
        cursor = self.collection.find({"user_id": user_id}, sort=[("created_at", -1)])
        return serialize_docs(cursor)
