"""Pytest configuration and fixtures for WorkSkill AI tests"""

import copy
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import httpx
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from app.core.auth import create_access_token, hash_password
from app.services.gemini_client import GeminiClient
from app.services.ml_service_client import MLServiceClient


# ============================================================
# In-memory MongoDB collection
# Supports the subset of the pymongo API used by mongo_service
# ============================================================

def _matches(doc: dict, query: dict) -> bool:
    return all(doc.get(k) == v for k, v in query.items())


def _project(doc: dict, projection: Optional[dict]) -> dict:
    doc = copy.deepcopy(doc)
    if not projection:
        return doc
    include = {k for k, v in projection.items() if v}
    exclude = {k for k, v in projection.items() if not v}
    if include:
        return {k: v for k, v in doc.items() if k in include or (k == "_id" and "_id" not in exclude)}
    return {k: v for k, v in doc.items() if k not in exclude}


class FakeCollection:

    def __init__(self, name: str):
        self.name = name
        self.docs: List[dict] = []

    def _sorted(self, docs: List[dict], sort) -> List[dict]:
        # ties keep insertion order, newest last; reverse sorts put newest first
        indexed = list(enumerate(docs))
        for key, direction in reversed(sort or []):
            indexed.sort(
                key=lambda pair: (pair[1].get(key) is None, pair[1].get(key) or 0, pair[0]),
                reverse=direction < 0,
            )
        return [d for _, d in indexed]

    def insert_one(self, doc: dict):
        doc.setdefault("_id", ObjectId())
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    def insert_many(self, docs: List[dict]):
        return SimpleNamespace(inserted_ids=[self.insert_one(d).inserted_id for d in docs])

    def find(self, query: dict = None, projection: dict = None, sort=None, limit: int = 0):
        docs = [d for d in self.docs if _matches(d, query or {})]
        docs = self._sorted(docs, sort)
        if limit:
            docs = docs[:limit]
        return [_project(d, projection) for d in docs]

    def find_one(self, query: dict = None, projection: dict = None, sort=None):
        docs = self.find(query, projection, sort=sort, limit=1)
        return docs[0] if docs else None

    def count_documents(self, query: dict) -> int:
        return sum(1 for d in self.docs if _matches(d, query))

    def _apply(self, doc: dict, update: dict, inserting: bool = False) -> bool:
        before = copy.deepcopy(doc)
        for k, v in update.get("$set", {}).items():
            doc[k] = v
        for k, v in update.get("$inc", {}).items():
            doc[k] = doc.get(k, 0) + v
        if inserting:
            for k, v in update.get("$setOnInsert", {}).items():
                doc[k] = v
        return doc != before

    def update_one(self, query: dict, update: dict, upsert: bool = False):
        for doc in self.docs:
            if _matches(doc, query):
                changed = self._apply(doc, update)
                return SimpleNamespace(matched_count=1, modified_count=int(changed), upserted_id=None)
        if upsert:
            doc = dict(query)
            self._apply(doc, update, inserting=True)
            inserted = self.insert_one(doc)
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=inserted.inserted_id)
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)

    def update_many(self, query: dict, update: dict):
        modified = 0
        for doc in self.docs:
            if _matches(doc, query) and self._apply(doc, update):
                modified += 1
        return SimpleNamespace(modified_count=modified)

    def delete_one(self, query: dict):
        for i, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    def delete_many(self, query: dict):
        before = len(self.docs)
        self.docs = [d for d in self.docs if not _matches(d, query)]
        return SimpleNamespace(deleted_count=before - len(self.docs))

    def create_index(self, *args, **kwargs):
        return "fake_index"


@pytest.fixture(autouse=True)
def fake_db(monkeypatch) -> Dict[str, FakeCollection]:
    """Every collection lookup in mongo_service gets an in-memory collection."""
    collections: Dict[str, FakeCollection] = {}

    def _get_collection(name: str) -> FakeCollection:
        return collections.setdefault(name, FakeCollection(name))

    monkeypatch.setattr("app.services.mongo_service.get_collection", _get_collection)
    return collections


# ============================================================
# Fake AI client
# ============================================================

class FakeAIClient:
    """Stands in for GeminiClient; returns canned replies or raises."""

    def __init__(self, replies: List[Any] = None, error: Exception = None):
        self.replies = list(replies or [])
        self.error = error
        self.calls: List[dict] = []

    def _call_api(self, system_prompt: str, user_content: str, **kwargs) -> str:
        self.calls.append({"system": system_prompt, "user": user_content, **kwargs})
        if self.error is not None:
            raise self.error
        reply = self.replies.pop(0) if self.replies else ""
        if isinstance(reply, Exception):
            raise reply
        return reply

    _extract_json = staticmethod(GeminiClient._extract_json)

    def complete_json(self, system_prompt: str, user_content: str, **kwargs):
        return self._extract_json(self._call_api(system_prompt, user_content, **kwargs))


@pytest.fixture
def fake_ai():
    return FakeAIClient()


# ============================================================
# ML service
# ============================================================

def ml_client_for(handler) -> MLServiceClient:
    """MLServiceClient whose HTTP calls go to handler(request) -> httpx.Response."""
    return MLServiceClient(base_url="http://ml.test", transport=httpx.MockTransport(handler))


# ============================================================
# Users and HTTP client
# ============================================================

def create_student(fake_db, **overrides) -> str:
    from app.services.mongo_service import StudentStore

    data = {
        "first_name": "Asha",
        "last_name": "Rao",
        "email": "asha@example.com",
        "password_hash": hash_password("password123"),
        "role": "employee",
        "current_job_role": "Backend Developer",
        "years_of_experience": 3,
        "skills": ["Python", "MongoDB"],
        "summary": "Backend developer",
        "certifications": [],
        "education": [],
        "experience": [],
    }
    data.update(overrides)
    return StudentStore().insert(data)


def token_for(user_id: str, email: str = "asha@example.com", role: str = "employee") -> str:
    return create_access_token({"sub": user_id, "email": email, "role": role})


@pytest.fixture
def app():
    from app.main import app as fastapi_app
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """Test client without lifespan events (no Mongo index creation)"""
    return TestClient(app)


@pytest.fixture
def student_id(fake_db) -> str:
    return create_student(fake_db)


@pytest.fixture
def auth_client(client, student_id):
    """Client carrying a valid jwt cookie for the default student."""
    client.cookies.set("jwt", token_for(student_id))
    return client
