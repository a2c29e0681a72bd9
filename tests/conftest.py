"""
Fixtures compartidas: Mongo en memoria (mongomock), Redis en memoria
(fakeredis) y helpers para crear usuarios y cursos.
"""

from typing import Any, Dict

import fakeredis
import mongomock
import pytest
from fastapi.testclient import TestClient

from lms.config.settings import Settings
from lms.repositories.mongo_repository import RecordStore, stringify_ids
from lms.repositories.redis_repository import SessionRepository
from lms.services.course_service import CourseService
from lms.utils.security import hash_password
from main import create_app

PASSWORD = "secret123"


@pytest.fixture
def store():
    # mongomock no soporta sesiones: la cascada corre en modo secuencial
    client = mongomock.MongoClient()
    record_store = RecordStore(client, "lms_test", transactions=False)
    record_store.ensure_indexes()
    yield record_store
    client.close()


@pytest.fixture
def make_user(store):
    counter = {"n": 0}

    def _make(role: str = "student", name: str = "Ada", email: str | None = None) -> Dict[str, Any]:
        counter["n"] += 1
        doc = {
            "name": name,
            "email": email or f"{role}{counter['n']}@example.com",
            "password": hash_password(PASSWORD),
            "role": role,
            "skills": [],
            "purchasedCourses": [],
        }
        created = store.users.create(doc)
        created.pop("password")
        return stringify_ids(created)

    return _make


def course_payload(**overrides: Any) -> Dict[str, Any]:
    payload = {
        "title": "Intro to MongoDB",
        "description": "Documents, indexes and transactions",
        "price": 0,
        "category": "databases",
        "thumbnail": "https://cdn.example.com/mongo.png",
        "whatYouWillLearn": ["CRUD"],
        "lessons": [
            {"title": "Queries", "videoUrl": "https://v.example.com/2", "duration": 1200, "order": 2, "isPreview": False},
            {"title": "Setup", "videoUrl": "https://v.example.com/1", "duration": 600, "order": 1, "isPreview": True},
        ],
        "isPublished": True,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def course_data():
    return course_payload


@pytest.fixture
def make_course(store, make_user):
    def _make(instructor: Dict[str, Any] | None = None, **overrides: Any) -> Dict[str, Any]:
        owner = instructor or make_user(role="instructor", name="Grace")
        return CourseService(store).create(owner, course_payload(**overrides))

    return _make


@pytest.fixture
def redis_client():
    return fakeredis.FakeRedis(decode_responses=True)


@pytest.fixture
def client(store, redis_client):
    app = create_app(Settings(), store=store, redis_client=redis_client)
    return TestClient(app)


@pytest.fixture
def auth_headers(redis_client):
    sessions = SessionRepository(redis_client)

    def _headers(user: Dict[str, Any]) -> Dict[str, str]:
        return {"Authorization": f"Bearer {sessions.create(user['_id'])}"}

    return _headers
