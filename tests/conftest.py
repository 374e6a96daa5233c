# =============================================================================
# tests/conftest.py - Pytest Configuration
# =============================================================================
# Sets test environment variables before any project import and provides
# an in-memory MongoDB (mongomock-motor) wired into the FastAPI app.
# =============================================================================

import asyncio
import os

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("RAZORPAY_KEY_ID", "rzp_test_key")
os.environ.setdefault("RAZORPAY_KEY_SECRET", "test-key-secret")
os.environ.setdefault("RAZORPAY_WEBHOOK_SECRET", "test-webhook-secret")
os.environ.setdefault("SMTP_HOST", "")

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient


def run(coro):
    """Drive a coroutine against the mock database from a sync test"""
    return asyncio.run(coro)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def db():
    return AsyncMongoMockClient()["intellecta_test"]


@pytest.fixture
def client(db):
    from intellecta.core.dependencies import get_db
    from intellecta.main import app

    async def override_get_db():
        return db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Factory: verified user + Authorization header"""
    from intellecta.core.security import create_access_token
    from intellecta.users.database import create_user

    counter = {"n": 0}

    def _make(role="user", name="Test Learner", premium_until=None):
        counter["n"] += 1
        user = run(create_user(
            db, name, f"learner{counter['n']}@kodr.io", "Password123", role=role, verified=True
        ))
        if premium_until is not None:
            run(db.users.update_one(
                {"user_id": user["user_id"]},
                {"$set": {"is_premium": True, "premium_expiry_date": premium_until}}
            ))
        headers = {"Authorization": f"Bearer {create_access_token(user['user_id'])}"}
        return user, headers

    return _make


@pytest.fixture
def seeded_course(client, make_user):
    """Admin-built course: two topics, three lessons (first lesson has a quiz)"""
    admin, admin_headers = make_user(role="admin", name="Admin")

    course = client.post("/courses/", json={
        "title": "Python Foundations",
        "description": "Learn Python from scratch.",
        "categories": ["Programming"],
        "is_featured": True,
    }, headers=admin_headers).json()["data"]["course"]

    topics = []
    for order, title in enumerate(["Basics", "Control Flow"]):
        topics.append(client.post("/topics/", json={
            "course_id": course["course_id"],
            "title": title,
            "description": f"All about {title.lower()} in Python.",
            "order": order,
        }, headers=admin_headers).json()["data"]["topic"])

    quiz = [
        {"question": "2 + 2?", "options": ["3", "4"], "correct_answer": 1, "explanation": "Arithmetic."},
        {"question": "Python is?", "options": ["A snake only", "A language"], "correct_answer": 1},
        {"question": "print is a?", "options": ["function", "keyword"], "correct_answer": 0},
    ]
    lessons = []
    for topic, order, title, lesson_quiz in [
        (topics[0], 0, "Variables", quiz),
        (topics[0], 1, "Types", []),
        (topics[1], 0, "Loops", []),
    ]:
        lessons.append(client.post("/lessons/", json={
            "topic_id": topic["topic_id"],
            "title": title,
            "description": f"Lesson about {title.lower()} basics.",
            "order": order,
            "content_groups": [{
                "title": "Intro",
                "order": 0,
                "contents": [{"type": "text", "content": "Hello", "order": 0}],
            }],
            "quiz": lesson_quiz,
        }, headers=admin_headers).json()["data"]["lesson"])

    return {
        "admin_headers": admin_headers,
        "course": course,
        "topics": topics,
        "lessons": lessons,
    }
