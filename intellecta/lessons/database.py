from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import Optional
import uuid

from intellecta.core.serialization import js_round

# ==================== LESSON CRUD ====================

async def create_lesson(db: AsyncIOMotorDatabase, lesson_data: dict, course_id: str) -> dict:
    now = datetime.utcnow()
    lesson = {
        "lesson_id": f"LESSON_{uuid.uuid4().hex[:12].upper()}",
        "topic_id": lesson_data["topic_id"],
        "course_id": course_id,
        "title": lesson_data["title"].strip(),
        "description": lesson_data["description"],
        "order": lesson_data["order"],
        "content_groups": lesson_data.get("content_groups", []),
        "quiz": lesson_data.get("quiz", []),
        "is_active": lesson_data.get("is_active", True),
        "created_at": now,
        "updated_at": now,
    }
    await db.lessons.insert_one(lesson)
    return lesson


async def get_lesson(db: AsyncIOMotorDatabase, lesson_id: str) -> Optional[dict]:
    return await db.lessons.find_one({"lesson_id": lesson_id})


async def order_taken(db: AsyncIOMotorDatabase, topic_id: str, order: int,
                      exclude_id: Optional[str] = None) -> bool:
    query = {"topic_id": topic_id, "order": order}
    if exclude_id:
        query["lesson_id"] = {"$ne": exclude_id}
    return await db.lessons.count_documents(query) > 0


async def update_lesson(db: AsyncIOMotorDatabase, lesson_id: str, updates: dict) -> Optional[dict]:
    updates["updated_at"] = datetime.utcnow()
    await db.lessons.update_one({"lesson_id": lesson_id}, {"$set": updates})
    return await get_lesson(db, lesson_id)


async def lesson_has_progress(db: AsyncIOMotorDatabase, lesson_id: str) -> bool:
    return await db.enrollments.count_documents(
        {"topics_progress.lessons_progress.lesson_id": lesson_id}
    ) > 0


async def reorder_lessons(db: AsyncIOMotorDatabase, topic_id: str, lesson_ids: list[str]) -> bool:
    unique_ids = set(lesson_ids)
    if len(unique_ids) != len(lesson_ids):
        return False
    count = await db.lessons.count_documents({"topic_id": topic_id, "lesson_id": {"$in": lesson_ids}})
    if count != len(unique_ids):
        return False
    now = datetime.utcnow()
    for index, lesson_id in enumerate(lesson_ids):
        await db.lessons.update_one({"lesson_id": lesson_id}, {"$set": {"order": index, "updated_at": now}})
    return True

# ==================== ANALYTICS ====================

def lesson_analytics(lesson: dict, enrollments: list[dict]) -> dict:
    total_users = len(enrollments)
    completed = 0
    total_time = 0
    quiz_attempts = 0
    total_quiz_score = 0

    for enrollment in enrollments:
        for topic_progress in enrollment.get("topics_progress", []):
            if topic_progress["topic_id"] != lesson["topic_id"]:
                continue
            for lesson_progress in topic_progress.get("lessons_progress", []):
                if lesson_progress["lesson_id"] != lesson["lesson_id"]:
                    continue
                if lesson_progress.get("is_completed"):
                    completed += 1
                total_time += lesson_progress.get("time_spent", 0)
                if lesson_progress.get("quiz_score") is not None:
                    quiz_attempts += 1
                    total_quiz_score += lesson_progress["quiz_score"]

    has_quiz = bool(lesson.get("quiz"))
    return {
        "total_enrolled_users": total_users,
        "completed_users": completed,
        "completion_rate": js_round(completed / total_users * 100) if total_users else 0,
        "average_time_spent": js_round(total_time / total_users) if total_users else 0,
        "has_quiz": has_quiz,
        "quiz_question_count": len(lesson.get("quiz", [])),
        "quiz_attempts": quiz_attempts,
        "average_quiz_score": js_round(total_quiz_score / quiz_attempts) if has_quiz and quiz_attempts else None,
        "quiz_attempt_rate": js_round(quiz_attempts / total_users * 100) if has_quiz and total_users else None,
    }
