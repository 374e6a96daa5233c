from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import Optional
import uuid

from intellecta.core.serialization import js_round

# ==================== TOPIC CRUD ====================

async def create_topic(db: AsyncIOMotorDatabase, topic_data: dict) -> dict:
    now = datetime.utcnow()
    topic = {
        "topic_id": f"TOPIC_{uuid.uuid4().hex[:12].upper()}",
        "course_id": topic_data["course_id"],
        "title": topic_data["title"].strip(),
        "description": topic_data["description"],
        "order": topic_data["order"],
        "is_active": topic_data.get("is_active", True),
        "created_at": now,
        "updated_at": now,
    }
    await db.topics.insert_one(topic)
    return topic


async def get_topic(db: AsyncIOMotorDatabase, topic_id: str) -> Optional[dict]:
    return await db.topics.find_one({"topic_id": topic_id})


async def order_taken(db: AsyncIOMotorDatabase, course_id: str, order: int,
                      exclude_id: Optional[str] = None) -> bool:
    query = {"course_id": course_id, "order": order}
    if exclude_id:
        query["topic_id"] = {"$ne": exclude_id}
    return await db.topics.count_documents(query) > 0


async def update_topic(db: AsyncIOMotorDatabase, topic_id: str, updates: dict) -> Optional[dict]:
    updates["updated_at"] = datetime.utcnow()
    await db.topics.update_one({"topic_id": topic_id}, {"$set": updates})
    return await get_topic(db, topic_id)


async def topic_has_progress(db: AsyncIOMotorDatabase, topic_id: str) -> bool:
    """True when any enrollment tracks this topic"""
    return await db.enrollments.count_documents({"topics_progress.topic_id": topic_id}) > 0


async def reorder_topics(db: AsyncIOMotorDatabase, course_id: str, topic_ids: list[str]) -> bool:
    """Every id must belong to the course; order becomes the list index"""
    count = await db.topics.count_documents({"course_id": course_id, "topic_id": {"$in": topic_ids}})
    if count != len(set(topic_ids)) or len(set(topic_ids)) != len(topic_ids):
        return False
    now = datetime.utcnow()
    for index, topic_id in enumerate(topic_ids):
        await db.topics.update_one({"topic_id": topic_id}, {"$set": {"order": index, "updated_at": now}})
    return True

# ==================== ANALYTICS ====================

def topic_analytics(topic_id: str, lessons: list[dict], enrollments: list[dict]) -> dict:
    """Completion figures for one topic across all enrollments of its course"""
    total_users = len(enrollments)
    completed_users = 0
    in_progress_users = 0
    total_time = 0
    completed_by_lesson = {lesson["lesson_id"]: 0 for lesson in lessons}

    for enrollment in enrollments:
        topic_progress = next(
            (tp for tp in enrollment.get("topics_progress", []) if tp["topic_id"] == topic_id), None
        )
        if not topic_progress:
            continue
        if topic_progress.get("is_completed"):
            completed_users += 1
        elif topic_progress.get("progress_percentage", 0) > 0:
            in_progress_users += 1
        for lesson_progress in topic_progress.get("lessons_progress", []):
            total_time += lesson_progress.get("time_spent", 0)
            if lesson_progress.get("is_completed") and lesson_progress["lesson_id"] in completed_by_lesson:
                completed_by_lesson[lesson_progress["lesson_id"]] += 1

    def rate(count):
        return js_round(count / total_users * 100) if total_users else 0

    return {
        "stats": {
            "total_lessons": len(lessons),
            "total_enrolled_users": total_users,
            "completed_users": completed_users,
            "in_progress_users": in_progress_users,
            "not_started_users": total_users - completed_users - in_progress_users,
            "completion_rate": rate(completed_users),
            "average_time_spent": js_round(total_time / total_users) if total_users else 0,
        },
        "lesson_analytics": [
            {
                "lesson_id": lesson["lesson_id"],
                "title": lesson["title"],
                "completed_users": completed_by_lesson[lesson["lesson_id"]],
                "completion_rate": rate(completed_by_lesson[lesson["lesson_id"]]),
            }
            for lesson in lessons
        ],
    }
