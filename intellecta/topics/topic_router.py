"""
Topic routes: the chapters of a course
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from intellecta.core.auth import get_optional_user, require_admin, is_admin
from intellecta.core.dependencies import get_db
from intellecta.core.responses import success
from intellecta.core.serialization import serialize_mongo, serialize_many
from intellecta.courses.database import get_course
from intellecta.enrollments.progress import find_topic_progress
from intellecta.topics.models import TopicCreate, TopicUpdate, ReorderRequest
from intellecta.topics.database import (
    create_topic, get_topic, order_taken, update_topic, topic_has_progress,
    reorder_topics, topic_analytics,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Topics"])

LESSON_SUMMARY = {"_id": 0, "lesson_id": 1, "title": 1, "description": 1, "order": 1}

# ==================== PUBLIC ====================

@router.get("/course/{course_id}")
async def get_topics_by_course(
    course_id: str,
    include_inactive: bool = False,
    user: Optional[dict] = Depends(get_optional_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    course = await get_course(db, course_id)
    if not course or (not course.get("is_active") and not is_admin(user)):
        raise HTTPException(status_code=404, detail="Course not found")

    query = {"course_id": course_id}
    if not (include_inactive and is_admin(user)):
        query["is_active"] = True

    topics = await db.topics.find(query).sort("order", 1).to_list(length=None)
    for topic in topics:
        topic["lesson_count"] = await db.lessons.count_documents(
            {"topic_id": topic["topic_id"], "is_active": True}
        )

    return success("Topics retrieved successfully", {
        "course": {"course_id": course_id, "title": course["title"]},
        "topics": serialize_many(topics),
    })


@router.get("/{topic_id}")
async def get_topic_details(
    topic_id: str,
    user: Optional[dict] = Depends(get_optional_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    topic = await get_topic(db, topic_id)
    if not topic or (not topic.get("is_active") and not is_admin(user)):
        raise HTTPException(status_code=404, detail="Topic not found")

    lessons = await db.lessons.find(
        {"topic_id": topic_id, "is_active": True}, LESSON_SUMMARY
    ).sort("order", 1).to_list(length=None)

    user_progress = None
    if user:
        enrollment = await db.enrollments.find_one({"user_id": user["user_id"], "course_id": topic["course_id"]})
        if enrollment:
            user_progress = find_topic_progress(enrollment, topic_id)

    return success("Topic retrieved successfully", {
        "topic": {**serialize_mongo(topic), "lessons": lessons, "lesson_count": len(lessons)},
        "user_progress": user_progress,
    })

# ==================== ADMIN ====================

@router.post("/", status_code=201)
async def create_new_topic(
    data: TopicCreate,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not await get_course(db, data.course_id):
        raise HTTPException(status_code=404, detail="Course not found")
    if await order_taken(db, data.course_id, data.order):
        raise HTTPException(status_code=409, detail=f"A topic with order {data.order} already exists in this course")

    topic = await create_topic(db, data.model_dump())
    return success("Topic created successfully", {"topic": serialize_mongo(topic)})


@router.put("/{topic_id}")
async def update_existing_topic(
    topic_id: str,
    data: TopicUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    topic = await get_topic(db, topic_id)
    if not topic:
        raise HTTPException(status_code=404, detail="Topic not found")

    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    if "order" in updates and await order_taken(db, topic["course_id"], updates["order"], exclude_id=topic_id):
        raise HTTPException(status_code=409, detail=f"A topic with order {updates['order']} already exists in this course")

    topic = await update_topic(db, topic_id, updates)
    return success("Topic updated successfully", {"topic": serialize_mongo(topic)})


@router.patch("/{topic_id}/deactivate")
async def deactivate_topic(
    topic_id: str,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not await get_topic(db, topic_id):
        raise HTTPException(status_code=404, detail="Topic not found")
    topic = await update_topic(db, topic_id, {"is_active": False})
    return success("Topic deactivated successfully", {"topic": serialize_mongo(topic)})


@router.delete("/{topic_id}")
async def delete_topic(
    topic_id: str,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not await get_topic(db, topic_id):
        raise HTTPException(status_code=404, detail="Topic not found")

    lesson_count = await db.lessons.count_documents({"topic_id": topic_id})
    if lesson_count:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot delete topic with {lesson_count} lesson(s). Delete or move the lessons first."
        )
    if await topic_has_progress(db, topic_id):
        raise HTTPException(status_code=400, detail="Cannot delete topic with user progress. Deactivate it instead.")

    await db.topics.delete_one({"topic_id": topic_id})
    return success("Topic deleted successfully")


@router.patch("/course/{course_id}/reorder")
async def reorder_course_topics(
    course_id: str,
    data: ReorderRequest,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not await get_course(db, course_id):
        raise HTTPException(status_code=404, detail="Course not found")
    if not await reorder_topics(db, course_id, data.ids):
        raise HTTPException(status_code=400, detail="Some topics do not belong to this course")

    topics = await db.topics.find({"course_id": course_id}).sort("order", 1).to_list(length=None)
    return success("Topics reordered successfully", {"topics": serialize_many(topics)})


@router.get("/{topic_id}/analytics")
async def get_topic_analytics(
    topic_id: str,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    topic = await get_topic(db, topic_id)
    if not topic:
        raise HTTPException(status_code=404, detail="Topic not found")

    lessons = await db.lessons.find({"topic_id": topic_id, "is_active": True}).sort("order", 1).to_list(length=None)
    enrollments = await db.enrollments.find({"course_id": topic["course_id"]}).to_list(length=None)

    return success("Topic analytics retrieved successfully", {
        "topic": {
            "topic_id": topic_id,
            "title": topic["title"],
            "course_id": topic["course_id"],
            "order": topic["order"],
        },
        **topic_analytics(topic_id, lessons, enrollments),
    })
