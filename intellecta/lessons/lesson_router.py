"""
Lesson routes
Content delivery, quiz submission and per-lesson progress tracking
"""

import logging

from fastapi import APIRouter, HTTPException, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from intellecta.core.auth import get_current_user, require_admin, is_admin
from intellecta.core.dependencies import get_db
from intellecta.core.responses import success
from intellecta.core.serialization import serialize_mongo, serialize_many
from intellecta.enrollments.database import get_enrollment, update_lesson_progress, ProgressConflictError
from intellecta.enrollments.progress import find_topic_progress, find_lesson_progress, record_lesson_progress
from intellecta.lessons.models import LessonCreate, LessonUpdate, QuizSubmission, LessonProgressUpdate
from intellecta.lessons.quiz import grade_quiz, redact_quiz
from intellecta.lessons.database import (
    create_lesson, get_lesson, order_taken, update_lesson, lesson_has_progress,
    reorder_lessons, lesson_analytics,
)
from intellecta.topics.database import get_topic
from intellecta.topics.models import ReorderRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Lessons"])


async def _visible_lesson(db: AsyncIOMotorDatabase, lesson_id: str, user: dict) -> dict:
    lesson = await get_lesson(db, lesson_id)
    if not lesson or (not lesson.get("is_active") and not is_admin(user)):
        raise HTTPException(status_code=404, detail="Lesson not found")
    return lesson


def _learner_view(lesson: dict, user: dict) -> dict:
    view = serialize_mongo(lesson)
    quiz = lesson.get("quiz", [])
    if not is_admin(user):
        view["quiz"] = redact_quiz(quiz)
    view["has_quiz"] = bool(quiz)
    view["quiz_question_count"] = len(quiz)
    return view


async def _save_lesson_progress(db: AsyncIOMotorDatabase, enrollment: dict, lesson: dict, mutate):
    try:
        return await update_lesson_progress(db, enrollment, lesson["topic_id"], lesson["lesson_id"], mutate)
    except LookupError:
        raise HTTPException(status_code=404, detail="Topic progress not found")
    except ProgressConflictError:
        raise HTTPException(status_code=409, detail="Progress was updated concurrently, please retry")

# ==================== LEARNER ====================

@router.get("/topic/{topic_id}")
async def get_lessons_by_topic(
    topic_id: str,
    include_inactive: bool = False,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    topic = await get_topic(db, topic_id)
    if not topic or (not topic.get("is_active") and not is_admin(user)):
        raise HTTPException(status_code=404, detail="Topic not found")

    query = {"topic_id": topic_id}
    if not (include_inactive and is_admin(user)):
        query["is_active"] = True
    lessons = await db.lessons.find(query).sort("order", 1).to_list(length=None)

    enrollment = await get_enrollment(db, user["user_id"], topic["course_id"])
    items = []
    for lesson in lessons:
        view = _learner_view(lesson, user)
        view["user_progress"] = find_lesson_progress(enrollment, lesson["lesson_id"]) if enrollment else None
        items.append(view)

    return success("Lessons retrieved successfully", {
        "topic": {"topic_id": topic_id, "title": topic["title"], "course_id": topic["course_id"]},
        "lessons": items,
    })


@router.get("/{lesson_id}")
async def get_lesson_details(
    lesson_id: str,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    lesson = await _visible_lesson(db, lesson_id, user)
    enrollment = await get_enrollment(db, user["user_id"], lesson["course_id"])

    return success("Lesson retrieved successfully", {
        "lesson": _learner_view(lesson, user),
        "user_progress": find_lesson_progress(enrollment, lesson_id) if enrollment else None,
        "is_enrolled": enrollment is not None,
    })


@router.post("/{lesson_id}/quiz/submit")
async def submit_quiz(
    lesson_id: str,
    data: QuizSubmission,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    lesson = await _visible_lesson(db, lesson_id, user)
    quiz = lesson.get("quiz", [])
    if not quiz:
        raise HTTPException(status_code=400, detail="This lesson does not have a quiz")

    enrollment = await get_enrollment(db, user["user_id"], lesson["course_id"])
    if not enrollment:
        raise HTTPException(status_code=403, detail="You are not enrolled in this course")

    if len(data.answers) != len(quiz):
        raise HTTPException(status_code=400, detail="Number of answers must match number of questions")

    result = grade_quiz(quiz, data.answers)

    def apply_score(lesson_progress: dict):
        lesson_progress["quiz_score"] = result["score"]
        if result["passed"] and not lesson_progress.get("is_completed"):
            record_lesson_progress(lesson_progress, is_completed=True)

    if find_topic_progress(enrollment, lesson["topic_id"]):
        await _save_lesson_progress(db, enrollment, lesson, apply_score)

    return success("Quiz submitted successfully", result)


@router.patch("/{lesson_id}/progress")
async def mark_lesson_progress(
    lesson_id: str,
    data: LessonProgressUpdate,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    lesson = await _visible_lesson(db, lesson_id, user)

    enrollment = await get_enrollment(db, user["user_id"], lesson["course_id"])
    if not enrollment:
        raise HTTPException(status_code=403, detail="You are not enrolled in this course")

    enrollment, topic_progress, lesson_progress = await _save_lesson_progress(
        db, enrollment, lesson,
        lambda lesson_progress: record_lesson_progress(lesson_progress, data.is_completed, data.time_spent or 0),
    )

    return success("Lesson progress updated successfully", {
        "lesson_progress": lesson_progress,
        "topic_progress": {
            "topic_id": topic_progress["topic_id"],
            "progress_percentage": topic_progress["progress_percentage"],
            "is_completed": topic_progress["is_completed"],
        },
        "course_progress": {
            "progress_percentage": enrollment["progress_percentage"],
            "status": enrollment["status"],
            "is_completed": enrollment["is_completed"],
            "total_time_spent": enrollment["total_time_spent"],
        },
    })

# ==================== ADMIN ====================

@router.post("/", status_code=201)
async def create_new_lesson(
    data: LessonCreate,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    topic = await get_topic(db, data.topic_id)
    if not topic:
        raise HTTPException(status_code=404, detail="Topic not found")
    if await order_taken(db, data.topic_id, data.order):
        raise HTTPException(status_code=409, detail="Lesson with this order already exists in the topic")

    lesson = await create_lesson(db, data.model_dump(mode="json"), topic["course_id"])
    return success("Lesson created successfully", {"lesson": serialize_mongo(lesson)})


@router.put("/{lesson_id}")
async def update_existing_lesson(
    lesson_id: str,
    data: LessonUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    lesson = await get_lesson(db, lesson_id)
    if not lesson:
        raise HTTPException(status_code=404, detail="Lesson not found")

    updates = data.model_dump(mode="json", exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    if "order" in updates and await order_taken(db, lesson["topic_id"], updates["order"], exclude_id=lesson_id):
        raise HTTPException(status_code=409, detail="Lesson with this order already exists in the topic")

    lesson = await update_lesson(db, lesson_id, updates)
    return success("Lesson updated successfully", {"lesson": serialize_mongo(lesson)})


@router.patch("/{lesson_id}/deactivate")
async def deactivate_lesson(
    lesson_id: str,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not await get_lesson(db, lesson_id):
        raise HTTPException(status_code=404, detail="Lesson not found")
    lesson = await update_lesson(db, lesson_id, {"is_active": False})
    return success("Lesson deactivated successfully", {"lesson": serialize_mongo(lesson)})


@router.delete("/{lesson_id}")
async def delete_lesson(
    lesson_id: str,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not await get_lesson(db, lesson_id):
        raise HTTPException(status_code=404, detail="Lesson not found")
    if await lesson_has_progress(db, lesson_id):
        raise HTTPException(status_code=400, detail="Cannot delete lesson with user progress. Deactivate it instead.")

    await db.lessons.delete_one({"lesson_id": lesson_id})
    return success("Lesson deleted successfully")


@router.patch("/topic/{topic_id}/reorder")
async def reorder_topic_lessons(
    topic_id: str,
    data: ReorderRequest,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not await get_topic(db, topic_id):
        raise HTTPException(status_code=404, detail="Topic not found")
    if not await reorder_lessons(db, topic_id, data.ids):
        raise HTTPException(status_code=400, detail="Some lessons do not belong to this topic")

    lessons = await db.lessons.find({"topic_id": topic_id}).sort("order", 1).to_list(length=None)
    return success("Lessons reordered successfully", {"lessons": serialize_many(lessons)})


@router.get("/{lesson_id}/analytics")
async def get_lesson_analytics(
    lesson_id: str,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    lesson = await get_lesson(db, lesson_id)
    if not lesson:
        raise HTTPException(status_code=404, detail="Lesson not found")

    enrollments = await db.enrollments.find({"course_id": lesson["course_id"]}).to_list(length=None)
    return success("Lesson analytics retrieved successfully", {
        "lesson": {
            "lesson_id": lesson_id,
            "title": lesson["title"],
            "topic_id": lesson["topic_id"],
            "order": lesson["order"],
        },
        "stats": lesson_analytics(lesson, enrollments),
    })
