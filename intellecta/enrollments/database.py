from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError
from datetime import datetime
from typing import Callable, Optional
import logging

from intellecta.enrollments.progress import (
    build_topics_progress, new_enrollment, refresh_enrollment, EnrollmentStatus,
    find_topic_progress, get_or_create_lesson_progress,
)
from intellecta.gamification.database import award_course_completion

logger = logging.getLogger(__name__)


class AlreadyEnrolledError(Exception):
    pass


class ProgressConflictError(Exception):
    """Another request saved the enrollment after we loaded it"""
    pass


MAX_PROGRESS_RETRIES = 5

# ==================== ENROLLMENT CRUD ====================

async def get_enrollment(db: AsyncIOMotorDatabase, user_id: str, course_id: str) -> Optional[dict]:
    return await db.enrollments.find_one({"user_id": user_id, "course_id": course_id})


async def enroll_user(db: AsyncIOMotorDatabase, user_id: str, course_id: str) -> dict:
    """Create the enrollment with a progress skeleton of active topics/lessons"""
    topics = await db.topics.find(
        {"course_id": course_id, "is_active": True}
    ).sort("order", 1).to_list(length=None)

    lessons_by_topic = {}
    for topic in topics:
        lessons_by_topic[topic["topic_id"]] = await db.lessons.find(
            {"topic_id": topic["topic_id"], "is_active": True}
        ).sort("order", 1).to_list(length=None)

    enrollment = new_enrollment(user_id, course_id, build_topics_progress(topics, lessons_by_topic))
    try:
        await db.enrollments.insert_one(enrollment)
    except DuplicateKeyError:
        raise AlreadyEnrolledError(course_id)
    return enrollment

# ==================== PROGRESS WRITES ====================

async def issue_certificate(db: AsyncIOMotorDatabase, enrollment: dict) -> bool:
    """Flip certificate_issued exactly once; only the winning writer pays out"""
    now = datetime.utcnow()
    result = await db.enrollments.update_one(
        {"enrollment_id": enrollment["enrollment_id"], "certificate_issued": False},
        {"$set": {"certificate_issued": True, "certificate_issued_at": now}}
    )
    if result.modified_count != 1:
        return False

    enrollment["certificate_issued"] = True
    enrollment["certificate_issued_at"] = now
    logger.info("User %s completed course %s", enrollment["user_id"], enrollment["course_id"])
    await award_course_completion(db, enrollment["user_id"])
    return True


async def save_progress(db: AsyncIOMotorDatabase, enrollment: dict) -> dict:
    """
    Recompute derived fields and persist against the version that was loaded.
    Raises ProgressConflictError if another request saved in between.
    The first transition to completed issues the certificate and pays out course points.
    """
    refresh_enrollment(enrollment)

    version = enrollment.get("version", 0)
    fields = {
        k: v for k, v in enrollment.items()
        if k not in ("_id", "version", "certificate_issued", "certificate_issued_at")
    }
    fields["version"] = version + 1
    result = await db.enrollments.update_one(
        {"enrollment_id": enrollment["enrollment_id"], "version": version},
        {"$set": fields}
    )
    if result.modified_count != 1:
        raise ProgressConflictError(enrollment["enrollment_id"])
    enrollment["version"] = version + 1

    if enrollment["status"] == EnrollmentStatus.COMPLETED.value and not enrollment.get("certificate_issued"):
        await issue_certificate(db, enrollment)
    return enrollment


async def update_lesson_progress(db: AsyncIOMotorDatabase, enrollment: dict, topic_id: str,
                                 lesson_id: str, mutate: Callable[[dict], None]) -> tuple[dict, dict, dict]:
    """
    Apply mutate() to one lesson entry and save, reloading and reapplying
    when a concurrent request saved the enrollment first.
    Returns (enrollment, topic_progress, lesson_progress).
    """
    for attempt in range(MAX_PROGRESS_RETRIES):
        topic_progress = find_topic_progress(enrollment, topic_id)
        if not topic_progress:
            raise LookupError(topic_id)
        lesson_progress = get_or_create_lesson_progress(topic_progress, lesson_id)
        mutate(lesson_progress)
        try:
            enrollment = await save_progress(db, enrollment)
            return enrollment, topic_progress, lesson_progress
        except ProgressConflictError:
            logger.info("Progress conflict on %s, retry %d", enrollment["enrollment_id"], attempt + 1)
            enrollment_id = enrollment["enrollment_id"]
            enrollment = await db.enrollments.find_one({"enrollment_id": enrollment_id})
            if not enrollment:
                raise LookupError(enrollment_id)
    raise ProgressConflictError(enrollment["enrollment_id"])


async def list_user_enrollments(db: AsyncIOMotorDatabase, user_id: str, status: Optional[str],
                                skip: int, limit: int) -> tuple[list, int]:
    query = {"user_id": user_id}
    if status:
        query["status"] = status
    total = await db.enrollments.count_documents(query)
    enrollments = await db.enrollments.find(query).sort(
        "last_accessed_at", -1
    ).skip(skip).limit(limit).to_list(length=limit)
    return enrollments, total
