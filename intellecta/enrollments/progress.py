"""
Enrollment progress engine

An enrollment nests one entry per topic, each nesting one entry per lesson:

    enrollment.topics_progress[i].lessons_progress[j]

Everything above the lesson level is derived. Call refresh_enrollment()
after any lesson mutation to bring percentages, status and time totals
back in line before saving.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
import uuid

from intellecta.core.serialization import js_round


class EnrollmentStatus(str, Enum):
    ENROLLED = "enrolled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DROPPED = "dropped"

# ==================== BUILDERS ====================

def new_lesson_progress(lesson_id: str) -> dict:
    return {
        "lesson_id": lesson_id,
        "is_completed": False,
        "completed_at": None,
        "quiz_score": None,
        "time_spent": 0,
    }


def build_topics_progress(topics: list[dict], lessons_by_topic: dict[str, list[dict]]) -> list[dict]:
    """Skeleton progress for the given (ordered) topics and their lessons"""
    return [
        {
            "topic_id": topic["topic_id"],
            "is_completed": False,
            "completed_at": None,
            "progress_percentage": 0,
            "lessons_progress": [
                new_lesson_progress(lesson["lesson_id"])
                for lesson in lessons_by_topic.get(topic["topic_id"], [])
            ],
        }
        for topic in topics
    ]


def new_enrollment(user_id: str, course_id: str, topics_progress: list[dict],
                   now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    return {
        "enrollment_id": f"ENROLL_{uuid.uuid4().hex[:12].upper()}",
        "user_id": user_id,
        "course_id": course_id,
        "enrolled_at": now,
        "started_at": None,
        "completed_at": None,
        "is_completed": False,
        "progress_percentage": 0,
        "status": EnrollmentStatus.ENROLLED.value,
        "topics_progress": topics_progress,
        "total_time_spent": 0,
        "last_accessed_at": now,
        "certificate_issued": False,
        "certificate_issued_at": None,
        "created_at": now,
        "updated_at": now,
        "version": 0,
    }

# ==================== LOOKUPS ====================

def find_topic_progress(enrollment: dict, topic_id: str) -> Optional[dict]:
    for topic_progress in enrollment.get("topics_progress", []):
        if topic_progress["topic_id"] == topic_id:
            return topic_progress
    return None


def find_lesson_progress(enrollment: dict, lesson_id: str) -> Optional[dict]:
    for topic_progress in enrollment.get("topics_progress", []):
        for lesson_progress in topic_progress.get("lessons_progress", []):
            if lesson_progress["lesson_id"] == lesson_id:
                return lesson_progress
    return None


def get_or_create_lesson_progress(topic_progress: dict, lesson_id: str) -> dict:
    """Lessons published after enrollment get their entry on first touch"""
    for lesson_progress in topic_progress["lessons_progress"]:
        if lesson_progress["lesson_id"] == lesson_id:
            return lesson_progress
    lesson_progress = new_lesson_progress(lesson_id)
    topic_progress["lessons_progress"].append(lesson_progress)
    return lesson_progress

# ==================== MUTATIONS ====================

def record_lesson_progress(lesson_progress: dict, is_completed: bool, time_spent: int = 0,
                           now: Optional[datetime] = None):
    now = now or datetime.utcnow()
    lesson_progress["is_completed"] = is_completed
    if is_completed and not lesson_progress.get("completed_at"):
        lesson_progress["completed_at"] = now
    if time_spent:
        lesson_progress["time_spent"] = lesson_progress.get("time_spent", 0) + time_spent


def recalculate_topic(topic_progress: dict, now: Optional[datetime] = None) -> int:
    """Topic percentage from its lesson entries; completion is stamped once"""
    now = now or datetime.utcnow()
    lessons = topic_progress.get("lessons_progress", [])
    completed = sum(1 for lesson in lessons if lesson.get("is_completed"))
    percentage = js_round(completed / len(lessons) * 100) if lessons else 0

    topic_progress["progress_percentage"] = percentage
    if percentage == 100:
        if not topic_progress.get("is_completed"):
            topic_progress["is_completed"] = True
            topic_progress["completed_at"] = now
    else:
        topic_progress["is_completed"] = False
    return percentage


def calculate_progress(enrollment: dict) -> int:
    """Mean of topic percentages, rounded half up"""
    topics = enrollment.get("topics_progress", [])
    if not topics:
        return 0
    total = sum(topic.get("progress_percentage", 0) for topic in topics)
    return js_round(total / len(topics))


def update_status(enrollment: dict, now: Optional[datetime] = None) -> str:
    now = now or datetime.utcnow()
    progress = enrollment.get("progress_percentage", 0)

    if progress == 0:
        enrollment["status"] = EnrollmentStatus.ENROLLED.value
    elif progress == 100:
        enrollment["status"] = EnrollmentStatus.COMPLETED.value
        enrollment["is_completed"] = True
        if not enrollment.get("completed_at"):
            enrollment["completed_at"] = now
    else:
        enrollment["status"] = EnrollmentStatus.IN_PROGRESS.value
        if not enrollment.get("started_at"):
            enrollment["started_at"] = now
    return enrollment["status"]


def total_time_spent(enrollment: dict) -> int:
    return sum(
        lesson.get("time_spent", 0)
        for topic in enrollment.get("topics_progress", [])
        for lesson in topic.get("lessons_progress", [])
    )


def refresh_enrollment(enrollment: dict, now: Optional[datetime] = None) -> dict:
    """Recompute every derived field in place and return the enrollment"""
    now = now or datetime.utcnow()
    if enrollment.get("topics_progress"):
        for topic_progress in enrollment["topics_progress"]:
            recalculate_topic(topic_progress, now)
        enrollment["progress_percentage"] = calculate_progress(enrollment)
        update_status(enrollment, now)
        enrollment["total_time_spent"] = total_time_spent(enrollment)
    enrollment["last_accessed_at"] = now
    enrollment["updated_at"] = now
    return enrollment


def current_topic(enrollment: dict) -> Optional[dict]:
    """First topic that is started but unfinished, else the first topic"""
    topics = enrollment.get("topics_progress", [])
    for topic in topics:
        if 0 < topic.get("progress_percentage", 0) < 100:
            return topic
    return topics[0] if topics else None
