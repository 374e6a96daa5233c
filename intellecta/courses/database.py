from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import Optional
import re
import uuid

# ==================== COURSE CRUD ====================

async def create_course(db: AsyncIOMotorDatabase, course_data: dict, creator_id: str) -> dict:
    now = datetime.utcnow()
    course = {
        "course_id": f"COURSE_{uuid.uuid4().hex[:12].upper()}",
        "title": course_data["title"].strip(),
        "description": course_data["description"],
        "image": course_data.get("image"),
        "categories": course_data["categories"],
        "is_featured": course_data.get("is_featured", False),
        "is_active": course_data.get("is_active", True),
        "is_premium": course_data.get("is_premium", False),
        "rating_stats": {
            "average_rating": 0.0,
            "total_ratings": 0
        },
        "created_by": creator_id,
        "created_at": now,
        "updated_at": now,
    }
    await db.courses.insert_one(course)
    return course


async def get_course(db: AsyncIOMotorDatabase, course_id: str) -> Optional[dict]:
    return await db.courses.find_one({"course_id": course_id})


async def find_course_by_title(db: AsyncIOMotorDatabase, title: str,
                               exclude_id: Optional[str] = None) -> Optional[dict]:
    """Case-insensitive exact title match"""
    query = {"title": {"$regex": f"^{re.escape(title.strip())}$", "$options": "i"}}
    if exclude_id:
        query["course_id"] = {"$ne": exclude_id}
    return await db.courses.find_one(query)


async def update_course(db: AsyncIOMotorDatabase, course_id: str, updates: dict) -> Optional[dict]:
    updates["updated_at"] = datetime.utcnow()
    await db.courses.update_one({"course_id": course_id}, {"$set": updates})
    return await get_course(db, course_id)


async def delete_course_cascade(db: AsyncIOMotorDatabase, course_id: str) -> dict:
    lessons = await db.lessons.delete_many({"course_id": course_id})
    topics = await db.topics.delete_many({"course_id": course_id})
    await db.courses.delete_one({"course_id": course_id})
    return {"deleted_topics": topics.deleted_count, "deleted_lessons": lessons.deleted_count}

# ==================== COUNTS ====================

async def course_counts(db: AsyncIOMotorDatabase, course_id: str) -> dict:
    return {
        "enrollment_count": await db.enrollments.count_documents({"course_id": course_id}),
        "topic_count": await db.topics.count_documents({"course_id": course_id, "is_active": True}),
    }


async def with_counts(db: AsyncIOMotorDatabase, courses: list[dict]) -> list[dict]:
    return [{**course, **(await course_counts(db, course["course_id"]))} for course in courses]

# ==================== SEARCH ====================

def text_query(search: str) -> dict:
    pattern = {"$regex": re.escape(search.strip()), "$options": "i"}
    return {"$or": [
        {"title": pattern},
        {"description": pattern},
        {"categories": pattern},
    ]}


def relevance_score(course: dict, search: str) -> int:
    """Title hits outrank category hits, which outrank description hits"""
    term = search.strip().lower()
    if not term:
        return 0
    score = 0
    title = course.get("title", "").lower()
    if title == term:
        score += 10
    elif term in title:
        score += 5
    if any(term in c.lower() for c in course.get("categories", [])):
        score += 3
    if term in course.get("description", "").lower():
        score += 1
    return score


def sort_search_results(courses: list[dict], sort_by: str, search: Optional[str]) -> list[dict]:
    if sort_by == "title":
        return sorted(courses, key=lambda c: c["title"].lower())
    if sort_by == "rating":
        return sorted(courses, key=lambda c: c.get("rating_stats", {}).get("average_rating", 0), reverse=True)
    if sort_by == "popularity":
        return sorted(courses, key=lambda c: c.get("enrollment_count", 0), reverse=True)
    if sort_by == "oldest":
        return sorted(courses, key=lambda c: c["created_at"])
    if sort_by == "relevance" and search:
        return sorted(
            courses,
            key=lambda c: (relevance_score(c, search), c.get("rating_stats", {}).get("average_rating", 0)),
            reverse=True,
        )
    return sorted(courses, key=lambda c: c["created_at"], reverse=True)


def category_facets(courses: list[dict]) -> list[dict]:
    counts = {}
    for course in courses:
        for category in course.get("categories", []):
            counts[category] = counts.get(category, 0) + 1
    return [
        {"category": category, "count": count}
        for category, count in sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    ]
