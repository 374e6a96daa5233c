"""
Course catalogue routes
Public listing/search/details, admin management and analytics
"""

import logging
import re
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from intellecta.core.auth import get_optional_user, require_admin, is_admin
from intellecta.core.dependencies import get_db
from intellecta.core.responses import success
from intellecta.core.serialization import serialize_mongo, serialize_many, pagination
from intellecta.courses.analytics import summarize_enrollments
from intellecta.courses.models import (
    CourseCreate, CourseUpdate, CourseSortField, SearchSortField, SortOrder,
)
from intellecta.courses.database import (
    create_course, get_course, find_course_by_title, update_course,
    delete_course_cascade, with_counts, text_query, sort_search_results,
    category_facets,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Courses"])

SORT_FIELDS = {
    CourseSortField.TITLE: "title",
    CourseSortField.RATING: "rating_stats.average_rating",
    CourseSortField.CREATED_AT: "created_at",
    CourseSortField.UPDATED_AT: "updated_at",
}


def _visibility_filter(user: Optional[dict], active: Optional[bool]) -> dict:
    """Non-admins only ever see active courses"""
    if not is_admin(user):
        return {"is_active": True}
    if active is not None:
        return {"is_active": active}
    return {}

# ==================== PUBLIC ====================

@router.get("/")
async def list_courses(
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    category: Optional[str] = None,
    featured: Optional[bool] = None,
    active: Optional[bool] = None,
    sort_by: CourseSortField = CourseSortField.CREATED_AT,
    sort_order: SortOrder = SortOrder.DESC,
    user: Optional[dict] = Depends(get_optional_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    query = _visibility_filter(user, active)
    if category:
        query["categories"] = {"$regex": f"^{re.escape(category.strip())}$", "$options": "i"}
    if featured is not None:
        query["is_featured"] = featured

    total = await db.courses.count_documents(query)
    direction = 1 if sort_order == SortOrder.ASC else -1
    courses = await db.courses.find(query).sort(
        SORT_FIELDS[sort_by], direction
    ).skip((page - 1) * limit).limit(limit).to_list(length=limit)

    return success("Courses retrieved successfully", {
        "courses": serialize_many(await with_counts(db, courses)),
        "pagination": pagination(page, limit, total),
    })


@router.get("/search")
async def search_courses(
    search: Optional[str] = None,
    category: Optional[str] = None,
    min_rating: Optional[float] = Query(None, ge=0, le=5),
    max_rating: Optional[float] = Query(None, ge=0, le=5),
    featured: Optional[bool] = None,
    sort_by: SearchSortField = SearchSortField.RELEVANCE,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    user: Optional[dict] = Depends(get_optional_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if min_rating is not None and max_rating is not None and min_rating > max_rating:
        raise HTTPException(status_code=400, detail="min_rating cannot be greater than max_rating")

    query = _visibility_filter(user, None)
    if search and search.strip():
        query.update(text_query(search))
    if category:
        query["categories"] = {"$regex": f"^{re.escape(category.strip())}$", "$options": "i"}
    if featured is not None:
        query["is_featured"] = featured
    rating = {}
    if min_rating is not None:
        rating["$gte"] = min_rating
    if max_rating is not None:
        rating["$lte"] = max_rating
    if rating:
        query["rating_stats.average_rating"] = rating

    matches = await with_counts(db, await db.courses.find(query).to_list(length=None))
    ordered = sort_search_results(matches, sort_by.value, search)
    start = (page - 1) * limit

    return success("Search completed", {
        "courses": serialize_many(ordered[start:start + limit]),
        "facets": {"categories": category_facets(matches)},
        "pagination": pagination(page, limit, len(ordered)),
        "search": search,
    })


@router.get("/categories")
async def get_categories(db: AsyncIOMotorDatabase = Depends(get_db)):
    categories = await db.courses.distinct("categories", {"is_active": True})
    return success("Categories retrieved", {"categories": sorted(categories)})


@router.get("/{course_id}")
async def get_course_details(
    course_id: str,
    user: Optional[dict] = Depends(get_optional_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    course = await get_course(db, course_id)
    if not course or (not course.get("is_active") and not is_admin(user)):
        raise HTTPException(status_code=404, detail="Course not found")

    topics = await db.topics.find(
        {"course_id": course_id, "is_active": True}
    ).sort("order", 1).to_list(length=None)

    total_lessons = 0
    for topic in topics:
        lessons = await db.lessons.find(
            {"topic_id": topic["topic_id"], "is_active": True},
            {"_id": 0, "lesson_id": 1, "title": 1, "description": 1, "order": 1},
        ).sort("order", 1).to_list(length=None)
        topic["lessons"] = lessons
        topic["lesson_count"] = len(lessons)
        total_lessons += len(lessons)

    enrollment = None
    if user:
        enrollment = await db.enrollments.find_one({"user_id": user["user_id"], "course_id": course_id})

    enrollment_count = await db.enrollments.count_documents({"course_id": course_id})
    completed_count = await db.enrollments.count_documents({"course_id": course_id, "status": "completed"})

    return success("Course retrieved successfully", {
        "course": {
            **serialize_mongo(course),
            "topics": serialize_many(topics),
            "topic_count": len(topics),
            "total_lessons": total_lessons,
        },
        "enrollment": serialize_mongo(enrollment),
        "is_enrolled": enrollment is not None,
        "stats": {
            "enrollment_count": enrollment_count,
            "completed_count": completed_count,
            "completion_rate": round(completed_count / enrollment_count * 100, 2) if enrollment_count else 0,
        },
    })

# ==================== ADMIN ====================

@router.post("/", status_code=201)
async def create_new_course(
    data: CourseCreate,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if await find_course_by_title(db, data.title):
        raise HTTPException(status_code=409, detail="A course with this title already exists")

    course = await create_course(db, data.model_dump(), admin["user_id"])
    logger.info("Course %s created by %s", course["course_id"], admin["user_id"])
    return success("Course created successfully", {"course": serialize_mongo(course)})


@router.put("/{course_id}")
async def update_existing_course(
    course_id: str,
    data: CourseUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not await get_course(db, course_id):
        raise HTTPException(status_code=404, detail="Course not found")

    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No valid fields to update")
    if "title" in updates:
        if await find_course_by_title(db, updates["title"], exclude_id=course_id):
            raise HTTPException(status_code=409, detail="A course with this title already exists")
        updates["title"] = updates["title"].strip()

    course = await update_course(db, course_id, updates)
    return success("Course updated successfully", {"course": serialize_mongo(course)})


@router.patch("/{course_id}/deactivate")
async def deactivate_course(
    course_id: str,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not await get_course(db, course_id):
        raise HTTPException(status_code=404, detail="Course not found")
    course = await update_course(db, course_id, {"is_active": False})
    return success("Course deactivated successfully", {"course": serialize_mongo(course)})


@router.delete("/{course_id}")
async def delete_course(
    course_id: str,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not await get_course(db, course_id):
        raise HTTPException(status_code=404, detail="Course not found")

    enrollment_count = await db.enrollments.count_documents({"course_id": course_id})
    if enrollment_count:
        raise HTTPException(
            status_code=400,
            detail=f"Cannot delete course with {enrollment_count} active enrollment(s). Deactivate it instead."
        )

    deleted = await delete_course_cascade(db, course_id)
    logger.info("Course %s deleted by %s", course_id, admin["user_id"])
    return success("Course deleted successfully", deleted)


@router.get("/{course_id}/analytics")
async def get_course_analytics(
    course_id: str,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    course = await get_course(db, course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")

    enrollments = await db.enrollments.find({"course_id": course_id}).to_list(length=None)
    return success("Course analytics retrieved", {
        "course": {"course_id": course_id, "title": course["title"]},
        "enrollments": summarize_enrollments(enrollments),
        "ratings": course.get("rating_stats", {}),
    })
