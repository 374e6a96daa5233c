"""
Enrollment routes (mounted under /courses)
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from intellecta.core.auth import get_current_user
from intellecta.core.dependencies import get_db
from intellecta.core.responses import success
from intellecta.core.serialization import serialize_mongo, pagination
from intellecta.courses.database import get_course
from intellecta.enrollments.database import (
    get_enrollment, enroll_user, list_user_enrollments, AlreadyEnrolledError,
)
from intellecta.enrollments.progress import EnrollmentStatus
from intellecta.payments.premium import has_active_premium, sync_premium_flag

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Enrollments"])


@router.post("/{course_id}/enroll", status_code=201)
async def enroll_in_course(
    course_id: str,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    course = await get_course(db, course_id)
    if not course or not course.get("is_active"):
        raise HTTPException(status_code=404, detail="Course not found or inactive")

    if await get_enrollment(db, user["user_id"], course_id):
        raise HTTPException(status_code=409, detail="Already enrolled in this course")

    if course.get("is_premium"):
        user = await sync_premium_flag(db, user)
        if not has_active_premium(user):
            raise HTTPException(
                status_code=403,
                detail={
                    "message": "This is a premium course. Upgrade to premium to enroll.",
                    "is_premium": False,
                    "upgrade_required": True,
                }
            )

    try:
        enrollment = await enroll_user(db, user["user_id"], course_id)
    except AlreadyEnrolledError:
        raise HTTPException(status_code=409, detail="Already enrolled in this course")

    logger.info("User %s enrolled in %s", user["user_id"], course_id)
    return success("Successfully enrolled in course", {
        "enrollment": serialize_mongo(enrollment),
        "course": {"course_id": course_id, "title": course["title"]},
    })


@router.get("/enrollments/my")
async def get_my_enrollments(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[EnrollmentStatus] = None,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    enrollments, total = await list_user_enrollments(
        db, user["user_id"], status.value if status else None, (page - 1) * limit, limit
    )

    items = []
    for enrollment in enrollments:
        course = await get_course(db, enrollment["course_id"])
        items.append({
            **serialize_mongo(enrollment),
            "course": {
                "course_id": course["course_id"],
                "title": course["title"],
                "image": course.get("image"),
                "categories": course.get("categories", []),
                "rating_stats": course.get("rating_stats"),
            } if course else None,
        })

    return success("Enrollments retrieved successfully", {
        "enrollments": items,
        "pagination": pagination(page, limit, total),
    })
