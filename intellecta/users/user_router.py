"""
User profile, premium state and admin user management
"""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Query, BackgroundTasks
from motor.motor_asyncio import AsyncIOMotorDatabase

from intellecta.core.auth import get_current_user, require_admin
from intellecta.core.dependencies import get_db
from intellecta.core.mailer import send_verification_email
from intellecta.core.responses import success
from intellecta.core.security import verify_password, hash_password
from intellecta.core.serialization import serialize_user, serialize_many, pagination, to_naive_utc
from intellecta.gamification.database import get_leaderboard_entry
from intellecta.payments.premium import premium_status, sync_premium_flag, require_premium
from intellecta.users.models import (
    ProfileUpdate, ChangePasswordRequest, ProfilePictureUpdate,
    ExpoTokenUpdate, AdminUserUpdate,
)
from intellecta.users.database import (
    get_user, get_user_by_email, update_user, delete_user_cascade,
    issue_verification_code, list_users, user_dashboard_stats,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])

# ==================== PROFILE ====================

@router.get("/profile")
async def get_profile(
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    user = await sync_premium_flag(db, user)
    return success("Profile retrieved", {"user": serialize_user(user)})


@router.put("/profile")
async def update_profile(
    data: ProfileUpdate,
    background_tasks: BackgroundTasks,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    updates = {}
    if data.name is not None:
        updates["name"] = data.name.strip()

    email_changed = False
    if data.email is not None and data.email.lower() != user["email"]:
        if await get_user_by_email(db, data.email):
            raise HTTPException(status_code=409, detail="Email is already in use")
        updates["email"] = data.email.lower()
        updates["verified"] = False
        email_changed = True

    if not updates:
        raise HTTPException(status_code=400, detail="No valid fields to update")

    updated = await update_user(db, user["user_id"], updates)
    message = "Profile updated successfully"
    if email_changed:
        code = await issue_verification_code(db, user["user_id"])
        background_tasks.add_task(send_verification_email, updated["email"], updated["name"], code)
        message = "Profile updated. Please verify your new email address."

    return success(message, {"user": serialize_user(updated)})


@router.put("/change-password")
async def change_password(
    data: ChangePasswordRequest,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not verify_password(data.current_password, user["password_hash"]):
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    if verify_password(data.new_password, user["password_hash"]):
        raise HTTPException(status_code=400, detail="New password must be different from the current password")

    # Existing sessions must log in again
    await update_user(db, user["user_id"], {
        "password_hash": hash_password(data.new_password),
        "refresh_token_hash": None,
        "refresh_token_expires_at": None,
    })
    return success("Password changed successfully")


@router.put("/profile-picture")
async def set_profile_picture(
    data: ProfilePictureUpdate,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    updated = await update_user(db, user["user_id"], {"profile_picture": data.url})
    return success("Profile picture updated", {"user": serialize_user(updated)})


@router.delete("/profile-picture")
async def remove_profile_picture(
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not user.get("profile_picture"):
        raise HTTPException(status_code=404, detail="No profile picture to remove")
    updated = await update_user(db, user["user_id"], {"profile_picture": None})
    return success("Profile picture removed", {"user": serialize_user(updated)})


@router.put("/expo-token")
async def update_expo_token(
    data: ExpoTokenUpdate,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    await update_user(db, user["user_id"], {"expo_push_token": data.expo_push_token})
    return success("Push token updated")


@router.delete("/account")
async def delete_account(
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    await delete_user_cascade(db, user["user_id"])
    logger.info("User %s deleted their account", user["user_id"])
    return success("Account deleted successfully")

# ==================== PREMIUM ====================

@router.get("/premium/status")
async def get_premium_status(
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    user = await sync_premium_flag(db, user)
    return success("Premium status retrieved", premium_status(user))


@router.get("/premium/access")
async def premium_access(user: dict = Depends(require_premium)):
    return success("Premium access granted", user["premium_info"])

# ==================== STATS ====================

@router.get("/profile-data")
async def get_profile_data(
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    """Everything the profile screen shows in one call"""
    user_id = user["user_id"]
    enrollments = await db.enrollments.find({"user_id": user_id}).to_list(length=None)

    completed_courses = [e for e in enrollments if e.get("status") == "completed"]
    completed_lessons = sum(
        1
        for e in enrollments
        for topic in e.get("topics_progress", [])
        for lesson in topic.get("lessons_progress", [])
        if lesson.get("is_completed")
    )
    study_time = sum(e.get("total_time_spent", 0) for e in enrollments)

    entry = await get_leaderboard_entry(db, user_id) or {}

    return success("Profile data retrieved", {
        "user": serialize_user(user),
        "stats": {
            "experience_points": entry.get("experience_points", 0),
            "total_points": entry.get("total_points", 0),
            "level": entry.get("level", 1),
            "rank": entry.get("rank"),
            "streak_days": entry.get("streak_days", 0),
            "longest_streak": entry.get("longest_streak", 0),
            "enrolled_courses": len(enrollments),
            "completed_courses": len(completed_courses),
            "completed_lessons": completed_lessons,
            "completed_challenges": entry.get("completed_challenges", 0),
            "total_time_spent": study_time,
        },
        "achievements": entry.get("achievements", []),
        "badges": entry.get("badges", []),
        "certificates": [
            {"course_id": e["course_id"], "issued_at": e.get("certificate_issued_at")}
            for e in completed_courses if e.get("certificate_issued")
        ],
    })


@router.get("/certificates")
async def get_certificates(
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    enrollments = await db.enrollments.find({
        "user_id": user["user_id"],
        "certificate_issued": True,
    }).sort("certificate_issued_at", -1).to_list(length=None)

    certificates = []
    for enrollment in enrollments:
        course = await db.courses.find_one({"course_id": enrollment["course_id"]})
        certificates.append({
            "enrollment_id": enrollment["enrollment_id"],
            "course_id": enrollment["course_id"],
            "course_title": course["title"] if course else None,
            "issued_at": enrollment.get("certificate_issued_at"),
            "completed_at": enrollment.get("completed_at"),
            "recipient": user["name"],
        })

    return success("Certificates retrieved", {"certificates": certificates})

# ==================== ADMIN ====================

@router.get("/admin/dashboard")
async def admin_dashboard(
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    stats = await user_dashboard_stats(db)
    return success("Dashboard stats retrieved", stats)


@router.get("/admin/users")
async def admin_list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    role: Optional[str] = None,
    verified: Optional[bool] = None,
    is_premium: Optional[bool] = None,
    search: Optional[str] = None,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    filters = {}
    if role:
        filters["role"] = role
    if verified is not None:
        filters["verified"] = verified
    if is_premium is not None:
        filters["is_premium"] = is_premium
    if search:
        filters["$or"] = [
            {"name": {"$regex": search, "$options": "i"}},
            {"email": {"$regex": search, "$options": "i"}},
        ]

    users, total = await list_users(db, filters, (page - 1) * limit, limit)
    return success("Users retrieved", {
        "users": [serialize_user(u) for u in users],
        "pagination": pagination(page, limit, total),
    })


@router.get("/admin/users/{user_id}")
async def admin_get_user(
    user_id: str,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    user = await get_user(db, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    enrollments = await db.enrollments.find({"user_id": user_id}).to_list(length=None)
    return success("User retrieved", {
        "user": serialize_user(user),
        "enrollments": serialize_many(enrollments),
    })


@router.put("/admin/users/{user_id}")
async def admin_update_user(
    user_id: str,
    data: AdminUserUpdate,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not await get_user(db, user_id):
        raise HTTPException(status_code=404, detail="User not found")

    updates = data.model_dump(exclude_unset=True)
    if "role" in updates and updates["role"] is not None:
        updates["role"] = updates["role"].value
    if updates.get("premium_expiry_date") is not None:
        updates["premium_expiry_date"] = to_naive_utc(updates["premium_expiry_date"])
    if not updates:
        raise HTTPException(status_code=400, detail="No valid fields to update")

    updated = await update_user(db, user_id, updates)
    logger.info("Admin %s updated user %s: %s", admin["user_id"], user_id, sorted(updates))
    return success("User updated successfully", {"user": serialize_user(updated)})


@router.delete("/admin/users/{user_id}")
async def admin_delete_user(
    user_id: str,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if user_id == admin["user_id"]:
        raise HTTPException(status_code=400, detail="Admins cannot delete their own account here")
    if not await delete_user_cascade(db, user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return success("User deleted successfully")
