"""
Dashboard routes
Aggregates enrollments, challenges and leaderboard state for the home screen
"""

from fastapi import APIRouter, HTTPException, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from intellecta.core.auth import get_current_user
from intellecta.core.config import COURSE_COMPLETION_POINTS
from intellecta.core.dependencies import get_db
from intellecta.core.responses import success
from intellecta.core.serialization import js_round
from intellecta.enrollments.progress import current_topic
from intellecta.gamification.challenges import get_today_challenge, get_challenge, get_submission, challenge_view
from intellecta.gamification.database import get_leaderboard_entry, top_entries

router = APIRouter(tags=["Dashboard"])


async def _current_progress(db: AsyncIOMotorDatabase, user_id: str):
    enrollment = await db.enrollments.find_one(
        {"user_id": user_id, "status": {"$in": ["enrolled", "in_progress"]}},
        sort=[("last_accessed_at", -1)],
    )
    if not enrollment:
        return None

    course = await db.courses.find_one({"course_id": enrollment["course_id"]}) or {}
    topic_progress = current_topic(enrollment)
    topic = await db.topics.find_one({"topic_id": topic_progress["topic_id"]}) if topic_progress else None
    topics = enrollment.get("topics_progress", [])

    return {
        "course_id": enrollment["course_id"],
        "course_title": course.get("title"),
        "course_image": course.get("image"),
        "progress_percentage": enrollment["progress_percentage"],
        "current_topic": topic["title"] if topic else None,
        "total_topics": len(topics),
        "completed_topics": sum(1 for tp in topics if tp.get("is_completed")),
        "last_accessed_at": enrollment.get("last_accessed_at"),
    }


@router.get("/")
async def get_dashboard_overview(
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    user_id = user["user_id"]

    challenge = await get_today_challenge(db)
    daily_challenge = None
    if challenge:
        submission = await get_submission(db, user_id, challenge["challenge_id"])
        daily_challenge = {
            "challenge_id": challenge["challenge_id"],
            "title": challenge["title"],
            "description": challenge["description"],
            "difficulty": challenge["difficulty"],
            "category": challenge["category"],
            "points": challenge["points"],
            "status": {
                "attempted": submission is not None,
                "completed": bool(submission and submission.get("is_correct")),
                "points_earned": submission.get("points_earned", 0) if submission else 0,
            },
        }

    entry = await get_leaderboard_entry(db, user_id) or {}
    picks = await db.courses.find(
        {"is_featured": True, "is_active": True},
        {"_id": 0, "course_id": 1, "title": 1, "description": 1, "image": 1, "rating_stats": 1, "categories": 1},
    ).sort("rating_stats.average_rating", -1).limit(4).to_list(length=4)

    return success("Dashboard data retrieved successfully", {
        "user": {
            "name": user["name"],
            "profile_picture": user.get("profile_picture"),
            "is_premium": user.get("is_premium", False),
        },
        "current_progress": await _current_progress(db, user_id),
        "daily_challenge": daily_challenge,
        "leaderboard": {
            "user_rank": entry.get("rank") or 0,
            "user_points": entry.get("total_points", 0),
            "user_level": entry.get("level", 1),
            "streak_days": entry.get("streak_days", 0),
            "top_users": await top_entries(db, 0, 5),
        },
        "community_picks": picks,
    })


@router.get("/activity")
async def get_recent_activity(
    limit: int = Query(10, ge=1, le=50),
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    user_id = user["user_id"]
    enrollments = await db.enrollments.find({"user_id": user_id}).sort(
        "last_accessed_at", -1
    ).limit(limit).to_list(length=limit)
    submissions = await db.challenge_submissions.find({"user_id": user_id}).sort(
        "submitted_at", -1
    ).limit(limit).to_list(length=limit)

    activities = []
    for enrollment in enrollments:
        course = await db.courses.find_one({"course_id": enrollment["course_id"]}) or {}
        completed = enrollment.get("status") == "completed"
        activities.append({
            "type": "course",
            "action": "completed" if completed else "accessed",
            "course_id": enrollment["course_id"],
            "title": course.get("title"),
            "image": course.get("image"),
            "progress": enrollment.get("progress_percentage", 0),
            "timestamp": enrollment.get("last_accessed_at"),
            "points": COURSE_COMPLETION_POINTS if completed else 0,
        })

    for submission in submissions:
        challenge = await get_challenge(db, submission["challenge_id"]) or {}
        activities.append({
            "type": "challenge",
            "action": "completed" if submission.get("is_correct") else "attempted",
            "challenge_id": submission["challenge_id"],
            "title": challenge.get("title"),
            "difficulty": challenge.get("difficulty"),
            "timestamp": submission.get("submitted_at"),
            "points": submission.get("points_earned", 0),
        })

    activities.sort(key=lambda a: a["timestamp"], reverse=True)
    return success("Recent activity retrieved successfully", {"activities": activities[:limit]})


@router.get("/stats")
async def get_progress_stats(
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    user_id = user["user_id"]
    enrollments = await db.enrollments.find({"user_id": user_id}).to_list(length=None)
    submissions = await db.challenge_submissions.find({"user_id": user_id}).to_list(length=None)
    entry = await get_leaderboard_entry(db, user_id) or {}

    total_courses = len(enrollments)
    completed_courses = sum(1 for e in enrollments if e.get("status") == "completed")
    total_time = sum(e.get("total_time_spent", 0) for e in enrollments)
    completed_challenges = sum(1 for s in submissions if s.get("is_correct"))
    average_progress = (
        sum(e.get("progress_percentage", 0) for e in enrollments) / total_courses if total_courses else 0
    )

    return success("Progress statistics retrieved successfully", {
        "courses": {
            "total": total_courses,
            "completed": completed_courses,
            "in_progress": sum(1 for e in enrollments if e.get("status") == "in_progress"),
            "average_progress": js_round(average_progress),
        },
        "challenges": {
            "total": len(submissions),
            "completed": completed_challenges,
            "completion_rate": js_round(completed_challenges / len(submissions) * 100) if submissions else 0,
        },
        "time_spent": {
            "total": total_time,
            "total_hours": js_round(total_time / 60),
            "average_per_course": js_round(total_time / total_courses) if total_courses else 0,
        },
        "points": {
            "total": entry.get("total_points", 0),
            "challenge_points": entry.get("challenge_points", 0),
            "course_points": entry.get("course_points", 0),
            "level": entry.get("level", 1),
            "experience_points": entry.get("experience_points", 0),
        },
        "streak": {
            "current": entry.get("streak_days", 0),
            "longest": entry.get("longest_streak", 0),
        },
    })


@router.get("/challenge/{challenge_id}")
async def get_challenge_details(
    challenge_id: str,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    challenge = await get_challenge(db, challenge_id)
    if not challenge:
        raise HTTPException(status_code=404, detail="Challenge not found")

    submission = await get_submission(db, user["user_id"], challenge_id)
    solved = bool(submission and submission.get("is_correct"))

    return success("Challenge details retrieved successfully", {
        "challenge": challenge_view(challenge, reveal=solved),
        "submission": {
            "code": submission["code"],
            "is_correct": submission["is_correct"],
            "points_earned": submission.get("points_earned", 0),
            "attempts": submission.get("attempts", 1),
            "time_spent": submission.get("time_spent", 0),
            "completed_at": submission.get("completed_at"),
            "test_results": submission.get("test_results", []),
        } if submission else None,
    })
