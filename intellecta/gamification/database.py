from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import Optional
import logging

from intellecta.core.config import COURSE_COMPLETION_POINTS
from intellecta.gamification.leaderboard import (
    new_entry, apply_streak, recalculate_totals, award_achievements,
)

logger = logging.getLogger(__name__)

# ==================== LEADERBOARD ENTRIES ====================

async def get_leaderboard_entry(db: AsyncIOMotorDatabase, user_id: str) -> Optional[dict]:
    return await db.leaderboard.find_one({"user_id": user_id})


async def get_or_create_entry(db: AsyncIOMotorDatabase, user_id: str) -> dict:
    entry = await get_leaderboard_entry(db, user_id)
    if entry:
        return entry
    entry = new_entry(user_id)
    await db.leaderboard.insert_one(entry)
    return entry


async def save_entry(db: AsyncIOMotorDatabase, entry: dict):
    recalculate_totals(entry)
    entry["updated_at"] = datetime.utcnow()
    fields = {k: v for k, v in entry.items() if k != "_id"}
    await db.leaderboard.update_one({"user_id": entry["user_id"]}, {"$set": fields}, upsert=True)


async def recompute_ranks(db: AsyncIOMotorDatabase):
    """Dense ordering by total points, ties broken by who got there first"""
    entries = await db.leaderboard.find({}).sort(
        [("total_points", -1), ("updated_at", 1)]
    ).to_list(length=None)
    for idx, entry in enumerate(entries):
        if entry.get("rank") != idx + 1:
            await db.leaderboard.update_one({"user_id": entry["user_id"]}, {"$set": {"rank": idx + 1}})

# ==================== AWARDS ====================

async def award_course_completion(db: AsyncIOMotorDatabase, user_id: str) -> dict:
    entry = await get_or_create_entry(db, user_id)
    entry["course_points"] = entry.get("course_points", 0) + COURSE_COMPLETION_POINTS
    entry["experience_points"] = entry.get("experience_points", 0) + COURSE_COMPLETION_POINTS
    entry["completed_courses"] = entry.get("completed_courses", 0) + 1
    apply_streak(entry)
    granted = award_achievements(entry)
    await save_entry(db, entry)
    await recompute_ranks(db)

    if granted:
        logger.info("User %s earned %s", user_id, [a["key"] for a in granted])
    return await get_leaderboard_entry(db, user_id)


async def award_challenge_completion(db: AsyncIOMotorDatabase, user_id: str, points: int) -> dict:
    entry = await get_or_create_entry(db, user_id)
    entry["challenge_points"] = entry.get("challenge_points", 0) + points
    entry["experience_points"] = entry.get("experience_points", 0) + points
    entry["completed_challenges"] = entry.get("completed_challenges", 0) + 1
    apply_streak(entry)
    granted = award_achievements(entry)
    await save_entry(db, entry)
    await recompute_ranks(db)

    if granted:
        logger.info("User %s earned %s", user_id, [a["key"] for a in granted])
    return await get_leaderboard_entry(db, user_id)


async def top_entries(db: AsyncIOMotorDatabase, skip: int = 0, limit: int = 10) -> list[dict]:
    """Leaderboard rows with the user's public card attached"""
    entries = await db.leaderboard.find({}).sort(
        [("total_points", -1), ("updated_at", 1)]
    ).skip(skip).limit(limit).to_list(length=limit)

    rows = []
    for idx, entry in enumerate(entries):
        user = await db.users.find_one({"user_id": entry["user_id"]})
        rows.append({
            "rank": skip + idx + 1,
            "user_id": entry["user_id"],
            "name": user["name"] if user else "Anonymous",
            "profile_picture": user.get("profile_picture") if user else None,
            "total_points": entry.get("total_points", 0),
            "level": entry.get("level", 1),
            "streak_days": entry.get("streak_days", 0),
            "completed_courses": entry.get("completed_courses", 0),
            "completed_challenges": entry.get("completed_challenges", 0),
        })
    return rows
