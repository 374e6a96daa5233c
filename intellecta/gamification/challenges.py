from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError
from datetime import datetime, timedelta
from typing import Optional
import uuid

from intellecta.core.serialization import to_naive_utc

# ==================== DAILY CHALLENGES ====================

def day_bounds(now: Optional[datetime] = None) -> tuple[datetime, datetime]:
    now = now or datetime.utcnow()
    start = datetime(now.year, now.month, now.day)
    return start, start + timedelta(days=1)


async def create_challenge(db: AsyncIOMotorDatabase, data: dict, creator_id: str) -> dict:
    now = datetime.utcnow()
    active_day, _ = day_bounds(to_naive_utc(data["active_date"]))
    challenge = {
        "challenge_id": f"CHALLENGE_{uuid.uuid4().hex[:12].upper()}",
        "title": data["title"],
        "description": data["description"],
        "difficulty": getattr(data["difficulty"], "value", data["difficulty"]),
        "category": data["category"],
        "points": data["points"],
        "code_template": data.get("code_template", ""),
        "expected_output": data.get("expected_output"),
        "test_cases": data["test_cases"],
        "hints": data.get("hints", []),
        "solution": data.get("solution"),
        "is_active": data.get("is_active", True),
        "active_date": active_day,
        "created_by": creator_id,
        "created_at": now,
        "updated_at": now,
    }
    await db.daily_challenges.insert_one(challenge)
    return challenge


async def get_challenge(db: AsyncIOMotorDatabase, challenge_id: str) -> Optional[dict]:
    return await db.daily_challenges.find_one({"challenge_id": challenge_id})


async def get_today_challenge(db: AsyncIOMotorDatabase, now: Optional[datetime] = None) -> Optional[dict]:
    start, end = day_bounds(now)
    return await db.daily_challenges.find_one({
        "is_active": True,
        "active_date": {"$gte": start, "$lt": end},
    })


def challenge_view(challenge: dict, reveal: bool = False) -> dict:
    """Learner view; the solution never leaves the server, expected outputs only once solved"""
    view = {k: v for k, v in challenge.items() if k not in ("_id", "solution", "expected_output", "test_cases")}
    view["test_cases"] = [
        {"input": tc.get("input", ""), **({"expected_output": tc["expected_output"]} if reveal else {})}
        for tc in challenge.get("test_cases", [])
    ]
    if reveal:
        view["expected_output"] = challenge.get("expected_output")
    return view

# ==================== SUBMISSIONS ====================

async def get_submission(db: AsyncIOMotorDatabase, user_id: str, challenge_id: str) -> Optional[dict]:
    return await db.challenge_submissions.find_one({"user_id": user_id, "challenge_id": challenge_id})


async def record_submission(db: AsyncIOMotorDatabase, user_id: str, challenge: dict,
                            code: str, language: str, time_spent: int, judged: dict) -> tuple[dict, bool]:
    """
    One submission document per (user, challenge); retries update it.
    Returns (submission, newly_solved). Points are only granted on the first correct attempt.
    """
    now = datetime.utcnow()
    existing = await get_submission(db, user_id, challenge["challenge_id"])
    already_solved = bool(existing and existing.get("is_correct"))
    newly_solved = judged["is_correct"] and not already_solved

    attempt = {
        "code": code,
        "language": language,
        "test_results": judged["test_results"],
        "verdict": judged["verdict"],
        "submitted_at": now,
    }
    if newly_solved:
        attempt.update({
            "is_correct": True,
            "points_earned": challenge["points"],
            "completed_at": now,
        })

    if existing is None:
        submission = {
            "submission_id": f"CSUB_{uuid.uuid4().hex[:12].upper()}",
            "user_id": user_id,
            "challenge_id": challenge["challenge_id"],
            "is_correct": False,
            "points_earned": 0,
            "completed_at": None,
            "time_spent": time_spent,
            "attempts": 1,
            **attempt,
        }
        try:
            await db.challenge_submissions.insert_one(submission)
            return submission, newly_solved
        except DuplicateKeyError:
            # Concurrent first attempt; fall through to the update path
            existing = await get_submission(db, user_id, challenge["challenge_id"])
            already_solved = bool(existing.get("is_correct"))
            newly_solved = judged["is_correct"] and not already_solved

    query = {"user_id": user_id, "challenge_id": challenge["challenge_id"]}
    increments = {"attempts": 1, "time_spent": time_spent}
    if newly_solved:
        # Only the attempt that flips is_correct gets the points
        result = await db.challenge_submissions.update_one(
            {**query, "is_correct": False}, {"$set": attempt, "$inc": increments}
        )
        if result.modified_count == 1:
            return await get_submission(db, user_id, challenge["challenge_id"]), True
        newly_solved = False
    for key in ("is_correct", "points_earned", "completed_at"):
        attempt.pop(key, None)

    await db.challenge_submissions.update_one(query, {"$set": attempt, "$inc": increments})
    return await get_submission(db, user_id, challenge["challenge_id"]), newly_solved
