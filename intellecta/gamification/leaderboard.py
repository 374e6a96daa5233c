"""
Leaderboard math: levels, streaks, points and achievements
Pure functions over a leaderboard entry dict
"""

import math
from datetime import datetime
from typing import Optional
import uuid

ACHIEVEMENTS = {
    "first_course": {
        "type": "course",
        "title": "Course Conqueror",
        "description": "Completed your first course",
    },
    "first_challenge": {
        "type": "challenge",
        "title": "Problem Solver",
        "description": "Solved your first daily challenge",
    },
    "streak_7": {
        "type": "streak",
        "title": "On Fire",
        "description": "Kept a 7 day learning streak",
    },
    "streak_30": {
        "type": "streak",
        "title": "Unstoppable",
        "description": "Kept a 30 day learning streak",
    },
}


def calculate_level(experience_points: int) -> int:
    return math.floor(math.sqrt(max(experience_points, 0) / 100)) + 1


def new_entry(user_id: str, now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    return {
        "entry_id": f"LB_{uuid.uuid4().hex[:12].upper()}",
        "user_id": user_id,
        "total_points": 0,
        "challenge_points": 0,
        "course_points": 0,
        "streak_days": 0,
        "longest_streak": 0,
        "last_activity_date": None,
        "completed_courses": 0,
        "completed_challenges": 0,
        "rank": None,
        "badges": [],
        "achievements": [],
        "level": 1,
        "experience_points": 0,
        "created_at": now,
        "updated_at": now,
    }


def apply_streak(entry: dict, now: Optional[datetime] = None) -> int:
    """
    Day-granular streak:
    same day -> unchanged, next day -> +1, gap -> back to 1
    """
    now = now or datetime.utcnow()
    last = entry.get("last_activity_date")

    if last is None or entry.get("streak_days", 0) == 0:
        entry["streak_days"] = 1
    else:
        diff_days = abs((now.date() - last.date()).days)
        if diff_days == 1:
            entry["streak_days"] += 1
        elif diff_days > 1:
            entry["streak_days"] = 1

    entry["longest_streak"] = max(entry.get("longest_streak", 0), entry["streak_days"])
    entry["last_activity_date"] = now
    return entry["streak_days"]


def recalculate_totals(entry: dict):
    entry["total_points"] = entry.get("challenge_points", 0) + entry.get("course_points", 0)
    entry["level"] = calculate_level(entry.get("experience_points", 0))


def award_achievements(entry: dict, now: Optional[datetime] = None) -> list[dict]:
    """Grant every achievement the entry newly qualifies for; each is granted once"""
    now = now or datetime.utcnow()
    owned = {a["key"] for a in entry.get("achievements", [])}
    qualifies = {
        "first_course": entry.get("completed_courses", 0) >= 1,
        "first_challenge": entry.get("completed_challenges", 0) >= 1,
        "streak_7": entry.get("streak_days", 0) >= 7,
        "streak_30": entry.get("streak_days", 0) >= 30,
    }

    granted = []
    for key, ok in qualifies.items():
        if ok and key not in owned:
            achievement = {"key": key, **ACHIEVEMENTS[key], "earned_at": now}
            entry.setdefault("achievements", []).append(achievement)
            granted.append(achievement)
    return granted
