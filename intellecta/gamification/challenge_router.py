"""
Daily coding challenges
"""

import logging
from datetime import datetime

from fastapi import APIRouter, HTTPException, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from intellecta.core.auth import get_current_user, require_admin
from intellecta.core.dependencies import get_db
from intellecta.core.responses import success
from intellecta.core.serialization import serialize_mongo, serialize_many
from intellecta.gamification import judge
from intellecta.gamification.challenges import (
    create_challenge, get_challenge, get_today_challenge, challenge_view,
    get_submission, record_submission,
)
from intellecta.gamification.database import award_challenge_completion
from intellecta.gamification.models import DailyChallengeCreate, ChallengeSubmissionCreate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Challenges"])


@router.get("/today")
async def get_todays_challenge(
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    challenge = await get_today_challenge(db)
    if not challenge:
        raise HTTPException(status_code=404, detail="No challenge available for today")

    submission = await get_submission(db, user["user_id"], challenge["challenge_id"])
    solved = bool(submission and submission.get("is_correct"))
    return success("Today's challenge retrieved", {
        "challenge": challenge_view(challenge),
        "submission": serialize_mongo(submission),
        "is_completed": solved,
    })


@router.get("/submissions/my")
async def get_my_submissions(
    limit: int = Query(20, ge=1, le=100),
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    submissions = await db.challenge_submissions.find(
        {"user_id": user["user_id"]}
    ).sort("submitted_at", -1).limit(limit).to_list(length=limit)
    return success("Submissions retrieved", {"submissions": serialize_many(submissions)})


@router.post("/{challenge_id}/submit")
async def submit_challenge(
    challenge_id: str,
    data: ChallengeSubmissionCreate,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    challenge = await get_challenge(db, challenge_id)
    if not challenge or not challenge.get("is_active"):
        raise HTTPException(status_code=404, detail="Challenge not found")
    if challenge["active_date"] > datetime.utcnow():
        raise HTTPException(status_code=400, detail="This challenge is not open yet")

    try:
        judged = await judge.run_judge(data.code, data.language, challenge["test_cases"])
    except judge.JudgeUnavailableError as e:
        logger.error("Judging failed for %s on %s: %s", user["user_id"], challenge_id, e)
        raise HTTPException(status_code=503, detail="Code evaluation service unavailable. Please try again.")

    submission, newly_solved = await record_submission(
        db, user["user_id"], challenge, data.code, data.language, data.time_spent, judged
    )

    leaderboard = None
    if newly_solved:
        leaderboard = await award_challenge_completion(db, user["user_id"], challenge["points"])

    passed = sum(1 for t in judged["test_results"] if t["passed"])
    return success(
        "Challenge solved!" if judged["is_correct"] else "Some test cases failed",
        {
            "is_correct": judged["is_correct"],
            "verdict": judged["verdict"],
            "passed_tests": passed,
            "total_tests": len(judged["test_results"]),
            "points_earned": challenge["points"] if newly_solved else 0,
            "submission": serialize_mongo(submission),
            "leaderboard": {
                "total_points": leaderboard["total_points"],
                "level": leaderboard["level"],
                "streak_days": leaderboard["streak_days"],
                "rank": leaderboard.get("rank"),
            } if leaderboard else None,
        },
    )


@router.post("/", status_code=201)
async def create_daily_challenge(
    data: DailyChallengeCreate,
    admin: dict = Depends(require_admin),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    challenge = await create_challenge(db, data.model_dump(mode="python"), admin["user_id"])
    return success("Challenge created successfully", {"challenge": serialize_mongo(challenge)})
