from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from intellecta.core.auth import get_current_user
from intellecta.core.dependencies import get_db
from intellecta.core.responses import success
from intellecta.core.serialization import serialize_mongo, pagination
from intellecta.gamification.database import top_entries, get_leaderboard_entry

router = APIRouter(tags=["Leaderboard"])


@router.get("/")
async def get_leaderboard(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    skip = (page - 1) * limit
    total = await db.leaderboard.count_documents({})
    return success("Leaderboard retrieved", {
        "leaderboard": await top_entries(db, skip, limit),
        "pagination": pagination(page, limit, total),
    })


@router.get("/me")
async def get_my_leaderboard_entry(
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    entry = await get_leaderboard_entry(db, user["user_id"])
    return success("Leaderboard entry retrieved", {"entry": serialize_mongo(entry)})
