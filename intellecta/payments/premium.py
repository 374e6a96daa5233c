"""
Premium subscription state on the user document
"""

import calendar
import math
from datetime import datetime
from typing import Optional

from fastapi import Depends, HTTPException
from motor.motor_asyncio import AsyncIOMotorDatabase

from intellecta.core.auth import get_current_user
from intellecta.core.dependencies import get_db


def add_months(start: datetime, months: int) -> datetime:
    """Calendar month arithmetic, clamping the day (Jan 31 + 1 -> Feb 28/29)"""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


def premium_status(user: dict, now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    expiry = user.get("premium_expiry_date")
    is_expired = bool(expiry) and expiry <= now
    is_active = bool(user.get("is_premium")) and bool(expiry) and not is_expired

    days_until_expiry = None
    if is_active:
        days_until_expiry = math.ceil((expiry - now).total_seconds() / 86400)

    return {
        "is_premium": is_active,
        "premium_expiry_date": expiry,
        "is_expired": is_expired,
        "days_until_expiry": days_until_expiry,
    }


def has_active_premium(user: dict, now: Optional[datetime] = None) -> bool:
    return premium_status(user, now)["is_premium"]


async def sync_premium_flag(db: AsyncIOMotorDatabase, user: dict) -> dict:
    """Turn off is_premium once the expiry date has passed"""
    status = premium_status(user)
    if user.get("is_premium") and not status["is_premium"]:
        await db.users.update_one(
            {"user_id": user["user_id"]},
            {"$set": {"is_premium": False, "updated_at": datetime.utcnow()}}
        )
        user = {**user, "is_premium": False}
    return user


async def require_premium(
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
) -> dict:
    user = await sync_premium_flag(db, user)
    status = premium_status(user)
    if not status["is_premium"]:
        raise HTTPException(
            status_code=403,
            detail={
                "message": "Premium subscription required to access this feature.",
                "is_premium": False,
                "upgrade_required": True,
            }
        )
    return {**user, "premium_info": status}
