from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime, timedelta
from typing import Optional
import uuid

from intellecta.core.config import VERIFICATION_CODE_TTL_MINUTES
from intellecta.core.security import (
    hash_password, hash_secret, generate_verification_code,
    generate_refresh_token, refresh_token_expiry, create_access_token,
)

# ==================== USER CRUD ====================

async def get_user(db: AsyncIOMotorDatabase, user_id: str) -> Optional[dict]:
    return await db.users.find_one({"user_id": user_id})


async def get_user_by_email(db: AsyncIOMotorDatabase, email: str) -> Optional[dict]:
    return await db.users.find_one({"email": email.lower()})


async def create_user(db: AsyncIOMotorDatabase, name: str, email: str, password: str,
                      expo_push_token: Optional[str] = None, role: str = "user",
                      verified: bool = False) -> dict:
    """Create an unverified user. Returns the stored document."""
    now = datetime.utcnow()
    user = {
        "user_id": f"USER_{uuid.uuid4().hex[:12].upper()}",
        "name": name,
        "email": email.lower(),
        "password_hash": hash_password(password),
        "role": role,
        "verified": verified,
        "is_premium": False,
        "premium_expiry_date": None,
        "profile_picture": None,
        "expo_push_token": expo_push_token,
        "verification_code_hash": None,
        "verification_code_expires_at": None,
        "refresh_token_hash": None,
        "refresh_token_expires_at": None,
        "last_login_at": None,
        "created_at": now,
        "updated_at": now,
    }
    await db.users.insert_one(user)
    return user


async def update_user(db: AsyncIOMotorDatabase, user_id: str, updates: dict) -> Optional[dict]:
    updates["updated_at"] = datetime.utcnow()
    await db.users.update_one({"user_id": user_id}, {"$set": updates})
    return await get_user(db, user_id)


async def delete_user_cascade(db: AsyncIOMotorDatabase, user_id: str) -> bool:
    """Remove a user and everything that only makes sense with them"""
    result = await db.users.delete_one({"user_id": user_id})
    await db.enrollments.delete_many({"user_id": user_id})
    await db.leaderboard.delete_many({"user_id": user_id})
    await db.challenge_submissions.delete_many({"user_id": user_id})
    return result.deleted_count > 0

# ==================== VERIFICATION / TOKENS ====================

async def issue_verification_code(db: AsyncIOMotorDatabase, user_id: str) -> str:
    """Store a fresh hashed code and return the plain one for mailing"""
    code = generate_verification_code()
    await db.users.update_one(
        {"user_id": user_id},
        {"$set": {
            "verification_code_hash": hash_secret(code),
            "verification_code_expires_at": datetime.utcnow() + timedelta(minutes=VERIFICATION_CODE_TTL_MINUTES),
            "updated_at": datetime.utcnow(),
        }}
    )
    return code


async def issue_token_pair(db: AsyncIOMotorDatabase, user_id: str) -> dict:
    """Create access + refresh tokens; only the refresh token hash is stored"""
    refresh_token = generate_refresh_token()
    await db.users.update_one(
        {"user_id": user_id},
        {"$set": {
            "refresh_token_hash": hash_secret(refresh_token),
            "refresh_token_expires_at": refresh_token_expiry(),
            "last_login_at": datetime.utcnow(),
        }}
    )
    return {
        "access_token": create_access_token(user_id),
        "refresh_token": refresh_token,
        "token_type": "bearer",
    }


async def clear_refresh_token(db: AsyncIOMotorDatabase, user_id: str):
    await db.users.update_one(
        {"user_id": user_id},
        {"$set": {"refresh_token_hash": None, "refresh_token_expires_at": None}}
    )

# ==================== ADMIN QUERIES ====================

async def list_users(db: AsyncIOMotorDatabase, filters: dict, skip: int, limit: int) -> tuple[list, int]:
    total = await db.users.count_documents(filters)
    cursor = db.users.find(filters).sort("created_at", -1).skip(skip).limit(limit)
    users = await cursor.to_list(length=limit)
    return users, total


async def user_dashboard_stats(db: AsyncIOMotorDatabase) -> dict:
    now = datetime.utcnow()
    total = await db.users.count_documents({})
    verified = await db.users.count_documents({"verified": True})
    premium = await db.users.count_documents({"is_premium": True})
    admins = await db.users.count_documents({"role": "admin"})
    recent = await db.users.count_documents({"created_at": {"$gte": now - timedelta(days=30)}})
    expiring = await db.users.count_documents({
        "is_premium": True,
        "premium_expiry_date": {"$gte": now, "$lte": now + timedelta(days=30)},
    })

    return {
        "total_users": total,
        "verified_users": verified,
        "unverified_users": total - verified,
        "premium_users": premium,
        "admin_users": admins,
        "recent_registrations": recent,
        "expiring_premium": expiring,
        "verification_rate": round(verified / total * 100, 2) if total else 0,
        "premium_rate": round(premium / total * 100, 2) if total else 0,
    }
