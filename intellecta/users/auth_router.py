"""
Authentication routes
Register -> email code -> verify -> access/refresh token pair
"""

import logging
from datetime import datetime

from fastapi import APIRouter, HTTPException, Depends, BackgroundTasks
from motor.motor_asyncio import AsyncIOMotorDatabase

from intellecta.core.auth import get_current_user
from intellecta.core.config import ENVIRONMENT
from intellecta.core.dependencies import get_db
from intellecta.core.mailer import send_verification_email, send_welcome_email
from intellecta.core.responses import success
from intellecta.core.security import verify_password, secret_matches
from intellecta.core.serialization import serialize_user
from intellecta.users.models import (
    RegisterRequest, LoginRequest, VerifyEmailRequest,
    ResendVerificationRequest, RefreshRequest,
)
from intellecta.users.database import (
    create_user, get_user, get_user_by_email, issue_verification_code,
    issue_token_pair, clear_refresh_token, update_user,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])


def _with_dev_code(data: dict, code: str) -> dict:
    if ENVIRONMENT != "production":
        data["dev_verification_code"] = code
    return data


@router.post("/register", status_code=201)
async def register(
    data: RegisterRequest,
    background_tasks: BackgroundTasks,
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if await get_user_by_email(db, data.email):
        raise HTTPException(status_code=409, detail="User with this email already exists")

    user = await create_user(db, data.name, data.email, data.password, data.expo_push_token)
    code = await issue_verification_code(db, user["user_id"])
    background_tasks.add_task(send_verification_email, user["email"], user["name"], code)

    logger.info("Registered user %s", user["user_id"])
    return success(
        "Registration successful. Please check your email for the verification code.",
        _with_dev_code({"user": serialize_user(user)}, code),
    )


@router.post("/verify-email")
async def verify_email(
    data: VerifyEmailRequest,
    background_tasks: BackgroundTasks,
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    user = await get_user_by_email(db, data.email)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.get("verified"):
        raise HTTPException(status_code=400, detail="Email is already verified")

    expires_at = user.get("verification_code_expires_at")
    if not secret_matches(data.code, user.get("verification_code_hash")):
        raise HTTPException(status_code=400, detail="Invalid verification code")
    if not expires_at or expires_at < datetime.utcnow():
        raise HTTPException(status_code=400, detail="Verification code has expired")

    user = await update_user(db, user["user_id"], {
        "verified": True,
        "verification_code_hash": None,
        "verification_code_expires_at": None,
    })
    tokens = await issue_token_pair(db, user["user_id"])
    background_tasks.add_task(send_welcome_email, user["email"], user["name"])

    return success("Email verified successfully", {"user": serialize_user(user), "tokens": tokens})


@router.post("/resend-verification")
async def resend_verification(
    data: ResendVerificationRequest,
    background_tasks: BackgroundTasks,
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    user = await get_user_by_email(db, data.email)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if user.get("verified"):
        raise HTTPException(status_code=400, detail="Email is already verified")

    code = await issue_verification_code(db, user["user_id"])
    background_tasks.add_task(send_verification_email, user["email"], user["name"], code)

    return success("Verification code sent", _with_dev_code({}, code))


@router.post("/login")
async def login(data: LoginRequest, db: AsyncIOMotorDatabase = Depends(get_db)):
    user = await get_user_by_email(db, data.email)
    if not user or not verify_password(data.password, user["password_hash"]):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not user.get("verified"):
        raise HTTPException(
            status_code=403,
            detail={
                "message": "Please verify your email before logging in",
                "requires_verification": True,
            }
        )

    tokens = await issue_token_pair(db, user["user_id"])
    return success("Login successful", {"user": serialize_user(user), "tokens": tokens})


@router.post("/refresh")
async def refresh(data: RefreshRequest, db: AsyncIOMotorDatabase = Depends(get_db)):
    user = await get_user(db, data.user_id)
    if not user or not secret_matches(data.refresh_token, user.get("refresh_token_hash")):
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    expires_at = user.get("refresh_token_expires_at")
    if not expires_at or expires_at < datetime.utcnow():
        await clear_refresh_token(db, user["user_id"])
        raise HTTPException(status_code=401, detail="Refresh token expired")

    tokens = await issue_token_pair(db, user["user_id"])
    return success("Token refreshed", {"tokens": tokens})


@router.post("/logout")
async def logout(
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    await clear_refresh_token(db, user["user_id"])
    return success("Logged out successfully")


@router.get("/verify")
async def verify_token(user: dict = Depends(get_current_user)):
    return success("Token is valid", {"user": serialize_user(user)})
