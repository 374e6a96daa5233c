"""
Authentication dependencies
Bearer access token -> verified user document
"""

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException
from jose import JWTError
from jose.exceptions import ExpiredSignatureError
from motor.motor_asyncio import AsyncIOMotorDatabase

from intellecta.core.dependencies import get_db
from intellecta.core.security import decode_access_token

logger = logging.getLogger(__name__)


def _extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization.split(" ", 1)[1].strip()
    return token or None


async def _user_from_token(db: AsyncIOMotorDatabase, token: str) -> dict:
    try:
        payload = decode_access_token(token)
    except ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired.")
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid token.")

    if payload.get("type") != "access" or not payload.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token.")

    user = await db.users.find_one({"user_id": payload["sub"]})
    if not user:
        raise HTTPException(status_code=401, detail="Invalid token. User not found.")
    if not user.get("verified"):
        raise HTTPException(status_code=401, detail="Please verify your email first.")
    return user


async def get_current_user(
    authorization: str = Header(None),
    db: AsyncIOMotorDatabase = Depends(get_db),
) -> dict:
    token = _extract_bearer(authorization)
    if not token:
        raise HTTPException(status_code=401, detail="Access denied. No token provided.")
    return await _user_from_token(db, token)


async def get_optional_user(
    authorization: str = Header(None),
    db: AsyncIOMotorDatabase = Depends(get_db),
) -> Optional[dict]:
    """Same as get_current_user but anonymous callers get None"""
    token = _extract_bearer(authorization)
    if not token:
        return None
    try:
        return await _user_from_token(db, token)
    except HTTPException as e:
        logger.debug("Ignoring bad token on public route: %s", e.detail)
        return None


async def require_admin(user: dict = Depends(get_current_user)) -> dict:
    if user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Access denied. Admin privileges required.")
    return user


def is_admin(user: Optional[dict]) -> bool:
    return bool(user) and user.get("role") == "admin"
