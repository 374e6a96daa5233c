import logging
from datetime import datetime

import httpx
from fastapi import APIRouter, Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from intellecta.core.config import VERSION, JUDGE_API_URL
from intellecta.core.dependencies import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["System"])


@router.get("/health")
async def health():
    return {"success": True, "message": "Intellecta is Running..."}


@router.get("/version")
async def version():
    return {"success": True, "version": VERSION}


@router.get("/health/services")
async def service_health(db: AsyncIOMotorDatabase = Depends(get_db)):
    """Ping MongoDB and the code judge"""
    status = {}
    latency_ms = {}

    start = datetime.utcnow()
    try:
        await db.command("ping")
        status["database"] = "UP"
    except PyMongoError as e:
        logger.warning("Database ping failed: %s", e)
        status["database"] = "DOWN"
    latency_ms["database"] = (datetime.utcnow() - start).total_seconds() * 1000

    start = datetime.utcnow()
    try:
        async with httpx.AsyncClient() as client:
            resp = await client.get(f"{JUDGE_API_URL}/health", timeout=5.0)
        status["judge"] = "UP" if resp.status_code == 200 else "DOWN"
    except httpx.HTTPError as e:
        logger.warning("Judge ping failed: %s", e)
        status["judge"] = "DOWN"
    latency_ms["judge"] = (datetime.utcnow() - start).total_seconds() * 1000

    return {
        "success": all(s == "UP" for s in status.values()),
        "timestamp": datetime.utcnow(),
        "status": status,
        "latency_ms": latency_ms,
    }
