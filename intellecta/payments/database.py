from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime
from typing import Optional
import logging
import time
import uuid

from intellecta.core.config import (
    PREMIUM_PRICE, PREMIUM_CURRENCY, PREMIUM_DURATION_MONTHS, TRANSACTION_PREFIX,
)
from intellecta.payments.models import PaymentStatus
from intellecta.payments.premium import add_months

logger = logging.getLogger(__name__)


def generate_transaction_id() -> str:
    return f"{TRANSACTION_PREFIX}{int(time.time() * 1000)}_{uuid.uuid4().hex[:8].upper()}"


def amount_is_valid(amount_paise: Optional[int], currency: Optional[str]) -> bool:
    """Gateway amounts are in paise; anything below the plan price is rejected"""
    return (
        amount_paise is not None
        and amount_paise >= PREMIUM_PRICE * 100
        and currency == PREMIUM_CURRENCY
    )

# ==================== PAYMENT CRUD ====================

async def create_payment(db: AsyncIOMotorDatabase, user: dict, duration: Optional[int] = None) -> dict:
    now = datetime.utcnow()
    payment = {
        "transaction_id": generate_transaction_id(),
        "user_id": user["user_id"],
        "amount": PREMIUM_PRICE,
        "currency": PREMIUM_CURRENCY,
        "status": PaymentStatus.PENDING.value,
        "payment_method": "razorpay",
        "payment_type": "premium_upgrade",
        "premium_duration": duration or PREMIUM_DURATION_MONTHS,
        "gateway_order_id": None,
        "gateway_payment_id": None,
        "gateway_response": None,
        "webhook_verified": False,
        "completed_at": None,
        "metadata": {
            "user_email": user["email"],
            "user_name": user["name"],
        },
        "created_at": now,
        "updated_at": now,
    }
    await db.payments.insert_one(payment)
    return payment


async def get_payment(db: AsyncIOMotorDatabase, transaction_id: str) -> Optional[dict]:
    return await db.payments.find_one({"transaction_id": transaction_id})


async def get_payment_by_order(db: AsyncIOMotorDatabase, order_id: str) -> Optional[dict]:
    return await db.payments.find_one({"gateway_order_id": order_id})


async def update_payment(db: AsyncIOMotorDatabase, transaction_id: str, updates: dict):
    updates["updated_at"] = datetime.utcnow()
    await db.payments.update_one({"transaction_id": transaction_id}, {"$set": updates})


async def fail_payment(db: AsyncIOMotorDatabase, transaction_id: str, reason: str,
                       gateway_response: Optional[dict] = None):
    updates = {"status": PaymentStatus.FAILED.value, "metadata.failure_reason": reason}
    if gateway_response is not None:
        updates["gateway_response"] = gateway_response
    await db.payments.update_one(
        {"transaction_id": transaction_id, "status": PaymentStatus.PENDING.value},
        {"$set": {**updates, "updated_at": datetime.utcnow()}}
    )
    logger.warning("Payment %s failed: %s", transaction_id, reason)

# ==================== ACTIVATION ====================

async def complete_payment_idempotent(
    db: AsyncIOMotorDatabase,
    payment: dict,
    gateway_payment_id: str,
    gateway_response: Optional[dict] = None,
    from_webhook: bool = False,
) -> dict:
    """
    Mark the payment completed and extend premium.
    Safe to call from both /verify and the webhook: only the first call activates.
    """
    now = datetime.utcnow()
    updates = {
        "status": PaymentStatus.COMPLETED.value,
        "gateway_payment_id": gateway_payment_id,
        "completed_at": now,
        "updated_at": now,
    }
    if gateway_response is not None:
        updates["gateway_response"] = gateway_response
    if from_webhook:
        updates["webhook_verified"] = True

    result = await db.payments.update_one(
        {"transaction_id": payment["transaction_id"], "status": {"$ne": PaymentStatus.COMPLETED.value}},
        {"$set": updates}
    )
    if result.modified_count == 0:
        if from_webhook:
            await db.payments.update_one(
                {"transaction_id": payment["transaction_id"]},
                {"$set": {"webhook_verified": True}}
            )
        user = await db.users.find_one({"user_id": payment["user_id"]})
        return {"already_activated": True, "premium_expiry_date": user.get("premium_expiry_date") if user else None}

    expiry = add_months(now, payment.get("premium_duration", PREMIUM_DURATION_MONTHS))
    await db.users.update_one(
        {"user_id": payment["user_id"]},
        {"$set": {"is_premium": True, "premium_expiry_date": expiry, "updated_at": now}}
    )
    logger.info("Premium activated for %s until %s", payment["user_id"], expiry.isoformat())
    return {"already_activated": False, "premium_expiry_date": expiry}


async def payment_history(db: AsyncIOMotorDatabase, user_id: str, skip: int, limit: int) -> tuple[list, int]:
    query = {"user_id": user_id}
    total = await db.payments.count_documents(query)
    payments = await db.payments.find(
        query, {"_id": 0, "gateway_response": 0}
    ).sort("created_at", -1).skip(skip).limit(limit).to_list(length=limit)
    return payments, total
