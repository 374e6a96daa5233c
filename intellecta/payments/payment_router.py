"""
Premium upgrade payments through Razorpay

Flow:
1. POST /premium/initiate  -> pending payment + Razorpay order
2. Checkout on the client
3. POST /verify (client) and/or POST /webhook (Razorpay) -> premium activated once
"""

import json
import logging

from fastapi import APIRouter, HTTPException, Request, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from intellecta.core.auth import get_current_user
from intellecta.core.config import RAZORPAY_KEY_ID, PREMIUM_PRICE, TRANSACTION_PREFIX
from intellecta.core.dependencies import get_db
from intellecta.core.responses import success
from intellecta.core.serialization import serialize_mongo, pagination
from intellecta.payments import gateway
from intellecta.payments.models import PaymentInitiateRequest, PaymentVerifyRequest, PaymentStatus
from intellecta.payments.premium import premium_status, sync_premium_flag
from intellecta.payments.database import (
    create_payment, get_payment, get_payment_by_order, update_payment, fail_payment,
    complete_payment_idempotent, payment_history, amount_is_valid,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payments"])


@router.post("/premium/initiate")
async def initiate_premium_payment(
    data: PaymentInitiateRequest,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    user = await sync_premium_flag(db, user)
    if premium_status(user)["is_premium"]:
        raise HTTPException(status_code=400, detail="You already have an active premium subscription")

    payment = await create_payment(db, user, data.duration)
    transaction_id = payment["transaction_id"]

    try:
        order = gateway.create_order(
            amount_paise=PREMIUM_PRICE * 100,
            currency=payment["currency"],
            receipt=transaction_id[len(TRANSACTION_PREFIX):],
            notes={"transaction_id": transaction_id, "user_id": user["user_id"]},
        )
    except Exception as e:
        logger.error("Razorpay order creation failed for %s: %s", transaction_id, e)
        await fail_payment(db, transaction_id, f"Order creation failed: {e}")
        raise HTTPException(status_code=400, detail="Payment initialization failed. Please try again.")

    await update_payment(db, transaction_id, {"gateway_order_id": order["id"]})

    return success("Payment initiated successfully", {
        "transaction_id": transaction_id,
        "order_id": order["id"],
        "amount": order.get("amount", PREMIUM_PRICE * 100),
        "currency": payment["currency"],
        "key_id": RAZORPAY_KEY_ID,
        "duration": payment["premium_duration"],
        "prefill": {"name": user["name"], "email": user["email"]},
    })


@router.post("/verify")
async def verify_payment(
    data: PaymentVerifyRequest,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    payment = await get_payment(db, data.transaction_id)
    if not payment or payment["user_id"] != user["user_id"]:
        raise HTTPException(status_code=404, detail="Payment not found")

    # Idempotency: webhook may have been first
    if payment["status"] == PaymentStatus.COMPLETED.value:
        refreshed = await db.users.find_one({"user_id": user["user_id"]})
        return success("Payment already verified", {
            "transaction_id": payment["transaction_id"],
            "already_activated": True,
            "premium": premium_status(refreshed),
        })
    if payment["status"] != PaymentStatus.PENDING.value:
        raise HTTPException(status_code=400, detail=f"Payment is {payment['status']}")
    if data.razorpay_order_id != payment.get("gateway_order_id"):
        raise HTTPException(status_code=400, detail="Order ID mismatch")

    if not gateway.verify_payment_signature(data.razorpay_order_id, data.razorpay_payment_id, data.razorpay_signature):
        raise HTTPException(status_code=400, detail="Invalid payment signature")

    try:
        gateway_payment = gateway.fetch_payment(data.razorpay_payment_id)
    except Exception as e:
        logger.error("Razorpay fetch failed for %s: %s", data.razorpay_payment_id, e)
        raise HTTPException(status_code=502, detail="Could not confirm payment with the gateway")

    if gateway_payment.get("order_id") != payment["gateway_order_id"]:
        raise HTTPException(status_code=400, detail="Payment does not belong to this order")
    if gateway_payment.get("status") != "captured":
        raise HTTPException(status_code=400, detail=f"Payment not captured (status: {gateway_payment.get('status')})")
    if not amount_is_valid(gateway_payment.get("amount"), gateway_payment.get("currency")):
        await fail_payment(db, payment["transaction_id"], "Amount or currency mismatch", gateway_payment)
        raise HTTPException(status_code=400, detail="Payment amount or currency mismatch")

    activation = await complete_payment_idempotent(
        db, payment, data.razorpay_payment_id, gateway_response=gateway_payment
    )
    refreshed = await db.users.find_one({"user_id": user["user_id"]})

    return success("Payment verified. Premium activated!", {
        "transaction_id": payment["transaction_id"],
        "already_activated": activation["already_activated"],
        "premium": premium_status(refreshed),
    })


@router.post("/webhook")
async def razorpay_webhook(request: Request, db: AsyncIOMotorDatabase = Depends(get_db)):
    """Razorpay webhook - NO AUTH (signature verified)"""
    signature = request.headers.get("X-Razorpay-Signature")
    if not signature:
        raise HTTPException(status_code=400, detail="Missing signature")

    body = await request.body()
    if not gateway.verify_webhook_signature(body, signature):
        raise HTTPException(status_code=400, detail="Invalid signature")

    try:
        webhook_data = json.loads(body)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid payload")

    event = webhook_data.get("event")
    entity = webhook_data.get("payload", {}).get("payment", {}).get("entity", {})
    order_id = entity.get("order_id")

    payment = await get_payment_by_order(db, order_id) if order_id else None
    if not payment:
        transaction_id = (entity.get("notes") or {}).get("transaction_id")
        payment = await get_payment(db, transaction_id) if transaction_id else None
    if not payment:
        logger.warning("Webhook %s: no payment for order %s", event, order_id)
        return {"status": "ok"}

    if payment.get("webhook_verified"):
        return {"status": "ok", "message": "Already processed"}

    if event == "payment.captured":
        if amount_is_valid(entity.get("amount"), entity.get("currency")):
            await complete_payment_idempotent(db, payment, entity.get("id"), gateway_response=entity, from_webhook=True)
        else:
            await fail_payment(db, payment["transaction_id"], "Amount or currency mismatch", entity)
            await update_payment(db, payment["transaction_id"], {"webhook_verified": True})
    elif event == "payment.failed":
        reason = entity.get("error_description") or "Payment failed"
        await fail_payment(db, payment["transaction_id"], reason, entity)
        await update_payment(db, payment["transaction_id"], {"webhook_verified": True})
    else:
        logger.info("Ignoring webhook event %s", event)

    return {"status": "ok"}


@router.get("/history")
async def get_payment_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    payments, total = await payment_history(db, user["user_id"], (page - 1) * limit, limit)
    return success("Payment history retrieved", {
        "payments": payments,
        "pagination": pagination(page, limit, total),
    })


@router.get("/premium/status")
async def get_premium_status(
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    user = await sync_premium_flag(db, user)
    return success("Premium status retrieved", premium_status(user))


@router.put("/{transaction_id}/cancel")
async def cancel_payment(
    transaction_id: str,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not transaction_id.startswith(TRANSACTION_PREFIX):
        raise HTTPException(status_code=400, detail="Invalid transaction ID")

    payment = await get_payment(db, transaction_id)
    if not payment or payment["user_id"] != user["user_id"]:
        raise HTTPException(status_code=404, detail="Payment not found")
    if payment["status"] != PaymentStatus.PENDING.value:
        raise HTTPException(status_code=400, detail="Only pending payments can be cancelled")

    await update_payment(db, transaction_id, {"status": PaymentStatus.CANCELLED.value})
    payment = await get_payment(db, transaction_id)
    payment.pop("gateway_response", None)
    return success("Payment cancelled", {"payment": serialize_mongo(payment)})
