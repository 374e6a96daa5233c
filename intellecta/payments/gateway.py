"""
Razorpay gateway wrapper
Amounts cross this boundary in paise
"""

import hashlib
import hmac
import logging
from typing import Optional

import razorpay

from intellecta.core.config import RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET, RAZORPAY_WEBHOOK_SECRET

logger = logging.getLogger(__name__)

_client: Optional[razorpay.Client] = None


def get_client() -> razorpay.Client:
    global _client
    if _client is None:
        _client = razorpay.Client(auth=(RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET))
    return _client


def create_order(amount_paise: int, currency: str, receipt: str, notes: dict) -> dict:
    return get_client().order.create(data={
        "amount": amount_paise,
        "currency": currency,
        "receipt": receipt,
        "notes": notes,
    })


def fetch_payment(payment_id: str) -> dict:
    return get_client().payment.fetch(payment_id)


def verify_payment_signature(order_id: str, payment_id: str, signature: str,
                             secret: str = RAZORPAY_KEY_SECRET) -> bool:
    """Checkout signature: HMAC-SHA256 of "order_id|payment_id" with the key secret"""
    if not secret or not signature:
        return False
    generated_signature = hmac.new(
        secret.encode(),
        f"{order_id}|{payment_id}".encode(),
        hashlib.sha256
    ).hexdigest()
    return hmac.compare_digest(generated_signature, signature)


def verify_webhook_signature(body: bytes, signature: str,
                             secret: str = RAZORPAY_WEBHOOK_SECRET) -> bool:
    if not secret or not signature:
        return False
    try:
        get_client().utility.verify_webhook_signature(body.decode(), signature, secret)
    except UnicodeDecodeError:
        logger.warning("Webhook body is not valid UTF-8")
        return False
    except razorpay.errors.SignatureVerificationError as e:
        logger.warning("Webhook signature verification failed: %s", e)
        return False
    return True
