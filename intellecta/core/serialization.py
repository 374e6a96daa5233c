import math
from datetime import datetime, timezone
from typing import Optional

# Fields that never leave the API
PRIVATE_USER_FIELDS = (
    "password_hash",
    "refresh_token_hash",
    "refresh_token_expires_at",
    "verification_code_hash",
    "verification_code_expires_at",
)


def serialize_mongo(doc: Optional[dict]) -> Optional[dict]:
    if doc is None:
        return None
    doc = dict(doc)
    doc.pop("_id", None)
    return doc


def serialize_many(docs: list[dict]) -> list[dict]:
    return [serialize_mongo(doc) for doc in docs]


def serialize_user(user: Optional[dict]) -> Optional[dict]:
    """Public view of a user document"""
    user = serialize_mongo(user)
    if user is None:
        return None
    for field in PRIVATE_USER_FIELDS:
        user.pop(field, None)
    return user


def js_round(value: float) -> int:
    """Round half up, e.g. 62.5 -> 63 (Python's round() would give 62)"""
    return int(math.floor(value + 0.5))


def pagination(page: int, limit: int, total: int) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "current_page": page,
        "total_pages": total_pages,
        "total": total,
        "limit": limit,
        "has_next_page": page < total_pages,
        "has_prev_page": page > 1,
    }


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Mongo stores naive UTC; normalize client supplied aware datetimes"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
