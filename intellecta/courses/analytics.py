"""
Enrollment roll-ups shared by course analytics and the admin views
"""

from datetime import datetime, timedelta
from typing import Optional

PROGRESS_BUCKETS = [
    ("0-25", 0, 25),
    ("26-50", 26, 50),
    ("51-75", 51, 75),
    ("76-99", 76, 99),
    ("100", 100, 100),
]


def progress_distribution(enrollments: list[dict]) -> list[dict]:
    distribution = []
    for label, low, high in PROGRESS_BUCKETS:
        count = sum(1 for e in enrollments if low <= e.get("progress_percentage", 0) <= high)
        distribution.append({"range": label, "count": count})
    return distribution


def average_completion_days(enrollments: list[dict]) -> float:
    durations = [
        (e["completed_at"] - e["enrolled_at"]).total_seconds() / 86400
        for e in enrollments
        if e.get("status") == "completed" and e.get("completed_at") and e.get("enrolled_at")
    ]
    if not durations:
        return 0
    return round(sum(durations) / len(durations), 1)


def summarize_enrollments(enrollments: list[dict], now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    total = len(enrollments)
    completed = sum(1 for e in enrollments if e.get("status") == "completed")
    active = sum(1 for e in enrollments if e.get("status") == "in_progress")
    recent = sum(1 for e in enrollments if e.get("enrolled_at") and e["enrolled_at"] >= now - timedelta(days=30))

    return {
        "total_enrollments": total,
        "completed_enrollments": completed,
        "active_enrollments": active,
        "recent_enrollments": recent,
        "completion_rate": round(completed / total * 100, 2) if total else 0,
        "average_completion_days": average_completion_days(enrollments),
        "progress_distribution": progress_distribution(enrollments),
    }
