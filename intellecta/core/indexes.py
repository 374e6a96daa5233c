import logging

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

logger = logging.getLogger(__name__)


async def create_indexes(db: AsyncIOMotorDatabase):
    """Create MongoDB indexes, including the uniqueness rules the API relies on"""
    try:
        # Users
        await db.users.create_index("user_id", unique=True)
        await db.users.create_index("email", unique=True)

        # Catalogue
        await db.courses.create_index("course_id", unique=True)
        await db.courses.create_index([("is_active", 1), ("is_featured", 1)])
        await db.courses.create_index("categories")
        await db.topics.create_index("topic_id", unique=True)
        await db.topics.create_index([("course_id", 1), ("order", 1)])
        await db.lessons.create_index("lesson_id", unique=True)
        await db.lessons.create_index([("topic_id", 1), ("order", 1)])

        # One enrollment per user per course
        await db.enrollments.create_index("enrollment_id", unique=True)
        await db.enrollments.create_index([("user_id", 1), ("course_id", 1)], unique=True)
        await db.enrollments.create_index([("user_id", 1), ("last_accessed_at", -1)])

        # Payments
        await db.payments.create_index("transaction_id", unique=True)
        await db.payments.create_index("gateway_order_id")
        await db.payments.create_index([("user_id", 1), ("created_at", -1)])

        # Gamification: one submission per user per challenge
        await db.leaderboard.create_index("user_id", unique=True)
        await db.leaderboard.create_index([("total_points", -1)])
        await db.daily_challenges.create_index("challenge_id", unique=True)
        await db.daily_challenges.create_index([("active_date", 1), ("is_active", 1)])
        await db.challenge_submissions.create_index([("user_id", 1), ("challenge_id", 1)], unique=True)
        await db.challenge_submissions.create_index([("user_id", 1), ("submitted_at", -1)])

        # Community
        await db.questions.create_index("question_id", unique=True)
        await db.answers.create_index([("question_id", 1), ("votes", -1)])
        await db.projects.create_index("project_id", unique=True)
        await db.conversations.create_index("participant_key", unique=True)
        await db.messages.create_index([("conversation_id", 1), ("created_at", 1)])

        logger.info("MongoDB indexes created")
    except PyMongoError as e:
        logger.warning("Index creation warning: %s", e)
