"""
Seed a development database

    python -m intellecta.scripts.seed [--reset]
"""

import argparse
import asyncio
import logging
from datetime import datetime, timedelta

from motor.motor_asyncio import AsyncIOMotorClient

from intellecta.core.config import MONGO_URL, MONGO_DB_NAME
from intellecta.core.indexes import create_indexes
from intellecta.courses.database import create_course
from intellecta.gamification.challenges import create_challenge
from intellecta.gamification.leaderboard import new_entry, calculate_level
from intellecta.lessons.database import create_lesson
from intellecta.topics.database import create_topic
from intellecta.users.database import create_user, get_user_by_email

logger = logging.getLogger("intellecta.seed")

COLLECTIONS = [
    "users", "courses", "topics", "lessons", "enrollments", "payments",
    "leaderboard", "daily_challenges", "challenge_submissions",
    "questions", "answers", "projects", "conversations", "messages",
]

USERS = [
    {"name": "Admin", "email": "admin@intellecta.app", "password": "Admin1234", "role": "admin"},
    {"name": "Ada Lovelace", "email": "ada@intellecta.app", "password": "Learner123", "role": "user"},
    {"name": "Alan Turing", "email": "alan@intellecta.app", "password": "Learner123", "role": "user"},
]

COURSES = [
    {
        "title": "Python Foundations",
        "description": "Variables, control flow, functions and data structures in Python.",
        "categories": ["Programming", "Python"],
        "is_featured": True,
        "topics": [
            ("Getting Started", ["Installing Python", "Your First Program"]),
            ("Control Flow", ["If Statements", "Loops"]),
        ],
    },
    {
        "title": "Web Development Basics",
        "description": "HTML, CSS and a first look at JavaScript in the browser.",
        "categories": ["Web Development"],
        "is_featured": True,
        "topics": [
            ("HTML", ["Document Structure", "Forms"]),
            ("CSS", ["Selectors", "Flexbox"]),
        ],
    },
    {
        "title": "Data Structures in Depth",
        "description": "Stacks, queues, trees and graphs with complexity analysis.",
        "categories": ["Computer Science"],
        "is_premium": True,
        "topics": [
            ("Linear Structures", ["Stacks", "Queues"]),
        ],
    },
]


def sample_quiz(lesson_title: str) -> list[dict]:
    return [
        {
            "question": f"Which statement about '{lesson_title}' is true?",
            "options": ["It is covered in this lesson", "It is never used", "It is deprecated"],
            "correct_answer": 0,
            "explanation": "This lesson covers the topic in detail.",
        },
        {
            "question": "Practice makes...",
            "options": ["nothing", "progress"],
            "correct_answer": 1,
            "explanation": "Consistent practice builds progress.",
        },
    ]


async def seed(reset: bool):
    client = AsyncIOMotorClient(MONGO_URL)
    db = client[MONGO_DB_NAME]

    if reset:
        for name in COLLECTIONS:
            await db[name].delete_many({})
        logger.info("Collections cleared")

    await create_indexes(db)

    users = []
    for seed_user in USERS:
        user = await get_user_by_email(db, seed_user["email"])
        if not user:
            user = await create_user(db, seed_user["name"], seed_user["email"], seed_user["password"],
                                     role=seed_user["role"], verified=True)
        users.append(user)
    admin = users[0]

    for course_data in COURSES:
        course = await create_course(db, course_data, admin["user_id"])
        for topic_order, (topic_title, lessons) in enumerate(course_data["topics"]):
            topic = await create_topic(db, {
                "course_id": course["course_id"],
                "title": topic_title,
                "description": f"Everything you need to know about {topic_title.lower()}.",
                "order": topic_order,
            })
            for lesson_order, lesson_title in enumerate(lessons):
                await create_lesson(db, {
                    "topic_id": topic["topic_id"],
                    "title": lesson_title,
                    "description": f"A hands-on lesson on {lesson_title.lower()}.",
                    "order": lesson_order,
                    "content_groups": [{
                        "title": "Overview",
                        "order": 0,
                        "contents": [{"type": "text", "content": f"Welcome to {lesson_title}.", "order": 0}],
                    }],
                    "quiz": sample_quiz(lesson_title),
                }, course["course_id"])
        logger.info("Seeded course %s", course["title"])

    today = datetime.utcnow()
    challenges = [
        ("Reverse a String", 10, [{"input": "abc", "expected_output": "cba"}], "print(input()[::-1])"),
        ("Sum of Digits", 15, [{"input": "1234", "expected_output": "10"}], "print(sum(map(int, input())))"),
        ("Count Vowels", 25, [{"input": "education", "expected_output": "5"}],
         "print(sum(c in 'aeiou' for c in input()))"),
    ]
    for offset, (title, points, test_cases, solution) in enumerate(challenges):
        await create_challenge(db, {
            "title": title,
            "description": f"Solve '{title}' reading from standard input.",
            "difficulty": ["easy", "medium", "hard"][offset],
            "category": "Algorithms",
            "points": points,
            "code_template": "def solve():\n    pass\n",
            "test_cases": test_cases,
            "hints": ["Read the input carefully."],
            "solution": solution,
            "active_date": today + timedelta(days=offset),
        }, admin["user_id"])

    for idx, user in enumerate(users[1:]):
        entry = new_entry(user["user_id"])
        entry["challenge_points"] = 50 * (idx + 1)
        entry["experience_points"] = 50 * (idx + 1)
        entry["total_points"] = entry["challenge_points"]
        entry["level"] = calculate_level(entry["experience_points"])
        await db.leaderboard.update_one({"user_id": user["user_id"]}, {"$setOnInsert": entry}, upsert=True)

    logger.info("Seed complete")
    client.close()


def main():
    parser = argparse.ArgumentParser(description="Seed the Intellecta development database")
    parser.add_argument("--reset", action="store_true", help="clear all collections first")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    asyncio.run(seed(args.reset))


if __name__ == "__main__":
    main()
