"""
Community Q&A
"""

from datetime import datetime
from typing import Optional
import re
import uuid

from fastapi import APIRouter, HTTPException, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from intellecta.core.auth import get_current_user
from intellecta.core.dependencies import get_db
from intellecta.core.responses import success
from intellecta.core.serialization import serialize_mongo, pagination
from intellecta.community.models import QuestionCreate, AnswerCreate, VoteRequest
from intellecta.community.votes import apply_vote

router = APIRouter(tags=["Q&A"])


def _public(doc: dict) -> dict:
    doc = serialize_mongo(doc)
    doc.pop("voters", None)
    return doc


@router.post("/questions", status_code=201)
async def ask_question(
    data: QuestionCreate,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    now = datetime.utcnow()
    question = {
        "question_id": f"QUESTION_{uuid.uuid4().hex[:12].upper()}",
        "title": data.title.strip(),
        "content": data.content,
        "author_id": user["user_id"],
        "author_name": user["name"],
        "tags": [t.strip().lower() for t in data.tags if t.strip()],
        "votes": 0,
        "voters": {},
        "answer_count": 0,
        "created_at": now,
        "updated_at": now,
    }
    await db.questions.insert_one(question)
    return success("Question posted", {"question": _public(question)})


@router.get("/questions")
async def list_questions(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    tag: Optional[str] = None,
    search: Optional[str] = None,
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    query = {}
    if tag:
        query["tags"] = tag.lower()
    if search:
        query["title"] = {"$regex": re.escape(search), "$options": "i"}

    total = await db.questions.count_documents(query)
    questions = await db.questions.find(query).sort("created_at", -1).skip(
        (page - 1) * limit
    ).limit(limit).to_list(length=limit)

    return success("Questions retrieved", {
        "questions": [_public(q) for q in questions],
        "pagination": pagination(page, limit, total),
    })


@router.get("/questions/{question_id}")
async def get_question(question_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    question = await db.questions.find_one({"question_id": question_id})
    if not question:
        raise HTTPException(status_code=404, detail="Question not found")

    answers = await db.answers.find({"question_id": question_id}).sort(
        [("votes", -1), ("created_at", 1)]
    ).to_list(length=None)
    return success("Question retrieved", {
        "question": _public(question),
        "answers": [_public(a) for a in answers],
    })


@router.post("/questions/{question_id}/answers", status_code=201)
async def answer_question(
    question_id: str,
    data: AnswerCreate,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if not await db.questions.find_one({"question_id": question_id}):
        raise HTTPException(status_code=404, detail="Question not found")

    now = datetime.utcnow()
    answer = {
        "answer_id": f"ANSWER_{uuid.uuid4().hex[:12].upper()}",
        "question_id": question_id,
        "author_id": user["user_id"],
        "author_name": user["name"],
        "content": data.content,
        "votes": 0,
        "voters": {},
        "created_at": now,
        "updated_at": now,
    }
    await db.answers.insert_one(answer)
    await db.questions.update_one({"question_id": question_id}, {"$inc": {"answer_count": 1}})
    return success("Answer posted", {"answer": _public(answer)})


async def _vote(db: AsyncIOMotorDatabase, collection: str, id_field: str, doc_id: str,
                user_id: str, direction: str) -> dict:
    """Only this voter's entry is written, guarded on the value we read"""
    for _ in range(3):
        doc = await db[collection].find_one({id_field: doc_id})
        if not doc:
            raise HTTPException(status_code=404, detail=f"{collection[:-1].capitalize()} not found")

        previous = doc.get("voters", {}).get(user_id)
        voters, delta = apply_vote(doc.get("voters", {}), user_id, direction)
        if not delta:
            return {"votes": doc.get("votes", 0), "your_vote": direction}

        result = await db[collection].update_one(
            {id_field: doc_id, f"voters.{user_id}": previous if previous is not None else {"$exists": False}},
            {"$set": {f"voters.{user_id}": voters[user_id], "updated_at": datetime.utcnow()},
             "$inc": {"votes": delta}}
        )
        if result.modified_count == 1:
            updated = await db[collection].find_one({id_field: doc_id})
            return {"votes": updated.get("votes", 0), "your_vote": direction}
    raise HTTPException(status_code=409, detail="Vote was updated concurrently, please retry")


@router.post("/questions/{question_id}/vote")
async def vote_question(
    question_id: str,
    data: VoteRequest,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    result = await _vote(db, "questions", "question_id", question_id, user["user_id"], data.direction.value)
    return success("Vote recorded", result)


@router.post("/answers/{answer_id}/vote")
async def vote_answer(
    answer_id: str,
    data: VoteRequest,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    result = await _vote(db, "answers", "answer_id", answer_id, user["user_id"], data.direction.value)
    return success("Vote recorded", result)
