"""
Direct messages between users
A conversation is keyed by its sorted participant pair and created on first message
"""

from datetime import datetime
import uuid

from fastapi import APIRouter, HTTPException, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from intellecta.core.auth import get_current_user
from intellecta.core.dependencies import get_db
from intellecta.core.responses import success
from intellecta.core.serialization import serialize_many
from intellecta.community.models import MessageCreate

router = APIRouter(tags=["Messages"])


def participant_key(user_a: str, user_b: str) -> str:
    return "|".join(sorted((user_a, user_b)))


@router.get("/conversations")
async def list_conversations(
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    conversations = await db.conversations.find(
        {"participants": user["user_id"]}
    ).sort("last_message_at", -1).to_list(length=None)

    items = []
    for conversation in conversations:
        other_id = next((p for p in conversation["participants"] if p != user["user_id"]), user["user_id"])
        other = await db.users.find_one({"user_id": other_id})
        items.append({
            "conversation_id": conversation["conversation_id"],
            "participant": {
                "user_id": other_id,
                "name": other["name"] if other else "Deleted user",
                "profile_picture": other.get("profile_picture") if other else None,
            },
            "last_message": conversation.get("last_message"),
            "last_message_at": conversation.get("last_message_at"),
        })
    return success("Conversations retrieved", {"conversations": items})


@router.post("/send/{receiver_id}", status_code=201)
async def send_message(
    receiver_id: str,
    data: MessageCreate,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    if receiver_id == user["user_id"]:
        raise HTTPException(status_code=400, detail="You cannot message yourself")
    if not await db.users.find_one({"user_id": receiver_id}):
        raise HTTPException(status_code=404, detail="Recipient not found")

    now = datetime.utcnow()
    key = participant_key(user["user_id"], receiver_id)
    conversation = await db.conversations.find_one({"participant_key": key})
    if not conversation:
        conversation = {
            "conversation_id": f"CONV_{uuid.uuid4().hex[:12].upper()}",
            "participant_key": key,
            "participants": sorted((user["user_id"], receiver_id)),
            "last_message": None,
            "last_message_at": None,
            "created_at": now,
        }
        await db.conversations.insert_one(conversation)

    message = {
        "message_id": f"MSG_{uuid.uuid4().hex[:12].upper()}",
        "conversation_id": conversation["conversation_id"],
        "sender_id": user["user_id"],
        "receiver_id": receiver_id,
        "message": data.message,
        "created_at": now,
    }
    await db.messages.insert_one(message)
    await db.conversations.update_one(
        {"conversation_id": conversation["conversation_id"]},
        {"$set": {"last_message": data.message[:200], "last_message_at": now}}
    )

    message.pop("_id", None)
    return success("Message sent", {"message": message})


@router.get("/{other_user_id}")
async def get_messages(
    other_user_id: str,
    limit: int = Query(100, ge=1, le=500),
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    conversation = await db.conversations.find_one(
        {"participant_key": participant_key(user["user_id"], other_user_id)}
    )
    if not conversation:
        return success("Messages retrieved", {"messages": []})

    messages = await db.messages.find(
        {"conversation_id": conversation["conversation_id"]}
    ).sort("created_at", 1).limit(limit).to_list(length=limit)
    return success("Messages retrieved", {
        "conversation_id": conversation["conversation_id"],
        "messages": serialize_many(messages),
    })
