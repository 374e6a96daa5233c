"""
Community project showcase
"""

from datetime import datetime
from typing import Optional
import uuid

from fastapi import APIRouter, HTTPException, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from intellecta.core.auth import get_current_user
from intellecta.core.dependencies import get_db
from intellecta.core.responses import success
from intellecta.core.serialization import serialize_mongo, serialize_many, pagination
from intellecta.community.models import ProjectCreate, ProjectUpdate

router = APIRouter(tags=["Projects"])


async def _owned_project(db: AsyncIOMotorDatabase, project_id: str, user: dict) -> dict:
    project = await db.projects.find_one({"project_id": project_id})
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    if project["author_id"] != user["user_id"]:
        raise HTTPException(status_code=403, detail="You can only modify your own projects")
    return project


@router.post("/", status_code=201)
async def create_project(
    data: ProjectCreate,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    now = datetime.utcnow()
    project = {
        "project_id": f"PROJECT_{uuid.uuid4().hex[:12].upper()}",
        **data.model_dump(),
        "author_id": user["user_id"],
        "author_name": user["name"],
        "created_at": now,
        "updated_at": now,
    }
    await db.projects.insert_one(project)
    return success("Project created", {"project": serialize_mongo(project)})


@router.get("/")
async def list_projects(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    tag: Optional[str] = None,
    author_id: Optional[str] = None,
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    query = {}
    if tag:
        query["tags"] = tag
    if author_id:
        query["author_id"] = author_id

    total = await db.projects.count_documents(query)
    projects = await db.projects.find(query).sort("created_at", -1).skip(
        (page - 1) * limit
    ).limit(limit).to_list(length=limit)
    return success("Projects retrieved", {
        "projects": serialize_many(projects),
        "pagination": pagination(page, limit, total),
    })


@router.get("/{project_id}")
async def get_project(project_id: str, db: AsyncIOMotorDatabase = Depends(get_db)):
    project = await db.projects.find_one({"project_id": project_id})
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return success("Project retrieved", {"project": serialize_mongo(project)})


@router.put("/{project_id}")
async def update_project(
    project_id: str,
    data: ProjectUpdate,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    await _owned_project(db, project_id, user)
    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No valid fields to update")

    updates["updated_at"] = datetime.utcnow()
    await db.projects.update_one({"project_id": project_id}, {"$set": updates})
    project = await db.projects.find_one({"project_id": project_id})
    return success("Project updated", {"project": serialize_mongo(project)})


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
):
    await _owned_project(db, project_id, user)
    await db.projects.delete_one({"project_id": project_id})
    return success("Project deleted")
