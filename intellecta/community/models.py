from pydantic import BaseModel, Field
from typing import List, Optional
from enum import Enum


class VoteDirection(str, Enum):
    UP = "up"
    DOWN = "down"

# ==================== Q&A ====================

class QuestionCreate(BaseModel):
    title: str = Field(..., min_length=5, max_length=200)
    content: str = Field(..., min_length=10)
    tags: List[str] = []


class AnswerCreate(BaseModel):
    content: str = Field(..., min_length=1)


class VoteRequest(BaseModel):
    direction: VoteDirection

# ==================== PROJECTS ====================

class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=2000)
    repo_url: str = Field(..., pattern=r"^https?://")
    live_url: Optional[str] = Field(None, pattern=r"^https?://")
    tags: List[str] = []
    screenshots: List[str] = []


class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, min_length=10, max_length=2000)
    repo_url: Optional[str] = Field(None, pattern=r"^https?://")
    live_url: Optional[str] = Field(None, pattern=r"^https?://")
    tags: Optional[List[str]] = None
    screenshots: Optional[List[str]] = None

# ==================== MESSAGES ====================

class MessageCreate(BaseModel):
    message: str = Field(..., min_length=1, max_length=5000)
