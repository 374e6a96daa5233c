from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, List, Optional
from enum import Enum

# ==================== ENUMS ====================

class ContentType(str, Enum):
    TEXT = "text"
    IMAGE = "image"
    CODE = "code"
    LATEX = "latex"
    LINK = "link"
    VIDEO = "video"
    YOUTUBE_URL = "youtubeUrl"

# ==================== CONTENT ====================

class ContentItem(BaseModel):
    type: ContentType
    content: Any
    order: int = Field(..., ge=0)
    metadata: Optional[dict] = None

    @field_validator("content")
    @classmethod
    def content_present(cls, v):
        if v is None:
            raise ValueError("Each content must have content field")
        return v


class ContentGroup(BaseModel):
    title: str = Field(..., min_length=1)
    order: int = Field(..., ge=0)
    contents: List[ContentItem] = []

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Each content group must have a valid title")
        return v.strip()


class QuizQuestion(BaseModel):
    question: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=2)
    correct_answer: int = Field(..., ge=0)
    explanation: Optional[str] = None

    @model_validator(mode="after")
    def answer_in_range(self):
        if self.correct_answer >= len(self.options):
            raise ValueError("Each quiz question must have a valid correct answer index")
        return self

# ==================== LESSON MODELS ====================

class LessonCreate(BaseModel):
    topic_id: str
    title: str = Field(..., min_length=3, max_length=150)
    description: str = Field(..., min_length=10, max_length=1000)
    order: int = Field(..., ge=0)
    content_groups: List[ContentGroup] = []
    quiz: List[QuizQuestion] = []
    is_active: bool = True


class LessonUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=150)
    description: Optional[str] = Field(None, min_length=10, max_length=1000)
    order: Optional[int] = Field(None, ge=0)
    content_groups: Optional[List[ContentGroup]] = None
    quiz: Optional[List[QuizQuestion]] = None
    is_active: Optional[bool] = None

# ==================== LEARNER MODELS ====================

class QuizSubmission(BaseModel):
    answers: List[int] = Field(..., min_length=1)

    @field_validator("answers")
    @classmethod
    def non_negative(cls, v):
        if any(a < 0 for a in v):
            raise ValueError("Each answer must be a non-negative option index")
        return v


class LessonProgressUpdate(BaseModel):
    is_completed: bool
    time_spent: Optional[int] = Field(None, ge=0)
