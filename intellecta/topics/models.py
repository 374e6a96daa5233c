from pydantic import BaseModel, Field
from typing import List, Optional


class TopicCreate(BaseModel):
    course_id: str
    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=500)
    order: int = Field(..., ge=0)
    is_active: bool = True


class TopicUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, min_length=10, max_length=500)
    order: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class ReorderRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1)
