from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from enum import Enum

# ==================== ENUMS ====================

class CourseSortField(str, Enum):
    TITLE = "title"
    RATING = "rating"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class SearchSortField(str, Enum):
    RELEVANCE = "relevance"
    TITLE = "title"
    RATING = "rating"
    POPULARITY = "popularity"
    NEWEST = "newest"
    OLDEST = "oldest"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

# ==================== COURSE MODELS ====================

def _clean_categories(categories: Optional[List[str]]) -> Optional[List[str]]:
    if categories is None:
        return None
    cleaned = [c.strip() for c in categories]
    if not cleaned or any(not c for c in cleaned):
        raise ValueError("Categories must be a non-empty list of non-empty strings")
    return cleaned


class CourseCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    image: Optional[str] = Field(None, pattern=r"^https?://")
    categories: List[str] = Field(..., min_length=1)
    is_featured: bool = False
    is_active: bool = True
    is_premium: bool = False

    @field_validator("categories")
    @classmethod
    def categories_not_blank(cls, v):
        return _clean_categories(v)


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=3, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    image: Optional[str] = Field(None, pattern=r"^https?://")
    categories: Optional[List[str]] = None
    is_featured: Optional[bool] = None
    is_active: Optional[bool] = None
    is_premium: Optional[bool] = None

    @field_validator("categories")
    @classmethod
    def categories_not_blank(cls, v):
        return _clean_categories(v)
