from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from enum import Enum


class ChallengeDifficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class ChallengeTestCase(BaseModel):
    input: str = ""
    expected_output: str


class DailyChallengeCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=150)
    description: str = Field(..., min_length=10)
    difficulty: ChallengeDifficulty
    category: str = Field(..., min_length=1)
    points: int = Field(..., ge=1)
    code_template: str = ""
    expected_output: Optional[str] = None
    test_cases: List[ChallengeTestCase] = Field(..., min_length=1)
    hints: List[str] = []
    solution: Optional[str] = None
    is_active: bool = True
    active_date: datetime


class ChallengeSubmissionCreate(BaseModel):
    code: str = Field(..., min_length=1)
    language: str = "python"
    time_spent: int = Field(0, ge=0)  # minutes
