"""Quiz I/O models."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class QuizQuestionInput(BaseModel):
    label: str
    input_type: str = "text"
    mandatory: bool = False
    visible: bool = True
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    choices: List[str] = Field(default_factory=list)
    placeholder: Optional[str] = None
    hint: Optional[str] = None


class QuizQuestionRead(QuizQuestionInput):
    id: int
    question_order: int

    class Config:
        from_attributes = True


class QuizCreate(BaseModel):
    title: str
    description: Optional[str] = None
    questions: List[QuizQuestionInput] = Field(default_factory=list)


class QuizRead(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    questions: List[QuizQuestionRead] = Field(default_factory=list)


class QuizResponseCreate(BaseModel):
    answers: Dict[str, Any] = Field(description="Answers keyed by question id")
    score: Optional[float] = None


class QuizResponseRead(BaseModel):
    id: int
    quiz_id: int
    user_id: str
    answers: Dict[str, Any]
    score: Optional[float] = None
    completed_at: datetime

    class Config:
        from_attributes = True
