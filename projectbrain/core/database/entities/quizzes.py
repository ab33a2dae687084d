"""
Quiz entity models.

Admins author quizzes made of ordered questions; users submit responses
that map question ids to answers.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import JSON, Field

from ..base import Base


class QuestionInputType(str, Enum):
    """Supported question input widgets."""

    TEXT = "text"
    NUMBER = "number"
    EMAIL = "email"
    DATE = "date"
    CHOICE = "choice"
    MULTIPLE_CHOICE = "multipleChoice"
    SCALE = "scale"
    TEXTAREA = "textarea"
    TEL = "tel"
    URL = "url"


class Quiz(Base, table=True):
    """Quiz header.

    Table: quizzes
    """

    __tablename__ = "quizzes"
    __table_args__ = ({"extend_existing": True},)

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    title: str = Field(max_length=500)
    description: Optional[str] = Field(default=None, max_length=2000)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    def __repr__(self) -> str:
        return f"Quiz(id={self.id}, title={self.title})"


class QuizQuestion(Base, table=True):
    """Question belonging to a quiz.

    Table: quiz_questions
    """

    __tablename__ = "quiz_questions"
    __table_args__ = (
        UniqueConstraint("quiz_id", "question_order", name="uq_quiz_questions_order"),
        {"extend_existing": True},
    )

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    quiz_id: int = Field(foreign_key="quizzes.id", index=True)
    label: str = Field(max_length=1000)
    input_type: str = Field(default=QuestionInputType.TEXT.value, max_length=50)
    mandatory: bool = Field(default=False)
    visible: bool = Field(default=True)
    min_value: Optional[float] = Field(default=None)
    max_value: Optional[float] = Field(default=None)
    choices: List[str] = Field(default_factory=list, sa_type=JSON)
    placeholder: Optional[str] = Field(default=None, max_length=255)
    hint: Optional[str] = Field(default=None, max_length=500)
    question_order: int = Field(default=0)

    def __repr__(self) -> str:
        return f"QuizQuestion(id={self.id}, quiz_id={self.quiz_id}, order={self.question_order})"


class QuizResponse(Base, table=True):
    """A user's submitted answers to a quiz.

    Table: quiz_responses
    """

    __tablename__ = "quiz_responses"
    __table_args__ = ({"extend_existing": True},)

    # Primary key
    id: Optional[int] = Field(default=None, primary_key=True)

    quiz_id: int = Field(foreign_key="quizzes.id", index=True)
    user_id: str = Field(foreign_key="users.id", index=True)
    answers: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    score: Optional[float] = Field(default=None)
    completed_at: datetime = Field(default_factory=datetime.utcnow, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    def __repr__(self) -> str:
        return f"QuizResponse(id={self.id}, quiz_id={self.quiz_id}, user_id={self.user_id})"
