"""
Quiz repository implementations.

Data access for quizzes with their ordered questions, and quiz responses.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from ..entities.quizzes import Quiz, QuizQuestion, QuizResponse
from .base import AsyncSqlRepository


class QuizRepository(AsyncSqlRepository[Quiz]):
    """Repository for quizzes and their questions."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Quiz)

    async def create_with_questions(self, quiz: Quiz, questions: List[QuizQuestion]) -> Quiz:
        """Insert a quiz and its questions in one commit."""
        self.session.add(quiz)
        await self.session.flush()
        for order, question in enumerate(questions):
            question.quiz_id = quiz.id  # type: ignore[assignment]
            question.question_order = order
            self.session.add(question)
        await self.session.commit()
        await self.session.refresh(quiz)
        return quiz

    async def replace_questions(self, quiz: Quiz, questions: List[QuizQuestion]) -> Quiz:
        """Save the quiz header and swap its questions for ``questions``."""
        quiz.updated_at = datetime.utcnow()
        self.session.add(quiz)
        await self.session.execute(delete(QuizQuestion).where(QuizQuestion.quiz_id == quiz.id))
        for order, question in enumerate(questions):
            question.quiz_id = quiz.id  # type: ignore[assignment]
            question.question_order = order
            self.session.add(question)
        await self.session.commit()
        await self.session.refresh(quiz)
        return quiz

    async def get_questions(self, quiz_id: int) -> List[QuizQuestion]:
        stmt = select(QuizQuestion).where(QuizQuestion.quiz_id == quiz_id).order_by(QuizQuestion.question_order)
        return await self._all(stmt)

    async def delete_with_children(self, quiz: Quiz) -> None:
        """Delete a quiz together with its questions and responses."""
        await self.session.execute(delete(QuizResponse).where(QuizResponse.quiz_id == quiz.id))
        await self.session.execute(delete(QuizQuestion).where(QuizQuestion.quiz_id == quiz.id))
        await self.session.delete(quiz)
        await self.session.commit()


class QuizResponseRepository(AsyncSqlRepository[QuizResponse]):
    """Repository for quiz responses."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, QuizResponse)

    def default_order(self):
        return QuizResponse.completed_at.desc()  # type: ignore[attr-defined]

    async def get_for_user(self, response_id: int, user_id: str) -> Optional[QuizResponse]:
        stmt = select(QuizResponse).where((QuizResponse.id == response_id) & (QuizResponse.user_id == user_id))
        return await self._first(stmt)

    async def list_for_user(self, user_id: str, quiz_id: Optional[int] = None) -> List[QuizResponse]:
        stmt = select(QuizResponse).where(QuizResponse.user_id == user_id)
        if quiz_id is not None:
            stmt = stmt.where(QuizResponse.quiz_id == quiz_id)
        stmt = stmt.order_by(QuizResponse.completed_at.desc())  # type: ignore[attr-defined]
        return await self._all(stmt)

    async def list_for_quiz(self, quiz_id: int) -> List[QuizResponse]:
        stmt = (
            select(QuizResponse)
            .where(QuizResponse.quiz_id == quiz_id)
            .order_by(QuizResponse.completed_at.desc())  # type: ignore[attr-defined]
        )
        return await self._all(stmt)

    async def count_since(self, since: Optional[datetime] = None) -> int:
        stmt = select(func.count()).select_from(QuizResponse)
        if since is not None:
            stmt = stmt.where(QuizResponse.completed_at >= since)
        return await self._scalar_count(stmt)
