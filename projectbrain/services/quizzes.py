"""
Quiz and quiz response services.

Quizzes are authored by admins as a header plus an ordered list of
questions. Responses store answers keyed by question id.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from projectbrain.core.database.entities.quizzes import QuestionInputType, Quiz, QuizQuestion, QuizResponse
from projectbrain.core.database.repositories import SqlRepoBundle
from projectbrain.core.errors import NotFoundException, ValidationException
from projectbrain.core.logging_config import get_logger
from projectbrain.core.models.io.quizzes import QuizCreate, QuizQuestionRead, QuizRead

logger = get_logger(__name__)

INPUT_TYPES = {t.value for t in QuestionInputType}
CHOICE_TYPES = {QuestionInputType.CHOICE.value, QuestionInputType.MULTIPLE_CHOICE.value}


def validate_quiz(quiz: QuizCreate) -> None:
    """Check a quiz definition before it is saved.

    Raises:
        ValidationException: with per-field messages in ``errors``
    """
    errors: Dict[str, str] = {}
    if not quiz.title or not quiz.title.strip():
        errors["title"] = "Title is required"
    elif len(quiz.title) > 500:
        errors["title"] = "Title must be at most 500 characters"
    if quiz.description and len(quiz.description) > 2000:
        errors["description"] = "Description must be at most 2000 characters"
    if not quiz.questions:
        errors["questions"] = "At least one question is required"

    for i, question in enumerate(quiz.questions):
        prefix = f"questions[{i}]"
        if not question.label or not question.label.strip():
            errors[f"{prefix}.label"] = "Label is required"
        elif len(question.label) > 1000:
            errors[f"{prefix}.label"] = "Label must be at most 1000 characters"
        if question.input_type not in INPUT_TYPES:
            errors[f"{prefix}.input_type"] = f"Input type must be one of: {', '.join(sorted(INPUT_TYPES))}"
        elif question.input_type in CHOICE_TYPES and not question.choices:
            errors[f"{prefix}.choices"] = "Choice questions require at least one choice"
        if (
            question.min_value is not None
            and question.max_value is not None
            and question.min_value > question.max_value
        ):
            errors[f"{prefix}.min_value"] = "Minimum value cannot exceed maximum value"
        if question.placeholder and len(question.placeholder) > 255:
            errors[f"{prefix}.placeholder"] = "Placeholder must be at most 255 characters"
        if question.hint and len(question.hint) > 500:
            errors[f"{prefix}.hint"] = "Hint must be at most 500 characters"

    if errors:
        raise ValidationException("Quiz is invalid", errors)


def _build_questions(quiz: QuizCreate) -> List[QuizQuestion]:
    return [QuizQuestion(**question.model_dump(), quiz_id=0) for question in quiz.questions]


class QuizService:
    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def to_read(self, quiz: Quiz) -> QuizRead:
        questions = await self.repos.quizzes.get_questions(quiz.id)  # type: ignore[arg-type]
        return QuizRead(
            id=quiz.id,  # type: ignore[arg-type]
            title=quiz.title,
            description=quiz.description,
            created_at=quiz.created_at,
            updated_at=quiz.updated_at,
            questions=[QuizQuestionRead.model_validate(q) for q in questions],
        )

    async def add(self, definition: QuizCreate) -> QuizRead:
        validate_quiz(definition)
        quiz = await self.repos.quizzes.create_with_questions(
            Quiz(title=definition.title.strip(), description=definition.description),
            _build_questions(definition),
        )
        logger.info(f"Quiz {quiz.id} created with {len(definition.questions)} questions")
        return await self.to_read(quiz)

    async def get_by_id(self, quiz_id: int) -> Optional[QuizRead]:
        quiz = await self.repos.quizzes.get_by_id(quiz_id)
        return await self.to_read(quiz) if quiz else None

    async def get_all(self) -> List[QuizRead]:
        return [await self.to_read(q) for q in await self.repos.quizzes.list()]

    async def update(self, quiz_id: int, definition: QuizCreate) -> Optional[QuizRead]:
        """Replace the quiz header and all of its questions. None when missing."""
        validate_quiz(definition)
        quiz = await self.repos.quizzes.get_by_id(quiz_id)
        if quiz is None:
            return None
        if await self.has_responses(quiz_id):
            logger.warning(f"Quiz {quiz_id} has responses; answers keyed by old question ids may no longer match")
        quiz.title = definition.title.strip()
        quiz.description = definition.description
        saved = await self.repos.quizzes.replace_questions(quiz, _build_questions(definition))
        return await self.to_read(saved)

    async def delete(self, quiz_id: int) -> bool:
        quiz = await self.repos.quizzes.get_by_id(quiz_id)
        if quiz is None:
            return False
        await self.repos.quizzes.delete_with_children(quiz)
        logger.info(f"Quiz {quiz_id} deleted")
        return True

    async def has_responses(self, quiz_id: int) -> bool:
        return await self.repos.quiz_responses.count({"quiz_id": quiz_id}) > 0


def _is_answered(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, dict)):
        return bool(value)
    return True


class QuizResponseService:
    def __init__(self, repos: SqlRepoBundle) -> None:
        self.repos = repos

    async def add(
        self, quiz_id: int, user_id: str, answers: Dict[str, Any], score: Optional[float] = None
    ) -> QuizResponse:
        """Store a response after checking mandatory visible questions are answered.

        Raises:
            NotFoundException: the quiz does not exist
            ValidationException: mandatory questions are missing answers
        """
        quiz = await self.repos.quizzes.get_by_id(quiz_id)
        if quiz is None:
            raise NotFoundException(f"Quiz {quiz_id} not found", code="QUIZ_NOT_FOUND")

        missing = {
            str(q.id): f"'{q.label}' is required"
            for q in await self.repos.quizzes.get_questions(quiz_id)
            if q.mandatory and q.visible and not _is_answered(answers.get(str(q.id)))
        }
        if missing:
            raise ValidationException("Mandatory questions were not answered", missing)

        return await self.repos.quiz_responses.create(
            QuizResponse(
                quiz_id=quiz_id, user_id=user_id, answers=answers, score=score, completed_at=datetime.utcnow()
            )
        )

    async def get_by_id(self, response_id: int, user_id: str) -> Optional[QuizResponse]:
        return await self.repos.quiz_responses.get_for_user(response_id, user_id)

    async def get_all_for_user(self, user_id: str) -> List[QuizResponse]:
        return await self.repos.quiz_responses.list_for_user(user_id)

    async def get_by_quiz_for_user(self, quiz_id: int, user_id: str) -> List[QuizResponse]:
        return await self.repos.quiz_responses.list_for_user(user_id, quiz_id)

    async def get_all_for_quiz(self, quiz_id: int) -> List[QuizResponse]:
        return await self.repos.quiz_responses.list_for_quiz(quiz_id)

    async def count_for_user(self, user_id: str) -> int:
        return await self.repos.quiz_responses.count({"user_id": user_id})

    async def delete(self, response_id: int, user_id: str) -> bool:
        response = await self.repos.quiz_responses.get_for_user(response_id, user_id)
        if response is None:
            return False
        return await self.repos.quiz_responses.delete(response_id)
