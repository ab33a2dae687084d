"""
API endpoints for quizzes and quiz responses.

Admins author quizzes; any user can answer them and manage their own
responses.
"""

from typing import List

from fastapi import APIRouter, status

from projectbrain.core.database.entities.users import UserRole
from projectbrain.core.errors import NotFoundException
from projectbrain.core.logging_config import get_logger
from projectbrain.core.models.io.journal import CountRead
from projectbrain.core.models.io.quizzes import QuizCreate, QuizRead, QuizResponseCreate, QuizResponseRead
from projectbrain.server.services.deps import AdminUserDep, CurrentUserDep, QuizResponseServiceDep, QuizServiceDep

logger = get_logger(__name__)

router = APIRouter(tags=["quizzes"])


# =====================================================================
# Responses of the caller
# =====================================================================


@router.get(
    "/responses",
    response_model=List[QuizResponseRead],
    summary="List My Responses",
    description="Every quiz response submitted by the caller.",
)
async def list_my_responses(user: CurrentUserDep, responses: QuizResponseServiceDep) -> List[QuizResponseRead]:
    return [QuizResponseRead.model_validate(r) for r in await responses.get_all_for_user(user.id)]


@router.get(
    "/responses/count",
    response_model=CountRead,
    summary="Count My Responses",
)
async def count_my_responses(user: CurrentUserDep, responses: QuizResponseServiceDep) -> CountRead:
    return CountRead(count=await responses.count_for_user(user.id))


@router.get(
    "/responses/{response_id}",
    response_model=QuizResponseRead,
    summary="Get Response",
    responses={404: {"description": "Response not found"}},
)
async def get_response(response_id: int, user: CurrentUserDep, responses: QuizResponseServiceDep) -> QuizResponseRead:
    response = await responses.get_by_id(response_id, user.id)
    if response is None:
        raise NotFoundException("Quiz response not found", code="QUIZ_RESPONSE_NOT_FOUND")
    return QuizResponseRead.model_validate(response)


@router.delete(
    "/responses/{response_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Response",
    responses={404: {"description": "Response not found"}},
)
async def delete_response(response_id: int, user: CurrentUserDep, responses: QuizResponseServiceDep) -> None:
    if not await responses.delete(response_id, user.id):
        raise NotFoundException("Quiz response not found", code="QUIZ_RESPONSE_NOT_FOUND")


# =====================================================================
# Quizzes
# =====================================================================


@router.get(
    "",
    response_model=List[QuizRead],
    summary="List Quizzes",
    description="All quizzes, newest first, with their questions.",
)
async def list_quizzes(user: CurrentUserDep, quizzes: QuizServiceDep) -> List[QuizRead]:
    return await quizzes.get_all()


@router.post(
    "",
    response_model=QuizRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Quiz",
    description="Create a quiz with its questions. Admin only.",
    responses={400: {"description": "Quiz definition is invalid"}, 403: {"description": "Admin role required"}},
)
async def create_quiz(payload: QuizCreate, admin: AdminUserDep, quizzes: QuizServiceDep) -> QuizRead:
    """
    Create a quiz.

    - **title**: Required quiz title.
    - **description**: Optional description.
    - **questions**: At least one question. Choice questions need choices.
    """
    quiz = await quizzes.add(payload)
    logger.info(f"Admin {admin.id} created quiz {quiz.id}")
    return quiz


@router.get(
    "/{quiz_id}",
    response_model=QuizRead,
    summary="Get Quiz",
    responses={404: {"description": "Quiz not found"}},
)
async def get_quiz(quiz_id: int, user: CurrentUserDep, quizzes: QuizServiceDep) -> QuizRead:
    quiz = await quizzes.get_by_id(quiz_id)
    if quiz is None:
        raise NotFoundException("Quiz not found", code="QUIZ_NOT_FOUND")
    return quiz


@router.put(
    "/{quiz_id}",
    response_model=QuizRead,
    summary="Update Quiz",
    description="Replace a quiz's title, description and questions. Admin only.",
    responses={400: {"description": "Quiz definition is invalid"}, 404: {"description": "Quiz not found"}},
)
async def update_quiz(quiz_id: int, payload: QuizCreate, admin: AdminUserDep, quizzes: QuizServiceDep) -> QuizRead:
    quiz = await quizzes.update(quiz_id, payload)
    if quiz is None:
        raise NotFoundException("Quiz not found", code="QUIZ_NOT_FOUND")
    return quiz


@router.delete(
    "/{quiz_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Quiz",
    description="Delete a quiz, its questions and its responses. Admin only.",
    responses={404: {"description": "Quiz not found"}},
)
async def delete_quiz(quiz_id: int, admin: AdminUserDep, quizzes: QuizServiceDep) -> None:
    if not await quizzes.delete(quiz_id):
        raise NotFoundException("Quiz not found", code="QUIZ_NOT_FOUND")
    logger.info(f"Admin {admin.id} deleted quiz {quiz_id}")


@router.post(
    "/{quiz_id}/responses",
    response_model=QuizResponseRead,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Response",
    description="Answer a quiz. Every mandatory visible question must be answered.",
    responses={400: {"description": "Mandatory answers missing"}, 404: {"description": "Quiz not found"}},
)
async def submit_response(
    quiz_id: int, payload: QuizResponseCreate, user: CurrentUserDep, responses: QuizResponseServiceDep
) -> QuizResponseRead:
    """
    Submit answers to a quiz.

    - **answers**: Answers keyed by question id.
    - **score**: Optional score computed by the client.
    """
    response = await responses.add(quiz_id, user.id, payload.answers, payload.score)
    return QuizResponseRead.model_validate(response)


@router.get(
    "/{quiz_id}/responses",
    response_model=List[QuizResponseRead],
    summary="List Quiz Responses",
    description="The caller's responses to a quiz. Admins see every user's responses.",
)
async def list_quiz_responses(
    quiz_id: int, user: CurrentUserDep, responses: QuizResponseServiceDep
) -> List[QuizResponseRead]:
    if user.has_role(UserRole.ADMIN):
        items = await responses.get_all_for_quiz(quiz_id)
    else:
        items = await responses.get_by_quiz_for_user(quiz_id, user.id)
    return [QuizResponseRead.model_validate(r) for r in items]
