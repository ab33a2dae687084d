import pytest

from projectbrain.core.errors import NotFoundException, ValidationException
from projectbrain.core.models.io.quizzes import QuizCreate, QuizQuestionInput
from projectbrain.services.quizzes import QuizResponseService, QuizService, validate_quiz


def _quiz(**overrides) -> QuizCreate:
    data = {
        "title": "Wellbeing check",
        "description": "Weekly",
        "questions": [
            QuizQuestionInput(label="How do you feel?", input_type="text", mandatory=True),
            QuizQuestionInput(label="Pick one", input_type="choice", choices=["a", "b"]),
            QuizQuestionInput(label="Hidden", input_type="text", mandatory=True, visible=False),
        ],
    }
    data.update(overrides)
    return QuizCreate(**data)


class TestValidateQuiz:
    def test_valid_quiz_passes(self):
        validate_quiz(_quiz())

    def test_collects_field_errors(self):
        quiz = QuizCreate(
            title=" ",
            questions=[
                QuizQuestionInput(label="", input_type="slider"),
                QuizQuestionInput(label="ok", input_type="choice"),
                QuizQuestionInput(label="range", input_type="number", min_value=10, max_value=1),
            ],
        )

        with pytest.raises(ValidationException) as exc_info:
            validate_quiz(quiz)

        errors = exc_info.value.errors
        assert set(errors) == {
            "title",
            "questions[0].label",
            "questions[0].input_type",
            "questions[1].choices",
            "questions[2].min_value",
        }

    def test_requires_questions(self):
        with pytest.raises(ValidationException) as exc_info:
            validate_quiz(_quiz(questions=[]))
        assert "questions" in exc_info.value.errors


class TestQuizService:
    async def test_add_orders_questions(self, repos):
        quiz = await QuizService(repos).add(_quiz())

        assert quiz.title == "Wellbeing check"
        assert [q.question_order for q in quiz.questions] == [0, 1, 2]
        assert quiz.questions[1].choices == ["a", "b"]

    async def test_update_replaces_questions(self, repos):
        service = QuizService(repos)
        quiz = await service.add(_quiz())

        updated = await service.update(
            quiz.id, _quiz(title="Renamed", questions=[QuizQuestionInput(label="Only one")])
        )

        assert updated.title == "Renamed"
        assert [q.label for q in updated.questions] == ["Only one"]
        assert await service.update(999, _quiz()) is None

    async def test_delete_removes_quiz(self, repos):
        service = QuizService(repos)
        quiz = await service.add(_quiz())

        assert await service.delete(quiz.id) is True
        assert await service.get_by_id(quiz.id) is None
        assert await service.delete(quiz.id) is False


class TestQuizResponseService:
    async def test_mandatory_visible_questions_must_be_answered(self, repos, make_user):
        await make_user("alice")
        quiz = await QuizService(repos).add(_quiz())
        feel = str(quiz.questions[0].id)
        service = QuizResponseService(repos)

        with pytest.raises(ValidationException) as exc_info:
            await service.add(quiz.id, "alice", {feel: "   "})
        assert set(exc_info.value.errors) == {feel}

        response = await service.add(quiz.id, "alice", {feel: "Fine"}, score=3)
        assert response.answers == {feel: "Fine"}
        assert await QuizService(repos).has_responses(quiz.id) is True

    async def test_unknown_quiz(self, repos, make_user):
        await make_user("alice")

        with pytest.raises(NotFoundException):
            await QuizResponseService(repos).add(42, "alice", {})

    async def test_responses_are_scoped_to_user(self, repos, make_user):
        await make_user("alice")
        await make_user("bob")
        quiz = await QuizService(repos).add(_quiz())
        answers = {str(quiz.questions[0].id): "ok"}
        service = QuizResponseService(repos)
        mine = await service.add(quiz.id, "alice", answers)
        await service.add(quiz.id, "bob", answers)

        assert await service.get_by_id(mine.id, "bob") is None
        assert await service.count_for_user("alice") == 1
        assert len(await service.get_all_for_quiz(quiz.id)) == 2
        assert len(await service.get_by_quiz_for_user(quiz.id, "alice")) == 1
        assert await service.delete(mine.id, "bob") is False
        assert await service.delete(mine.id, "alice") is True
