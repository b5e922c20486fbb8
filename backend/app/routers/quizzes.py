from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.core.rate_limit import rate_limit
from app.core.redis_client import get_redis
from app.core.security import get_current_user, require_teacher
from app.db.session import get_db
from app.models.quiz import Quiz
from app.models.user import User
from app.schemas.attempt import AttemptResponse
from app.schemas.quiz import (
    QuizAnswerRequest,
    QuizCreateRequest,
    QuizDetail,
    QuizSessionResponse,
    QuizSummary,
)
from app.services.attempts import AttemptEngine, AttemptProgress, AttemptRepository
from app.services.quizzes import QuizRepository

router = APIRouter(prefix="/quizzes", tags=["quizzes"])


def get_attempt_engine(db: Session = Depends(get_db)) -> AttemptEngine:
    return AttemptEngine(
        quizzes=QuizRepository(db),
        attempts=AttemptRepository(db),
        redis=get_redis(),
    )


def _detail(quiz: Quiz) -> QuizDetail:
    return QuizDetail(
        id=quiz.id,
        title=quiz.title,
        description=quiz.description,
        subject=quiz.subject,
        time_limit=quiz.time_limit,
        teacher_id=quiz.teacher_id,
        question_count=quiz.question_count,
        questions=list(quiz.questions or []),
    )


def _session_response(progress: AttemptProgress) -> QuizSessionResponse:
    return QuizSessionResponse(
        quiz_id=progress.quiz_id,
        status=progress.status.value,
        answers=progress.answers,
        time_limit=progress.time_limit,
        time_remaining=progress.time_remaining,
        attempt=AttemptResponse.model_validate(progress.attempt) if progress.attempt is not None else None,
    )


@router.get("", response_model=list[QuizSummary])
def list_quizzes(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return QuizRepository(db).list_all()


@router.post("", response_model=QuizDetail, status_code=201)
def create_quiz(
    payload: QuizCreateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_teacher),
):
    # Ownership always follows the caller, whatever the client sent.
    quiz = QuizRepository(db).create(payload, teacher_id=user.id)
    db.commit()
    db.refresh(quiz)
    return _detail(quiz)


@router.get("/mine", response_model=list[QuizSummary])
def my_quizzes(db: Session = Depends(get_db), user: User = Depends(require_teacher)):
    return QuizRepository(db).list_by_owner(user.id)


@router.get("/{quiz_id}", response_model=QuizDetail)
def get_quiz(quiz_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    quiz = QuizRepository(db).get(quiz_id)
    if quiz is None:
        raise NotFound("quiz", quiz_id)
    return _detail(quiz)


@router.get("/{quiz_id}/attempts", response_model=list[AttemptResponse])
def quiz_attempts(quiz_id: int, db: Session = Depends(get_db), user: User = Depends(require_teacher)):
    if QuizRepository(db).get(quiz_id) is None:
        raise NotFound("quiz", quiz_id)
    return AttemptRepository(db).list_by_quiz(quiz_id)


@router.post("/{quiz_id}/start", response_model=QuizSessionResponse)
def start_quiz(
    quiz_id: int,
    engine: AttemptEngine = Depends(get_attempt_engine),
    user: User = Depends(get_current_user),
    _: object = rate_limit(key_prefix="quiz_start", limit=30, window_seconds=60),
):
    return _session_response(engine.start(user_id=user.id, quiz_id=quiz_id))


@router.get("/{quiz_id}/session", response_model=QuizSessionResponse)
def quiz_session(
    quiz_id: int,
    engine: AttemptEngine = Depends(get_attempt_engine),
    user: User = Depends(get_current_user),
):
    return _session_response(engine.progress(user_id=user.id, quiz_id=quiz_id))


@router.put("/{quiz_id}/answers/{question_index}", response_model=QuizSessionResponse)
def answer_question(
    quiz_id: int,
    question_index: int,
    body: QuizAnswerRequest,
    engine: AttemptEngine = Depends(get_attempt_engine),
    user: User = Depends(get_current_user),
):
    progress = engine.record_answer(
        user_id=user.id,
        quiz_id=quiz_id,
        question_index=question_index,
        option_index=body.option_index,
    )
    return _session_response(progress)


@router.post("/{quiz_id}/submit", response_model=AttemptResponse)
def submit_quiz(
    quiz_id: int,
    engine: AttemptEngine = Depends(get_attempt_engine),
    user: User = Depends(get_current_user),
    _: object = rate_limit(key_prefix="quiz_submit", limit=20, window_seconds=60),
):
    return engine.submit(user_id=user.id, quiz_id=quiz_id)
