from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.errors import NotFound
from app.core.policy import ensure_can_read_attempt
from app.core.security import get_current_user
from app.db.session import get_db
from app.models.user import User
from app.routers.quizzes import get_attempt_engine
from app.schemas.attempt import AttemptCreateRequest, AttemptResponse
from app.services.attempts import AttemptEngine, AttemptRepository

router = APIRouter(prefix="/attempts", tags=["attempts"])


@router.post("", response_model=AttemptResponse, status_code=201)
def create_attempt(
    body: AttemptCreateRequest,
    engine: AttemptEngine = Depends(get_attempt_engine),
    user: User = Depends(get_current_user),
):
    # The attempt always belongs to the caller; any student id in the body is ignored.
    return engine.submit_answers(user_id=user.id, quiz_id=body.quiz_id, answers=body.answers)


@router.get("/mine", response_model=list[AttemptResponse])
def my_attempts(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return AttemptRepository(db).list_by_student(user.id)


@router.get("/{attempt_id}", response_model=AttemptResponse)
def get_attempt(attempt_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    attempt = AttemptRepository(db).get(attempt_id)
    if attempt is None:
        raise NotFound("attempt", attempt_id)
    ensure_can_read_attempt(user, attempt)
    return attempt
