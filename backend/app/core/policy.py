from __future__ import annotations

from app.core.errors import AuthorizationDenied
from app.models.attempt import QuizAttempt
from app.models.user import User, UserRole


def _unknown_role(user: User) -> AuthorizationDenied:
    return AuthorizationDenied(f"unsupported role: {getattr(user.role, 'value', user.role)}")


def is_teacher(user: User) -> bool:
    if user.role == UserRole.teacher:
        return True
    elif user.role == UserRole.student:
        return False
    raise _unknown_role(user)


def ensure_can_author_quizzes(user: User) -> None:
    if not is_teacher(user):
        raise AuthorizationDenied()


def ensure_can_read_attempt(user: User, attempt: QuizAttempt) -> None:
    if attempt.student_id == user.id:
        return
    # Teachers may read any attempt, not only those on quizzes they own.
    if user.role == UserRole.teacher:
        return
    elif user.role == UserRole.student:
        raise AuthorizationDenied()
    raise _unknown_role(user)
