import pytest

from app.core.errors import AuthorizationDenied
from app.core.policy import ensure_can_author_quizzes, ensure_can_read_attempt, is_teacher
from app.models.attempt import QuizAttempt
from app.models.user import User, UserRole


def _user(user_id: int, role) -> User:
    return User(id=user_id, username=f"u{user_id}", role=role, display_name="", password_hash="x$y")


def _attempt(student_id: int) -> QuizAttempt:
    return QuizAttempt(id=1, quiz_id=1, student_id=student_id, answers=[0], score=100, completed=True)


def test_only_teachers_author_quizzes():
    ensure_can_author_quizzes(_user(1, UserRole.teacher))
    with pytest.raises(AuthorizationDenied):
        ensure_can_author_quizzes(_user(2, UserRole.student))


def test_owner_reads_own_attempt():
    ensure_can_read_attempt(_user(5, UserRole.student), _attempt(student_id=5))


def test_other_student_cannot_read_attempt():
    with pytest.raises(AuthorizationDenied):
        ensure_can_read_attempt(_user(6, UserRole.student), _attempt(student_id=5))


def test_any_teacher_reads_any_attempt():
    ensure_can_read_attempt(_user(9, UserRole.teacher), _attempt(student_id=5))


def test_unknown_role_is_denied():
    with pytest.raises(AuthorizationDenied):
        is_teacher(_user(3, "admin"))
    with pytest.raises(AuthorizationDenied):
        ensure_can_read_attempt(_user(3, "admin"), _attempt(student_id=5))


def test_student_cannot_use_teacher_endpoints(client, student_headers, quiz):
    assert client.get("/quizzes/mine", headers=student_headers).status_code == 403
    assert client.get(f"/quizzes/{quiz['id']}/attempts", headers=student_headers).status_code == 403


@pytest.mark.parametrize(
    "path",
    ["/quizzes", "/quizzes/1", "/quizzes/mine", "/attempts/mine", "/attempts/1"],
)
def test_gated_endpoints_require_authentication(client, path):
    client.cookies.clear()
    r = client.get(path)
    assert r.status_code == 401
