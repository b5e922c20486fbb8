from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.models.attempt import QuizAttempt
from app.models.quiz import Quiz
from app.models.user import User, UserRole
from app.services.credentials import UserRepository, verify_password
from app.services.seed import DEMO_PASSWORD, DEMO_QUIZZES, seed_demo_data


def _fresh_session():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)()


def test_seed_creates_demo_accounts_and_quizzes():
    db = _fresh_session()
    try:
        assert seed_demo_data(db) is True

        teacher = UserRepository(db).get_by_username("teacher1")
        student = UserRepository(db).get_by_username("student1")
        assert teacher.role == UserRole.teacher
        assert student.role == UserRole.student
        assert verify_password(DEMO_PASSWORD, teacher.password_hash)

        quizzes = db.scalars(select(Quiz).order_by(Quiz.id)).all()
        assert [q.title for q in quizzes] == [q["title"] for q in DEMO_QUIZZES]
        assert all(q.teacher_id == teacher.id for q in quizzes)
        assert [q.question_count for q in quizzes] == [15, 15, 15]

        attempts = db.scalars(select(QuizAttempt)).all()
        assert len(attempts) == 1
        assert attempts[0].quiz_id == quizzes[0].id
        assert attempts[0].student_id == student.id
        assert attempts[0].completed is True
        # The sample answers match every correct option of the first quiz.
        assert attempts[0].score == 100
    finally:
        db.close()


def test_seed_is_skipped_when_users_exist():
    db = _fresh_session()
    try:
        seed_demo_data(db)
        assert seed_demo_data(db) is False
        assert db.scalar(select(func.count(User.id))) == 2
    finally:
        db.close()
