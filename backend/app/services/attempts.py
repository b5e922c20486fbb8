from __future__ import annotations

import enum
import json
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import AttemptStateError, NotFound, ValidationFailed
from app.models.attempt import QuizAttempt
from app.models.quiz import Quiz
from app.services.quizzes import QuizRepository

log = logging.getLogger(__name__)

UNANSWERED = -1


class AttemptStatus(str, enum.Enum):
    not_started = "not_started"
    in_progress = "in_progress"
    submitted = "submitted"


def count_correct(questions: Sequence[dict], answers: Sequence[int]) -> int:
    correct = 0
    for question, answer in zip(questions, answers):
        if answer == UNANSWERED:
            continue
        if int(answer) == int(question.get("correct_answer", UNANSWERED)):
            correct += 1
    return correct


def score_answers(questions: Sequence[dict], answers: Sequence[int]) -> int:
    """Percentage of correct answers, rounded half up.

    Integer arithmetic keeps the rounding exact: ``(200 * m + n) // (2 * n)``
    equals ``floor(100 * m / n + 0.5)``.
    """
    total = len(questions)
    if total <= 0:
        return 0
    matches = count_correct(questions, answers)
    return (200 * matches + total) // (2 * total)


def _option_count(question: dict) -> int:
    return len(question.get("options") or [])


def validate_answers(questions: Sequence[dict], answers: Sequence[int]) -> list[int]:
    if len(answers) != len(questions):
        raise ValidationFailed(
            f"expected {len(questions)} answers, got {len(answers)}",
            details={"field": "answers"},
        )

    cleaned: list[int] = []
    for i, (question, answer) in enumerate(zip(questions, answers)):
        answer = int(answer)
        if answer != UNANSWERED and not 0 <= answer < _option_count(question):
            raise ValidationFailed(
                f"answer for question {i} is not a valid option",
                details={"field": f"answers[{i}]"},
            )
        cleaned.append(answer)
    return cleaned


def _utc(ts: float) -> datetime:
    return datetime.fromtimestamp(ts, tz=timezone.utc)


class AttemptRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        *,
        quiz_id: int,
        student_id: int,
        answers: list[int],
        score: int,
        submitted_at: datetime,
        started_at: datetime | None = None,
        time_spent_seconds: int | None = None,
    ) -> QuizAttempt:
        attempt = QuizAttempt(
            quiz_id=quiz_id,
            student_id=student_id,
            answers=list(answers),
            score=int(score),
            completed=True,
            started_at=started_at,
            submitted_at=submitted_at,
            time_spent_seconds=time_spent_seconds,
        )
        self.db.add(attempt)
        self.db.flush()
        return attempt

    def get(self, attempt_id: int) -> QuizAttempt | None:
        return self.db.get(QuizAttempt, attempt_id)

    def list_by_student(self, student_id: int) -> list[QuizAttempt]:
        return list(
            self.db.scalars(
                select(QuizAttempt).where(QuizAttempt.student_id == student_id).order_by(QuizAttempt.id)
            )
        )

    def list_by_quiz(self, quiz_id: int) -> list[QuizAttempt]:
        return list(
            self.db.scalars(select(QuizAttempt).where(QuizAttempt.quiz_id == quiz_id).order_by(QuizAttempt.id))
        )


class AttemptSession:
    """Working state of one user's run through one quiz, before submission."""

    def __init__(
        self,
        *,
        quiz_id: int,
        user_id: int,
        answers: list[int],
        time_limit: int,
        started_at: float,
        status: AttemptStatus = AttemptStatus.in_progress,
    ):
        self.quiz_id = int(quiz_id)
        self.user_id = int(user_id)
        self.answers = list(answers)
        self.time_limit = int(time_limit)
        self.started_at = float(started_at)
        self.status = status

    @classmethod
    def begin(cls, quiz: Quiz, *, user_id: int, now: float) -> "AttemptSession":
        return cls(
            quiz_id=quiz.id,
            user_id=user_id,
            answers=[UNANSWERED] * quiz.question_count,
            time_limit=quiz.time_limit,
            started_at=now,
        )

    def elapsed(self, now: float) -> int:
        return max(0, int(now - self.started_at))

    def time_remaining(self, now: float) -> int:
        return max(0, self.time_limit - self.elapsed(now))

    def is_expired(self, now: float) -> bool:
        return self.time_remaining(now) <= 0

    def record_answer(self, questions: Sequence[dict], question_index: int, option_index: int) -> None:
        if self.status != AttemptStatus.in_progress:
            raise AttemptStateError("attempt is not in progress")
        if not 0 <= question_index < len(self.answers):
            raise ValidationFailed("question index out of range", details={"field": "question_index"})
        if not 0 <= option_index < _option_count(questions[question_index]):
            raise ValidationFailed("option index out of range", details={"field": "option_index"})
        self.answers[question_index] = int(option_index)

    def to_payload(self) -> dict:
        return {
            "quiz_id": self.quiz_id,
            "user_id": self.user_id,
            "answers": self.answers,
            "time_limit": self.time_limit,
            "started_at": self.started_at,
        }

    @classmethod
    def from_payload(cls, payload: dict) -> "AttemptSession":
        return cls(
            quiz_id=int(payload["quiz_id"]),
            user_id=int(payload["user_id"]),
            answers=[int(a) for a in payload["answers"]],
            time_limit=int(payload["time_limit"]),
            started_at=float(payload["started_at"]),
        )


@dataclass
class AttemptProgress:
    quiz_id: int
    status: AttemptStatus
    answers: list[int]
    time_limit: int
    time_remaining: int
    attempt: QuizAttempt | None = None


def _session_key(user_id: int, quiz_id: int) -> str:
    return f"quiz_session:{user_id}:{quiz_id}"


class AttemptEngine:
    """Drives start -> answer -> submit for one caller.

    Working state lives in Redis; only submission writes a QuizAttempt row.
    Time expiry is checked against the injected clock on every transition and
    forces submission with whatever answers were recorded.
    """

    def __init__(
        self,
        *,
        quizzes: QuizRepository,
        attempts: AttemptRepository,
        redis,
        clock: Callable[[], float] = time.time,
        grace_seconds: int | None = None,
    ):
        self.quizzes = quizzes
        self.attempts = attempts
        self.redis = redis
        self.clock = clock
        self.grace_seconds = int(settings.quiz_session_grace_seconds if grace_seconds is None else grace_seconds)

    def _require_quiz(self, quiz_id: int) -> Quiz:
        quiz = self.quizzes.get(quiz_id)
        if quiz is None:
            raise NotFound("quiz", quiz_id)
        return quiz

    def _load(self, user_id: int, quiz_id: int) -> AttemptSession | None:
        key = _session_key(user_id, quiz_id)
        raw = self.redis.get(key)
        if raw is None:
            return None
        try:
            return AttemptSession.from_payload(json.loads(raw))
        except (ValueError, KeyError, TypeError):
            log.warning("discarding corrupted quiz session %s", key)
            self.redis.delete(key)
            return None

    def _save(self, session: AttemptSession, *, existing: bool = False) -> None:
        # An update must not recreate a key that a submit has already claimed.
        stored = self.redis.set(
            _session_key(session.user_id, session.quiz_id),
            json.dumps(session.to_payload()),
            ex=max(1, session.time_limit + self.grace_seconds),
            xx=existing,
        )
        if existing and not stored:
            raise AttemptStateError("quiz session already submitted")

    def _claim(self, session: AttemptSession) -> None:
        # Whoever deletes the key owns the submission.
        removed = self.redis.delete(_session_key(session.user_id, session.quiz_id))
        if not removed:
            raise AttemptStateError("quiz session already submitted")

    def _require_session(self, user_id: int, quiz_id: int) -> AttemptSession:
        session = self._load(user_id, quiz_id)
        if session is None:
            raise AttemptStateError("quiz session not found or expired")
        return session

    def _progress(self, session: AttemptSession, now: float, attempt: QuizAttempt | None = None) -> AttemptProgress:
        return AttemptProgress(
            quiz_id=session.quiz_id,
            status=session.status,
            answers=list(session.answers),
            time_limit=session.time_limit,
            time_remaining=session.time_remaining(now),
            attempt=attempt,
        )

    def _persist(
        self,
        quiz: Quiz,
        *,
        student_id: int,
        answers: list[int],
        now: float,
        started_at: datetime | None = None,
        time_spent_seconds: int | None = None,
    ) -> QuizAttempt:
        questions = list(quiz.questions or [])
        if len(answers) != len(questions):
            raise ValidationFailed("answers do not match quiz questions", details={"field": "answers"})

        score = score_answers(questions, answers)
        db = self.attempts.db
        try:
            attempt = self.attempts.create(
                quiz_id=quiz.id,
                student_id=student_id,
                answers=answers,
                score=score,
                started_at=started_at,
                submitted_at=_utc(now),
                time_spent_seconds=time_spent_seconds,
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(attempt)

        log.info("attempt %s submitted quiz=%s student=%s score=%s", attempt.id, quiz.id, student_id, score)
        return attempt

    def _finalize(self, quiz: Quiz, session: AttemptSession, now: float) -> AttemptProgress:
        self._claim(session)
        try:
            attempt = self._persist(
                quiz,
                student_id=session.user_id,
                answers=session.answers,
                now=now,
                started_at=_utc(session.started_at),
                time_spent_seconds=min(session.time_limit, session.elapsed(now)),
            )
        except Exception:
            # Hand the working state back so the client can retry.
            self._save(session)
            raise
        session.status = AttemptStatus.submitted
        return self._progress(session, now, attempt)

    def start(self, *, user_id: int, quiz_id: int) -> AttemptProgress:
        quiz = self._require_quiz(quiz_id)
        now = self.clock()

        existing = self._load(user_id, quiz.id)
        if existing is not None:
            if not existing.is_expired(now):
                return self._progress(existing, now)
            log.info("auto-submitting expired quiz session user=%s quiz=%s", user_id, quiz.id)
            self._finalize(quiz, existing, now)

        session = AttemptSession.begin(quiz, user_id=user_id, now=now)
        self._save(session)
        return self._progress(session, now)

    def progress(self, *, user_id: int, quiz_id: int) -> AttemptProgress:
        quiz = self._require_quiz(quiz_id)
        now = self.clock()
        session = self._load(user_id, quiz.id)
        if session is None:
            return AttemptProgress(
                quiz_id=quiz.id,
                status=AttemptStatus.not_started,
                answers=[UNANSWERED] * quiz.question_count,
                time_limit=quiz.time_limit,
                time_remaining=quiz.time_limit,
            )
        if session.is_expired(now):
            return self._finalize(quiz, session, now)
        return self._progress(session, now)

    def record_answer(self, *, user_id: int, quiz_id: int, question_index: int, option_index: int) -> AttemptProgress:
        quiz = self._require_quiz(quiz_id)
        now = self.clock()
        session = self._require_session(user_id, quiz.id)
        if session.is_expired(now):
            return self._finalize(quiz, session, now)

        session.record_answer(quiz.questions or [], question_index, option_index)
        self._save(session, existing=True)
        return self._progress(session, now)

    def submit(self, *, user_id: int, quiz_id: int) -> QuizAttempt:
        quiz = self._require_quiz(quiz_id)
        now = self.clock()
        session = self._require_session(user_id, quiz.id)
        return self._finalize(quiz, session, now).attempt

    def submit_answers(self, *, user_id: int, quiz_id: int, answers: Sequence[int]) -> QuizAttempt:
        """Score and store answers the client collected on its own."""
        quiz = self._require_quiz(quiz_id)
        cleaned = validate_answers(quiz.questions or [], answers)
        return self._persist(quiz, student_id=user_id, answers=cleaned, now=self.clock())
