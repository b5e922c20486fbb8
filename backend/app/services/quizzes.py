from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.quiz import Quiz
from app.schemas.quiz import QuizCreateRequest


class QuizRepository:
    """Storage for quiz definitions. Input is trusted to be validated already."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, draft: QuizCreateRequest, *, teacher_id: int) -> Quiz:
        quiz = Quiz(
            title=draft.title,
            description=draft.description,
            subject=draft.subject,
            time_limit=int(draft.time_limit),
            teacher_id=int(teacher_id),
            questions=[
                {"text": q.text, "options": list(q.options), "correct_answer": int(q.correct_answer)}
                for q in draft.questions
            ],
        )
        self.db.add(quiz)
        self.db.flush()
        return quiz

    def get(self, quiz_id: int) -> Quiz | None:
        return self.db.get(Quiz, quiz_id)

    def list_all(self) -> list[Quiz]:
        return list(self.db.scalars(select(Quiz).order_by(Quiz.id)))

    def list_by_owner(self, teacher_id: int) -> list[Quiz]:
        return list(self.db.scalars(select(Quiz).where(Quiz.teacher_id == teacher_id).order_by(Quiz.id)))
