from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AttemptCreateRequest(BaseModel):
    quiz_id: int
    answers: list[int]


class AttemptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    quiz_id: int
    student_id: int
    answers: list[int]
    score: int
    completed: bool
    started_at: datetime | None = None
    submitted_at: datetime
    time_spent_seconds: int | None = None
