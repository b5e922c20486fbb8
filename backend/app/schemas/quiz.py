from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.schemas.attempt import AttemptResponse


class QuizQuestionIn(BaseModel):
    text: str = Field(min_length=1)
    options: list[str] = Field(min_length=2)
    correct_answer: int

    @field_validator("options")
    @classmethod
    def _options_distinct(cls, options: list[str]) -> list[str]:
        if any(not str(o).strip() for o in options):
            raise ValueError("options must not be blank")
        if len(set(options)) != len(options):
            raise ValueError("options must be distinct")
        return options

    @model_validator(mode="after")
    def _correct_answer_in_range(self) -> "QuizQuestionIn":
        if not 0 <= self.correct_answer < len(self.options):
            raise ValueError("correct_answer must index an existing option")
        return self


class QuizCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: str = ""
    subject: str = ""
    time_limit: int = Field(gt=0)
    questions: list[QuizQuestionIn] = Field(min_length=1)


class QuizQuestionOut(BaseModel):
    text: str
    options: list[str]
    correct_answer: int


class QuizSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    subject: str
    time_limit: int
    teacher_id: int
    question_count: int


class QuizDetail(QuizSummary):
    questions: list[QuizQuestionOut]


class QuizAnswerRequest(BaseModel):
    option_index: int


class QuizSessionResponse(BaseModel):
    quiz_id: int
    status: str
    answers: list[int]
    time_limit: int
    time_remaining: int
    attempt: AttemptResponse | None = None
