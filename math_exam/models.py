from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List

MIN_QUESTIONS = 1
MAX_QUESTIONS = 20


class QuestionAnswer(BaseModel):
    model_config = ConfigDict(frozen=True)

    question: str
    answer: str


class ExamRequest(BaseModel):
    topic: str = Field(..., min_length=1)
    num_questions: int = Field(..., ge=MIN_QUESTIONS, le=MAX_QUESTIONS)

    @field_validator("topic", mode="before")
    @classmethod
    def strip_topic(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class ExamResponse(BaseModel):
    topic: str
    questions: List[QuestionAnswer]
