from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel


class Question(BaseModel):
    """Вопрос дня в том виде, в котором он уходит сотруднику (без правильного ответа)."""
    id: int
    question: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str

    @classmethod
    def from_row(cls, row: dict) -> "Question":
        return cls(
            id=row['id'], question=row['question'],
            option_a=row['option_a'], option_b=row['option_b'],
            option_c=row['option_c'], option_d=row['option_d'],
        )


class AttemptResult(BaseModel):
    status: Literal["recorded"] = "recorded"
    attempt_id: int
    question_id: int
    selected_answer: str
    correct: bool
    attempt_number: int
    explanation: Optional[str] = None


class ClockInResult(BaseModel):
    status: Literal["clocked_in"] = "clocked_in"
    session_id: int
    date: date
    clock_in_time: datetime


class ClockOutResult(BaseModel):
    status: Literal["clocked_out"] = "clocked_out"
    session_id: int
    clock_in_time: datetime
    clock_out_time: datetime
    total_hours: float


class CorrectionResult(BaseModel):
    status: Literal["corrected"] = "corrected"
    session_id: int
    clock_out_time: datetime
    total_hours: float
