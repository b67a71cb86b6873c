"""
models/result_model.py

채점 결과 모델. 한 번 생성되면 변경하지 않는다 (frozen).
"""

import math
from typing import Dict

from pydantic import BaseModel, Field, model_validator

from timed_exam_cbt.models.question_model import Answer
from timed_exam_cbt.models.session_state import AttemptStatus


class SubjectScore(BaseModel):
    """과목별 집계. marks는 정답으로 얻은 배점 합계."""

    correct: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)
    marks: float = Field(default=0)

    model_config = {"frozen": True}


class ScoreBreakdown(BaseModel):
    """
    grade()의 순수 채점 결과.

    불변식:
      - correct_answers + wrong_answers + unattempted == total_questions
      - percentage == obtained_marks / total_marks * 100 (total_marks가 0이면 0)
    """

    total_questions: int = Field(..., ge=0)
    correct_answers: int = Field(..., ge=0)
    wrong_answers: int = Field(..., ge=0)
    unattempted: int = Field(..., ge=0)
    total_marks: float = Field(..., ge=0)
    obtained_marks: float = Field(..., description="감점으로 음수가 될 수 있음")
    percentage: float
    subject_wise_score: Dict[str, SubjectScore] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_totals(self):
        counted = self.correct_answers + self.wrong_answers + self.unattempted
        if counted != self.total_questions:
            raise ValueError(
                f"정답({self.correct_answers}) + 오답({self.wrong_answers}) + "
                f"미응답({self.unattempted}) != 전체({self.total_questions})"
            )
        expected = self.obtained_marks / self.total_marks * 100 if self.total_marks else 0.0
        if not math.isclose(self.percentage, expected, abs_tol=1e-9):
            raise ValueError(f"백분율({self.percentage})이 배점 기준값({expected})과 다릅니다.")
        return self


class Result(ScoreBreakdown):
    """
    응시 1회의 최종 결과. 카탈로그에 그대로 저장되며,
    저장 재시도 시에도 재채점 없이 같은 값을 다시 보낸다.
    """

    exam_id: str
    exam_title: str = ""
    status: AttemptStatus
    time_taken_seconds: int = Field(..., ge=0)
    submitted_at: float = Field(..., description="채점 시각 (Unix timestamp)")
    answers: Dict[str, Answer] = Field(default_factory=dict, description="제출 당시 답안지 사본")

    @model_validator(mode="after")
    def validate_terminal_status(self):
        if self.status is AttemptStatus.IN_PROGRESS:
            raise ValueError("진행 중인 응시에 대한 결과는 만들 수 없습니다.")
        return self
