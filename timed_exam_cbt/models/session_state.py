"""
models/session_state.py

시험 응시 1회분의 진행 상태를 담는 OMR 카드 모델.
Pydantic BaseModel 기반 — 직렬화/역직렬화 및 타입 안전성 확보.
상태 전이(시작/제출/만료)는 services.session_service.ExamSession이 전담한다.
"""

from enum import Enum
from typing import Dict, Set

from pydantic import BaseModel, Field

from timed_exam_cbt.errors import SessionClosed
from timed_exam_cbt.models.question_model import Answer


class AttemptStatus(str, Enum):
    IN_PROGRESS = "in-progress"
    SUBMITTED = "submitted"
    EXPIRED = "expired"


class AttemptState(BaseModel):
    """
    사용자의 시험 응시 상태를 표현하는 모델.

    Attributes:
        exam_id:             대상 시험 ID. 변경 불가.
        started_at:          시작 시각 (Unix timestamp). 변경 불가.
        deadline:            started_at + 제한 시간. 변경 불가.
        status:              in-progress → submitted | expired (단방향).
        answers:             사용자 답안지. {question.id: 답안}. 키가 없으면 미응답.
        current_quest_index: 현재 보고 있는 문제 인덱스 (0-based).
        flagged_questions:   '나중에 다시 보기' 표시한 문제 ID.
    """

    exam_id: str = Field(..., frozen=True, description="시험 ID")
    started_at: float = Field(..., frozen=True, description="시작 시각 (Unix timestamp)")
    deadline: float = Field(..., frozen=True, description="마감 시각 (Unix timestamp)")
    status: AttemptStatus = Field(
        default=AttemptStatus.IN_PROGRESS,
        description="응시 상태"
    )
    answers: Dict[str, Answer] = Field(
        default_factory=dict,
        description="사용자 답안지. key: question.id"
    )
    current_quest_index: int = Field(
        default=0,
        ge=0,
        description="현재 풀고 있는 문제 인덱스 (0-based)"
    )
    flagged_questions: Set[str] = Field(
        default_factory=set,
        description="다시 보기 표시한 문제 ID"
    )

    @property
    def is_open(self) -> bool:
        return self.status is AttemptStatus.IN_PROGRESS

    @property
    def is_submitted(self) -> bool:
        return not self.is_open

    @property
    def answered_count(self) -> int:
        return len(self.answers)

    def time_remaining(self, now: float) -> float:
        """남은 시간 (초). 마감 이후에는 0."""
        return max(0.0, self.deadline - now)

    def put_answer(self, question_id: str, value: Answer) -> None:
        self._ensure_open()
        self.answers[question_id] = value

    def drop_answer(self, question_id: str) -> None:
        self._ensure_open()
        self.answers.pop(question_id, None)

    def _ensure_open(self) -> None:
        # 종료 이후 답안지는 동결
        if not self.is_open:
            raise SessionClosed(f"이미 종료된 시험입니다 (상태: {self.status.value}).")
