from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

# 단일 선택형/주관식 숫자형은 문자열, 복수 선택형은 문자열 집합
Answer = Union[str, FrozenSet[str]]


class QuestionType(str, Enum):
    SINGLE_CHOICE = "single-choice"
    MULTI_CHOICE = "multi-choice"
    NUMERIC = "numeric"

    @property
    def is_choice(self) -> bool:
        return self is not QuestionType.NUMERIC


class ExamAvailability(str, Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    ENDED = "ended"


class Question(BaseModel):
    """
    시험 문제 모델
    Pydantic v2 적용, 세션 중 변경 불가 (frozen)
    """
    id: str = Field(
        ...,
        min_length=1,
        description="문제 ID (시험 내 고유)"
    )
    type: QuestionType = Field(
        ...,
        description="문제 유형 (single-choice / multi-choice / numeric)"
    )
    question_text: str = Field(
        default="",
        description="발문/문제 내용"
    )
    options: Optional[List[str]] = Field(
        default=None,
        description="보기 리스트. 선택형 문제에만 존재"
    )
    correct_answer: Answer = Field(
        ...,
        description="정답. 복수 선택형은 정답 보기의 집합"
    )
    marks: float = Field(
        ...,
        ge=0,
        description="정답 시 배점"
    )
    negative_marks: float = Field(
        default=0,
        ge=0,
        description="응답했으나 틀린 경우 감점 (미응답은 0)"
    )
    subject: str = Field(
        ...,
        min_length=1,
        description="과목 태그 (예: maths, physics, chemistry)"
    )
    explanation: Optional[str] = Field(
        default=None,
        description="해설"
    )

    model_config = {"frozen": True}

    @field_validator("correct_answer", mode="before")
    @classmethod
    def coerce_answer_collection(cls, v):
        """JSON에서 들어온 list/tuple/set 정답은 frozenset으로 통일한다."""
        if isinstance(v, (list, tuple, set)):
            return frozenset(v)
        return v

    @model_validator(mode="after")
    def validate_shape(self) -> "Question":
        """
        검증 로직:
        1. 선택형은 보기가 2개 이상, 숫자형은 보기가 없어야 한다.
        2. 정답 형태가 유형과 일치해야 한다.
        3. 선택형 정답은 반드시 보기 리스트 안에 있어야 한다.
        """
        if self.type.is_choice:
            if not self.options or len(self.options) < 2:
                raise ValueError(f"선택형 문제({self.id})는 보기(options)가 최소 2개 필요합니다.")
        elif self.options:
            raise ValueError(f"숫자형 문제({self.id})에는 보기(options)가 없어야 합니다.")

        if self.type is QuestionType.MULTI_CHOICE:
            if not isinstance(self.correct_answer, frozenset) or not self.correct_answer:
                raise ValueError(f"복수 선택형 문제({self.id})의 정답은 비어 있지 않은 집합이어야 합니다.")
            missing = self.correct_answer - set(self.options)
            if missing:
                raise ValueError(f"정답({sorted(missing)})이 보기 리스트({self.options})에 존재하지 않습니다.")
        else:
            if not isinstance(self.correct_answer, str) or not self.correct_answer.strip():
                raise ValueError(f"문제({self.id})의 정답은 비어 있지 않은 문자열이어야 합니다.")
            if self.type is QuestionType.SINGLE_CHOICE and self.correct_answer not in self.options:
                raise ValueError(f"정답('{self.correct_answer}')이 보기 리스트({self.options})에 존재하지 않습니다.")
        return self


class Exam(BaseModel):
    """
    세션 1회분의 시험 정의. 카탈로그에서 받아온 뒤 변경하지 않는다.

    문제 순서는 표시 순서이자 채점 순서이며 세션 동안 고정된다.
    total_questions가 생략되면 문제 수로 채워지고, 불일치 여부는
    ExamSession.start()에서 확인한다.
    """
    id: str = Field(..., min_length=1, description="시험 ID")
    title: str = Field(default="", description="시험 제목")
    duration_seconds: int = Field(..., gt=0, description="제한 시간 (초)")
    questions: List[Question] = Field(default_factory=list, description="문제 리스트 (순서 고정)")
    total_questions: Optional[int] = Field(default=None, ge=0, description="공지된 문항 수")
    start_date: Optional[datetime] = Field(default=None, description="응시 가능 시작 시각")
    end_date: Optional[datetime] = Field(default=None, description="응시 가능 종료 시각")

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def default_total_questions(cls, data):
        if isinstance(data, dict) and data.get("total_questions") is None:
            data = {**data, "total_questions": len(data.get("questions") or [])}
        return data

    @field_validator("start_date", "end_date")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """타임존 없는 시각은 UTC로 간주 (aware/naive 비교 오류 방지)."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("questions")
    @classmethod
    def validate_unique_ids(cls, v: List[Question]) -> List[Question]:
        seen = set()
        for q in v:
            if q.id in seen:
                raise ValueError(f"문제 ID가 중복되었습니다: {q.id}")
            seen.add(q.id)
        return v

    @property
    def total_marks(self) -> float:
        return sum(q.marks for q in self.questions)

    @property
    def question_index(self) -> Dict[str, Question]:
        return {q.id: q for q in self.questions}

    def get_question(self, question_id: str) -> Optional[Question]:
        return self.question_index.get(question_id)

    def availability(self, now: datetime) -> ExamAvailability:
        """응시 가능 기간 기준 상태. 기간이 지정되지 않은 쪽은 열린 것으로 본다."""
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        if self.start_date is not None and now < self.start_date:
            return ExamAvailability.UPCOMING
        if self.end_date is not None and now > self.end_date:
            return ExamAvailability.ENDED
        return ExamAvailability.ACTIVE
