"""
services/exam_adapter.py

카탈로그 응답(JSON) → Exam 변환 어댑터.

카탈로그 API는 같은 시험을 여러 형태로 돌려준다.
  - {"success": true, "data": {...}} 봉투 / 봉투 없는 객체
  - "_id" / "id"
  - questionType "mcq" | "multiple" | "integer" (또는 표준 이름)
  - 보기가 문자열 또는 {"text": ..., "isCorrect": ...} 객체
  - correctAnswer가 문자열 / 객체 / 리스트, 혹은 생략되고 보기의 isCorrect로만 표시
  - duration(분) / durationSeconds(초)
이런 변형은 모두 여기서 정리하고, ExamSession에는 표준 Exam만 넘긴다.
"""

import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from timed_exam_cbt.errors import InvalidExam
from timed_exam_cbt.models.question_model import Exam, QuestionType

logger = logging.getLogger(__name__)

_TYPE_ALIASES = {
    "mcq": QuestionType.SINGLE_CHOICE,
    "single": QuestionType.SINGLE_CHOICE,
    "single-choice": QuestionType.SINGLE_CHOICE,
    "multiple": QuestionType.MULTI_CHOICE,
    "multi": QuestionType.MULTI_CHOICE,
    "multi-choice": QuestionType.MULTI_CHOICE,
    "integer": QuestionType.NUMERIC,
    "numeric": QuestionType.NUMERIC,
}


def _first(d: Dict[str, Any], *keys, default=None):
    for k in keys:
        if d.get(k) is not None:
            return d[k]
    return default


def _choice_text(value: Any) -> str:
    """보기/정답 객체에서 표시 문자열을 꺼낸다 (text → label → _id 순)."""
    if isinstance(value, dict):
        text = _first(value, "text", "label", "_id")
        if text is None:
            raise InvalidExam(f"보기 객체에 text가 없습니다: {value}")
        return str(text)
    return str(value)


def _normalize_question(raw: Dict[str, Any], index: int) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise InvalidExam(f"{index + 1}번 문제 형식이 올바르지 않습니다.")

    type_name = str(_first(raw, "questionType", "type", default="")).lower()
    qtype = _TYPE_ALIASES.get(type_name)
    if qtype is None:
        raise InvalidExam(f"{index + 1}번 문제의 유형을 알 수 없습니다: '{type_name}'")

    raw_options: List[Any] = raw.get("options") or []
    options: Optional[List[str]] = [_choice_text(o) for o in raw_options] if qtype.is_choice else None

    correct = _first(raw, "correctAnswer", "correct_answer")
    if correct is None and qtype.is_choice:
        # 정답이 보기 객체의 isCorrect로만 표시된 경우
        correct = [o for o in raw_options if isinstance(o, dict) and o.get("isCorrect")]
        if qtype is QuestionType.SINGLE_CHOICE and len(correct) == 1:
            correct = correct[0]

    if qtype is QuestionType.MULTI_CHOICE:
        items = correct if isinstance(correct, (list, tuple, set)) else [correct]
        correct = [_choice_text(c) for c in items if c is not None]
    elif correct is not None:
        if isinstance(correct, (list, tuple)):
            if len(correct) != 1:
                raise InvalidExam(f"{index + 1}번 문제의 정답은 하나여야 합니다.")
            correct = correct[0]
        correct = _choice_text(correct)

    return {
        "id": str(_first(raw, "_id", "id", default=f"q{index + 1}")),
        "type": qtype,
        "question_text": _first(raw, "questionText", "question_text", "text", default=""),
        "options": options,
        "correct_answer": correct,
        "marks": _first(raw, "marks", default=0),
        "negative_marks": _first(raw, "negativeMarks", "negative_marks", default=0),
        "subject": _first(raw, "subject", default="general"),
        "explanation": raw.get("explanation"),
    }


def normalize_exam_payload(payload: Dict[str, Any]) -> Exam:
    """
    카탈로그 응답 한 건을 Exam으로 변환한다.

    Raises:
        InvalidExam: 실패 응답이거나 필수 값이 없거나 모델 검증에 실패한 경우.
    """
    if not isinstance(payload, dict):
        raise InvalidExam("시험 데이터 형식이 올바르지 않습니다.")
    if payload.get("success") is False:
        raise InvalidExam(payload.get("message") or "시험 정보를 가져오지 못했습니다.")

    data = _first(payload, "data", "exam", default=payload)
    if not isinstance(data, dict):
        raise InvalidExam("시험 데이터 형식이 올바르지 않습니다.")

    if _first(data, "durationSeconds", "duration_seconds") is not None:
        duration = int(_first(data, "durationSeconds", "duration_seconds"))
    elif data.get("duration") is not None:
        duration = int(float(data["duration"]) * 60)
    else:
        raise InvalidExam("시험 제한 시간(duration)이 없습니다.")

    raw_questions = data.get("questions") or []
    if not isinstance(raw_questions, list):
        raise InvalidExam("questions는 리스트여야 합니다.")

    try:
        exam = Exam(
            id=str(_first(data, "_id", "id", default="")),
            title=_first(data, "title", default=""),
            duration_seconds=duration,
            questions=[_normalize_question(q, i) for i, q in enumerate(raw_questions)],
            total_questions=_first(data, "totalQuestions", "total_questions"),
            start_date=_first(data, "startDate", "start_date"),
            end_date=_first(data, "endDate", "end_date"),
        )
    except ValidationError as e:
        logger.warning(f"시험 데이터 검증 실패: {e.error_count()}건")
        raise InvalidExam(f"시험 데이터 검증 실패: {e}") from e

    logger.debug(f"시험 변환 완료: {exam.id} (문항 {len(exam.questions)}개)")
    return exam
