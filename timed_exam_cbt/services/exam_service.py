"""
services/exam_service.py

시험 채점 및 결과 분석 비즈니스 로직.
순수 Python 함수로 구성 — UI 코드, 전역 상태 변경, I/O 없음.
"""

from typing import Dict, List, Mapping, Optional

import config
from timed_exam_cbt.models.question_model import Answer, Question, QuestionType
from timed_exam_cbt.models.result_model import ScoreBreakdown, SubjectScore

_GRADE_BANDS = (
    (90.0, "A+"),
    (80.0, "A"),
    (70.0, "B+"),
    (60.0, "B"),
    (50.0, "C+"),
    (40.0, "C"),
)


def is_correct(question: Question, answer: Optional[Answer]) -> bool:
    """
    단일 문제 정답 판정.

    - single-choice: 문자열 완전 일치
    - numeric:       양쪽 공백 제거 후 문자열 완전 일치 (float 변환 없음)
    - multi-choice:  집합 완전 일치 (부분 점수 없음)
    응답하지 않은 문제(None)는 항상 False.
    """
    if answer is None:
        return False

    if question.type is QuestionType.MULTI_CHOICE:
        if isinstance(answer, str):
            return False
        return frozenset(answer) == question.correct_answer

    if not isinstance(answer, str):
        return False
    if question.type is QuestionType.NUMERIC:
        return answer.strip() == question.correct_answer.strip()
    return answer == question.correct_answer


def grade(
    questions: List[Question],
    answers: Mapping[str, Answer],
) -> ScoreBreakdown:
    """
    사용자 답안을 채점하여 ScoreBreakdown을 반환한다.

    응시 판정 기준: answers에 question.id 키가 있으면 응시.
    정답이면 +marks, 응시했으나 오답이면 -negative_marks, 미응답은 0.
    획득 점수는 0 미만으로 내려갈 수 있다 (하한 없음).

    Args:
        questions: 채점 대상 Question 리스트 (출제 순서).
        answers:   사용자 답안지. {question.id: 답안}

    Returns:
        ScoreBreakdown. 과목별 집계 순서는 문제 순서상 첫 등장 순.
    """
    correct_count = 0
    wrong_count = 0
    total_marks = 0.0
    obtained_marks = 0.0
    buckets: Dict[str, Dict[str, float]] = {}

    for q in questions:
        bucket = buckets.setdefault(q.subject, {"correct": 0, "total": 0, "marks": 0.0})
        bucket["total"] += 1
        total_marks += q.marks

        if q.id not in answers:
            continue
        if is_correct(q, answers[q.id]):
            correct_count += 1
            obtained_marks += q.marks
            bucket["correct"] += 1
            bucket["marks"] += q.marks
        else:
            wrong_count += 1
            obtained_marks -= q.negative_marks

    percentage = obtained_marks / total_marks * 100 if total_marks else 0.0

    return ScoreBreakdown(
        total_questions=len(questions),
        correct_answers=correct_count,
        wrong_answers=wrong_count,
        unattempted=len(questions) - correct_count - wrong_count,
        total_marks=total_marks,
        obtained_marks=obtained_marks,
        percentage=percentage,
        subject_wise_score={
            subj: SubjectScore(correct=int(b["correct"]), total=int(b["total"]), marks=b["marks"])
            for subj, b in buckets.items()
        },
    )


def get_incorrect_questions(
    questions: List[Question],
    answers: Mapping[str, Answer],
) -> List[Question]:
    """
    오답 문제 리스트를 반환한다 (오답 노트용).

    오답 판정 기준: 응답했으나 정답과 다른 경우.
    미응답 문제는 감점 대상이 아니므로 제외한다.

    Returns:
        오답 Question 리스트. 원본 순서 유지.
    """
    return [
        q for q in questions
        if q.id in answers and not is_correct(q, answers[q.id])
    ]


def get_grade(percentage: float) -> str:
    """백분율 → 등급 배지 (A+ ~ D)."""
    for threshold, label in _GRADE_BANDS:
        if percentage >= threshold:
            return label
    return "D"


def is_passed(percentage: float, pass_percentage: float = config.PASS_PERCENTAGE) -> bool:
    """
    합격 여부를 반환한다.

    Args:
        percentage:      Result.percentage (감점으로 음수 가능).
        pass_percentage: 합격 기준 백분율.
    """
    return percentage >= pass_percentage


def format_time(seconds: float) -> str:
    """남은 시간 → 'MM:SS'. 음수는 0으로 본다."""
    remaining = max(0, int(seconds))
    return f"{remaining // 60:02d}:{remaining % 60:02d}"
