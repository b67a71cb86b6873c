"""
services/session_service.py

시험 응시 1회의 생명주기 관리 (ExamSession).

  start() → answer_question()/clear_answer() → submit() → Result
                                   └ 마감 타이머 → 자동 submit() (expired)

설계 원칙:
- 세션 인스턴스 하나가 AttemptState 하나를 독점 소유한다.
- 모든 변경 연산은 세션 소유의 RLock 아래에서 직렬화된다.
  수동 제출과 타이머 자동 제출이 경합해도 Result는 정확히 한 번 만들어진다.
- 카탈로그 저장(HTTP 등)은 하지 않는다. 결과가 만들어지면 on_result 콜백에 넘길 뿐.
"""

import logging
import threading
import time
from typing import Callable, Optional

from timed_exam_cbt.errors import (
    AlreadyAttempted,
    AlreadySubmitted,
    DeadlineExceeded,
    ExamSessionError,
    InvalidAnswerShape,
    InvalidExam,
    SessionAlreadyStarted,
    SessionClosed,
    UnknownQuestion,
)
from timed_exam_cbt.models.question_model import Answer, Exam, Question, QuestionType
from timed_exam_cbt.models.result_model import Result
from timed_exam_cbt.models.session_state import AttemptState, AttemptStatus
from timed_exam_cbt.services.deadline_timer import DeadlineTimer
from timed_exam_cbt.services.exam_service import grade

logger = logging.getLogger(__name__)


def _coerce_answer(question: Question, value) -> Answer:
    """답안 형태 검증. 단일/숫자형은 str, 복수 선택형은 str 집합."""
    if question.type is QuestionType.MULTI_CHOICE:
        if not isinstance(value, (list, tuple, set, frozenset)):
            raise InvalidAnswerShape(f"복수 선택형 문제({question.id})의 답안은 보기의 집합이어야 합니다.")
        items = list(value)
        if not items or not all(isinstance(v, str) and v for v in items):
            raise InvalidAnswerShape(f"복수 선택형 문제({question.id})의 답안이 비어 있거나 올바르지 않습니다.")
        return frozenset(items)

    if not isinstance(value, str):
        raise InvalidAnswerShape(
            f"{question.type.value} 문제({question.id})의 답안은 문자열이어야 합니다: {type(value).__name__}"
        )
    if not value.strip():
        raise InvalidAnswerShape(f"문제({question.id})의 답안이 비어 있습니다. 응답 취소는 clear_answer()를 사용하세요.")
    return value


class ExamSession:
    """
    시험 1회 응시를 시작부터 단일 Result까지 진행한다.

    Args:
        clock:         현재 시각 함수 (Unix timestamp). 테스트에서 교체 가능.
        on_result:     Result가 만들어지면 (수동/자동 제출 모두) 호출되는 콜백.
        result_exists: exam_id → 이미 저장된 결과가 있는지. start()/submit()에서 재확인.
        auto_expire:   True이면 start() 시 마감 타이머를 무장한다.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        on_result: Optional[Callable[[Result], None]] = None,
        result_exists: Optional[Callable[[str], bool]] = None,
        auto_expire: bool = True,
    ):
        self._clock = clock
        self._on_result = on_result
        self._result_exists = result_exists
        self._auto_expire = auto_expire

        self._lock = threading.RLock()
        self._timer: Optional[DeadlineTimer] = None
        self._exam: Optional[Exam] = None
        self._state: Optional[AttemptState] = None
        self._result: Optional[Result] = None
        self._abandoned = False

    # ── 조회 ────────────────────────────────────────────────────────────────

    @property
    def exam(self) -> Optional[Exam]:
        return self._exam

    @property
    def state(self) -> Optional[AttemptState]:
        """진행 상태의 사본. 내부 상태는 세션 메서드로만 바뀐다."""
        with self._lock:
            return self._snapshot()

    @property
    def result(self) -> Optional[Result]:
        return self._result

    @property
    def is_abandoned(self) -> bool:
        return self._abandoned

    @property
    def is_closed(self) -> bool:
        """더 이상 답안을 바꿀 수 없는 상태 (제출/만료/포기)."""
        return self._abandoned or self._result is not None

    @property
    def timer(self) -> Optional[DeadlineTimer]:
        return self._timer

    def time_remaining(self) -> float:
        if self._state is None:
            return 0.0
        return self._state.time_remaining(self._clock())

    # ── 상태 전이 ──────────────────────────────────────────────────────────

    def start(self, exam: Exam, prior_result_exists: bool) -> AttemptState:
        """
        응시를 시작하고 초기 AttemptState를 반환한다.

        Raises:
            SessionAlreadyStarted: 이 세션으로 이미 시작한 경우.
            InvalidExam:           문제가 없거나 문항 수가 공지와 다른 경우.
            AlreadyAttempted:      이미 결과가 존재하는 시험.
        """
        with self._lock:
            if self._state is not None or self._abandoned:
                raise SessionAlreadyStarted("이 세션은 이미 시작되었습니다.")
            if not exam.questions:
                raise InvalidExam(f"문제가 없는 시험입니다: {exam.id}")
            if len(exam.questions) != exam.total_questions:
                raise InvalidExam(
                    f"문항 수 불일치: 공지 {exam.total_questions}개, 실제 {len(exam.questions)}개 ({exam.id})"
                )
            if prior_result_exists or (self._result_exists is not None and self._result_exists(exam.id)):
                raise AlreadyAttempted(exam.id)

            started_at = self._clock()
            self._exam = exam
            self._state = AttemptState(
                exam_id=exam.id,
                started_at=started_at,
                deadline=started_at + exam.duration_seconds,
            )
            if self._auto_expire:
                self._timer = DeadlineTimer(exam.id)
                self._timer.arm(exam.duration_seconds, self._expire)

            logger.info(f"시험 시작: {exam.id} (문항 {len(exam.questions)}개, 제한 {exam.duration_seconds}초)")
            return self._snapshot()

    def answer_question(self, question_id: str, value) -> AttemptState:
        """
        답안을 저장(덮어쓰기 허용)한다.

        Raises:
            SessionClosed:      종료된 세션.
            DeadlineExceeded:   마감 이후 호출. 호출자는 submit()으로 마무리해야 한다.
            UnknownQuestion:    시험에 없는 문제 ID.
            InvalidAnswerShape: 문제 유형과 맞지 않는 답안.
        """
        with self._lock:
            state, question = self._writable(question_id)
            state.put_answer(question_id, _coerce_answer(question, value))
            return self._snapshot()

    def clear_answer(self, question_id: str) -> AttemptState:
        """답안을 지워 미응답으로 되돌린다. 답안이 없으면 아무 일도 하지 않는다."""
        with self._lock:
            state, _ = self._writable(question_id)
            state.drop_answer(question_id)
            return self._snapshot()

    def submit(self, now: Optional[float] = None) -> Result:
        """
        채점하고 세션을 종료한다. 세션당 한 번만 호출할 수 있다.

        now가 마감 시각 이상이면 상태는 expired, 아니면 submitted.
        채점 결과는 두 경우 모두 동일하다.

        Raises:
            AlreadySubmitted: 두 번째 호출. 첫 번째 Result는 변하지 않는다.
            SessionClosed:    시작 전이거나 포기한 세션.
            AlreadyAttempted: 그 사이 다른 세션이 결과를 저장한 경우. 세션은 결과 없이 닫힌다.
        """
        with self._lock:
            if self._result is not None:
                raise AlreadySubmitted(f"이미 제출된 시험입니다: {self._result.exam_id}")
            if self._state is None or self._abandoned:
                raise SessionClosed("시작되지 않았거나 포기한 세션은 제출할 수 없습니다.")

            exam, state = self._exam, self._state
            if self._result_exists is not None and self._result_exists(exam.id):
                logger.warning(f"제출 시점 중복 응시 감지: {exam.id}")
                self._close_without_result()
                raise AlreadyAttempted(exam.id)

            if now is None:
                now = self._clock()
            status = AttemptStatus.EXPIRED if now >= state.deadline else AttemptStatus.SUBMITTED

            breakdown = grade(exam.questions, state.answers)
            state.status = status
            if self._timer is not None:
                self._timer.cancel()

            self._result = Result(
                **breakdown.model_dump(),
                exam_id=exam.id,
                exam_title=exam.title,
                status=status,
                time_taken_seconds=max(0, round(min(now, state.deadline) - state.started_at)),
                submitted_at=now,
                answers=dict(state.answers),
            )
            logger.info(
                f"시험 종료: {exam.id} ({status.value}) - "
                f"{breakdown.obtained_marks}/{breakdown.total_marks}점, {breakdown.percentage:.1f}%"
            )

            if self._on_result is not None:
                self._on_result(self._result)
            return self._result

    def abandon(self) -> None:
        """결과 없이 세션을 버린다. 타이머를 해제하며 여러 번 호출해도 안전."""
        with self._lock:
            if self._result is not None or self._abandoned:
                return
            self._close_without_result()
            logger.info(f"시험 포기: {self._exam.id if self._exam else '-'}")

    # ── 진행 보조 ──────────────────────────────────────────────────────────

    def navigate(self, index: int) -> int:
        """현재 문제 인덱스 이동. 범위를 벗어나면 양 끝으로 보정."""
        with self._lock:
            state = self._open_state()
            last = len(self._exam.questions) - 1
            state.current_quest_index = max(0, min(index, last))
            return state.current_quest_index

    def toggle_flag(self, question_id: str) -> bool:
        """다시 보기 표시를 토글한다. 표시된 상태가 되면 True."""
        with self._lock:
            state = self._open_state()
            if self._exam.get_question(question_id) is None:
                raise UnknownQuestion(question_id)
            if question_id in state.flagged_questions:
                state.flagged_questions.discard(question_id)
                return False
            state.flagged_questions.add(question_id)
            return True

    # ── 내부 ──────────────────────────────────────────────────────────────

    def _snapshot(self) -> Optional[AttemptState]:
        if self._state is None:
            return None
        return self._state.model_copy(deep=True)

    def _open_state(self) -> AttemptState:
        if self._state is None:
            raise SessionClosed("시작되지 않은 세션입니다.")
        if self.is_closed:
            raise SessionClosed(f"이미 종료된 시험입니다: {self._state.exam_id}")
        return self._state

    def _writable(self, question_id: str):
        state = self._open_state()
        if self._clock() >= state.deadline:
            raise DeadlineExceeded(f"시험 시간이 종료되었습니다: {state.exam_id}")
        question = self._exam.get_question(question_id)
        if question is None:
            raise UnknownQuestion(question_id)
        return state, question

    def _close_without_result(self) -> None:
        self._abandoned = True
        if self._timer is not None:
            self._timer.cancel()

    def _expire(self) -> None:
        """마감 타이머 콜백 (타이머 스레드). 이미 종료된 세션이면 무시."""
        with self._lock:
            if self.is_closed:
                logger.info(f"마감 타이머 도착 시 이미 종료된 세션: {self._state.exam_id}")
                return
            try:
                self.submit(now=max(self._clock(), self._state.deadline))
            except ExamSessionError as e:
                logger.warning(f"자동 제출 실패: {self._state.exam_id} - {e}")
