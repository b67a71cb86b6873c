"""
services/catalog.py — 인메모리 시험 카탈로그

시험 목록과 사용자별 응시 결과를 보관한다.
(사용자, 시험) 쌍마다 결과는 최대 1개. save_result()가 이 규칙을 강제한다.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from timed_exam_cbt.errors import AlreadyAttempted, ExamNotFound
from timed_exam_cbt.models.question_model import Exam, ExamAvailability
from timed_exam_cbt.models.result_model import Result

logger = logging.getLogger(__name__)


class ExamCatalog:
    def __init__(self):
        self._lock = threading.Lock()
        self._exams: Dict[str, Exam] = {}
        self._results: Dict[Tuple[str, str], Result] = {}

    # ── 시험 ──────────────────────────────────────────────────────────────

    def add_exam(self, exam: Exam) -> None:
        """시험 등록. 같은 ID가 있으면 교체한다."""
        with self._lock:
            self._exams[exam.id] = exam
        logger.info(f"시험 등록: {exam.id} ({exam.title or '제목 없음'})")

    def get_exam(self, exam_id: str) -> Exam:
        with self._lock:
            exam = self._exams.get(exam_id)
        if exam is None:
            raise ExamNotFound(f"시험을 찾을 수 없습니다: {exam_id}")
        return exam

    def list_exams(self) -> List[Exam]:
        with self._lock:
            return list(self._exams.values())

    def available_exams(self, user_id: str, now: Optional[datetime] = None) -> List[Exam]:
        """응시 가능 기간 중이고 아직 응시하지 않은 시험."""
        now = now or datetime.now(timezone.utc)
        with self._lock:
            return [
                e for e in self._exams.values()
                if e.availability(now) is ExamAvailability.ACTIVE
                and (user_id, e.id) not in self._results
            ]

    def attempted_exams(self, user_id: str) -> List[Exam]:
        with self._lock:
            return [e for e in self._exams.values() if (user_id, e.id) in self._results]

    # ── 결과 ──────────────────────────────────────────────────────────────

    def has_result(self, user_id: str, exam_id: str) -> bool:
        with self._lock:
            return (user_id, exam_id) in self._results

    def save_result(self, user_id: str, result: Result) -> None:
        """
        결과 저장. 이미 결과가 있으면 AlreadyAttempted.
        같은 Result 객체를 다시 보내는 재시도는 허용한다 (재채점 없이 재전송).
        """
        key = (user_id, result.exam_id)
        with self._lock:
            existing = self._results.get(key)
            if existing is not None:
                if existing == result:
                    return
                raise AlreadyAttempted(result.exam_id)
            self._results[key] = result
        logger.info(f"결과 저장: user={user_id} exam={result.exam_id} ({result.percentage:.1f}%)")

    def get_result(self, user_id: str, exam_id: str) -> Optional[Result]:
        with self._lock:
            return self._results.get((user_id, exam_id))

    def list_results(self, user_id: str) -> List[Result]:
        """사용자의 결과 목록. 제출 시각 순."""
        with self._lock:
            results = [r for (uid, _), r in self._results.items() if uid == user_id]
        return sorted(results, key=lambda r: r.submitted_at)
