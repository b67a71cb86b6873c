"""
services/deadline_timer.py

시험 마감 타이머.
threading.Timer(데몬) 하나를 감싸서, 세션 시작 시 무장(arm)하고
제출/만료/포기 등 모든 종료 경로에서 해제(cancel)한다.
"""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class DeadlineTimer:
    """세션당 하나의 마감 콜백을 관리한다."""

    def __init__(self, name: str = "exam"):
        self._name = name
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._fired = threading.Event()

    def arm(self, delay: float, callback: Callable[[], None]) -> None:
        """delay초 뒤 callback을 한 번 호출하도록 예약. 이미 무장된 상태면 RuntimeError."""
        with self._lock:
            if self._timer is not None:
                raise RuntimeError(f"타이머가 이미 무장되어 있습니다: {self._name}")

            def _fire() -> None:
                with self._lock:
                    if self._timer is None:
                        return
                    self._timer = None
                self._fired.set()
                logger.info(f"마감 타이머 만료: {self._name}")
                try:
                    callback()
                except Exception:
                    logger.exception(f"마감 콜백 실행 중 오류: {self._name}")

            self._timer = threading.Timer(max(0.0, delay), _fire)
            self._timer.daemon = True
            self._timer.name = f"deadline-{self._name}"
            self._timer.start()
        logger.debug(f"마감 타이머 무장: {self._name} ({delay:.1f}초 후)")

    def cancel(self) -> bool:
        """예약을 해제한다. 해제할 타이머가 있었으면 True. 여러 번 호출해도 안전."""
        with self._lock:
            timer, self._timer = self._timer, None
        if timer is None:
            return False
        timer.cancel()
        logger.debug(f"마감 타이머 해제: {self._name}")
        return True

    @property
    def is_armed(self) -> bool:
        with self._lock:
            return self._timer is not None

    @property
    def fired(self) -> bool:
        return self._fired.is_set()

    def wait_fired(self, timeout: Optional[float] = None) -> bool:
        return self._fired.wait(timeout)
