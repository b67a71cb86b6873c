"""
api/session.py — 멀티유저 인메모리 세션 (쿠키 기반)

각 브라우저에 UUID 세션 ID를 발급하고, 세션별로 진행 중인 ExamSession을 보관.
세션 ID는 1회 응시 규칙의 사용자 키로도 쓰인다.
TTL 경과 시 자동 만료되며, 이때 진행 중이던 응시는 결과 없이 포기 처리된다.
"""

import threading
import time
import uuid
from typing import Any

from config import SESSION_TTL
from timed_exam_cbt.services.session_service import ExamSession

_lock = threading.Lock()
_sessions: dict[str, dict[str, Any]] = {}
_timestamps: dict[str, float] = {}


def _new_state() -> dict[str, Any]:
    return {
        "exam_session": None,
    }


def _discard(state: dict[str, Any]) -> None:
    """세션 폐기 시 진행 중인 응시의 마감 타이머를 해제."""
    exam_session: ExamSession | None = state.get("exam_session")
    if exam_session is not None:
        exam_session.abandon()


def create_session() -> str:
    """새 세션을 생성하고 세션 ID를 반환."""
    sid = uuid.uuid4().hex
    with _lock:
        _sessions[sid] = _new_state()
        _timestamps[sid] = time.time()
    return sid


def get_session(sid: str) -> dict[str, Any] | None:
    """세션 ID로 세션 데이터를 가져옴. 만료되었거나 없으면 None."""
    expired = None
    with _lock:
        if sid not in _sessions:
            return None
        if time.time() - _timestamps[sid] > SESSION_TTL:
            expired = _sessions.pop(sid)
            del _timestamps[sid]
        else:
            _timestamps[sid] = time.time()  # 접근 시 갱신
            return _sessions[sid]
    _discard(expired)
    return None


def get(sid: str, key: str, default=None):
    """세션에서 값 읽기."""
    session = get_session(sid)
    if session is None:
        return default
    return session.get(key, default)


def put(sid: str, key: str, value) -> None:
    """세션에 값 쓰기."""
    with _lock:
        if sid in _sessions:
            _sessions[sid][key] = value
            _timestamps[sid] = time.time()


def reset(sid: str) -> None:
    """세션 초기화. 진행 중인 응시는 포기 처리."""
    with _lock:
        old = _sessions.get(sid)
        if old is None:
            return
        _sessions[sid] = _new_state()
        _timestamps[sid] = time.time()
    _discard(old)


def cleanup_expired() -> int:
    """만료된 세션을 정리. 제거된 수 반환."""
    now = time.time()
    with _lock:
        expired = [sid for sid, ts in _timestamps.items() if now - ts > SESSION_TTL]
        removed = [_sessions.pop(sid) for sid in expired]
        for sid in expired:
            del _timestamps[sid]
    for state in removed:
        _discard(state)
    return len(removed)
