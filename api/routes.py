"""
api/routes.py — FastAPI 엔드포인트
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Body, HTTPException, Request
from pydantic import BaseModel

import api.session as session
from config import TIMER_WARNING_SECONDS
from timed_exam_cbt.errors import (
    AlreadyAttempted,
    AlreadySubmitted,
    DeadlineExceeded,
    ExamNotFound,
    ExamSessionError,
    InvalidAnswerShape,
    InvalidExam,
    SessionAlreadyStarted,
    SessionClosed,
    UnknownQuestion,
)
from timed_exam_cbt.models.question_model import Exam, ExamAvailability, Question
from timed_exam_cbt.models.result_model import Result
from timed_exam_cbt.services.catalog import ExamCatalog
from timed_exam_cbt.services.exam_adapter import normalize_exam_payload
from timed_exam_cbt.services.exam_service import format_time, get_grade, get_incorrect_questions, is_passed
from timed_exam_cbt.services.session_service import ExamSession

router = APIRouter()

# ── Pydantic request bodies ──────────────────────────────────────────────────

class AnswerBody(BaseModel):
    question_id: str
    answer: str | list[str] | None = None

class FlagBody(BaseModel):
    question_id: str

class NavigateBody(BaseModel):
    index: int = 0


# ── 헬퍼 ─────────────────────────────────────────────────────────────────────

_ERROR_STATUS: dict[type, int] = {
    ExamNotFound: 404,
    UnknownQuestion: 404,
    AlreadyAttempted: 409,
    AlreadySubmitted: 409,
    SessionAlreadyStarted: 409,
    SessionClosed: 400,
    DeadlineExceeded: 410,
    InvalidAnswerShape: 422,
    InvalidExam: 422,
}


def _http_error(e: ExamSessionError) -> HTTPException:
    return HTTPException(status_code=_ERROR_STATUS.get(type(e), 400), detail=str(e))


def _catalog(request: Request) -> ExamCatalog:
    return request.app.state.catalog


def _sid(request: Request) -> str:
    return request.state.session_id


def _live_session(request: Request) -> ExamSession:
    exam_session: ExamSession | None = session.get(_sid(request), "exam_session")
    if exam_session is None:
        raise HTTPException(status_code=404, detail="시험 세션이 없습니다.")
    return exam_session


def _exam_to_dict(exam: Exam, now: datetime) -> dict:
    return {
        "id": exam.id,
        "title": exam.title,
        "duration_seconds": exam.duration_seconds,
        "total_questions": exam.total_questions,
        "total_marks": exam.total_marks,
        "availability": exam.availability(now).value,
    }


def _question_to_dict(q: Question) -> dict:
    # 정답/해설은 응시 중에 내보내지 않는다
    return {
        "id": q.id,
        "type": q.type.value,
        "subject": q.subject,
        "question_text": q.question_text,
        "options": q.options,
        "marks": q.marks,
        "negative_marks": q.negative_marks,
    }


def _result_to_dict(result: Result) -> dict:
    d = result.model_dump(mode="json")
    d.update({"grade": get_grade(result.percentage), "passed": is_passed(result.percentage)})
    return d


def _finalize(exam_session: ExamSession) -> Result:
    """마감 이후 호출 경로: 제출을 마무리하고 결과를 돌려준다."""
    try:
        return exam_session.submit()
    except AlreadySubmitted:
        return exam_session.result
    except ExamSessionError as e:
        raise _http_error(e)


# ── 엔드포인트 ───────────────────────────────────────────────────────────────

@router.get("/api/exams")
async def list_exams(request: Request):
    sid = _sid(request)
    catalog = _catalog(request)
    now = datetime.now(timezone.utc)
    return {
        "available": [_exam_to_dict(e, now) for e in catalog.available_exams(sid, now)],
        "attempted": [_exam_to_dict(e, now) for e in catalog.attempted_exams(sid)],
    }


@router.post("/api/exams/import")
async def import_exam(request: Request, payload: dict = Body(...)):
    try:
        exam = normalize_exam_payload(payload)
    except InvalidExam as e:
        raise _http_error(e)
    _catalog(request).add_exam(exam)
    return {"ok": True, "exam": _exam_to_dict(exam, datetime.now(timezone.utc))}


@router.post("/api/exams/{exam_id}/start")
async def start_exam(exam_id: str, request: Request):
    sid = _sid(request)
    catalog = _catalog(request)
    try:
        exam = catalog.get_exam(exam_id)
    except ExamNotFound as e:
        raise _http_error(e)

    if exam.availability(datetime.now(timezone.utc)) is not ExamAvailability.ACTIVE:
        raise HTTPException(status_code=400, detail="현재 응시할 수 없는 시험입니다.")

    exam_session = ExamSession(
        on_result=lambda r: catalog.save_result(sid, r),
        result_exists=lambda eid: catalog.has_result(sid, eid),
    )
    try:
        state = exam_session.start(exam, prior_result_exists=catalog.has_result(sid, exam_id))
    except ExamSessionError as e:
        raise _http_error(e)

    # 새 응시가 시작된 뒤에야 진행 중이던 응시를 결과 없이 버린다
    current: ExamSession | None = session.get(sid, "exam_session")
    if current is not None:
        current.abandon()
    session.put(sid, "exam_session", exam_session)
    return {
        "ok": True,
        "exam_id": exam.id,
        "total": len(exam.questions),
        "duration_seconds": exam.duration_seconds,
        "deadline": state.deadline,
    }


@router.get("/api/attempt")
async def get_attempt(request: Request):
    exam_session = _live_session(request)
    state, exam = exam_session.state, exam_session.exam
    remaining = exam_session.time_remaining()
    return {
        "exam_id": exam.id,
        "status": "abandoned" if exam_session.is_abandoned else state.status.value,
        "current_quest_index": state.current_quest_index,
        "answers": {k: v if isinstance(v, str) else sorted(v) for k, v in state.answers.items()},
        "flagged_questions": sorted(state.flagged_questions),
        "answered_count": state.answered_count,
        "total": len(exam.questions),
        "question_ids": [q.id for q in exam.questions],
        "time_remaining": remaining,
        "time_display": format_time(remaining),
        "time_warning": remaining < TIMER_WARNING_SECONDS,
        "result": _result_to_dict(exam_session.result) if exam_session.result else None,
    }


@router.get("/api/attempt/question/{index}")
async def get_question(index: int, request: Request):
    exam_session = _live_session(request)
    questions = exam_session.exam.questions
    if not (0 <= index < len(questions)):
        raise HTTPException(status_code=404, detail="문제를 찾을 수 없습니다.")

    q = questions[index]
    state = exam_session.state
    saved = state.answers.get(q.id)
    d = _question_to_dict(q)
    d.update({
        "saved_answer": saved if saved is None or isinstance(saved, str) else sorted(saved),
        "flagged": q.id in state.flagged_questions,
        "index": index,
        "total": len(questions),
    })
    return d


@router.post("/api/attempt/answer")
async def save_answer(body: AnswerBody, request: Request):
    exam_session = _live_session(request)
    try:
        if body.answer in (None, "", []):
            state = exam_session.clear_answer(body.question_id)
        else:
            state = exam_session.answer_question(body.question_id, body.answer)
    except DeadlineExceeded:
        # 시간 초과 → 자동 제출 후 결과 반환
        result = _finalize(exam_session)
        return {"ok": False, "expired": True, "result": _result_to_dict(result)}
    except ExamSessionError as e:
        raise _http_error(e)
    return {"ok": True, "answered_count": state.answered_count}


@router.post("/api/attempt/flag")
async def flag_question(body: FlagBody, request: Request):
    exam_session = _live_session(request)
    try:
        flagged = exam_session.toggle_flag(body.question_id)
    except ExamSessionError as e:
        raise _http_error(e)
    return {"ok": True, "flagged": flagged}


@router.post("/api/attempt/navigate")
async def navigate(body: NavigateBody, request: Request):
    exam_session = _live_session(request)
    try:
        idx = exam_session.navigate(body.index)
    except ExamSessionError as e:
        raise _http_error(e)
    return {"ok": True, "index": idx}


@router.post("/api/attempt/submit")
async def submit_exam(request: Request):
    exam_session = _live_session(request)
    try:
        result = exam_session.submit()
    except ExamSessionError as e:
        raise _http_error(e)
    return {"ok": True, "result": _result_to_dict(result)}


@router.post("/api/attempt/abandon")
async def abandon_exam(request: Request):
    exam_session = _live_session(request)
    exam_session.abandon()
    session.put(_sid(request), "exam_session", None)
    return {"ok": True}


@router.get("/api/results")
async def list_results(request: Request):
    results = _catalog(request).list_results(_sid(request))
    return {"results": [_result_to_dict(r) for r in results]}


@router.get("/api/results/{exam_id}")
async def get_result(exam_id: str, request: Request):
    catalog = _catalog(request)
    result = catalog.get_result(_sid(request), exam_id)
    if result is None:
        raise HTTPException(status_code=404, detail="결과 정보가 없습니다.")

    d = _result_to_dict(result)
    # 오답 노트: 채점이 끝났으므로 정답/해설 공개
    try:
        exam = catalog.get_exam(exam_id)
    except ExamNotFound:
        d["incorrect_questions"] = []
        return d
    incorrect_data = []
    for q in get_incorrect_questions(exam.questions, result.answers):
        item = _question_to_dict(q)
        user_answer = result.answers[q.id]
        item.update({
            "user_answer": user_answer if isinstance(user_answer, str) else sorted(user_answer),
            "correct_answer": q.correct_answer if isinstance(q.correct_answer, str) else sorted(q.correct_answer),
            "explanation": q.explanation,
        })
        incorrect_data.append(item)
    d["incorrect_questions"] = incorrect_data
    return d


@router.post("/api/reset")
async def reset_session(request: Request):
    session.reset(_sid(request))
    return {"ok": True}
