"""
api/app.py — FastAPI 앱 인스턴스 + 세션 미들웨어 + 시험 카탈로그
"""

import logging
import threading
import time

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from config import CLEANUP_INTERVAL, SESSION_TTL
from api.routes import router
from api.sample_exams import SAMPLE_EXAMS
import api.session as session
from timed_exam_cbt.services.catalog import ExamCatalog
from timed_exam_cbt.services.exam_adapter import normalize_exam_payload

SESSION_COOKIE = "cbt_session"

logger = logging.getLogger(__name__)


def create_app(catalog: ExamCatalog | None = None, seed_samples: bool = True) -> FastAPI:
    app = FastAPI(title="Timed Exam CBT", docs_url=None, redoc_url=None)

    # 시험 카탈로그 (기본: 인메모리 + 샘플 시험)
    if catalog is None:
        catalog = ExamCatalog()
        if seed_samples:
            for payload in SAMPLE_EXAMS:
                catalog.add_exam(normalize_exam_payload(payload))
    app.state.catalog = catalog

    # CORS (모바일 브라우저 등 다양한 출처 허용)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 세션 미들웨어: 쿠키에서 세션 ID를 읽고, 없으면 새로 발급
    @app.middleware("http")
    async def session_middleware(request: Request, call_next):
        sid = request.cookies.get(SESSION_COOKIE)
        if not sid or session.get_session(sid) is None:
            sid = session.create_session()

        request.state.session_id = sid
        response: Response = await call_next(request)
        response.set_cookie(
            key=SESSION_COOKIE,
            value=sid,
            httponly=True,
            samesite="lax",
            max_age=SESSION_TTL,
        )
        return response

    app.include_router(router)

    @app.get("/")
    async def index():
        return {"app": "Timed Exam CBT", "exams": len(app.state.catalog.list_exams())}

    # 만료 세션 주기적 정리 (진행 중 응시의 타이머도 함께 해제)
    def _cleanup_loop():
        while True:
            time.sleep(CLEANUP_INTERVAL)
            removed = session.cleanup_expired()
            if removed:
                logger.info(f"만료 세션 {removed}개 정리")

    t = threading.Thread(target=_cleanup_loop, daemon=True)
    t.start()

    return app
