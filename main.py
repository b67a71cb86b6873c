"""
main.py — CBT 시험 서버 진입점
"""

import os
import sys
import logging

# ── 패키지 경로 설정 (반드시 최상단) ──────────────────────────────────────────
_BASE_DIR = os.path.dirname(os.path.abspath(__file__))
if _BASE_DIR not in sys.path:
    sys.path.insert(0, _BASE_DIR)

from config import LOG_FILE, DEFAULT_HOST, DEFAULT_PORT

# ── 로깅 설정 ────────────────────────────────────────────────────────────────
def setup_logging() -> None:
    try:
        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            handlers=[
                logging.FileHandler(LOG_FILE, encoding='utf-8'),
                logging.StreamHandler(sys.stdout)
            ]
        )
    except PermissionError:
        # 로그 파일 점유 시 콘솔 출력만 사용
        logging.basicConfig(level=logging.INFO)


logger = logging.getLogger(__name__)


def main() -> None:
    setup_logging()
    logger.info("=== Timed Exam CBT Server Started ===")

    import uvicorn
    from api.app import create_app

    app = create_app()
    logger.info(f"Uvicorn 서버 시작 - http://{DEFAULT_HOST}:{DEFAULT_PORT}")
    try:
        uvicorn.run(app, host=DEFAULT_HOST, port=DEFAULT_PORT, log_level="warning")
    except KeyboardInterrupt:
        logger.info("사용자에 의해 종료되었습니다.")


# ── 메인 실행 ────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    main()
