import os

# 기본 디렉토리 설정
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# 경로 설정
LOG_FILE = os.path.join(BASE_DIR, "launch.log")

# 서버 설정
DEFAULT_HOST = os.getenv("HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("PORT", "8000"))

# 세션 설정
SESSION_TTL = 3600          # 브라우저 세션 만료 (1시간, 마지막 접근 기준)
CLEANUP_INTERVAL = 300      # 만료 세션 정리 주기 (5분)

# 시험 설정
PASS_PERCENTAGE = 40.0          # 합격 기준 백분율 (C 등급 하한)
TIMER_WARNING_SECONDS = 300     # 남은 시간이 이보다 적으면 경고 표시 (5분)
