"""
errors.py

시험 세션 도메인 예외 모음.
모든 예외는 ExamSessionError를 상속하며, 코어는 이를 동기적으로 raise만 하고
재시도하지 않는다. HTTP 상태 코드 변환은 api 레이어의 몫.
"""


class ExamSessionError(Exception):
    """시험 세션 관련 예외의 최상위 클래스."""


class InvalidExam(ExamSessionError):
    """시험 정의가 세션을 시작할 수 없는 형태 (문제 없음, 문항 수 불일치 등)."""


class ExamNotFound(ExamSessionError):
    """카탈로그에 없는 시험 ID."""


class AlreadyAttempted(ExamSessionError):
    """같은 (사용자, 시험) 쌍에 대해 이미 결과가 존재함. 1회 응시 규칙 위반."""

    def __init__(self, exam_id: str):
        super().__init__(f"이미 응시한 시험입니다: {exam_id}")
        self.exam_id = exam_id


class SessionAlreadyStarted(ExamSessionError):
    """한 ExamSession 인스턴스로 start()를 두 번 호출함."""


class SessionClosed(ExamSessionError):
    """종료(제출/만료/포기)된 세션에 대한 변경 시도. 호출자 버그로 취급."""


class DeadlineExceeded(ExamSessionError):
    """마감 시각 이후의 답안 변경 시도. 호출자는 submit()으로 마무리해야 한다."""


class AlreadySubmitted(ExamSessionError):
    """submit() 두 번째 호출. 첫 번째 Result는 그대로 유지된다."""


class UnknownQuestion(ExamSessionError):
    """시험에 존재하지 않는 문제 ID."""

    def __init__(self, question_id: str):
        super().__init__(f"존재하지 않는 문제입니다: {question_id}")
        self.question_id = question_id


class InvalidAnswerShape(ExamSessionError):
    """답안 형태가 문제 유형과 맞지 않음 (예: 단일 선택형에 집합 전달)."""
