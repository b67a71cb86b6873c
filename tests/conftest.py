"""Shared fixtures for the exam session tests."""
import pytest

from timed_exam_cbt.models.question_model import Exam, Question, QuestionType


class FakeClock:
    """Manually advanced clock returning Unix-style timestamps."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def single(qid: str, correct: str, marks: float = 4, negative: float = 1, subject: str = "maths") -> Question:
    return Question(
        id=qid,
        type=QuestionType.SINGLE_CHOICE,
        options=["A", "B", "C", "D"],
        correct_answer=correct,
        marks=marks,
        negative_marks=negative,
        subject=subject,
    )


def multi(qid: str, correct, marks: float = 4, negative: float = 2, subject: str = "physics") -> Question:
    return Question(
        id=qid,
        type=QuestionType.MULTI_CHOICE,
        options=["A", "B", "C", "D"],
        correct_answer=frozenset(correct),
        marks=marks,
        negative_marks=negative,
        subject=subject,
    )


def numeric(qid: str, correct: str, marks: float = 4, negative: float = 0, subject: str = "chemistry") -> Question:
    return Question(
        id=qid,
        type=QuestionType.NUMERIC,
        correct_answer=correct,
        marks=marks,
        negative_marks=negative,
        subject=subject,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def three_question_exam() -> Exam:
    return Exam(
        id="exam-1",
        title="Three singles",
        duration_seconds=600,
        questions=[single("q1", "A"), single("q2", "B"), single("q3", "C")],
    )


@pytest.fixture
def mixed_exam() -> Exam:
    return Exam(
        id="exam-mixed",
        title="Mixed",
        duration_seconds=1800,
        questions=[
            single("s1", "A", subject="maths"),
            multi("m1", {"A", "C"}, subject="physics"),
            numeric("n1", "42", subject="chemistry"),
        ],
    )
