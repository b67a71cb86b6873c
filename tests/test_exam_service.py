"""Tests for timed_exam_cbt.services.exam_service."""
import pytest

from conftest import multi, numeric, single
from timed_exam_cbt.services.exam_service import (
    format_time,
    get_grade,
    get_incorrect_questions,
    grade,
    is_correct,
    is_passed,
)


def test_grade_mixed_correct_wrong_unattempted() -> None:
    questions = [single("q1", "A"), single("q2", "B"), single("q3", "C")]
    breakdown = grade(questions, {"q1": "A", "q2": "X"})

    assert breakdown.correct_answers == 1
    assert breakdown.wrong_answers == 1
    assert breakdown.unattempted == 1
    assert breakdown.obtained_marks == 3
    assert breakdown.total_marks == 12
    assert breakdown.percentage == pytest.approx(25.0)


def test_multi_choice_subset_gets_no_partial_credit() -> None:
    q = multi("m1", {"A", "C"})
    breakdown = grade([q], {"m1": frozenset({"A"})})

    assert breakdown.correct_answers == 0
    assert breakdown.wrong_answers == 1
    assert breakdown.obtained_marks == -2


def test_multi_choice_superset_is_wrong_and_exact_set_is_right() -> None:
    q = multi("m1", {"A", "C"})
    assert not is_correct(q, frozenset({"A", "B", "C"}))
    assert is_correct(q, frozenset({"C", "A"}))


def test_all_unattempted() -> None:
    questions = [single("q1", "A"), multi("m1", {"B"}), numeric("n1", "7")]
    breakdown = grade(questions, {})

    assert breakdown.obtained_marks == 0
    assert breakdown.percentage == 0
    assert breakdown.correct_answers == 0
    assert breakdown.unattempted == 3


def test_zero_mark_question_still_counts_as_correct() -> None:
    questions = [single("q1", "A", marks=0), single("q2", "B")]
    breakdown = grade(questions, {"q1": "A"})

    assert breakdown.correct_answers == 1
    assert breakdown.obtained_marks == 0
    assert breakdown.total_marks == 4


def test_zero_total_marks_gives_zero_percentage() -> None:
    breakdown = grade([single("q1", "A", marks=0)], {"q1": "A"})
    assert breakdown.percentage == 0


def test_obtained_marks_can_go_negative() -> None:
    questions = [single("q1", "A", negative=1), single("q2", "B", negative=1)]
    breakdown = grade(questions, {"q1": "D", "q2": "D"})

    assert breakdown.obtained_marks == -2
    assert breakdown.percentage == pytest.approx(-25.0)


def test_numeric_compares_trimmed_strings_without_coercion() -> None:
    q = numeric("n1", "42")
    assert is_correct(q, " 42 ")
    assert not is_correct(q, "42.0")
    assert not is_correct(q, "042")


def test_single_choice_is_exact_match() -> None:
    q = single("q1", "A")
    assert is_correct(q, "A")
    assert not is_correct(q, "a")
    assert not is_correct(q, frozenset({"A"}))
    assert not is_correct(q, None)


def test_subject_wise_score() -> None:
    questions = [
        single("q1", "A", subject="maths"),
        single("q2", "B", subject="maths"),
        numeric("n1", "5", marks=3, subject="chemistry"),
    ]
    breakdown = grade(questions, {"q1": "A", "q2": "C", "n1": "5"})

    maths = breakdown.subject_wise_score["maths"]
    assert (maths.correct, maths.total, maths.marks) == (1, 2, 4)
    chem = breakdown.subject_wise_score["chemistry"]
    assert (chem.correct, chem.total, chem.marks) == (1, 1, 3)
    assert list(breakdown.subject_wise_score) == ["maths", "chemistry"]


def test_grade_is_deterministic() -> None:
    questions = [single("q1", "A"), multi("m1", {"A", "B"}), numeric("n1", "3")]
    answers = {"q1": "B", "m1": frozenset({"B", "A"}), "n1": "3"}

    first = grade(questions, answers)
    second = grade(questions, answers)
    assert first == second
    assert first.model_dump_json() == second.model_dump_json()


def test_incorrect_questions_exclude_unattempted() -> None:
    questions = [single("q1", "A"), single("q2", "B"), single("q3", "C")]
    wrong = get_incorrect_questions(questions, {"q1": "A", "q2": "D"})
    assert [q.id for q in wrong] == ["q2"]


@pytest.mark.parametrize(
    "percentage, expected",
    [(95, "A+"), (90, "A+"), (85, "A"), (70, "B+"), (65, "B"), (50, "C+"), (40, "C"), (39.9, "D"), (-10, "D")],
)
def test_get_grade(percentage, expected) -> None:
    assert get_grade(percentage) == expected


def test_is_passed() -> None:
    assert is_passed(40.0)
    assert not is_passed(39.99)
    assert is_passed(55, pass_percentage=50)


def test_format_time() -> None:
    assert format_time(0) == "00:00"
    assert format_time(59.9) == "00:59"
    assert format_time(1800) == "30:00"
    assert format_time(-5) == "00:00"
