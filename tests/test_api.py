"""End-to-end tests for the FastAPI layer (api.app / api.routes)."""
import pytest
from fastapi.testclient import TestClient

import api.session as session
from api.app import SESSION_COOKIE, create_app

SAMPLE_ID = "sample-mains-1"


@pytest.fixture
def client() -> TestClient:
    with TestClient(create_app()) as c:
        yield c


def _live_session(client: TestClient):
    return session.get(client.cookies[SESSION_COOKIE], "exam_session")


def test_sample_exam_is_available(client) -> None:
    body = client.get("/api/exams").json()
    assert [e["id"] for e in body["available"]] == [SAMPLE_ID]
    assert body["attempted"] == []
    assert body["available"][0]["total_marks"] == 24


def test_full_attempt_flow(client) -> None:
    resp = client.post(f"/api/exams/{SAMPLE_ID}/start")
    assert resp.status_code == 200
    assert resp.json()["total"] == 6

    question = client.get("/api/attempt/question/0").json()
    assert question["id"] == "m1"
    assert "correct_answer" not in question

    assert client.post("/api/attempt/answer", json={"question_id": "m1", "answer": "2x"}).json()["ok"]
    client.post("/api/attempt/answer", json={"question_id": "m2", "answer": ["7", "2"]})
    client.post("/api/attempt/answer", json={"question_id": "p1", "answer": "Joule"})
    client.post("/api/attempt/answer", json={"question_id": "p2", "answer": " 20 "})
    client.post("/api/attempt/answer", json={"question_id": "c1", "answer": "6"})
    client.post("/api/attempt/answer", json={"question_id": "c1", "answer": ""})

    state = client.get("/api/attempt").json()
    assert state["status"] == "in-progress"
    assert state["answered_count"] == 4
    assert state["answers"]["m2"] == ["2", "7"]

    result = client.post("/api/attempt/submit").json()["result"]
    assert result["status"] == "submitted"
    assert result["correct_answers"] == 3
    assert result["wrong_answers"] == 1
    assert result["unattempted"] == 2
    assert result["obtained_marks"] == 11
    assert result["percentage"] == pytest.approx(11 / 24 * 100)
    assert result["grade"] == "C"
    assert result["subject_wise_score"]["maths"] == {"correct": 2, "total": 2, "marks": 8}

    exams = client.get("/api/exams").json()
    assert exams["available"] == []
    assert [e["id"] for e in exams["attempted"]] == [SAMPLE_ID]
    detail = client.get(f"/api/results/{SAMPLE_ID}").json()
    assert detail["obtained_marks"] == 11
    assert [q["id"] for q in detail["incorrect_questions"]] == ["p1"]
    assert detail["incorrect_questions"][0]["correct_answer"] == "Newton"
    assert detail["incorrect_questions"][0]["user_answer"] == "Joule"


def test_second_attempt_is_refused(client) -> None:
    client.post(f"/api/exams/{SAMPLE_ID}/start")
    client.post("/api/attempt/submit")

    assert client.post("/api/attempt/submit").status_code == 409
    assert client.post(f"/api/exams/{SAMPLE_ID}/start").status_code == 409
    assert client.post("/api/attempt/answer", json={"question_id": "m1", "answer": "2x"}).status_code == 400
    assert len(client.get("/api/results").json()["results"]) == 1


def test_answer_after_deadline_auto_submits(client) -> None:
    client.post(f"/api/exams/{SAMPLE_ID}/start")
    client.post("/api/attempt/answer", json={"question_id": "m1", "answer": "2x"})

    exam_session = _live_session(client)
    exam_session._clock = lambda: exam_session.state.deadline + 5

    body = client.post("/api/attempt/answer", json={"question_id": "p1", "answer": "Newton"}).json()
    assert body["ok"] is False
    assert body["expired"] is True
    assert body["result"]["status"] == "expired"
    assert body["result"]["correct_answers"] == 1
    assert body["result"]["time_taken_seconds"] == 30 * 60
    assert client.get(f"/api/results/{SAMPLE_ID}").status_code == 200


def test_abandon_leaves_no_result(client) -> None:
    client.post(f"/api/exams/{SAMPLE_ID}/start")
    exam_session = _live_session(client)
    assert client.post("/api/attempt/abandon").json()["ok"]

    assert not exam_session.timer.is_armed
    assert client.get(f"/api/results/{SAMPLE_ID}").status_code == 404
    assert client.post(f"/api/exams/{SAMPLE_ID}/start").status_code == 200


def test_invalid_answers_and_questions(client) -> None:
    client.post(f"/api/exams/{SAMPLE_ID}/start")

    assert client.post("/api/attempt/answer", json={"question_id": "m1", "answer": ["2x"]}).status_code == 422
    assert client.post("/api/attempt/answer", json={"question_id": "zz", "answer": "A"}).status_code == 404
    assert client.get("/api/attempt/question/99").status_code == 404


def test_flag_and_navigate(client) -> None:
    client.post(f"/api/exams/{SAMPLE_ID}/start")

    assert client.post("/api/attempt/flag", json={"question_id": "p1"}).json()["flagged"] is True
    assert client.post("/api/attempt/navigate", json={"index": 50}).json()["index"] == 5

    state = client.get("/api/attempt").json()
    assert state["flagged_questions"] == ["p1"]
    assert state["current_quest_index"] == 5


def test_no_attempt_yet(client) -> None:
    assert client.get("/api/attempt").status_code == 404
    assert client.post("/api/exams/unknown/start").status_code == 404


def test_import_exam(client) -> None:
    payload = {
        "_id": "imported",
        "title": "Imported",
        "duration": 5,
        "questions": [
            {"_id": "q1", "questionType": "integer", "correctAnswer": 3, "marks": 2, "subject": "maths"},
        ],
    }
    resp = client.post("/api/exams/import", json=payload)
    assert resp.status_code == 200
    assert resp.json()["exam"]["duration_seconds"] == 300

    assert client.post("/api/exams/import", json={"_id": "bad"}).status_code == 422
    ids = {e["id"] for e in client.get("/api/exams").json()["available"]}
    assert ids == {SAMPLE_ID, "imported"}


def test_refused_start_keeps_live_attempt(client) -> None:
    payload = {
        "_id": "short-quiz",
        "title": "Short quiz",
        "duration": 5,
        "questions": [
            {"_id": "q1", "questionType": "integer", "correctAnswer": 3, "marks": 2, "subject": "maths"},
        ],
    }
    client.post("/api/exams/import", json=payload)
    client.post("/api/exams/short-quiz/start")
    client.post("/api/attempt/submit")

    client.post(f"/api/exams/{SAMPLE_ID}/start")
    client.post("/api/attempt/answer", json={"question_id": "m1", "answer": "2x"})
    live = _live_session(client)

    assert client.post("/api/exams/short-quiz/start").status_code == 409

    assert _live_session(client) is live
    assert not live.is_closed
    assert live.timer.is_armed
    assert client.post("/api/attempt/answer", json={"question_id": "p2", "answer": "20"}).json()["ok"]
    state = client.get("/api/attempt").json()
    assert state["exam_id"] == SAMPLE_ID
    assert state["status"] == "in-progress"
    assert state["answers"] == {"m1": "2x", "p2": "20"}


def test_new_start_replaces_live_attempt(client) -> None:
    client.post(f"/api/exams/{SAMPLE_ID}/start")
    first = _live_session(client)

    assert client.post(f"/api/exams/{SAMPLE_ID}/start").status_code == 200
    assert first.is_abandoned
    assert _live_session(client) is not first
    assert client.get("/api/attempt").json()["status"] == "in-progress"
