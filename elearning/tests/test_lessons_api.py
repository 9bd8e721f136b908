from fastapi.testclient import TestClient
from sqlmodel import Session, select

from elearning.db.schemas import Card, Lesson, LessonParticipant, ReviewEvent, SchedulingState
from elearning.services.review_service import ReviewService


def _auth(profile) -> dict:
    return {"X-User-Id": profile.id}


def test_teacher_creates_lesson(client: TestClient, factory) -> None:
    teacher = factory.profile("teacher")
    resp = client.post(
        "/rpc/create_lesson",
        json={"name": "  Past tense ", "scheduled_at": "2024-04-01T10:00:00Z", "duration_minutes": 45},
        headers=_auth(teacher),
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["name"] == "Past tense"
    assert data["teacher_id"] == teacher.id
    assert data["has_audio"] is False


def test_student_cannot_create_lesson(client: TestClient, factory) -> None:
    student = factory.profile("student")
    resp = client.post(
        "/rpc/create_lesson",
        json={"name": "Mine", "scheduled_at": "2024-04-01T10:00:00Z"},
        headers=_auth(student),
    )
    assert resp.status_code == 403


def test_teacher_lessons_carry_counts(client: TestClient, factory) -> None:
    teacher = factory.profile("teacher")
    lesson = factory.lesson(teacher, name="Colours")
    empty = factory.lesson(teacher, name="Empty")
    for _ in range(2):
        factory.enroll(lesson, factory.profile("student"))
    factory.card(lesson)
    factory.card(lesson, status="pending")
    factory.card(lesson, status="pending")
    factory.lesson(factory.profile("teacher"), name="Someone else's")

    resp = client.post("/rpc/get_teacher_lessons", headers=_auth(teacher))

    assert resp.status_code == 200
    by_name = {item["name"]: item for item in resp.json()}
    assert set(by_name) == {"Colours", "Empty"}
    assert by_name["Colours"]["student_count"] == 2
    assert by_name["Colours"]["card_count"] == 3
    assert by_name["Colours"]["pending_cards"] == 2
    assert by_name["Empty"]["card_count"] == 0
    assert by_name["Empty"]["id"] == empty.id


def test_delete_lesson_keeps_review_history(client: TestClient, session: Session, factory) -> None:
    teacher = factory.profile("teacher")
    student = factory.profile("student")
    lesson = factory.lesson(teacher, name="Animals")
    factory.enroll(lesson, student)
    card = factory.card(lesson)
    ReviewService(session).record_review(student.id, card.id, 4)

    resp = client.post("/rpc/delete_lesson", json={"lesson_id": lesson.id}, headers=_auth(teacher))

    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert "Animals" in resp.json()["message"]
    session.expire_all()
    assert session.get(Lesson, lesson.id) is None
    assert session.exec(select(Card)).all() == []
    assert session.exec(select(LessonParticipant)).all() == []
    assert session.exec(select(SchedulingState)).all() == []
    assert len(session.exec(select(ReviewEvent)).all()) == 1


def test_delete_lesson_errors(client: TestClient, factory) -> None:
    owner = factory.profile("teacher")
    intruder = factory.profile("teacher")
    lesson = factory.lesson(owner)

    missing = client.post("/rpc/delete_lesson", json={"lesson_id": "missing"}, headers=_auth(owner))
    forbidden = client.post("/rpc/delete_lesson", json={"lesson_id": lesson.id}, headers=_auth(intruder))

    assert missing.status_code == 404
    assert missing.json() == {"success": False, "error": "Lesson not found", "code": "not_found"}
    assert forbidden.status_code == 403


def test_enroll_and_remove_student(client: TestClient, factory) -> None:
    teacher = factory.profile("teacher")
    student = factory.profile("student")
    lesson = factory.lesson(teacher)

    added = client.post(
        "/rpc/add_lesson_participant",
        json={"lesson_id": lesson.id, "student_email": student.email.upper()},
        headers=_auth(teacher),
    )
    again = client.post(
        "/rpc/add_lesson_participant",
        json={"lesson_id": lesson.id, "student_email": student.email},
        headers=_auth(teacher),
    )
    removed = client.post(
        "/rpc/remove_lesson_participant",
        json={"lesson_id": lesson.id, "student_id": student.id},
        headers=_auth(teacher),
    )

    assert added.status_code == 201
    assert added.json()["student_id"] == student.id
    assert again.status_code == 409
    assert removed.status_code == 200


def test_enroll_unknown_email(client: TestClient, factory) -> None:
    teacher = factory.profile("teacher")
    lesson = factory.lesson(teacher)
    resp = client.post(
        "/rpc/add_lesson_participant",
        json={"lesson_id": lesson.id, "student_email": "ghost@example.com"},
        headers=_auth(teacher),
    )
    assert resp.status_code == 404
