from datetime import datetime, timedelta, timezone
from typing import Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from elearning.api.dependencies import get_session
from elearning.db.schemas import Card, Lesson, LessonParticipant, Profile
from elearning.main import app

NOW = datetime(2024, 3, 15, 9, 0, tzinfo=timezone.utc)


@pytest.fixture(name="session")
def session_fixture() -> Generator[Session, None, None]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="client")
def client_fixture(session: Session) -> Generator[TestClient, None, None]:
    def override_get_session() -> Generator[Session, None, None]:
        yield session

    app.dependency_overrides[get_session] = override_get_session
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


class Factory:
    def __init__(self, session: Session) -> None:
        self.session = session
        self._counter = 0

    def _save(self, entity):
        self.session.add(entity)
        self.session.commit()
        self.session.refresh(entity)
        return entity

    def profile(self, role: str = "student", name: Optional[str] = None) -> Profile:
        self._counter += 1
        name = name or f"{role.title()} {self._counter}"
        return self._save(Profile(email=f"{role}{self._counter}@example.com", name=name, role=role))

    def lesson(self, teacher: Profile, name: str = "Lesson", created_at: Optional[datetime] = None) -> Lesson:
        lesson = Lesson(teacher_id=teacher.id, name=name, scheduled_at=NOW)
        if created_at is not None:
            lesson.created_at = created_at
        return self._save(lesson)

    def enroll(self, lesson: Lesson, student: Profile, enrolled_at: Optional[datetime] = None) -> LessonParticipant:
        participant = LessonParticipant(lesson_id=lesson.id, student_id=student.id)
        if enrolled_at is not None:
            participant.enrolled_at = enrolled_at
        return self._save(participant)

    def card(
        self,
        lesson: Lesson,
        status: str = "approved",
        front: Optional[str] = None,
        created_at: Optional[datetime] = None,
        tags: Optional[List[str]] = None,
    ) -> Card:
        self._counter += 1
        card = Card(
            lesson_id=lesson.id,
            created_by=lesson.teacher_id,
            front_content=front or f"Front {self._counter}",
            back_content=f"Back {self._counter}",
            tags=tags or [],
            status=status,
            created_at=created_at or NOW - timedelta(days=30) + timedelta(minutes=self._counter),
        )
        if status == "approved":
            card.approved_by = lesson.teacher_id
            card.approved_at = card.created_at
        return self._save(card)


@pytest.fixture(name="factory")
def factory_fixture(session: Session) -> Factory:
    return Factory(session)


@pytest.fixture(name="now")
def now_fixture() -> datetime:
    return NOW
