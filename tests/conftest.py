import os

# before the app module builds its default engine
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from classroom_layout import db_models  # noqa: F401  registers the tables
from classroom_layout import schemas, store
from classroom_layout.database import Base, make_engine
from classroom_layout.db_models import ObjectType
from classroom_layout.main_api import app, get_db


@pytest.fixture
def engine():
    test_engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ─── factories ───

def make_classroom(db, name="Room 101", **overrides):
    data = {
        "name": name,
        "description": None,
        "teacher_name": "Ms. Rivera",
        "canvas_width": 800,
        "canvas_height": 600,
    }
    data.update(overrides)
    return store.create_classroom(db, schemas.ClassroomCreate(**data))


def make_object(db, classroom_id, name="Desk", **overrides):
    data = {
        "classroom_id": classroom_id,
        "type": ObjectType.DESK,
        "name": name,
        "position_x": 10,
        "position_y": 20,
        "width": 60,
        "height": 40,
        "is_assignable": True,
    }
    data.update(overrides)
    return store.create_classroom_object(db, schemas.ClassroomObjectCreate(**data))


def make_desks(db, classroom_id, count):
    return [
        make_object(db, classroom_id, name=f"Desk {i + 1}", position_x=i * 70)
        for i in range(count)
    ]


def make_students(db, count):
    return [
        store.create_student(db, schemas.StudentCreate(name=f"Student {i + 1}", student_id=f"S{i + 1:03d}"))
        for i in range(count)
    ]


@pytest.fixture
def classroom(db):
    return make_classroom(db)
