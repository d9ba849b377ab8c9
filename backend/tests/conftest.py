# backend/tests/conftest.py
import os
import tempfile
from types import SimpleNamespace

# Configure the app before anything imports it
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="resit-uploads-")

import pytest
from fastapi.testclient import TestClient

from resit_portal.database import SessionLocal, create_tables, drop_tables
from resit_portal.main import app
from resit_portal.models import (
    Course, Enrollment, Exam, Grade, RESIT_EXAM_TYPE, ResitRegistration, Role, User,
)
from resit_portal.repository import ResitRepository


@pytest.fixture(autouse=True)
def _schema():
    drop_tables()
    create_tables()
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def repo(db):
    return ResitRepository(db)


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def upload_dir():
    return os.environ["UPLOAD_DIR"]


def as_user(user) -> dict:
    return {"X-User-Id": str(user.id)}


def add_grade(db, student, course, score, letter):
    db.add(Grade(student_id=student.id, course_id=course.id, grade=score, letter_grade=letter))
    db.commit()


def add_resit_exam(db, course, **fields):
    exam = Exam(course_id=course.id, exam_type=RESIT_EXAM_TYPE, **fields)
    db.add(exam)
    db.commit()
    return exam


def register(db, student, exam):
    db.add(ResitRegistration(student_id=student.id, exam_id=exam.id))
    db.commit()


@pytest.fixture
def world(db):
    """
    A small term: one secretary, one instructor, four students.
    CS101 is taught by the instructor, MATH201 has no instructor.
    Students s1-s3 are enrolled in both courses; s4 in none.
    """
    secretary = User(email="secretary@uni.example", full_name="Sec", role=Role.FACULTY_SECRETARY)
    instructor = User(email="instructor@uni.example", full_name="Ins", role=Role.INSTRUCTOR)
    other_instructor = User(email="other@uni.example", full_name="Oth", role=Role.INSTRUCTOR)
    students = [
        User(email=f"s{i}@uni.example", full_name=f"Student {i}", role=Role.STUDENT)
        for i in range(1, 5)
    ]
    db.add_all([secretary, instructor, other_instructor, *students])
    db.flush()

    cs101 = Course(code="CS101", name="Intro to CS", instructor_id=instructor.id)
    math201 = Course(code="MATH201", name="Linear Algebra")
    db.add_all([cs101, math201])
    db.flush()

    for student in students[:3]:
        db.add(Enrollment(student_id=student.id, course_id=cs101.id))
        db.add(Enrollment(student_id=student.id, course_id=math201.id))
    db.commit()

    return SimpleNamespace(
        secretary=secretary,
        instructor=instructor,
        other_instructor=other_instructor,
        s1=students[0], s2=students[1], s3=students[2], s4=students[3],
        cs101=cs101,
        math201=math201,
    )
