# Test configuration
import os
import sys
from pathlib import Path

# Project root on sys.path so 'main' and 'ucms' import without installing
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables BEFORE importing app modules
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key-for-testing-only"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"  # Lower rounds for faster tests
os.environ["SEED_ON_STARTUP"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from ucms.database import Base, get_db
from ucms.modules.auth.security import create_access_token, get_password_hash
from ucms.shared.enums import RoleEnum
from ucms.shared.models import User, Student, Professor, Course, Enrollment

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

DEFAULT_PASSWORD = "password123"


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db_session):
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_user(db, username, role, password=DEFAULT_PASSWORD, is_active=True, **profile):
    user = User(
        username=username,
        hashed_password=get_password_hash(password),
        role=role,
        is_active=is_active,
    )
    if role == RoleEnum.STUDENT:
        user.student = Student(**profile)
    elif role == RoleEnum.PROFESSOR:
        user.professor = Professor(**profile)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_course(db, code, professor=None, capacity=30, semester="Fall 2025", credits=3, **fields):
    course = Course(
        code=code,
        title=fields.pop("title", f"{code} title"),
        semester=semester,
        capacity=capacity,
        available_seats=fields.pop("available_seats", capacity),
        credits=credits,
        professor=professor,
        **fields,
    )
    db.add(course)
    db.commit()
    db.refresh(course)
    return course


def make_enrollment(db, student, course, grade=None, enrollment_date=None):
    enrollment = Enrollment(
        student=student,
        course=course,
        grade=grade,
        enrollment_date=enrollment_date or datetime.utcnow(),
    )
    course.available_seats -= 1
    db.add(enrollment)
    db.commit()
    db.refresh(enrollment)
    return enrollment


def auth_headers(user):
    token = create_access_token(data={"sub": user.username, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_user(db_session):
    return make_user(db_session, "admin", RoleEnum.ADMIN)


@pytest.fixture()
def student_user(db_session):
    return make_user(
        db_session, "student@university.edu", RoleEnum.STUDENT,
        student_id="STU0001", name="Alice Student", email="student@university.edu",
        major="Computer Science", year="Sophomore",
    )


@pytest.fixture()
def other_student_user(db_session):
    return make_user(
        db_session, "bob@university.edu", RoleEnum.STUDENT,
        student_id="STU0002", name="Bob Learner", email="bob@university.edu",
    )


@pytest.fixture()
def professor_user(db_session):
    return make_user(
        db_session, "prof", RoleEnum.PROFESSOR,
        employee_id="PRO0001", name="Grace Hopper", email="grace@university.edu",
        department="Computer Science",
    )


@pytest.fixture()
def other_professor_user(db_session):
    return make_user(
        db_session, "prof2", RoleEnum.PROFESSOR,
        employee_id="PRO0002", name="Alan Turing", email="alan@university.edu",
        department="Mathematics",
    )


@pytest.fixture()
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture()
def student_headers(student_user):
    return auth_headers(student_user)


@pytest.fixture()
def professor_headers(professor_user):
    return auth_headers(professor_user)


@pytest.fixture()
def course(db_session, professor_user):
    return make_course(
        db_session, "CS101", professor=professor_user.professor, capacity=30,
        title="Intro to CS", description="Introduction to Computer Science",
        schedule_info="Mon/Wed/Fri 10:00-11:00 AM",
    )


@pytest.fixture()
def full_course(db_session, professor_user):
    """Capacity 1, taken by a student of its own"""
    seat_holder = make_user(
        db_session, "holder@university.edu", RoleEnum.STUDENT,
        student_id="STU0099", name="Seat Holder", email="holder@university.edu",
    )
    course = make_course(db_session, "CS999", professor=professor_user.professor, capacity=1)
    make_enrollment(db_session, seat_holder.student, course)
    return course
