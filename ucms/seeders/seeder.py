#!/usr/bin/env python3
"""
Seeder with the default accounts and sample courses of a fresh database.

Run with: python -m ucms.seeders.seeder
"""
import sys
from datetime import date

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from ..config import settings
from ..database import SessionLocal, engine, Base
from ..logging_config import setup_logging, get_logger
from ..shared.models import User, Student, Professor, Course, Semester, Department
from ..shared.enums import RoleEnum
from ..modules.auth.security import get_password_hash

logger = get_logger(__name__)

DEFAULT_USERS = [
    {"username": "admin", "password": "admin123", "role": RoleEnum.ADMIN},
    {
        "username": "student", "password": "student123", "role": RoleEnum.STUDENT,
        "profile": {
            "student_id": "STU0001", "name": "Student", "email": "student@university.edu",
            "major": "Computer Science", "year": "Sophomore",
        },
    },
    {
        "username": "professor", "password": "professor123", "role": RoleEnum.PROFESSOR,
        "profile": {
            "employee_id": "PRO0001", "name": "Professor", "email": "professor@university.edu",
            "department": "Computer Science",
        },
    },
    {
        "username": "prof2", "password": "prof123", "role": RoleEnum.PROFESSOR,
        "profile": {
            "employee_id": "PRO0002", "name": "Professor prof2", "email": "prof2@university.edu",
            "department": "Computer Science",
        },
    },
]

# Every sample course is taught by prof2
SAMPLE_COURSES = [
    {
        "code": "CS101", "title": "Intro to CS", "description": "Introduction to Computer Science",
        "capacity": 30, "schedule_info": "Mon/Wed/Fri 10:00-11:00 AM",
    },
    {
        "code": "CS102", "title": "Intro to Networking", "description": "Introduction to Computer Networking",
        "capacity": 25, "schedule_info": "Tue/Thu 2:00-4:00 PM",
    },
    {
        "code": "AI100", "title": "Higher Mathematics", "description": "Advanced Mathematical Concepts",
        "capacity": 20, "schedule_info": "Mon/Wed 1:00-3:00 PM",
    },
]

SAMPLE_SEMESTER = "Fall 2025"


def seed_database(db: Session) -> bool:
    """
    Create the default data when the users table is empty.

    Returns True when data was created, False when the database was already seeded.
    """
    if db.query(User).count() > 0:
        logger.info("Database already initialized, skipping seed data")
        return False

    logger.info("Initializing fresh database with default data")

    users = {}
    for user_data in DEFAULT_USERS:
        user = User(
            username=user_data["username"],
            hashed_password=get_password_hash(user_data["password"]),
            role=user_data["role"],
            is_active=True,
        )
        if user_data["role"] == RoleEnum.STUDENT:
            user.student = Student(**user_data["profile"])
        elif user_data["role"] == RoleEnum.PROFESSOR:
            user.professor = Professor(**user_data["profile"])
        db.add(user)
        users[user.username] = user

    for course_data in SAMPLE_COURSES:
        db.add(Course(
            semester=SAMPLE_SEMESTER,
            available_seats=course_data["capacity"],
            credits=settings.default_course_credits,
            professor=users["prof2"].professor,
            **course_data,
        ))

    db.add(Semester(
        name=SAMPLE_SEMESTER, code="F25",
        start_date=date(2025, 9, 1), end_date=date(2025, 12, 19), is_active=True,
    ))
    db.add(Department(name="Computer Science", code="CS", description="Department of Computer Science"))

    db.commit()
    logger.info("Created %d users and %d courses", len(DEFAULT_USERS), len(SAMPLE_COURSES))
    return True


def display_credentials():
    print("\n" + "=" * 60)
    print("DEFAULT ACCOUNTS")
    print("=" * 60)
    for user_data in DEFAULT_USERS:
        print(f"   {user_data['role'].value:<10} {user_data['username']:<10} / {user_data['password']}")
    print("=" * 60)


def main():
    setup_logging(settings.log_level)

    try:
        with engine.connect():
            pass
    except OperationalError as e:
        logger.error("Cannot connect to the database: %s", e)
        sys.exit(1)

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        created = seed_database(db)
    except Exception:
        db.rollback()
        logger.exception("Seeding failed")
        raise
    finally:
        db.close()

    if created:
        display_credentials()


if __name__ == "__main__":
    main()
