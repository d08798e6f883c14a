"""
Tests for the default data seeder
"""
from ucms.seeders import seed_database
from ucms.shared.enums import RoleEnum
from ucms.shared.models import Course, Department, Semester, User


def test_seed_creates_default_data(db_session):
    assert seed_database(db_session) is True

    assert db_session.query(User).count() == 4
    assert db_session.query(User).filter(User.role == RoleEnum.PROFESSOR).count() == 2
    courses = db_session.query(Course).order_by(Course.code).all()
    assert [course.code for course in courses] == ["AI100", "CS101", "CS102"]
    assert all(course.professor.employee_id == "PRO0002" for course in courses)
    assert all(course.available_seats == course.capacity for course in courses)
    assert db_session.query(Semester).one().name == "Fall 2025"
    assert db_session.query(Department).one().code == "CS"


def test_seed_runs_once(db_session):
    seed_database(db_session)

    assert seed_database(db_session) is False
    assert db_session.query(User).count() == 4


def test_seeded_accounts_can_log_in(client, db_session):
    seed_database(db_session)

    for username, password, role in [
        ("admin", "admin123", "ADMIN"),
        ("student", "student123", "STUDENT"),
        ("professor", "professor123", "PROFESSOR"),
        ("prof2", "prof123", "PROFESSOR"),
    ]:
        response = client.post("/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200
        assert response.json()["user"]["role"] == role


def test_seeded_student_sees_catalog(client, db_session):
    seed_database(db_session)
    token = client.post("/auth/login", json={"username": "student", "password": "student123"}).json()["token"]

    body = client.get("/courses", headers={"Authorization": f"Bearer {token}"}).json()

    assert body["totalElements"] == 3
    assert body["content"][0]["professorName"] == "Professor prof2"
