"""
Tests for user and student administration
"""
import pytest

from ucms.modules.auth.security import verify_password
from ucms.shared.enums import RoleEnum
from ucms.shared.models import Course, Enrollment, Student, User

from conftest import make_enrollment, make_user


def user_payload(**overrides):
    data = {
        "username": "carol@university.edu",
        "password": "secret123",
        "role": "STUDENT",
        "name": "Carol Student",
        "email": "carol@university.edu",
    }
    data.update(overrides)
    return data


class TestUserListing:
    def test_requires_admin(self, client, professor_headers):
        assert client.get("/admin/users", headers=professor_headers).status_code == 403

    def test_role_filter(self, client, admin_headers, student_user, professor_user):
        body = client.get("/admin/users", headers=admin_headers, params={"role": "professor"}).json()

        assert body["totalElements"] == 1
        user = body["content"][0]
        assert user["username"] == "prof"
        assert user["employeeId"] == "PRO0001"
        assert user["department"] == "Computer Science"
        assert user["active"] is True

    def test_unknown_role(self, client, admin_headers):
        response = client.get("/admin/users", headers=admin_headers, params={"role": "janitor"})

        assert response.status_code == 400

    def test_search_by_profile_name(self, client, admin_headers, student_user, other_student_user, professor_user):
        body = client.get("/admin/users", headers=admin_headers, params={"search": "hopper"}).json()

        assert [user["name"] for user in body["content"]] == ["Grace Hopper"]

    def test_search_by_student_id(self, client, admin_headers, student_user, other_student_user):
        body = client.get("/admin/users", headers=admin_headers, params={"search": "STU0002"}).json()

        assert [user["studentId"] for user in body["content"]] == ["STU0002"]

    def test_students_and_professors_pages(self, client, admin_headers, student_user, other_student_user,
                                           professor_user):
        students = client.get("/admin/students", headers=admin_headers).json()
        professors = client.get("/admin/professors", headers=admin_headers).json()

        assert students["totalElements"] == 2
        assert professors["totalElements"] == 1

    def test_user_stats(self, client, admin_headers, student_user, other_student_user, professor_user):
        body = client.get("/admin/stats", headers=admin_headers).json()

        assert body == {"totalUsers": 4, "totalStudents": 2, "totalProfessors": 1, "totalAdmins": 1}

    def test_get_missing_user(self, client, admin_headers):
        assert client.get("/admin/users/999", headers=admin_headers).status_code == 404


class TestUserCreate:
    def test_student_gets_next_student_id(self, client, admin_headers, student_user):
        response = client.post("/admin/users", headers=admin_headers, json=user_payload())

        assert response.status_code == 201
        body = response.json()
        assert body["role"] == "STUDENT"
        assert body["studentId"] == "STU0002"
        assert body["name"] == "Carol Student"

    def test_generated_id_skips_taken_ids(self, client, db_session, admin_headers):
        make_user(
            db_session, "odd@university.edu", RoleEnum.STUDENT,
            student_id="STU0001", name="Odd", email="odd@university.edu",
        )
        make_user(
            db_session, "odder@university.edu", RoleEnum.STUDENT,
            student_id="STU0003", name="Odder", email="odder@university.edu",
        )

        body = client.post("/admin/users", headers=admin_headers, json=user_payload()).json()

        assert body["studentId"] == "STU0004"

    def test_professor_profile(self, client, admin_headers):
        response = client.post("/admin/users", headers=admin_headers, json=user_payload(
            username="linus", role="PROFESSOR", name="Linus T", email="linus@university.edu",
            department="Systems",
        ))

        assert response.status_code == 201
        assert response.json()["employeeId"] == "PRO0001"
        assert response.json()["department"] == "Systems"

    def test_new_user_can_log_in(self, client, admin_headers):
        client.post("/admin/users", headers=admin_headers, json=user_payload())

        response = client.post("/auth/login", json={"username": "carol@university.edu", "password": "secret123"})

        assert response.status_code == 200

    def test_duplicate_username(self, client, admin_headers, student_user):
        response = client.post("/admin/users", headers=admin_headers, json=user_payload(
            username="student@university.edu",
        ))

        assert response.status_code == 400
        assert response.json()["message"] == "Username already exists"

    def test_duplicate_email(self, client, admin_headers, student_user):
        response = client.post("/admin/users", headers=admin_headers, json=user_payload(
            email="student@university.edu",
        ))

        assert response.status_code == 400

    def test_short_password(self, client, admin_headers):
        response = client.post("/admin/users", headers=admin_headers, json=user_payload(password="123"))

        assert response.status_code == 422


class TestUserUpdate:
    def test_update_profile_and_disable(self, client, db_session, admin_headers, student_user):
        response = client.put(f"/admin/users/{student_user.id}", headers=admin_headers, json={
            "username": "student@university.edu",
            "role": "STUDENT",
            "name": "Alice Renamed",
            "email": "alice@university.edu",
            "active": False,
        })

        assert response.status_code == 200
        assert response.json()["name"] == "Alice Renamed"
        assert response.json()["active"] is False
        db_session.expire_all()
        assert db_session.get(Student, student_user.id).email == "alice@university.edu"

    def test_blank_password_keeps_old_one(self, client, db_session, admin_headers, professor_user):
        client.put(f"/admin/users/{professor_user.id}", headers=admin_headers, json={
            "username": "prof",
            "password": "",
            "role": "PROFESSOR",
            "name": "Grace Hopper",
            "email": "grace@university.edu",
        })

        db_session.expire_all()
        assert verify_password("password123", db_session.get(User, professor_user.id).hashed_password)

    def test_short_password_is_rejected(self, client, admin_headers, professor_user):
        response = client.put(f"/admin/users/{professor_user.id}", headers=admin_headers, json={
            "username": "prof",
            "password": "abc",
            "role": "PROFESSOR",
            "name": "Grace Hopper",
            "email": "grace@university.edu",
        })

        assert response.status_code == 400

    def test_role_change_is_rejected(self, client, admin_headers, professor_user):
        response = client.put(f"/admin/users/{professor_user.id}", headers=admin_headers, json={
            "username": "prof",
            "role": "ADMIN",
            "name": "Grace Hopper",
            "email": "grace@university.edu",
        })

        assert response.status_code == 400


class TestUserDelete:
    def test_cannot_delete_self(self, client, admin_user, admin_headers):
        response = client.delete(f"/admin/users/{admin_user.id}", headers=admin_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "You cannot delete your own account"

    def test_deleting_student_frees_seats(self, client, db_session, admin_headers, student_user, course):
        make_enrollment(db_session, student_user.student, course)

        response = client.delete(f"/admin/users/{student_user.id}", headers=admin_headers)

        assert response.status_code == 204
        db_session.expire_all()
        assert db_session.get(Course, course.id).available_seats == 30
        assert db_session.query(Enrollment).count() == 0
        assert db_session.query(Student).count() == 0

    def test_deleting_professor_unassigns_courses(self, client, db_session, admin_headers, professor_user, course):
        user_id, course_id = professor_user.id, course.id

        response = client.delete(f"/admin/users/{user_id}", headers=admin_headers)

        assert response.status_code == 204
        db_session.expire_all()
        remaining = db_session.get(Course, course_id)
        assert remaining is not None
        assert remaining.professor_id is None
        assert db_session.get(User, user_id) is None


class TestStudentManagement:
    @pytest.mark.parametrize("search", ["", "   "])
    def test_detailed_blank_search_returns_everything(self, client, admin_headers, student_user,
                                                      other_student_user, search):
        body = client.get("/admin/students/detailed", headers=admin_headers, params={"search": search}).json()

        assert body["totalElements"] == 2

    def test_detailed_listing(self, client, db_session, admin_headers, student_user, other_student_user, course):
        make_enrollment(db_session, student_user.student, course, grade="A")

        body = client.get("/admin/students/detailed", headers=admin_headers, params={"sortBy": "name"}).json()

        assert [student["name"] for student in body["content"]] == ["Alice Student", "Bob Learner"]
        alice = body["content"][0]
        assert alice["gpa"] == 4.0
        assert alice["completedCredits"] == 3
        assert len(alice["enrollmentHistory"]) == 1
        assert alice["currentEnrollments"] == []

    def test_details(self, client, db_session, admin_headers, student_user, course):
        make_enrollment(db_session, student_user.student, course)

        body = client.get(f"/admin/students/{student_user.id}/details", headers=admin_headers).json()

        assert body["studentId"] == "STU0001"
        assert body["currentEnrollments"][0]["courseCode"] == "CS101"
        assert body["contactInfo"]["phone"] is None

    def test_update_student(self, client, admin_headers, student_user):
        response = client.put(f"/admin/students/{student_user.id}", headers=admin_headers, json={
            "year": "Junior",
            "status": "Suspended",
            "phone": "555-0100",
        })

        assert response.status_code == 200
        assert response.json()["year"] == "Junior"
        assert response.json()["status"] == "Suspended"
        assert response.json()["contactInfo"]["phone"] == "555-0100"

    def test_invalid_status(self, client, admin_headers, student_user):
        response = client.put(f"/admin/students/{student_user.id}", headers=admin_headers, json={"status": "Expelled"})

        assert response.status_code == 422

    def test_email_taken(self, client, admin_headers, student_user, other_student_user):
        response = client.put(
            f"/admin/students/{student_user.id}", headers=admin_headers,
            json={"email": "bob@university.edu"},
        )

        assert response.status_code == 400

    def test_force_enroll_and_drop(self, client, db_session, admin_headers, student_user, full_course):
        enrolled = client.post(
            f"/admin/students/{student_user.id}/force-enroll/{full_course.id}",
            headers=admin_headers, params={"reason": "Capstone"},
        )
        dropped = client.delete(
            f"/admin/students/{student_user.id}/drop/{full_course.id}",
            headers=admin_headers, params={"reason": "Schedule conflict"},
        )

        assert enrolled.json() == {"message": "Student enrolled successfully"}
        assert dropped.json() == {"message": "Student dropped successfully"}
        db_session.expire_all()
        assert db_session.get(Course, full_course.id).available_seats == 0

    def test_drop_missing_enrollment(self, client, admin_headers, student_user, course):
        response = client.delete(f"/admin/students/{student_user.id}/drop/{course.id}", headers=admin_headers)

        assert response.status_code == 404
