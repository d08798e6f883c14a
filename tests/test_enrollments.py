"""
Tests for enrollment, drop, schedules, transcripts and grading
"""
from datetime import datetime

import pytest

from ucms.shared.enums import RoleEnum
from ucms.shared.models import Course, Enrollment, GradeChange

from conftest import auth_headers, make_course, make_enrollment, make_user


def seats(db_session, course_id):
    db_session.expire_all()
    return db_session.get(Course, course_id).available_seats


class TestStudentEnrollment:
    def test_enroll_takes_a_seat(self, client, db_session, student_headers, course):
        response = client.post("/enrollments/enroll", headers=student_headers, json={"courseId": course.id})

        assert response.status_code == 201
        body = response.json()
        assert body["courseCode"] == "CS101"
        assert body["studentName"] == "Alice Student"
        assert body["grade"] is None
        assert body["gradeStatus"] == "Pending"
        assert seats(db_session, course.id) == 29

    def test_full_course_is_rejected(self, client, db_session, student_headers, full_course):
        response = client.post("/enrollments/enroll", headers=student_headers, json={"courseId": full_course.id})

        assert response.status_code == 400
        assert response.json()["message"] == "Course is full. No available seats."
        assert seats(db_session, full_course.id) == 0

    def test_duplicate_enrollment(self, client, db_session, student_user, student_headers, course):
        make_enrollment(db_session, student_user.student, course)

        response = client.post("/enrollments/enroll", headers=student_headers, json={"courseId": course.id})

        assert response.status_code == 400
        assert response.json()["message"] == "You are already enrolled in this course"
        assert seats(db_session, course.id) == 29

    def test_unknown_course(self, client, student_headers):
        response = client.post("/enrollments/enroll", headers=student_headers, json={"courseId": 999})

        assert response.status_code == 404

    def test_only_students_enroll(self, client, professor_headers, course):
        response = client.post("/enrollments/enroll", headers=professor_headers, json={"courseId": course.id})

        assert response.status_code == 403

    def test_drop_returns_the_seat(self, client, db_session, student_user, student_headers, course):
        make_enrollment(db_session, student_user.student, course)

        response = client.delete(f"/enrollments/drop/{course.id}", headers=student_headers)

        assert response.status_code == 204
        assert seats(db_session, course.id) == 30
        assert db_session.query(Enrollment).count() == 0

    def test_drop_when_not_enrolled(self, client, student_headers, course):
        response = client.delete(f"/enrollments/drop/{course.id}", headers=student_headers)

        assert response.status_code == 404
        assert response.json()["message"] == "You are not enrolled in this course"


class TestScheduleAndTranscript:
    def test_schedule_without_grades_has_no_gpa(self, client, db_session, student_user, student_headers, course):
        make_enrollment(db_session, student_user.student, course)

        body = client.get("/enrollments/my-schedule", headers=student_headers).json()

        assert len(body["enrollments"]) == 1
        assert body["totalCredits"] == 3
        assert body["gpa"] is None

    def test_schedule_gpa_is_credit_weighted(self, client, db_session, student_user, student_headers, course):
        lab = make_course(db_session, "CS150", credits=1)
        make_enrollment(db_session, student_user.student, course, grade="A")
        make_enrollment(db_session, student_user.student, lab, grade="C")

        body = client.get("/enrollments/my-schedule", headers=student_headers).json()

        # (4.0 * 3 + 2.0 * 1) / 4
        assert body["gpa"] == 3.5
        assert body["totalCredits"] == 4

    def test_transcript(self, client, db_session, student_user, student_headers, course):
        other = make_course(db_session, "MA101", title="Calculus")
        make_enrollment(db_session, student_user.student, course, grade="B+", enrollment_date=datetime(2025, 1, 10))
        make_enrollment(db_session, student_user.student, other, enrollment_date=datetime(2025, 2, 10))

        body = client.get("/enrollments/my-transcript", headers=student_headers).json()

        assert body["studentName"] == "Alice Student"
        assert body["major"] == "Computer Science"
        assert body["gpa"] == 3.3
        assert body["totalCredits"] == 6
        assert body["completedCredits"] == 3
        assert [entry["grade"] for entry in body["courses"]] == ["B+", "In Progress"]
        assert body["courses"][0]["professorName"] == "Grace Hopper"
        assert body["courses"][1]["professorName"] == "TBA"

    def test_empty_transcript_gpa_is_zero(self, client, student_headers):
        body = client.get("/enrollments/my-transcript", headers=student_headers).json()

        assert body["gpa"] == 0.0
        assert body["courses"] == []

    def test_student_reads_own_enrollments(self, client, db_session, student_user, student_headers, course):
        make_enrollment(db_session, student_user.student, course)

        response = client.get(f"/enrollments/student/{student_user.id}", headers=student_headers)

        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_student_cannot_read_others(self, client, other_student_user, student_headers):
        response = client.get(f"/enrollments/transcript/{other_student_user.id}", headers=student_headers)

        assert response.status_code == 403

    def test_admin_reads_any_transcript(self, client, student_user, admin_headers):
        response = client.get(f"/enrollments/transcript/{student_user.id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["studentId"] == student_user.id


class TestAdminEnrollmentViews:
    def test_list_requires_admin(self, client, student_headers):
        assert client.get("/enrollments", headers=student_headers).status_code == 403

    def test_list(self, client, db_session, admin_headers, student_user, other_student_user, course):
        make_enrollment(db_session, student_user.student, course)
        make_enrollment(db_session, other_student_user.student, course)

        body = client.get("/enrollments", headers=admin_headers, params={"size": 1}).json()

        assert body["totalElements"] == 2
        assert body["totalPages"] == 2

    def test_search_by_student_name(self, client, db_session, admin_headers, student_user,
                                    other_student_user, course):
        make_enrollment(db_session, student_user.student, course)
        make_enrollment(db_session, other_student_user.student, course)

        body = client.get("/enrollments/search", headers=admin_headers, params={"search": "bob"}).json()

        assert body["totalElements"] == 1
        assert body["content"][0]["studentName"] == "Bob Learner"

    @pytest.mark.parametrize("search", ["", "   "])
    def test_blank_search_returns_everything(self, client, db_session, admin_headers, student_user,
                                             other_student_user, course, search):
        make_enrollment(db_session, student_user.student, course)
        make_enrollment(db_session, other_student_user.student, course)

        body = client.get("/enrollments/search", headers=admin_headers, params={"search": search}).json()

        assert body["totalElements"] == 2

    def test_stats(self, client, db_session, admin_headers, student_user, other_student_user, course, full_course):
        make_enrollment(db_session, student_user.student, course, grade="A")
        make_enrollment(db_session, student_user.student, make_course(db_session, "CS200"))

        body = client.get("/enrollments/stats", headers=admin_headers).json()

        assert body["totalEnrollments"] == 3
        assert body["completedEnrollments"] == 1
        assert body["pendingGrades"] == 2
        assert body["averageGradePoints"] == 4.0
        assert body["totalStudents"] == 3
        assert body["totalCourses"] == 3
        assert body["coursesWithFullCapacity"] == 1
        assert body["studentsWithoutEnrollments"] == 1

    def test_course_details_buckets(self, client, db_session, professor_headers, student_user,
                                    other_student_user, course):
        third = make_enrollment(db_session, student_user.student, course, grade="A-")
        make_enrollment(db_session, other_student_user.student, course)

        body = client.get(f"/enrollments/course/{course.id}/details", headers=professor_headers).json()

        assert body["enrolledStudents"] == 2
        assert body["gradeDistribution"] == {
            "aGrades": 1, "bGrades": 0, "cGrades": 0, "dGrades": 0, "fGrades": 0, "pending": 1,
        }
        assert third.id in [student["enrollmentId"] for student in body["students"]]

    def test_other_professor_cannot_see_roster(self, client, other_professor_user, course):
        response = client.get(f"/enrollments/course/{course.id}", headers=auth_headers(other_professor_user))

        assert response.status_code == 403


class TestForceEnrollment:
    def test_force_enroll_ignores_capacity(self, client, db_session, admin_headers, student_user, full_course):
        response = client.post("/enrollments/force-enroll", headers=admin_headers, json={
            "studentId": student_user.id,
            "courseId": full_course.id,
            "reason": "Department approval",
        })

        assert response.status_code == 201
        assert seats(db_session, full_course.id) == -1

    def test_force_enroll_duplicate(self, client, db_session, admin_headers, student_user, course):
        make_enrollment(db_session, student_user.student, course)

        response = client.post("/enrollments/force-enroll", headers=admin_headers, json={
            "studentId": student_user.id,
            "courseId": course.id,
        })

        assert response.status_code == 400
        assert response.json()["message"] == "Student is already enrolled in this course"

    def test_force_enroll_unknown_student(self, client, admin_headers, course):
        response = client.post("/enrollments/force-enroll", headers=admin_headers, json={
            "studentId": 999,
            "courseId": course.id,
        })

        assert response.status_code == 404
        assert response.json()["message"] == "Student not found with id: 999"

    def test_force_drop(self, client, db_session, admin_headers, student_user, course):
        make_enrollment(db_session, student_user.student, course)

        response = client.delete(f"/enrollments/force-drop/{student_user.id}/{course.id}", headers=admin_headers)

        assert response.status_code == 204
        assert seats(db_session, course.id) == 30

    def test_drop_from_overfull_course_keeps_it_full(self, client, db_session, admin_headers, student_user,
                                                     other_student_user, course):
        make_enrollment(db_session, student_user.student, course)
        make_enrollment(db_session, other_student_user.student, course)
        client.put(f"/courses/{course.id}", headers=admin_headers, json={
            "title": course.title, "semester": course.semester, "capacity": 1,
            "professorId": course.professor_id,
        })
        newcomer = make_user(
            db_session, "carl@university.edu", RoleEnum.STUDENT,
            student_id="STU0003", name="Carl Newcomer", email="carl@university.edu",
        )

        dropped = client.delete(f"/enrollments/force-drop/{other_student_user.id}/{course.id}", headers=admin_headers)
        enrolled = client.post("/enrollments/enroll", headers=auth_headers(newcomer), json={"courseId": course.id})

        assert dropped.status_code == 204
        assert seats(db_session, course.id) == 0
        assert enrolled.status_code == 400
        assert enrolled.json()["message"] == "Course is full. No available seats."

    def test_force_drop_missing(self, client, admin_headers, student_user, course):
        response = client.delete(f"/enrollments/force-drop/{student_user.id}/{course.id}", headers=admin_headers)

        assert response.status_code == 404


class TestGrading:
    def test_professor_grades_own_course(self, client, db_session, professor_headers, student_user, course):
        enrollment = make_enrollment(db_session, student_user.student, course)

        response = client.put(
            f"/enrollments/{enrollment.id}/grade", headers=professor_headers,
            json={"grade": " b+ ", "comments": "Solid work"},
        )

        assert response.status_code == 200
        assert response.json()["grade"] == "B+"
        assert response.json()["gradeStatus"] == "Graded"

        change = db_session.query(GradeChange).one()
        assert change.previous_grade is None
        assert change.new_grade == "B+"
        assert change.changed_by == "prof"

    def test_invalid_grade(self, client, db_session, professor_headers, student_user, course):
        enrollment = make_enrollment(db_session, student_user.student, course)

        response = client.put(f"/enrollments/{enrollment.id}/grade", headers=professor_headers, json={"grade": "E"})

        assert response.status_code == 400
        assert response.json()["message"].startswith("Invalid grade: E.")

    def test_blank_grade_clears(self, client, db_session, admin_headers, student_user, course):
        enrollment = make_enrollment(db_session, student_user.student, course, grade="A")

        body = client.put(f"/enrollments/{enrollment.id}/grade", headers=admin_headers, json={"grade": ""}).json()

        assert body["grade"] is None
        assert body["gradeStatus"] == "Pending"

    def test_other_professor_cannot_grade(self, client, db_session, other_professor_user, student_user, course):
        enrollment = make_enrollment(db_session, student_user.student, course)

        response = client.put(
            f"/enrollments/{enrollment.id}/grade", headers=auth_headers(other_professor_user), json={"grade": "A"}
        )

        assert response.status_code == 403

    def test_student_cannot_grade(self, client, db_session, student_headers, student_user, course):
        enrollment = make_enrollment(db_session, student_user.student, course)

        response = client.put(f"/enrollments/{enrollment.id}/grade", headers=student_headers, json={"grade": "A"})

        assert response.status_code == 403

    def test_unknown_enrollment(self, client, admin_headers, db_session):
        response = client.put("/enrollments/999/grade", headers=admin_headers, json={"grade": "A"})

        assert response.status_code == 404
        assert response.json()["message"] == "Enrollment not found with id: 999"

    def test_bulk_update(self, client, db_session, professor_headers, student_user, other_student_user, course):
        first = make_enrollment(db_session, student_user.student, course)
        second = make_enrollment(db_session, other_student_user.student, course)

        response = client.post("/enrollments/bulk-grade-update", headers=professor_headers, json={"grades": [
            {"enrollmentId": first.id, "grade": "A"},
            {"enrollmentId": second.id, "grade": "C-"},
        ]})

        assert response.status_code == 200
        assert response.json()["message"] == "2 grades updated successfully"
        db_session.expire_all()
        assert db_session.get(Enrollment, second.id).grade == "C-"

    def test_bulk_update_is_all_or_nothing(self, client, db_session, professor_headers, student_user,
                                           other_student_user, course):
        first = make_enrollment(db_session, student_user.student, course)
        second = make_enrollment(db_session, other_student_user.student, course)

        response = client.post("/enrollments/bulk-grade-update", headers=professor_headers, json={"grades": [
            {"enrollmentId": first.id, "grade": "A"},
            {"enrollmentId": second.id, "grade": "Z"},
        ]})

        assert response.status_code == 400
        db_session.expire_all()
        assert db_session.get(Enrollment, first.id).grade is None
        assert db_session.query(GradeChange).count() == 0

    def test_bulk_update_needs_entries(self, client, admin_headers):
        response = client.post("/enrollments/bulk-grade-update", headers=admin_headers, json={"grades": []})

        assert response.status_code == 422
