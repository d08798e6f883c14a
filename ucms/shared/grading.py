"""
Grade writes and enrollment seat bookkeeping shared by the routers
"""
from datetime import datetime
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from .enums import RoleEnum
from .grade_calculator import GradeCalculator
from .models import Course, Enrollment, GradeChange, Student, User


def validate_grade(grade: Optional[str]) -> Optional[str]:
    """Normalize a grade or raise 400; None and blank clear the grade"""
    grade = GradeCalculator.normalize(grade)
    if grade is not None and not GradeCalculator.is_valid_grade(grade):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid grade: {grade}. Valid grades: {', '.join(GradeCalculator.VALID_GRADES)}"
        )
    return grade


def get_enrollment_or_404(db: Session, enrollment_id: int) -> Enrollment:
    enrollment = db.query(Enrollment).filter(Enrollment.id == enrollment_id).first()
    if not enrollment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Enrollment not found with id: {enrollment_id}"
        )
    return enrollment


def ensure_can_grade(user: User, enrollment: Enrollment) -> None:
    """Admins grade anything, professors only the courses they teach"""
    if user.role == RoleEnum.ADMIN:
        return
    if user.role == RoleEnum.PROFESSOR and enrollment.course.professor_id == user.id:
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="You can only grade students in courses you teach"
    )


def record_grade(
    db: Session,
    enrollment: Enrollment,
    grade: Optional[str],
    changed_by: str,
    comments: Optional[str] = None,
) -> GradeChange:
    """
    Set the grade of an enrollment and add the audit row.

    The grade must already be validated. The caller commits.
    """
    change = GradeChange(
        enrollment=enrollment,
        previous_grade=enrollment.grade,
        new_grade=grade,
        comments=comments,
        changed_by=changed_by,
        changed_at=datetime.utcnow(),
    )
    enrollment.grade = grade
    if comments is not None:
        enrollment.comments = comments
    db.add(change)
    return change


def find_enrollment(db: Session, student_id: int, course_id: int) -> Optional[Enrollment]:
    return db.query(Enrollment).filter(
        Enrollment.student_id == student_id,
        Enrollment.course_id == course_id
    ).first()


def enroll(db: Session, student: Student, course: Course, force: bool = False) -> Enrollment:
    """
    Enroll a student and take a seat.

    A forced enrollment ignores capacity, so seats may go negative.
    """
    if find_enrollment(db, student.id, course.id):
        detail = "Student is already enrolled in this course" if force else "You are already enrolled in this course"
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)

    if not force and course.available_seats <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Course is full. No available seats."
        )

    enrollment = Enrollment(student=student, course=course, enrollment_date=datetime.utcnow())
    course.available_seats -= 1
    db.add(enrollment)
    return enrollment


def release_seat(course: Course, leaving: Enrollment) -> None:
    """Seats once `leaving` is gone: capacity minus the remaining enrollments, floored at 0"""
    remaining = len([e for e in course.enrollments if e is not leaving])
    course.available_seats = max(0, course.capacity - remaining)


def drop(db: Session, enrollment: Enrollment) -> None:
    """Remove an enrollment and give the seat back"""
    release_seat(enrollment.course, enrollment)
    db.delete(enrollment)
