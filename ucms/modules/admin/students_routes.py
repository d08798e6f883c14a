from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...database import get_db
from ...logging_config import get_logger
from ...shared.models import User, Student
from ...shared.grade_calculator import GradeCalculator
from ...shared.grading import enroll, drop, find_enrollment
from ...shared.pagination import apply_sort, paginate
from ...shared.schemas import PageResponse, MessageResponse
from ..auth.dependencies import get_admin_user
from ..courses.routes import get_course_or_404
from ..enrollments.routes import get_student_or_404
from .schemas import StudentUpdate, StudentDetail, EnrollmentSummary, ContactInfo
from .users_routes import ensure_email_free

logger = get_logger(__name__)

router = APIRouter(prefix="/students", tags=["Admin - Students"])

SORT_COLUMNS = {
    "id": Student.id,
    "name": Student.name,
    "email": Student.email,
    "studentId": Student.student_id,
    "major": Student.major,
    "year": Student.year,
    "status": Student.status,
}


def enrollment_summary(enrollment) -> EnrollmentSummary:
    course = enrollment.course
    return EnrollmentSummary(
        enrollment_id=enrollment.id,
        course_code=course.code,
        course_title=course.title,
        semester=course.semester,
        grade=enrollment.grade,
        credits=GradeCalculator.credits_for(enrollment),
        professor_name=course.professor_name,
        enrollment_date=enrollment.enrollment_date,
    )


def student_detail(student: Student) -> dict:
    """Profile with current (ungraded) and past (graded) enrollments, GPA and credits"""
    enrollments = student.enrollments
    credits = GradeCalculator.credit_summary(enrollments)
    return StudentDetail(
        id=student.id,
        name=student.name,
        email=student.email,
        student_id=student.student_id,
        major=student.major or "Undeclared",
        year=student.year or "Freshman",
        gpa=GradeCalculator.calculate_gpa(enrollments) or 0.0,
        total_credits=credits["total_credits"],
        completed_credits=credits["completed_credits"],
        enrollment_date=student.user.created_at if student.user else None,
        status=student.status or "Active",
        current_enrollments=[enrollment_summary(e) for e in enrollments if e.grade is None],
        enrollment_history=[enrollment_summary(e) for e in enrollments if e.grade is not None],
        contact_info=ContactInfo(
            phone=student.phone,
            address=student.address,
            emergency_contact=student.emergency_contact,
            emergency_phone=student.emergency_phone,
        ),
    ).model_dump(by_alias=True)


@router.get("/detailed", response_model=PageResponse)
def get_students_detailed(
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=1000),
    sort_by: str = Query("id", alias="sortBy"),
    sort_dir: str = Query("asc", alias="sortDir"),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    query = db.query(Student)
    if search and search.strip():
        term = f"%{search.strip()}%"
        query = query.filter(or_(
            Student.name.ilike(term),
            Student.email.ilike(term),
            Student.student_id.ilike(term),
        ))
    query = apply_sort(query, SORT_COLUMNS, sort_by, sort_dir)
    return paginate(query, page, size, student_detail)


@router.get("/{student_id}/details", response_model=StudentDetail)
def get_student_details(
    student_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    return student_detail(get_student_or_404(db, student_id))


@router.put("/{student_id}", response_model=StudentDetail)
def update_student(
    student_id: int,
    student_data: StudentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    student = get_student_or_404(db, student_id)

    update_data = student_data.model_dump(exclude_unset=True, exclude_none=True)
    if "email" in update_data:
        ensure_email_free(db, Student, update_data["email"], exclude_id=student.id)

    for field, value in update_data.items():
        setattr(student, field, value)

    db.commit()
    db.refresh(student)
    return student_detail(student)


@router.post("/{student_id}/force-enroll/{course_id}", response_model=MessageResponse)
def force_enroll_student(
    student_id: int,
    course_id: int,
    reason: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    """Enroll regardless of capacity"""
    student = get_student_or_404(db, student_id)
    course = get_course_or_404(db, course_id)

    enroll(db, student, course, force=True)
    db.commit()

    logger.info(
        "Force enroll: student %s into %s by %s (reason: %s)",
        student.student_id, course.code, current_user.username, reason or "none"
    )
    return {"message": "Student enrolled successfully"}


@router.delete("/{student_id}/drop/{course_id}", response_model=MessageResponse)
def force_drop_student(
    student_id: int,
    course_id: int,
    reason: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    enrollment = find_enrollment(db, student_id, course_id)
    if not enrollment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Enrollment not found")

    drop(db, enrollment)
    db.commit()

    logger.info(
        "Force drop: student %s from course %s by %s (reason: %s)",
        student_id, course_id, current_user.username, reason or "none"
    )
    return {"message": "Student dropped successfully"}
