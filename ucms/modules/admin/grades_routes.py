from collections import defaultdict
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...logging_config import get_logger
from ...shared.models import User, Student, Course, Enrollment
from ...shared.grade_calculator import GradeCalculator
from ...shared.grading import validate_grade, get_enrollment_or_404, record_grade
from ...shared.pagination import apply_sort, paginate
from ...shared.schemas import PageResponse
from ..auth.dependencies import get_admin_user
from ..courses.routes import get_course_or_404
from .schemas import (
    GradeOverride, GradeResponse, GradeAnalytics, GradeDistribution, GradeChangeResponse
)

logger = get_logger(__name__)

router = APIRouter(prefix="/grades", tags=["Admin - Grades"])

SORT_COLUMNS = {
    "id": Enrollment.id,
    "grade": Enrollment.grade,
    "enrollmentDate": Enrollment.enrollment_date,
    "studentName": Student.name,
    "courseCode": Course.code,
    "semester": Course.semester,
}


def grade_response(enrollment: Enrollment) -> dict:
    student = enrollment.student
    course = enrollment.course
    last_change = enrollment.grade_changes[-1] if enrollment.grade_changes else None
    return GradeResponse(
        enrollment_id=enrollment.id,
        student_id=student.id,
        student_name=student.name,
        student_email=student.email,
        course_id=course.id,
        course_code=course.code,
        course_title=course.title,
        semester=course.semester,
        professor_name=course.professor_name,
        grade=enrollment.grade,
        grade_updated_date=last_change.changed_at if last_change else None,
        grade_updated_by=last_change.changed_by if last_change else None,
        comments=enrollment.comments,
        credits=GradeCalculator.credits_for(enrollment),
        grade_points=GradeCalculator.grade_points(enrollment.grade),
    ).model_dump(by_alias=True)


def department_averages(enrollments: List[Enrollment]) -> dict:
    """Average grade points per department of the teaching professor"""
    by_department = defaultdict(list)
    for enrollment in enrollments:
        professor = enrollment.course.professor
        if enrollment.grade is None or professor is None or not professor.department:
            continue
        by_department[professor.department].append(enrollment.grade)
    return {
        department: GradeCalculator.average_points(grades)
        for department, grades in sorted(by_department.items())
    }


@router.get("", response_model=PageResponse)
def get_grades(
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=1000),
    sort_by: str = Query("id", alias="sortBy"),
    sort_dir: str = Query("asc", alias="sortDir"),
    course_code: Optional[str] = Query(None, alias="courseCode"),
    student_name: Optional[str] = Query(None, alias="studentName"),
    semester: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    query = db.query(Enrollment).join(Student).join(Course)

    if course_code:
        query = query.filter(Course.code.ilike(f"%{course_code.strip()}%"))
    if student_name:
        query = query.filter(Student.name.ilike(f"%{student_name.strip()}%"))
    if semester:
        query = query.filter(Course.semester == semester)

    query = apply_sort(query, SORT_COLUMNS, sort_by, sort_dir)
    return paginate(query, page, size, grade_response)


@router.get("/analytics", response_model=GradeAnalytics)
def get_grade_analytics(
    semester: Optional[str] = Query(None),
    course_code: Optional[str] = Query(None, alias="courseCode"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    query = db.query(Enrollment).join(Course)
    if semester:
        query = query.filter(Course.semester == semester)
    if course_code:
        query = query.filter(Course.code == course_code)
    enrollments = query.all()

    grades = [e.grade for e in enrollments if e.grade is not None]
    counts = GradeCalculator.distribution(grades)

    return GradeAnalytics(
        semester=semester,
        course_code=course_code,
        total_grades=len(grades),
        average_gpa=GradeCalculator.average_points(grades),
        grade_distribution=counts,
        grade_percentages=GradeCalculator.percentages(counts, len(grades)),
        pending_grades=len(enrollments) - len(grades),
        highest_grade=GradeCalculator.highest_grade(grades),
        lowest_grade=GradeCalculator.lowest_grade(grades),
        pass_rate=GradeCalculator.pass_rate(grades),
        department_comparison=department_averages(enrollments),
    )


@router.get("/distribution/{course_id}", response_model=GradeDistribution)
def get_course_grade_distribution(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    course = get_course_or_404(db, course_id)
    enrollments = course.enrollments
    grades = [e.grade for e in enrollments if e.grade is not None]
    counts = GradeCalculator.distribution(grades)

    return GradeDistribution(
        course_id=course.id,
        course_code=course.code,
        course_title=course.title,
        semester=course.semester,
        professor_name=course.professor_name,
        total_students=len(enrollments),
        graded_students=len(grades),
        pending_grades=len(enrollments) - len(grades),
        course_average_gpa=GradeCalculator.average_points(grades),
        grade_count=counts,
        grade_percentage=GradeCalculator.percentages(counts, len(grades)),
        median_grade=GradeCalculator.median_grade(grades),
        mode_grade=GradeCalculator.mode_grade(grades),
    )


@router.get("/history/{enrollment_id}", response_model=List[GradeChangeResponse])
def get_grade_history(
    enrollment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    """Every grade write of an enrollment, oldest first"""
    enrollment = get_enrollment_or_404(db, enrollment_id)
    return [GradeChangeResponse.model_validate(change) for change in enrollment.grade_changes]


@router.put("/{enrollment_id}", response_model=GradeResponse)
def override_grade(
    enrollment_id: int,
    grade_data: GradeOverride,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    enrollment = get_enrollment_or_404(db, enrollment_id)
    grade = validate_grade(grade_data.grade)

    record_grade(db, enrollment, grade, current_user.username, grade_data.comments)
    db.commit()
    db.refresh(enrollment)

    logger.info(
        "Grade override: enrollment %s set to %s by %s (comments: %s)",
        enrollment_id, grade, current_user.username, grade_data.comments or "none"
    )
    return grade_response(enrollment)
