from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...database import get_db
from ...logging_config import get_logger
from ...shared.models import User, Student, Course, Enrollment
from ...shared.enums import RoleEnum
from ...shared.grade_calculator import GradeCalculator
from ...shared.grading import (
    validate_grade, get_enrollment_or_404, ensure_can_grade, record_grade,
    find_enrollment, enroll, drop
)
from ...shared.pagination import apply_sort, paginate
from ...shared.schemas import PageResponse, MessageResponse
from ..auth.dependencies import (
    get_current_active_user, get_current_student, get_admin_user, require_roles
)
from ..courses.routes import get_course_or_404
from .schemas import (
    EnrollmentRequest, ForceEnrollmentRequest, GradeUpdate, BulkGradeUpdate,
    EnrollmentResponse, ScheduleResponse, TranscriptResponse, EnrollmentStats,
    CourseEnrollmentDetails, enrollment_response, build_transcript, build_course_details
)

logger = get_logger(__name__)

router = APIRouter(prefix="/enrollments", tags=["Enrollments"])

SORT_COLUMNS = {
    "id": Enrollment.id,
    "enrollmentDate": Enrollment.enrollment_date,
    "grade": Enrollment.grade,
    "studentId": Enrollment.student_id,
    "courseId": Enrollment.course_id,
}


def get_student_or_404(db: Session, student_id: int) -> Student:
    student = db.query(Student).filter(Student.id == student_id).first()
    if not student:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Student not found with id: {student_id}"
        )
    return student


def ensure_admin_or_self(user: User, student_id: int) -> None:
    if user.role == RoleEnum.ADMIN:
        return
    if user.role == RoleEnum.STUDENT and user.id == student_id:
        return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")


def ensure_admin_or_instructor(user: User, course: Course) -> None:
    if user.role == RoleEnum.ADMIN:
        return
    if user.role == RoleEnum.PROFESSOR and course.professor_id == user.id:
        return
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")


# ==================== STUDENT SELF-SERVICE ====================

@router.post("/enroll", response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED)
def enroll_in_course(
    request: EnrollmentRequest,
    db: Session = Depends(get_db),
    student: Student = Depends(get_current_student)
):
    course = get_course_or_404(db, request.course_id)
    enrollment = enroll(db, student, course)
    db.commit()
    db.refresh(enrollment)

    logger.info("Student %s enrolled in %s", student.student_id, course.code)
    return enrollment_response(enrollment)


@router.delete("/drop/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def drop_course(
    course_id: int,
    db: Session = Depends(get_db),
    student: Student = Depends(get_current_student)
):
    enrollment = find_enrollment(db, student.id, course_id)
    if not enrollment:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="You are not enrolled in this course"
        )

    drop(db, enrollment)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/my-schedule", response_model=ScheduleResponse)
def get_my_schedule(student: Student = Depends(get_current_student)):
    """Current enrollments with credit total and GPA (null until something is graded)"""
    enrollments = student.enrollments
    return ScheduleResponse(
        enrollments=[enrollment_response(e) for e in enrollments],
        total_credits=GradeCalculator.credit_summary(enrollments)["total_credits"],
        gpa=GradeCalculator.calculate_gpa(enrollments),
    )


@router.get("/my-transcript", response_model=TranscriptResponse)
def get_my_transcript(student: Student = Depends(get_current_student)):
    return build_transcript(student)


# ==================== ADMIN LISTINGS ====================

@router.get("", response_model=PageResponse)
def get_enrollments(
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=1000),
    sort_by: str = Query("id", alias="sortBy"),
    sort_dir: str = Query("asc", alias="sortDir"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    query = apply_sort(db.query(Enrollment), SORT_COLUMNS, sort_by, sort_dir)
    return paginate(query, page, size, enrollment_response)


@router.get("/search", response_model=PageResponse)
def search_enrollments(
    search: Optional[str] = Query(None),
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    """Match student name or email, course code or title, or semester"""
    query = db.query(Enrollment).join(Student).join(Course)
    if search and search.strip():
        term = f"%{search.strip()}%"
        query = query.filter(or_(
            Student.name.ilike(term),
            Student.email.ilike(term),
            Course.code.ilike(term),
            Course.title.ilike(term),
            Course.semester.ilike(term),
        ))
    return paginate(query.order_by(Enrollment.id), page, size, enrollment_response)


@router.get("/stats", response_model=EnrollmentStats)
def get_enrollment_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    enrollments = db.query(Enrollment).all()
    graded = [e.grade for e in enrollments if e.grade is not None]

    total_students = db.query(Student).count()
    enrolled_students = len({e.student_id for e in enrollments})

    return EnrollmentStats(
        total_enrollments=len(enrollments),
        active_enrollments=len(enrollments) - len(graded),
        completed_enrollments=len(graded),
        pending_grades=len(enrollments) - len(graded),
        average_grade_points=GradeCalculator.average_points(graded),
        total_students=total_students,
        total_courses=db.query(Course).count(),
        courses_with_full_capacity=db.query(Course).filter(Course.available_seats <= 0).count(),
        students_without_enrollments=total_students - enrolled_students,
    )


@router.get("/student/{student_id}", response_model=List[EnrollmentResponse])
def get_student_enrollments(
    student_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    ensure_admin_or_self(current_user, student_id)
    student = get_student_or_404(db, student_id)
    return [enrollment_response(e) for e in student.enrollments]


@router.get("/transcript/{student_id}", response_model=TranscriptResponse)
def get_student_transcript(
    student_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_active_user)
):
    ensure_admin_or_self(current_user, student_id)
    return build_transcript(get_student_or_404(db, student_id))


@router.get("/course/{course_id}", response_model=List[EnrollmentResponse])
def get_course_enrollments(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(RoleEnum.ADMIN, RoleEnum.PROFESSOR))
):
    course = get_course_or_404(db, course_id)
    ensure_admin_or_instructor(current_user, course)
    return [enrollment_response(e) for e in course.enrollments]


@router.get("/course/{course_id}/details", response_model=CourseEnrollmentDetails)
def get_course_enrollment_details(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(RoleEnum.ADMIN, RoleEnum.PROFESSOR))
):
    """Roster plus letter-bucket grade distribution"""
    course = get_course_or_404(db, course_id)
    ensure_admin_or_instructor(current_user, course)
    return build_course_details(course)


# ==================== ADMIN OVERRIDES ====================

@router.post("/force-enroll", response_model=EnrollmentResponse, status_code=status.HTTP_201_CREATED)
def force_enroll(
    request: ForceEnrollmentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    """Enroll a student even when the course is full"""
    student = get_student_or_404(db, request.student_id)
    course = get_course_or_404(db, request.course_id)

    enrollment = enroll(db, student, course, force=True)
    db.commit()
    db.refresh(enrollment)

    logger.info(
        "Force enroll: student %s into %s by %s (reason: %s)",
        student.student_id, course.code, current_user.username, request.reason or "none"
    )
    return enrollment_response(enrollment)


@router.delete("/force-drop/{student_id}/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def force_drop(
    student_id: int,
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    enrollment = find_enrollment(db, student_id, course_id)
    if not enrollment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Enrollment not found")

    drop(db, enrollment)
    db.commit()

    logger.info("Force drop: student %s from course %s by %s", student_id, course_id, current_user.username)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ==================== GRADING ====================

@router.put("/{enrollment_id}/grade", response_model=EnrollmentResponse)
def update_grade(
    enrollment_id: int,
    grade_update: GradeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(RoleEnum.ADMIN, RoleEnum.PROFESSOR))
):
    enrollment = get_enrollment_or_404(db, enrollment_id)
    ensure_can_grade(current_user, enrollment)
    grade = validate_grade(grade_update.grade)

    record_grade(db, enrollment, grade, current_user.username, grade_update.comments)
    db.commit()
    db.refresh(enrollment)
    return enrollment_response(enrollment)


@router.post("/bulk-grade-update", response_model=MessageResponse)
def bulk_grade_update(
    request: BulkGradeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(RoleEnum.ADMIN, RoleEnum.PROFESSOR))
):
    """Apply several grades at once; nothing is written if any entry is rejected"""
    pending = []
    for entry in request.grades:
        enrollment = get_enrollment_or_404(db, entry.enrollment_id)
        ensure_can_grade(current_user, enrollment)
        pending.append((enrollment, validate_grade(entry.grade), entry.comments))

    for enrollment, grade, comments in pending:
        record_grade(db, enrollment, grade, current_user.username, comments)
    db.commit()

    return {"message": f"{len(pending)} grades updated successfully"}
