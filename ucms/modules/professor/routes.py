from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ...database import get_db
from ...logging_config import get_logger
from ...shared.models import Course, Enrollment, Professor
from ...shared.grading import validate_grade, get_enrollment_or_404, record_grade
from ..auth.dependencies import get_current_professor
from ..courses.routes import get_course_or_404
from ..courses.schemas import CourseResponse, course_response
from ..enrollments.schemas import EnrollmentResponse, enrollment_response
from .schemas import (
    ProfessorStats, ProfessorCourse, CourseRoster, RosterStudent,
    CourseDetailsUpdate, CourseGradesUpdate, professor_course
)

logger = get_logger(__name__)

router = APIRouter(prefix="/professor", tags=["Professor"])


def current_semester(today: Optional[date] = None) -> str:
    """Spring runs January to May, Summer June to August, Fall the rest"""
    today = today or date.today()
    if today.month <= 5:
        season = "Spring"
    elif today.month <= 8:
        season = "Summer"
    else:
        season = "Fall"
    return f"{season} {today.year}"


def get_taught_course(db: Session, professor: Professor, course_id: int) -> Course:
    course = get_course_or_404(db, course_id)
    if course.professor_id != professor.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not teach this course"
        )
    return course


@router.get("/stats", response_model=ProfessorStats)
def get_professor_stats(professor: Professor = Depends(get_current_professor)):
    courses = professor.courses
    semester = current_semester()
    return ProfessorStats(
        total_courses=len(courses),
        total_students=sum(len(course.enrollments) for course in courses),
        courses_this_semester=len([course for course in courses if course.semester == semester]),
        pending_grades=sum(
            1 for course in courses for enrollment in course.enrollments if enrollment.grade is None
        ),
    )


@router.get("/my-courses", response_model=List[ProfessorCourse])
def get_my_courses(professor: Professor = Depends(get_current_professor)):
    return [professor_course(course) for course in sorted(professor.courses, key=lambda c: c.code)]


@router.get("/course/{course_id}/roster", response_model=CourseRoster)
def get_course_roster(
    course_id: int,
    db: Session = Depends(get_db),
    professor: Professor = Depends(get_current_professor)
):
    """Students of a taught course, most recent enrollment first"""
    course = get_taught_course(db, professor, course_id)
    enrollments = db.query(Enrollment).filter(
        Enrollment.course_id == course.id
    ).order_by(Enrollment.enrollment_date.desc()).all()

    students = [
        RosterStudent(
            id=e.student.id,
            student_id=e.student.student_id,
            name=e.student.name,
            email=e.student.email,
            enrollment_date=e.enrollment_date.isoformat(),
            grade=e.grade,
            enrollment_id=e.id,
        )
        for e in enrollments
    ]
    return CourseRoster(
        course_id=course.id,
        course_code=course.code,
        course_title=course.title,
        semester=course.semester,
        students=students,
        total_enrolled=len(students),
    )


@router.put("/course/{course_id}", response_model=CourseResponse)
def update_course_details(
    course_id: int,
    updates: CourseDetailsUpdate,
    db: Session = Depends(get_db),
    professor: Professor = Depends(get_current_professor)
):
    course = get_taught_course(db, professor, course_id)

    update_data = updates.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(course, field, value)

    db.commit()
    db.refresh(course)
    return course_response(course)


@router.put("/course/{course_id}/grades", response_model=List[EnrollmentResponse])
def update_course_grades(
    course_id: int,
    request: CourseGradesUpdate,
    db: Session = Depends(get_db),
    professor: Professor = Depends(get_current_professor)
):
    """Grade several students of one course; any invalid entry rejects the whole batch"""
    course = get_taught_course(db, professor, course_id)

    pending = []
    for entry in request.grades:
        enrollment = get_enrollment_or_404(db, entry.enrollment_id)
        if enrollment.course_id != course.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Enrollment {entry.enrollment_id} does not belong to course {course.code}"
            )
        pending.append((enrollment, validate_grade(entry.grade), entry.comments))

    for enrollment, grade, comments in pending:
        record_grade(db, enrollment, grade, professor.user.username, comments)
    db.commit()

    logger.info("%s graded %d students in %s", professor.user.username, len(pending), course.code)
    return [enrollment_response(enrollment) for enrollment, _, _ in pending]
