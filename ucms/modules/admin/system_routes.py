import time
from collections import Counter
from datetime import date, datetime
from typing import List, Optional

import psutil
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...logging_config import get_logger
from ...shared.models import (
    User, Student, Professor, Course, Enrollment, GradeChange, Semester, Department
)
from ...shared.enums import RoleEnum
from ...shared.grade_calculator import GradeCalculator
from ..auth.dependencies import get_admin_user
from .grades_routes import department_averages
from .schemas import (
    SemesterCreate, SemesterResponse, DepartmentCreate, DepartmentResponse,
    SystemStatistics, UserStatistics, EnrollmentStatistics, CourseStatistics,
    GradeStatistics, SystemHealth, EnrollmentTrends, TrendData, PeakEnrollment
)

logger = get_logger(__name__)

router = APIRouter(tags=["Admin - System"])

TIME_RANGES = {"3-months": 3, "6-months": 6, "12-months": 12}


# ==================== SEMESTERS ====================

def semester_code(name: str) -> str:
    """Fall 2025 -> F25, Spring 2026 -> S26, Summer 2026 -> U26"""
    lowered = name.lower()
    for season, letter in (("fall", "F"), ("spring", "S"), ("summer", "U")):
        if season in lowered:
            return letter + name[-2:]
    return name[:3].upper()


def semester_status(start: Optional[date], end: Optional[date], today: Optional[date] = None) -> str:
    today = today or date.today()
    if start is None or end is None:
        return "Planning"
    if today < start:
        return "Future"
    if today > end:
        return "Past"
    return "Current"


@router.get("/semesters", response_model=List[SemesterResponse])
def get_semesters(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    """Stored semesters plus any semester only referenced by a course"""
    courses = db.query(Course).all()
    courses_by_semester = Counter(course.semester for course in courses)
    enrollments_by_semester = Counter(
        course.semester for course in courses for _ in course.enrollments
    )

    semesters = []
    known = set()
    for semester in db.query(Semester).order_by(Semester.start_date, Semester.name).all():
        known.add(semester.name)
        semesters.append(SemesterResponse(
            id=semester.id,
            name=semester.name,
            code=semester.code,
            start_date=semester.start_date,
            end_date=semester.end_date,
            status=semester_status(semester.start_date, semester.end_date),
            total_courses=courses_by_semester.get(semester.name, 0),
            total_enrollments=enrollments_by_semester.get(semester.name, 0),
            is_active=bool(semester.is_active),
        ))

    for name in sorted(set(courses_by_semester) - known):
        semesters.append(SemesterResponse(
            name=name,
            code=semester_code(name),
            status=semester_status(None, None),
            total_courses=courses_by_semester[name],
            total_enrollments=enrollments_by_semester.get(name, 0),
            is_active=True,
        ))
    return semesters


@router.post("/semesters", response_model=SemesterResponse, status_code=status.HTTP_201_CREATED)
def create_semester(
    semester_data: SemesterCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    if db.query(Semester).filter(Semester.name == semester_data.name).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Semester '{semester_data.name}' already exists"
        )
    if semester_data.start_date and semester_data.end_date and semester_data.start_date > semester_data.end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Start date must be before end date"
        )

    semester = Semester(
        name=semester_data.name,
        code=semester_data.code or semester_code(semester_data.name),
        start_date=semester_data.start_date,
        end_date=semester_data.end_date,
        is_active=semester_data.is_active,
    )
    db.add(semester)
    db.commit()
    db.refresh(semester)

    courses = db.query(Course).filter(Course.semester == semester.name).all()
    return SemesterResponse(
        id=semester.id,
        name=semester.name,
        code=semester.code,
        start_date=semester.start_date,
        end_date=semester.end_date,
        status=semester_status(semester.start_date, semester.end_date),
        total_courses=len(courses),
        total_enrollments=sum(len(course.enrollments) for course in courses),
        is_active=bool(semester.is_active),
    )


# ==================== DEPARTMENTS ====================

def department_totals(professors: List[Professor]) -> dict:
    courses = [course for professor in professors for course in professor.courses]
    students = {e.student_id for course in courses for e in course.enrollments}
    return {
        "total_professors": len(professors),
        "total_courses": len(courses),
        "total_students": len(students),
    }


@router.get("/departments", response_model=List[DepartmentResponse])
def get_departments(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    """Stored departments plus departments only named on professor profiles"""
    professors_by_department = {}
    for professor in db.query(Professor).all():
        if professor.department:
            professors_by_department.setdefault(professor.department, []).append(professor)

    departments = []
    known = set()
    for department in db.query(Department).order_by(Department.name).all():
        known.add(department.name)
        departments.append(DepartmentResponse(
            id=department.id,
            name=department.name,
            code=department.code,
            description=department.description,
            head_of_department=department.head_of_department,
            contact_email=department.contact_email,
            location=department.location,
            **department_totals(professors_by_department.get(department.name, [])),
        ))

    for name in sorted(set(professors_by_department) - known):
        departments.append(DepartmentResponse(
            name=name,
            code=name[:4].upper(),
            **department_totals(professors_by_department[name]),
        ))
    return departments


@router.post("/departments", response_model=DepartmentResponse, status_code=status.HTTP_201_CREATED)
def create_department(
    department_data: DepartmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    if db.query(Department).filter(Department.name == department_data.name).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Department '{department_data.name}' already exists"
        )

    department = Department(
        name=department_data.name,
        code=department_data.code or department_data.name[:4].upper(),
        description=department_data.description,
        head_of_department=department_data.head_of_department,
        contact_email=department_data.contact_email,
        location=department_data.location,
    )
    db.add(department)
    db.commit()
    db.refresh(department)

    professors = db.query(Professor).filter(Professor.department == department.name).all()
    return DepartmentResponse(
        id=department.id,
        name=department.name,
        code=department.code,
        description=department.description,
        head_of_department=department.head_of_department,
        contact_email=department.contact_email,
        location=department.location,
        **department_totals(professors),
    )


# ==================== STATISTICS ====================

def format_uptime(seconds: float) -> str:
    minutes, _ = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)
    return f"{days}d {hours}h {minutes}m"


def health_status(utilization: int) -> str:
    if utilization >= 100:
        return "Critical"
    if utilization >= 90:
        return "Warning"
    return "Healthy"


@router.get("/system-stats", response_model=SystemStatistics)
def get_system_statistics(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    users = db.query(User).all()
    professors = db.query(Professor).all()
    courses = db.query(Course).all()
    enrollments = db.query(Enrollment).all()
    total_students = db.query(Student).count()

    month_start = datetime.utcnow().replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    new_users = len([user for user in users if user.created_at and user.created_at >= month_start])

    grades = [e.grade for e in enrollments if e.grade is not None]
    enrolled_per_course = [len(course.enrollments) for course in courses]
    total_capacity = sum(course.capacity for course in courses)
    utilization = int(round(len(enrollments) / total_capacity * 100)) if total_capacity else 0

    courses_by_department = Counter(
        course.professor.department for course in courses
        if course.professor is not None and course.professor.department
    )

    return SystemStatistics(
        user_stats=UserStatistics(
            total_users=len(users),
            active_students=total_students,
            active_professors=len(professors),
            admins=len([user for user in users if user.role == RoleEnum.ADMIN]),
            new_users_this_month=new_users,
            users_by_department=dict(Counter(p.department for p in professors if p.department)),
        ),
        enrollment_stats=EnrollmentStatistics(
            total_enrollments=len(enrollments),
            active_enrollments=len(enrollments) - len(grades),
            completed_enrollments=len(grades),
            enrollments_by_semester=dict(Counter(e.course.semester for e in enrollments)),
            average_enrollments_per_student=round(len(enrollments) / total_students, 2) if total_students else 0.0,
        ),
        course_stats=CourseStatistics(
            total_courses=len(courses),
            active_courses=len(courses),
            full_capacity_courses=len([course for course in courses if course.available_seats <= 0]),
            underenrolled_courses=len([
                course for course, enrolled in zip(courses, enrolled_per_course)
                if enrolled * 2 < course.capacity
            ]),
            courses_by_department=dict(courses_by_department),
            average_class_size=round(sum(enrolled_per_course) / len(courses), 2) if courses else 0.0,
        ),
        grade_stats=GradeStatistics(
            total_grades=len(grades),
            pending_grades=len(enrollments) - len(grades),
            system_gpa=GradeCalculator.average_points(grades),
            grade_distribution=GradeCalculator.distribution(grades),
            pass_rate=GradeCalculator.pass_rate(grades),
            gpa_by_department=department_averages(enrollments),
        ),
        system_health=SystemHealth(
            status=health_status(utilization),
            capacity_utilization=utilization,
            active_users=len([user for user in users if user.is_active]),
            uptime=format_uptime(time.time() - psutil.Process().create_time()),
            memory_usage=psutil.virtual_memory().percent,
        ),
    )


def month_periods(months: int, today: Optional[date] = None) -> List[str]:
    """The last N months as YYYY-MM, oldest first, ending with the current month"""
    today = today or date.today()
    year, month = today.year, today.month
    periods = []
    for _ in range(months):
        periods.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(periods))


def trend_direction(counts: List[int]) -> str:
    if len(counts) < 2 or counts[-1] == counts[0]:
        return "Stable"
    return "Increasing" if counts[-1] > counts[0] else "Decreasing"


@router.get("/enrollment-trends", response_model=EnrollmentTrends)
def get_enrollment_trends(
    time_range: Optional[str] = Query("6-months", alias="timeRange"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    """Monthly enrollment and grading activity over 3, 6 or 12 months"""
    time_range = time_range or "6-months"
    if time_range not in TIME_RANGES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown time range: {time_range}. Allowed: {', '.join(TIME_RANGES)}"
        )

    periods = month_periods(TIME_RANGES[time_range])
    window = set(periods)

    enrollments = [
        e for e in db.query(Enrollment).all()
        if e.enrollment_date.strftime("%Y-%m") in window
    ]
    changes = [
        c for c in db.query(GradeChange).all()
        if c.changed_at.strftime("%Y-%m") in window
    ]

    enrollment_counts = Counter(e.enrollment_date.strftime("%Y-%m") for e in enrollments)
    change_counts = Counter(c.changed_at.strftime("%Y-%m") for c in changes)

    def trend_rows(counts: Counter, total: int, category: str) -> List[TrendData]:
        return [
            TrendData(
                period=period,
                count=counts.get(period, 0),
                percentage=round(counts.get(period, 0) / total * 100, 2) if total else 0.0,
                category=category,
            )
            for period in periods
        ]

    per_month = [enrollment_counts.get(period, 0) for period in periods]
    peak_period = None
    if enrollments:
        peak_period = max(periods, key=lambda period: (enrollment_counts.get(period, 0), period))
    popular = Counter(e.course.code for e in enrollments).most_common(1)

    return EnrollmentTrends(
        time_range=time_range,
        enrollment_trends=trend_rows(enrollment_counts, len(enrollments), "Monthly"),
        grade_trends=trend_rows(change_counts, len(changes), "Grades"),
        peak_enrollment=PeakEnrollment(
            period=peak_period,
            peak_enrollments=max(per_month) if per_month else 0,
            most_popular_course=popular[0][0] if popular else None,
            trend=trend_direction(per_month),
        ),
    )
