import io
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from sqlalchemy.orm import Session

from ...database import get_db
from ...logging_config import get_logger
from ...shared.models import User, Course, Professor
from ...shared.grade_calculator import GradeCalculator
from ..auth.dependencies import get_admin_user
from .schemas import SystemReport, ReportSection

logger = get_logger(__name__)

router = APIRouter(prefix="/reports", tags=["Admin - Reports"])

REPORT_TITLES = {
    "enrollment": "Enrollment Report",
    "grades": "Grade Distribution Report",
    "courses": "Course Report",
    "overview": "System Overview Report",
}


def filtered_courses(db: Session, semester: Optional[str], department: Optional[str]) -> List[Course]:
    query = db.query(Course)
    if semester:
        query = query.filter(Course.semester == semester)
    if department:
        query = query.join(Professor).filter(Professor.department == department)
    return query.order_by(Course.code).all()


def enrollment_rows(courses: List[Course]) -> List[Dict[str, Any]]:
    return [
        {
            "Student ID": e.student.student_id,
            "Student": e.student.name,
            "Email": e.student.email,
            "Course": course.code,
            "Title": course.title,
            "Semester": course.semester,
            "Enrollment Date": e.enrollment_date.strftime("%Y-%m-%d"),
            "Status": "Graded" if e.grade is not None else "Pending",
        }
        for course in courses
        for e in course.enrollments
    ]


def grade_rows(courses: List[Course]) -> List[Dict[str, Any]]:
    return [
        {
            "Student ID": e.student.student_id,
            "Student": e.student.name,
            "Course": course.code,
            "Semester": course.semester,
            "Grade": e.grade,
            "Grade Points": GradeCalculator.grade_points(e.grade),
            "Credits": GradeCalculator.credits_for(e),
            "Professor": course.professor_name,
        }
        for course in courses
        for e in course.enrollments
        if e.grade is not None
    ]


def course_rows(courses: List[Course]) -> List[Dict[str, Any]]:
    rows = []
    for course in courses:
        grades = [e.grade for e in course.enrollments if e.grade is not None]
        rows.append({
            "Code": course.code,
            "Title": course.title,
            "Semester": course.semester,
            "Professor": course.professor_name,
            "Department": course.professor.department if course.professor else None,
            "Capacity": course.capacity,
            "Enrolled": len(course.enrollments),
            "Available Seats": course.available_seats,
            "Credits": course.credits,
            "Average Grade Points": GradeCalculator.average_points(grades),
        })
    return rows


def overview_rows(courses: List[Course]) -> List[Dict[str, Any]]:
    enrollments = [e for course in courses for e in course.enrollments]
    grades = [e.grade for e in enrollments if e.grade is not None]
    metrics = [
        ("Courses", len(courses)),
        ("Enrollments", len(enrollments)),
        ("Students", len({e.student_id for e in enrollments})),
        ("Graded Enrollments", len(grades)),
        ("Pending Grades", len(enrollments) - len(grades)),
        ("Average Grade Points", GradeCalculator.average_points(grades)),
        ("Pass Rate", GradeCalculator.pass_rate(grades)),
    ]
    return [{"Metric": name, "Value": value} for name, value in metrics]


ROW_BUILDERS = {
    "enrollment": enrollment_rows,
    "grades": grade_rows,
    "courses": course_rows,
    "overview": overview_rows,
}


def build_rows(
    db: Session, report_type: str, semester: Optional[str], department: Optional[str]
) -> Tuple[str, List[Dict[str, Any]], List[Course]]:
    """Title, rows and the course selection of a report"""
    key = report_type.lower()
    if key not in ROW_BUILDERS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown report type: {report_type}. Allowed: {', '.join(ROW_BUILDERS)}"
        )
    courses = filtered_courses(db, semester, department)
    return REPORT_TITLES[key], ROW_BUILDERS[key](courses), courses


def report_summary(courses: List[Course]) -> Dict[str, Any]:
    enrollments = [e for course in courses for e in course.enrollments]
    grades = [e.grade for e in enrollments if e.grade is not None]
    return {
        "totalCourses": len(courses),
        "totalEnrollments": len(enrollments),
        "gradedEnrollments": len(grades),
        "averageGradePoints": GradeCalculator.average_points(grades),
        "passRate": GradeCalculator.pass_rate(grades),
    }


@router.get("/{report_type}", response_model=SystemReport)
def generate_report(
    report_type: str,
    semester: Optional[str] = Query(None),
    department: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    title, rows, courses = build_rows(db, report_type, semester, department)
    headers = list(rows[0].keys()) if rows else []

    return SystemReport(
        report_type=report_type.lower(),
        title=title,
        generated_at=datetime.utcnow(),
        semester=semester,
        department=department,
        summary=report_summary(courses),
        sections=[ReportSection(title=title, type="table", headers=headers, rows=rows)],
        download_url=f"/admin/reports/{report_type.lower()}/export",
    )


@router.get("/{report_type}/export")
def export_report(
    report_type: str,
    export_format: str = Query("csv", alias="format", pattern="^(csv|excel)$"),
    semester: Optional[str] = Query(None),
    department: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    """Download a report as CSV or Excel"""
    title, rows, _ = build_rows(db, report_type, semester, department)
    df = pd.DataFrame(rows)

    filename = f"{report_type.lower()}_report_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    logger.info("Exporting %s (%d rows) as %s for %s", title, len(df), export_format, current_user.username)

    if export_format == "excel":
        output = io.BytesIO()
        with pd.ExcelWriter(output, engine="openpyxl") as writer:
            df.to_excel(writer, sheet_name=title[:31], index=False)
        output.seek(0)

        return Response(
            content=output.getvalue(),
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers={"Content-Disposition": f"attachment; filename={filename}.xlsx"}
        )

    output = io.StringIO()
    df.to_csv(output, index=False, encoding="utf-8")

    return Response(
        content=output.getvalue(),
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}.csv"}
    )
