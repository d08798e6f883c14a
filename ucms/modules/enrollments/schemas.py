from datetime import datetime
from typing import List, Optional

from pydantic import Field

from ...shared.enums import GradeStatusEnum
from ...shared.grade_calculator import GradeCalculator
from ...shared.schemas import CamelModel


class EnrollmentRequest(CamelModel):
    course_id: int


class ForceEnrollmentRequest(CamelModel):
    student_id: int
    course_id: int
    reason: Optional[str] = Field(None, max_length=500)


class GradeUpdate(CamelModel):
    grade: Optional[str] = Field(None, max_length=5)
    comments: Optional[str] = Field(None, max_length=1000)


class BulkGradeEntry(GradeUpdate):
    enrollment_id: int


class BulkGradeUpdate(CamelModel):
    grades: List[BulkGradeEntry] = Field(..., min_length=1)


class EnrollmentResponse(CamelModel):
    id: int
    student_id: int
    student_name: str
    student_email: str
    course_id: int
    course_code: str
    course_title: str
    semester: str
    credits: int
    enrollment_date: datetime
    grade: Optional[str] = None
    grade_status: GradeStatusEnum


class ScheduleResponse(CamelModel):
    enrollments: List[EnrollmentResponse]
    total_credits: int
    gpa: Optional[float] = None


class TranscriptEntry(CamelModel):
    course_code: str
    course_title: str
    semester: str
    grade: str
    credits: int
    professor_name: str


class TranscriptResponse(CamelModel):
    student_id: int
    student_name: str
    email: str
    major: str
    gpa: float
    total_credits: int
    completed_credits: int
    courses: List[TranscriptEntry]


class EnrollmentStats(CamelModel):
    total_enrollments: int
    active_enrollments: int
    completed_enrollments: int
    pending_grades: int
    average_grade_points: float
    total_students: int
    total_courses: int
    courses_with_full_capacity: int
    students_without_enrollments: int


class EnrolledStudent(CamelModel):
    student_id: int
    enrollment_id: int
    name: str
    email: str
    grade: Optional[str] = None
    enrollment_date: str


class BucketDistribution(CamelModel):
    a_grades: int
    b_grades: int
    c_grades: int
    d_grades: int
    f_grades: int
    pending: int


class CourseEnrollmentDetails(CamelModel):
    course_id: int
    course_code: str
    course_title: str
    semester: str
    capacity: int
    enrolled_students: int
    available_seats: int
    professor_name: str
    students: List[EnrolledStudent]
    grade_distribution: BucketDistribution


def enrollment_response(enrollment) -> dict:
    student = enrollment.student
    course = enrollment.course
    return EnrollmentResponse(
        id=enrollment.id,
        student_id=student.id,
        student_name=student.name,
        student_email=student.email,
        course_id=course.id,
        course_code=course.code,
        course_title=course.title,
        semester=course.semester,
        credits=GradeCalculator.credits_for(enrollment),
        enrollment_date=enrollment.enrollment_date,
        grade=enrollment.grade,
        grade_status=GradeStatusEnum.GRADED if enrollment.grade is not None else GradeStatusEnum.PENDING,
    ).model_dump(by_alias=True)


def build_transcript(student) -> TranscriptResponse:
    """Transcript of every enrollment; ungraded courses show as In Progress"""
    enrollments = student.enrollments
    credits = GradeCalculator.credit_summary(enrollments)
    entries = [
        TranscriptEntry(
            course_code=enrollment.course.code,
            course_title=enrollment.course.title,
            semester=enrollment.course.semester,
            grade=enrollment.grade if enrollment.grade is not None else "In Progress",
            credits=GradeCalculator.credits_for(enrollment),
            professor_name=enrollment.course.professor_name,
        )
        for enrollment in sorted(enrollments, key=lambda e: e.enrollment_date)
    ]
    return TranscriptResponse(
        student_id=student.id,
        student_name=student.name,
        email=student.email,
        major=student.major or "Undeclared",
        gpa=GradeCalculator.calculate_gpa(enrollments) or 0.0,
        total_credits=credits["total_credits"],
        completed_credits=credits["completed_credits"],
        courses=entries,
    )


def build_course_details(course) -> CourseEnrollmentDetails:
    enrollments = course.enrollments
    buckets = GradeCalculator.bucket_distribution(e.grade for e in enrollments)
    return CourseEnrollmentDetails(
        course_id=course.id,
        course_code=course.code,
        course_title=course.title,
        semester=course.semester,
        capacity=course.capacity,
        enrolled_students=len(enrollments),
        available_seats=course.available_seats,
        professor_name=course.professor_name,
        students=[
            EnrolledStudent(
                student_id=e.student.id,
                enrollment_id=e.id,
                name=e.student.name,
                email=e.student.email,
                grade=e.grade,
                enrollment_date=e.enrollment_date.date().isoformat(),
            )
            for e in enrollments
        ],
        grade_distribution=BucketDistribution(
            a_grades=buckets["A"],
            b_grades=buckets["B"],
            c_grades=buckets["C"],
            d_grades=buckets["D"],
            f_grades=buckets["F"],
            pending=buckets[GradeCalculator.PENDING],
        ),
    )
