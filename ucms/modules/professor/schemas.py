from typing import List, Optional

from pydantic import Field

from ...shared.schemas import CamelModel
from ..enrollments.schemas import BulkGradeEntry


class ProfessorStats(CamelModel):
    total_courses: int
    total_students: int
    courses_this_semester: int
    pending_grades: int


class ProfessorCourse(CamelModel):
    id: int
    code: str
    title: str
    description: Optional[str] = None
    semester: str
    capacity: int
    available_seats: int
    credits: int
    schedule_info: Optional[str] = None
    enrolled_students: int


class RosterStudent(CamelModel):
    id: int
    student_id: str
    name: str
    email: str
    enrollment_date: str
    grade: Optional[str] = None
    enrollment_id: int


class CourseRoster(CamelModel):
    course_id: int
    course_code: str
    course_title: str
    semester: str
    students: List[RosterStudent]
    total_enrolled: int


class CourseDetailsUpdate(CamelModel):
    """Professors may only touch the description and schedule of their courses"""
    description: Optional[str] = None
    schedule_info: Optional[str] = Field(None, max_length=255)


class CourseGradesUpdate(CamelModel):
    grades: List[BulkGradeEntry] = Field(..., min_length=1)


def professor_course(course) -> dict:
    enrolled = len(course.enrollments)
    return ProfessorCourse(
        id=course.id,
        code=course.code,
        title=course.title,
        description=course.description,
        semester=course.semester,
        capacity=course.capacity,
        available_seats=course.available_seats,
        credits=course.credits,
        schedule_info=course.schedule_info,
        enrolled_students=enrolled,
    ).model_dump(by_alias=True)
