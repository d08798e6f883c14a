from typing import Optional

from pydantic import Field

from ...shared.schemas import CamelModel


class CourseCreate(CamelModel):
    code: str = Field(..., min_length=1, max_length=20)
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    semester: str = Field(..., min_length=1, max_length=50)
    schedule_info: Optional[str] = Field(None, max_length=255)
    capacity: int = Field(30, gt=0)
    credits: Optional[int] = Field(None, gt=0, le=12)
    professor_id: Optional[int] = None


class CourseUpdate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    semester: str = Field(..., min_length=1, max_length=50)
    schedule_info: Optional[str] = Field(None, max_length=255)
    capacity: Optional[int] = Field(None, gt=0)
    credits: Optional[int] = Field(None, gt=0, le=12)
    professor_id: Optional[int] = None


class CourseResponse(CamelModel):
    id: int
    code: str
    title: str
    description: Optional[str] = None
    semester: str
    schedule_info: Optional[str] = None
    capacity: int
    available_seats: int
    credits: int
    professor_id: Optional[int] = None
    professor_name: Optional[str] = None
    professor_email: Optional[str] = None


def course_response(course) -> dict:
    professor = course.professor
    return CourseResponse(
        id=course.id,
        code=course.code,
        title=course.title,
        description=course.description,
        semester=course.semester,
        schedule_info=course.schedule_info,
        capacity=course.capacity,
        available_seats=course.available_seats,
        credits=course.credits,
        professor_id=professor.id if professor else None,
        professor_name=professor.name if professor else None,
        professor_email=professor.email if professor else None,
    ).model_dump(by_alias=True)
