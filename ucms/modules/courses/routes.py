from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...config import settings
from ...database import get_db
from ...logging_config import get_logger
from ...shared.models import User, Course, Professor
from ...shared.pagination import apply_sort, paginate
from ...shared.schemas import PageResponse
from ..auth.dependencies import get_admin_user, get_staff_user
from .schemas import CourseCreate, CourseUpdate, CourseResponse, course_response

logger = get_logger(__name__)

router = APIRouter(prefix="/courses", tags=["Courses"])

SORT_COLUMNS = {
    "id": Course.id,
    "code": Course.code,
    "title": Course.title,
    "semester": Course.semester,
    "capacity": Course.capacity,
    "availableSeats": Course.available_seats,
    "credits": Course.credits,
}


def get_course_or_404(db: Session, course_id: int) -> Course:
    course = db.query(Course).filter(Course.id == course_id).first()
    if not course:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Course not found with id: {course_id}"
        )
    return course


def get_professor_or_404(db: Session, professor_id: int) -> Professor:
    professor = db.query(Professor).filter(Professor.id == professor_id).first()
    if not professor:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Professor not found with id: {professor_id}"
        )
    return professor


@router.get("", response_model=PageResponse)
def get_courses(
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=1000),
    sort_by: str = Query("id", alias="sortBy"),
    sort_dir: str = Query("asc", alias="sortDir"),
    db: Session = Depends(get_db)
):
    query = apply_sort(db.query(Course), SORT_COLUMNS, sort_by, sort_dir)
    return paginate(query, page, size, course_response)


@router.get("/simple", response_model=List[CourseResponse])
def get_courses_simple(db: Session = Depends(get_db)):
    """Every course, unpaginated, for dropdowns"""
    return [course_response(course) for course in db.query(Course).order_by(Course.code).all()]


@router.get("/search", response_model=PageResponse)
def search_courses(
    search: Optional[str] = Query(None),
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=1000),
    db: Session = Depends(get_db)
):
    """Case-insensitive match on course code or title"""
    query = db.query(Course)
    if search and search.strip():
        term = f"%{search.strip()}%"
        query = query.filter(or_(Course.code.ilike(term), Course.title.ilike(term)))
    return paginate(query.order_by(Course.id), page, size, course_response)


@router.get("/semester/{semester}", response_model=List[CourseResponse])
def get_courses_by_semester(semester: str, db: Session = Depends(get_db)):
    courses = db.query(Course).filter(Course.semester == semester).order_by(Course.code).all()
    return [course_response(course) for course in courses]


@router.get("/professor/{professor_id}", response_model=List[CourseResponse])
def get_courses_by_professor(professor_id: int, db: Session = Depends(get_db)):
    courses = db.query(Course).filter(Course.professor_id == professor_id).order_by(Course.code).all()
    return [course_response(course) for course in courses]


@router.get("/{course_id}", response_model=CourseResponse)
def get_course(course_id: int, db: Session = Depends(get_db)):
    return course_response(get_course_or_404(db, course_id))


@router.post("", response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
def create_course(
    course_data: CourseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_staff_user)
):
    if db.query(Course).filter(Course.code == course_data.code).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Course with code '{course_data.code}' already exists"
        )

    professor = None
    if course_data.professor_id is not None:
        professor = db.query(Professor).filter(Professor.id == course_data.professor_id).first()
        if not professor:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Professor not found with id: {course_data.professor_id}"
            )

    course = Course(
        code=course_data.code,
        title=course_data.title,
        description=course_data.description,
        semester=course_data.semester,
        schedule_info=course_data.schedule_info,
        capacity=course_data.capacity,
        available_seats=course_data.capacity,
        credits=course_data.credits or settings.default_course_credits,
        professor=professor,
    )
    db.add(course)
    db.commit()
    db.refresh(course)

    logger.info("Course %s created by %s", course.code, current_user.username)
    return course_response(course)


@router.put("/{course_id}", response_model=CourseResponse)
def update_course(
    course_id: int,
    course_data: CourseUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_staff_user)
):
    course = get_course_or_404(db, course_id)

    course.title = course_data.title
    course.description = course_data.description
    course.semester = course_data.semester
    course.schedule_info = course_data.schedule_info

    if course_data.credits is not None:
        course.credits = course_data.credits

    if course_data.capacity is not None and course_data.capacity != course.capacity:
        enrolled = course.enrolled_count
        course.capacity = course_data.capacity
        course.available_seats = max(0, course_data.capacity - enrolled)

    # A missing professor id unassigns the course
    if course_data.professor_id is not None:
        course.professor = get_professor_or_404(db, course_data.professor_id)
    else:
        course.professor = None

    db.commit()
    db.refresh(course)
    return course_response(course)


@router.delete("/{course_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    course = get_course_or_404(db, course_id)

    if course.enrollments:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete course with enrolled students. Please transfer students first."
        )

    db.delete(course)
    db.commit()

    logger.info("Course %s deleted by %s", course.code, current_user.username)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
