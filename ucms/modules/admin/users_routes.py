from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status, Query, Response
from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...database import get_db
from ...logging_config import get_logger
from ...shared.models import User, Student, Professor
from ...shared.enums import RoleEnum
from ...shared.grading import release_seat
from ...shared.pagination import paginate
from ...shared.schemas import PageResponse
from ..auth.dependencies import get_admin_user
from ..auth.security import get_password_hash
from .schemas import UserCreate, UserUpdate, UserResponse

logger = get_logger(__name__)

router = APIRouter(tags=["Admin - Users"])


def user_response(user: User) -> dict:
    student = user.student if user.role == RoleEnum.STUDENT else None
    professor = user.professor if user.role == RoleEnum.PROFESSOR else None
    return UserResponse(
        id=user.id,
        username=user.username,
        role=user.role,
        name=user.display_name,
        email=user.email,
        student_id=student.student_id if student else None,
        employee_id=professor.employee_id if professor else None,
        department=professor.department if professor else None,
        date_of_birth=student.date_of_birth if student else None,
        created_at=user.created_at,
        last_login=user.last_login,
        active=bool(user.is_active),
    ).model_dump(by_alias=True)


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def parse_role(role: Optional[str]) -> Optional[RoleEnum]:
    if not role:
        return None
    try:
        return RoleEnum(role.upper())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown role: {role}"
        )


def next_identifier(db: Session, prefix: str, column, role: RoleEnum) -> str:
    """Next free STU0001 / PRO0001 style id, counted from the users of that role"""
    number = db.query(User).filter(User.role == role).count() + 1
    while True:
        candidate = f"{prefix}{number:04d}"
        if not db.query(column.class_).filter(column == candidate).first():
            return candidate
        number += 1


def ensure_email_free(db: Session, model, email: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(model).filter(model.email == email)
    if exclude_id is not None:
        query = query.filter(model.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email is already in use")


@router.get("/users", response_model=PageResponse)
def get_users(
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=1000),
    role: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    """Users filtered by role and by name, username or student/employee id"""
    query = db.query(User).outerjoin(Student, Student.id == User.id).outerjoin(Professor, Professor.id == User.id)

    role_filter = parse_role(role)
    if role_filter is not None:
        query = query.filter(User.role == role_filter)

    if search and search.strip():
        term = f"%{search.strip()}%"
        query = query.filter(or_(
            User.username.ilike(term),
            Student.name.ilike(term),
            Student.student_id.ilike(term),
            Professor.name.ilike(term),
            Professor.employee_id.ilike(term),
        ))

    return paginate(query.order_by(User.id), page, size, user_response)


@router.get("/users/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    return user_response(get_user_or_404(db, user_id))


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    """Create a user and its role profile; student and employee ids are generated"""
    if db.query(User).filter(User.username == user_data.username).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already exists")

    user = User(
        username=user_data.username,
        hashed_password=get_password_hash(user_data.password),
        role=user_data.role,
        is_active=True,
    )

    if user_data.role == RoleEnum.STUDENT:
        ensure_email_free(db, Student, user_data.email)
        user.student = Student(
            student_id=next_identifier(db, "STU", Student.student_id, RoleEnum.STUDENT),
            name=user_data.name,
            email=user_data.email,
            date_of_birth=user_data.date_of_birth,
            major="Undeclared",
            year="Freshman",
        )
    elif user_data.role == RoleEnum.PROFESSOR:
        ensure_email_free(db, Professor, user_data.email)
        user.professor = Professor(
            employee_id=next_identifier(db, "PRO", Professor.employee_id, RoleEnum.PROFESSOR),
            name=user_data.name,
            email=user_data.email,
            department=user_data.department,
        )

    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("User %s (%s) created by %s", user.username, user.role.value, current_user.username)
    return user_response(user)


@router.put("/users/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    user = get_user_or_404(db, user_id)

    if user_data.role != user.role:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Changing the role of an existing user is not supported"
        )

    existing = db.query(User).filter(User.username == user_data.username, User.id != user.id).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username already exists")

    user.username = user_data.username
    if user_data.password:
        if len(user_data.password) < 6:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Password must be at least 6 characters when provided"
            )
        user.hashed_password = get_password_hash(user_data.password)
    if user_data.active is not None:
        user.is_active = user_data.active

    if user.role == RoleEnum.STUDENT and user.student is not None:
        ensure_email_free(db, Student, user_data.email, exclude_id=user.id)
        user.student.name = user_data.name
        user.student.email = user_data.email
        if user_data.date_of_birth is not None:
            user.student.date_of_birth = user_data.date_of_birth
    elif user.role == RoleEnum.PROFESSOR and user.professor is not None:
        ensure_email_free(db, Professor, user_data.email, exclude_id=user.id)
        user.professor.name = user_data.name
        user.professor.email = user_data.email
        if user_data.department is not None:
            user.professor.department = user_data.department

    user.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(user)
    return user_response(user)


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    """Delete a user with its profile; a student's seats are given back"""
    user = get_user_or_404(db, user_id)

    if user.id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account"
        )

    if user.role == RoleEnum.STUDENT and user.student is not None:
        for enrollment in user.student.enrollments:
            release_seat(enrollment.course, enrollment)

    db.delete(user)
    db.commit()

    logger.info("User %s deleted by %s", user.username, current_user.username)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/students", response_model=PageResponse)
def get_students(
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    query = db.query(User).filter(User.role == RoleEnum.STUDENT).order_by(User.id)
    return paginate(query, page, size, user_response)


@router.get("/professors", response_model=PageResponse)
def get_professors(
    page: int = Query(0, ge=0),
    size: int = Query(10, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    query = db.query(User).filter(User.role == RoleEnum.PROFESSOR).order_by(User.id)
    return paginate(query, page, size, user_response)
