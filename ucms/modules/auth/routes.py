from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ...database import get_db
from ...logging_config import get_logger
from ...shared.models import User, Student
from ...shared.enums import RoleEnum
from ...shared.navigation import can_access, landing_page, pages_for
from ...shared.schemas import MessageResponse
from .schemas import (
    LoginRequest, LoginResponse, RegisterRequest, UserInfo, ChangePassword,
    HealthResponse, NavigationResponse, PageAccess, user_info
)
from .security import verify_password, get_password_hash, create_access_token
from .dependencies import get_current_active_user

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Sign in with username and password and receive a bearer token"""
    user = db.query(User).filter(User.username == credentials.username).first()

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.info("Failed login for %s", credentials.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is disabled"
        )

    user.last_login = datetime.utcnow()
    db.commit()

    token = create_access_token(data={"sub": user.username, "role": user.role.value})
    return LoginResponse(token=token, user=user_info(user))


@router.post("/register", response_model=UserInfo, status_code=status.HTTP_201_CREATED)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """Self-service registration, always as a student"""
    if db.query(User).filter(User.username == request.username).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Username is already taken")
    if db.query(Student).filter(Student.email == request.email).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email is already in use")
    if db.query(Student).filter(Student.student_id == request.student_id).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Student ID is already in use")

    user = User(
        username=request.username,
        hashed_password=get_password_hash(request.password),
        role=RoleEnum.STUDENT,
        is_active=True,
    )
    user.student = Student(
        student_id=request.student_id,
        name=request.name,
        email=request.email,
        date_of_birth=request.date_of_birth,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("Registered student %s", user.username)
    return user_info(user)


@router.get("/me", response_model=UserInfo)
def get_current_user_info(current_user: User = Depends(get_current_active_user)):
    return user_info(current_user)


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="UP", timestamp=datetime.utcnow(), service="UCMS Authentication Service")


@router.get("/navigation", response_model=NavigationResponse)
def navigation(current_user: User = Depends(get_current_active_user)):
    """Pages the caller's role may open, plus its landing page"""
    return NavigationResponse(
        role=current_user.role,
        landing_page=landing_page(current_user.role),
        pages=pages_for(current_user.role),
    )


@router.get("/navigation/access", response_model=PageAccess)
def check_page_access(
    path: str = Query(..., min_length=1),
    current_user: User = Depends(get_current_active_user)
):
    """Route guard: may the caller open this frontend path?"""
    allowed = can_access(current_user.role, path)
    return PageAccess(
        path=path,
        allowed=allowed,
        redirect_to=None if allowed else landing_page(current_user.role),
    )


@router.post("/change-password", response_model=MessageResponse)
def change_password(
    password_change: ChangePassword,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db)
):
    if not verify_password(password_change.current_password, current_user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect"
        )

    current_user.hashed_password = get_password_hash(password_change.new_password)
    current_user.updated_at = datetime.utcnow()
    db.commit()

    return {"message": "Password changed successfully"}


@router.post("/logout", response_model=MessageResponse)
def logout():
    """Tokens are stateless; the client discards its copy"""
    return {"message": "Logged out successfully"}
