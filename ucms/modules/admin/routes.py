from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ..auth.dependencies import get_admin_user
from ...shared.models import User
from ...shared.enums import RoleEnum
from .schemas import UserStats

from .users_routes import router as users_router
from .students_routes import router as students_router
from .grades_routes import router as grades_router
from .system_routes import router as system_router
from .reports_routes import router as reports_router

router = APIRouter(prefix="/admin", tags=["Admin"])

router.include_router(users_router)
router.include_router(students_router)
router.include_router(grades_router)
router.include_router(system_router)
router.include_router(reports_router)


@router.get("/stats", response_model=UserStats)
def get_user_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_admin_user)
):
    """User counts by role"""
    return UserStats(
        total_users=db.query(User).count(),
        total_students=db.query(User).filter(User.role == RoleEnum.STUDENT).count(),
        total_professors=db.query(User).filter(User.role == RoleEnum.PROFESSOR).count(),
        total_admins=db.query(User).filter(User.role == RoleEnum.ADMIN).count(),
    )
