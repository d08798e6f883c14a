from datetime import date, datetime
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from ...shared.enums import RoleEnum
from ...shared.schemas import CamelModel


class LoginRequest(CamelModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)


class RegisterRequest(CamelModel):
    username: EmailStr
    password: str = Field(..., min_length=6, max_length=100)
    student_id: str = Field(..., min_length=1, max_length=20)
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    date_of_birth: Optional[date] = None

    @field_validator("date_of_birth")
    @classmethod
    def date_of_birth_in_past(cls, value):
        if value is not None and value >= date.today():
            raise ValueError("Date of birth must be in the past")
        return value


class UserInfo(CamelModel):
    id: int
    username: str
    role: RoleEnum
    profile_id: Optional[int] = None
    name: str
    email: str


class LoginResponse(CamelModel):
    token: str
    type: str = "Bearer"
    user: UserInfo


class ChangePassword(CamelModel):
    current_password: str
    new_password: str = Field(..., min_length=6, max_length=100)


class HealthResponse(CamelModel):
    status: str
    timestamp: datetime
    service: str


class NavigationPage(CamelModel):
    path: str
    title: str


class NavigationResponse(CamelModel):
    role: RoleEnum
    landing_page: str
    pages: List[NavigationPage]


class PageAccess(CamelModel):
    path: str
    allowed: bool
    redirect_to: Optional[str] = None


def user_info(user) -> UserInfo:
    profile = user.profile
    return UserInfo(
        id=user.id,
        username=user.username,
        role=user.role,
        profile_id=profile.id if profile is not None else None,
        name=user.display_name,
        email=user.email,
    )
