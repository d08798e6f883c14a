"""
Shared components of the system
"""
from .models import (
    User, Student, Professor, Course, Enrollment,
    GradeChange, Semester, Department
)
from .enums import RoleEnum, GradeStatusEnum

__all__ = [
    "User", "Student", "Professor", "Course", "Enrollment",
    "GradeChange", "Semester", "Department",
    "RoleEnum", "GradeStatusEnum"
]
