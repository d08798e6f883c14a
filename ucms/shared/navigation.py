"""
Pages each role may open in the frontend, and where it lands after login
"""
from typing import Dict, List

from .enums import RoleEnum

NAVIGATION: Dict[RoleEnum, Dict] = {
    RoleEnum.STUDENT: {
        "landing_page": "/dashboard",
        "pages": [
            {"path": "/dashboard", "title": "Dashboard"},
            {"path": "/courses", "title": "Course Catalog"},
            {"path": "/schedule", "title": "My Schedule"},
            {"path": "/transcript", "title": "Transcript"},
        ],
    },
    RoleEnum.PROFESSOR: {
        "landing_page": "/professor/dashboard",
        "pages": [
            {"path": "/professor/dashboard", "title": "Dashboard"},
            {"path": "/professor/courses", "title": "My Courses"},
            {"path": "/professor/roster", "title": "Class Roster"},
            {"path": "/professor/grades", "title": "Grade Entry"},
        ],
    },
    RoleEnum.ADMIN: {
        "landing_page": "/admin/users",
        "pages": [
            {"path": "/admin/users", "title": "User Management"},
            {"path": "/admin/courses", "title": "Course Management"},
            {"path": "/admin/students", "title": "Student Management"},
            {"path": "/admin/enrollments", "title": "Enrollment Management"},
            {"path": "/admin/grades", "title": "Grade Management"},
            {"path": "/admin/analytics", "title": "Analytics"},
        ],
    },
}


def landing_page(role: RoleEnum) -> str:
    return NAVIGATION[role]["landing_page"]


def pages_for(role: RoleEnum) -> List[Dict[str, str]]:
    return list(NAVIGATION[role]["pages"])


def can_access(role: RoleEnum, path: str) -> bool:
    """True when the path is one of the role's pages or nested below one"""
    path = path.rstrip("/") or "/"
    for page in NAVIGATION[role]["pages"]:
        if path == page["path"] or path.startswith(page["path"] + "/"):
            return True
    return False
