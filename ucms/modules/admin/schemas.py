from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import EmailStr, Field

from ...shared.enums import RoleEnum
from ...shared.schemas import CamelModel


# ==================== USERS ====================

class UserCreate(CamelModel):
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=6, max_length=100)
    role: RoleEnum
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    department: Optional[str] = Field(None, max_length=100)
    date_of_birth: Optional[date] = None


class UserUpdate(CamelModel):
    username: str = Field(..., min_length=3, max_length=100)
    # Blank keeps the current password
    password: Optional[str] = Field(None, max_length=100)
    role: RoleEnum
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    department: Optional[str] = Field(None, max_length=100)
    date_of_birth: Optional[date] = None
    active: Optional[bool] = None


class UserResponse(CamelModel):
    id: int
    username: str
    role: RoleEnum
    name: str
    email: str
    student_id: Optional[str] = None
    employee_id: Optional[str] = None
    department: Optional[str] = None
    date_of_birth: Optional[date] = None
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None
    active: bool


class UserStats(CamelModel):
    total_users: int
    total_students: int
    total_professors: int
    total_admins: int


# ==================== STUDENTS ====================

class StudentUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    major: Optional[str] = Field(None, max_length=100)
    year: Optional[str] = Field(None, max_length=20)
    status: Optional[str] = Field(None, pattern="^(Active|Inactive|Graduated|Suspended)$")
    phone: Optional[str] = Field(None, max_length=30)
    address: Optional[str] = Field(None, max_length=255)
    emergency_contact: Optional[str] = Field(None, max_length=100)
    emergency_phone: Optional[str] = Field(None, max_length=30)


class EnrollmentSummary(CamelModel):
    enrollment_id: int
    course_code: str
    course_title: str
    semester: str
    grade: Optional[str] = None
    credits: int
    professor_name: str
    enrollment_date: datetime


class ContactInfo(CamelModel):
    phone: Optional[str] = None
    address: Optional[str] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None


class StudentDetail(CamelModel):
    id: int
    name: str
    email: str
    student_id: str
    major: str
    year: str
    gpa: float
    total_credits: int
    completed_credits: int
    enrollment_date: Optional[datetime] = None
    status: str
    current_enrollments: List[EnrollmentSummary]
    enrollment_history: List[EnrollmentSummary]
    contact_info: ContactInfo


# ==================== GRADES ====================

class GradeOverride(CamelModel):
    grade: Optional[str] = Field(None, max_length=5)
    comments: Optional[str] = Field(None, max_length=1000)


class GradeResponse(CamelModel):
    enrollment_id: int
    student_id: int
    student_name: str
    student_email: str
    course_id: int
    course_code: str
    course_title: str
    semester: str
    professor_name: str
    grade: Optional[str] = None
    grade_updated_date: Optional[datetime] = None
    grade_updated_by: Optional[str] = None
    comments: Optional[str] = None
    credits: int
    grade_points: float


class GradeAnalytics(CamelModel):
    semester: Optional[str] = None
    course_code: Optional[str] = None
    total_grades: int
    average_gpa: float = Field(..., alias="averageGPA")
    grade_distribution: Dict[str, int]
    grade_percentages: Dict[str, float]
    pending_grades: int
    highest_grade: Optional[str] = None
    lowest_grade: Optional[str] = None
    pass_rate: float
    department_comparison: Dict[str, float]


class GradeDistribution(CamelModel):
    course_id: int
    course_code: str
    course_title: str
    semester: str
    professor_name: str
    total_students: int
    graded_students: int
    pending_grades: int
    course_average_gpa: float = Field(..., alias="courseAverageGPA")
    grade_count: Dict[str, int]
    grade_percentage: Dict[str, float]
    median_grade: Optional[str] = None
    mode_grade: Optional[str] = None


class GradeChangeResponse(CamelModel):
    id: int
    enrollment_id: int
    previous_grade: Optional[str] = None
    new_grade: Optional[str] = None
    comments: Optional[str] = None
    changed_by: str
    changed_at: datetime


# ==================== SEMESTERS & DEPARTMENTS ====================

class SemesterCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=50)
    code: Optional[str] = Field(None, max_length=10)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    is_active: bool = True


class SemesterResponse(CamelModel):
    id: Optional[int] = None
    name: str
    code: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: str
    total_courses: int
    total_enrollments: int
    is_active: bool


class DepartmentCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: Optional[str] = Field(None, max_length=10)
    description: Optional[str] = None
    head_of_department: Optional[str] = Field(None, max_length=100)
    contact_email: Optional[EmailStr] = None
    location: Optional[str] = Field(None, max_length=255)


class DepartmentResponse(CamelModel):
    id: Optional[int] = None
    name: str
    code: Optional[str] = None
    description: Optional[str] = None
    head_of_department: Optional[str] = None
    total_professors: int
    total_courses: int
    total_students: int
    contact_email: Optional[str] = None
    location: Optional[str] = None


# ==================== SYSTEM STATISTICS ====================

class UserStatistics(CamelModel):
    total_users: int
    active_students: int
    active_professors: int
    admins: int
    new_users_this_month: int
    users_by_department: Dict[str, int]


class EnrollmentStatistics(CamelModel):
    total_enrollments: int
    active_enrollments: int
    completed_enrollments: int
    enrollments_by_semester: Dict[str, int]
    average_enrollments_per_student: float


class CourseStatistics(CamelModel):
    total_courses: int
    active_courses: int
    full_capacity_courses: int
    underenrolled_courses: int
    courses_by_department: Dict[str, int]
    average_class_size: float


class GradeStatistics(CamelModel):
    total_grades: int
    pending_grades: int
    system_gpa: float = Field(..., alias="systemGPA")
    grade_distribution: Dict[str, int]
    pass_rate: float
    gpa_by_department: Dict[str, float]


class SystemHealth(CamelModel):
    status: str
    capacity_utilization: int
    active_users: int
    uptime: str
    memory_usage: float


class SystemStatistics(CamelModel):
    user_stats: UserStatistics
    enrollment_stats: EnrollmentStatistics
    course_stats: CourseStatistics
    grade_stats: GradeStatistics
    system_health: SystemHealth


class TrendData(CamelModel):
    period: str
    count: int
    percentage: float
    category: str


class PeakEnrollment(CamelModel):
    period: Optional[str] = None
    peak_enrollments: int
    most_popular_course: Optional[str] = None
    trend: str


class EnrollmentTrends(CamelModel):
    time_range: str
    enrollment_trends: List[TrendData]
    grade_trends: List[TrendData]
    peak_enrollment: PeakEnrollment


# ==================== REPORTS ====================

class ReportSection(CamelModel):
    title: str
    type: str
    headers: List[str]
    rows: List[Dict[str, Any]]


class SystemReport(CamelModel):
    report_type: str
    title: str
    generated_at: datetime
    semester: Optional[str] = None
    department: Optional[str] = None
    summary: Dict[str, Any]
    sections: List[ReportSection]
    download_url: str
