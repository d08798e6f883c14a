"""
Shared ORM models of the system
"""
from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, Enum, Float,
    ForeignKey, Text, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from ..database import Base
from .enums import RoleEnum


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    role = Column(Enum(RoleEnum), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())
    updated_at = Column(DateTime, onupdate=datetime.utcnow)
    last_login = Column(DateTime, nullable=True)

    # Role profiles share the primary key of the user
    student = relationship("Student", back_populates="user", uselist=False, cascade="all, delete-orphan")
    professor = relationship("Professor", back_populates="user", uselist=False, cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(username={self.username}, role={self.role})>"

    @property
    def profile(self):
        if self.role == RoleEnum.STUDENT:
            return self.student
        if self.role == RoleEnum.PROFESSOR:
            return self.professor
        return None

    @property
    def display_name(self):
        profile = self.profile
        if profile is not None:
            return profile.name
        return f"Administrator ({self.username})"

    @property
    def email(self):
        profile = self.profile
        if profile is not None:
            return profile.email
        return self.username if "@" in self.username else ""


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    student_id = Column(String(20), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    date_of_birth = Column(Date, nullable=True)
    major = Column(String(100), default="Undeclared")
    year = Column(String(20), default="Freshman")
    status = Column(String(20), default="Active")

    # Contact information
    phone = Column(String(30), nullable=True)
    address = Column(String(255), nullable=True)
    emergency_contact = Column(String(100), nullable=True)
    emergency_phone = Column(String(30), nullable=True)

    user = relationship("User", back_populates="student")
    enrollments = relationship("Enrollment", back_populates="student", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Student(student_id={self.student_id}, name={self.name})>"


class Professor(Base):
    __tablename__ = "professors"

    id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    employee_id = Column(String(20), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    department = Column(String(100), nullable=True)

    user = relationship("User", back_populates="professor")
    courses = relationship("Course", back_populates="professor")

    def __repr__(self):
        return f"<Professor(employee_id={self.employee_id}, name={self.name})>"


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), unique=True, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    semester = Column(String(50), nullable=False, index=True)
    schedule_info = Column(String(255), nullable=True)
    capacity = Column(Integer, nullable=False, default=30)
    available_seats = Column(Integer, nullable=False, default=30)
    credits = Column(Integer, nullable=False, default=3)
    professor_id = Column(Integer, ForeignKey("professors.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    professor = relationship("Professor", back_populates="courses")
    enrollments = relationship("Enrollment", back_populates="course", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Course(code={self.code}, title={self.title})>"

    @property
    def enrolled_count(self):
        return len(self.enrollments)

    @property
    def professor_name(self):
        return self.professor.name if self.professor else "TBA"


class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("student_id", "course_id", name="uq_enrollment_student_course"),)

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    enrollment_date = Column(DateTime, nullable=False, default=datetime.utcnow)
    grade = Column(String(5), nullable=True)

    # Additional grade components
    midterm_grade = Column(String(5), nullable=True)
    final_grade = Column(String(5), nullable=True)
    attendance = Column(Float, nullable=True)
    participation_score = Column(Float, nullable=True)
    comments = Column(String(1000), nullable=True)

    student = relationship("Student", back_populates="enrollments")
    course = relationship("Course", back_populates="enrollments")
    grade_changes = relationship(
        "GradeChange", back_populates="enrollment", cascade="all, delete-orphan",
        order_by="GradeChange.changed_at"
    )

    def __repr__(self):
        return f"<Enrollment(student_id={self.student_id}, course_id={self.course_id}, grade={self.grade})>"


class GradeChange(Base):
    __tablename__ = "grade_changes"

    id = Column(Integer, primary_key=True, index=True)
    enrollment_id = Column(Integer, ForeignKey("enrollments.id", ondelete="CASCADE"), nullable=False)
    previous_grade = Column(String(5), nullable=True)
    new_grade = Column(String(5), nullable=True)
    comments = Column(String(1000), nullable=True)
    changed_by = Column(String(100), nullable=False)
    changed_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    enrollment = relationship("Enrollment", back_populates="grade_changes")

    def __repr__(self):
        return f"<GradeChange(enrollment_id={self.enrollment_id}, {self.previous_grade} -> {self.new_grade})>"


class Semester(Base):
    __tablename__ = "semesters"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False)
    code = Column(String(10), nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    def __repr__(self):
        return f"<Semester(name={self.name})>"


class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    code = Column(String(10), nullable=True)
    description = Column(Text, nullable=True)
    head_of_department = Column(String(100), nullable=True)
    contact_email = Column(String(255), nullable=True)
    location = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())

    def __repr__(self):
        return f"<Department(code={self.code}, name={self.name})>"
