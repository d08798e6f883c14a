import enum


class RoleEnum(str, enum.Enum):
    STUDENT = "STUDENT"
    PROFESSOR = "PROFESSOR"
    ADMIN = "ADMIN"


class GradeStatusEnum(str, enum.Enum):
    GRADED = "Graded"
    PENDING = "Pending"
