# enrollment_core/schemas/enums.py
from enum import Enum


class EnrollmentStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    PENDING = "PENDING"
    CANCELLED = "CANCELLED"


class EnrollmentType(str, Enum):
    NEW = "NUEVA"
    REENROLLMENT = "REINSCRIPCION"


class AgeGroup(str, Enum):
    AGE_3 = "3_AÑOS"
    AGE_4 = "4_AÑOS"
    AGE_5 = "5_AÑOS"


class PeriodStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    PENDING = "PENDING"
    CLOSED = "CLOSED"


class EnrollmentWindowState(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    OPEN = "OPEN"
    LATE = "LATE"
    CLOSED = "CLOSED"


class StudentStatus(str, Enum):
    ACTIVE = "A"
    INACTIVE = "I"
    TRANSFERRED = "T"
    GRADUATED = "G"
