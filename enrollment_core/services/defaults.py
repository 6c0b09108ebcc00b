# enrollment_core/services/defaults.py
"""Initial values for new enrollments and academic periods."""
from datetime import datetime, timezone
from typing import Optional

from ..schemas.academic_period_schemas import AcademicPeriodCreate
from ..schemas.enrollment_schemas import EnrollmentCreate
from ..schemas.enums import AgeGroup, EnrollmentStatus, EnrollmentType, PeriodStatus

DEFAULT_SHIFT = "MAÑANA"
# Initial level has a single section; groups are told apart by classroom
DEFAULT_SECTION = "UNICA"
DEFAULT_MODALITY = "PRESENCIAL"
DEFAULT_EDUCATIONAL_LEVEL = "INITIAL"


def _current_year(now: Optional[datetime]) -> str:
    return str((now or datetime.now(timezone.utc)).year)


def default_enrollment(now: Optional[datetime] = None) -> EnrollmentCreate:
    return EnrollmentCreate(
        academic_year=_current_year(now),
        status=EnrollmentStatus.PENDING,
        enrollment_type=EnrollmentType.NEW,
        age_group=AgeGroup.AGE_3,
        shift=DEFAULT_SHIFT,
        section=DEFAULT_SECTION,
        modality=DEFAULT_MODALITY,
        educational_level=DEFAULT_EDUCATIONAL_LEVEL,
    )


def default_period(now: Optional[datetime] = None) -> AcademicPeriodCreate:
    return AcademicPeriodCreate(
        academic_year=_current_year(now),
        allow_late_enrollment=False,
        status=PeriodStatus.ACTIVE,
    )
