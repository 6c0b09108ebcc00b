# enrollment_core/services/validation_service.py
"""Pre-submission checks for enrollments and academic periods.

The ``validate_*`` and ``check_*`` functions are pure and return a ``ValidationResult``;
``EnrollmentGate`` runs them before any write reaches the enrollment service.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, Iterable, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError as SchemaValidationError

from .academic_period_service import AcademicPeriodService
from .enrollment_service import EnrollmentService
from .enrollment_state_machine import EnrollmentRoster
from .period_validator import WINDOW_GUIDANCE, as_utc, enrollment_window_state
from ..core.exceptions import (
    DuplicateEnrollmentError,
    EnrollmentServiceError,
    ValidationError,
)
from ..schemas.academic_period_schemas import (
    AcademicPeriod,
    AcademicPeriodBase,
    AcademicPeriodCreate,
    AcademicPeriodUpdate,
)
from ..schemas.common import ValidationResult
from ..schemas.enrollment_schemas import (
    Enrollment,
    EnrollmentBase,
    EnrollmentCreate,
    EnrollmentUpdate,
)
from ..schemas.enums import EnrollmentStatus, EnrollmentType, EnrollmentWindowState, PeriodStatus

logger = logging.getLogger(__name__)

M = TypeVar('M', bound=BaseModel)

# attribute -> (wire name, message)
REQUIRED_ENROLLMENT_FIELDS = {
    "student_id": ("studentId", "Student is required"),
    "institution_id": ("institutionId", "Institution is required"),
    "classroom_id": ("classroomId", "Classroom is required"),
    "academic_year": ("academicYear", "Academic year is required"),
    "academic_period_id": ("academicPeriodId", "Academic period is required"),
    "age_group": ("ageGroup", "Age group is required"),
    "shift": ("shift", "Shift is required"),
    "modality": ("modality", "Modality is required"),
}

REQUIRED_PERIOD_FIELDS = {
    "institution_id": ("institutionId", "Institution is required"),
    "academic_year": ("academicYear", "Academic year is required"),
    "period_name": ("periodName", "Period name is required"),
    "start_date": ("startDate", "Start date is required"),
    "end_date": ("endDate", "End date is required"),
    "enrollment_period_start": ("enrollmentPeriodStart", "Enrollment period start is required"),
    "enrollment_period_end": ("enrollmentPeriodEnd", "Enrollment period end is required"),
}


def _allowed(enum: Type) -> str:
    return ", ".join(item.value for item in enum)


def _missing(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _required(obj, fields: Dict[str, tuple]) -> Dict[str, str]:
    return {
        wire: message
        for attribute, (wire, message) in fields.items()
        if _missing(getattr(obj, attribute, None))
    }


def validate_enrollment(enrollment: EnrollmentBase) -> ValidationResult:
    errors = _required(enrollment, REQUIRED_ENROLLMENT_FIELDS)

    if not isinstance(enrollment.status, EnrollmentStatus):
        errors["enrollmentStatus"] = f"Status must be one of {_allowed(EnrollmentStatus)}"
    if enrollment.enrollment_type is not None and not isinstance(enrollment.enrollment_type, EnrollmentType):
        errors["enrollmentType"] = f"Enrollment type must be one of {_allowed(EnrollmentType)}"
    if "ageGroup" not in errors and not enrollment.age_group_recognized:
        errors["ageGroup"] = f"Unrecognized age group: {enrollment.age_group}"

    return ValidationResult(errors=errors)


def validate_academic_period(period: AcademicPeriodBase) -> ValidationResult:
    errors = _required(period, REQUIRED_PERIOD_FIELDS)

    start, end = as_utc(period.start_date), as_utc(period.end_date)
    if start is not None and end is not None and start >= end:
        errors["endDate"] = "End date must be after the start date"

    enrollment_start = as_utc(period.enrollment_period_start)
    enrollment_end = as_utc(period.enrollment_period_end)
    if enrollment_start is not None and enrollment_end is not None and enrollment_start >= enrollment_end:
        errors["enrollmentPeriodEnd"] = "Enrollment period end must be after its start"

    if period.allow_late_enrollment:
        late_end = as_utc(period.late_enrollment_end_date)
        if late_end is None:
            errors["lateEnrollmentEndDate"] = "Late enrollment end date is required when late enrollment is allowed"
        elif enrollment_end is not None and late_end <= enrollment_end:
            errors["lateEnrollmentEndDate"] = "Late enrollment end date must be after the regular enrollment period ends"

    if period.status is not None and not isinstance(period.status, PeriodStatus):
        errors["status"] = f"Status must be one of {_allowed(PeriodStatus)}"

    return ValidationResult(errors=errors)


def check_enrollment_window(period: AcademicPeriod, now: datetime) -> ValidationResult:
    """Reject enrollments outside the period's window; late enrollment only warns"""
    state = enrollment_window_state(period, now)
    if state in (EnrollmentWindowState.NOT_STARTED, EnrollmentWindowState.CLOSED):
        return ValidationResult(errors={"academicPeriodId": WINDOW_GUIDANCE[state]})
    if state == EnrollmentWindowState.LATE:
        return ValidationResult(warnings={"academicPeriodId": WINDOW_GUIDANCE[state]})
    return ValidationResult()


def ensure_valid(result: ValidationResult, message: str = "Validation failed") -> None:
    for field, text in result.warnings.items():
        logger.warning(f"{field}: {text}")
    if not result.is_valid:
        raise ValidationError(message, result.errors)


def coerce(model: Type[M], data: Union[M, dict]) -> M:
    """Build a request model from a dict, turning schema errors into field errors"""
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(by_alias=True, exclude_unset=True)
    try:
        return model.model_validate(data)
    except SchemaValidationError as e:
        field_errors = {}
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"]) or "body"
            field_errors.setdefault(location, error["msg"])
        raise ValidationError("Validation failed", field_errors) from e


def find_duplicate_enrollment(existing: Iterable[Enrollment], candidate: EnrollmentBase) -> Optional[Enrollment]:
    """First live, non-cancelled enrollment sharing the candidate's period and year"""
    for enrollment in existing:
        if enrollment.deleted or enrollment.is_cancelled:
            continue
        if (enrollment.academic_period_id == candidate.academic_period_id
                and enrollment.academic_year == candidate.academic_year):
            return enrollment
    return None


async def probe_duplicate_enrollment(service: EnrollmentService, candidate: EnrollmentBase) -> None:
    """Best-effort duplicate check before create.

    Raises ``DuplicateEnrollmentError`` on a match. Failing to read the student's
    enrollments does not block the submission; the server constraint decides.
    """
    try:
        existing = await service.list_by_student(candidate.student_id)
    except EnrollmentServiceError as e:
        logger.warning(f"Could not check existing enrollments for student {candidate.student_id}, "
                       f"continuing with creation: {e.message}")
        return

    duplicate = find_duplicate_enrollment(existing, candidate)
    if duplicate is not None:
        logger.info(f"Duplicate enrollment {duplicate.id} found for student {candidate.student_id}")
        raise DuplicateEnrollmentError(duplicate)


class EnrollmentGate:
    """Validate, then write. Nothing is sent when a check fails."""

    def __init__(self, enrollments: EnrollmentService, periods: Optional[AcademicPeriodService] = None,
                 roster: Optional[EnrollmentRoster] = None):
        self.enrollments = enrollments
        self.periods = periods
        self.roster = roster

    def _check(self, enrollment: EnrollmentBase, period: Optional[AcademicPeriod], now: Optional[datetime]):
        result = validate_enrollment(enrollment)
        if period is not None:
            result = result.merge(check_enrollment_window(period, now or datetime.now(timezone.utc)))
        ensure_valid(result)

    async def submit_create(self, enrollment: Union[EnrollmentCreate, dict],
                            period: Optional[AcademicPeriod] = None,
                            now: Optional[datetime] = None) -> Enrollment:
        candidate = coerce(EnrollmentCreate, enrollment)
        self._check(candidate, period, now)
        await probe_duplicate_enrollment(self.enrollments, candidate)

        created = await self.enrollments.create(candidate)
        logger.info(f"Created enrollment {created.id} for student {created.student_id}")
        if self.roster is not None:
            self.roster.apply(created)
        return created

    async def submit_update(self, id: str, enrollment: Union[EnrollmentUpdate, dict],
                            period: Optional[AcademicPeriod] = None,
                            now: Optional[datetime] = None) -> Enrollment:
        candidate = coerce(EnrollmentUpdate, enrollment)
        self._check(candidate, period, now)

        updated = await self.enrollments.update(id, candidate)
        if not updated.id:
            updated = updated.model_copy(update={"id": id})
        logger.info(f"Updated enrollment {updated.id or id}")
        if self.roster is not None:
            self.roster.apply(updated)
        return updated

    def _period_service(self) -> AcademicPeriodService:
        if self.periods is None:
            raise RuntimeError("No academic period service configured")
        return self.periods

    async def submit_period_create(self, period: Union[AcademicPeriodCreate, dict]) -> AcademicPeriod:
        candidate = coerce(AcademicPeriodCreate, period)
        ensure_valid(validate_academic_period(candidate))
        return await self._period_service().create(candidate)

    async def submit_period_update(self, id: str, period: Union[AcademicPeriodUpdate, dict]) -> AcademicPeriod:
        candidate = coerce(AcademicPeriodUpdate, period)
        ensure_valid(validate_academic_period(candidate))
        return await self._period_service().update(id, candidate)
