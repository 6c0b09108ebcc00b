# enrollment_core/services/period_validator.py
"""Time-window rules for academic periods.

Pure functions evaluated against an injected ``now``. Naive datetimes are read as
UTC so that naive and aware values can be compared; none of these functions raise.
"""
from datetime import date, datetime, time, timezone
from typing import Optional, Union

from ..schemas.academic_period_schemas import AcademicPeriod
from ..schemas.enums import EnrollmentWindowState, PeriodStatus

Moment = Union[datetime, date]


def as_utc(value: Optional[Moment]) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_period_active(period: AcademicPeriod, now: Moment) -> bool:
    """ACTIVE status and ``now`` inside the instructional window (inclusive)"""
    current = as_utc(now)
    start = as_utc(period.start_date)
    end = as_utc(period.end_date)
    if period.status != PeriodStatus.ACTIVE or start is None or end is None:
        return False
    return start <= current <= end


def enrollment_window_state(period: AcademicPeriod, now: Moment) -> EnrollmentWindowState:
    current = as_utc(now)
    start = as_utc(period.enrollment_period_start)
    end = as_utc(period.enrollment_period_end)
    late_end = as_utc(period.late_enrollment_end_date)

    if start is not None and current < start:
        return EnrollmentWindowState.NOT_STARTED
    if start is not None and end is not None and current <= end:
        return EnrollmentWindowState.OPEN
    if period.allow_late_enrollment and late_end is not None and current <= late_end:
        return EnrollmentWindowState.LATE
    return EnrollmentWindowState.CLOSED


def is_enrollment_open(period: AcademicPeriod, now: Moment) -> bool:
    """Regular or late enrollment currently accepted"""
    return enrollment_window_state(period, now) in (EnrollmentWindowState.OPEN, EnrollmentWindowState.LATE)


WINDOW_GUIDANCE = {
    EnrollmentWindowState.NOT_STARTED: "Enrollment for this academic period has not opened yet",
    EnrollmentWindowState.OPEN: "Enrollment is open",
    EnrollmentWindowState.LATE: "Regular enrollment has closed; late enrollment is still accepted",
    EnrollmentWindowState.CLOSED: "Enrollment for this academic period is closed",
}
