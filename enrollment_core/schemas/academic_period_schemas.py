# enrollment_core/schemas/academic_period_schemas.py
"""Pydantic schemas for Academic Periods (instructional term plus enrollment window)."""
from typing import Optional, Union
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from .common import WireModel
from .enums import PeriodStatus
from ..utils.normalizers import normalize_boolean, normalize_identifier

DATE_FIELDS = (
    "start_date",
    "end_date",
    "enrollment_period_start",
    "enrollment_period_end",
    "late_enrollment_end_date",
)


class AcademicPeriodBase(WireModel):
    institution_id: Optional[str] = None
    academic_year: Optional[str] = None
    period_name: Optional[str] = None

    # Instructional window
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    # Enrollment window
    enrollment_period_start: Optional[datetime] = None
    enrollment_period_end: Optional[datetime] = None

    allow_late_enrollment: bool = False
    late_enrollment_end_date: Optional[datetime] = None

    status: Optional[Union[PeriodStatus, str]] = Field(default=PeriodStatus.ACTIVE, union_mode="left_to_right")

    @field_validator("institution_id", "academic_year", mode="before")
    @classmethod
    def normalize_ids(cls, v):
        return normalize_identifier(v)

    @field_validator(*DATE_FIELDS, mode="before")
    @classmethod
    def empty_dates(cls, v):
        # Forms send "" for unset dates
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("allow_late_enrollment", mode="before")
    @classmethod
    def normalize_late_flag(cls, v):
        return normalize_boolean(v)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        if isinstance(v, str):
            return v.strip().upper()
        return v


class AcademicPeriod(AcademicPeriodBase):
    id: Optional[str] = None
    deleted: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def normalize_record_id(cls, v):
        return normalize_identifier(v)

    @field_validator("deleted", mode="before")
    @classmethod
    def normalize_deleted(cls, v):
        return normalize_boolean(v)


class AcademicPeriodCreate(AcademicPeriodBase):
    """Body of POST /academic-periods"""
    pass


class AcademicPeriodUpdate(AcademicPeriodBase):
    """Body of PUT /academic-periods/{id}"""
    pass


class AcademicPeriodStats(BaseModel):
    total: int = 0
    active: int = 0
    inactive: int = 0
    pending: int = 0
    closed: int = 0
