# enrollment_core/schemas/enrollment_schemas.py
"""Pydantic schemas for Enrollment records.

Inbound payloads are normalized while they are parsed: document flags become real
booleans, the age group is mapped to ``AgeGroup`` and ``student_age`` is always
recomputed from it, whatever the server sent.
"""
from typing import Optional, Union
from datetime import datetime
from pydantic import BaseModel, Field, field_validator, model_validator

from .common import WireModel
from .enums import AgeGroup, EnrollmentStatus, EnrollmentType
from ..utils.normalizers import (
    derive_student_age,
    normalize_age_group,
    normalize_boolean,
    normalize_enrollment_status,
    normalize_enrollment_type,
    normalize_identifier,
)

DOCUMENT_FIELDS = (
    "birth_certificate",
    "student_dni",
    "guardian_dni",
    "vaccination_card",
    "disability_certificate",
    "utility_bill",
    "psychological_report",
    "student_photo",
    "health_record",
    "signed_enrollment_form",
    "dni_verification",
)

IDENTIFIER_FIELDS = (
    "student_id",
    "institution_id",
    "classroom_id",
    "academic_year",
    "academic_period_id",
)


class EnrollmentBase(WireModel):
    student_id: Optional[str] = None
    institution_id: Optional[str] = None
    classroom_id: Optional[str] = None

    academic_year: Optional[str] = None
    academic_period_id: Optional[str] = None
    status: EnrollmentStatus = Field(default=EnrollmentStatus.PENDING, alias="enrollmentStatus")
    enrollment_type: Optional[Union[EnrollmentType, str]] = Field(default=EnrollmentType.NEW, union_mode="left_to_right")

    previous_institution: Optional[str] = None
    observations: Optional[str] = None

    age_group: Optional[Union[AgeGroup, str]] = Field(default=None, union_mode="left_to_right")
    student_age: Optional[int] = None
    shift: Optional[str] = None
    section: Optional[str] = None
    modality: Optional[str] = None
    educational_level: Optional[str] = None
    enrollment_code: Optional[str] = None

    # Document checklist
    birth_certificate: bool = False
    student_dni: bool = False
    guardian_dni: bool = False
    vaccination_card: bool = False
    disability_certificate: bool = False
    utility_bill: bool = False
    psychological_report: bool = False
    student_photo: bool = False
    health_record: bool = False
    signed_enrollment_form: bool = False
    dni_verification: bool = False

    @field_validator(*IDENTIFIER_FIELDS, mode="before")
    @classmethod
    def normalize_ids(cls, v):
        return normalize_identifier(v)

    @field_validator(*DOCUMENT_FIELDS, mode="before")
    @classmethod
    def normalize_documents(cls, v):
        return normalize_boolean(v)

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v):
        if v is None or v == "":
            return EnrollmentStatus.PENDING
        return normalize_enrollment_status(v)

    @field_validator("enrollment_type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        return normalize_enrollment_type(v)

    @field_validator("age_group", mode="before")
    @classmethod
    def normalize_group(cls, v):
        return normalize_age_group(v)

    @model_validator(mode="after")
    def recompute_student_age(self):
        # Never trust the age sent by a collaborator
        self.student_age = derive_student_age(self.age_group)
        return self

    @property
    def age_group_recognized(self) -> bool:
        return isinstance(self.age_group, AgeGroup)


class Enrollment(EnrollmentBase):
    """Canonical enrollment record as seen by every internal consumer"""
    id: Optional[str] = None
    enrollment_date: Optional[datetime] = None
    deleted: bool = False

    @field_validator("id", mode="before")
    @classmethod
    def normalize_record_id(cls, v):
        return normalize_identifier(v)

    @field_validator("deleted", mode="before")
    @classmethod
    def normalize_deleted(cls, v):
        return normalize_boolean(v)

    @field_validator("enrollment_date", mode="before")
    @classmethod
    def empty_date(cls, v):
        return v or None

    @property
    def is_cancelled(self) -> bool:
        return self.status == EnrollmentStatus.CANCELLED


class EnrollmentCreate(EnrollmentBase):
    """Body of POST /enrollments (id, date and deleted flag are server-assigned)"""
    pass


class EnrollmentUpdate(EnrollmentBase):
    """Body of PUT /enrollments/{id}"""
    pass


class DocumentProgress(BaseModel):
    completed: int
    total: int
    percentage: int


class EnrollmentFilters(BaseModel):
    academic_year: Optional[str] = None
    institution_id: Optional[str] = None
    status: Optional[str] = None
    shift: Optional[str] = None
    age_group: Optional[str] = None
    modality: Optional[str] = None
    enrollment_type: Optional[str] = None
    search: Optional[str] = None


class EnrollmentStats(BaseModel):
    total: int = 0
    active: int = 0
    pending: int = 0
    inactive: int = 0
    cancelled: int = 0
