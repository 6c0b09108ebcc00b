# enrollment_core/schemas/integration_schemas.py
"""Read-only views of the student and institution services.

The collaborators disagree on field shapes (``id`` vs ``studentId``, flat names vs a
nested ``personalInfo`` block, ...); the ``before`` validators fold every known
variant into one shape.
"""
from typing import Any, List, Optional, Union
from pydantic import Field, field_validator, model_validator

from .common import WireModel
from .enums import AgeGroup, StudentStatus
from ..utils.normalizers import (
    first_present,
    normalize_age_group,
    normalize_boolean,
    normalize_identifier,
)


def _as_dict(data: Any) -> Any:
    return dict(data) if isinstance(data, dict) else data


# Students

class PersonalInfo(WireModel):
    names: Optional[str] = None
    last_names: Optional[str] = None
    document_type: Optional[str] = None
    document_number: Optional[str] = None
    gender: Optional[str] = None
    date_of_birth: Optional[str] = None


class Guardian(WireModel):
    relationship: Optional[str] = None
    names: Optional[str] = None
    last_names: Optional[str] = None
    phone: Optional[str] = None
    document_type: Optional[str] = None
    document_number: Optional[str] = None
    user_id: Optional[str] = None


class StudentData(WireModel):
    student_id: Optional[str] = None
    cui: Optional[str] = None
    personal_info: Optional[PersonalInfo] = None
    date_of_birth: Optional[str] = None
    address: Optional[str] = None
    photo_perfil: Optional[str] = None
    status: Optional[Union[StudentStatus, str]] = Field(default=None, union_mode="left_to_right")
    institution_id: Optional[str] = None
    classroom_id: Optional[str] = None
    guardians: List[Guardian] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def reconcile_shapes(cls, data):
        data = _as_dict(data)
        if not isinstance(data, dict):
            return data
        data["studentId"] = first_present(data, "studentId", "student_id", "id")
        if not data.get("personalInfo") and not data.get("personal_info"):
            names = first_present(data, "names", "name")
            last_names = first_present(data, "lastNames", "last_names")
            if names or last_names:
                data["personalInfo"] = {"names": names, "lastNames": last_names}
        if data.get("guardians") is None:
            data["guardians"] = []
        return data

    @field_validator("student_id", "cui", "institution_id", "classroom_id", mode="before")
    @classmethod
    def normalize_ids(cls, v):
        return normalize_identifier(v)

    @property
    def full_name(self) -> str:
        if not self.personal_info:
            return ""
        return f"{self.personal_info.names or ''} {self.personal_info.last_names or ''}".strip()

    @property
    def is_active(self) -> bool:
        return self.status == StudentStatus.ACTIVE


# Institutions and classrooms

class InstitutionInformation(WireModel):
    institution_name: Optional[str] = None
    code_institution: Optional[str] = None
    modular_code: Optional[str] = None
    institution_type: Optional[str] = None
    institution_level: Optional[str] = None
    gender: Optional[str] = None
    slogan: Optional[str] = None
    logo_url: Optional[str] = None


class Address(WireModel):
    street: Optional[str] = None
    district: Optional[str] = None
    province: Optional[str] = None
    department: Optional[str] = None
    postal_code: Optional[str] = None


class ContactMethod(WireModel):
    type: Optional[str] = None
    value: Optional[str] = None


class Schedule(WireModel):
    type: Optional[str] = None
    entry_time: Optional[str] = None
    exit_time: Optional[str] = None


class Classroom(WireModel):
    classroom_id: Optional[str] = None
    institution_id: Optional[str] = None
    classroom_name: Optional[str] = None
    classroom_age: Optional[str] = None
    capacity: Optional[int] = None
    color: Optional[str] = None
    status: Optional[str] = None
    level: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def reconcile_shapes(cls, data):
        data = _as_dict(data)
        if not isinstance(data, dict):
            return data
        data["classroomId"] = first_present(data, "classroomId", "classroom_id", "id")
        data["classroomName"] = first_present(data, "classroomName", "classroom_name", "name")
        data["level"] = first_present(data, "level", "educationalLevel")
        return data

    @field_validator("classroom_id", "institution_id", mode="before")
    @classmethod
    def normalize_ids(cls, v):
        return normalize_identifier(v)

    @property
    def age_group(self) -> Union[AgeGroup, str, None]:
        """Classroom age label ("3 años") mapped onto the canonical age group"""
        return normalize_age_group(self.classroom_age)


class InstitutionDetail(WireModel):
    institution_id: Optional[str] = None
    status: Optional[str] = None
    institution_information: Optional[InstitutionInformation] = None
    address: Optional[Address] = None
    contact_methods: List[ContactMethod] = Field(default_factory=list)
    grading_type: Optional[str] = None
    classroom_type: Optional[str] = None
    schedules: List[Schedule] = Field(default_factory=list)
    classrooms: List[Classroom] = Field(default_factory=list)
    director_id: Optional[str] = None
    auxiliary_ids: List[str] = Field(default_factory=list)
    ugel: Optional[str] = None
    dre: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def reconcile_shapes(cls, data):
        data = _as_dict(data)
        if not isinstance(data, dict):
            return data
        data["institutionId"] = first_present(data, "institutionId", "institution_id", "id")
        if not data.get("institutionInformation") and not data.get("institution_information"):
            name = first_present(data, "institutionName", "name")
            if name:
                data["institutionInformation"] = {
                    "institutionName": name,
                    "institutionType": first_present(data, "institutionType", "type"),
                    "institutionLevel": first_present(data, "institutionLevel", "level"),
                }
        # Several list fields arrive as null from some backends
        for key in ("contactMethods", "schedules", "classrooms", "auxiliaryIds"):
            if key in data and data[key] is None:
                data[key] = []
        return data

    @field_validator("institution_id", mode="before")
    @classmethod
    def normalize_ids(cls, v):
        return normalize_identifier(v)

    @property
    def name(self) -> str:
        if self.institution_information and self.institution_information.institution_name:
            return self.institution_information.institution_name
        return ""


class InstitutionSummary(WireModel):
    institution_id: Optional[str] = None
    institution_name: Optional[str] = None
    institution_type: Optional[str] = None
    institution_level: Optional[str] = None
    address: Optional[Address] = None
    available_classrooms: int = 0
    logo_url: Optional[str] = None

    @classmethod
    def from_detail(cls, detail: InstitutionDetail) -> "InstitutionSummary":
        info = detail.institution_information or InstitutionInformation()
        return cls(
            institution_id=detail.institution_id,
            institution_name=info.institution_name,
            institution_type=info.institution_type,
            institution_level=info.institution_level,
            address=detail.address,
            available_classrooms=len(detail.classrooms),
            logo_url=info.logo_url,
        )


class EnrollmentValidationResponse(WireModel):
    """Result of the service-side eligibility checks"""
    student_valid: bool = False
    institution_valid: bool = False
    classroom_valid: bool = False
    student_name: Optional[str] = None
    institution_name: Optional[str] = None
    classroom_name: Optional[str] = None
    classroom_capacity: Optional[int] = None
    validation_message: Optional[str] = None
    valid: bool = False

    @field_validator("student_valid", "institution_valid", "classroom_valid", "valid", mode="before")
    @classmethod
    def normalize_flags(cls, v):
        return normalize_boolean(v)
