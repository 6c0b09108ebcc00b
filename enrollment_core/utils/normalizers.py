# enrollment_core/utils/normalizers.py
"""Boundary normalizers reconciling the encodings used by the upstream services.

All functions here are total: they never raise, whatever the input.
"""
from typing import Any, Dict, Mapping, Optional

from ..schemas.enums import AgeGroup, EnrollmentStatus, EnrollmentType

TRUE_VALUES = ("true", "1")

AGE_GROUP_ALIASES: Dict[str, AgeGroup] = {
    "3_AÑOS": AgeGroup.AGE_3,
    "4_AÑOS": AgeGroup.AGE_4,
    "5_AÑOS": AgeGroup.AGE_5,
    "3_ANOS": AgeGroup.AGE_3,
    "4_ANOS": AgeGroup.AGE_4,
    "5_ANOS": AgeGroup.AGE_5,
    "AGE_3": AgeGroup.AGE_3,
    "AGE_4": AgeGroup.AGE_4,
    "AGE_5": AgeGroup.AGE_5,
}

AGE_BY_GROUP: Dict[AgeGroup, int] = {
    AgeGroup.AGE_3: 3,
    AgeGroup.AGE_4: 4,
    AgeGroup.AGE_5: 5,
}

ENROLLMENT_TYPE_ALIASES: Dict[str, EnrollmentType] = {
    "NUEVA": EnrollmentType.NEW,
    "NEW": EnrollmentType.NEW,
    "REINSCRIPCION": EnrollmentType.REENROLLMENT,
    "REINSCRIPCIÓN": EnrollmentType.REENROLLMENT,
    "REENROLLMENT": EnrollmentType.REENROLLMENT,
}


def normalize_boolean(value: Any) -> bool:
    """``True``, ``"true"``, ``1`` and ``"1"`` are true; anything else is false"""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value == 1
    if isinstance(value, str):
        return value in TRUE_VALUES
    return False


def normalize_age_group(value: Any) -> Any:
    """Map localized text ("3 años") and enum-like codes ("AGE_3") onto ``AgeGroup``.

    Unrecognised input is returned unchanged so the caller can flag it.
    """
    if isinstance(value, AgeGroup):
        return value
    if not isinstance(value, str):
        return value
    key = "_".join(value.strip().upper().split())
    return AGE_GROUP_ALIASES.get(key, value)


def derive_student_age(age_group: Any) -> Optional[int]:
    """Age implied by an age group, or None when the group is unknown"""
    group = normalize_age_group(age_group)
    if not isinstance(group, AgeGroup):
        return None
    return AGE_BY_GROUP[group]


def is_known_age_group(value: Any) -> bool:
    return isinstance(normalize_age_group(value), AgeGroup)


def normalize_enrollment_status(value: Any) -> Any:
    if isinstance(value, EnrollmentStatus):
        return value
    if isinstance(value, str):
        try:
            return EnrollmentStatus(value.strip().upper())
        except ValueError:
            return value
    return value


def normalize_enrollment_type(value: Any) -> Any:
    if isinstance(value, EnrollmentType):
        return value
    if isinstance(value, str):
        return ENROLLMENT_TYPE_ALIASES.get(value.strip().upper(), value)
    return value


def normalize_identifier(value: Any) -> Optional[str]:
    """Ids arrive as strings or numbers depending on the backend; keep them as trimmed strings"""
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


def first_present(data: Mapping[str, Any], *keys: str) -> Any:
    """First non-empty value among ``keys``"""
    for key in keys:
        value = data.get(key)
        if value is not None and value != "":
            return value
    return None


def is_envelope(payload: Any) -> bool:
    return isinstance(payload, dict) and "success" in payload and "data" in payload


def unwrap_envelope(payload: Any) -> Any:
    """Accept both ``{success, message, data}`` wrapped responses and bare bodies"""
    if is_envelope(payload):
        return payload.get("data")
    return payload


def envelope_failed(payload: Any) -> bool:
    return is_envelope(payload) and (not normalize_boolean(payload.get("success")) or payload.get("data") is None)


def envelope_message(payload: Any, default: str = "") -> str:
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message:
            return message
    return default
