import pytest

from enrollment_core.schemas.enums import AgeGroup, EnrollmentStatus, EnrollmentType
from enrollment_core.utils.normalizers import (
    derive_student_age,
    envelope_failed,
    first_present,
    is_known_age_group,
    normalize_age_group,
    normalize_boolean,
    normalize_enrollment_status,
    normalize_enrollment_type,
    normalize_identifier,
    unwrap_envelope,
)


class TestNormalizeBoolean:
    @pytest.mark.parametrize("value", [True, "true", 1, "1"])
    def test_true_values(self, value):
        assert normalize_boolean(value) is True

    @pytest.mark.parametrize("value", [False, "false", 0, "0", 2, "TRUE", "yes", None, "", [], {}, 1.5])
    def test_everything_else_is_false(self, value):
        assert normalize_boolean(value) is False

    @pytest.mark.parametrize("value", [True, False, "true", "1", 1, 0, None, "x", 3.0])
    def test_idempotent(self, value):
        once = normalize_boolean(value)
        assert normalize_boolean(once) == once


class TestAgeGroup:
    def test_localized_text_and_codes_agree(self):
        assert normalize_age_group("3 años") == normalize_age_group("AGE_3") == AgeGroup.AGE_3
        assert normalize_age_group(normalize_age_group("3 años")) == AgeGroup.AGE_3

    @pytest.mark.parametrize("raw,expected", [
        ("3_AÑOS", AgeGroup.AGE_3),
        ("4 años", AgeGroup.AGE_4),
        ("5 AÑOS", AgeGroup.AGE_5),
        ("  4_anos ", AgeGroup.AGE_4),
        ("AGE_5", AgeGroup.AGE_5),
        (AgeGroup.AGE_4, AgeGroup.AGE_4),
    ])
    def test_known_encodings(self, raw, expected):
        assert normalize_age_group(raw) == expected

    @pytest.mark.parametrize("raw", ["6 años", "toddlers", "", None, 3])
    def test_unknown_passes_through(self, raw):
        assert normalize_age_group(raw) == raw
        assert not is_known_age_group(raw)

    @pytest.mark.parametrize("group,age", [(AgeGroup.AGE_3, 3), (AgeGroup.AGE_4, 4), (AgeGroup.AGE_5, 5)])
    def test_derived_age(self, group, age):
        assert derive_student_age(normalize_age_group(group)) == age
        assert derive_student_age(normalize_age_group(normalize_age_group(group))) == age

    def test_unknown_group_has_no_age(self):
        assert derive_student_age("6 años") is None
        assert derive_student_age(None) is None


class TestEnumNormalizers:
    def test_status(self):
        assert normalize_enrollment_status(" active ") == EnrollmentStatus.ACTIVE
        assert normalize_enrollment_status("ARCHIVED") == "ARCHIVED"

    def test_enrollment_type_wire_values(self):
        assert normalize_enrollment_type("NUEVA") == EnrollmentType.NEW
        assert normalize_enrollment_type("reinscripción") == EnrollmentType.REENROLLMENT
        assert normalize_enrollment_type("TRANSFER") == "TRANSFER"


class TestPayloadHelpers:
    def test_identifiers(self):
        assert normalize_identifier(42) == "42"
        assert normalize_identifier("  abc ") == "abc"
        assert normalize_identifier("   ") is None
        assert normalize_identifier(True) is None

    def test_first_present(self):
        assert first_present({"a": "", "b": None, "c": "x"}, "a", "b", "c") == "x"
        assert first_present({}, "a") is None

    def test_envelope(self):
        assert unwrap_envelope({"success": True, "message": "ok", "data": {"id": 1}}) == {"id": 1}
        assert unwrap_envelope([1, 2]) == [1, 2]
        assert envelope_failed({"success": False, "message": "nope", "data": None})
        assert not envelope_failed({"id": "x"})
