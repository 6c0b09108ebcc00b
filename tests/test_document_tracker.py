from conftest import enrollment_payload

from enrollment_core.schemas.enrollment_schemas import DOCUMENT_FIELDS, Enrollment
from enrollment_core.services.document_tracker import (
    REQUIRED_DOCUMENTS,
    calculate_document_progress,
    missing_required_documents,
)

WIRE_FLAGS = [
    "birthCertificate",
    "studentDni",
    "guardianDni",
    "vaccinationCard",
    "disabilityCertificate",
    "utilityBill",
    "psychologicalReport",
    "studentPhoto",
    "healthRecord",
    "signedEnrollmentForm",
    "dniVerification",
]


def with_flags(values) -> Enrollment:
    return Enrollment.model_validate(enrollment_payload(**dict(zip(WIRE_FLAGS, values))))


class TestChecklist:
    def test_eleven_documents_four_optional(self):
        assert len(REQUIRED_DOCUMENTS) == 11
        assert {item.key for item in REQUIRED_DOCUMENTS} == set(DOCUMENT_FIELDS)
        assert sum(1 for item in REQUIRED_DOCUMENTS if not item.required) == 4


class TestDocumentProgress:
    def test_seven_of_eleven(self):
        progress = calculate_document_progress(with_flags([True] * 7 + [False] * 4))
        assert (progress.completed, progress.total, progress.percentage) == (7, 11, 64)

    def test_none_and_all(self):
        assert calculate_document_progress(with_flags([False] * 11)).percentage == 0
        assert calculate_document_progress(with_flags([True] * 11)).percentage == 100

    def test_mixed_encodings_are_normalized_first(self):
        progress = calculate_document_progress(with_flags([1, "true", "1", True, None, 0, "false", "yes"]))
        assert progress.completed == 4
        assert progress.percentage == 36

    def test_rounds_to_nearest_percent(self):
        assert calculate_document_progress(with_flags([True] * 1)).percentage == 9
        assert calculate_document_progress(with_flags([True] * 6)).percentage == 55


class TestMissingDocuments:
    def test_only_required_documents_are_reported(self):
        enrollment = with_flags([True, True, True, True, False, False, False, False, True, True, False])
        assert [item.key for item in missing_required_documents(enrollment)] == ["dni_verification"]
