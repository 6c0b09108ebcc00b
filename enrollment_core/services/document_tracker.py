# enrollment_core/services/document_tracker.py
"""Paperwork completion over the fixed enrollment document checklist."""
from collections import namedtuple
from decimal import Decimal, ROUND_HALF_UP
from typing import List

from ..schemas.enrollment_schemas import DocumentProgress, EnrollmentBase

DocumentItem = namedtuple("DocumentItem", ["key", "label", "required"])

REQUIRED_DOCUMENTS = (
    DocumentItem("birth_certificate", "Birth certificate", True),
    DocumentItem("student_dni", "Student ID document", True),
    DocumentItem("guardian_dni", "Guardian ID document", True),
    DocumentItem("vaccination_card", "Vaccination record", True),
    DocumentItem("disability_certificate", "Disability certificate", False),
    DocumentItem("utility_bill", "Utility bill", False),
    DocumentItem("psychological_report", "Psychological report", False),
    DocumentItem("student_photo", "Student photo", False),
    DocumentItem("health_record", "Health record", True),
    DocumentItem("signed_enrollment_form", "Signed enrollment form", True),
    DocumentItem("dni_verification", "ID verification", True),
)


def calculate_document_progress(enrollment: EnrollmentBase) -> DocumentProgress:
    """Completed flags over the whole checklist, optional documents included.

    Expects an enrollment whose flags were already normalized to booleans.
    """
    total = len(REQUIRED_DOCUMENTS)
    completed = sum(1 for item in REQUIRED_DOCUMENTS if getattr(enrollment, item.key, False) is True)
    ratio = Decimal(completed) * 100 / Decimal(total)
    percentage = int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return DocumentProgress(completed=completed, total=total, percentage=percentage)


def missing_required_documents(enrollment: EnrollmentBase) -> List[DocumentItem]:
    return [
        item for item in REQUIRED_DOCUMENTS
        if item.required and getattr(enrollment, item.key, False) is not True
    ]
