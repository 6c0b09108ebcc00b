# enrollment_core/services/integration_service.py
"""Read-only access to the student and institution services."""
import logging
from typing import List

from .base_service import BaseService
from ..core.exceptions import (
    ConflictError,
    EnrollmentServiceError,
    NotFoundError,
    ResponseFormatError,
)
from ..core.http_client import RequestExecutor
from ..schemas.integration_schemas import (
    Classroom,
    EnrollmentValidationResponse,
    InstitutionDetail,
    InstitutionSummary,
    StudentData,
)
from ..utils.normalizers import unwrap_envelope

logger = logging.getLogger(__name__)

NON_UNIQUE_SIGNATURE = "non unique result"


class IntegrationService:
    def __init__(self, student_executor: RequestExecutor, institution_executor: RequestExecutor):
        self.students = BaseService(StudentData, student_executor, "/integration/students")
        self.institutions = BaseService(InstitutionDetail, institution_executor, "/integration/institutions")
        self.classrooms = BaseService(Classroom, institution_executor, "/integration/classrooms")
        self.validations = institution_executor

    async def get_student(self, student_id: str) -> StudentData:
        logger.debug(f"Fetching student {student_id}")
        try:
            return await self.students.get(student_id)
        except NotFoundError as e:
            raise NotFoundError("Student", student_id) from e

    async def get_student_by_cui(self, cui: str) -> StudentData:
        cui = self.students.require_id(cui, "cui")
        try:
            payload = await self.students.executor.get(f"{self.students.resource_path}/cui/{cui}")
        except NotFoundError as e:
            raise NotFoundError(message=f"No student found with CUI {cui}") from e
        except EnrollmentServiceError as e:
            if NON_UNIQUE_SIGNATURE in e.message:
                raise ConflictError(
                    f"Several students share CUI {cui}. Contact an administrator to resolve the duplicate, "
                    f"or look the student up by id instead.",
                    status_code=e.status_code,
                    server_message=e.message,
                ) from e
            raise
        return self.students.parse(payload)

    async def get_institution(self, institution_id: str) -> InstitutionDetail:
        logger.debug(f"Fetching institution {institution_id}")
        try:
            return await self.institutions.get(institution_id)
        except NotFoundError as e:
            raise NotFoundError("Institution", institution_id) from e

    async def get_classroom(self, classroom_id: str) -> Classroom:
        logger.debug(f"Fetching classroom {classroom_id}")
        try:
            return await self.classrooms.get(classroom_id)
        except NotFoundError as e:
            raise NotFoundError("Classroom", classroom_id) from e

    async def list_active_institutions(self) -> List[InstitutionDetail]:
        return await self.institutions.get_multi()

    async def list_available_institutions(self) -> List[InstitutionSummary]:
        """Active institutions reduced to what an enrollment form needs"""
        institutions = await self.list_active_institutions()
        return [InstitutionSummary.from_detail(institution) for institution in institutions]

    async def list_active_classrooms(self) -> List[Classroom]:
        return await self.classrooms.get_multi()

    async def validate_student_for_institution(self, student_id: str, institution_id: str) -> EnrollmentValidationResponse:
        student_id = self.students.require_id(student_id, "studentId")
        institution_id = self.students.require_id(institution_id, "institutionId")
        payload = await self.validations.get(
            f"/integration/validate/student/{student_id}/institution/{institution_id}"
        )
        return self._validation_result(payload)

    async def validate_institution_classroom(self, institution_id: str, classroom_id: str) -> EnrollmentValidationResponse:
        institution_id = self.students.require_id(institution_id, "institutionId")
        classroom_id = self.students.require_id(classroom_id, "classroomId")
        payload = await self.validations.get(
            f"/integration/validate/institution/{institution_id}/classroom/{classroom_id}"
        )
        return self._validation_result(payload)

    @staticmethod
    def _validation_result(payload) -> EnrollmentValidationResponse:
        payload = unwrap_envelope(payload)
        if not isinstance(payload, dict):
            raise ResponseFormatError("Invalid validation response")
        return EnrollmentValidationResponse.model_validate(payload)
