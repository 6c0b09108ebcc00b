# enrollment_core/services/enrollment_service.py
import asyncio
import logging
from typing import Iterable, List, Optional, Union

from .base_service import BaseService
from ..core.exceptions import NotFoundError, ResponseFormatError, ValidationError
from ..core.http_client import RequestExecutor
from ..schemas.enrollment_schemas import (
    Enrollment,
    EnrollmentCreate,
    EnrollmentFilters,
    EnrollmentUpdate,
)
from ..schemas.enums import EnrollmentStatus
from ..schemas.integration_schemas import EnrollmentValidationResponse
from ..utils.normalizers import (
    normalize_age_group,
    normalize_enrollment_status,
    normalize_enrollment_type,
)

logger = logging.getLogger(__name__)


class EnrollmentService(BaseService[Enrollment]):
    def __init__(self, executor: RequestExecutor):
        super().__init__(Enrollment, executor, "/enrollments")

    async def list_all(self) -> List[Enrollment]:
        """Get all enrollments, soft-deleted ones included"""
        return await self.get_multi()

    async def list_active(self) -> List[Enrollment]:
        return await self.get_multi(f"{self.resource_path}/active")

    async def list_inactive(self) -> List[Enrollment]:
        return await self.get_multi(f"{self.resource_path}/inactive")

    async def list_pending(self) -> List[Enrollment]:
        return await self.get_multi(f"{self.resource_path}/pending")

    async def list_cancelled(self) -> List[Enrollment]:
        return await self.get_multi(f"{self.resource_path}/cancelled")

    async def list_non_cancelled(self) -> List[Enrollment]:
        """Active and pending enrollments merged, duplicates removed by id"""
        active, pending = await asyncio.gather(self.list_active(), self.list_pending())
        merged = {}
        for enrollment in [*active, *pending]:
            key = enrollment.id or id(enrollment)
            merged.setdefault(key, enrollment)
        logger.info(f"Non-cancelled enrollments: {len(merged)} ({len(active)} active + {len(pending)} pending)")
        return list(merged.values())

    async def list_by_institution(self, institution_id: str) -> List[Enrollment]:
        institution_id = self.require_id(institution_id, "institutionId")
        return await self.get_multi(f"{self.resource_path}/institution/{institution_id}")

    async def list_by_student(self, student_id: str) -> List[Enrollment]:
        student_id = self.require_id(student_id, "studentId")
        return await self.get_multi(f"{self.resource_path}/student/{student_id}")

    async def create(self, enrollment: Union[EnrollmentCreate, dict]) -> Enrollment:
        """Create a new enrollment (the server assigns id and enrollment date)"""
        if isinstance(enrollment, dict):
            enrollment = EnrollmentCreate.model_validate(enrollment)
        return await super().create(enrollment)

    async def update(self, id: str, enrollment: Union[EnrollmentUpdate, dict]) -> Enrollment:
        if isinstance(enrollment, dict):
            enrollment = EnrollmentUpdate.model_validate(enrollment)
        return await super().update(id, enrollment)

    async def delete(self, id: str) -> None:
        """Soft delete; the record keeps its status"""
        await self.soft_delete(id)

    async def restore_deleted(self, id: str) -> Enrollment:
        """Undo a soft delete"""
        id = self.require_id(id)
        payload = await self.executor.put(f"{self.resource_path}/{id}/restore")
        if payload is None:
            return await self.get(id)
        return self.parse(payload)

    async def change_status(self, id: str, status: Union[EnrollmentStatus, str]) -> Enrollment:
        """PUT /enrollments/{id}/status?status=... and return the record the server echoes back"""
        id = self.require_id(id)
        target = normalize_enrollment_status(status)
        if not isinstance(target, EnrollmentStatus):
            valid = ", ".join(s.value for s in EnrollmentStatus)
            raise ValidationError("Invalid status", {"status": f"must be one of {valid}"})

        payload = await self.executor.put(
            f"{self.resource_path}/{id}/status", params={"status": target.value}
        )
        if payload is None:
            # Nothing echoed back: read the record so the caller still gets the server state
            return await self.get(id)
        return self.parse(payload)

    async def exists(self, id: str) -> bool:
        try:
            await self.get(id)
            return True
        except NotFoundError:
            logger.info(f"Enrollment {id} does not exist on the server")
            return False

    async def validate_remote(self, student_id: str, institution_id: str, classroom_id: str) -> EnrollmentValidationResponse:
        """Server-side eligibility checks for a student/institution/classroom triple"""
        params = {
            "studentId": self.require_id(student_id, "studentId"),
            "institutionId": self.require_id(institution_id, "institutionId"),
            "classroomId": self.require_id(classroom_id, "classroomId"),
        }
        payload = await self.executor.get(f"{self.resource_path}/validate", params=params)
        if not isinstance(payload, dict):
            raise ResponseFormatError("Invalid enrollment validation response")
        return EnrollmentValidationResponse.model_validate(payload)


def _matches(value, expected, normalizer=None) -> bool:
    if not expected:
        return True
    if normalizer is not None:
        return normalizer(value) == normalizer(expected)
    return value == expected


def filter_enrollments(enrollments: Iterable[Enrollment], filters: Optional[EnrollmentFilters] = None) -> List[Enrollment]:
    """Local filtering used by list views"""
    if filters is None:
        return list(enrollments)

    search = (filters.search or "").strip().lower()
    result = []
    for enrollment in enrollments:
        if not _matches(enrollment.status, filters.status, normalize_enrollment_status):
            continue
        if not _matches(enrollment.enrollment_type, filters.enrollment_type, normalize_enrollment_type):
            continue
        if not _matches(enrollment.age_group, filters.age_group, normalize_age_group):
            continue
        if not _matches(enrollment.shift, filters.shift):
            continue
        if not _matches(enrollment.modality, filters.modality):
            continue
        if not _matches(enrollment.academic_year, filters.academic_year):
            continue
        if not _matches(enrollment.institution_id, filters.institution_id):
            continue
        if search:
            fields = [enrollment.student_id, enrollment.observations, enrollment.enrollment_code, enrollment.id]
            if not any(search in field.lower() for field in fields if field):
                continue
        result.append(enrollment)
    return result
