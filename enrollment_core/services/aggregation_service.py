# enrollment_core/services/aggregation_service.py
"""Composite enrollment views assembled from the student and institution services.

Each leg (student, institution, classroom) is fetched independently and settled on its
own: one failing leg never hides the other two.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Iterable, List, Optional, Tuple, TypeVar

from .integration_service import IntegrationService
from ..core.exceptions import NotFoundError, user_message
from ..schemas.enrollment_schemas import Enrollment
from ..schemas.integration_schemas import Classroom, InstitutionDetail, StudentData
from ..utils.settle import Settled, settle_all, settle_by_key, unique_keys

logger = logging.getLogger(__name__)

T = TypeVar('T')

LEGS = ("student", "institution", "classroom")


class LegState(str, Enum):
    LOADING = "LOADING"
    RESOLVED = "RESOLVED"
    NOT_FOUND = "NOT_FOUND"
    ERROR = "ERROR"


@dataclass
class LegResult(Generic[T]):
    state: LegState = LegState.LOADING
    value: Optional[T] = None
    error: Optional[Exception] = None
    reason: Optional[str] = None

    @classmethod
    def resolved(cls, value: T) -> "LegResult[T]":
        return cls(state=LegState.RESOLVED, value=value)

    @classmethod
    def missing(cls, leg: str) -> "LegResult[T]":
        """No id to look up: nothing was requested"""
        return cls(state=LegState.NOT_FOUND, reason=f"No {leg} assigned")

    @classmethod
    def from_settled(cls, settled: Settled) -> "LegResult":
        if settled.ok:
            return cls.resolved(settled.value)
        if isinstance(settled.error, NotFoundError):
            return cls(state=LegState.NOT_FOUND, error=settled.error, reason=settled.error.message)
        return cls(state=LegState.ERROR, error=settled.error, reason=user_message(settled.error))

    @property
    def is_resolved(self) -> bool:
        return self.state == LegState.RESOLVED

    @property
    def is_loading(self) -> bool:
        return self.state == LegState.LOADING


@dataclass
class EnrollmentDetail:
    enrollment: Enrollment
    student: LegResult[StudentData] = field(default_factory=LegResult)
    institution: LegResult[InstitutionDetail] = field(default_factory=LegResult)
    classroom: LegResult[Classroom] = field(default_factory=LegResult)

    @property
    def legs(self) -> Dict[str, LegResult]:
        return {leg: getattr(self, leg) for leg in LEGS}

    @property
    def complete(self) -> bool:
        return all(result.is_resolved for result in self.legs.values())

    @property
    def failed_legs(self) -> List[str]:
        return [leg for leg, result in self.legs.items() if result.state == LegState.ERROR]


class AggregationService:
    def __init__(self, integration: IntegrationService, limit: Optional[int] = None):
        self.integration = integration
        self.limit = limit
        self._fetchers = {
            "student": integration.get_student,
            "institution": integration.get_institution,
            "classroom": integration.get_classroom,
        }

    @staticmethod
    def _leg_ids(enrollment: Enrollment) -> Dict[str, Optional[str]]:
        return {
            "student": enrollment.student_id,
            "institution": enrollment.institution_id,
            "classroom": enrollment.classroom_id,
        }

    async def get_enrollment_detail(self, enrollment: Enrollment) -> EnrollmentDetail:
        """Fetch the three legs of one enrollment concurrently"""
        ids = self._leg_ids(enrollment)
        operations = {
            leg: (lambda leg=leg, key=key: self._fetchers[leg](key))
            for leg, key in ids.items() if key
        }
        settled = await settle_all(operations, limit=self.limit)

        detail = EnrollmentDetail(enrollment)
        for leg in LEGS:
            result = LegResult.from_settled(settled[leg]) if leg in settled else LegResult.missing(leg)
            setattr(detail, leg, result)

        if detail.failed_legs:
            logger.warning(
                f"Enrollment {enrollment.id} detail incomplete: {', '.join(detail.failed_legs)} failed to load"
            )
        return detail

    async def _resolve(self, leg: str, ids: Iterable[Optional[str]]) -> Dict[str, LegResult]:
        settled = await settle_by_key(ids, self._fetchers[leg], limit=self.limit)
        return {key: LegResult.from_settled(outcome) for key, outcome in settled.items()}

    async def resolve_students(self, student_ids: Iterable[Optional[str]]) -> Dict[str, LegResult[StudentData]]:
        return await self._resolve("student", student_ids)

    async def resolve_institutions(self, institution_ids: Iterable[Optional[str]]) -> Dict[str, LegResult[InstitutionDetail]]:
        return await self._resolve("institution", institution_ids)

    async def resolve_classrooms(self, classroom_ids: Iterable[Optional[str]]) -> Dict[str, LegResult[Classroom]]:
        return await self._resolve("classroom", classroom_ids)

    async def build_details(self, enrollments: Iterable[Enrollment]) -> List[EnrollmentDetail]:
        """Details for a whole list, fetching every distinct id once.

        All legs of all enrollments share one fan-out bounded by ``limit``; the result
        keeps the input order.
        """
        enrollments = list(enrollments)
        operations: Dict[Tuple[str, str], Any] = {}
        for leg in LEGS:
            for key in unique_keys(self._leg_ids(e)[leg] for e in enrollments):
                operations[(leg, key)] = lambda leg=leg, key=key: self._fetchers[leg](key)

        logger.info(f"Resolving {len(operations)} related records for {len(enrollments)} enrollments")
        settled = await settle_all(operations, limit=self.limit)
        results = {slot: LegResult.from_settled(outcome) for slot, outcome in settled.items()}

        details = []
        for enrollment in enrollments:
            detail = EnrollmentDetail(enrollment)
            for leg, key in self._leg_ids(enrollment).items():
                setattr(detail, leg, results[(leg, key)] if key else LegResult.missing(leg))
            details.append(detail)

        failures = sum(1 for result in results.values() if result.state == LegState.ERROR)
        if failures:
            logger.warning(f"{failures} of {len(results)} related records failed to load")
        return details
